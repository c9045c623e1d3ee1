"""
Build 4x4 homogeneous matrices for rotation about x, y and z, uniform scaling and translation, and combine them into a
single forward transform.

Matrices map input physical points to output physical points (forward direction). They are anchored at a center
point when converted to a SimpleITK transform, so rotation and scaling pivot around the middle of the volume.
"""

from collections import namedtuple
from typing import List, Tuple, Sequence

from logzero import logger as logging
import numpy as np
import SimpleITK as sitk

DIMENSION = 3

COMPOSE = 'compose'
LAST_WINS = 'last_wins'


def x_rotation_matrix(theta: float) -> np.ndarray:
    """Rotate the y-z plane"""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[1., 0., 0., 0.],
                     [0., c, s, 0.],
                     [0., -s, c, 0.],
                     [0., 0., 0., 1.]])


def y_rotation_matrix(theta: float) -> np.ndarray:
    """Rotate the x-z plane"""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, 0., s, 0.],
                     [0., 1., 0., 0.],
                     [-s, 0., c, 0.],
                     [0., 0., 0., 1.]])


def z_rotation_matrix(theta: float) -> np.ndarray:
    """Rotate the x-y plane"""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s, 0., 0.],
                     [s, c, 0., 0.],
                     [0., 0., 1., 0.],
                     [0., 0., 0., 1.]])


def scaling_matrix(factor: float) -> np.ndarray:
    m = np.eye(DIMENSION + 1)
    m[0, 0] = m[1, 1] = m[2, 2] = factor
    return m


def translation_matrix(tx: float, ty: float, tz: float) -> np.ndarray:
    m = np.eye(DIMENSION + 1)
    m[:DIMENSION, DIMENSION] = (tx, ty, tz)
    return m


class TransformParameters(namedtuple('TransformParameters', 'x_rot y_rot z_rot scale x_trans y_trans z_trans')):
    """
    The seven scalars given on the command line. Angles are in radians
    """
    __slots__ = ()

    def requested_matrices(self) -> List[Tuple[str, np.ndarray]]:
        """
        The matrices for parameters that differ from their identity value, in the order they are applied.
        An angle of 0, a scale of 1 and a translation of (0, 0, 0) are treated as not requested
        """
        matrices = []

        if self.x_rot != 0:
            matrices.append(('x_rotation', x_rotation_matrix(self.x_rot)))

        if self.y_rot != 0:
            matrices.append(('y_rotation', y_rotation_matrix(self.y_rot)))

        if self.z_rot != 0:
            matrices.append(('z_rotation', z_rotation_matrix(self.z_rot)))

        if self.scale != 1:
            matrices.append(('scaling', scaling_matrix(self.scale)))

        if self.x_trans != 0 or self.y_trans != 0 or self.z_trans != 0:
            matrices.append(('translation', translation_matrix(self.x_trans, self.y_trans, self.z_trans)))

        return matrices


class TransformPipeline:
    """
    Accumulates affine matrices into one forward matrix.

    policy
        'compose': matrices are multiplied right-to-left (M = M_n @ ... @ M_1) so the first one added is the first one
        applied to the image.
        'last_wins': each added matrix replaces the previous one. This reproduces the behaviour of setting the
        transform on a resampler repeatedly, where only the last setting is used.
    """

    def __init__(self, policy: str = COMPOSE):
        if policy not in (COMPOSE, LAST_WINS):
            raise ValueError(f'unknown transform policy: {policy}')
        self.policy = policy
        self.names = []
        self._matrix = np.eye(DIMENSION + 1)

    def __len__(self):
        return len(self.names)

    def add(self, name: str, matrix: np.ndarray):
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (DIMENSION + 1, DIMENSION + 1):
            raise ValueError(f'{name} matrix should be 4x4 not {matrix.shape}')

        if self.policy == COMPOSE:
            self._matrix = matrix @ self._matrix
        else:
            if self.names:
                logging.warning(f'{name} replaces {self.names[-1]} ({LAST_WINS} policy)')
            self._matrix = matrix.copy()
        self.names.append(name)
        return self

    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    @classmethod
    def from_parameters(cls, params: TransformParameters, policy: str = COMPOSE) -> 'TransformPipeline':
        pipeline = cls(policy)
        for name, matrix in params.requested_matrices():
            pipeline.add(name, matrix)
        return pipeline


def is_identity(matrix: np.ndarray) -> bool:
    return np.allclose(matrix, np.eye(DIMENSION + 1))


def to_sitk_transform(matrix: np.ndarray, center: Sequence[float]) -> sitk.AffineTransform:
    """
    Convert a 4x4 matrix into a SimpleITK affine transform with the linear part applied about center
    """
    matrix = np.asarray(matrix, dtype=np.float64)

    transform = sitk.AffineTransform(DIMENSION)
    transform.SetCenter([float(c) for c in center])
    transform.SetMatrix(matrix[:DIMENSION, :DIMENSION].ravel().tolist())
    transform.SetTranslation(matrix[:DIMENSION, DIMENSION].tolist())
    return transform
