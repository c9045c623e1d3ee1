from typing import Tuple

from logzero import logger as logging
import numpy as np
import SimpleITK as sitk

from volproc.common import VolprocDataException
from volproc.img_processing.affine import DIMENSION, is_identity, to_sitk_transform

# windowed_sinc is the Hamming windowed sinc kernel. linear is the cheaper trilinear approximation, which blurs more
INTERPOLATORS = {
    'windowed_sinc': sitk.sitkHammingWindowedSinc,
    'linear': sitk.sitkLinear,
    'nearest': sitk.sitkNearestNeighbor,
    'bspline': sitk.sitkBSpline,
}


def volume_center(img: sitk.Image) -> Tuple[float, ...]:
    """
    The geometric center of the volume in physical coordinates (midway between the first and last sample on each axis)
    """
    return img.TransformContinuousIndexToPhysicalPoint([(s - 1) / 2.0 for s in img.GetSize()])


def resample(img: sitk.Image, matrix: np.ndarray, interpolator: str = 'windowed_sinc',
             default_value: float = 0) -> sitk.Image:
    """
    Apply a forward affine matrix to a volume. The output grid is the input grid.

    Each output sample's physical point is mapped through the inverse of the forward transform into the input volume
    and interpolated there. Points that land outside the input are set to default_value.

    Parameters
    ----------
    img
        the volume to transform
    matrix
        4x4 forward matrix, anchored at the volume center
    interpolator
        one of INTERPOLATORS
    default_value
        fill value for samples that map outside the input

    Returns
    -------
    New image with the same size, spacing, origin, direction and pixel type as img
    """
    if interpolator not in INTERPOLATORS:
        raise ValueError(f'interpolator should be one of {list(INTERPOLATORS)}')

    if is_identity(matrix):
        logging.info('Identity transform, volume left unchanged')
        return sitk.Image(img)

    if np.isclose(np.linalg.det(np.asarray(matrix)[:DIMENSION, :DIMENSION]), 0):
        raise VolprocDataException('transform matrix is singular and cannot be inverted (is the scale 0?)')

    center = volume_center(img)
    forward = to_sitk_transform(matrix, center)
    logging.debug(f'resampling about center {center} with {interpolator} interpolation')

    return sitk.Resample(img, img, forward.GetInverse(), INTERPOLATORS[interpolator], float(default_value),
                         img.GetPixelID())
