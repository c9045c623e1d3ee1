from pathlib import Path
from traceback import format_exception
import sys
import os
from typing import Union, Dict

from logzero import logger as logging
import logzero
import SimpleITK as sitk
import numpy as np

import yaml
import toml


LOG_FILE = 'volproc.log'
DIMENSION = 3


class VolprocDataException(Exception):
    """
    An exception that is raised when the current process (thresholding, resampling etc.) cannot complete due to
    problems with the data
    """
    pass


class VolprocIOError(VolprocDataException):
    """
    Raised when a volume cannot be read or written. The message contains the stage and the path
    """
    def __init__(self, stage: str, path: Union[str, Path], reason: str = ''):
        self.stage = stage
        self.path = str(path)
        msg = f'error {stage} {self.path}'
        if reason:
            msg = f'{msg}: {reason}'
        super().__init__(msg)


def excepthook_overide(exctype, value, traceback):
    """
    Used to override sys.excepthook so we can log any uncaught Exceptions

    Parameters
    ----------
    exctype
    value
    traceback
    """

    logging.exception(''.join(format_exception(exctype, value, traceback)))
    logging.warning(('#'*30))

    if issubclass(exctype, VolprocDataException):
        logging.warning('volproc encountered a problem with reading or interpreting some data. Please check the log files')
    else:
        logging.warning('volproc encountered an unknown problem. Please check the log files')
    sys.exit(1)


def command_line_agrs():
    return ' '.join(sys.argv)


class LoadImage(object):
    """
    Wrapper around sitk.ReadImage which does some error checking. Takes a str or a Path

    The image is cast to pixel_type (unsigned 8 bit by default) so downstream code can assume 8-bit samples
    """
    def __init__(self, img_path: Union[str, Path], pixel_type=sitk.sitkUInt8):
        self.img_path = str(img_path)
        self.pixel_type = pixel_type
        self.error_msg = None
        self.img = None
        self._read()

    def __bool__(self):
        """
        Overload this so we can do simple 'is LoadImage' to check if img loaded
        """
        if self.img is None:
            return False
        else:
            return True

    @property
    def array(self) -> np.ndarray:
        return sitk.GetArrayFromImage(self.img)

    def _read(self):

        if os.path.isfile(self.img_path):
            try:
                img = sitk.ReadImage(self.img_path)
            except RuntimeError:
                self.error_msg = "possibly corrupted file {}".format(self.img_path)
                return

            if img.GetDimension() != DIMENSION:
                self.error_msg = "{} has {} dimensions, expected {}".format(self.img_path, img.GetDimension(),
                                                                            DIMENSION)
                return

            if self.pixel_type is not None and img.GetPixelID() != self.pixel_type:
                img = sitk.Cast(img, self.pixel_type)
            self.img = img

        else:
            self.error_msg = "path does not exist: {}".format(self.img_path)
            raise FileNotFoundError(f'cannot read {self.img_path}')


def load_volume(img_path: Union[str, Path]) -> sitk.Image:
    """
    Read a volume or raise VolprocIOError. Used by the scripts where any read problem is fatal
    """
    try:
        loader = LoadImage(img_path)
    except FileNotFoundError as e:
        raise VolprocIOError('reading', img_path, 'file not found') from e

    if not loader:
        raise VolprocIOError('reading', img_path, loader.error_msg)
    return loader.img


def write_image(img: sitk.Image, path: Union[str, Path], compressed=False):
    """
    Write a volume using SimpleITK, making the parent directory if needed.

    Raises
    ------
    VolprocIOError if the directory cannot be made or SimpleITK fails to write
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        sitk.WriteImage(img, str(path), compressed)
    except (RuntimeError, OSError) as e:
        raise VolprocIOError('writing', path, str(e).strip()) from e


def init_logging(logpath):

    if os.path.exists(logpath):  # Create new log file if one already exists
        i = 1
        while True:
            path, ext = os.path.splitext(logpath)
            newname = path + '_' + str(i)
            new_logpath = newname + ext
            if not os.path.exists(new_logpath):
                logpath = new_logpath
                break
            i += 1

    logzero.logfile(logpath)
    return logpath


def cfg_load(cfg) -> Dict:
    """
    Config files can be yaml or toml.

    This function wraps around both

    Returns
    -------
    Dictionary config
    """
    cfg = Path(cfg)

    if not cfg.is_file():
        raise FileNotFoundError(f'Cannot find required config file: {cfg}')

    if Path(cfg).suffix == '.yaml':

        try:
            with open(cfg, 'r') as fh:
                return yaml.load(fh, Loader=yaml.FullLoader) or {}
        except yaml.YAMLError as e:
            raise ValueError("can't read the config file - {}".format(e))

    elif Path(cfg).suffix == '.toml':
        try:
            return toml.load(cfg)
        except toml.TomlDecodeError as e:
            raise ValueError("can't read the config file - {}".format(e))

    else:
        raise ValueError('Config file should end in .toml or .yaml')
