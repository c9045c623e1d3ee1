from pathlib import Path

import numpy as np
import SimpleITK as sitk

current_dir = Path(__file__).parent


def make_volume(array: np.ndarray, spacing=(1.0, 1.0, 1.0), origin=(0.0, 0.0, 0.0)) -> sitk.Image:
    """
    Build an 8 bit test volume. array is indexed (z, y, x) as returned by sitk.GetArrayFromImage
    """
    img = sitk.GetImageFromArray(np.asarray(array, dtype=np.uint8))
    img.SetSpacing(spacing)
    img.SetOrigin(origin)
    return img


def two_plateau_array(low=50, high=200) -> np.ndarray:
    """8x10x5 volume, the first half of the samples are low and the rest high"""
    arr = np.full((8, 10, 5), low, dtype=np.uint8)
    arr[4:] = high
    return arr


def write_volume(path: Path, array: np.ndarray, **kwargs) -> Path:
    sitk.WriteImage(make_volume(array, **kwargs), str(path))
    return path
