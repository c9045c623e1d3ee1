"""
Otsu thresholding of 8-bit volumes.

The threshold search is done here over an integer histogram. Samples with a value <= the threshold are set to the
inside value and the rest to the outside value.

When several neighbouring thresholds separate the histogram equally well, the middle of that run is used. SimpleITK's
OtsuThresholdImageFilter takes the low end of the run instead, so on volumes with a gap between the two intensity
groups the thresholds differ (for values 20-89 and 120-229 this gives 104 where SimpleITK gives 89).

Example
-------
binary, result = otsu_threshold_volume(img, inside=0, outside=255)
print(f'Threshold = {result.threshold}')
"""

from collections import namedtuple
from typing import Tuple, Union

from logzero import logger as logging
import numpy as np
import SimpleITK as sitk

from volproc.common import VolprocDataException

N_BINS = 256  # 8 bit pixel range

OtsuResult = namedtuple('OtsuResult', 'threshold inside_value outside_value fallback')


def histogram(img: Union[sitk.Image, np.ndarray], bins: int = N_BINS) -> np.ndarray:
    """
    Integer-bin histogram. bin i counts the samples with value i

    Raises
    ------
    VolprocDataException if a sample falls outside 0..bins-1
    """
    if isinstance(img, sitk.Image):
        arr = sitk.GetArrayViewFromImage(img)
    else:
        arr = np.asarray(img)
    arr = arr.ravel()

    if arr.size and (arr.min() < 0 or arr.max() >= bins):
        raise VolprocDataException(f'sample values {arr.min()}..{arr.max()} do not fit in {bins} histogram bins')

    return np.bincount(arr.astype(np.int64), minlength=bins)


def otsu_threshold(hist: np.ndarray) -> Tuple[int, bool]:
    """
    Find the threshold that maximises the between-class variance of {value <= t} and {value > t}

    Every integer t from 0 to len(hist) - 2 is tried. Where a run of neighbouring thresholds give the same maximum
    variance (no samples between two peaks for example) the middle of that run is returned.

    Parameters
    ----------
    hist
        counts per intensity value

    Returns
    -------
    threshold
    fallback
        True if the histogram was degenerate. An empty histogram gives 0 and a histogram with a single occupied bin
        gives the value of that bin, so that all samples are <= the threshold
    """
    hist = np.asarray(hist, dtype=np.float64)
    if hist.ndim != 1 or len(hist) < 2:
        raise ValueError('histogram should be 1D with at least 2 bins')

    total = hist.sum()
    occupied = np.flatnonzero(hist)

    if total == 0:
        logging.warning('Empty histogram. Using threshold of 0')
        return 0, True

    if len(occupied) < 2:
        value = int(occupied[0])
        logging.warning(f'Volume has a single intensity ({value}). Using it as the threshold')
        return value, True

    levels = np.arange(len(hist))
    mass = hist * levels

    # Class below or at t, for t = 0 .. n-2
    w0 = np.cumsum(hist)[:-1]
    m0 = np.cumsum(mass)[:-1]
    w1 = total - w0
    m1 = mass.sum() - m0

    with np.errstate(divide='ignore', invalid='ignore'):
        between = w0 * w1 * (m0 / w0 - m1 / w1) ** 2
    between = np.nan_to_num(between, nan=0.0, posinf=0.0)

    best = between.max()
    first = int(np.argmax(between))
    last = first
    while last + 1 < len(between) and np.isclose(between[last + 1], best, rtol=1e-12, atol=0):
        last += 1

    return (first + last) // 2, False


def apply_threshold(img: sitk.Image, threshold: int, inside: int = 0, outside: int = 255) -> sitk.Image:
    """
    Samples <= threshold become inside, the others outside. Spacing, origin and direction are kept
    """
    lower = float(min(threshold, sitk.GetArrayViewFromImage(img).min()))

    return sitk.BinaryThreshold(img, lowerThreshold=lower, upperThreshold=float(threshold),
                                insideValue=inside, outsideValue=outside)


def otsu_threshold_volume(img: sitk.Image, inside: int = 0, outside: int = 255) -> Tuple[sitk.Image, OtsuResult]:
    hist = histogram(img)
    threshold, fallback = otsu_threshold(hist)
    logging.debug(f'otsu threshold {threshold} (fallback: {fallback})')

    binary = apply_threshold(img, threshold, inside, outside)
    return binary, OtsuResult(threshold, inside, outside, fallback)
