"""Adaptive peak picking on onset detection curves."""

import logging

import numpy as np

from beatgrid.analysis.models import OnsetTimes, PeakMask, WindowedSeries
from beatgrid.config import PeakPickerParams

logger = logging.getLogger(__name__)

# Frames between the start of a frame and the reported onset time: half a
# window-centre offset plus one frame of lag from the difference-based curves.
FRAME_TIME_OFFSET = 1.5


def pick_peaks(curve: WindowedSeries, params: PeakPickerParams | None = None) -> PeakMask:
    """Mark onset frames in a detection curve.

    Frame ``i`` (endpoints excluded) is a peak when it is a strict local
    maximum against both neighbours, no peak was accepted in the preceding
    ``minimum_distance`` frames, it reaches the local mean plus ``delta`` and
    it equals the local maximum. Windows are clamped to the curve.
    """
    params = params or PeakPickerParams()
    values = np.asarray(curve.data, dtype=np.float64)
    n = len(values)
    peaks = np.zeros(n, dtype=bool)
    threshold = mean_threshold(values, params.local_window_mean, params.delta)

    for i in range(1, n - 1):
        if not (values[i - 1] < values[i] > values[i + 1]):
            continue
        if params.minimum_distance > 0 and peaks[max(0, i - params.minimum_distance):i].any():
            continue
        if values[i] < threshold[i]:
            continue
        max_lo = max(0, i - params.local_window_max)
        max_hi = min(n, i + params.local_window_max + 1)
        if values[i] < values[max_lo:max_hi].max():
            continue
        peaks[i] = True

    first_strong = first_strong_peak(values[peaks])
    logger.debug(f"Picked {int(peaks.sum())} peaks, first strong peak: {first_strong}")
    return PeakMask(peaks=curve.with_data(peaks), first_strong_peak=first_strong)


def mean_threshold(values: np.ndarray, window: int, delta: float) -> np.ndarray:
    """Local mean over ``i - window .. i + window`` (clamped) plus ``delta``, per frame."""
    values = np.asarray(values, dtype=np.float64)
    n = len(values)
    threshold = np.empty(n)
    for i in range(n):
        threshold[i] = values[max(0, i - window):min(n, i + window + 1)].mean() + delta
    return threshold


def first_strong_peak(peak_values: np.ndarray) -> int | None:
    """Position of the first peak value greater than the next one.

    Returns None if the values never decrease (including fewer than two peaks).
    """
    falling = np.flatnonzero(peak_values[:-1] > peak_values[1:])
    if len(falling) == 0:
        return None
    return int(falling[0])


def frame_to_time(frame: int | np.ndarray, hop_size: int, sample_rate: int):
    """Onset time in seconds for a frame index: ``(i + 1.5) * hop / sr``."""
    return (np.asarray(frame, dtype=np.float64) + FRAME_TIME_OFFSET) * hop_size / sample_rate


def onset_times(mask: PeakMask, sample_rate: int) -> OnsetTimes:
    """Convert a peak mask into onset times in seconds."""
    times = frame_to_time(mask.indices, mask.peaks.hop_size, sample_rate)
    return OnsetTimes(times=[float(t) for t in times], first_strong_peak=mask.first_strong_peak)
