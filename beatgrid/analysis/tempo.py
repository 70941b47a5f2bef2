"""Tempo estimation by autocorrelation of an onset detection curve."""

import logging

import numpy as np
from scipy.signal import correlate

from beatgrid.analysis.errors import TempoEstimationError
from beatgrid.analysis.models import TempoCandidate, WindowedSeries

logger = logging.getLogger(__name__)


def bpm_to_lag(bpm: float, hop_size: int, sample_rate: int) -> int:
    """Beat period in frames, truncated to an integer."""
    return int(60.0 * sample_rate / (bpm * hop_size))


def lag_to_bpm(lag: int, hop_size: int, sample_rate: int) -> float:
    """Inverse of bpm_to_lag (without the truncation)."""
    return 60.0 * sample_rate / (lag * hop_size)


def autocorrelation(values: np.ndarray) -> np.ndarray:
    """Biased, non-demeaned autocorrelation for lags >= 0, scaled so lag 0 is 1."""
    values = np.asarray(values, dtype=np.float64)
    if len(values) == 0 or not np.all(np.isfinite(values)):
        raise TempoEstimationError("detection curve is empty or not finite")
    full = correlate(values, values, mode="full")
    acf = full[len(values) - 1:]
    if acf[0] <= 0:
        raise TempoEstimationError("detection curve has no energy; autocorrelation undefined")
    return acf / acf[0]


def two_best_lags(area: np.ndarray) -> tuple[int, int]:
    """Indices of the largest and second largest values in a single pass.

    Ties go to the later index; a new maximum demotes the old one to second.
    With a single value both indices are 0.
    """
    best = 0
    second = None
    for i in range(1, len(area)):
        x = area[i]
        if area[best] <= x:
            second = best
            best = i
        elif second is None or area[second] <= x:
            second = i
    return best, best if second is None else second


def estimate_tempo(
    curve: WindowedSeries,
    sample_rate: int,
    min_bpm: float = 60.0,
    max_bpm: float = 200.0,
) -> tuple[TempoCandidate, TempoCandidate]:
    """Return the best and second best tempo candidates for a detection curve.

    The lag search covers ``[lag(max_bpm), lag(min_bpm)]`` frames inclusive,
    clipped to the length of the autocorrelation.
    """
    acf = autocorrelation(curve.data)

    low = max(1, bpm_to_lag(max_bpm, curve.hop_size, sample_rate))
    high = min(bpm_to_lag(min_bpm, curve.hop_size, sample_rate), len(acf) - 1)
    if low > high:
        raise TempoEstimationError(
            f"detection curve too short ({len(curve)} frames) for lags {low}..{high}"
        )

    best, second = two_best_lags(acf[low:high + 1])
    candidates = tuple(
        TempoCandidate(lag=low + idx, bpm=lag_to_bpm(low + idx, curve.hop_size, sample_rate))
        for idx in (best, second)
    )
    logger.debug(f"Tempo candidates: {candidates[0].bpm:.1f} / {candidates[1].bpm:.1f} BPM")
    return candidates
