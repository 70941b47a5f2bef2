"""Onset detection functions computed from a short-time spectrum.

Three algorithms are available, selected through :class:`OnsetMethod`:

* ``hfc``  - high frequency content, energy weighted by a linear bin ramp
* ``sd``   - spectral difference, rectified squared magnitude increase per bin
* ``lfsf`` - logarithmic filtered spectral flux over a mel filterbank

Each returns a detection curve (one value per spectral frame) as a
WindowedSeries carrying the transform's window and hop size.
"""

import functools
import logging
from enum import Enum

import librosa
import numpy as np

from beatgrid.analysis.models import WindowedSeries

logger = logging.getLogger(__name__)

SHARPEN_KERNEL = np.array([-0.3, -0.5, 2.6, -0.5, -0.3])


class OnsetMethod(str, Enum):
    HFC = "hfc"
    SPECTRAL_DIFFERENCE = "sd"
    LFSF = "lfsf"


def half_wave_rectify(x: np.ndarray) -> np.ndarray:
    """Keep positive values, zero the rest: ``(x + |x|) / 2``."""
    return (x + np.abs(x)) / 2


def high_frequency_content(spectra: WindowedSeries) -> WindowedSeries:
    """Energy per frame weighted by ``bin / window_size``, divided by window_size."""
    window_size = spectra.window_size
    weights = np.arange(window_size) / window_size
    energy = np.abs(spectra.data) ** 2
    return spectra.with_data(energy @ weights / window_size)


def spectral_difference(spectra: WindowedSeries) -> WindowedSeries:
    """Sum of rectified squared magnitude differences to the previous frame.

    The first frame has no predecessor and scores 0.
    """
    magnitudes = np.abs(spectra.data)
    curve = np.zeros(len(magnitudes))
    if len(magnitudes) > 1:
        squared = np.diff(magnitudes, axis=0) ** 2
        curve[1:] = half_wave_rectify(squared).sum(axis=1)
    return spectra.with_data(curve)


@functools.lru_cache(maxsize=16)
def mel_filterbank(sample_rate: int, window_size: int, n_bands: int = 128) -> np.ndarray:
    """Unit-height triangular mel filterbank, shape ``(n_bands, window_size // 2 + 1)``."""
    return librosa.filters.mel(sr=sample_rate, n_fft=window_size, n_mels=n_bands, norm=None)


def log_filtered_spectrogram(
    spectra: WindowedSeries,
    sample_rate: int,
    n_bands: int = 128,
    log_lambda: float = 0.7,
) -> np.ndarray:
    """Mel band magnitudes compressed with ``log10(x * lambda + 1)``.

    Only the ``window_size // 2 + 1`` non-negative frequency bins are projected
    onto the filterbank. Summing the mirrored negative-frequency bins as well
    would roughly double the band magnitudes before compression, so absolute
    LFSF values are not comparable with such an implementation.
    """
    filterbank = mel_filterbank(sample_rate, spectra.window_size, n_bands)
    n_bins = filterbank.shape[1]
    bands = np.abs(spectra.data[:, :n_bins]) @ filterbank.T
    return np.log10(bands * log_lambda + 1)


def lfsf(
    spectra: WindowedSeries,
    sample_rate: int,
    n_bands: int = 128,
    log_lambda: float = 0.7,
) -> WindowedSeries:
    """Logarithmic filtered spectral flux.

    Sum over mel bands of the rectified increase from the previous frame; the
    frame before the first one is taken as all zeros.
    """
    bands = log_filtered_spectrogram(spectra, sample_rate, n_bands, log_lambda)
    previous = np.vstack([np.zeros((1, bands.shape[1])), bands[:-1]])
    flux = half_wave_rectify(bands - previous).sum(axis=1)
    return spectra.with_data(flux)


def detection_curve(
    spectra: WindowedSeries,
    method: OnsetMethod | str,
    sample_rate: int,
    mel_bands: int = 128,
    log_lambda: float = 0.7,
) -> WindowedSeries:
    """Compute the detection curve of ``method`` for the given spectra."""
    method = OnsetMethod(method)
    if method is OnsetMethod.HFC:
        return high_frequency_content(spectra)
    if method is OnsetMethod.SPECTRAL_DIFFERENCE:
        return spectral_difference(spectra)
    return lfsf(spectra, sample_rate, n_bands=mel_bands, log_lambda=log_lambda)


def normalize(curve: WindowedSeries, mode: str = "minmax") -> WindowedSeries:
    """Scale a detection curve before peak picking.

    ``minmax`` maps the curve onto [0, 1]; ``meanmax`` subtracts the mean and
    divides by the maximum. A flat curve becomes all zeros. Non-finite values
    are replaced by 0 first.
    """
    data = np.nan_to_num(np.asarray(curve.data, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
    if len(data) == 0:
        return curve.with_data(data)

    if mode == "minmax":
        span = data.max() - data.min()
        if span <= 0:
            return curve.with_data(np.zeros_like(data))
        return curve.with_data((data - data.min()) / span)
    if mode == "meanmax":
        peak = data.max()
        if peak == 0:
            return curve.with_data(np.zeros_like(data))
        return curve.with_data((data - data.mean()) / peak)
    raise ValueError(f"unknown normalization mode: {mode}")


def sharpen(curve: WindowedSeries, kernel: np.ndarray = SHARPEN_KERNEL) -> WindowedSeries:
    """Convolve the curve with a small centred kernel, zero-padded at the edges."""
    kernel = np.asarray(kernel, dtype=np.float64)
    if len(kernel) % 2 == 0:
        raise ValueError("kernel length must be odd")
    if len(curve) < len(kernel):
        raise ValueError(f"curve ({len(curve)} frames) is shorter than the kernel ({len(kernel)})")
    return curve.with_data(np.convolve(curve.data, kernel[::-1], mode="same"))
