"""Short-time Fourier transform with Hamming taper."""

import logging

import numpy as np
from scipy import fft
from scipy.signal import get_window

from beatgrid.analysis.errors import EmptySignalError
from beatgrid.analysis.models import WindowedSeries

logger = logging.getLogger(__name__)


def frame_count(n_samples: int, window_size: int, hop_size: int) -> int:
    """Number of frames ``stft`` produces for a signal of ``n_samples``.

    Equals ``ceil((N - W) / H) + 1`` for signals longer than one window and 1
    otherwise.
    """
    if n_samples <= window_size:
        return 1
    return -(-(n_samples - window_size) // hop_size) + 1


def frame_signal(samples: np.ndarray, window_size: int, hop_size: int) -> np.ndarray:
    """Cut ``samples`` into overlapping frames of ``window_size``.

    The final frame is zero-padded on the right so the tail of the signal is
    always covered; that frame is partly synthetic.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 1:
        raise ValueError(f"expected a mono signal, got shape {samples.shape}")
    if len(samples) == 0:
        raise EmptySignalError("cannot transform an empty signal")
    if not 0 < hop_size <= window_size:
        raise ValueError(f"hop_size must be in 1..{window_size}, got {hop_size}")

    n_frames = frame_count(len(samples), window_size, hop_size)
    padded_length = (n_frames - 1) * hop_size + window_size
    padded = np.zeros(padded_length)
    padded[:len(samples)] = samples
    frames = np.lib.stride_tricks.sliding_window_view(padded, window_size)[::hop_size]
    return frames[:n_frames]


def stft(samples: np.ndarray, window_size: int = 2048, hop_size: int = 441) -> WindowedSeries:
    """Compute the complex spectra of Hamming-tapered frames.

    Returns a WindowedSeries whose data has shape ``(n_frames, window_size)``.
    """
    frames = frame_signal(samples, window_size, hop_size)
    taper = get_window("hamming", window_size, fftbins=False)
    spectra = fft.fft(frames * taper, n=window_size, axis=1)
    logger.debug(f"STFT: {len(spectra)} frames (window={window_size}, hop={hop_size})")
    return WindowedSeries(data=spectra, window_size=window_size, hop_size=hop_size)
