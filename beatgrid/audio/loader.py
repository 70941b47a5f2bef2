"""Audio file loading utilities."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np

from beatgrid.analysis.errors import AudioLoadError


def load_audio(
    file_path_or_buffer: Union[str, Path, BytesIO],
    sr: int | None = None,
) -> tuple[np.ndarray, int]:
    """Load an audio file or buffer and convert to mono.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    sr:
        Target sample rate. Defaults to None, which keeps the file's native rate.

    Returns
    -------
    tuple[np.ndarray, int]
        A tuple of (audio_array, sample_rate).

    Raises
    ------
    AudioLoadError
        If the file cannot be decoded.
    """
    try:
        audio, sample_rate = librosa.load(file_path_or_buffer, sr=sr, mono=True)
    except Exception as e:
        raise AudioLoadError(f"cannot load {file_path_or_buffer}: {e}") from e
    return audio, int(sample_rate)
