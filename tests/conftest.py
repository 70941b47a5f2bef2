"""Shared test fixtures for onset, tempo and beat tests."""

import numpy as np
import pytest
import soundfile as sf

from beatgrid.config import PeakPickerParams, Settings


def generate_click_track(
    bpm: float,
    duration_seconds: float = 8.0,
    sr: int = 22050,
    beats_per_bar: int = 4,
    accent_ratio: float = 2.0,
    start: float = 0.25,
) -> np.ndarray:
    """Generate a synthetic click track with accented downbeats.

    The first click (a downbeat) sits at ``start`` seconds. Returns mono
    audio at the given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    click_duration = 0.02  # 20ms click
    click_samples = int(click_duration * sr)

    # Create click sound (short sine burst with envelope)
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)

    for beat, time in enumerate(click_times(bpm, duration_seconds, start)):
        sample_pos = int(round(time * sr))
        amplitude = accent_ratio if beat % beats_per_bar == 0 else 1.0

        end = min(sample_pos + click_samples, n_samples)
        length = end - sample_pos
        if length > 0:
            audio[sample_pos:end] += click[:length] * amplitude

    # Normalize
    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak

    return audio


def click_times(bpm: float, duration_seconds: float, start: float = 0.25) -> list[float]:
    """Times of the clicks generate_click_track places."""
    interval = 60.0 / bpm
    return [float(t) for t in np.arange(start, duration_seconds - 0.05, interval)]


@pytest.fixture
def click_120():
    """Click track in 4/4 at 120 BPM."""
    return generate_click_track(bpm=120)


@pytest.fixture
def test_settings():
    """Settings tuned for the synthetic click tracks at 22050 Hz."""
    return Settings(
        window_size=2048,
        hop_size=441,
        max_workers=2,
    )


@pytest.fixture
def single_spike_params():
    return PeakPickerParams(local_window_max=1, local_window_mean=1, delta=0.0, minimum_distance=1)


@pytest.fixture
def write_wav(tmp_path):
    """Write audio into tmp_path and return the file path."""
    def _write(name: str, audio: np.ndarray, sr: int = 22050):
        path = tmp_path / name
        sf.write(str(path), audio, sr)
        return path
    return _write
