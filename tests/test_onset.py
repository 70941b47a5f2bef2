"""Tests for the onset detection functions."""

import numpy as np
import pytest

from beatgrid.analysis.models import WindowedSeries
from beatgrid.analysis.onset import (
    OnsetMethod,
    detection_curve,
    half_wave_rectify,
    high_frequency_content,
    lfsf,
    log_filtered_spectrogram,
    normalize,
    sharpen,
    spectral_difference,
)
from beatgrid.analysis.spectral import stft
from tests.conftest import click_times, generate_click_track


def _series(data, window_size=None, hop_size=1):
    data = np.asarray(data)
    return WindowedSeries(data=data, window_size=window_size or data.shape[-1], hop_size=hop_size)


def _random_spectra(seed: int, n_frames: int = 50, window_size: int = 512) -> WindowedSeries:
    rng = np.random.default_rng(seed)
    data = rng.standard_normal((n_frames, window_size)) + 1j * rng.standard_normal((n_frames, window_size))
    data *= rng.uniform(0, 10, size=(n_frames, 1))
    return _series(data, window_size=window_size, hop_size=256)


def test_half_wave_rectify():
    np.testing.assert_array_equal(half_wave_rectify(np.array([-2.0, 0.0, 3.0])), [0.0, 0.0, 3.0])


def test_hfc_weights_bins_linearly():
    spectra = _series(np.ones((1, 4), dtype=complex))
    curve = high_frequency_content(spectra)
    # (0 + 1/4 + 2/4 + 3/4) / 4
    assert curve.data[0] == pytest.approx(0.375)


def test_spectral_difference_first_frame_is_zero():
    spectra = _series(np.array([[1, 1], [2, 0], [2, 0]], dtype=complex))
    curve = spectral_difference(spectra)
    np.testing.assert_allclose(curve.data, [0.0, 2.0, 0.0])


@pytest.mark.parametrize("seed", range(5))
def test_sd_and_lfsf_are_non_negative(seed):
    spectra = _random_spectra(seed)
    sd = spectral_difference(spectra)
    flux = lfsf(spectra, sample_rate=22050, n_bands=40)

    assert len(sd) == len(spectra) == len(flux)
    assert np.all(sd.data >= 0)
    assert np.all(flux.data >= 0)


def test_lfsf_is_zero_for_repeated_frames():
    frame = _random_spectra(3, n_frames=1).data[0]
    spectra = _series(np.tile(frame, (6, 1)), hop_size=256)
    flux = lfsf(spectra, sample_rate=22050, n_bands=40)

    assert flux.data[0] > 0  # increase from the all-zero frame before the start
    np.testing.assert_allclose(flux.data[1:], 0.0, atol=1e-12)


def test_lfsf_log_lambda_compresses():
    spectra = _random_spectra(4)
    strong = lfsf(spectra, 22050, n_bands=40, log_lambda=10.0)
    weak = lfsf(spectra, 22050, n_bands=40, log_lambda=0.1)
    assert strong.data.sum() > weak.data.sum()


def test_detection_curve_dispatch():
    spectra = _random_spectra(5)
    np.testing.assert_array_equal(
        detection_curve(spectra, "hfc", 22050).data, high_frequency_content(spectra).data
    )
    np.testing.assert_array_equal(
        detection_curve(spectra, OnsetMethod.SPECTRAL_DIFFERENCE, 22050).data, spectral_difference(spectra).data
    )
    np.testing.assert_allclose(
        detection_curve(spectra, "lfsf", 22050, mel_bands=40, log_lambda=0.5).data,
        lfsf(spectra, 22050, n_bands=40, log_lambda=0.5).data,
    )
    with pytest.raises(ValueError):
        detection_curve(spectra, "phase_deviation", 22050)


def test_curves_keep_window_and_hop():
    spectra = _random_spectra(6)
    for method in OnsetMethod:
        curve = detection_curve(spectra, method, 22050, mel_bands=40)
        assert curve.window_size == spectra.window_size
        assert curve.hop_size == spectra.hop_size


def test_normalize_minmax():
    curve = normalize(_series([2.0, 4.0, 6.0]), "minmax")
    np.testing.assert_allclose(curve.data, [0.0, 0.5, 1.0])


def test_normalize_meanmax():
    curve = normalize(_series([2.0, 4.0, 6.0]), "meanmax")
    np.testing.assert_allclose(curve.data, [-2 / 6, 0.0, 2 / 6])


@pytest.mark.parametrize("mode", ["minmax", "meanmax"])
def test_normalize_flat_and_non_finite(mode):
    np.testing.assert_array_equal(normalize(_series([3.0, 3.0, 3.0]), mode).data, [0.0, 0.0, 0.0])
    data = normalize(_series([np.nan, 1.0, np.inf]), mode).data
    assert np.all(np.isfinite(data))


def test_normalize_unknown_mode():
    with pytest.raises(ValueError):
        normalize(_series([1.0, 2.0]), "zscore")


def test_sharpen_keeps_length_and_emphasizes_impulse():
    data = np.zeros(11)
    data[5] = 1.0
    out = sharpen(_series(data))

    assert len(out) == 11
    np.testing.assert_allclose(out.data[3:8], [-0.3, -0.5, 2.6, -0.5, -0.3])
    assert out.data[0] == 0.0


def test_sharpen_rejects_short_curve():
    with pytest.raises(ValueError):
        sharpen(_series([1.0, 2.0, 3.0]))


def test_lfsf_peaks_follow_clicks():
    sr = 22050
    audio = generate_click_track(bpm=120, duration_seconds=4.0, sr=sr)
    spectra = stft(audio, window_size=2048, hop_size=441)
    curve = lfsf(spectra, sr)

    frame_duration = 441 / sr
    for t in click_times(120, 4.0)[1:]:
        frame = int(t / frame_duration)
        window = curve.data[frame - 6:frame + 2]
        assert window.max() > 0.3 * curve.data.max()


def test_log_filtered_spectrogram_ignores_negative_frequencies():
    data = np.zeros((2, 64), dtype=complex)
    data[:, 33:] = 5.0
    bands = log_filtered_spectrogram(WindowedSeries(data, 64, 32), sample_rate=22050, n_bands=8)
    assert bands.shape == (2, 8)
    assert np.all(bands == 0.0)
