"""Analysis orchestrator - runs the onset, tempo and beat pipeline for one file."""

import logging
from pathlib import Path

import numpy as np

from beatgrid.analysis.beat_tracking import track_beats
from beatgrid.analysis.ensemble import combine_onsets
from beatgrid.analysis.errors import NoSeedError, TempoEstimationError
from beatgrid.analysis.evaluation import evaluate_file
from beatgrid.analysis.models import AnalysisResult, OnsetTimes, TempoCandidate, WindowedSeries
from beatgrid.analysis.onset import SHARPEN_KERNEL, OnsetMethod, detection_curve, normalize, sharpen
from beatgrid.analysis.peak_picking import onset_times, pick_peaks
from beatgrid.analysis.spectral import stft
from beatgrid.analysis.tempo import estimate_tempo
from beatgrid.audio.loader import load_audio
from beatgrid.config import OnsetMethodConfig, Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _config_label(config: OnsetMethodConfig, index: int) -> str:
    return f"{index}:{config.method.value}"


class AnalysisEngine:
    """Orchestrates the full analysis pipeline."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    def analyze_file(self, file_path: str | Path, evaluate: bool = True) -> AnalysisResult:
        """Analyze an audio file, scoring it against any ground truth beside it."""
        audio, sr = load_audio(file_path)
        result = self.analyze_audio(audio, sr)
        if evaluate:
            s = self.settings
            result.evaluation = evaluate_file(
                file_path,
                result.onsets,
                result.beats,
                result.tempo,
                onset_tolerance=s.onset_tolerance,
                beat_tolerance=s.beat_tolerance,
                tempo_deviation=s.tempo_deviation,
            )
        return result

    def analyze_audio(self, audio: np.ndarray, sr: int) -> AnalysisResult:
        """Analyze pre-loaded mono audio data."""
        s = self.settings
        duration = len(audio) / sr
        logger.info(f"Analyzing {duration:.1f}s of audio at {sr}Hz")

        logger.info("Step 1: Spectral transform")
        spectra = stft(audio, window_size=s.window_size, hop_size=s.hop_size)

        logger.info("Step 2: Onset detection")
        curves: dict[OnsetMethod, WindowedSeries] = {}
        picked: dict[str, OnsetTimes] = {}
        for index, config in enumerate(s.onset_methods):
            method = config.method
            if method not in curves:
                curves[method] = detection_curve(
                    spectra, method, sr, mel_bands=s.mel_bands, log_lambda=s.log_lambda,
                )
            curve = curves[method]
            if config.sharpen and len(curve) >= len(SHARPEN_KERNEL):
                curve = sharpen(curve)
            mask = pick_peaks(normalize(curve, s.normalization), config.peak_picker)
            label = _config_label(config, index)
            picked[label] = onset_times(mask, sr)
            logger.info(f"  {label}: {len(picked[label].times)} onsets")

        sources = [
            (config.quality, picked[_config_label(config, index)].times)
            for index, config in enumerate(s.onset_methods)
        ]
        combined = combine_onsets(s.ensemble_required_score, sources, tolerance=s.onset_tolerance)
        logger.info(f"  Ensemble: {len(combined)} onsets (required score {s.ensemble_required_score})")

        warnings: list[str] = []

        logger.info("Step 3: Tempo estimation")
        tempo_method = s.tempo_method
        if tempo_method not in curves:
            curves[tempo_method] = detection_curve(
                spectra, tempo_method, sr, mel_bands=s.mel_bands, log_lambda=s.log_lambda,
            )
        tempo: list[TempoCandidate] = []
        try:
            best, second = estimate_tempo(curves[tempo_method], sr, s.min_bpm, s.max_bpm)
            tempo = [best, second]
            logger.info(f"  Tempo: {best.bpm:.1f} BPM (second: {second.bpm:.1f} BPM)")
        except TempoEstimationError as e:
            logger.warning(f"  Tempo estimation failed: {e}")
            warnings.append(f"tempo: {e}")

        logger.info("Step 4: Beat tracking")
        beats: list[float] = []
        seed_onsets = self._seed_onsets(picked, tempo_method)
        if tempo and seed_onsets is not None:
            try:
                beats = track_beats(tempo[0].bpm, seed_onsets.times, seed_onsets.first_strong_peak)
                logger.info(f"  {len(beats)} beats")
            except NoSeedError as e:
                logger.warning(f"  Beat tracking skipped: {e}")
                warnings.append(f"beats: {e}")
        elif not tempo:
            warnings.append("beats: no tempo estimate")
        else:
            warnings.append(f"beats: no {tempo_method.value} onset configuration to seed from")

        return AnalysisResult(
            onsets=combined,
            beats=beats,
            tempo=tempo,
            duration=duration,
            method_onsets={label: o.times for label, o in picked.items()},
            warnings=warnings,
        )

    def _seed_onsets(self, picked: dict[str, OnsetTimes], tempo_method: OnsetMethod) -> OnsetTimes | None:
        """Onsets of the first configuration using the tempo curve's method."""
        for index, config in enumerate(self.settings.onset_methods):
            if config.method is tempo_method:
                return picked[_config_label(config, index)]
        return None
