"""Core data models for onset, tempo and beat analysis."""

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class WindowedSeries:
    """Per-frame values tagged with the analysis window and hop size.

    Frame ``i`` starts at sample ``i * hop_size``. ``data`` is indexed by frame
    along its first axis (spectra are 2-D, detection curves and masks 1-D).
    """
    data: np.ndarray
    window_size: int
    hop_size: int

    def __len__(self) -> int:
        return len(self.data)

    def with_data(self, data: np.ndarray) -> "WindowedSeries":
        """Same window/hop tagging, new frame values."""
        return WindowedSeries(data=np.asarray(data), window_size=self.window_size, hop_size=self.hop_size)

    def map(self, func) -> "WindowedSeries":
        return self.with_data(func(self.data))


@dataclass(frozen=True)
class PeakMask:
    """Boolean onset mask plus the seed for beat tracking.

    ``first_strong_peak`` counts peaks only (not frames): it is the position of
    the first peak whose curve value exceeds that of the next peak, or None.
    """
    peaks: WindowedSeries
    first_strong_peak: int | None = None

    @property
    def indices(self) -> np.ndarray:
        return np.flatnonzero(self.peaks.data)


@dataclass
class OnsetTimes:
    """Onset times in seconds derived from a peak mask."""
    times: list[float]
    first_strong_peak: int | None = None


@dataclass(frozen=True)
class TempoCandidate:
    """A tempo hypothesis from the autocorrelation lag search."""
    lag: int  # frames
    bpm: float


@dataclass
class FMeasure:
    """Precision/recall scores; None where the metric is undefined."""
    true_positives: int
    false_positives: int
    false_negatives: int
    precision: float | None
    recall: float | None
    f_measure: float | None


@dataclass
class FileEvaluation:
    """Comparison of one file's results against its ground truth.

    Each part is None when the corresponding ground-truth file is missing.
    """
    onsets: FMeasure | None = None
    beats: FMeasure | None = None
    tempo_correct: bool | None = None


@dataclass
class AnalysisResult:
    """Complete analysis result for one audio file."""
    onsets: list[float]
    beats: list[float]
    tempo: list[TempoCandidate]
    duration: float = 0.0
    method_onsets: dict[str, list[float]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    evaluation: FileEvaluation | None = None

    @property
    def tempo_bpms(self) -> list[float]:
        """Candidate BPMs sorted ascending."""
        return sorted(c.bpm for c in self.tempo)
