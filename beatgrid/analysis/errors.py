"""Exceptions raised by the analysis pipeline."""


class BeatgridError(Exception):
    """Base exception for all beatgrid errors."""


class AudioLoadError(BeatgridError):
    """Audio file could not be decoded."""


class EmptySignalError(BeatgridError):
    """Signal has no samples to analyze."""


class NoSeedError(BeatgridError):
    """No onset is stronger than its successor, so beat tracking has no seed."""


class TempoEstimationError(BeatgridError):
    """Autocorrelation of the detection curve is degenerate."""


class GroundTruthError(BeatgridError):
    """A ground-truth file cannot be read or contains a line that is not a number."""

    def __init__(self, path, line_number: int | None = None, line: str | None = None, reason: str | None = None):
        self.path = path
        self.line_number = line_number
        self.line = line
        if reason is None:
            reason = f"cannot parse {line!r} as a number"
        where = f"{path}:{line_number}" if line_number is not None else f"{path}"
        super().__init__(f"{where}: {reason}")
