"""Application configuration."""

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

from beatgrid.analysis.onset import OnsetMethod


class PeakPickerParams(BaseModel):
    """Adaptive peak-picking parameters (all window sizes in frames)."""

    local_window_max: int = Field(default=3, ge=0)
    local_window_mean: int = Field(default=6, ge=0)
    delta: float = 0.05
    minimum_distance: int = Field(default=3, ge=0)


class OnsetMethodConfig(BaseModel):
    """One onset-detection configuration taking part in the ensemble vote."""

    method: OnsetMethod
    quality: float = 1.0  # weight of this configuration's onsets in the vote
    sharpen: bool = False
    peak_picker: PeakPickerParams = Field(default_factory=PeakPickerParams)


def _default_onset_methods() -> list[OnsetMethodConfig]:
    return [
        OnsetMethodConfig(
            method=OnsetMethod.LFSF,
            quality=0.6,
            peak_picker=PeakPickerParams(local_window_max=3, local_window_mean=6, delta=0.05, minimum_distance=3),
        ),
        OnsetMethodConfig(
            method=OnsetMethod.SPECTRAL_DIFFERENCE,
            quality=0.3,
            peak_picker=PeakPickerParams(local_window_max=2, local_window_mean=8, delta=0.04, minimum_distance=3),
        ),
        OnsetMethodConfig(
            method=OnsetMethod.HFC,
            quality=0.2,
            sharpen=True,
            peak_picker=PeakPickerParams(local_window_max=2, local_window_mean=8, delta=0.06, minimum_distance=3),
        ),
    ]


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Spectral transform
    window_size: int = Field(default=2048, gt=0)
    hop_size: int = Field(default=441, gt=0)  # 10 ms at 44.1 kHz

    # Onset detection
    mel_bands: int = Field(default=128, gt=0)
    log_lambda: float = 0.7
    normalization: str = "minmax"  # "minmax" | "meanmax"
    onset_methods: list[OnsetMethodConfig] = Field(default_factory=_default_onset_methods)
    ensemble_required_score: float = 1.0

    # Tempo / beats
    min_bpm: float = 60.0
    max_bpm: float = 200.0
    tempo_method: OnsetMethod = OnsetMethod.LFSF  # detection curve fed into the autocorrelation

    # Evaluation
    onset_tolerance: float = 0.05
    beat_tolerance: float = 0.07
    tempo_deviation: float = 0.08

    # Batch
    max_workers: int = Field(default=4, gt=0)

    model_config = {"env_prefix": "BEATGRID_", "env_nested_delimiter": "__"}

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.hop_size > self.window_size:
            raise ValueError(f"hop_size ({self.hop_size}) must not exceed window_size ({self.window_size})")
        if not 0 < self.min_bpm < self.max_bpm:
            raise ValueError(f"invalid BPM range {self.min_bpm}-{self.max_bpm}")
        if self.normalization not in ("minmax", "meanmax"):
            raise ValueError(f"unknown normalization: {self.normalization}")
        return self


settings = Settings()
