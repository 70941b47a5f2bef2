"""Pydantic models for the JSON result document."""

from pydantic import BaseModel

from beatgrid.analysis.models import AnalysisResult, FMeasure


class FMeasureResponse(BaseModel):
    true_positives: int
    false_positives: int
    false_negatives: int
    precision: float | None = None
    recall: float | None = None
    f_measure: float | None = None


class EvaluationResponse(BaseModel):
    onsets: FMeasureResponse | None = None
    beats: FMeasureResponse | None = None
    tempo_correct: bool | None = None


class FileResponse(BaseModel):
    onsets: list[float]
    beats: list[float]
    tempo: list[float]  # candidate BPMs, ascending
    duration: float = 0.0
    warnings: list[str] = []
    evaluation: EvaluationResponse | None = None


class MetricSummary(BaseModel):
    files: int = 0
    precision: float | None = None
    recall: float | None = None
    f_measure: float | None = None


class SummaryResponse(BaseModel):
    onsets: MetricSummary = MetricSummary()
    beats: MetricSummary = MetricSummary()
    tempo_files: int = 0
    tempo_accuracy: float | None = None


class BatchResponse(BaseModel):
    files: dict[str, FileResponse]
    errors: dict[str, str] = {}
    summary: SummaryResponse = SummaryResponse()


def _fmeasure_response(m: FMeasure | None) -> FMeasureResponse | None:
    if m is None:
        return None
    return FMeasureResponse(
        true_positives=m.true_positives,
        false_positives=m.false_positives,
        false_negatives=m.false_negatives,
        precision=m.precision,
        recall=m.recall,
        f_measure=m.f_measure,
    )


def file_response(result: AnalysisResult) -> FileResponse:
    evaluation = None
    if result.evaluation is not None:
        evaluation = EvaluationResponse(
            onsets=_fmeasure_response(result.evaluation.onsets),
            beats=_fmeasure_response(result.evaluation.beats),
            tempo_correct=result.evaluation.tempo_correct,
        )
    return FileResponse(
        onsets=result.onsets,
        beats=result.beats,
        tempo=result.tempo_bpms,
        duration=result.duration,
        warnings=result.warnings,
        evaluation=evaluation,
    )
