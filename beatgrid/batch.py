"""Folder processing with a bounded worker pool.

Each file runs through its own AnalysisEngine pipeline; files share no state
apart from the progress counters and the result maps, which are only touched
under a lock.
"""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from tqdm import tqdm

from beatgrid.analysis.engine import AnalysisEngine
from beatgrid.analysis.errors import BeatgridError
from beatgrid.analysis.models import AnalysisResult, FMeasure
from beatgrid.config import Settings, settings as default_settings
from beatgrid.schemas import BatchResponse, MetricSummary, SummaryResponse, file_response

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".wav"}


@dataclass
class BatchResult:
    """Results of a folder run keyed by file name."""
    results: dict[str, AnalysisResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    processed: int = 0
    completed: int = 0


def find_audio_files(directory: str | Path) -> list[Path]:
    """All audio files directly inside ``directory``, sorted by name."""
    directory = Path(directory)
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS)


def run_batch(
    files: Iterable[str | Path],
    settings: Settings | None = None,
    max_workers: int | None = None,
    progress: bool = True,
) -> BatchResult:
    """Analyze files concurrently and collect their results.

    A file whose analysis raises BeatgridError is logged and recorded under
    ``errors``; the other files are unaffected.
    """
    settings = settings or default_settings
    files = [Path(f) for f in files]
    workers = max_workers or settings.max_workers
    batch = BatchResult()
    lock = threading.Lock()

    def _analyze(path: Path) -> AnalysisResult:
        with lock:
            batch.processed += 1
        engine = AnalysisEngine(settings=settings)
        return engine.analyze_file(path)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_analyze, path): path for path in files}
        for future in tqdm(as_completed(futures), total=len(futures), desc="Analyzing", disable=not progress):
            path = futures[future]
            try:
                result = future.result()
            except BeatgridError as e:
                logger.error(f"{path.name}: {e}")
                with lock:
                    batch.errors[path.name] = str(e)
                continue
            with lock:
                batch.results[path.name] = result
                batch.completed += 1

    logger.info(f"Batch done: {batch.completed}/{len(files)} files analyzed, {len(batch.errors)} failed")
    return batch


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _summarize_metric(measures: list[FMeasure | None]) -> MetricSummary:
    """Mean scores over files with ground truth; files without it are skipped."""
    present = [m for m in measures if m is not None]
    return MetricSummary(
        files=len(present),
        precision=_mean([m.precision for m in present if m.precision is not None]),
        recall=_mean([m.recall for m in present if m.recall is not None]),
        f_measure=_mean([m.f_measure for m in present if m.f_measure is not None]),
    )


def summarize(results: dict[str, AnalysisResult]) -> SummaryResponse:
    evaluations = [r.evaluation for r in results.values() if r.evaluation is not None]
    tempo = [e.tempo_correct for e in evaluations if e.tempo_correct is not None]
    return SummaryResponse(
        onsets=_summarize_metric([e.onsets for e in evaluations]),
        beats=_summarize_metric([e.beats for e in evaluations]),
        tempo_files=len(tempo),
        tempo_accuracy=_mean([1.0 if ok else 0.0 for ok in tempo]),
    )


def to_document(batch: BatchResult) -> BatchResponse:
    """Build the serializable result document for a batch."""
    return BatchResponse(
        files={name: file_response(r) for name, r in sorted(batch.results.items())},
        errors=dict(sorted(batch.errors.items())),
        summary=summarize(batch.results),
    )


def write_document(batch: BatchResult, out_path: str | Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(to_document(batch).model_dump_json(indent=2))
    logger.info(f"Results written to {out_path}")
    return out_path
