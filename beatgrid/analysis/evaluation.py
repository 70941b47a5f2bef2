"""Scoring of detected onsets, beats and tempo against ground-truth files.

Ground truth lives next to the audio file and shares its stem::

    song.wav
    song.onsets.gt   one onset time (seconds) per line
    song.beats.gt    beat time as the first whitespace-separated token per line
    song.tempo.gt    BPM values, the first one is used
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from beatgrid.analysis.errors import GroundTruthError
from beatgrid.analysis.models import FileEvaluation, FMeasure, TempoCandidate

logger = logging.getLogger(__name__)

ONSET_SUFFIX = ".onsets.gt"
BEAT_SUFFIX = ".beats.gt"
TEMPO_SUFFIX = ".tempo.gt"


def ground_truth_path(audio_path: str | Path, suffix: str) -> Path:
    audio_path = Path(audio_path)
    return audio_path.with_name(audio_path.stem + suffix)


def load_ground_truth(path: str | Path, first_token: bool = False) -> list[float] | None:
    """Read one number per line; None if the file does not exist.

    With ``first_token`` only the first whitespace-separated token of each
    line is parsed. Blank lines are skipped; any other unparsable line, or a
    file that cannot be read as UTF-8 text, raises GroundTruthError for the
    whole file.
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            lines = f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise GroundTruthError(path, reason=f"cannot read file: {e}") from e

    values = []
    for line_number, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        token = text.split()[0] if first_token else text
        try:
            values.append(float(token))
        except ValueError:
            raise GroundTruthError(path, line_number, text) from None
    return values


def _ratio(num: int, den: int) -> float | None:
    return num / den if den > 0 else None


def f_measure(found: Sequence[float], truth: Sequence[float], tolerance: float) -> FMeasure:
    """Match found times to ground truth within ``+-tolerance`` seconds.

    Both lists are walked in time order and every match consumes one entry
    of each. Unmatched found times are false positives, unmatched ground-truth
    times false negatives.
    """
    i_found = 0
    i_truth = 0
    tp = fp = fn = 0

    while i_found < len(found) and i_truth < len(truth):
        t_found = found[i_found]
        t_truth = truth[i_truth]
        if t_truth - tolerance <= t_found <= t_truth + tolerance:
            tp += 1
            i_found += 1
            i_truth += 1
        elif t_found < t_truth - tolerance:
            fp += 1
            i_found += 1
        else:
            fn += 1
            i_truth += 1

    fp += len(found) - i_found
    fn += len(truth) - i_truth

    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)
    if precision is None or recall is None:
        f = None
    elif precision + recall == 0:
        f = 0.0
    else:
        f = 2 * precision * recall / (precision + recall)

    return FMeasure(
        true_positives=tp,
        false_positives=fp,
        false_negatives=fn,
        precision=precision,
        recall=recall,
        f_measure=f,
    )


def tempo_correct(candidates: Sequence[TempoCandidate], truth_bpm: float, deviation: float = 0.08) -> bool:
    """True if any candidate lies within ``+-deviation`` (relative) of the true BPM."""
    return any(abs(c.bpm - truth_bpm) <= deviation * truth_bpm for c in candidates)


def evaluate_file(
    audio_path: str | Path,
    onsets: Sequence[float],
    beats: Sequence[float],
    tempo: Sequence[TempoCandidate],
    onset_tolerance: float = 0.05,
    beat_tolerance: float = 0.07,
    tempo_deviation: float = 0.08,
) -> FileEvaluation:
    """Score one file's results against whichever ground-truth files exist."""
    evaluation = FileEvaluation()

    gt_onsets = load_ground_truth(ground_truth_path(audio_path, ONSET_SUFFIX))
    if gt_onsets is not None:
        if not onsets and gt_onsets:
            logger.warning(f"{Path(audio_path).name}: no onsets found, {len(gt_onsets)} expected")
        evaluation.onsets = f_measure(onsets, gt_onsets, onset_tolerance)

    gt_beats = load_ground_truth(ground_truth_path(audio_path, BEAT_SUFFIX), first_token=True)
    if gt_beats is not None:
        if not beats and gt_beats:
            logger.warning(f"{Path(audio_path).name}: no beats found, {len(gt_beats)} expected")
        evaluation.beats = f_measure(beats, gt_beats, beat_tolerance)

    gt_tempo = load_ground_truth(ground_truth_path(audio_path, TEMPO_SUFFIX), first_token=True)
    if gt_tempo:
        evaluation.tempo_correct = tempo_correct(tempo, gt_tempo[0], tempo_deviation)

    return evaluation
