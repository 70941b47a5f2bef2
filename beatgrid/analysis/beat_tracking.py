"""Greedy beat tracking from a tempo estimate and onset times."""

import logging
from collections.abc import Sequence

from beatgrid.analysis.errors import NoSeedError

logger = logging.getLogger(__name__)

# An onset further than this many beat periods after the last beat cannot be
# the next beat; a synthetic beat is placed one period later instead.
GAP_FACTOR = 1.3


def track_beats(
    bpm: float,
    onset_times: Sequence[float],
    first_beat_index: int | None,
) -> list[float]:
    """Walk forward through the onsets picking one beat per beat period.

    The onset at ``first_beat_index`` is the first beat. At each step the two
    next onsets are compared with the ideal next beat (last beat plus one
    period) and the closer one is taken. When the second onset wins, the first
    is discarded as spurious and the walk continues after the second. If the next
    onset is more than 1.3 periods away, a synthetic beat is inserted first.
    With a single onset left it is taken after the same gap check.
    """
    if first_beat_index is None or not 0 <= first_beat_index < len(onset_times):
        raise NoSeedError(f"no usable first beat (index={first_beat_index}, onsets={len(onset_times)})")
    if bpm <= 0:
        raise ValueError(f"bpm must be positive, got {bpm}")

    beat_period = 60.0 / bpm
    last_beat = float(onset_times[first_beat_index])
    beats = [last_beat]
    synthetic = 0

    i = first_beat_index + 1
    while i < len(onset_times):
        next1 = float(onset_times[i])

        if next1 - last_beat > GAP_FACTOR * beat_period:
            last_beat += beat_period
            beats.append(last_beat)
            synthetic += 1

        if i + 1 == len(onset_times):
            beats.append(next1)
            break

        next2 = float(onset_times[i + 1])
        ideal = last_beat + beat_period
        if abs(ideal - next1) < abs(ideal - next2):
            beats.append(next1)
            last_beat = next1
        else:
            beats.append(next2)
            last_beat = next2
            i += 1
        i += 1

    logger.debug(f"Tracked {len(beats)} beats ({synthetic} synthetic) at {bpm:.1f} BPM")
    return beats
