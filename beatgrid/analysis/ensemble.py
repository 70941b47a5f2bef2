"""Combine onsets from several detection configurations by weighted vote."""

import logging
from collections.abc import Sequence

logger = logging.getLogger(__name__)


def combine_onsets(
    required_score: float,
    sources: Sequence[tuple[float, Sequence[float]]],
    tolerance: float = 0.05,
) -> list[float]:
    """Merge onset lists into one, keeping onsets enough sources agree on.

    ``sources`` holds ``(quality, onset_times)`` pairs. All onsets are sorted
    by time and swept left to right: each cluster is anchored at the first
    unconsumed onset and absorbs every later onset within ``tolerance``
    seconds of the anchor. The anchor time is kept when the summed quality of
    the cluster is strictly greater than ``required_score``.
    """
    scored = sorted(
        ((float(t), float(quality)) for quality, times in sources for t in times),
        key=lambda pair: pair[0],
    )

    combined = []
    i = 0
    while i < len(scored):
        anchor = scored[i][0]
        score = 0.0
        while i < len(scored) and scored[i][0] - anchor <= tolerance:
            score += scored[i][1]
            i += 1
        if score > required_score:
            combined.append(anchor)

    logger.debug(f"Ensemble: {len(scored)} candidate onsets -> {len(combined)} combined")
    return combined
