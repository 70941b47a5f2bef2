"""Tests for onset ensemble combination."""

import pytest

from beatgrid.analysis.ensemble import combine_onsets


def test_single_source_with_itself_is_reproduced():
    onsets = [0.1, 0.5, 0.92, 1.4, 2.0]
    combined = combine_onsets(1.5, [(1.0, onsets), (1.0, onsets)])
    assert combined == pytest.approx(onsets)


def test_close_onsets_are_deduplicated_to_the_anchor():
    onsets = [0.10, 0.13, 0.50]
    combined = combine_onsets(0.5, [(1.0, onsets)])
    assert combined == pytest.approx([0.10, 0.50])


def test_unanimous_vote_required():
    lfsf = [0.50, 1.00, 1.50]
    sd = [0.52, 1.30, 1.51]
    hfc = [0.49, 1.02, 1.52]
    combined = combine_onsets(1.0, [(0.6, lfsf), (0.3, sd), (0.2, hfc)])
    # 1.00 lacks the sd vote (0.8 <= 1.0); 1.30 only has sd
    assert combined == pytest.approx([0.49, 1.50])


def test_score_must_strictly_exceed_requirement():
    assert combine_onsets(1.0, [(0.5, [1.0]), (0.5, [1.01])]) == []
    assert combine_onsets(0.99, [(0.5, [1.0]), (0.5, [1.01])]) == pytest.approx([1.0])


def test_cluster_is_measured_from_anchor_not_chained():
    # 0.00 -> 0.04 is within 50 ms of the anchor, 0.08 is not
    combined = combine_onsets(0.5, [(1.0, [0.00, 0.04, 0.08])])
    assert combined == pytest.approx([0.00, 0.08])


def test_custom_tolerance():
    combined = combine_onsets(0.5, [(1.0, [0.00, 0.04, 0.08])], tolerance=0.1)
    assert combined == pytest.approx([0.00])


def test_unsorted_sources():
    combined = combine_onsets(1.5, [(1.0, [2.0, 1.0]), (1.0, [1.01, 2.02])])
    assert combined == pytest.approx([1.0, 2.0])


def test_empty_sources():
    assert combine_onsets(1.0, []) == []
    assert combine_onsets(1.0, [(1.0, []), (0.5, [])]) == []
