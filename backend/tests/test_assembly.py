from __future__ import annotations

import itertools

from domain.assembly import assemble, failed_indices
from domain.models import TranscriptionOutcome


def _ok(index: int, text: str) -> TranscriptionOutcome:
    return TranscriptionOutcome.success(index, text)


def _failed(index: int) -> TranscriptionOutcome:
    return TranscriptionOutcome.failure(index, "timeout")


def test_assemble_concatenates_in_index_order_without_separator():
    outcomes = {2: _ok(2, " three"), 0: _ok(0, "one"), 1: _ok(1, " two")}
    assert assemble(outcomes, 3) == "one two three"


def test_assemble_is_independent_of_insertion_order():
    items = [_ok(0, "a"), _ok(1, "b"), _ok(2, "c"), _ok(3, "d")]
    results = {
        assemble({o.index: o for o in perm}, 4)
        for perm in itertools.permutations(items)
    }
    assert results == {"abcd"}


def test_assemble_skips_single_failed_segment_without_gap_marker():
    outcomes = {0: _ok(0, "first "), 1: _failed(1), 2: _ok(2, "third")}
    assert assemble(outcomes, 3) == "first third"
    assert failed_indices(outcomes, 3) == [1]


def test_assemble_all_failed_is_empty_string():
    outcomes = {i: _failed(i) for i in range(4)}
    assert assemble(outcomes, 4) == ""
    assert failed_indices(outcomes, 4) == [0, 1, 2, 3]


def test_missing_slots_count_as_failed():
    outcomes = {0: _ok(0, "x")}
    assert assemble(outcomes, 3) == "x"
    assert failed_indices(outcomes, 3) == [1, 2]


def test_empty_text_is_a_success_not_a_failure():
    silent = _ok(0, "")
    assert silent.succeeded
    assert not _failed(0).succeeded
    assert failed_indices({0: silent}, 1) == []
    assert assemble({0: silent}, 1) == ""
