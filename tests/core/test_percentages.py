"""Percentage Engine — tests for pure delta application and renormalization.

Tests cover:
    - apply_delta clamps at zero
    - rows are created only for positive deltas
    - renormalize sums to 100, or is all zero for an empty scope
"""

import pytest

from accentvote.core.percentages import (
    apply_delta, renormalize, share, should_create_row,
)


def test_apply_delta_adds():
    assert apply_delta(3, 1) == 4


def test_apply_delta_clamps_at_zero():
    assert apply_delta(0, -1) == 0
    assert apply_delta(2, -5) == 0


def test_should_create_row_only_for_positive_delta():
    assert should_create_row(1)
    assert not should_create_row(0)
    assert not should_create_row(-1)


def test_renormalize_seventy_thirty():
    total, pct = renormalize({10: 7, 20: 3})
    assert total == 10
    assert pct == {10: pytest.approx(70.0), 20: pytest.approx(30.0)}


def test_renormalize_sums_to_100():
    _, pct = renormalize({1: 1, 2: 1, 3: 1})
    assert sum(pct.values()) == pytest.approx(100.0)


def test_renormalize_empty_scope_is_all_zero():
    total, pct = renormalize({10: 0, 20: 0})
    assert total == 0
    assert pct == {10: 0.0, 20: 0.0}


def test_renormalize_does_not_mutate_input():
    counts = {10: 1}
    renormalize(counts)
    assert counts == {10: 1}


def test_share_of_empty_whole_is_zero():
    assert share(5, 0) == 0.0
    assert share(1, 4) == pytest.approx(25.0)
