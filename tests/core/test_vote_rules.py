"""Vote Rules — tests for input validation and the retraction window.

Tests cover:
    - Identifier shape checks (positive ints, bools rejected)
    - Voter key presence and length
    - Age group parsing
    - Retraction window boundary (exactly 24h is still open)
    - Voter key hashing never returns the raw key
"""

from datetime import datetime, timedelta, timezone

import pytest

from accentvote.core.domain_types import AgeGroup
from accentvote.core.errors import ValidationError
from accentvote.core.vote_rules import (
    MAX_VOTER_KEY_LENGTH, as_utc, hash_voter_key, parse_age_group,
    retraction_window_open, validate_identifiers, validate_vote_id,
    validate_voter_key,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ─── identifiers ─────────────────────────────────────────────────

def test_valid_identifiers_pass():
    validate_identifiers(1, 2, "voter-a")


@pytest.mark.parametrize("item_id", [0, -1, "1", 1.5, True, None])
def test_bad_item_id_rejected(item_id):
    with pytest.raises(ValidationError) as exc_info:
        validate_identifiers(item_id, 2, "voter-a")
    assert exc_info.value.field == "item_id"


def test_bad_category_id_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_identifiers(1, 0, "voter-a")
    assert exc_info.value.field == "category_id"


@pytest.mark.parametrize("voter_id", ["", "   ", None, 42])
def test_missing_voter_key_rejected(voter_id):
    with pytest.raises(ValidationError) as exc_info:
        validate_voter_key(voter_id)
    assert exc_info.value.field == "voter_id"


def test_overlong_voter_key_rejected():
    with pytest.raises(ValidationError):
        validate_voter_key("x" * (MAX_VOTER_KEY_LENGTH + 1))


def test_vote_id_must_be_positive():
    validate_vote_id(5)
    with pytest.raises(ValidationError):
        validate_vote_id(0)


# ─── age group ───────────────────────────────────────────────────

def test_parse_age_group_accepts_values():
    assert parse_age_group("70s+") is AgeGroup.SEVENTIES_PLUS
    assert parse_age_group(AgeGroup.TWENTIES) is AgeGroup.TWENTIES
    assert parse_age_group(None) is None


def test_parse_age_group_rejects_unknown():
    with pytest.raises(ValidationError) as exc_info:
        parse_age_group("5s")
    assert exc_info.value.field == "age_group"


# ─── retraction window ──────────────────────────────────────────

def test_window_open_just_after_submission():
    assert retraction_window_open(NOW, NOW + timedelta(minutes=1))


def test_window_open_at_exactly_24_hours():
    assert retraction_window_open(NOW, NOW + timedelta(hours=24))


def test_window_closed_after_24_hours():
    assert not retraction_window_open(NOW, NOW + timedelta(hours=24, seconds=1))


def test_window_handles_naive_timestamps_as_utc():
    naive = NOW.replace(tzinfo=None)
    assert retraction_window_open(naive, NOW + timedelta(hours=1))
    assert as_utc(naive) == NOW


def test_custom_window_length():
    assert not retraction_window_open(NOW, NOW + timedelta(hours=2), window_hours=1)


# ─── hashing ─────────────────────────────────────────────────────

def test_hash_voter_key_is_stable_and_opaque():
    digest = hash_voter_key("secret-voter")
    assert digest == hash_voter_key("secret-voter")
    assert "secret" not in digest
    assert len(digest) == 16
    assert digest != hash_voter_key("other-voter")
