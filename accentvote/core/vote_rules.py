"""Vote Rules — pure input validation and lifecycle checks for votes.

Invariants:
    - Every function is pure and deterministic (the clock is an argument)
    - Naive datetimes are treated as UTC (SQLite returns naive timestamps)
    - hash_voter_key is the only form of the voter key allowed in logs and errors
"""

import hashlib
from datetime import datetime, timedelta, timezone

from accentvote.core.domain_types import AgeGroup
from accentvote.core.errors import ErrorContext, ValidationError


RETRACTION_WINDOW_HOURS: int = 24
MAX_VOTER_KEY_LENGTH: int = 255


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def retraction_window_open(
    submitted_at: datetime, now: datetime,
    window_hours: int = RETRACTION_WINDOW_HOURS,
) -> bool:
    """True while now - submitted_at <= window."""
    return as_utc(now) - as_utc(submitted_at) <= timedelta(hours=window_hours)


def hash_voter_key(voter_id: str) -> str:
    """Short stable digest of the voter key for logs."""
    return hashlib.sha256(voter_id.encode("utf-8")).hexdigest()[:16]


def parse_age_group(
    value: str | AgeGroup | None, context: ErrorContext | None = None,
) -> AgeGroup | None:
    if value is None:
        return None
    try:
        return AgeGroup(value)
    except ValueError:
        allowed = ", ".join(a.value for a in AgeGroup)
        raise ValidationError(
            f"age_group must be one of: {allowed}", "age_group", context,
        ) from None


def validate_identifiers(
    item_id: object, category_id: object, voter_id: object,
    context: ErrorContext | None = None,
) -> None:
    """Shape checks that need no catalog lookup."""
    if not _is_positive_int(item_id):
        raise ValidationError("item_id must be a positive integer", "item_id", context)
    if not _is_positive_int(category_id):
        raise ValidationError(
            "category_id must be a positive integer", "category_id", context,
        )
    validate_voter_key(voter_id, context)


def validate_voter_key(voter_id: object, context: ErrorContext | None = None) -> None:
    if not isinstance(voter_id, str) or not voter_id.strip():
        raise ValidationError("voter key is required", "voter_id", context)
    if len(voter_id) > MAX_VOTER_KEY_LENGTH:
        raise ValidationError("voter key is too long", "voter_id", context)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_vote_id(vote_id: object, context: ErrorContext | None = None) -> None:
    if not _is_positive_int(vote_id):
        raise ValidationError("vote_id must be a positive integer", "vote_id", context)
