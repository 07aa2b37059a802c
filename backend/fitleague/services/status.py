"""
Challenge and league lifecycle.

Every endpoint that gates an action on the challenge lifecycle goes through
``derive_status``; nothing else compares challenge dates against "today".
"""
from __future__ import annotations
from datetime import date, datetime
from enum import Enum

from fitleague.errors import InvalidTransition, ValidationError


class ChallengeStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    SUBMISSION_CLOSED = "submission_closed"
    PUBLISHED = "published"
    CLOSED = "closed"


# Set by a human; date arithmetic never overrides these.
EXPLICIT_STATUSES = frozenset({ChallengeStatus.DRAFT, ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED})

# Challenges whose points are released to the league boards.
SCORING_STATUSES = frozenset({ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED})

_LEGACY_ALIASES = {"upcoming": ChallengeStatus.SCHEDULED}


class UnknownStatus(ValueError):
    pass


def normalize_status(raw: str | ChallengeStatus | None) -> ChallengeStatus:
    """Map a stored status string onto the enum. Unknown values are an error, not a silent draft."""
    if raw is None or raw == "":
        return ChallengeStatus.DRAFT
    if isinstance(raw, ChallengeStatus):
        return raw
    if raw in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[raw]
    try:
        return ChallengeStatus(raw)
    except ValueError:
        raise UnknownStatus(f"Unknown challenge status {raw!r}")


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def derive_status(
    stored: str | ChallengeStatus | None,
    start_date: date | datetime | None,
    end_date: date | datetime | None,
    today: date | datetime,
) -> ChallengeStatus:
    """
    Effective challenge status from the stored status and the schedule.

    ``today`` is the caller's local calendar day; only the date part of any
    datetime is compared.

    >>> from datetime import date
    >>> derive_status("active", date(2024, 6, 1), date(2024, 6, 7), date(2024, 6, 8)).value
    'submission_closed'
    >>> derive_status("published", date(2024, 6, 1), date(2024, 6, 7), date(2024, 6, 3)).value
    'published'
    """
    status = normalize_status(stored)
    if status in EXPLICIT_STATUSES:
        return status

    today = _as_date(today)
    start = _as_date(start_date)
    end = _as_date(end_date)

    if start is not None and end is not None:
        if today < start:
            return ChallengeStatus.SCHEDULED
        if today <= end:
            return ChallengeStatus.ACTIVE
        return ChallengeStatus.SUBMISSION_CLOSED
    if end is not None and today > end:
        return ChallengeStatus.SUBMISSION_CLOSED
    return status


# ---------- gates ----------

def ensure_reviewable(effective: ChallengeStatus) -> None:
    """Submissions may be approved/rejected only once submissions have closed."""
    if effective in (ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED):
        raise InvalidTransition("Challenge is closed and scores are published. Reviews are locked.")
    if effective != ChallengeStatus.SUBMISSION_CLOSED:
        raise InvalidTransition("Reviews are allowed only after submissions close.")


def ensure_publishable(effective: ChallengeStatus, pending_count: int) -> None:
    if effective in (ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED):
        raise InvalidTransition("Challenge scores are already published")
    if effective != ChallengeStatus.SUBMISSION_CLOSED:
        raise InvalidTransition("Publishing is allowed only after submissions have closed")
    if pending_count > 0:
        raise InvalidTransition(f"Review all pending submissions before publishing ({pending_count} pending)")


def ensure_closable(effective: ChallengeStatus) -> None:
    if effective == ChallengeStatus.CLOSED:
        raise InvalidTransition("Challenge is already closed")
    if effective != ChallengeStatus.PUBLISHED:
        raise InvalidTransition("Challenge must be published before it can be closed")


def ensure_team_scores_editable(effective: ChallengeStatus, challenge_type: str) -> None:
    """Manual team scores: team challenges once submissions close; tournaments until published."""
    if challenge_type not in ("team", "tournament"):
        raise ValidationError("Team scores apply only to team and tournament challenges")
    if effective in (ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED):
        raise InvalidTransition("Challenge is closed and scores are published. Scores are locked.")
    if challenge_type == "team" and effective != ChallengeStatus.SUBMISSION_CLOSED:
        raise InvalidTransition("Team scores can be assigned only after submissions close.")


# ---------- league ----------

LEAGUE_COMPLETED = "completed"


def derive_league_status(stored: str | None, end_date: date | None, today: date) -> str:
    """A league is over once its last day has passed, whether or not the store says so yet."""
    if stored == LEAGUE_COMPLETED:
        return LEAGUE_COMPLETED
    if end_date is not None and today > end_date:
        return LEAGUE_COMPLETED
    return stored or "draft"

