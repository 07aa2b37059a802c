from __future__ import annotations
from datetime import date
import itertools

import pytest

from fitleague.errors import InvalidTransition, ValidationError
from fitleague.services.status import (
    ChallengeStatus,
    derive_league_status,
    derive_status,
    ensure_closable,
    ensure_publishable,
    ensure_reviewable,
    UnknownStatus,
    ensure_team_scores_editable,
    normalize_status,
)

START = date(2024, 6, 1)
END = date(2024, 6, 7)


@pytest.mark.parametrize("stored", ["draft", "published", "closed"])
@pytest.mark.parametrize("today", [date(2024, 5, 1), START, END, date(2024, 7, 1)])
def test_explicit_statuses_survive_any_date(stored, today):
    """draft/published/closed are never overridden by the calendar"""
    assert derive_status(stored, START, END, today).value == stored


@pytest.mark.parametrize("today,expected", [
    (date(2024, 5, 31), ChallengeStatus.SCHEDULED),
    (START, ChallengeStatus.ACTIVE),
    (date(2024, 6, 4), ChallengeStatus.ACTIVE),
    (END, ChallengeStatus.ACTIVE),
    (date(2024, 6, 8), ChallengeStatus.SUBMISSION_CLOSED),
])
def test_date_driven_statuses(today, expected):
    assert derive_status("active", START, END, today) == expected
    assert derive_status("scheduled", START, END, today) == expected


def test_missing_dates_fall_back_to_stored():
    assert derive_status("active", None, None, date(2030, 1, 1)) == ChallengeStatus.ACTIVE
    assert derive_status("scheduled", START, None, date(2030, 1, 1)) == ChallengeStatus.SCHEDULED
    assert derive_status("active", None, END, date(2024, 6, 5)) == ChallengeStatus.ACTIVE


def test_only_end_date_passed_forces_submission_closed():
    assert derive_status("active", None, END, date(2024, 6, 8)) == ChallengeStatus.SUBMISSION_CLOSED


def test_normalize_handles_legacy_and_empty_values():
    assert normalize_status(None) == ChallengeStatus.DRAFT
    assert normalize_status("") == ChallengeStatus.DRAFT
    assert normalize_status("upcoming") == ChallengeStatus.SCHEDULED
    with pytest.raises(UnknownStatus):
        normalize_status("bogus")


def test_derivation_is_total():
    """Every combination yields exactly one of the six statuses"""
    dates = [None, date(2024, 6, 1), date(2024, 6, 7)]
    todays = [date(2024, 5, 1), date(2024, 6, 3), date(2024, 6, 30)]
    for stored, s, e, t in itertools.product(list(ChallengeStatus), dates, dates, todays):
        assert derive_status(stored, s, e, t) in set(ChallengeStatus)


@pytest.mark.parametrize("status", [
    ChallengeStatus.DRAFT, ChallengeStatus.SCHEDULED, ChallengeStatus.ACTIVE,
])
def test_review_before_close_is_rejected(status):
    with pytest.raises(InvalidTransition) as exc:
        ensure_reviewable(status)
    assert exc.value.message == "Reviews are allowed only after submissions close."


@pytest.mark.parametrize("status", [ChallengeStatus.PUBLISHED, ChallengeStatus.CLOSED])
def test_review_after_publish_is_locked(status):
    with pytest.raises(InvalidTransition) as exc:
        ensure_reviewable(status)
    assert "Reviews are locked" in exc.value.message


def test_review_allowed_when_submissions_closed():
    ensure_reviewable(ChallengeStatus.SUBMISSION_CLOSED)


def test_publish_gate_with_pending_submissions():
    with pytest.raises(InvalidTransition) as exc:
        ensure_publishable(ChallengeStatus.SUBMISSION_CLOSED, 1)
    assert "Review all pending submissions" in exc.value.message
    ensure_publishable(ChallengeStatus.SUBMISSION_CLOSED, 0)


def test_publish_twice_or_early_fails():
    with pytest.raises(InvalidTransition):
        ensure_publishable(ChallengeStatus.PUBLISHED, 0)
    with pytest.raises(InvalidTransition):
        ensure_publishable(ChallengeStatus.ACTIVE, 0)


def test_close_only_from_published():
    ensure_closable(ChallengeStatus.PUBLISHED)
    for st in (ChallengeStatus.SUBMISSION_CLOSED, ChallengeStatus.ACTIVE, ChallengeStatus.CLOSED):
        with pytest.raises(InvalidTransition):
            ensure_closable(st)


def test_team_score_gate():
    ensure_team_scores_editable(ChallengeStatus.SUBMISSION_CLOSED, "team")
    ensure_team_scores_editable(ChallengeStatus.ACTIVE, "tournament")
    with pytest.raises(InvalidTransition):
        ensure_team_scores_editable(ChallengeStatus.ACTIVE, "team")
    with pytest.raises(InvalidTransition):
        ensure_team_scores_editable(ChallengeStatus.PUBLISHED, "tournament")
    with pytest.raises(ValidationError):
        ensure_team_scores_editable(ChallengeStatus.SUBMISSION_CLOSED, "individual")


def test_league_completion_is_derived_from_end_date():
    assert derive_league_status("active", date(2024, 6, 30), date(2024, 7, 1)) == "completed"
    assert derive_league_status("active", date(2024, 6, 30), date(2024, 6, 30)) == "active"
    assert derive_league_status("completed", date(2030, 1, 1), date(2024, 1, 1)) == "completed"
    assert derive_league_status(None, None, date(2024, 1, 1)) == "draft"
