"""
cases.workflow.engine — The single gateway through the case state machine.

``TransitionEngine.apply(case, action, actor, payload)`` runs, in order:

  1. Terminal lock    — a terminal case admits no action at all.
  2. Policy           — ``policy.authorize``; a relationship denial is
                        reported as DENIED, a status-guard denial as
                        INVALID (it is a state conflict, not a rights
                        problem).
  3. Transition table — ``(status, action)`` must be present.
  4. Payload          — action-specific shape checks.
  5. Apply            — build a new ``CaseRecord`` with the target status,
                        the action's side-effect fields and a fresh
                        ``updated_at``.

Expected rejections are returned as ``TransitionResult`` values, never
raised.  The input record is frozen, so a rejected call cannot leave a
half-mutated case behind and may be retried with the same inputs.
Persisting the returned record is the caller's job.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from django.db import models
from django.utils import timezone

from .config import CaseAction, CompletionOutcome, MeetingStatus, config_for
from .policy import DenyReason, authorize
from .records import Actor, CaseRecord, FeedbackRecord, MeetingRecord

INVALID_TRANSITION = "invalid_transition"
VALIDATION_ERROR = "validation_error"


class Outcome(models.TextChoices):
    APPLIED = "applied", "Applied"
    DENIED = "denied", "Denied"
    INVALID = "invalid", "Invalid"


@dataclass(frozen=True)
class TransitionResult:
    outcome: str
    action: str
    case: CaseRecord
    previous_status: str
    reason: str | None = None
    detail: str = ""
    errors: Mapping[str, str] = field(default_factory=dict)
    effect: Any = None

    @property
    def applied(self) -> bool:
        return self.outcome == Outcome.APPLIED

    def raise_for_outcome(self) -> None:
        """
        Convert a rejection into the matching ``core.domain`` exception.

        No-op for applied results.  Used at the service boundary where
        the HTTP exception handler takes over.
        """
        from core.domain.exceptions import InvalidTransition, PermissionDenied, ValidationError

        if self.outcome == Outcome.DENIED:
            raise PermissionDenied(self.detail or None, reason=self.reason)
        if self.outcome == Outcome.INVALID:
            if self.reason == VALIDATION_ERROR:
                raise ValidationError(self.detail or None, errors=dict(self.errors))
            raise InvalidTransition(
                self.detail or None,
                current=self.previous_status,
                target=self.action,
                reason=self.reason,
            )


class _PayloadError(Exception):
    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.errors = {field_name: message}


# ── Payload helpers ─────────────────────────────────────────────────


def _required_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _PayloadError(key, "This field is required and may not be blank.")
    return value.strip()


def _optional_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _PayloadError(key, "Must be a string.")
    return value.strip()


def _parse_date(payload: Mapping[str, Any], key: str, *, required: bool) -> datetime.date | None:
    value = payload.get(key)
    if value in (None, ""):
        if required:
            raise _PayloadError(key, "This field is required.")
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise _PayloadError(key, "Expected an ISO 8601 date (YYYY-MM-DD).")


def _parse_time(payload: Mapping[str, Any], key: str, *, required: bool) -> datetime.time | None:
    value = payload.get(key)
    if value in (None, ""):
        if required:
            raise _PayloadError(key, "This field is required.")
        return None
    if isinstance(value, datetime.time):
        return value
    try:
        return datetime.time.fromisoformat(str(value))
    except ValueError:
        raise _PayloadError(key, "Expected a time (HH:MM).")


# ── Action handlers ─────────────────────────────────────────────────
# Each returns (target_status, changed_fields, effect).

_Handler = Callable[
    [CaseRecord, Actor, Mapping[str, Any], tuple[str, ...], datetime.datetime],
    tuple[str, dict[str, Any], Any],
]


def _assign(case, actor, payload, targets, now):
    assignee = payload.get("assignee")
    if not isinstance(assignee, Actor):
        raise _PayloadError("assignee", "A shaykh must be selected.")
    if not assignee.is_shaykh:
        raise _PayloadError("assignee", "Only a shaykh can be assigned to a case.")
    return targets[0], {"assigned_to": assignee.actor_id}, None


def _answer(case, actor, payload, targets, now):
    text = _required_text(payload, "answer")
    return targets[0], {"answer": text, "answered_by": actor.actor_id}, None


def _approve(case, actor, payload, targets, now):
    return targets[0], {"review_comment": _optional_text(payload, "comment")}, None


def _unapprove(case, actor, payload, targets, now):
    changes = {
        "review_comment": _optional_text(payload, "comment"),
        "answer": "",
        "answered_by": None,
    }
    return targets[0], changes, None


def _schedule_meeting(case, actor, payload, targets, now):
    meeting = MeetingRecord(
        date=_parse_date(payload, "date", required=True),
        time=_parse_time(payload, "time", required=True),
        location=_required_text(payload, "location"),
        notes=_optional_text(payload, "notes"),
        status=MeetingStatus.SCHEDULED,
        scheduled_by=actor.actor_id,
    )
    return targets[0], {"meetings": case.meetings + (meeting,)}, meeting


def _update_meeting(case, actor, payload, targets, now):
    meeting_id = payload.get("meeting_id")
    current = case.meeting(meeting_id) if meeting_id is not None else None
    if current is None:
        raise _PayloadError("meeting_id", "Meeting not found on this case.")

    changes: dict[str, Any] = {}
    status = payload.get("status")
    if status is not None:
        if status not in MeetingStatus.values:
            raise _PayloadError("status", f"Must be one of: {', '.join(MeetingStatus.values)}.")
        changes["status"] = status
    new_date = _parse_date(payload, "date", required=False)
    if new_date is not None:
        changes["date"] = new_date
    new_time = _parse_time(payload, "time", required=False)
    if new_time is not None:
        changes["time"] = new_time
    if payload.get("location") is not None:
        changes["location"] = _required_text(payload, "location")
    if payload.get("notes") is not None:
        changes["notes"] = _optional_text(payload, "notes")
    if not changes:
        raise _PayloadError("meeting", "Nothing to update.")

    updated = replace(current, **changes)
    meetings = tuple(updated if m is current else m for m in case.meetings)
    return targets[0], {"meetings": meetings}, updated


def _add_feedback(case, actor, payload, targets, now):
    entry = FeedbackRecord(
        author_id=actor.actor_id,
        author_role=actor.role,
        comment=_required_text(payload, "comment"),
        date=now,
    )
    return targets[0], {"feedback": case.feedback + (entry,)}, entry


def _add_shaykh_notes(case, actor, payload, targets, now):
    return targets[0], {"shaykh_notes": _required_text(payload, "notes")}, None


def _complete(case, actor, payload, targets, now):
    outcome = payload.get("outcome")
    if outcome not in CompletionOutcome.values or outcome not in targets:
        raise _PayloadError(
            "outcome", f"Must be one of: {', '.join(CompletionOutcome.values)}.",
        )
    changes = {
        "outcome": outcome,
        "outcome_details": _optional_text(payload, "outcome_details"),
    }
    return outcome, changes, None


def _cancel(case, actor, payload, targets, now):
    return targets[0], {"cancellation_reason": _optional_text(payload, "reason")}, None


HANDLERS: dict[str, _Handler] = {
    CaseAction.ASSIGN: _assign,
    CaseAction.ANSWER: _answer,
    CaseAction.APPROVE: _approve,
    CaseAction.UNAPPROVE: _unapprove,
    CaseAction.SCHEDULE_MEETING: _schedule_meeting,
    CaseAction.UPDATE_MEETING: _update_meeting,
    CaseAction.ADD_FEEDBACK: _add_feedback,
    CaseAction.ADD_SHAYKH_NOTES: _add_shaykh_notes,
    CaseAction.COMPLETE: _complete,
    CaseAction.CANCEL: _cancel,
}


class TransitionEngine:
    """
    Stateless apart from its clock.  Safe to share between threads; the
    per-case serialization required for concurrent writers is provided by
    the repository row lock, not here.
    """

    def __init__(self, clock: Callable[[], datetime.datetime] = timezone.now) -> None:
        self._clock = clock

    def apply(
        self,
        case: CaseRecord,
        action: str,
        actor: Actor,
        payload: Mapping[str, Any] | None = None,
    ) -> TransitionResult:
        payload = payload or {}
        cfg = config_for(case.case_type)

        def reject(outcome: str, reason: str, detail: str, errors=None) -> TransitionResult:
            return TransitionResult(
                outcome=outcome,
                action=action,
                case=case,
                previous_status=case.status,
                reason=reason,
                detail=detail,
                errors=errors or {},
            )

        if action not in HANDLERS:
            return reject(Outcome.INVALID, INVALID_TRANSITION, f"Unknown action '{action}'.")

        if cfg.is_terminal(case.status):
            return reject(
                Outcome.INVALID,
                INVALID_TRANSITION,
                f"Case is {case.status} and admits no further actions.",
            )

        decision = authorize(actor, case, action)
        if not decision:
            if decision.reason == DenyReason.WRONG_STATUS:
                return reject(
                    Outcome.INVALID,
                    DenyReason.WRONG_STATUS,
                    f"'{action}' is not available while the case is {case.status}.",
                )
            return reject(
                Outcome.DENIED,
                decision.reason,
                f"You may not perform '{action}' on this case.",
            )

        targets = cfg.targets(case.status, action)
        if targets is None:
            return reject(
                Outcome.INVALID,
                INVALID_TRANSITION,
                f"'{action}' is not a legal transition from {case.status} "
                f"for a {case.case_type} case.",
            )

        now = self._clock()
        try:
            target, changes, effect = HANDLERS[action](case, actor, payload, targets, now)
        except _PayloadError as exc:
            return reject(Outcome.INVALID, VALIDATION_ERROR, str(exc), exc.errors)

        updated = replace(case, status=target, updated_at=now, **changes)
        return TransitionResult(
            outcome=Outcome.APPLIED,
            action=action,
            case=updated,
            previous_status=case.status,
            effect=effect,
        )
