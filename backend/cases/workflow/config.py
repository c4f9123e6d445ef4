"""
cases.workflow.config — Status sets and transition tables per case type.

Each case type owns a closed ``TextChoices`` status set and a table
mapping ``(from_status, action)`` to the tuple of legal target statuses.
A pair that is missing from the table is an illegal transition.

  FATWA
  ─────
  PENDING  ──assign──▶  ASSIGNED  ──answer──▶  ANSWERED  ──approve──▶  APPROVED
                            ▲                      │
                            └──────unapprove───────┘

  MARRIAGE / RECONCILIATION (shared shape)
  ────────────────────────────────────────
  PENDING ──assign──▶ ASSIGNED ──schedule_meeting──▶ IN_PROGRESS
  ASSIGNED | IN_PROGRESS ──complete──▶ RESOLVED | UNRESOLVED
  PENDING | ASSIGNED | IN_PROGRESS ──cancel──▶ CANCELLED

Actions that record data without moving the case (feedback, notes,
meeting edits) appear as self-loops, and only on non-terminal statuses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from django.db import models


class CaseType(models.TextChoices):
    FATWA = "fatwa", "Fatwa"
    MARRIAGE = "marriage", "Marriage"
    RECONCILIATION = "reconciliation", "Reconciliation"


class FatwaStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    ANSWERED = "answered", "Answered"
    APPROVED = "approved", "Approved"


class CounselStatus(models.TextChoices):
    """Status set shared by marriage applications and reconciliation cases."""

    PENDING = "pending", "Pending"
    ASSIGNED = "assigned", "Assigned"
    IN_PROGRESS = "in-progress", "In Progress"
    RESOLVED = "resolved", "Resolved"
    UNRESOLVED = "unresolved", "Unresolved"
    CANCELLED = "cancelled", "Cancelled"


class CaseAction(models.TextChoices):
    ASSIGN = "assign", "Assign Shaykh"
    ANSWER = "answer", "Answer"
    APPROVE = "approve", "Approve"
    UNAPPROVE = "unapprove", "Unapprove"
    SCHEDULE_MEETING = "schedule_meeting", "Schedule Meeting"
    UPDATE_MEETING = "update_meeting", "Update Meeting"
    ADD_FEEDBACK = "add_feedback", "Add Feedback"
    ADD_SHAYKH_NOTES = "add_shaykh_notes", "Add Shaykh Notes"
    COMPLETE = "complete", "Complete"
    CANCEL = "cancel", "Cancel"


class MeetingStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    RESCHEDULED = "rescheduled", "Rescheduled"


class CompletionOutcome(models.TextChoices):
    RESOLVED = "resolved", "Resolved"
    UNRESOLVED = "unresolved", "Unresolved"


class MarriageApplicationType(models.TextChoices):
    RESERVATION = "reservation", "Nikah Reservation"
    CERTIFICATE = "certificate", "Marriage Certificate"


#: Where an unapproved answer sends the fatwa.  The answer is discarded
#: and the assigned shaykh answers again.
FATWA_UNAPPROVE_TARGET: str = FatwaStatus.ASSIGNED

Transitions = Mapping[tuple[str, str], tuple[str, ...]]


@dataclass(frozen=True)
class CaseTypeConfig:
    """Closed status set plus transition table for one case type."""

    case_type: str
    statuses: type[models.TextChoices]
    initial_status: str
    terminal_statuses: frozenset[str]
    transitions: Transitions

    def is_valid_status(self, status: str) -> bool:
        return status in self.statuses.values

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal_statuses

    def targets(self, status: str, action: str) -> tuple[str, ...] | None:
        """Return the legal target statuses, or ``None`` if the pair is illegal."""
        return self.transitions.get((status, action))

    def outgoing(self, status: str) -> list[str]:
        """Actions with an entry for ``status``."""
        return [action for (source, action) in self.transitions if source == status]


def _self_loops(statuses, *actions) -> dict[tuple[str, str], tuple[str, ...]]:
    return {(status, action): (status,) for status in statuses for action in actions}


_F = FatwaStatus
_FATWA_OPEN = (_F.PENDING, _F.ASSIGNED, _F.ANSWERED)

FATWA_TRANSITIONS: dict[tuple[str, str], tuple[str, ...]] = {
    (_F.PENDING, CaseAction.ASSIGN): (_F.ASSIGNED,),
    (_F.ASSIGNED, CaseAction.ANSWER): (_F.ANSWERED,),
    (_F.ANSWERED, CaseAction.APPROVE): (_F.APPROVED,),
    (_F.ANSWERED, CaseAction.UNAPPROVE): (FATWA_UNAPPROVE_TARGET,),
    (_F.ANSWERED, CaseAction.ADD_FEEDBACK): (_F.ANSWERED,),
    **_self_loops(_FATWA_OPEN, CaseAction.ADD_SHAYKH_NOTES),
}

_C = CounselStatus
_COUNSEL_OPEN = (_C.PENDING, _C.ASSIGNED, _C.IN_PROGRESS)
_OUTCOMES = (_C.RESOLVED, _C.UNRESOLVED)

COUNSEL_TRANSITIONS: dict[tuple[str, str], tuple[str, ...]] = {
    (_C.PENDING, CaseAction.ASSIGN): (_C.ASSIGNED,),
    (_C.PENDING, CaseAction.SCHEDULE_MEETING): (_C.PENDING,),
    (_C.ASSIGNED, CaseAction.SCHEDULE_MEETING): (_C.IN_PROGRESS,),
    (_C.IN_PROGRESS, CaseAction.SCHEDULE_MEETING): (_C.IN_PROGRESS,),
    (_C.ASSIGNED, CaseAction.COMPLETE): _OUTCOMES,
    (_C.IN_PROGRESS, CaseAction.COMPLETE): _OUTCOMES,
    **{(status, CaseAction.CANCEL): (_C.CANCELLED,) for status in _COUNSEL_OPEN},
    **_self_loops(
        _COUNSEL_OPEN,
        CaseAction.UPDATE_MEETING,
        CaseAction.ADD_FEEDBACK,
        CaseAction.ADD_SHAYKH_NOTES,
    ),
}

FATWA_CONFIG = CaseTypeConfig(
    case_type=CaseType.FATWA,
    statuses=FatwaStatus,
    initial_status=FatwaStatus.PENDING,
    terminal_statuses=frozenset({FatwaStatus.APPROVED}),
    transitions=FATWA_TRANSITIONS,
)

_COUNSEL_TERMINAL = frozenset({_C.RESOLVED, _C.UNRESOLVED, _C.CANCELLED})

MARRIAGE_CONFIG = CaseTypeConfig(
    case_type=CaseType.MARRIAGE,
    statuses=CounselStatus,
    initial_status=CounselStatus.PENDING,
    terminal_statuses=_COUNSEL_TERMINAL,
    transitions=COUNSEL_TRANSITIONS,
)

RECONCILIATION_CONFIG = CaseTypeConfig(
    case_type=CaseType.RECONCILIATION,
    statuses=CounselStatus,
    initial_status=CounselStatus.PENDING,
    terminal_statuses=_COUNSEL_TERMINAL,
    transitions=COUNSEL_TRANSITIONS,
)

CASE_TYPE_CONFIGS: dict[str, CaseTypeConfig] = {
    CaseType.FATWA: FATWA_CONFIG,
    CaseType.MARRIAGE: MARRIAGE_CONFIG,
    CaseType.RECONCILIATION: RECONCILIATION_CONFIG,
}


def config_for(case_type: str) -> CaseTypeConfig:
    """Return the config for ``case_type``; raises ``KeyError`` for unknown types."""
    return CASE_TYPE_CONFIGS[case_type]


def all_status_choices() -> list[tuple[str, str]]:
    """Union of every type's statuses, for the model field's ``choices``."""
    seen: dict[str, str] = {}
    for cfg in CASE_TYPE_CONFIGS.values():
        for value, label in cfg.statuses.choices:
            seen.setdefault(value, label)
    return list(seen.items())
