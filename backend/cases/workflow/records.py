"""
cases.workflow.records — Immutable snapshots the workflow operates on.

The engine never touches ORM instances.  ``CaseRepository`` converts
between ``cases.models.Case`` and ``CaseRecord``; every engine call
returns a *new* record built with ``dataclasses.replace``.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Mapping

from accounts.roles import UserRole

from .config import MeetingStatus

ActorId = Any


@dataclass(frozen=True)
class Actor:
    """Identity plus global role, as supplied by the authentication layer."""

    actor_id: ActorId
    role: str

    @classmethod
    def from_user(cls, user) -> Actor:
        return cls(actor_id=user.pk, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_shaykh(self) -> bool:
        return self.role == UserRole.SHAYKH


@dataclass(frozen=True)
class MeetingRecord:
    date: datetime.date
    time: datetime.time
    location: str
    notes: str = ""
    status: str = MeetingStatus.SCHEDULED
    scheduled_by: ActorId | None = None
    id: Any = None


@dataclass(frozen=True)
class FeedbackRecord:
    """
    One ledger entry.  ``author_role`` is the role held when the entry was
    written and is never recomputed.
    """

    author_id: ActorId
    author_role: str
    comment: str
    date: datetime.datetime
    id: Any = None


@dataclass(frozen=True)
class CaseRecord:
    id: Any
    case_type: str
    status: str
    created_by: ActorId
    assigned_to: ActorId | None = None
    details: Mapping[str, Any] = field(default_factory=dict)

    # Fields written by the state machine
    answer: str = ""
    answered_by: ActorId | None = None
    review_comment: str = ""
    outcome: str = ""
    outcome_details: str = ""
    shaykh_notes: str = ""
    cancellation_reason: str = ""

    meetings: tuple[MeetingRecord, ...] = ()
    feedback: tuple[FeedbackRecord, ...] = ()

    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None
    version: int = 0

    def is_owned_by(self, actor: Actor) -> bool:
        return self.created_by is not None and self.created_by == actor.actor_id

    def is_assigned_to(self, actor: Actor) -> bool:
        return self.assigned_to is not None and self.assigned_to == actor.actor_id

    def meeting(self, meeting_id: Any) -> MeetingRecord | None:
        for item in self.meetings:
            if item.id is not None and str(item.id) == str(meeting_id):
                return item
        return None
