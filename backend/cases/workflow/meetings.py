"""
cases.workflow.meetings — Meeting scheduling and the upcoming/past split.

Scheduling and updating go through ``TransitionEngine`` so that the
policy and the terminal lock apply exactly as for any other action.
``partition`` is pure and re-derivable; it is never persisted.
"""

from __future__ import annotations

import datetime
from typing import Iterable, NamedTuple

from django.utils import timezone

from .config import CaseAction, MeetingStatus
from .engine import TransitionEngine, TransitionResult
from .records import Actor, CaseRecord, MeetingRecord


class MeetingPartition(NamedTuple):
    upcoming: list[MeetingRecord]
    past: list[MeetingRecord]


def _sort_key(meeting: MeetingRecord):
    return (meeting.date, meeting.time or datetime.time.min)


def _as_date(now: datetime.date | datetime.datetime) -> datetime.date:
    if isinstance(now, datetime.datetime):
        if timezone.is_aware(now):
            return timezone.localdate(now)
        return now.date()
    return now


def partition(
    meetings: Iterable[MeetingRecord],
    now: datetime.date | datetime.datetime,
) -> MeetingPartition:
    """
    Split ``meetings`` into upcoming and past.

    Parameters
    ----------
    meetings : iterable of MeetingRecord
    now : date or datetime
        Reference point.  A datetime is reduced to its calendar date, so a
        meeting scheduled for today is still upcoming.

    Returns
    -------
    MeetingPartition
        ``upcoming``: scheduled and dated today or later, soonest first.
        ``past``: everything else, most recent first.  Every meeting lands
        in exactly one of the two lists.
    """
    today = _as_date(now)
    upcoming: list[MeetingRecord] = []
    past: list[MeetingRecord] = []
    for meeting in meetings:
        if meeting.status == MeetingStatus.SCHEDULED and meeting.date >= today:
            upcoming.append(meeting)
        else:
            past.append(meeting)
    upcoming.sort(key=_sort_key)
    past.sort(key=_sort_key, reverse=True)
    return MeetingPartition(upcoming=upcoming, past=past)


class MeetingScheduler:
    """Thin façade that phrases meeting operations as engine actions."""

    def __init__(self, engine: TransitionEngine | None = None) -> None:
        self.engine = engine or TransitionEngine()

    def schedule(
        self,
        case: CaseRecord,
        actor: Actor,
        *,
        date,
        time,
        location: str,
        notes: str = "",
    ) -> TransitionResult:
        payload = {"date": date, "time": time, "location": location, "notes": notes}
        return self.engine.apply(case, CaseAction.SCHEDULE_MEETING, actor, payload)

    def update(self, case: CaseRecord, actor: Actor, meeting_id, **changes) -> TransitionResult:
        """Record a status change and/or edit details of an existing meeting."""
        payload = {"meeting_id": meeting_id, **changes}
        return self.engine.apply(case, CaseAction.UPDATE_MEETING, actor, payload)
