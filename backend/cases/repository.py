"""
cases.repository — ORM-backed persistence for ``CaseRecord``.

The workflow package never touches the database; this module converts
between ``cases.models`` rows and frozen workflow records.

Contract
--------
``load(case_id, for_update=False)``
    Return a ``CaseRecord`` or raise ``NotFound``.  ``for_update=True``
    takes a row lock and must run inside ``transaction.atomic()``.

``save(record)``
    Compare-and-set on ``version``: the row is written only if its
    version still equals ``record.version``, otherwise ``Conflict``.
    New meetings and feedback (records without ``id``) are inserted,
    changed meetings are updated, nothing is ever deleted.  Returns the
    freshly re-read record.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db import transaction
from django.db.models import F, Prefetch
from django.utils import timezone

from core.domain.exceptions import Conflict, NotFound
from core.domain.transactions import lock_for_update

from .models import Case, FeedbackEntry, Meeting
from .workflow.records import CaseRecord, FeedbackRecord, MeetingRecord

logger = logging.getLogger(__name__)

# Columns copied verbatim between ``Case`` and ``CaseRecord``.
_SCALAR_FIELDS = (
    "status",
    "answer",
    "review_comment",
    "outcome",
    "outcome_details",
    "shaykh_notes",
    "cancellation_reason",
)

_MEETING_FIELDS = ("date", "time", "location", "notes", "status")


def _meeting_record(row: Meeting) -> MeetingRecord:
    return MeetingRecord(
        id=row.pk,
        date=row.date,
        time=row.time,
        location=row.location,
        notes=row.notes,
        status=row.status,
        scheduled_by=row.scheduled_by_id,
    )


def _feedback_record(row: FeedbackEntry) -> FeedbackRecord:
    return FeedbackRecord(
        id=row.pk,
        author_id=row.author_id,
        author_role=row.author_role,
        comment=row.comment,
        date=row.date,
    )


class CaseRepository:

    @staticmethod
    def _base_queryset():
        return Case.objects.prefetch_related(
            Prefetch("meetings", queryset=Meeting.objects.order_by("id")),
            Prefetch("feedback", queryset=FeedbackEntry.objects.order_by("id")),
        )

    @staticmethod
    def to_record(case: Case) -> CaseRecord:
        return CaseRecord(
            id=case.pk,
            case_type=case.case_type,
            status=case.status,
            created_by=case.created_by_id,
            assigned_to=case.assigned_to_id,
            details=dict(case.details or {}),
            answer=case.answer,
            answered_by=case.answered_by_id,
            review_comment=case.review_comment,
            outcome=case.outcome,
            outcome_details=case.outcome_details,
            shaykh_notes=case.shaykh_notes,
            cancellation_reason=case.cancellation_reason,
            meetings=tuple(_meeting_record(m) for m in case.meetings.all()),
            feedback=tuple(_feedback_record(f) for f in case.feedback.all()),
            created_at=case.created_at,
            updated_at=case.updated_at,
            version=case.version,
        )

    @classmethod
    def load(cls, case_id: Any, *, for_update: bool = False) -> CaseRecord:
        try:
            if for_update:
                # Lock the bare row; prefetching happens in a second query.
                lock_for_update(Case, case_id)
            case = cls._base_queryset().get(pk=case_id)
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Case with id={case_id} does not exist.")
        return cls.to_record(case)

    @classmethod
    def insert(
        cls,
        *,
        case_type: str,
        status: str,
        created_by_id: Any,
        details: Mapping[str, Any],
    ) -> CaseRecord:
        case = Case.objects.create(
            case_type=case_type,
            status=status,
            created_by_id=created_by_id,
            details=dict(details),
        )
        return cls.load(case.pk)

    @classmethod
    def save(cls, record: CaseRecord) -> CaseRecord:
        with transaction.atomic():
            values = {name: getattr(record, name) for name in _SCALAR_FIELDS}
            written = (
                Case.objects
                .filter(pk=record.id, version=record.version)
                .update(
                    **values,
                    details=dict(record.details),
                    assigned_to_id=record.assigned_to,
                    answered_by_id=record.answered_by,
                    updated_at=record.updated_at or timezone.now(),
                    version=F("version") + 1,
                )
            )
            if not written:
                if not Case.objects.filter(pk=record.id).exists():
                    raise NotFound(f"Case with id={record.id} does not exist.")
                logger.info(
                    "Stale write rejected for case %s at version %s",
                    record.id, record.version,
                )
                raise Conflict(
                    "The case was modified by another request. Reload it and try again."
                )

            cls._save_meetings(record)
            cls._save_feedback(record)

        return cls.load(record.id)

    @staticmethod
    def _save_meetings(record: CaseRecord) -> None:
        stored = {m.pk: m for m in Meeting.objects.filter(case_id=record.id)}
        for meeting in record.meetings:
            if meeting.id is None:
                Meeting.objects.create(
                    case_id=record.id,
                    scheduled_by_id=meeting.scheduled_by,
                    **{name: getattr(meeting, name) for name in _MEETING_FIELDS},
                )
                continue
            row = stored.get(meeting.id)
            if row is None:
                raise NotFound(f"Meeting with id={meeting.id} does not exist on case {record.id}.")
            changed = [
                name for name in _MEETING_FIELDS
                if getattr(row, name) != getattr(meeting, name)
            ]
            if changed:
                for name in changed:
                    setattr(row, name, getattr(meeting, name))
                row.save(update_fields=[*changed, "updated_at"])

    @staticmethod
    def _save_feedback(record: CaseRecord) -> None:
        # Existing entries are immutable; only new ones are written.
        FeedbackEntry.objects.bulk_create([
            FeedbackEntry(
                case_id=record.id,
                author_id=entry.author_id,
                author_role=entry.author_role,
                comment=entry.comment,
                date=entry.date,
            )
            for entry in record.feedback
            if entry.id is None
        ])
