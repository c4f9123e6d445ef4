"""
Cases app Service Layer.

This module is the **single source of truth** for all business logic
in the ``cases`` app that touches the database.  Views must remain
thin: validate input via serializers, call a service method, and return
the result wrapped in a DRF ``Response``.

Architecture
------------
- ``CaseQueryService``     — role-scoped querysets and detail lookups.
- ``CaseCreationService``  — new cases in their type's initial status.
- ``CaseWorkflowService``  — every mutation, through the
                             ``TransitionEngine`` gateway.
- ``CaseMeetingService``   — meeting scheduling, updates and the
                             upcoming/past view.
- ``CaseFeedbackService``  — feedback ledger and private shaykh notes.
- ``CaseCertificateService`` — marriage certificate upload and lookup.

Write path
----------
Every mutating call runs as one transaction::

    lock row  →  load CaseRecord  →  engine.apply  →  save (version CAS)
              →  CaseStatusLog    →  commit         →  re-read

Two concurrent requests against the same case are therefore applied one
after the other; the second sees the first one's result.  Rejections
raise ``core.domain`` exceptions, which the global exception handler
turns into HTTP responses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from django.db import transaction
from django.db.models import Prefetch, Q, QuerySet
from django.utils import timezone

from accounts.roles import UserRole
from accounts.services import ShaykhDirectoryService
from core.domain.access import apply_role_scope
from core.domain.exceptions import (
    Conflict,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationError,
)

from .models import Case, CaseStatusLog, FeedbackEntry, MarriageCertificate, Meeting
from .repository import CaseRepository
from .workflow import (
    Actor,
    CaseAction,
    CaseRecord,
    DenyReason,
    FeedbackLedger,
    MeetingPartition,
    MeetingScheduler,
    TransitionEngine,
    TransitionResult,
    allowed_actions,
    authorize_certificate_upload,
    can_view_shaykh_notes,
    config_for,
    partition,
)

logger = logging.getLogger(__name__)


#: Ordered ``(role, filter_fn)`` rules; first match wins.
CASE_SCOPE_RULES = [
    (UserRole.ADMIN, lambda qs, u: qs),
    (UserRole.SHAYKH, lambda qs, u: qs.filter(Q(assigned_to=u) | Q(created_by=u))),
    (UserRole.USER, lambda qs, u: qs.filter(created_by=u)),
]

#: Payload key whose value is copied into the status-log message.
_LOG_MESSAGE_KEYS: dict[str, str] = {
    CaseAction.APPROVE: "comment",
    CaseAction.UNAPPROVE: "comment",
    CaseAction.COMPLETE: "outcome_details",
    CaseAction.CANCEL: "reason",
}


def _detail_queryset() -> QuerySet:
    return Case.objects.select_related(
        "created_by", "assigned_to", "answered_by",
    ).prefetch_related(
        Prefetch("meetings", queryset=Meeting.objects.order_by("id")),
        Prefetch(
            "feedback",
            queryset=FeedbackEntry.objects.select_related("author").order_by("id"),
        ),
    )


# ═══════════════════════════════════════════════════════════════════
#  Case Query Service
# ═══════════════════════════════════════════════════════════════════


class CaseQueryService:
    """Read side: scoped lists, detail lookups, advisory affordances."""

    @staticmethod
    def get_filtered_queryset(requesting_user: Any, filters: Mapping[str, Any]) -> QuerySet:
        """
        Build a role-scoped, filtered queryset of ``Case`` objects.

        Role Scoping Rules
        ------------------
        - **admin**: all cases.
        - **shaykh**: cases assigned to them, plus cases they created.
        - **user**: cases they created.

        Supported filter keys: ``case_type``, ``status``.
        """
        qs = apply_role_scope(
            Case.objects.select_related("created_by", "assigned_to"),
            requesting_user,
            scope_rules=CASE_SCOPE_RULES,
        )
        if filters.get("case_type"):
            qs = qs.filter(case_type=filters["case_type"])
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        return qs.order_by("-created_at", "-id")

    @staticmethod
    def get_case_detail(requesting_user: Any, case_id: Any) -> Case:
        """
        Return a case visible to ``requesting_user`` with meetings and
        feedback prefetched.

        Raises ``NotFound`` both for unknown ids and for cases outside the
        user's scope, so existence is not leaked.
        """
        scoped = apply_role_scope(
            _detail_queryset(),
            requesting_user,
            scope_rules=CASE_SCOPE_RULES,
        )
        try:
            return scoped.get(pk=case_id)
        except (Case.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Case with id={case_id} not found.")

    @staticmethod
    def reload(case_id: Any) -> Case:
        """Unscoped re-read after a committed action by an authorized actor."""
        return _detail_queryset().get(pk=case_id)

    @staticmethod
    def get_status_log(requesting_user: Any, case_id: Any) -> QuerySet:
        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        return case.status_logs.select_related("changed_by").order_by("created_at", "id")

    @staticmethod
    def get_allowed_actions(requesting_user: Any, case: Case) -> list[str]:
        """Advisory list for UI affordances; the write path re-checks."""
        return allowed_actions(Actor.from_user(requesting_user), CaseRepository.to_record(case))

    @staticmethod
    def can_view_notes(requesting_user: Any, case: Case) -> bool:
        record = CaseRecord(
            id=case.pk,
            case_type=case.case_type,
            status=case.status,
            created_by=case.created_by_id,
            assigned_to=case.assigned_to_id,
        )
        return can_view_shaykh_notes(Actor.from_user(requesting_user), record)


# ═══════════════════════════════════════════════════════════════════
#  Case Creation Service
# ═══════════════════════════════════════════════════════════════════


class CaseCreationService:

    @staticmethod
    @transaction.atomic
    def create_case(validated_data: Mapping[str, Any], requesting_user: Any) -> Case:
        """
        Create a new case in its type's initial status.

        Parameters
        ----------
        validated_data : dict
            From ``CaseCreateSerializer``: ``case_type`` and the
            type-validated ``details`` dict.
        requesting_user : User
            Becomes ``created_by`` (the case owner).

        Returns
        -------
        Case
            The new case, re-read with its relations.
        """
        cfg = config_for(validated_data["case_type"])
        record = CaseRepository.insert(
            case_type=cfg.case_type,
            status=cfg.initial_status,
            created_by_id=requesting_user.pk,
            details=validated_data.get("details") or {},
        )
        CaseStatusLog.objects.create(
            case_id=record.id,
            from_status="",
            to_status=record.status,
            changed_by=requesting_user,
            message="Case created.",
        )
        logger.info(
            "Case %s (%s) created by user %s",
            record.id, record.case_type, requesting_user.pk,
        )
        return _detail_queryset().get(pk=record.id)


# ═══════════════════════════════════════════════════════════════════
#  Case Workflow Service
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ActionOutcome:
    """What a committed action produced: the re-read case and, for
    meeting/feedback actions, the persisted entry's record."""

    record: CaseRecord
    previous_status: str
    effect: Any = None


class CaseWorkflowService:
    """
    Manages **all** mutations of a case.

    ``perform_action`` is the central gateway; the named methods are thin
    conveniences that build the payload for one action.
    """

    engine: TransitionEngine = TransitionEngine()

    @classmethod
    def perform_action(
        cls,
        case_id: Any,
        action: str,
        requesting_user: Any,
        payload: Mapping[str, Any] | None = None,
    ) -> ActionOutcome:
        """
        **The central state-machine gateway.**

        Parameters
        ----------
        case_id : int
        action : str
            A ``CaseAction`` value.
        requesting_user : User
            Supplies the ``Actor`` (id + global role).
        payload : dict
            Action-specific fields.  For ``assign`` a ``shaykh_id`` is
            resolved to an ``assignee`` actor here.

        Returns
        -------
        ActionOutcome

        Raises
        ------
        NotFound
            Unknown case id.
        PermissionDenied
            Actor lacks the role/relationship; ``reason`` set.
        InvalidTransition
            Terminal case, wrong status, or pair absent from the table.
        ValidationError
            Payload missing/malformed; ``errors`` set.
        Conflict
            Lost a version race (should not happen under the row lock).
        """
        payload = cls._prepare_payload(action, dict(payload or {}))
        return cls.commit(
            case_id,
            action,
            requesting_user,
            lambda record, actor: cls.engine.apply(record, action, actor, payload),
            log_message=cls._log_message(action, payload),
        )

    @classmethod
    def commit(
        cls,
        case_id: Any,
        action: str,
        requesting_user: Any,
        decide: Callable[[CaseRecord, Actor], TransitionResult],
        *,
        log_message: str = "",
    ) -> ActionOutcome:
        """
        Run one decision against the locked case and persist it.

        ``decide`` receives the freshly loaded record and the actor and
        returns the engine's ``TransitionResult``; the meeting scheduler
        and the feedback ledger plug in here.  A rejection raises the
        matching domain exception and nothing is written.
        """
        actor = Actor.from_user(requesting_user)

        with transaction.atomic():
            record = CaseRepository.load(case_id, for_update=True)
            result = decide(record, actor)

            if not result.applied:
                logger.info(
                    "Rejected %s on case %s by user %s: %s (%s)",
                    action, case_id, actor.actor_id, result.outcome, result.reason,
                )
                result.raise_for_outcome()

            saved = CaseRepository.save(result.case)
            CaseStatusLog.objects.create(
                case_id=saved.id,
                from_status=result.previous_status,
                to_status=saved.status,
                action=action,
                changed_by=requesting_user,
                message=log_message,
            )

        logger.info(
            "Applied %s on case %s by user %s: %s → %s",
            action, saved.id, actor.actor_id, result.previous_status, saved.status,
        )
        return ActionOutcome(
            record=saved,
            previous_status=result.previous_status,
            effect=cls._persisted_effect(action, result.effect, saved),
        )

    @staticmethod
    def _prepare_payload(action: str, payload: dict[str, Any]) -> dict[str, Any]:
        if action == CaseAction.ASSIGN and "assignee" not in payload:
            user = ShaykhDirectoryService.find_user(payload.pop("shaykh_id", None))
            payload["assignee"] = Actor.from_user(user) if user is not None else None
        return payload

    @staticmethod
    def _log_message(action: str, payload: Mapping[str, Any]) -> str:
        message_key = _LOG_MESSAGE_KEYS.get(action)
        return str(payload.get(message_key) or "") if message_key else ""

    @staticmethod
    def _persisted_effect(action: str, effect: Any, saved: CaseRecord) -> Any:
        # New entries get their ids on save; they are always the last ones.
        if action == CaseAction.SCHEDULE_MEETING:
            return saved.meetings[-1]
        if action == CaseAction.ADD_FEEDBACK:
            return saved.feedback[-1]
        if action == CaseAction.UPDATE_MEETING and effect is not None:
            return saved.meeting(effect.id)
        return effect

    # ── Convenience wrappers ──────────────────────────────────────────

    @classmethod
    def assign(cls, case_id: Any, requesting_user: Any, shaykh_id: Any) -> ActionOutcome:
        return cls.perform_action(
            case_id, CaseAction.ASSIGN, requesting_user, {"shaykh_id": shaykh_id},
        )

    @classmethod
    def answer(cls, case_id: Any, requesting_user: Any, answer: str) -> ActionOutcome:
        return cls.perform_action(
            case_id, CaseAction.ANSWER, requesting_user, {"answer": answer},
        )

    @classmethod
    def approve(cls, case_id: Any, requesting_user: Any, comment: str = "") -> ActionOutcome:
        return cls.perform_action(
            case_id, CaseAction.APPROVE, requesting_user, {"comment": comment},
        )

    @classmethod
    def unapprove(cls, case_id: Any, requesting_user: Any, comment: str = "") -> ActionOutcome:
        return cls.perform_action(
            case_id, CaseAction.UNAPPROVE, requesting_user, {"comment": comment},
        )

    @classmethod
    def complete(
        cls,
        case_id: Any,
        requesting_user: Any,
        outcome: str | None,
        outcome_details: str = "",
    ) -> ActionOutcome:
        return cls.perform_action(
            case_id,
            CaseAction.COMPLETE,
            requesting_user,
            {"outcome": outcome, "outcome_details": outcome_details},
        )

    @classmethod
    def cancel(cls, case_id: Any, requesting_user: Any, reason: str = "") -> ActionOutcome:
        return cls.perform_action(
            case_id, CaseAction.CANCEL, requesting_user, {"reason": reason},
        )


# ═══════════════════════════════════════════════════════════════════
#  Meetings
# ═══════════════════════════════════════════════════════════════════


class CaseMeetingService:
    """Meeting writes go through ``MeetingScheduler`` on the locked case."""

    scheduler: MeetingScheduler = MeetingScheduler(CaseWorkflowService.engine)

    @staticmethod
    def list_partitioned(requesting_user: Any, case_id: Any, now=None) -> MeetingPartition:
        """Upcoming (soonest first) and past (most recent first) meetings."""
        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        return partition(case.meetings.all(), now or timezone.now())

    @classmethod
    def schedule(cls, case_id: Any, requesting_user: Any, data: Mapping[str, Any]) -> Meeting:
        outcome = CaseWorkflowService.commit(
            case_id,
            CaseAction.SCHEDULE_MEETING,
            requesting_user,
            lambda record, actor: cls.scheduler.schedule(
                record,
                actor,
                date=data.get("date"),
                time=data.get("time"),
                location=data.get("location"),
                notes=data.get("notes", ""),
            ),
        )
        return Meeting.objects.get(pk=outcome.effect.id)

    @classmethod
    def update(
        cls,
        case_id: Any,
        requesting_user: Any,
        meeting_id: Any,
        data: Mapping[str, Any],
    ) -> Meeting:
        outcome = CaseWorkflowService.commit(
            case_id,
            CaseAction.UPDATE_MEETING,
            requesting_user,
            lambda record, actor: cls.scheduler.update(record, actor, meeting_id, **data),
        )
        return Meeting.objects.get(pk=outcome.effect.id)


# ═══════════════════════════════════════════════════════════════════
#  Feedback & Notes
# ═══════════════════════════════════════════════════════════════════


class CaseFeedbackService:
    """Feedback and notes go through ``FeedbackLedger`` on the locked case."""

    ledger: FeedbackLedger = FeedbackLedger(CaseWorkflowService.engine)

    @classmethod
    def list_feedback(cls, requesting_user: Any, case_id: Any) -> list[FeedbackEntry]:
        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        return cls.ledger.ordered(case.feedback.all())

    @classmethod
    def add_feedback(cls, case_id: Any, requesting_user: Any, comment: str) -> FeedbackEntry:
        outcome = CaseWorkflowService.commit(
            case_id,
            CaseAction.ADD_FEEDBACK,
            requesting_user,
            lambda record, actor: cls.ledger.append(record, actor, comment),
        )
        return FeedbackEntry.objects.select_related("author").get(pk=outcome.effect.id)

    @classmethod
    def set_shaykh_notes(cls, case_id: Any, requesting_user: Any, notes: str) -> ActionOutcome:
        return CaseWorkflowService.commit(
            case_id,
            CaseAction.ADD_SHAYKH_NOTES,
            requesting_user,
            lambda record, actor: cls.ledger.set_shaykh_notes(record, actor, notes),
        )


# ═══════════════════════════════════════════════════════════════════
#  Marriage Certificates
# ═══════════════════════════════════════════════════════════════════


class CaseCertificateService:
    """
    Certificates are files attached to a marriage case; attaching one
    does not change the case status.  The upload is still serialized
    on the case row and recorded in the status log.
    """

    @staticmethod
    def upload(
        case_id: Any,
        requesting_user: Any,
        certificate_number: str,
        file: Any,
    ) -> MarriageCertificate:
        """
        Attach the certificate file to a marriage case.

        Raises
        ------
        NotFound
            Unknown case id.
        PermissionDenied
            ``not_assigned``: neither admin nor the assigned shaykh.
        InvalidTransition
            ``wrong_status``: not a marriage certificate application, or
            the case is not assigned / in progress.
        Conflict
            A certificate is already on file.
        ValidationError
            Missing number or file.
        """
        actor = Actor.from_user(requesting_user)

        with transaction.atomic():
            record = CaseRepository.load(case_id, for_update=True)
            decision = authorize_certificate_upload(actor, record)
            if not decision:
                logger.info(
                    "Rejected certificate upload on case %s by user %s: %s",
                    record.id, actor.actor_id, decision.reason,
                )
                if decision.reason == DenyReason.WRONG_STATUS:
                    raise InvalidTransition(
                        "A certificate can only be attached to an assigned or "
                        "in-progress marriage certificate application.",
                        reason=DenyReason.WRONG_STATUS,
                    )
                raise PermissionDenied(
                    "Only an admin or the assigned shaykh may upload the certificate.",
                    reason=decision.reason,
                )

            if MarriageCertificate.objects.filter(case_id=record.id).exists():
                raise Conflict("A certificate has already been uploaded for this case.")

            errors = {}
            number = (certificate_number or "").strip()
            if not number:
                errors["certificate_number"] = "This field is required."
            elif len(number) > 64:
                errors["certificate_number"] = "Ensure this field has no more than 64 characters."
            if file is None:
                errors["certificate"] = "A certificate file is required."
            if errors:
                raise ValidationError(errors=errors)

            certificate = MarriageCertificate.objects.create(
                case_id=record.id,
                certificate_number=number,
                file=file,
                uploaded_by=requesting_user,
            )
            CaseStatusLog.objects.create(
                case_id=record.id,
                from_status=record.status,
                to_status=record.status,
                changed_by=requesting_user,
                message=f"Certificate {number} uploaded.",
            )

        logger.info(
            "Certificate %s attached to case %s by user %s",
            number, record.id, actor.actor_id,
        )
        return certificate

    @staticmethod
    def get_certificate(requesting_user: Any, case_id: Any) -> MarriageCertificate:
        """The certificate of a case visible to ``requesting_user``."""
        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        try:
            return MarriageCertificate.objects.select_related("uploaded_by").get(case=case)
        except MarriageCertificate.DoesNotExist:
            raise NotFound("No certificate has been uploaded for this case.")
