"""
cases.workflow.policy — Centralised actor/action/case authorization.

One declarative table answers "may this actor perform this action on this
case right now?" for every caller: the API layer enforces it, and the
``allowed_actions`` helper exposes the same answer to UIs so they can
hide or disable buttons.  UI copies are advisory; the check that counts
is the one made by the service that commits the mutation.

A rule is met when the actor holds at least ONE of the rule's grants
(OR-logic) **and** the case status passes the rule's status guard:

┌──────────────────┬────────────────────────────┬──────────────────────────┐
│ action           │ grants                     │ status guard             │
├──────────────────┼────────────────────────────┼──────────────────────────┤
│ assign           │ admin                      │ pending                  │
│ answer           │ assignee                   │ assigned                 │
│ approve          │ admin                      │ answered                 │
│ unapprove        │ admin                      │ answered                 │
│ schedule_meeting │ admin, assignee, owner     │ not terminal             │
│ update_meeting   │ admin, assignee, owner     │ not terminal             │
│ add_feedback     │ admin, assignee, owner     │ any (fatwa: answered)    │
│ add_shaykh_notes │ admin, assignee            │ any                      │
│ complete         │ admin, assignee            │ not terminal             │
│ cancel           │ admin, owner               │ not terminal             │
└──────────────────┴────────────────────────────┴──────────────────────────┘

Certificate uploads sit outside the transition table; see
``authorize_certificate_upload``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from django.db import models

from .config import (
    CaseAction,
    CaseType,
    CaseTypeConfig,
    CounselStatus,
    FatwaStatus,
    MarriageApplicationType,
    config_for,
)
from .records import Actor, CaseRecord


class DenyReason(models.TextChoices):
    NOT_ASSIGNED = "not_assigned", "Not the assigned shaykh"
    NOT_OWNER = "not_owner", "Not the case owner"
    WRONG_STATUS = "wrong_status", "Action not available in this status"
    ROLE_NOT_PERMITTED = "role_not_permitted", "Role not permitted"


class Grant(models.TextChoices):
    ADMIN = "admin", "Administrator role"
    ASSIGNEE = "assignee", "Assigned shaykh"
    OWNER = "owner", "Case creator"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> Decision:
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


StatusGuard = Callable[[CaseTypeConfig, str], bool]


def only(*statuses: str) -> StatusGuard:
    allowed = frozenset(statuses)
    return lambda cfg, status: status in allowed


def not_terminal(cfg: CaseTypeConfig, status: str) -> bool:
    return not cfg.is_terminal(status)


def any_status(cfg: CaseTypeConfig, status: str) -> bool:
    return True


@dataclass(frozen=True)
class Rule:
    grants: frozenset[str]
    status_guard: StatusGuard
    deny_reason: str


def _rule(*grants: str, status: StatusGuard, deny: str) -> Rule:
    return Rule(grants=frozenset(grants), status_guard=status, deny_reason=deny)


_ALL_PARTIES = (Grant.ADMIN, Grant.ASSIGNEE, Grant.OWNER)
_MEETING_RULE = _rule(*_ALL_PARTIES, status=not_terminal, deny=DenyReason.ROLE_NOT_PERMITTED)

RULES: dict[str, Rule] = {
    CaseAction.ASSIGN: _rule(
        Grant.ADMIN, status=only(FatwaStatus.PENDING), deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.ANSWER: _rule(
        Grant.ASSIGNEE, status=only(FatwaStatus.ASSIGNED), deny=DenyReason.NOT_ASSIGNED,
    ),
    CaseAction.APPROVE: _rule(
        Grant.ADMIN, status=only(FatwaStatus.ANSWERED), deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.UNAPPROVE: _rule(
        Grant.ADMIN, status=only(FatwaStatus.ANSWERED), deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.SCHEDULE_MEETING: _MEETING_RULE,
    CaseAction.UPDATE_MEETING: _MEETING_RULE,
    CaseAction.ADD_FEEDBACK: _rule(
        *_ALL_PARTIES, status=any_status, deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.ADD_SHAYKH_NOTES: _rule(
        Grant.ADMIN, Grant.ASSIGNEE, status=any_status, deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.COMPLETE: _rule(
        Grant.ADMIN, Grant.ASSIGNEE, status=not_terminal, deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
    CaseAction.CANCEL: _rule(
        Grant.ADMIN, Grant.OWNER, status=not_terminal, deny=DenyReason.NOT_OWNER,
    ),
}

# (action, case_type) → rule, consulted before ``RULES``.
RULE_OVERRIDES: dict[tuple[str, str], Rule] = {
    (CaseAction.ADD_FEEDBACK, CaseType.FATWA): _rule(
        *_ALL_PARTIES, status=only(FatwaStatus.ANSWERED), deny=DenyReason.ROLE_NOT_PERMITTED,
    ),
}


def rule_for(action: str, case_type: str) -> Rule | None:
    return RULE_OVERRIDES.get((action, case_type)) or RULES.get(action)


def grants_held(actor: Actor, case: CaseRecord) -> frozenset[str]:
    """Every grant ``actor`` holds on ``case``."""
    held = set()
    if actor.is_admin:
        held.add(Grant.ADMIN)
    if case.is_assigned_to(actor):
        held.add(Grant.ASSIGNEE)
    if case.is_owned_by(actor):
        held.add(Grant.OWNER)
    return frozenset(held)


def authorize(actor: Actor, case: CaseRecord, action: str) -> Decision:
    """
    Pure predicate: may ``actor`` perform ``action`` on ``case``?

    The relationship check runs before the status guard, so an outsider
    always sees the relationship reason rather than learning about the
    case's status.
    """
    rule = rule_for(action, case.case_type)
    if rule is None:
        return Decision.deny(DenyReason.ROLE_NOT_PERMITTED)

    if not (rule.grants & grants_held(actor, case)):
        return Decision.deny(rule.deny_reason)

    if not rule.status_guard(config_for(case.case_type), case.status):
        return Decision.deny(DenyReason.WRONG_STATUS)

    return Decision.allow()


def can_view_shaykh_notes(actor: Actor, case: CaseRecord) -> bool:
    """Read-side rule: private notes are shown to admins and the assigned shaykh only."""
    return actor.is_admin or case.is_assigned_to(actor)


#: Statuses in which a marriage certificate may be attached.
CERTIFICATE_STATUSES = frozenset({CounselStatus.ASSIGNED, CounselStatus.IN_PROGRESS})


def authorize_certificate_upload(actor: Actor, case: CaseRecord) -> Decision:
    """
    May ``actor`` attach a certificate to ``case``?

    Only marriage cases filed as a ``certificate`` application qualify,
    while the case is assigned or in progress.  The uploader must be an
    admin or the assigned shaykh.  Relationship is checked first, as in
    ``authorize``.
    """
    if not (actor.is_admin or case.is_assigned_to(actor)):
        return Decision.deny(DenyReason.NOT_ASSIGNED)
    if (
        case.case_type != CaseType.MARRIAGE
        or case.details.get("type") != MarriageApplicationType.CERTIFICATE
        or case.status not in CERTIFICATE_STATUSES
    ):
        return Decision.deny(DenyReason.WRONG_STATUS)
    return Decision.allow()


def allowed_actions(actor: Actor, case: CaseRecord) -> list[str]:
    """Actions that would pass the terminal lock, the policy and the table."""
    cfg = config_for(case.case_type)
    if cfg.is_terminal(case.status):
        return []
    return [
        action
        for action in CaseAction.values
        if cfg.targets(case.status, action) is not None
        and authorize(actor, case, action)
    ]
