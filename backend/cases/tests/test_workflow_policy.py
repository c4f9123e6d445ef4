"""
Unit tests for ``cases.workflow.policy``.

Actors and cases are plain records; nothing touches the database.
"""

from __future__ import annotations

from django.test import SimpleTestCase

from accounts.roles import UserRole
from cases.workflow.config import CaseAction, CaseType, CounselStatus, FatwaStatus
from cases.workflow.policy import (
    DenyReason,
    allowed_actions,
    authorize,
    can_view_shaykh_notes,
)
from cases.workflow.records import Actor, CaseRecord

ADMIN = Actor(actor_id=1, role=UserRole.ADMIN)
SHAYKH = Actor(actor_id=2, role=UserRole.SHAYKH)
OWNER = Actor(actor_id=3, role=UserRole.USER)
OUTSIDER = Actor(actor_id=4, role=UserRole.USER)
OTHER_SHAYKH = Actor(actor_id=5, role=UserRole.SHAYKH)


def _fatwa(status=FatwaStatus.PENDING, assigned_to=None) -> CaseRecord:
    return CaseRecord(
        id=10,
        case_type=CaseType.FATWA,
        status=status,
        created_by=OWNER.actor_id,
        assigned_to=assigned_to,
    )


def _reconciliation(status=CounselStatus.PENDING, assigned_to=None) -> CaseRecord:
    return CaseRecord(
        id=20,
        case_type=CaseType.RECONCILIATION,
        status=status,
        created_by=OWNER.actor_id,
        assigned_to=assigned_to,
    )


class TestAuthorize(SimpleTestCase):

    def test_admin_may_assign_pending_case(self):
        self.assertTrue(authorize(ADMIN, _fatwa(), CaseAction.ASSIGN))

    def test_owner_may_not_assign(self):
        decision = authorize(OWNER, _fatwa(), CaseAction.ASSIGN)
        self.assertFalse(decision)
        self.assertEqual(decision.reason, DenyReason.ROLE_NOT_PERMITTED)

    def test_assign_outside_pending_is_wrong_status(self):
        decision = authorize(ADMIN, _fatwa(FatwaStatus.ASSIGNED, SHAYKH.actor_id), CaseAction.ASSIGN)
        self.assertEqual(decision.reason, DenyReason.WRONG_STATUS)

    def test_only_assigned_shaykh_may_answer(self):
        case = _fatwa(FatwaStatus.ASSIGNED, SHAYKH.actor_id)
        self.assertTrue(authorize(SHAYKH, case, CaseAction.ANSWER))
        for actor in (OTHER_SHAYKH, ADMIN, OWNER):
            decision = authorize(actor, case, CaseAction.ANSWER)
            self.assertEqual(decision.reason, DenyReason.NOT_ASSIGNED, msg=actor)

    def test_approve_and_unapprove_are_admin_only(self):
        case = _fatwa(FatwaStatus.ANSWERED, SHAYKH.actor_id)
        for action in (CaseAction.APPROVE, CaseAction.UNAPPROVE):
            self.assertTrue(authorize(ADMIN, case, action))
            self.assertEqual(
                authorize(SHAYKH, case, action).reason, DenyReason.ROLE_NOT_PERMITTED,
            )

    def test_cancel_by_stranger_is_not_owner(self):
        decision = authorize(OUTSIDER, _reconciliation(), CaseAction.CANCEL)
        self.assertEqual(decision.reason, DenyReason.NOT_OWNER)

    def test_cancel_by_owner_and_admin(self):
        case = _reconciliation(CounselStatus.ASSIGNED, SHAYKH.actor_id)
        self.assertTrue(authorize(OWNER, case, CaseAction.CANCEL))
        self.assertTrue(authorize(ADMIN, case, CaseAction.CANCEL))
        self.assertEqual(authorize(SHAYKH, case, CaseAction.CANCEL).reason, DenyReason.NOT_OWNER)

    def test_complete_requires_admin_or_assignee(self):
        case = _reconciliation(CounselStatus.IN_PROGRESS, SHAYKH.actor_id)
        self.assertTrue(authorize(SHAYKH, case, CaseAction.COMPLETE))
        self.assertTrue(authorize(ADMIN, case, CaseAction.COMPLETE))
        for actor in (OWNER, OUTSIDER, OTHER_SHAYKH):
            self.assertEqual(
                authorize(actor, case, CaseAction.COMPLETE).reason,
                DenyReason.ROLE_NOT_PERMITTED,
            )

    def test_relationship_is_checked_before_status(self):
        # An outsider learns nothing about the case's status.
        case = _reconciliation(CounselStatus.CANCELLED)
        decision = authorize(OUTSIDER, case, CaseAction.CANCEL)
        self.assertEqual(decision.reason, DenyReason.NOT_OWNER)

    def test_fatwa_feedback_only_once_answered(self):
        assigned = _fatwa(FatwaStatus.ASSIGNED, SHAYKH.actor_id)
        answered = _fatwa(FatwaStatus.ANSWERED, SHAYKH.actor_id)
        self.assertEqual(
            authorize(OWNER, assigned, CaseAction.ADD_FEEDBACK).reason,
            DenyReason.WRONG_STATUS,
        )
        self.assertTrue(authorize(OWNER, answered, CaseAction.ADD_FEEDBACK))

    def test_counsel_feedback_open_to_all_parties(self):
        case = _reconciliation(CounselStatus.ASSIGNED, SHAYKH.actor_id)
        for actor in (ADMIN, SHAYKH, OWNER):
            self.assertTrue(authorize(actor, case, CaseAction.ADD_FEEDBACK), msg=actor)
        self.assertFalse(authorize(OUTSIDER, case, CaseAction.ADD_FEEDBACK))

    def test_owner_may_not_write_shaykh_notes(self):
        case = _reconciliation(CounselStatus.ASSIGNED, SHAYKH.actor_id)
        self.assertTrue(authorize(SHAYKH, case, CaseAction.ADD_SHAYKH_NOTES))
        self.assertFalse(authorize(OWNER, case, CaseAction.ADD_SHAYKH_NOTES))

    def test_unknown_action_is_denied(self):
        decision = authorize(ADMIN, _fatwa(), "escalate")
        self.assertEqual(decision.reason, DenyReason.ROLE_NOT_PERMITTED)


class TestNotesVisibility(SimpleTestCase):

    def test_admin_and_assignee_see_notes(self):
        case = _reconciliation(CounselStatus.ASSIGNED, SHAYKH.actor_id)
        self.assertTrue(can_view_shaykh_notes(ADMIN, case))
        self.assertTrue(can_view_shaykh_notes(SHAYKH, case))

    def test_owner_and_other_shaykh_do_not(self):
        case = _reconciliation(CounselStatus.ASSIGNED, SHAYKH.actor_id)
        self.assertFalse(can_view_shaykh_notes(OWNER, case))
        self.assertFalse(can_view_shaykh_notes(OTHER_SHAYKH, case))


class TestAllowedActions(SimpleTestCase):

    def test_admin_on_pending_fatwa(self):
        self.assertEqual(
            allowed_actions(ADMIN, _fatwa()),
            [CaseAction.ASSIGN, CaseAction.ADD_SHAYKH_NOTES],
        )

    def test_owner_on_pending_reconciliation(self):
        self.assertEqual(
            allowed_actions(OWNER, _reconciliation()),
            [
                CaseAction.SCHEDULE_MEETING,
                CaseAction.UPDATE_MEETING,
                CaseAction.ADD_FEEDBACK,
                CaseAction.CANCEL,
            ],
        )

    def test_assignee_on_answered_fatwa_may_only_comment(self):
        case = _fatwa(FatwaStatus.ANSWERED, SHAYKH.actor_id)
        self.assertEqual(
            allowed_actions(SHAYKH, case),
            [CaseAction.ADD_FEEDBACK, CaseAction.ADD_SHAYKH_NOTES],
        )

    def test_terminal_case_offers_nothing(self):
        self.assertEqual(allowed_actions(ADMIN, _fatwa(FatwaStatus.APPROVED, SHAYKH.actor_id)), [])
        self.assertEqual(allowed_actions(OWNER, _reconciliation(CounselStatus.RESOLVED)), [])

    def test_outsider_gets_empty_list(self):
        self.assertEqual(allowed_actions(OUTSIDER, _reconciliation()), [])
