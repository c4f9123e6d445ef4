"""
Tests for ``CaseRepository``: record conversion, version compare-and-set
and child-row persistence.
"""

from __future__ import annotations

import datetime
from dataclasses import replace

from django.contrib.auth import get_user_model
from django.db import transaction
from django.test import TestCase

from accounts.roles import UserRole
from cases.models import Case, FeedbackEntry, Meeting
from cases.repository import CaseRepository
from cases.workflow.config import CaseType, CounselStatus, MeetingStatus
from cases.workflow.records import FeedbackRecord, MeetingRecord
from core.domain.exceptions import Conflict, NotFound

User = get_user_model()


class TestCaseRepository(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(
            username="repo_owner", email="repo_owner@example.com", password="Repo!Pass2025",
        )
        cls.shaykh = User.objects.create_user(
            username="repo_shaykh", email="repo_shaykh@example.com",
            password="Repo!Pass2025", role=UserRole.SHAYKH,
        )

    def setUp(self):
        self.record = CaseRepository.insert(
            case_type=CaseType.RECONCILIATION,
            status=CounselStatus.PENDING,
            created_by_id=self.owner.pk,
            details={"issue_description": "Test"},
        )

    def test_insert_round_trip(self):
        self.assertIsNotNone(self.record.id)
        self.assertEqual(self.record.status, CounselStatus.PENDING)
        self.assertEqual(self.record.created_by, self.owner.pk)
        self.assertEqual(self.record.details, {"issue_description": "Test"})
        self.assertEqual(self.record.version, 0)
        self.assertEqual(self.record.meetings, ())

    def test_save_bumps_version(self):
        saved = CaseRepository.save(
            replace(self.record, status=CounselStatus.ASSIGNED, assigned_to=self.shaykh.pk),
        )
        self.assertEqual(saved.version, 1)
        self.assertEqual(saved.status, CounselStatus.ASSIGNED)
        self.assertEqual(saved.assigned_to, self.shaykh.pk)
        self.assertEqual(Case.objects.get(pk=self.record.id).version, 1)

    def test_stale_save_is_a_conflict(self):
        CaseRepository.save(replace(self.record, shaykh_notes="first"))
        with self.assertRaises(Conflict):
            with transaction.atomic():
                CaseRepository.save(replace(self.record, shaykh_notes="second"))
        self.assertEqual(Case.objects.get(pk=self.record.id).shaykh_notes, "first")

    def test_save_of_deleted_case_is_not_found(self):
        Case.objects.filter(pk=self.record.id).delete()
        with self.assertRaises(NotFound):
            CaseRepository.save(self.record)

    def test_load_unknown_case(self):
        with self.assertRaises(NotFound):
            CaseRepository.load(987654)
        with self.assertRaises(NotFound):
            with transaction.atomic():
                CaseRepository.load(987654, for_update=True)

    def test_new_children_are_inserted_and_existing_updated(self):
        meeting = MeetingRecord(
            date=datetime.date(2025, 5, 1),
            time=datetime.time(10, 0),
            location="Office",
            scheduled_by=self.owner.pk,
        )
        entry = FeedbackRecord(
            author_id=self.owner.pk,
            author_role=UserRole.USER,
            comment="Please call me first.",
            date=datetime.datetime(2025, 4, 20, 8, 0, tzinfo=datetime.timezone.utc),
        )
        saved = CaseRepository.save(
            replace(self.record, meetings=(meeting,), feedback=(entry,)),
        )
        self.assertEqual(Meeting.objects.filter(case_id=saved.id).count(), 1)
        self.assertEqual(FeedbackEntry.objects.filter(case_id=saved.id).count(), 1)
        self.assertIsNotNone(saved.meetings[0].id)
        self.assertIsNotNone(saved.feedback[0].id)

        completed = replace(saved.meetings[0], status=MeetingStatus.COMPLETED)
        again = CaseRepository.save(replace(saved, meetings=(completed,)))
        self.assertEqual(again.meetings[0].status, MeetingStatus.COMPLETED)
        self.assertEqual(Meeting.objects.filter(case_id=saved.id).count(), 1)
        # Feedback already stored is not duplicated.
        self.assertEqual(FeedbackEntry.objects.filter(case_id=saved.id).count(), 1)
