"""
Integration tests — case submission and per-type ``details`` validation.

Endpoint under test: POST /api/cases/  (named URL: case-list)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from cases.models import Case, CaseStatusLog

User = get_user_model()


def _reservation(**overrides) -> dict:
    details = {
        "type": "reservation",
        "partner_one": {"first_name": "Adam", "last_name": "Khan", "phone": "+1 555 0100"},
        "partner_two": {"first_name": "Sara", "last_name": "Ali", "email": "sara@example.com"},
        "preferred_date": "2025-09-20",
        "preferred_time": "16:00",
        "preferred_location": "Main prayer hall",
    }
    details.update(overrides)
    return details


def _certificate(**overrides) -> dict:
    details = {
        "type": "certificate",
        "partner_one": {"first_name": "Adam", "last_name": "Khan", "date_of_birth": "1994-02-11"},
        "partner_two": {"first_name": "Sara", "last_name": "Ali", "date_of_birth": "1996-07-30"},
        "marriage_date": "2024-12-01",
        "marriage_place": "Leicester",
        "witnesses": [{"name": "Bilal Ahmed"}, {"name": "Hamza Iqbal", "contact": "+44 7700 900123"}],
    }
    details.update(overrides)
    return details


class TestCaseSubmission(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="marriage_applicant",
            email="marriage_applicant@example.com",
            password="Marriage!2025",
        )

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.url = reverse("case-list")

    def submit(self, case_type: str, details: dict):
        return self.client.post(self.url, {"case_type": case_type, "details": details}, format="json")

    def test_reservation_created_pending(self):
        resp = self.submit("marriage", _reservation())
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["case_type"], "marriage")
        self.assertEqual(resp.data["status"], "pending")
        self.assertEqual(resp.data["created_by"]["id"], self.user.pk)
        self.assertIsNone(resp.data["assigned_to"])

        case = Case.objects.get(pk=resp.data["id"])
        self.assertEqual(case.details["preferred_date"], "2025-09-20")
        self.assertEqual(case.details["partner_two"]["first_name"], "Sara")

        log = CaseStatusLog.objects.get(case=case)
        self.assertEqual((log.from_status, log.to_status), ("", "pending"))

    def test_certificate_created(self):
        resp = self.submit("marriage", _certificate())
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(len(resp.data["details"]["witnesses"]), 2)

    def test_reservation_missing_preferences(self):
        resp = self.submit("marriage", _reservation(preferred_location="", preferred_date=None))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("details", resp.data)
        self.assertFalse(Case.objects.exists())

    def test_certificate_requires_witnesses(self):
        resp = self.submit("marriage", _certificate(witnesses=[]))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("witnesses", resp.data["details"])

    def test_certificate_requires_dates_of_birth(self):
        details = _certificate()
        details["partner_one"] = {"first_name": "Adam", "last_name": "Khan"}
        resp = self.submit("marriage", details)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("partner_one", resp.data["details"])

    def test_unknown_application_type(self):
        resp = self.submit("marriage", _reservation(type="engagement"))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fatwa_requires_question(self):
        resp = self.submit("fatwa", {"title": "Prayer times"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("question", resp.data["details"])

    def test_reconciliation_requires_both_parties(self):
        resp = self.submit("reconciliation", {"husband": {"first_name": "A", "last_name": "B"},
                                               "issue_description": "Dispute"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("wife", resp.data["details"])

    def test_unknown_case_type(self):
        resp = self.submit("divorce", {})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("case_type", resp.data)

    def test_status_is_never_client_supplied(self):
        resp = self.client.post(
            self.url,
            {"case_type": "fatwa", "status": "approved",
             "details": {"title": "Fasting", "question": "Is it valid?"}},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["status"], "pending")
