"""
Integration tests — marriage certificate upload and lookup.

Endpoints under test:
    PUT /api/cases/{id}/certificate/   (multipart; named URL: case-certificate)
    GET /api/cases/{id}/certificate/
"""

from __future__ import annotations

import shutil
import tempfile

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.roles import UserRole
from cases.models import Case, CaseStatusLog, MarriageCertificate

User = get_user_model()

_PASSWORD = "Certify!2025"

_MEDIA_ROOT = tempfile.mkdtemp()

_CERTIFICATE_DETAILS = {
    "type": "certificate",
    "partner_one": {"first_name": "Adam", "last_name": "Khan", "date_of_birth": "1994-02-11"},
    "partner_two": {"first_name": "Sara", "last_name": "Ali", "date_of_birth": "1996-07-30"},
    "marriage_date": "2024-12-01",
    "marriage_place": "Leicester",
    "witnesses": [{"name": "Bilal Ahmed"}],
}

_RESERVATION_DETAILS = {
    "type": "reservation",
    "partner_one": {"first_name": "Adam", "last_name": "Khan"},
    "partner_two": {"first_name": "Sara", "last_name": "Ali"},
    "preferred_date": "2025-09-20",
    "preferred_time": "16:00",
    "preferred_location": "Main prayer hall",
}


def _pdf(name: str = "certificate.pdf") -> SimpleUploadedFile:
    return SimpleUploadedFile(name, b"%PDF-1.4 test certificate", content_type="application/pdf")


@override_settings(MEDIA_ROOT=_MEDIA_ROOT)
class TestMarriageCertificate(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="cert_admin", email="cert_admin@example.com",
            password=_PASSWORD, role=UserRole.ADMIN,
        )
        cls.shaykh = User.objects.create_user(
            username="cert_shaykh", email="cert_shaykh@example.com",
            password=_PASSWORD, role=UserRole.SHAYKH,
        )
        cls.owner = User.objects.create_user(
            username="cert_owner", email="cert_owner@example.com", password=_PASSWORD,
        )

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(_MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.client = APIClient()

    def login_as(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.email, "password": _PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def create_case(self, details: dict = _CERTIFICATE_DETAILS, assign: bool = True) -> int:
        self.login_as(self.owner)
        resp = self.client.post(
            reverse("case-list"),
            {"case_type": "marriage", "details": details},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        case_id = resp.data["id"]
        if assign:
            self.login_as(self.admin)
            resp = self.client.post(
                reverse("case-assign", kwargs={"pk": case_id}),
                {"shaykh_id": self.shaykh.pk},
                format="json",
            )
            self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        return case_id

    def upload(self, case_id: int, number: str = "MC-2025-0042", file=None):
        body = {"certificate_number": number}
        if file is not False:
            body["certificate"] = file or _pdf()
        return self.client.put(
            reverse("case-certificate", kwargs={"pk": case_id}), body, format="multipart",
        )

    def test_assigned_shaykh_uploads_certificate(self):
        case_id = self.create_case()
        self.login_as(self.shaykh)

        resp = self.upload(case_id)

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["certificate_number"], "MC-2025-0042")
        self.assertEqual(resp.data["uploaded_by"]["id"], self.shaykh.pk)
        self.assertTrue(resp.data["url"].startswith("http://testserver/media/certificates/"))

        case = Case.objects.get(pk=case_id)
        self.assertEqual(case.status, "assigned")
        self.assertTrue(MarriageCertificate.objects.filter(case=case).exists())
        log = CaseStatusLog.objects.filter(case=case).latest("id")
        self.assertEqual((log.from_status, log.to_status), ("assigned", "assigned"))
        self.assertIn("MC-2025-0042", log.message)

    def test_owner_reads_certificate_after_upload(self):
        case_id = self.create_case()
        self.login_as(self.shaykh)
        self.upload(case_id)

        self.login_as(self.owner)
        resp = self.client.get(reverse("case-certificate", kwargs={"pk": case_id}))

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["certificate_number"], "MC-2025-0042")

    def test_lookup_before_upload_is_not_found(self):
        case_id = self.create_case()

        resp = self.client.get(reverse("case-certificate", kwargs={"pk": case_id}))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "not_found")

    def test_second_upload_is_conflict(self):
        case_id = self.create_case()
        self.login_as(self.admin)
        self.assertEqual(self.upload(case_id).status_code, status.HTTP_201_CREATED)

        resp = self.upload(case_id, number="MC-2025-0043", file=_pdf("again.pdf"))

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(
            MarriageCertificate.objects.get(case_id=case_id).certificate_number, "MC-2025-0042",
        )

    def test_owner_cannot_upload(self):
        case_id = self.create_case()
        self.login_as(self.owner)

        resp = self.upload(case_id, number="", file=False)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["code"], "not_assigned")

    def test_reservation_has_no_certificate(self):
        case_id = self.create_case(details=_RESERVATION_DETAILS)
        self.login_as(self.shaykh)

        resp = self.upload(case_id)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "wrong_status")
        self.assertFalse(MarriageCertificate.objects.exists())

    def test_pending_application_is_wrong_status(self):
        case_id = self.create_case(assign=False)
        self.login_as(self.admin)

        resp = self.upload(case_id)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "wrong_status")

    def test_missing_number_and_file(self):
        case_id = self.create_case()
        self.login_as(self.shaykh)

        resp = self.upload(case_id, number="  ", file=False)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "validation_error")
        self.assertIn("certificate_number", resp.data["errors"])
        self.assertIn("certificate", resp.data["errors"])
