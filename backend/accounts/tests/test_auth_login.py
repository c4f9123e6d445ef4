"""
Integration tests — login with username or email.

Endpoint under test:  POST /api/accounts/auth/login/
                      (named URL: accounts:login)
Request payload:      {"identifier": "<username|email>", "password": "<password>"}
Success response:     HTTP 200, {"access": "...", "refresh": "...", "user": {...}}
Failure response:     HTTP 400 (CustomTokenObtainPairSerializer.validate)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.roles import UserRole

User = get_user_model()

# ── Constants ────────────────────────────────────────────────────────────────
_PASSWORD = "Str0ng!Pass99"


class TestAuthLoginMultiIdentifier(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="login_test_user",
            email="Login_Test_User@example.com",
            password=_PASSWORD,
            role=UserRole.SHAYKH,
        )

    def setUp(self):
        self.client = APIClient()
        self.login_url = reverse("accounts:login")

    def _login(self, identifier: str, password: str = _PASSWORD):
        return self.client.post(
            self.login_url,
            {"identifier": identifier, "password": password},
            format="json",
        )

    def test_login_with_username(self):
        response = self._login("login_test_user")
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["user"]["id"], self.user.pk)

    def test_login_with_email_is_case_insensitive(self):
        response = self._login("login_test_user@EXAMPLE.com")
        self.assertEqual(response.status_code, status.HTTP_200_OK, msg=response.data)
        self.assertEqual(response.data["user"]["username"], "login_test_user")

    def test_access_token_carries_role_claim(self):
        response = self._login("login_test_user")
        token = AccessToken(response.data["access"])
        self.assertEqual(token["role"], "shaykh")

    def test_wrong_password(self):
        response = self._login("login_test_user", "not-the-password")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("access", response.data)

    def test_unknown_identifier(self):
        response = self._login("nobody@example.com")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_user_cannot_login(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        response = self._login("login_test_user")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_token(self):
        refresh = self._login("login_test_user").data["refresh"]
        response = self.client.post(
            reverse("accounts:token-refresh"), {"refresh": refresh}, format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
