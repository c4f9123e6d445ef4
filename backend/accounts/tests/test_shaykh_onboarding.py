"""
Integration tests — admin onboarding and removal of shaykhs.

Endpoints under test:
    POST   /api/accounts/shaykhs/        (named URL: accounts:shaykh-list)
    DELETE /api/accounts/shaykhs/{id}/   (named URL: accounts:shaykh-detail)
"""

from __future__ import annotations

import pytest
from django.urls import reverse

from accounts.models import User
from accounts.roles import UserRole

_SHAYKH_PAYLOAD = {
    "username": "shaykh_hamza",
    "password": "Shaykh!Pass2025",
    "email": "hamza@council.example",
    "first_name": "Hamza",
    "last_name": "Ali",
    "phone_number": "+44 20 7946 0000",
}


@pytest.mark.django_db
class TestShaykhOnboarding:

    def test_admin_creates_shaykh(self, api_client, create_user):
        api_client.force_authenticate(user=create_user(role=UserRole.ADMIN))

        response = api_client.post(reverse("accounts:shaykh-list"), _SHAYKH_PAYLOAD, format="json")

        assert response.status_code == 201, response.data
        assert response.data["username"] == "shaykh_hamza"
        assert response.data["full_name"] == "Hamza Ali"
        assert "password" not in response.data
        shaykh = User.objects.get(username="shaykh_hamza")
        assert shaykh.role == UserRole.SHAYKH
        assert shaykh.check_password("Shaykh!Pass2025")

    def test_new_shaykh_can_log_in_and_appears_in_directory(self, api_client, create_user):
        admin = create_user(role=UserRole.ADMIN)
        api_client.force_authenticate(user=admin)
        api_client.post(reverse("accounts:shaykh-list"), _SHAYKH_PAYLOAD, format="json")

        listing = api_client.get(reverse("accounts:shaykh-list"))
        assert [row["username"] for row in listing.data] == ["shaykh_hamza"]

        api_client.force_authenticate(user=None)
        login = api_client.post(
            reverse("accounts:login"),
            {"identifier": "hamza@council.example", "password": "Shaykh!Pass2025"},
            format="json",
        )
        assert login.status_code == 200
        assert login.data["user"]["role"] == "shaykh"

    @pytest.mark.parametrize("role", [UserRole.USER, UserRole.SHAYKH])
    def test_non_admin_is_forbidden_even_with_bad_payload(self, api_client, create_user, role):
        api_client.force_authenticate(user=create_user(role=role))

        response = api_client.post(reverse("accounts:shaykh-list"), {"email": "x"}, format="json")

        assert response.status_code == 403
        assert response.data["code"] == "role_not_permitted"

    def test_missing_fields(self, api_client, create_user):
        api_client.force_authenticate(user=create_user(role=UserRole.ADMIN))
        payload = {k: v for k, v in _SHAYKH_PAYLOAD.items() if k not in ("email", "last_name")}

        response = api_client.post(reverse("accounts:shaykh-list"), payload, format="json")

        assert response.status_code == 400
        assert "email" in response.data
        assert "last_name" in response.data

    def test_email_taken_with_other_letter_case_is_conflict(self, api_client, create_user):
        create_user(username="existing", email="Hamza@Council.example")
        api_client.force_authenticate(user=create_user(role=UserRole.ADMIN))

        response = api_client.post(reverse("accounts:shaykh-list"), _SHAYKH_PAYLOAD, format="json")

        assert response.status_code == 409
        assert not User.objects.filter(username="shaykh_hamza").exists()


@pytest.mark.django_db
class TestShaykhRemoval:

    def test_admin_deactivates_shaykh(self, api_client, create_user):
        shaykh = create_user(username="leaving_shaykh", role=UserRole.SHAYKH)
        api_client.force_authenticate(user=create_user(role=UserRole.ADMIN))

        response = api_client.delete(reverse("accounts:shaykh-detail", kwargs={"pk": shaykh.pk}))

        assert response.status_code == 204
        shaykh.refresh_from_db()
        assert shaykh.is_active is False
        assert api_client.get(reverse("accounts:shaykh-list")).data == []

    def test_removed_shaykh_cannot_be_assigned(self, api_client, create_user):
        owner = create_user()
        shaykh = create_user(role=UserRole.SHAYKH)
        admin = create_user(role=UserRole.ADMIN)

        api_client.force_authenticate(user=owner)
        case = api_client.post(
            reverse("case-list"),
            {
                "case_type": "fatwa",
                "details": {"title": "Inheritance", "question": "How is the estate divided?"},
            },
            format="json",
        )
        assert case.status_code == 201, case.data

        api_client.force_authenticate(user=admin)
        api_client.delete(reverse("accounts:shaykh-detail", kwargs={"pk": shaykh.pk}))
        response = api_client.post(
            reverse("case-assign", kwargs={"pk": case.data["id"]}),
            {"shaykh_id": shaykh.pk},
            format="json",
        )

        assert response.status_code == 400
        assert "assignee" in response.data["errors"]

    def test_regular_user_id_is_not_found(self, api_client, create_user):
        user = create_user()
        api_client.force_authenticate(user=create_user(role=UserRole.ADMIN))

        response = api_client.delete(reverse("accounts:shaykh-detail", kwargs={"pk": user.pk}))

        assert response.status_code == 404
        user.refresh_from_db()
        assert user.is_active is True

    def test_non_admin_is_forbidden(self, api_client, create_user):
        shaykh = create_user(role=UserRole.SHAYKH)
        api_client.force_authenticate(user=create_user())

        response = api_client.delete(reverse("accounts:shaykh-detail", kwargs={"pk": shaykh.pk}))

        assert response.status_code == 403
        shaykh.refresh_from_db()
        assert shaykh.is_active is True
