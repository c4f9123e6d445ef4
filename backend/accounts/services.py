"""
Accounts Service Layer.

Views stay *thin*: they validate input through serializers, call a
service method, and wrap the result in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — new-user creation.
- ``CurrentUserService``       — "Me" endpoint helpers (profile, password).
- ``ShaykhDirectoryService``   — admin onboarding, removal and lookup of
                                 assignable scholars.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from core.domain.access import require_role
from core.domain.exceptions import Conflict, NotFound, ValidationError

from .roles import UserRole

User = get_user_model()

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:

    @staticmethod
    def register_user(validated_data: dict[str, Any]) -> User:
        """
        Create a new user with the ``user`` role.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer``.

        Returns
        -------
        User
            The newly created (and saved) ``User`` instance.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username or email is already taken.
        """
        validated_data.pop("password_confirm", None)
        password = validated_data.pop("password")

        conflicts = []
        if User.objects.filter(username=validated_data.get("username")).exists():
            conflicts.append("username")
        if User.objects.filter(email__iexact=validated_data.get("email")).exists():
            conflicts.append("email")
        if conflicts:
            raise Conflict(
                f"The following field(s) already exist: {', '.join(conflicts)}."
            )

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    password=password,
                    role=UserRole.USER,
                    **validated_data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with one of the provided unique fields already exists."
            )

        logger.info("Registered user %s (pk=%s)", user.username, user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:

    @staticmethod
    def get_profile(user: User) -> User:
        return user

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the authenticated user's own profile fields.

        Parameters
        ----------
        user : User
            The currently authenticated user.
        validated_data : dict
            Cleaned fields from ``MeUpdateSerializer`` (email,
            phone_number, first_name, last_name).

        Returns
        -------
        User
            The updated user.
        """
        if not validated_data:
            return user
        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=list(validated_data.keys()))
        logger.info("User %s updated profile fields %s", user.pk, sorted(validated_data))
        return user

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> None:
        """
        Replace the user's password after re-checking the current one.

        Raises
        ------
        core.domain.exceptions.ValidationError
            If ``current_password`` is wrong.
        """
        if not user.check_password(current_password):
            raise ValidationError(
                "The current password is incorrect.",
                errors={"current_password": "Incorrect password."},
            )
        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info("User %s changed their password", user.pk)


# ═══════════════════════════════════════════════════════════════════
#  Shaykh Directory
# ═══════════════════════════════════════════════════════════════════


class ShaykhDirectoryService:
    """
    Administrators onboard shaykhs, remove them, and pick from the
    active ones when assigning a case.
    """

    @staticmethod
    def list_shaykhs(requesting_user: User) -> QuerySet:
        require_role(requesting_user, UserRole.ADMIN)
        return (
            User.objects
            .filter(role=UserRole.SHAYKH, is_active=True)
            .order_by("first_name", "last_name", "username")
        )

    @staticmethod
    def ensure_can_manage(requesting_user: User) -> None:
        """Only admins onboard or remove shaykhs."""
        require_role(requesting_user, UserRole.ADMIN)

    @staticmethod
    def create_shaykh(requesting_user: User, validated_data: dict[str, Any]) -> User:
        """
        Create a new account with the ``shaykh`` role.

        Parameters
        ----------
        requesting_user : User
            Must be an admin.
        validated_data : dict
            Cleaned data from ``ShaykhCreateSerializer``.

        Raises
        ------
        PermissionDenied
            ``role_not_permitted`` for non-admins.
        Conflict
            If the username or email is already taken.
        """
        ShaykhDirectoryService.ensure_can_manage(requesting_user)
        data = dict(validated_data)
        password = data.pop("password")

        if User.objects.filter(email__iexact=data.get("email")).exists():
            raise Conflict("The following field(s) already exist: email.")
        try:
            with transaction.atomic():
                shaykh = User.objects.create_user(
                    password=password,
                    role=UserRole.SHAYKH,
                    **data,
                )
        except IntegrityError:
            raise Conflict(
                "A user with one of the provided unique fields already exists."
            )

        logger.info(
            "Admin %s onboarded shaykh %s (pk=%s)",
            requesting_user.pk, shaykh.username, shaykh.pk,
        )
        return shaykh

    @staticmethod
    def remove_shaykh(requesting_user: User, shaykh_id: Any) -> User:
        """
        Deactivate a shaykh account.

        The row is kept because cases, answers and feedback reference
        it; a deactivated shaykh can no longer log in, is hidden from the
        directory and cannot be assigned to new cases.

        Raises
        ------
        PermissionDenied
            ``role_not_permitted`` for non-admins.
        NotFound
            If no active shaykh has that id.
        """
        ShaykhDirectoryService.ensure_can_manage(requesting_user)
        try:
            shaykh = User.objects.get(pk=shaykh_id, role=UserRole.SHAYKH, is_active=True)
        except (User.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Shaykh with id={shaykh_id} not found.")

        shaykh.is_active = False
        shaykh.save(update_fields=["is_active"])
        logger.info("Admin %s removed shaykh %s", requesting_user.pk, shaykh.pk)
        return shaykh

    @staticmethod
    def find_user(user_id: Any) -> User | None:
        """
        Look up an active user by primary key, or ``None``.

        Does not check the role; the case workflow decides
        whether the user is assignable, after it has authorized the
        requesting actor.
        """
        if user_id in (None, ""):
            return None
        try:
            return User.objects.filter(pk=user_id, is_active=True).first()
        except (ValueError, TypeError):
            return None
