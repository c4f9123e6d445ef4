"""
Accounts app models.

A custom ``User`` extending Django's ``AbstractUser`` with the single
global role the case workflow authorizes against.  Case-specific
relationships (creator, assigned shaykh) live on the case itself.
"""

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from .roles import UserRole


class CouncilUserManager(UserManager):
    """``createsuperuser`` yields a council administrator."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", UserRole.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Registration requires username, password and email.  Login accepts
    either username or email together with the password.

    New users register with the ``user`` role; an administrator promotes
    scholars to ``shaykh`` or staff to ``admin``.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    role = models.CharField(
        max_length=16,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        verbose_name="Role",
    )

    objects = CouncilUserManager()

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_council_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_shaykh(self) -> bool:
        return self.role == UserRole.SHAYKH
