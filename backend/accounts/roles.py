"""
Global actor roles.

Kept free of model imports so the pure workflow package in ``cases``
can depend on it without loading the app registry.
"""

from django.db import models


class UserRole(models.TextChoices):
    """The three global roles an authenticated actor may hold."""

    USER = "user", "User"
    SHAYKH = "shaykh", "Shaykh"
    ADMIN = "admin", "Administrator"
