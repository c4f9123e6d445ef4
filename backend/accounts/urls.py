"""
Accounts app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
Authentication
    POST   /auth/register/              → RegisterView
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)

Current User Profile ("Me")
    GET    /me/                         → MeView
    PATCH  /me/                         → MeView
    POST   /me/password/                → PasswordChangeView

Shaykh Directory (admin)
    GET    /shaykhs/                    → ShaykhListView
    POST   /shaykhs/                    → ShaykhListView
    DELETE /shaykhs/<pk>/               → ShaykhDetailView
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    LoginView,
    MeView,
    PasswordChangeView,
    RegisterView,
    ShaykhDetailView,
    ShaykhListView,
)

app_name = "accounts"

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path(
        "auth/token/refresh/",
        TokenRefreshView.as_view(),
        name="token-refresh",
    ),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),
    path("me/password/", PasswordChangeView.as_view(), name="password-change"),

    # ── Directory ────────────────────────────────────────────────────
    path("shaykhs/", ShaykhListView.as_view(), name="shaykh-list"),
    path("shaykhs/<int:pk>/", ShaykhDetailView.as_view(), name="shaykh-detail"),
]
