"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.

View Map
--------
- ``RegisterView``    — POST /auth/register/
- ``LoginView``       — POST /auth/login/
- ``MeView``              — GET/PATCH /me/
- ``PasswordChangeView``  — POST /me/password/
- ``ShaykhListView``      — GET/POST  /shaykhs/        (admin)
- ``ShaykhDetailView``    — DELETE    /shaykhs/{id}/   (admin)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    CustomTokenObtainPairSerializer,
    MeUpdateSerializer,
    PasswordChangeSerializer,
    RegisterRequestSerializer,
    ShaykhCreateSerializer,
    ShaykhSerializer,
    UserDetailSerializer,
)
from .services import CurrentUserService, ShaykhDirectoryService, UserRegistrationService


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


@extend_schema(tags=["Auth"], responses={201: UserDetailSerializer})
class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new user with the ``user`` role.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = RegisterRequestSerializer

    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  ``identifier`` may be a username or an email.
    Returns ``{"access", "refresh", "user"}``.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["Auth"],
        request=CustomTokenObtainPairSerializer,
        responses={200: OpenApiResponse(description="JWT pair plus user profile.")},
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = dict(serializer.validated_data)
        payload["user"] = UserDetailSerializer(serializer.user).data
        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → the authenticated user's profile.
    PATCH /api/accounts/me/ → update own email, phone and name.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], responses={200: UserDetailSerializer})
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data)

    @extend_schema(
        tags=["Auth"],
        request=MeUpdateSerializer,
        responses={200: UserDetailSerializer},
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(
            instance=request.user, data=request.data, partial=True,
        )
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data)


class PasswordChangeView(APIView):
    """POST /api/accounts/me/password/ → change own password."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Auth"],
        request=PasswordChangeSerializer,
        responses={204: OpenApiResponse(description="Password changed.")},
    )
    def post(self, request: Request) -> Response:
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CurrentUserService.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════
#  Shaykh Directory
# ═══════════════════════════════════════════════════════════════════


class ShaykhListView(APIView):
    """
    GET  /api/accounts/shaykhs/ → active shaykhs (admin only).
    POST /api/accounts/shaykhs/ → onboard a new shaykh (admin only).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Users"], responses={200: ShaykhSerializer(many=True)})
    def get(self, request: Request) -> Response:
        shaykhs = ShaykhDirectoryService.list_shaykhs(request.user)
        return Response(ShaykhSerializer(shaykhs, many=True).data)

    @extend_schema(
        tags=["Users"],
        request=ShaykhCreateSerializer,
        responses={201: ShaykhSerializer},
    )
    def post(self, request: Request) -> Response:
        # Non-admins are turned away before their payload is looked at.
        ShaykhDirectoryService.ensure_can_manage(request.user)
        serializer = ShaykhCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shaykh = ShaykhDirectoryService.create_shaykh(request.user, serializer.validated_data)
        return Response(ShaykhSerializer(shaykh).data, status=status.HTTP_201_CREATED)


class ShaykhDetailView(APIView):
    """DELETE /api/accounts/shaykhs/{id}/ → deactivate a shaykh (admin only)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Users"],
        responses={
            204: OpenApiResponse(description="Shaykh deactivated."),
            404: OpenApiResponse(description="No active shaykh with that id."),
        },
    )
    def delete(self, request: Request, pk=None) -> Response:
        ShaykhDirectoryService.remove_shaykh(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
