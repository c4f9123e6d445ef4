"""
core.domain.access — Role-scoped queryset selectors (shared patterns).

Each app's ``services.py`` owns its own scope-rules list; this module only
provides the ordered dispatch and a role guard.

Usage in an app's service layer::

    from core.domain.access import apply_role_scope

    CASE_SCOPE_RULES = [
        (UserRole.ADMIN,  lambda qs, u: qs),
        (UserRole.SHAYKH, lambda qs, u: qs.filter(assigned_to=u)),
        (UserRole.USER,   lambda qs, u: qs.filter(created_by=u)),
    ]

    qs = apply_role_scope(Case.objects.all(), user, scope_rules=CASE_SCOPE_RULES)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

if TYPE_CHECKING:
    from accounts.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# (role value, filter_fn)
ScopeRule = tuple[str, ScopeFilter]


def apply_role_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_rules: list[ScopeRule],
    default: str = "none",
) -> QuerySet:
    """
    Apply the first scope rule whose role matches ``user.role``.

    Rules are checked **in order** — first match wins.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_rules:  Ordered list of ``(role, filter_fn)`` tuples.
        default:      ``"none"`` (default) → empty queryset when no rule
                      matches; ``"all"`` → return unfiltered.

    Returns:
        The (possibly filtered) queryset.
    """
    role = getattr(user, "role", None)
    for rule_role, filter_fn in scope_rules:
        if role == rule_role:
            return filter_fn(queryset, user)

    if default == "none":
        return queryset.none()
    return queryset


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` unless ``user.role`` is one of
    ``allowed_roles``.

    Raises:
        core.domain.exceptions.PermissionDenied: with reason
            ``role_not_permitted``.
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    role = getattr(user, "role", None)
    if role not in allowed_roles:
        raise DomainPermissionDenied(
            message
            or f"Role '{role}' is not permitted for this operation. "
            f"Required: {', '.join(str(r) for r in allowed_roles)}.",
            reason="role_not_permitted",
        )
