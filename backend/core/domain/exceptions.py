"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations raised at the
service boundary.  They are deliberately **not** DRF exceptions so that
the domain layer stays framework-agnostic; the global handler in
``core.domain.exception_handler`` maps them to HTTP responses.

The case workflow engine itself never raises these for expected
rejections.  It returns a ``TransitionResult`` and the service calls
``raise_for_outcome()`` on it.

Mapping cheatsheet
------------------
┌─────────────────────┬──────┬──────────────────────┐
│ Domain Exception    │ HTTP │ ``code`` in body     │
├─────────────────────┼──────┼──────────────────────┤
│ DomainError         │ 400  │ domain_error         │
│ ValidationError     │ 400  │ validation_error     │
│ PermissionDenied    │ 403  │ deny reason          │
│ NotFound            │ 404  │ not_found            │
│ Conflict            │ 409  │ conflict             │
│ InvalidTransition   │ 409  │ invalid_transition   │
└─────────────────────┴──────┴──────────────────────┘
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    default_code = "domain_error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.default_code


class ValidationError(DomainError):
    """
    An action payload is missing fields or carries malformed values.

    ``errors`` maps field name → message, mirroring the shape of DRF's
    serializer errors so clients can render it next to form inputs.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message or "The request payload is invalid.")
        self.errors = errors or {}


class PermissionDenied(DomainError):
    """
    The actor lacks the role or case relationship the action requires.

    ``reason`` is one of ``cases.workflow.policy.DenyReason``.
    Maps to HTTP 403.
    """

    default_code = "permission_denied"

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
    ) -> None:
        super().__init__(message or "You do not have permission to perform this action.")
        self.reason = reason

    @property
    def code(self) -> str:
        return str(self.reason) if self.reason else self.default_code


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user given their role scope).

    Maps to HTTP 404.
    """

    default_code = "not_found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: stale ``version`` on save.  Maps to HTTP 409.
    """

    default_code = "conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    An action that is not legal from the case's current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="approved",
            target="assign",
            reason="invalid_transition",
        )
    """

    default_code = "invalid_transition"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"'{target}' from '{current}'")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason

    @property
    def code(self) -> str:
        return str(self.reason) if self.reason else self.default_code
