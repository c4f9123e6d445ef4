"""
core.domain.exception_handler — DRF-compatible global exception handler.

Maps domain exceptions from ``core.domain.exceptions`` to proper
DRF ``Response`` objects so that views don't need per-endpoint
try/except boilerplate.

Registered in ``council/settings.py``::

    REST_FRAMEWORK = {
        ...
        'EXCEPTION_HANDLER': 'core.domain.exception_handler.domain_exception_handler',
    }

Response body: ``{"detail": ..., "code": ...}`` plus ``"errors"`` for
``ValidationError``.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    NotFound,
    PermissionDenied,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Domain exception → HTTP status code
_STATUS_MAP: dict[type, int] = {
    PermissionDenied: 403,
    NotFound:         404,
    Conflict:         409,  # includes InvalidTransition
    ValidationError:  400,
    DomainError:      400,  # catch-all base class last
}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also handles ``core.domain.exceptions``.

    The default DRF handler is called first.  If it returns ``None``
    (meaning DRF doesn't recognise the exception), we check whether
    it's one of our domain exceptions and return an appropriate response.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            logger.warning(
                "Domain exception [%s/%s] in %s: %s",
                type(exc).__name__,
                exc.code,
                context.get("view", "unknown"),
                exc,
            )
            body = {"detail": str(exc), "code": exc.code}
            if isinstance(exc, ValidationError) and exc.errors:
                body["errors"] = exc.errors
            return Response(body, status=status_code)

    # Not a domain error; let DRF handle it
    return None
