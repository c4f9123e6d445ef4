"""
core.domain.transactions — Row locking for serialized writes.

Every mutating case operation follows the same shape::

    with transaction.atomic():
        locked = lock_for_update(Case, pk)   # SELECT ... FOR UPDATE
        ...decide and write...

so that two concurrent requests against the same row are applied one
after the other and the second one sees the first one's result.
"""

from __future__ import annotations

from typing import Any

from django.db import models

from core.domain.exceptions import NotFound


def lock_for_update(queryset_or_model, pk: Any):
    """
    Acquire a row-level lock on a single row.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        queryset_or_model: A model class or a queryset (use a queryset to
                           add ``select_related`` for the locked row).
        pk:                Primary key value, possibly straight from the URL.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists, or the PK is malformed.
    """
    if isinstance(queryset_or_model, models.QuerySet):
        queryset = queryset_or_model
    else:
        queryset = queryset_or_model.objects.all()
    model_class = queryset.model
    try:
        return queryset.select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")
