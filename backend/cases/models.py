"""
Cases app models.

The ``Case`` aggregate covers all three council workflows (fatwa queries,
marriage applications, family reconciliation).  Type-specific request
data (question text, spouse details, ...) lives in ``details``; the
columns are the fields the state machine itself reads or writes.

Rows are only ever written through ``cases.repository.CaseRepository``
so that status changes pass through ``cases.workflow.TransitionEngine``.
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from core.models import TimeStampedModel

from .workflow.config import (
    CASE_TYPE_CONFIGS,
    CaseAction,
    CaseType,
    CompletionOutcome,
    MeetingStatus,
    all_status_choices,
)

STATUS_CHOICES = all_status_choices()


class Case(TimeStampedModel):
    """
    A single council case moving through its type's status lifecycle.

    ``version`` increments on every save through the repository and is
    the compare-and-set token guarding against lost updates.
    """

    case_type = models.CharField(
        max_length=20,
        choices=CaseType.choices,
        verbose_name="Case Type",
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        db_index=True,
        verbose_name="Current Status",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_cases",
        verbose_name="Created By",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_cases",
        verbose_name="Assigned Shaykh",
    )
    details = models.JSONField(
        default=dict,
        encoder=DjangoJSONEncoder,
        blank=True,
        verbose_name="Request Details",
    )

    # ── Fields written by the state machine ──────────────────────────
    answer = models.TextField(blank=True, default="", verbose_name="Answer")
    answered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="answered_cases",
        verbose_name="Answered By",
    )
    review_comment = models.TextField(blank=True, default="", verbose_name="Review Comment")
    outcome = models.CharField(
        max_length=20,
        choices=CompletionOutcome.choices,
        blank=True,
        default="",
        verbose_name="Outcome",
    )
    outcome_details = models.TextField(blank=True, default="", verbose_name="Outcome Details")
    shaykh_notes = models.TextField(blank=True, default="", verbose_name="Shaykh Notes")
    cancellation_reason = models.TextField(
        blank=True,
        default="",
        verbose_name="Cancellation Reason",
    )

    version = models.PositiveIntegerField(default=0, verbose_name="Version")

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["case_type", "status"], name="case_type_status_idx"),
        ]

    def __str__(self):
        return f"Case #{self.pk}: {self.get_case_type_display()} ({self.status})"

    def clean(self):
        super().clean()
        cfg = CASE_TYPE_CONFIGS.get(self.case_type)
        if cfg is not None and not cfg.is_valid_status(self.status):
            raise ValidationError(
                {"status": f"'{self.status}' is not a {self.case_type} status."}
            )


class Meeting(TimeStampedModel):
    """A session between the parties and the council; never deleted."""

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="meetings",
        verbose_name="Case",
    )
    date = models.DateField(verbose_name="Date")
    time = models.TimeField(verbose_name="Time")
    location = models.CharField(max_length=255, verbose_name="Location")
    notes = models.TextField(blank=True, default="", verbose_name="Notes")
    status = models.CharField(
        max_length=20,
        choices=MeetingStatus.choices,
        default=MeetingStatus.SCHEDULED,
        verbose_name="Status",
    )
    scheduled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scheduled_meetings",
        verbose_name="Scheduled By",
    )

    class Meta:
        verbose_name = "Meeting"
        verbose_name_plural = "Meetings"
        ordering = ["id"]

    def __str__(self):
        return f"Meeting #{self.pk} for Case #{self.case_id} on {self.date} ({self.status})"


class FeedbackEntry(TimeStampedModel):
    """
    Append-only comment on a case.

    ``author_role`` is the author's role when the entry was written and
    is never updated afterwards.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="feedback",
        verbose_name="Case",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="case_feedback",
        verbose_name="Author",
    )
    author_role = models.CharField(max_length=16, verbose_name="Author Role")
    comment = models.TextField(verbose_name="Comment")
    date = models.DateTimeField(verbose_name="Date")

    class Meta:
        verbose_name = "Feedback Entry"
        verbose_name_plural = "Feedback Entries"
        ordering = ["id"]

    def __str__(self):
        return f"Feedback #{self.pk} on Case #{self.case_id} by {self.author_role}"


class CaseStatusLog(TimeStampedModel):
    """
    Immutable audit trail of case creation and every applied action.

    Self-loop actions (feedback, notes, meeting edits) are logged too,
    with ``from_status == to_status``.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Case",
    )
    from_status = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Previous Status",
    )
    to_status = models.CharField(
        max_length=20,
        verbose_name="New Status",
    )
    action = models.CharField(
        max_length=30,
        blank=True,
        default="",
        choices=CaseAction.choices,
        verbose_name="Action",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="case_status_changes",
        verbose_name="Changed By",
    )
    message = models.TextField(
        blank=True,
        default="",
        verbose_name="Message",
    )

    class Meta:
        verbose_name = "Case Status Log"
        verbose_name_plural = "Case Status Logs"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return (
            f"Case #{self.case_id}: "
            f"{self.from_status or '∅'} → {self.to_status} ({self.action or 'created'})"
        )


class MarriageCertificate(TimeStampedModel):
    """
    Scanned certificate attached to a marriage case of the ``certificate``
    application type.  At most one per case.
    """

    case = models.OneToOneField(
        Case,
        on_delete=models.CASCADE,
        related_name="certificate",
        verbose_name="Case",
    )
    certificate_number = models.CharField(max_length=64, verbose_name="Certificate Number")
    file = models.FileField(upload_to="certificates/%Y/%m/", verbose_name="File")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="uploaded_certificates",
        verbose_name="Uploaded By",
    )

    class Meta:
        verbose_name = "Marriage Certificate"
        verbose_name_plural = "Marriage Certificates"

    def __str__(self):
        return f"Certificate {self.certificate_number} for Case #{self.case_id}"
