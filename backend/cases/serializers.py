"""
Cases app serializers.

Request and Response serializers for the Cases API.  Serializers handle
field definitions, read/write constraints, and field-level validation
only.  **No business logic or workflow transitions live here** — those
belong in ``services.py`` and ``cases.workflow``.

Workflow action bodies are deliberately lenient (fields optional): the
engine authorizes the actor *before* it checks the payload, and a
strict serializer would answer 400 to an actor who should get 403.

Structure
---------
1. Filter / query-param serializers
2. Per-type ``details`` validators (used on create)
3. Case read serializers (list, detail)
4. Case write serializer (create)
5. Workflow action serializers
6. Sub-resource serializers (meeting, feedback, status log)
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer

from .models import Case, CaseStatusLog, FeedbackEntry, MarriageCertificate, Meeting
from .services import CaseQueryService
from .workflow.config import (
    CaseAction,
    CaseType,
    CompletionOutcome,
    MarriageApplicationType,
    MeetingStatus,
    all_status_choices,
)


# ═══════════════════════════════════════════════════════════════════
#  1. Filters
# ═══════════════════════════════════════════════════════════════════


class CaseFilterSerializer(serializers.Serializer):
    """Validates query parameters for ``GET /api/cases/``."""

    case_type = serializers.ChoiceField(choices=CaseType.choices, required=False)
    status = serializers.ChoiceField(choices=all_status_choices(), required=False)


# ═══════════════════════════════════════════════════════════════════
#  2. Details validators
# ═══════════════════════════════════════════════════════════════════


class PartyContactSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PartyIdentitySerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    date_of_birth = serializers.DateField()


class WitnessSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    contact = serializers.CharField(max_length=100, required=False, allow_blank=True)


class FatwaDetailsSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    question = serializers.CharField()
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    priority = serializers.ChoiceField(
        choices=[("urgent", "Urgent"), ("not-urgent", "Not urgent")],
        default="not-urgent",
    )
    privacy = serializers.ChoiceField(
        choices=[("confidential", "Confidential"), ("not-confidential", "Not confidential")],
        default="not-confidential",
    )


class MarriageDetailsSerializer(serializers.Serializer):
    """
    Two application types share one case type:

    - ``reservation`` — book a nikah; contact details plus a preferred
      date, time and location.
    - ``certificate`` — certify a marriage that already happened; identity
      details, marriage date/place and at least one witness.
    """

    type = serializers.ChoiceField(choices=MarriageApplicationType.choices)
    partner_one = serializers.DictField()
    partner_two = serializers.DictField()
    preferred_date = serializers.DateField(required=False)
    preferred_time = serializers.TimeField(required=False)
    preferred_location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    marriage_date = serializers.DateField(required=False)
    marriage_place = serializers.CharField(max_length=255, required=False, allow_blank=True)
    witnesses = WitnessSerializer(many=True, required=False)
    additional_information = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["type"] == MarriageApplicationType.RESERVATION:
            party_serializer = PartyContactSerializer
            required = ("preferred_date", "preferred_time", "preferred_location")
        else:
            party_serializer = PartyIdentitySerializer
            required = ("marriage_date", "marriage_place", "witnesses")

        errors: dict[str, Any] = {}
        for key in ("partner_one", "partner_two"):
            party = party_serializer(data=attrs[key])
            if party.is_valid():
                attrs[key] = party.validated_data
            else:
                errors[key] = party.errors
        for key in required:
            if not attrs.get(key):
                errors[key] = [f"Required for a {attrs['type']} application."]
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class ReconciliationDetailsSerializer(serializers.Serializer):
    husband = PartyContactSerializer()
    wife = PartyContactSerializer()
    issue_description = serializers.CharField()
    urgency_level = serializers.ChoiceField(
        choices=[("urgent", "Urgent"), ("normal", "Normal"), ("low", "Low")],
        default="normal",
    )
    preferred_meeting_type = serializers.ChoiceField(
        choices=[("in-person", "In person"), ("online", "Online")],
        default="in-person",
    )
    additional_information = serializers.CharField(required=False, allow_blank=True)


DETAILS_SERIALIZERS: dict[str, type[serializers.Serializer]] = {
    CaseType.FATWA: FatwaDetailsSerializer,
    CaseType.MARRIAGE: MarriageDetailsSerializer,
    CaseType.RECONCILIATION: ReconciliationDetailsSerializer,
}


# ═══════════════════════════════════════════════════════════════════
#  3. Read serializers
# ═══════════════════════════════════════════════════════════════════


class MeetingSerializer(serializers.ModelSerializer):

    class Meta:
        model = Meeting
        fields = [
            "id",
            "date",
            "time",
            "location",
            "notes",
            "status",
            "scheduled_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class FeedbackEntrySerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)

    class Meta:
        model = FeedbackEntry
        fields = ["id", "author", "author_role", "comment", "date"]
        read_only_fields = fields


class CaseStatusLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for the case audit trail."""

    changed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = CaseStatusLog
        fields = [
            "id",
            "from_status",
            "to_status",
            "action",
            "changed_by",
            "changed_by_name",
            "message",
            "created_at",
        ]
        read_only_fields = fields

    def get_changed_by_name(self, obj: CaseStatusLog) -> str | None:
        if obj.changed_by is None:
            return None
        return obj.changed_by.get_full_name() or obj.changed_by.username


class CaseListSerializer(serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    summary = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "case_type",
            "status",
            "summary",
            "created_by",
            "assigned_to",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_summary(self, obj: Case) -> str:
        details = obj.details or {}
        if obj.case_type == CaseType.FATWA:
            return details.get("title", "")
        if obj.case_type == CaseType.MARRIAGE:
            return f"Marriage {details.get('type', 'application')}"
        return (details.get("issue_description") or "")[:120]


class CaseDetailSerializer(serializers.ModelSerializer):
    """
    Full case view for ``context["request"].user``.

    ``shaykh_notes`` is blanked unless the viewer is an admin or the
    assigned shaykh.  ``allowed_actions`` is advisory only.
    """

    created_by = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    answered_by = UserSummarySerializer(read_only=True)
    meetings = MeetingSerializer(many=True, read_only=True)
    feedback = FeedbackEntrySerializer(many=True, read_only=True)
    shaykh_notes = serializers.SerializerMethodField()
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = Case
        fields = [
            "id",
            "case_type",
            "status",
            "details",
            "created_by",
            "assigned_to",
            "answer",
            "answered_by",
            "review_comment",
            "outcome",
            "outcome_details",
            "cancellation_reason",
            "shaykh_notes",
            "meetings",
            "feedback",
            "allowed_actions",
            "version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _viewer(self):
        request = self.context.get("request")
        return getattr(request, "user", None)

    def get_shaykh_notes(self, obj: Case) -> str | None:
        viewer = self._viewer()
        if viewer is None or not CaseQueryService.can_view_notes(viewer, obj):
            return None
        return obj.shaykh_notes

    def get_allowed_actions(self, obj: Case) -> list[str]:
        viewer = self._viewer()
        if viewer is None:
            return []
        return CaseQueryService.get_allowed_actions(viewer, obj)


# ═══════════════════════════════════════════════════════════════════
#  4. Write serializers
# ═══════════════════════════════════════════════════════════════════


class CaseCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/cases/``.

    ``details`` is validated against the serializer for ``case_type``
    and replaced by its cleaned data.
    """

    case_type = serializers.ChoiceField(choices=CaseType.choices)
    details = serializers.DictField()

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        details = DETAILS_SERIALIZERS[attrs["case_type"]](data=attrs["details"])
        if not details.is_valid():
            raise serializers.ValidationError({"details": details.errors})
        attrs["details"] = details.validated_data
        return attrs


# ═══════════════════════════════════════════════════════════════════
#  5. Workflow action serializers
# ═══════════════════════════════════════════════════════════════════


class AssignShaykhSerializer(serializers.Serializer):
    # Resolved and checked by the workflow after the actor is authorized.
    shaykh_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class AnswerSerializer(serializers.Serializer):
    answer = serializers.CharField(required=False, allow_blank=True, default="")


class ReviewCommentSerializer(serializers.Serializer):
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class CompleteSerializer(serializers.Serializer):
    outcome = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        help_text=f"One of: {', '.join(CompletionOutcome.values)}.",
    )
    outcome_details = serializers.CharField(required=False, allow_blank=True, default="")


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ShaykhNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class FeedbackCreateSerializer(serializers.Serializer):
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class MeetingCreateSerializer(serializers.Serializer):
    date = serializers.CharField(required=False, allow_blank=True, help_text="YYYY-MM-DD.")
    time = serializers.CharField(required=False, allow_blank=True, help_text="HH:MM.")
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class MeetingUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(
        required=False,
        help_text=f"One of: {', '.join(MeetingStatus.values)}.",
    )
    date = serializers.CharField(required=False, allow_blank=True, help_text="YYYY-MM-DD.")
    time = serializers.CharField(required=False, allow_blank=True, help_text="HH:MM.")
    location = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True)


class CaseTransitionSerializer(serializers.Serializer):
    """
    Generic request body for ``POST /api/cases/{id}/transition/``.

    ``payload`` is passed to the engine as-is (``assign`` takes
    ``shaykh_id``; dates and times as ISO strings).
    """

    action = serializers.ChoiceField(choices=CaseAction.choices)
    payload = serializers.DictField(required=False, default=dict)


class MeetingPartitionSerializer(serializers.Serializer):
    upcoming = MeetingSerializer(many=True, read_only=True)
    past = MeetingSerializer(many=True, read_only=True)


class CertificateUploadSerializer(serializers.Serializer):
    """
    Multipart body.  The file part is named ``certificate`` and is read
    from ``request.FILES`` by the view; both are checked by the service
    once the uploader is authorized.
    """

    certificate_number = serializers.CharField(required=False, allow_blank=True, default="")


class MarriageCertificateSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()
    uploaded_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = MarriageCertificate
        fields = ["id", "certificate_number", "url", "uploaded_by", "created_at"]
        read_only_fields = fields

    def get_url(self, obj: MarriageCertificate) -> str:
        request = self.context.get("request")
        url = obj.file.url
        return request.build_absolute_uri(url) if request else url
