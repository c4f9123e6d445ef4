from django.contrib import admin

from .models import Case, CaseStatusLog, FeedbackEntry, MarriageCertificate, Meeting


class MeetingInline(admin.TabularInline):
    model = Meeting
    extra = 0
    readonly_fields = ("date", "time", "location", "notes", "status", "scheduled_by")
    can_delete = False


class FeedbackEntryInline(admin.TabularInline):
    model = FeedbackEntry
    extra = 0
    readonly_fields = ("author", "author_role", "comment", "date")
    can_delete = False


class CaseStatusLogInline(admin.TabularInline):
    model = CaseStatusLog
    extra = 0
    readonly_fields = ("from_status", "to_status", "action", "changed_by", "message", "created_at")
    can_delete = False


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    """Read-mostly: status changes go through the API so the workflow rules apply."""

    list_display = ("id", "case_type", "status", "created_by", "assigned_to", "created_at")
    list_filter = ("case_type", "status")
    search_fields = ("created_by__username", "assigned_to__username")
    readonly_fields = (
        "case_type", "status", "created_by", "assigned_to", "answer", "answered_by",
        "review_comment", "outcome", "outcome_details", "cancellation_reason", "version",
    )
    inlines = [MeetingInline, FeedbackEntryInline, CaseStatusLogInline]


@admin.register(CaseStatusLog)
class CaseStatusLogAdmin(admin.ModelAdmin):
    list_display = ("case", "from_status", "to_status", "action", "changed_by", "created_at")
    list_filter = ("to_status", "action")
    readonly_fields = ("case", "from_status", "to_status", "action", "changed_by", "message")


@admin.register(MarriageCertificate)
class MarriageCertificateAdmin(admin.ModelAdmin):
    list_display = ("case", "certificate_number", "uploaded_by", "created_at")
    search_fields = ("certificate_number",)
    readonly_fields = ("case", "uploaded_by")
