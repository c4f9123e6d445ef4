import django.core.serializers.json
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "case_type",
                    models.CharField(
                        choices=[
                            ("fatwa", "Fatwa"),
                            ("marriage", "Marriage"),
                            ("reconciliation", "Reconciliation"),
                        ],
                        max_length=20,
                        verbose_name="Case Type",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("assigned", "Assigned"),
                            ("answered", "Answered"),
                            ("approved", "Approved"),
                            ("in-progress", "In Progress"),
                            ("resolved", "Resolved"),
                            ("unresolved", "Unresolved"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        max_length=20,
                        verbose_name="Current Status",
                    ),
                ),
                (
                    "details",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        verbose_name="Request Details",
                    ),
                ),
                ("answer", models.TextField(blank=True, default="", verbose_name="Answer")),
                ("review_comment", models.TextField(blank=True, default="", verbose_name="Review Comment")),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        choices=[("resolved", "Resolved"), ("unresolved", "Unresolved")],
                        default="",
                        max_length=20,
                        verbose_name="Outcome",
                    ),
                ),
                ("outcome_details", models.TextField(blank=True, default="", verbose_name="Outcome Details")),
                ("shaykh_notes", models.TextField(blank=True, default="", verbose_name="Shaykh Notes")),
                (
                    "cancellation_reason",
                    models.TextField(blank=True, default="", verbose_name="Cancellation Reason"),
                ),
                ("version", models.PositiveIntegerField(default=0, verbose_name="Version")),
                (
                    "answered_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="answered_cases",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Answered By",
                    ),
                ),
                (
                    "assigned_to",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_cases",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Assigned Shaykh",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_cases",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Created By",
                    ),
                ),
            ],
            options={
                "verbose_name": "Case",
                "verbose_name_plural": "Cases",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["case_type", "status"], name="case_type_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseStatusLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("from_status", models.CharField(blank=True, default="", max_length=20, verbose_name="Previous Status")),
                ("to_status", models.CharField(max_length=20, verbose_name="New Status")),
                (
                    "action",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("assign", "Assign Shaykh"),
                            ("answer", "Answer"),
                            ("approve", "Approve"),
                            ("unapprove", "Unapprove"),
                            ("schedule_meeting", "Schedule Meeting"),
                            ("update_meeting", "Update Meeting"),
                            ("add_feedback", "Add Feedback"),
                            ("add_shaykh_notes", "Add Shaykh Notes"),
                            ("complete", "Complete"),
                            ("cancel", "Cancel"),
                        ],
                        default="",
                        max_length=30,
                        verbose_name="Action",
                    ),
                ),
                ("message", models.TextField(blank=True, default="", verbose_name="Message")),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_logs",
                        to="cases.case",
                        verbose_name="Case",
                    ),
                ),
                (
                    "changed_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="case_status_changes",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Changed By",
                    ),
                ),
            ],
            options={
                "verbose_name": "Case Status Log",
                "verbose_name_plural": "Case Status Logs",
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="FeedbackEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("author_role", models.CharField(max_length=16, verbose_name="Author Role")),
                ("comment", models.TextField(verbose_name="Comment")),
                ("date", models.DateTimeField(verbose_name="Date")),
                (
                    "author",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="case_feedback",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Author",
                    ),
                ),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feedback",
                        to="cases.case",
                        verbose_name="Case",
                    ),
                ),
            ],
            options={
                "verbose_name": "Feedback Entry",
                "verbose_name_plural": "Feedback Entries",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="Meeting",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("date", models.DateField(verbose_name="Date")),
                ("time", models.TimeField(verbose_name="Time")),
                ("location", models.CharField(max_length=255, verbose_name="Location")),
                ("notes", models.TextField(blank=True, default="", verbose_name="Notes")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("rescheduled", "Rescheduled"),
                        ],
                        default="scheduled",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                (
                    "case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meetings",
                        to="cases.case",
                        verbose_name="Case",
                    ),
                ),
                (
                    "scheduled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scheduled_meetings",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Scheduled By",
                    ),
                ),
            ],
            options={
                "verbose_name": "Meeting",
                "verbose_name_plural": "Meetings",
                "ordering": ["id"],
            },
        ),
    ]
