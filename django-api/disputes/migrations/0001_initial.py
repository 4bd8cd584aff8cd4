import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Dispute",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("ticket_id", models.CharField(db_index=True, max_length=64)),
                ("user_id", models.CharField(db_index=True, max_length=64)),
                (
                    "dispute_type",
                    models.CharField(
                        choices=[
                            ("refund_request", "Refund Request"),
                            ("event_cancelled", "Event Cancelled"),
                            ("event_postponed", "Event Postponed"),
                            ("venue_changed", "Venue Changed"),
                            ("technical_issue", "Technical Issue"),
                            ("fraudulent_charge", "Fraudulent Charge"),
                            ("duplicate_charge", "Duplicate Charge"),
                            ("service_issue", "Service Issue"),
                            ("access_denied", "Access Denied"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("under_review", "Under Review"),
                            ("investigating", "Investigating"),
                            ("awaiting_response", "Awaiting Response"),
                            ("escalated", "Escalated"),
                            ("resolved", "Resolved"),
                            ("rejected", "Rejected"),
                            ("approved", "Approved"),
                            ("cancelled", "Cancelled"),
                            ("closed", "Closed"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[
                            ("low", "Low"),
                            ("medium", "Medium"),
                            ("high", "High"),
                            ("urgent", "Urgent"),
                            ("critical", "Critical"),
                        ],
                        default="medium",
                        max_length=16,
                    ),
                ),
                ("subject", models.CharField(max_length=200)),
                ("description", models.TextField()),
                ("tags", models.JSONField(blank=True, default=list)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("evidence", models.JSONField(blank=True, default=list)),
                ("escalation_level", models.PositiveSmallIntegerField(default=0)),
                ("escalation_history", models.JSONField(blank=True, default=list)),
                ("communication_history", models.JSONField(blank=True, default=list)),
                ("admin_id", models.CharField(blank=True, max_length=64, null=True)),
                ("admin_response", models.TextField(blank=True, null=True)),
                ("resolution", models.TextField(blank=True, null=True)),
                ("refund_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "refund_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        max_length=16,
                        null=True,
                    ),
                ),
                ("search_text", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                ("last_activity_at", models.DateTimeField(db_index=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["-created_at"], name="dispute_created_idx"),
                    models.Index(fields=["user_id", "status"], name="dispute_user_status_idx"),
                    models.Index(fields=["priority", "status"], name="dispute_priority_status_idx"),
                    models.Index(fields=["dispute_type", "status"], name="dispute_type_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("status__in", ["approved", "cancelled", "closed", "rejected", "resolved"]),
                            _negated=True,
                        ),
                        fields=("ticket_id",),
                        name="unique_active_dispute_per_ticket",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DisputeNotification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=64)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("dispute_created", "Dispute Created"),
                            ("dispute_updated", "Dispute Updated"),
                            ("status_changed", "Status Changed"),
                            ("admin_response", "Admin Response"),
                            ("escalation", "Escalation"),
                            ("resolution", "Resolution"),
                            ("refund_processed", "Refund Processed"),
                            ("reminder", "Reminder"),
                            ("deadline_approaching", "Deadline Approaching"),
                        ],
                        max_length=32,
                    ),
                ),
                ("title", models.CharField(max_length=200)),
                ("message", models.CharField(max_length=1000)),
                ("data", models.JSONField(blank=True, default=dict)),
                ("channels", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("sent", "Sent"),
                            ("delivered", "Delivered"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("deliveries", models.JSONField(blank=True, default=list)),
                ("scheduled_at", models.DateTimeField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                (
                    "dispute",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to="disputes.dispute",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["-created_at"], name="notification_created_idx"),
                    models.Index(fields=["user_id", "status"], name="notification_user_status_idx"),
                    models.Index(fields=["dispute", "type"], name="notification_type_idx"),
                    models.Index(fields=["scheduled_at", "status"], name="notification_schedule_idx"),
                ],
            },
        ),
    ]
