from django.contrib import admin

from disputes.models import Dispute, DisputeNotification


class DisputeNotificationInline(admin.TabularInline):
    model = DisputeNotification
    extra = 0
    fields = ["type", "user_id", "title", "status", "sent_at", "read_at"]
    readonly_fields = fields


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ["subject", "ticket_id", "user_id", "status", "priority", "escalation_level", "created_at"]
    list_filter = ["status", "priority", "dispute_type"]
    search_fields = ["subject", "ticket_id", "user_id"]
    readonly_fields = ["search_text"]
    inlines = [DisputeNotificationInline]


@admin.register(DisputeNotification)
class DisputeNotificationAdmin(admin.ModelAdmin):
    list_display = ["title", "user_id", "type", "status", "created_at"]
    list_filter = ["type", "status"]
    search_fields = ["title", "user_id"]
