from django.urls import path

from disputes.handlers import (
    AdminAnalyticsView,
    AdminBulkUpdateView,
    AdminDisputeAssignView,
    AdminDisputeDetailView,
    AdminDisputeListView,
    DisputeCommunicationView,
    DisputeDetailView,
    DisputeEscalationView,
    DisputeEvidenceView,
    DisputeListView,
    NotificationDetailView,
    NotificationListView,
    NotificationReadAllView,
    NotificationReadView,
)

# Fixed segments must precede the <dispute_id> catch-all.
urlpatterns = [
    path("disputes", DisputeListView.as_view(), name="dispute-list"),
    path("disputes/notifications", NotificationListView.as_view(), name="notification-list"),
    path(
        "disputes/notifications/mark-all-read",
        NotificationReadAllView.as_view(),
        name="notification-read-all",
    ),
    path(
        "disputes/notifications/<str:notification_id>/read",
        NotificationReadView.as_view(),
        name="notification-read",
    ),
    path(
        "disputes/notifications/<str:notification_id>",
        NotificationDetailView.as_view(),
        name="notification-detail",
    ),
    path("disputes/admin/all", AdminDisputeListView.as_view(), name="admin-dispute-list"),
    path("disputes/admin/analytics", AdminAnalyticsView.as_view(), name="admin-dispute-analytics"),
    path("disputes/admin/bulk-update", AdminBulkUpdateView.as_view(), name="admin-dispute-bulk-update"),
    path(
        "disputes/admin/<str:dispute_id>",
        AdminDisputeDetailView.as_view(),
        name="admin-dispute-detail",
    ),
    path(
        "disputes/admin/<str:dispute_id>/assign",
        AdminDisputeAssignView.as_view(),
        name="admin-dispute-assign",
    ),
    path("disputes/<str:dispute_id>", DisputeDetailView.as_view(), name="dispute-detail"),
    path(
        "disputes/<str:dispute_id>/communication",
        DisputeCommunicationView.as_view(),
        name="dispute-communication",
    ),
    path(
        "disputes/<str:dispute_id>/evidence",
        DisputeEvidenceView.as_view(),
        name="dispute-evidence",
    ),
    path(
        "disputes/<str:dispute_id>/escalate",
        DisputeEscalationView.as_view(),
        name="dispute-escalate",
    ),
]
