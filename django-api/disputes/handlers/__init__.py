from disputes.handlers.views import (
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

__all__ = [
    "AdminAnalyticsView",
    "AdminBulkUpdateView",
    "AdminDisputeAssignView",
    "AdminDisputeDetailView",
    "AdminDisputeListView",
    "DisputeCommunicationView",
    "DisputeDetailView",
    "DisputeEscalationView",
    "DisputeEvidenceView",
    "DisputeListView",
    "NotificationDetailView",
    "NotificationListView",
    "NotificationReadAllView",
    "NotificationReadView",
]
