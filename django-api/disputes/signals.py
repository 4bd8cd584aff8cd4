"""Django signals for cache invalidation."""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from disputes.cache import invalidate_analytics
from disputes.models import Dispute


@receiver([post_save, post_delete], sender=Dispute)
def invalidate_analytics_cache(sender, instance, **kwargs):
    """Invalidate cached analytics when a dispute is saved or deleted."""
    invalidate_analytics()
