"""Celery tasks for periodic notification work."""

import logging

from celery import shared_task

from disputes.wiring import build_notification_service

logger = logging.getLogger(__name__)


@shared_task
def send_dispute_reminders():
    created = build_notification_service().schedule_reminders()
    logger.info("Dispute reminder run created %d notifications", created)
    return created


@shared_task
def process_scheduled_notifications():
    return build_notification_service().process_scheduled()


@shared_task
def process_notification(notification_id):
    return build_notification_service().process_notification(notification_id)
