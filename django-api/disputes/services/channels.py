"""Notification channel strategies.

Each sender delivers one notification over one channel. A sender either
returns True, returns False, or raises; the dispatcher treats the last
two as a failed attempt and moves on to the next channel.
"""

import logging
from abc import ABC, abstractmethod

import requests
from django.conf import settings
from django.core.mail import send_mail
from twilio.rest import Client as TwilioClient

from disputes.conf import dispute_setting
from disputes.domain import Notification, NotificationChannel
from disputes.services.collaborators import RecipientDirectory

logger = logging.getLogger(__name__)

SMS_MAX_LENGTH = 160


class ChannelDeliveryError(Exception):
    """A channel could not deliver a notification."""


def notification_payload(notification: Notification) -> dict:
    return {
        "notificationId": str(notification.id),
        "disputeId": str(notification.dispute_id),
        "userId": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "data": dict(notification.data),
    }


class ChannelSender(ABC):
    channel: NotificationChannel

    @abstractmethod
    def send(self, notification: Notification) -> bool:
        ...


class EmailChannel(ChannelSender):
    channel = NotificationChannel.EMAIL

    def __init__(self, directory: RecipientDirectory) -> None:
        self._directory = directory

    def send(self, notification: Notification) -> bool:
        contact = self._directory.get_contact(notification.user_id)
        if contact is None or not contact.email:
            raise ChannelDeliveryError("User email not found")
        send_mail(
            subject=notification.title,
            message=notification.message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[contact.email],
            fail_silently=False,
        )
        return True


class SmsChannel(ChannelSender):
    channel = NotificationChannel.SMS

    def __init__(self, directory: RecipientDirectory) -> None:
        self._directory = directory

    def send(self, notification: Notification) -> bool:
        sid = getattr(settings, "TWILIO_ACCOUNT_SID", None)
        token = getattr(settings, "TWILIO_AUTH_TOKEN", None)
        from_ = getattr(settings, "TWILIO_PHONE_NUMBER", None)
        if not (sid and token and from_):
            raise ChannelDeliveryError("SMS is not configured")
        contact = self._directory.get_contact(notification.user_id)
        if contact is None or not contact.phone:
            raise ChannelDeliveryError("User phone number not found")
        body = f"{notification.title}: {notification.message}"[:SMS_MAX_LENGTH]
        TwilioClient(sid, token).messages.create(to=contact.phone, from_=from_, body=body)
        return True


class _HttpChannel(ChannelSender):
    url_setting: str

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self._url = url or dispute_setting(self.url_setting)
        self._timeout = timeout or dispute_setting("CHANNEL_TIMEOUT")

    def send(self, notification: Notification) -> bool:
        if not self._url:
            raise ChannelDeliveryError(f"{self.channel.value} endpoint is not configured")
        resp = requests.post(self._url, json=notification_payload(notification), timeout=self._timeout)
        resp.raise_for_status()
        return True


class PushChannel(_HttpChannel):
    """Hands the notification to a push gateway."""

    channel = NotificationChannel.PUSH
    url_setting = "PUSH_GATEWAY_URL"


class WebhookChannel(_HttpChannel):
    channel = NotificationChannel.WEBHOOK
    url_setting = "WEBHOOK_URL"


class InAppChannel(ChannelSender):
    """The stored notification is the in-app inbox entry."""

    channel = NotificationChannel.IN_APP

    def send(self, notification: Notification) -> bool:
        logger.info("In-app notification %s ready for user %s", notification.id, notification.user_id)
        return True


def default_channels(directory: RecipientDirectory) -> list[ChannelSender]:
    return [
        EmailChannel(directory),
        SmsChannel(directory),
        PushChannel(),
        WebhookChannel(),
        InAppChannel(),
    ]
