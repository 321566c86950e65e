"""Push, SMS and email notifications."""

from dtbooking.notifications.base import Mailer, PushSender, SmsSender
from dtbooking.notifications.dispatcher import NotificationDispatcher

__all__ = ["Mailer", "NotificationDispatcher", "PushSender", "SmsSender"]
