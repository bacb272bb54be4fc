"""Notification channels."""

from chainsentry.notifications.telegram import TelegramSender, create_sender

__all__ = ["TelegramSender", "create_sender"]
