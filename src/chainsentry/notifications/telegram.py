"""Telegram notification sender.

Sends operational messages to a single chat. Delivery is retried; a message
that still cannot be delivered is counted and the error re-raised.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.enums import ParseMode

from chainsentry.config import Settings, get_settings
from chainsentry.metrics.instrumented import InstrumentedClient

logger = logging.getLogger(__name__)


class TelegramSender(InstrumentedClient):
    """Sends Markdown messages to one Telegram chat."""

    error_metric = "telegram_send_error_count"
    error_metric_help = "Counts the number of Telegram messages that could not be delivered"

    RETRIES = 2
    RETRY_DELAY = 10.0

    def __init__(self, chat_id: str, bot: Bot):
        """Initialize the sender.

        Args:
            chat_id: Target chat id or @channel username
            bot: aiogram bot used for delivery
        """
        super().__init__()
        self.chat_id = chat_id
        self.bot = bot

    async def send(self, message: str) -> None:
        """Deliver ``message`` to the chat.

        Raises:
            RetryError: If every attempt failed
        """
        await self._call(
            lambda: self.bot.send_message(
                chat_id=self.chat_id,
                text=message,
                parse_mode=ParseMode.MARKDOWN,
            ),
            self.RETRIES,
            self.RETRY_DELAY,
            description=f"message to {self.chat_id}",
        )

    async def close(self) -> None:
        """Close the bot session (call on shutdown)."""
        await self.bot.session.close()


def create_sender(settings: Optional[Settings] = None) -> Optional[TelegramSender]:
    """Build a sender from settings, or None when Telegram is not configured."""
    settings = settings or get_settings()
    if not settings.has_telegram:
        logger.warning("Telegram bot token or chat id not configured - notifications disabled")
        return None
    return TelegramSender(settings.telegram_chat_id, Bot(token=settings.telegram_bot_token))
