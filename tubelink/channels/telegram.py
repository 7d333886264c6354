"""Telegram channel adapter.

Feeds text messages into the dispatch coordinator and implements the
ChatSession interface on top of python-telegram-bot.
"""

import logging
from typing import Any, Optional

from telegram import Bot, Message, ReplyParameters, Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from ..dispatch import DispatchCoordinator
from ..formatting import split_message
from ..models import ChatSession, InboundMessage, OutboundMessage

logger = logging.getLogger("tubelink.telegram")

PLATFORM = "telegram"
MESSAGE_LIMIT = 4096
CAPTION_LIMIT = 1024


class TelegramSession(ChatSession):
    """Replies into one Telegram chat."""

    def __init__(self, bot: Bot, chat_id: int):
        self._bot = bot
        self._chat_id = chat_id

    async def send(self, message: OutboundMessage) -> Optional[int]:
        """Send text and/or a photo.

        A photo carries the text as its caption when it fits Telegram's
        caption limit; otherwise the text follows as separate messages.
        Only the first message sent quotes the origin.

        Returns:
            message_id of the last message sent
        """
        reply_params = None
        if message.quote_message_id is not None:
            reply_params = ReplyParameters(message_id=int(message.quote_message_id))

        text = message.text or ""
        last: Optional[Message] = None

        if message.image:
            caption = text if len(text) <= CAPTION_LIMIT else None
            last = await self._bot.send_photo(
                chat_id=self._chat_id,
                photo=message.image,
                caption=caption or None,
                reply_parameters=reply_params,
            )
            if caption is not None:
                return last.message_id
            reply_params = None

        if text:
            for chunk in split_message(text, MESSAGE_LIMIT):
                last = await self._bot.send_message(
                    chat_id=self._chat_id,
                    text=chunk,
                    reply_parameters=reply_params,
                )
                reply_params = None

        return last.message_id if last else None

    async def delete_message(self, message_id: Any) -> None:
        await self._bot.delete_message(chat_id=self._chat_id, message_id=int(message_id))


def to_inbound(update: Update) -> Optional[InboundMessage]:
    """Convert a Telegram update into an InboundMessage (None if not text)."""
    message = update.effective_message
    if not message or not message.text:
        return None
    user = update.effective_user
    chat = update.effective_chat
    return InboundMessage(
        platform=PLATFORM,
        user_id=str(user.id) if user else "",
        channel_id=str(chat.id) if chat else "",
        message_id=message.message_id,
        content=message.text,
    )


class TelegramChannel:
    """Telegram bot adapter for tubelink."""

    def __init__(self, coordinator: DispatchCoordinator, bot_token: str):
        self.coordinator = coordinator
        self.bot_token = bot_token
        self.app: Optional[Application] = None

    async def start(self):
        """Start the Telegram bot."""
        self.app = (
            Application.builder()
            .token(self.bot_token)
            .concurrent_updates(True)
            .build()
        )

        # Catch all plain text messages
        self.app.add_handler(MessageHandler(
            filters.TEXT & ~filters.COMMAND,
            self._handle_message,
        ))

        # Error handler
        self.app.add_error_handler(self._handle_error)

        logger.info("Starting Telegram bot...")
        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)

    async def stop(self):
        """Stop the Telegram bot."""
        if self.app:
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
            logger.info("Telegram bot stopped.")

    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle incoming text messages."""
        inbound = to_inbound(update)
        if inbound is None:
            return

        session = TelegramSession(context.bot, update.effective_chat.id)
        outcome = await self.coordinator.handle(inbound, session)
        logger.debug(f"[{inbound.channel_id}] message {inbound.message_id}: {outcome.value}")

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Handle errors."""
        logger.error(f"Telegram error: {context.error}", exc_info=context.error)
