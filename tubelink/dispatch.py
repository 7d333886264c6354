"""Dispatch coordinator — one run per inbound chat message.

    Detecting → Gating → Denied
                       → Dispatching (standalone | delegate) → Emitting → Cleanup
                                                             ↘ Failed

Each run is independent: nothing is kept between messages, so runs for
different messages can overlap freely. Failures inside Dispatching or
Emitting are reported to the chat and the log and never escape `handle()`.
"""

import dataclasses
import logging
from enum import Enum
from typing import Any, Optional

from .access import evaluate
from .config import TubelinkSettings
from .extract import extract, looks_like_youtube
from .formatting import format_text_message
from .models import ChatSession, InboundMessage, OutboundMessage, VideoMetadata, VideoReference
from .parser import VideoParser
from .render import Renderer, render_video_card
from .service.client import DelegateClient

logger = logging.getLogger("tubelink.dispatch")


class Outcome(str, Enum):
    IGNORED = "ignored"          # no youtube marker in the text
    DISABLED = "disabled"        # link parsing switched off
    NOT_FOUND = "not_found"      # marker present but no usable id
    DENIED = "denied"            # whitelist rejected the sender
    COMPLETED = "completed"
    FAILED = "failed"


class DispatchCoordinator:
    """Runs gate + dispatch for inbound messages.

    Args:
        settings: Frozen settings snapshot
        parser: Local fetch+normalize (standalone mode)
        delegate: Peer client (delegate mode)
        renderer: Optional rendering capability (standalone image form)
    """

    def __init__(
        self,
        settings: TubelinkSettings,
        parser: Optional[VideoParser] = None,
        delegate: Optional[DelegateClient] = None,
        renderer: Optional[Renderer] = None,
    ):
        if settings.work_mode == "standalone" and parser is None:
            raise ValueError("standalone mode needs a VideoParser")
        if settings.work_mode == "delegate" and delegate is None:
            raise ValueError("delegate mode needs a DelegateClient")
        self.settings = settings
        self.parser = parser
        self.delegate = delegate
        self.renderer = renderer

    @property
    def output_forms(self) -> list[str]:
        # Declaration order, duplicates dropped
        return list(dict.fromkeys(self.settings.output_forms))

    async def handle(self, message: InboundMessage, session: ChatSession) -> Outcome:
        """Process one inbound message end to end."""
        if not looks_like_youtube(message.content):
            return Outcome.IGNORED

        if not self.settings.enable_link_parsing:
            logger.info("Link parsing is disabled, skipping.")
            return Outcome.DISABLED

        # Detecting
        ref = extract(message.content)
        if ref is None:
            logger.debug(f"No video id in message from {message.platform}:{message.user_id}")
            return Outcome.NOT_FOUND

        # Gating
        decision = evaluate(
            message.platform,
            message.user_id,
            self.settings.platform_whitelist,
            self.settings.send_whitelist_hint,
        )
        hint_id = None
        if decision.hint_message:
            hint_id = await self._send_hint(session, message, decision.hint_message)
        if not decision.allowed:
            return Outcome.DENIED

        # Dispatching + Emitting
        try:
            if self.settings.work_mode == "delegate":
                await self._run_delegate(message, ref, session)
            else:
                await self._run_standalone(message, ref, session)

            # Cleanup
            if hint_id is not None:
                await session.delete_message(hint_id)
        except Exception as e:
            await self._report_failure(message, session, e)
            return Outcome.FAILED

        return Outcome.COMPLETED

    # ============================================================
    # MODES
    # ============================================================

    async def _run_standalone(self, message: InboundMessage, ref: VideoReference, session: ChatSession):
        forms = self.output_forms
        if not any(form in ("text", "image") for form in forms):
            return

        metadata = await self.parser.parse(ref.canonical_url)
        for form in forms:
            if form == "text":
                await self._emit(session, message, self._text_reply(metadata))
            elif form == "image":
                image = await render_video_card(self.renderer, metadata)
                if image is None:
                    logger.warning(f"Image form produced nothing for {ref.video_id}")
                    continue
                await self._emit(session, message, OutboundMessage(image=image, image_mime="image/png"))
            elif form == "forward":
                logger.debug("Output form 'forward' is not implemented, skipping.")

    async def _run_delegate(self, message: InboundMessage, ref: VideoReference, session: ChatSession):
        logger.info(f"Delegating {ref.video_id} to {self.delegate.base_url}")
        for form in self.output_forms:
            if form == "text":
                metadata = await self.delegate.parse(ref.canonical_url)
                await self._emit(session, message, self._text_reply(metadata))
            elif form == "image":
                image = await self.delegate.render_from_url(ref.canonical_url)
                await self._emit(session, message, OutboundMessage(image=image, image_mime="image/png"))
            elif form == "forward":
                logger.debug("Output form 'forward' is not implemented, skipping.")

    # ============================================================
    # EMITTING
    # ============================================================

    @staticmethod
    def _text_reply(metadata: VideoMetadata) -> OutboundMessage:
        return OutboundMessage(
            text=format_text_message(metadata),
            image=metadata.thumbnail or None,
            image_mime=metadata.thumbnail_mime,
        )

    async def _emit(self, session: ChatSession, origin: InboundMessage, reply: OutboundMessage) -> Any:
        if self.settings.quote_when_send:
            reply = dataclasses.replace(reply, quote_message_id=origin.message_id)
        return await session.send(reply)

    async def _send_hint(self, session: ChatSession, origin: InboundMessage, text: str) -> Any:
        try:
            return await session.send(OutboundMessage(text=text, quote_message_id=origin.message_id))
        except Exception as e:
            logger.warning(f"Failed to send whitelist hint: {e}")
            return None

    async def _report_failure(self, origin: InboundMessage, session: ChatSession, error: Exception):
        label = f"❌ Error in {self.settings.work_mode} mode:"

        session_detail = str(error) if self.settings.verbose_session_output else ""
        notice = f"{label}\n\t{session_detail}" if session_detail else label
        try:
            await session.send(OutboundMessage(text=notice, quote_message_id=origin.message_id))
        except Exception as send_error:
            logger.error(f"Failed to send failure notice: {send_error}")

        if self.settings.verbose_console_output:
            logger.error(f"{label} {type(error).__name__}: {error}", exc_info=error)
        else:
            logger.error(label)
