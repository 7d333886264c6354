"""tubelink — Main entry point."""

import asyncio
import logging
import os
from typing import Optional

import httpx

from .channels.telegram import TelegramChannel
from .config import TubelinkSettings, load_settings
from .dispatch import DispatchCoordinator
from .fetcher import MetadataFetcher
from .parser import VideoParser
from .render import Renderer, start_renderer
from .service.client import DelegateClient
from .service.server import DelegationService, start_service
from .transport import HostTransport, Transport, create_transport

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_log_file = os.path.expanduser("~/tubelink.log")

logger = logging.getLogger("tubelink")


def configure_logging(debug: bool = False):
    """Log to stderr and ~/tubelink.log."""
    logging.basicConfig(
        level=logging.INFO,
        format=_log_format,
        handlers=[
            logging.StreamHandler(),                          # stderr (console)
            logging.FileHandler(_log_file, encoding="utf-8"), # ~/tubelink.log
        ],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if debug:
        logging.getLogger("tubelink").setLevel(logging.DEBUG)


def needs_renderer(settings: TubelinkSettings) -> bool:
    """A browser is only launched when something can use it."""
    if settings.enable_service:
        return True
    return settings.work_mode == "standalone" and "image" in settings.output_forms


def build_parser(settings: TubelinkSettings, transport: Transport) -> VideoParser:
    fetcher = MetadataFetcher(transport, settings.youtube_api_key)
    return VideoParser(fetcher, settings.description_policy())


class Runtime:
    """Everything one process owns, built from a settings snapshot.

    Teardown order is the reverse of startup: chat channel, service,
    renderer, transports.
    """

    def __init__(self, settings: TubelinkSettings):
        self.settings = settings
        self.host_client: Optional[httpx.AsyncClient] = None
        self.transport: Optional[Transport] = None
        self.parser: Optional[VideoParser] = None
        self.renderer: Optional[Renderer] = None
        self.delegate: Optional[DelegateClient] = None
        self.service: Optional[DelegationService] = None
        self.channel: Optional[TelegramChannel] = None

    async def start(self, with_channel: bool = True):
        settings = self.settings
        self.host_client = httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True)
        self.transport = create_transport(settings, self.host_client)
        self.parser = build_parser(settings, self.transport)

        if needs_renderer(settings):
            self.renderer = await start_renderer()

        if settings.work_mode == "delegate":
            # Peers are reached directly, never through the YouTube proxy
            self.delegate = DelegateClient(HostTransport(self.host_client), settings.delegate_url)

        self.service = await start_service(settings, self.parser, self.renderer)

        if not with_channel:
            return

        coordinator = DispatchCoordinator(
            settings,
            parser=self.parser,
            delegate=self.delegate,
            renderer=self.renderer,
        )
        if settings.telegram_bot_token:
            self.channel = TelegramChannel(coordinator, settings.telegram_bot_token)
            await self.channel.start()
            logger.info("Telegram channel active.")
        else:
            logger.warning("No Telegram bot token configured. Set TUBELINK_TELEGRAM_BOT_TOKEN in .env.")

    async def stop(self):
        if self.channel:
            await self.channel.stop()
        if self.service:
            await self.service.stop()
        if self.renderer:
            await self.renderer.stop()
        if self.transport:
            await self.transport.aclose()
        if self.host_client:
            await self.host_client.aclose()


async def run(settings: Optional[TubelinkSettings] = None):
    """Main run loop."""
    settings = settings or load_settings()
    runtime = Runtime(settings)

    try:
        await runtime.start()

        if runtime.channel is None and runtime.service is None:
            logger.error("Nothing to run: no chat channel and the delegation service is off.")
            return

        # Keep alive
        logger.info(f"tubelink is running in {settings.work_mode} mode. Press Ctrl+C to stop.")
        while True:
            await asyncio.sleep(1)

    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    except Exception as e:
        logger.critical(f"Fatal error: {type(e).__name__}: {e}", exc_info=True)
    finally:
        await runtime.stop()


async def serve(settings: TubelinkSettings):
    """Run only the delegation service, in the foreground."""
    runtime = Runtime(settings)
    try:
        await runtime.start(with_channel=False)
        if runtime.service is None:
            logger.error("Delegation service did not start, see the messages above.")
            return
        await runtime.service.serve_forever()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await runtime.stop()


def main():
    """Entry point."""
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
