"""Video card rendering — HTML template screenshotted by headless Chromium.

The renderer is an optional capability. When Playwright or its browser is
missing, `start_renderer()` returns None and every render attempt is a
logged no-op that yields None, never an exception.

Dependencies (system/runtime):
- playwright (python)
- Playwright Chromium browser installed (playwright install chromium)
"""

import base64
import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from jinja2 import Environment

from .models import VideoMetadata

logger = logging.getLogger("tubelink.render")

CARD_SELECTOR = ".main-container"

CARD_TEMPLATE = """\
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {
            margin: 0;
            padding: 0;
            font-family: 'Roboto', 'Arial', sans-serif;
            background-color: #000;
            display: flex;
            justify-content: center;
            align-items: center;
        }
        .background-container {
            position: absolute;
            top: 0;
            left: 0;
            width: 100%;
            height: 100%;
            z-index: 1;
        }
        .background-cover {
            width: 100%;
            height: 100%;
            object-fit: cover;
            filter: blur(25px) brightness(0.5);
            transform: scale(1.2);
        }
        .main-container {
            position: relative;
            z-index: 2;
            box-sizing: border-box;
            display: flex;
            justify-content: center;
            padding: 16px;
        }
        .container {
            width: 90%;
            max-width: 500px;
            border-radius: 16px;
            overflow: hidden;
            background-color: rgba(40, 40, 40, 0.7);
            backdrop-filter: blur(20px) saturate(150%);
            border: 1px solid rgba(255, 255, 255, 0.12);
            box-shadow: 0 8px 32px rgba(0, 0, 0, 0.4);
            display: flex;
            flex-direction: column;
        }
        .cover-container {
            position: relative;
            width: 100%;
            padding-bottom: 56.25%;
        }
        .cover {
            position: absolute;
            top: 0;
            left: 0;
            width: 100%;
            height: 100%;
            object-fit: cover;
        }
        .content {
            padding: 16px;
            display: flex;
            flex-direction: column;
            gap: 8px;
        }
        .title {
            font-size: 24px;
            font-weight: 700;
            line-height: 1.3;
            color: #ffffff;
            text-shadow: 0 2px 4px rgba(0, 0, 0, 0.6);
            margin-bottom: 4px;
        }
        .metadata {
            display: flex;
            flex-direction: column;
            gap: 6px;
            margin-bottom: 8px;
            padding: 12px 0;
            border-bottom: 1px solid rgba(255, 255, 255, 0.1);
        }
        .channel {
            font-size: 16px;
            font-weight: 600;
            color: #f0f0f0;
        }
        .stats-row {
            display: flex;
            align-items: center;
            gap: 12px;
            flex-wrap: wrap;
        }
        .publish-time {
            font-size: 13px;
            color: #cccccc;
        }
        .publish-time::before {
            content: "📅 ";
        }
        .view-count {
            font-size: 14px;
            color: #00bcd4;
            font-weight: 600;
            background: rgba(0, 188, 212, 0.1);
            padding: 3px 6px;
            border-radius: 6px;
            border: 1px solid rgba(0, 188, 212, 0.3);
        }
        .view-count::before {
            content: "▶️ ";
        }
        .description {
            font-size: 14px;
            line-height: 1.5;
            color: #e0e0e0;
            white-space: pre-wrap;
            background: rgba(255, 255, 255, 0.05);
            padding: 10px;
            border-radius: 8px;
            border-left: 3px solid rgba(255, 255, 255, 0.2);
        }
        .tags {
            font-size: 12px;
            color: #64b5f6;
            padding: 6px 10px;
            background: rgba(100, 181, 246, 0.1);
            border-radius: 8px;
            border: 1px solid rgba(100, 181, 246, 0.2);
        }
    </style>
</head>
<body>
    <div class="background-container">
        <img class="background-cover" src="{{ cover_url }}" alt="Video Background">
    </div>
    <div class="main-container">
        <div class="container">
            <div class="cover-container">
                <img class="cover" src="{{ cover_url }}" alt="Video Cover">
            </div>
            <div class="content">
                <div class="title">{{ video.title }}</div>
                <div class="metadata">
                    <div class="channel">{{ video.channel }}</div>
                    <div class="stats-row">
                        <div class="publish-time">{{ video.publish_time }}</div>
                        <div class="view-count">{{ video.view_count }} views</div>
                    </div>
                </div>
                <div class="description">{{ video.description }}</div>
                <div class="tags">{{ video.tags }}</div>
            </div>
        </div>
    </div>
</body>
</html>
"""

_env = Environment(autoescape=True)
_card_template = _env.from_string(CARD_TEMPLATE)


def thumbnail_data_url(metadata: VideoMetadata) -> str:
    encoded = base64.b64encode(metadata.thumbnail).decode("ascii")
    return f"data:{metadata.thumbnail_mime};base64,{encoded}"


def build_card_html(metadata: VideoMetadata) -> str:
    """Fill the card template. All text fields are HTML-escaped."""
    return _card_template.render(video=metadata, cover_url=thumbnail_data_url(metadata))


class Renderer(ABC):
    """Turns an HTML document into PNG bytes."""

    @abstractmethod
    async def render(self, html: str) -> Optional[bytes]:
        """Render `html`; None when nothing could be produced."""

    async def stop(self) -> None:
        """Release the underlying engine."""


class PlaywrightRenderer(Renderer):
    """Headless Chromium kept open for the life of the process.

    Each render gets its own page, so concurrent dispatch cycles do not
    share page state.
    """

    def __init__(self, viewport_width: int = 640, viewport_height: int = 1000):
        self.viewport = {"width": viewport_width, "height": viewport_height}
        self._playwright = None
        self._browser = None

    async def start(self):
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=[
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        logger.info("Headless Chromium ready for card rendering.")

    async def render(self, html: str) -> Optional[bytes]:
        if self._browser is None:
            logger.error("Renderer used before start().")
            return None

        page = await self._browser.new_page(viewport=self.viewport)
        try:
            await page.set_content(html, wait_until="domcontentloaded")

            # Shrink the viewport to the card so the screenshot has no margins
            card = await page.query_selector(CARD_SELECTOR)
            box = await card.bounding_box() if card else None
            if box:
                await page.set_viewport_size({
                    "width": math.ceil(box["width"]),
                    "height": math.ceil(box["height"]),
                })

            return await page.screenshot(type="png", full_page=False)
        finally:
            await page.close()

    async def stop(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


async def start_renderer() -> Optional[PlaywrightRenderer]:
    """Launch the Playwright renderer, or return None if it is unavailable."""
    renderer = PlaywrightRenderer()
    try:
        await renderer.start()
    except ImportError:
        logger.warning(
            "Playwright python package not installed; image output is unavailable. "
            "Try: pip install playwright"
        )
        return None
    except Exception as e:
        msg = str(e)
        hint = ""
        if "Executable doesn't exist" in msg or "chromium" in msg.lower():
            hint = " | Hint: playwright install chromium"
        logger.warning(f"Headless browser unavailable; image output is disabled: {msg}{hint}")
        await renderer.stop()
        return None
    return renderer


async def render_video_card(renderer: Optional[Renderer], metadata: VideoMetadata) -> Optional[bytes]:
    """Render the card for `metadata`.

    Returns:
        PNG bytes, or None when the renderer is missing or failed. Failures
        are logged here; callers only need to check for None.
    """
    if renderer is None:
        logger.error("Rendering capability is not available.")
        return None
    try:
        image = await renderer.render(build_card_html(metadata))
    except Exception as e:
        logger.error(f"Error rendering video card for '{metadata.title}': {e}")
        return None
    if not image:
        logger.error(f"Renderer produced no image for '{metadata.title}'")
        return None
    return image
