"""YouTube video id extraction from raw chat text.

Some platforms escape outbound text before we see it (``&`` becomes
``&amp;``) or wrap bare URLs in ``<...>``. Both break a naive regex on
``watch?...&v=`` links, so the text is normalized first.

Pure string functions. No network access.
"""

import re
from typing import Optional

from .models import VideoReference

# Order matters: &amp; first, same as the browser-side escape it undoes.
_HTML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

_SHORT_LINK_RE = re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/([\w-]{11})", re.ASCII)

# http://www.youtube.com/embed/m5yCOSHeYn4, https://youtube.com/shorts/..., watch?feature=x&v=...
_YOUTUBE_RE = re.compile(
    r"(?:https?://)?(?:i\.|www\.|img\.)?"
    r"(?:youtu\.be/|youtube\.com/|ytimg\.com/)"
    r"(?:shorts/|embed/|v/|vi/|vi_webp/|watch\?v=|watch\?.+&v=)"
    r"([\w-]{11})",
    re.ASCII,
)

PREFILTER_MARKERS = ("youtube.com", "youtu.be")


def looks_like_youtube(text: str) -> bool:
    """Cheap substring check run before the full extractor."""
    if not text:
        return False
    return any(marker in text for marker in PREFILTER_MARKERS)


def decode_html_entities(text: str) -> str:
    """Decode the minimal entity set chat platforms use when escaping URLs."""
    if not text:
        return text
    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def normalize_text(raw: str) -> str:
    """Trim, unescape entities and drop angle brackets around URLs."""
    if not raw:
        return raw
    text = decode_html_entities(raw.strip())
    return re.sub(r"[<>]", "", text)


def _find_link(src: str) -> Optional[re.Match]:
    """Short links (youtu.be/<id>) first, then the general youtube.com pattern."""
    if "youtu.be/" in src:
        m = _SHORT_LINK_RE.search(src)
        if m:
            return m
    return _YOUTUBE_RE.search(src)


def extract_video_id(raw: str) -> Optional[str]:
    """Return the 11-character video id in `raw`, or None."""
    src = normalize_text(raw)
    if not src:
        return None
    m = _find_link(src)
    return m.group(1) if m else None


def extract(raw: str) -> Optional[VideoReference]:
    """Extract a VideoReference from message text.

    Returns None when the text holds no supported link. That is the common
    case for chat traffic, not an error. `source_url` is the matched link
    alone, without the surrounding message text.
    """
    src = normalize_text(raw)
    if not src:
        return None
    m = _find_link(src)
    if m is None:
        return None
    return VideoReference(video_id=m.group(1), source_url=m.group(0))
