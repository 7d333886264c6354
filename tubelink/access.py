"""Per-platform user whitelist.

Whitelisting is opt-in per platform: a platform with no entry (or an
empty user list) lets everyone through. Evaluated before any network call,
so a denied user costs nothing beyond an optional hint reply.
"""

import logging
from typing import Mapping, Sequence

from .models import AccessDecision

logger = logging.getLogger("tubelink.access")

ALLOW_HINT = "✅ Whitelisted user, parsing link..."
DENY_HINT = "❌ Not a whitelisted user, skipped."


def is_whitelisted(platform: str, user_id: str, whitelist: Mapping[str, Sequence[str]]) -> bool:
    if not whitelist:
        return True
    users = whitelist.get(platform)
    if not users:
        return True
    return str(user_id) in {str(u) for u in users}


def evaluate(
    platform: str,
    user_id: str,
    whitelist: Mapping[str, Sequence[str]],
    hint_enabled: bool,
) -> AccessDecision:
    """Decide whether a detected link from this user should be processed.

    Args:
        platform: Host platform name (e.g. "telegram")
        user_id: Platform user id of the sender
        whitelist: platform name → allowed user ids
        hint_enabled: Whether to produce a reply describing the decision

    Returns:
        AccessDecision; hint_message is None when hints are disabled
    """
    allowed = is_whitelisted(platform, user_id, whitelist)
    if not allowed:
        logger.info(f"Whitelist: {platform} user {user_id} denied")
    hint = None
    if hint_enabled:
        hint = ALLOW_HINT if allowed else DENY_HINT
    return AccessDecision(allowed=allowed, hint_message=hint)
