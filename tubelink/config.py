"""tubelink configuration management."""

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigurationError

logger = logging.getLogger("tubelink.config")

WorkMode = Literal["standalone", "delegate"]
TransportChoice = Literal["host", "standalone"]
ProxyProtocol = Literal["http", "https", "socks4", "socks5", "socks5h"]
OutputForm = Literal["text", "image", "forward"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class DescriptionPolicy:
    """How much of a video description reaches the chat."""
    hide: bool = True
    max_length: int = 300


@dataclass(frozen=True)
class TransportPolicy:
    """Outbound HTTP settings for the standalone transport."""
    proxy_protocol: str = "socks5"
    proxy_host: str = "127.0.0.1"
    proxy_port: int = 7890
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0

    @property
    def proxy_url(self) -> str:
        return f"{self.proxy_protocol}://{self.proxy_host}:{self.proxy_port}"


class TubelinkSettings(BaseSettings):
    """Settings loaded from environment variables or .env file.

    One instance is built at startup and handed to every component. It is
    frozen, so nothing downstream can change it mid-cycle.
    """

    # Basics
    youtube_api_key: str = Field(default="", description="YouTube Data API v3 key (required)")
    enable_link_parsing: bool = Field(default=True, description="Parse YouTube links found in chat messages")
    work_mode: WorkMode = Field(default="standalone", description="standalone = fetch/render here, delegate = ask a peer")
    delegate_url: str = Field(default="http://127.0.0.1:8020", description="Base URL of the peer in delegate mode")

    # Outbound requests
    transport: TransportChoice = Field(default="host", description="host = shared client, standalone = proxied client")
    proxy_protocol: ProxyProtocol = Field(default="socks5", description="Proxy protocol for the standalone transport")
    proxy_host: str = Field(default="127.0.0.1", description="Proxy host or IP")
    proxy_port: int = Field(default=7890, ge=0, le=65535, description="Proxy port")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent for the standalone transport")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    # Description
    hide_description: bool = Field(default=True, description="Replace the description with a placeholder")
    max_description_length: int = Field(default=300, ge=0, description="Truncate longer descriptions")

    # Output
    output_forms: list[OutputForm] = Field(default_factory=lambda: ["text"], description="text, image, forward")
    quote_when_send: bool = Field(default=True, description="Quote the origin message in replies")

    # Whitelist: {"telegram": ["12345", ...]}
    platform_whitelist: dict[str, list[str]] = Field(default_factory=dict, description="Per-platform user whitelist")
    send_whitelist_hint: bool = Field(default=True, description="Reply with the whitelist check result")

    # Delegation service
    enable_service: bool = Field(default=False, description="Serve /parse, /render-from-url, /render")
    service_host: str = Field(default="0.0.0.0", description="Service bind host")
    service_port: int = Field(default=18020, ge=1024, le=65535, description="Service bind port")

    # Debug
    verbose_session_output: bool = Field(default=False, description="Include error details in chat replies")
    verbose_console_output: bool = Field(default=False, description="Include error details in the log")

    # Host
    telegram_bot_token: Optional[str] = Field(default=None, description="Telegram bot token")

    model_config = {"env_prefix": "TUBELINK_", "env_file": ".env", "extra": "ignore", "frozen": True}

    @field_validator("platform_whitelist", mode="before")
    @classmethod
    def _user_ids_as_strings(cls, value):
        # Telegram ids arrive as JSON numbers
        if isinstance(value, dict):
            return {
                platform: [str(user_id) for user_id in users] if isinstance(users, list) else users
                for platform, users in value.items()
            }
        return value

    def description_policy(self) -> DescriptionPolicy:
        return DescriptionPolicy(hide=self.hide_description, max_length=self.max_description_length)

    def transport_policy(self) -> TransportPolicy:
        return TransportPolicy(
            proxy_protocol=self.proxy_protocol,
            proxy_host=self.proxy_host,
            proxy_port=self.proxy_port,
            user_agent=self.user_agent,
            timeout=self.request_timeout,
        )


def validate_settings(settings: TubelinkSettings) -> TubelinkSettings:
    """Fail fast on settings that would break every message.

    Raises:
        ConfigurationError: when a required value is missing
    """
    if not settings.youtube_api_key.strip():
        raise ConfigurationError(
            "youtube_api_key is required. Set TUBELINK_YOUTUBE_API_KEY in the environment or .env"
        )
    if settings.work_mode == "delegate" and not settings.delegate_url.strip():
        raise ConfigurationError("delegate_url is required when work_mode is 'delegate'")
    if "forward" in settings.output_forms:
        logger.warning("Output form 'forward' is not implemented yet and will be skipped.")
    return settings


def load_settings(**overrides) -> TubelinkSettings:
    """Load settings from environment and validate them."""
    try:
        settings = TubelinkSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    return validate_settings(settings)
