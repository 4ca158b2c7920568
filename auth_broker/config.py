"""
Broker configuration. Bound once from the environment at process start.
The client secret comes from env only and is never logged or echoed.
"""
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

logger = logging.getLogger(__name__)

# GitHub OAuth endpoints (public, fixed)
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"

# Always requested from GitHub; the editor needs repo access and the user's identity
REQUIRED_SCOPES = ("repo", "read:user", "user:email")

# Scope asserted for IndieAuth tokens issued by this broker
INDIEAUTH_SCOPE = "create update delete media"

SERVICE_NAME = "auth_broker"
VERSION = "0.1.0"
USER_AGENT = f"Janos-Auth-Broker/{VERSION}"

CALLBACK_MODE_EXCHANGE = "exchange"
CALLBACK_MODE_PASSTHROUGH = "passthrough"
CALLBACK_MODES = {CALLBACK_MODE_EXCHANGE, CALLBACK_MODE_PASSTHROUGH}


@dataclass(frozen=True)
class BrokerSettings:
    github_client_id: str
    github_client_secret: str = field(default="", repr=False)
    # exchange: broker trades the code for a token; passthrough: client does it
    callback_mode: str = CALLBACK_MODE_EXCHANGE
    # Public origin of the broker, e.g. https://auth.example.com. None = request origin.
    public_url: str | None = None
    http_timeout: float = 10.0
    indieauth_token_ttl: int = 3600
    token_signing_key: str = field(default="", repr=False)

    @property
    def is_configured(self) -> bool:
        return bool(self.github_client_id)

    @property
    def can_exchange(self) -> bool:
        """True when the broker holds the credentials needed to call GitHub's token endpoint."""
        return bool(self.github_client_id and self.github_client_secret)

    @property
    def signing_key(self) -> str:
        return self.token_signing_key or self.github_client_secret


def load_settings() -> BrokerSettings:
    """Read settings from the environment. Unknown callback modes fall back to exchange."""
    mode = os.environ.get("BROKER_CALLBACK_MODE", CALLBACK_MODE_EXCHANGE).strip().lower()
    if mode not in CALLBACK_MODES:
        logger.warning("Unknown BROKER_CALLBACK_MODE=%s; using %s", mode, CALLBACK_MODE_EXCHANGE)
        mode = CALLBACK_MODE_EXCHANGE
    public_url = os.environ.get("BROKER_PUBLIC_URL", "").strip().rstrip("/") or None
    return BrokerSettings(
        github_client_id=os.environ.get("GITHUB_CLIENT_ID", "").strip(),
        github_client_secret=os.environ.get("GITHUB_CLIENT_SECRET", "").strip(),
        callback_mode=mode,
        public_url=public_url,
        http_timeout=float(os.environ.get("BROKER_HTTP_TIMEOUT", "10")),
        indieauth_token_ttl=int(os.environ.get("BROKER_INDIEAUTH_TOKEN_TTL", "3600")),
        token_signing_key=os.environ.get("BROKER_TOKEN_SIGNING_KEY", "").strip(),
    )


@lru_cache
def get_settings() -> BrokerSettings:
    """FastAPI dependency: process-wide settings, loaded once."""
    return load_settings()
