"""
State codec: the opaque blob carried through GitHub's authorize redirect.

Wire format is base64 of a compact JSON object with camelCase keys. The blob is
not signed or encrypted; it relies on TLS and on GitHub echoing it untouched.
Layer an HMAC over the encoded value if tamper-resistance is ever required,
but that changes the wire format every in-flight authorize redirect carries.
"""
import base64
import binascii
import json
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from auth_broker.errors import BrokerError, invalid_state, missing_parameter

logger = logging.getLogger(__name__)


def is_absolute_url(value: str) -> bool:
    """Well-formed absolute URL: a scheme, and a host for http(s)."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not parts.scheme[0].isalpha():
        return False
    if parts.scheme.lower() in ("http", "https"):
        return bool(parts.hostname)
    return bool(parts.netloc or parts.path)


# (attribute, JSON key) in serialization order
_FIELDS = (
    ("redirect_uri", "redirectUri"),
    ("client_state", "clientState"),
    ("client_id", "clientId"),
    ("me", "me"),
    ("code_challenge", "codeChallenge"),
    ("code_challenge_method", "codeChallengeMethod"),
    ("user", "user"),
    ("repo", "repo"),
)


@dataclass(frozen=True)
class DecodedState:
    redirect_uri: str
    client_state: str | None = None
    client_id: str | None = None
    me: str | None = None
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    user: str | None = None
    repo: str | None = None

    def to_dict(self) -> dict[str, str]:
        """JSON object form; unset optional fields are omitted."""
        return {key: getattr(self, attr) for attr, key in _FIELDS if getattr(self, attr) is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "DecodedState | None":
        redirect_uri = data.get("redirectUri")
        if not isinstance(redirect_uri, str) or not is_absolute_url(redirect_uri):
            return None
        values = {}
        for attr, key in _FIELDS[1:]:
            value = data.get(key)
            values[attr] = value if isinstance(value, str) else None
        return cls(redirect_uri=redirect_uri, **values)


def encode_state(state: DecodedState) -> str:
    payload = json.dumps(state.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_state(value: str | None) -> DecodedState | None:
    """
    Inverse of encode_state. Returns None for anything malformed, never raises.
    Accepts the URL-safe alphabet and missing padding as well.
    """
    if not value:
        return None
    try:
        normalized = value.strip().replace("-", "+").replace("_", "/")
        normalized += "=" * (-len(normalized) % 4)
        raw = base64.b64decode(normalized, validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError):
        logger.debug("state rejected: not base64-encoded JSON")
        return None
    if not isinstance(data, dict):
        return None
    return DecodedState.from_dict(data)


def resolve_state(code: str | None, state: str | None) -> DecodedState | BrokerError:
    """Shared validation for callback and token exchange: code and state present, state decodable."""
    if not code or not state:
        return missing_parameter()
    decoded = decode_state(state)
    if decoded is None:
        return invalid_state()
    return decoded
