"""
IndieAuth access tokens issued by the token endpoint (POST) and verified locally (GET).
Self-contained HS256 JWTs: no storage, no call to GitHub on verification.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt

from auth_broker.config import BrokerSettings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def issue_token(
    settings: BrokerSettings,
    *,
    issuer: str,
    login: str,
    me: str,
    client_id: str | None,
    scope: str,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "iss": issuer,
        "sub": login,
        "me": me,
        "scope": scope,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.indieauth_token_ttl)).timestamp()),
    }
    if client_id:
        payload["client_id"] = client_id
    token = jwt.encode(payload, settings.signing_key, algorithm=ALGORITHM, headers={"typ": "JWT"})
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def verify_token(settings: BrokerSettings, token: str) -> dict | None:
    """Decoded claims if the signature is ours and the token is unexpired; else None."""
    if not settings.signing_key:
        return None
    try:
        claims = jwt.decode(
            token,
            settings.signing_key,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub", "me"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("IndieAuth token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("IndieAuth token rejected: %s", type(e).__name__)
        return None
    return claims
