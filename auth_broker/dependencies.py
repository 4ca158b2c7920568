"""
FastAPI dependencies shared by the broker routes.
"""
import logging

from fastapi import Depends, HTTPException, Request

from auth_broker.config import BrokerSettings, get_settings

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS = "Server configuration error: missing credentials"


def configured_settings(settings: BrokerSettings = Depends(get_settings)) -> BrokerSettings:
    """Settings with a GitHub client id; 500 otherwise."""
    if not settings.is_configured:
        logger.error("GITHUB_CLIENT_ID is not set")
        raise HTTPException(status_code=500, detail={"error": MISSING_CREDENTIALS})
    return settings


def require_exchange_credentials(settings: BrokerSettings) -> None:
    """Raise 500 unless both client id and secret are configured."""
    if not settings.can_exchange:
        logger.error("GITHUB_CLIENT_SECRET is not set; cannot exchange codes")
        raise HTTPException(status_code=500, detail={"error": MISSING_CREDENTIALS})


def broker_origin(request: Request, settings: BrokerSettings) -> str:
    """Public origin of this broker: BROKER_PUBLIC_URL, else the origin the request was served on."""
    if settings.public_url:
        return settings.public_url
    return f"{request.url.scheme}://{request.url.netloc}"


def callback_url(request: Request, settings: BrokerSettings) -> str:
    """GitHub-facing redirect_uri. Never derived from query input."""
    return f"{broker_origin(request, settings)}/callback"
