"""
GitHub callback relay (GET /callback).

Two deployment variants, selected by BROKER_CALLBACK_MODE:
- exchange (default): the broker holds the client secret, trades the code for a
  token and redirects the client with access_token/token_type/scope.
- passthrough: the broker forwards GitHub's code untouched; the client performs
  the exchange with a secret held elsewhere (or via POST /token/{user}/{repo}).
A deployment runs exactly one of them.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from auth_broker.config import CALLBACK_MODE_PASSTHROUGH, BrokerSettings
from auth_broker.dependencies import callback_url, configured_settings, require_exchange_credentials
from auth_broker.errors import BrokerError, ErrorKind
from auth_broker.github import exchange_code
from auth_broker.redirects import redirect_error, redirect_to_client
from auth_broker.state import decode_state, resolve_state

logger = logging.getLogger(__name__)
router = APIRouter()


def _provider_error(
    error: str,
    error_description: str | None,
    state: str | None,
) -> RedirectResponse:
    """GitHub reported an error: forward it to the client if state tells us where, else 400."""
    decoded = decode_state(state)
    if decoded is None:
        logger.info("callback: provider error %s with no usable state", error)
        raise HTTPException(
            status_code=400,
            detail={"error": error, "error_description": error_description},
        )
    logger.info("callback: forwarding provider error %s to client", error)
    return redirect_error(decoded, BrokerError(ErrorKind.PROVIDER_ERROR, error, error_description))


@router.get("/callback")
def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    settings: BrokerSettings = Depends(configured_settings),
):
    """
    Validate GitHub's redirect, then hand the code (passthrough) or token (exchange)
    to the client's redirect_uri. Provider errors take priority over everything else.
    """
    if error:
        return _provider_error(error, error_description, state)

    resolved = resolve_state(code, state)
    if isinstance(resolved, BrokerError):
        logger.debug("callback rejected: %s", resolved.kind.value)
        raise HTTPException(status_code=400, detail=resolved.as_body())
    decoded = resolved

    if settings.callback_mode == CALLBACK_MODE_PASSTHROUGH:
        logger.info("callback: passing code through to client")
        return redirect_to_client(decoded, {"code": code})

    require_exchange_credentials(settings)
    result = exchange_code(settings, code, callback_url(request, settings))
    if isinstance(result, BrokerError):
        return redirect_error(decoded, result)
    if result.error:
        logger.info("callback: GitHub rejected code exchange: %s", result.error)
        return redirect_error(
            decoded,
            BrokerError(ErrorKind.EXCHANGE_REJECTED, result.error, result.error_description),
        )

    if not result.access_token:
        logger.warning("callback: GitHub token response had neither token nor error")
    else:
        logger.info("callback: token issued for %s/%s", decoded.user, decoded.repo)
    return redirect_to_client(decoded, result.token_params())
