"""
IndieAuth token endpoint for /token/{user}/{repo}.

GET verifies a token this broker issued (locally, no GitHub call) and returns
{me, scope, client_id}. POST exchanges a GitHub authorization code for an IndieAuth
token and returns JSON instead of a redirect. The GitHub access token obtained during
the exchange is used server-side only and never returned to the IndieAuth client.
"""
import hashlib
import hmac
import logging
import re
from base64 import urlsafe_b64encode
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException, Request

from auth_broker.config import INDIEAUTH_SCOPE, BrokerSettings
from auth_broker.dependencies import broker_origin, callback_url, configured_settings, require_exchange_credentials
from auth_broker.errors import MISSING_CODE_OR_STATE, BrokerError
from auth_broker.github import exchange_code, fetch_user, resolve_me_url
from auth_broker.indieauth_tokens import issue_token, verify_token
from auth_broker.state import DecodedState, resolve_state

logger = logging.getLogger(__name__)
router = APIRouter()

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


@dataclass
class TokenExchangeRequest:
    grant_type: str | None = None
    code: str | None = None
    state: str | None = None
    client_id: str | None = None
    code_verifier: str | None = None


async def token_exchange_request(request: Request) -> TokenExchangeRequest:
    """Parse a JSON or form-encoded body. Unreadable bodies parse as empty."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
    else:
        form = await request.form()
        data = dict(form)

    def _field(name: str) -> str | None:
        value = data.get(name)
        if not isinstance(value, str):
            return None
        return value.strip() or None

    return TokenExchangeRequest(
        grant_type=_field("grant_type"),
        code=_field("code"),
        state=_field("state"),
        client_id=_field("client_id"),
        code_verifier=_field("code_verifier"),
    )


def _unauthorized(description: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"error": "unauthorized", "error_description": description},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _pkce_verify(code_verifier: str, code_challenge: str, method: str | None) -> bool:
    """Verify PKCE: S256 only; SHA256(verifier) base64url == challenge."""
    if (method or "S256") != "S256":
        return False
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    computed = urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return hmac.compare_digest(computed.encode("ascii"), code_challenge.encode("utf-8", "surrogatepass"))


def _check_state_binding(decoded: DecodedState, body: TokenExchangeRequest) -> None:
    """Client id and PKCE recorded at authorize time must match the exchange request."""
    if decoded.client_id and body.client_id != decoded.client_id:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_grant", "error_description": "client_id mismatch"},
        )
    if decoded.code_challenge:
        if not body.code_verifier or not body.code_verifier.isascii():
            raise HTTPException(
                status_code=400,
                detail={"error": "invalid_grant", "error_description": "code_verifier is required"},
            )
        if not _pkce_verify(body.code_verifier, decoded.code_challenge, decoded.code_challenge_method):
            raise HTTPException(
                status_code=400,
                detail={"error": "invalid_grant", "error_description": "PKCE verification failed"},
            )


@router.get("/token/{user}/{repo}")
def verify(
    request: Request,
    user: str,
    repo: str,
    code: str | None = None,
    settings: BrokerSettings = Depends(configured_settings),
):
    """
    Token verification. Token from `Authorization: Bearer ...`, or the `code`
    query parameter for clients that cannot set headers.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header:
        match = _BEARER_RE.match(auth_header.strip())
        if not match:
            raise _unauthorized("Invalid token format")
        token = match.group(1).strip()
    elif code:
        token = code
    else:
        raise _unauthorized("No token provided")

    claims = verify_token(settings, token)
    if claims is None:
        raise _unauthorized("Invalid token")
    if str(claims["sub"]).lower() != user.lower():
        raise HTTPException(
            status_code=403,
            detail={"error": "forbidden", "error_description": "Token does not belong to this user"},
        )
    return {
        "me": claims["me"],
        "scope": claims.get("scope", INDIEAUTH_SCOPE),
        "client_id": claims.get("client_id"),
    }


@router.post("/token/{user}/{repo}")
def exchange(
    request: Request,
    user: str,
    repo: str,
    body: TokenExchangeRequest = Depends(token_exchange_request),
    settings: BrokerSettings = Depends(configured_settings),
):
    """
    authorization_code exchange. `grant_type` may be omitted by simple clients.
    `state` is optional (IndieAuth clients never see the broker's state); when sent it
    must decode, and any client_id / PKCE challenge it carries must match.
    A client-sent redirect_uri is ignored: GitHub only accepts our own callback URL.
    """
    if body.grant_type and body.grant_type != "authorization_code":
        raise HTTPException(
            status_code=400,
            detail={"error": "unsupported_grant_type", "error_description": "Only authorization_code is supported"},
        )
    if not body.code:
        raise HTTPException(status_code=400, detail={"error": MISSING_CODE_OR_STATE})
    if body.state:
        resolved = resolve_state(body.code, body.state)
        if isinstance(resolved, BrokerError):
            raise HTTPException(status_code=400, detail=resolved.as_body())
        _check_state_binding(resolved, body)

    require_exchange_credentials(settings)
    result = exchange_code(settings, body.code, callback_url(request, settings))
    if isinstance(result, BrokerError):
        raise HTTPException(
            status_code=502,
            detail={"error": "server_error", "error_description": "Failed to exchange code"},
        )
    if result.error:
        raise HTTPException(
            status_code=400,
            detail={"error": result.error, "error_description": result.error_description},
        )
    if not result.access_token:
        raise HTTPException(
            status_code=502,
            detail={"error": "server_error", "error_description": "No access token in response"},
        )

    github_user = fetch_user(result.access_token, timeout=settings.http_timeout)
    if github_user is None:
        raise HTTPException(
            status_code=502,
            detail={"error": "server_error", "error_description": "Failed to verify token"},
        )
    if github_user.login.lower() != user.lower():
        logger.info("token exchange: GitHub user does not match %s", user)
        raise HTTPException(
            status_code=403,
            detail={"error": "forbidden", "error_description": "Authenticated user does not match expected user"},
        )

    me = resolve_me_url(user, repo, result.access_token, timeout=settings.http_timeout)
    access_token = issue_token(
        settings,
        issuer=broker_origin(request, settings),
        login=github_user.login,
        me=me,
        client_id=body.client_id,
        scope=INDIEAUTH_SCOPE,
    )
    logger.info("token exchange: IndieAuth token issued for %s (client_id=%s)", github_user.login, body.client_id)
    return {
        "access_token": access_token,
        "token_type": "Bearer",
        "scope": INDIEAUTH_SCOPE,
        "me": me,
    }
