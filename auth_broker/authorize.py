"""
Authorization relay. GET /authorize/{user}/{repo}: pack the client's redirect_uri and
PKCE/IndieAuth params into state, then redirect to GitHub with our own callback URL.
"""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse

from auth_broker.config import GITHUB_AUTHORIZE_URL, REQUIRED_SCOPES, BrokerSettings
from auth_broker.dependencies import callback_url, configured_settings
from auth_broker.state import DecodedState, encode_state, is_absolute_url

logger = logging.getLogger(__name__)
router = APIRouter()


def merge_scopes(requested: str | None) -> str:
    """Required scopes first, then any requested extras; duplicates dropped, order kept."""
    scopes = list(REQUIRED_SCOPES)
    for s in (requested or "").split():
        if s not in scopes:
            scopes.append(s)
    return " ".join(scopes)


def build_github_authorize_url(*, client_id: str, callback: str, scope: str, state: str, login: str) -> str:
    params = {
        "client_id": client_id,
        "redirect_uri": callback,
        "scope": scope,
        "state": state,
        # account hint for GitHub's login page
        "login": login,
    }
    return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"


@router.get("/authorize/{user}/{repo}")
def authorize(
    request: Request,
    user: str,
    repo: str,
    redirect_uri: str | None = None,
    state: str | None = None,
    scope: str | None = None,
    client_id: str | None = None,
    response_type: str | None = None,
    me: str | None = None,
    code_challenge: str | None = None,
    code_challenge_method: str | None = None,
    settings: BrokerSettings = Depends(configured_settings),
):
    """
    Start the OAuth flow. redirect_uri is required and must be an absolute URL;
    everything else rides along in state unexamined. response_type is accepted
    for IndieAuth clients but GitHub only speaks `code`.
    """
    if not redirect_uri:
        raise HTTPException(status_code=400, detail={"error": "redirect_uri is required"})
    if not is_absolute_url(redirect_uri):
        logger.debug("authorize rejected: redirect_uri is not an absolute URL")
        raise HTTPException(status_code=400, detail={"error": "Invalid redirect_uri"})

    encoded = encode_state(
        DecodedState(
            redirect_uri=redirect_uri,
            client_state=state,
            client_id=client_id,
            me=me,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            user=user,
            repo=repo,
        )
    )
    url = build_github_authorize_url(
        client_id=settings.github_client_id,
        callback=callback_url(request, settings),
        scope=merge_scopes(scope),
        state=encoded,
        login=user,
    )
    logger.info("authorize: redirecting to GitHub for %s/%s", user, repo)
    return RedirectResponse(url=url, status_code=302)
