"""
Outbound calls to GitHub: code-for-token exchange, user lookup, and the IndieAuth
`me` URL for a user/repo pair. Failures come back as values, not exceptions.
"""
import logging
from dataclasses import dataclass

import httpx

from auth_broker.config import GITHUB_API_URL, GITHUB_TOKEN_URL, USER_AGENT, BrokerSettings
from auth_broker.errors import TOKEN_EXCHANGE_FAILED, BrokerError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderTokenResponse:
    access_token: str | None = None
    token_type: str | None = None
    scope: str | None = None
    error: str | None = None
    error_description: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> "ProviderTokenResponse":
        def _str(key: str) -> str | None:
            value = data.get(key)
            return value if isinstance(value, str) and value else None

        return cls(
            access_token=_str("access_token"),
            token_type=_str("token_type"),
            scope=_str("scope"),
            error=_str("error"),
            error_description=_str("error_description"),
        )

    def token_params(self) -> dict[str, str]:
        """Token fields for the client redirect; empty when GitHub sent no token."""
        params = {}
        if self.access_token:
            params["access_token"] = self.access_token
        if self.token_type:
            params["token_type"] = self.token_type
        if self.scope:
            params["scope"] = self.scope
        return params


@dataclass(frozen=True)
class GitHubUser:
    id: int
    login: str
    name: str | None = None
    html_url: str | None = None


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _api_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }


def exchange_code(settings: BrokerSettings, code: str, callback_url: str) -> ProviderTokenResponse | BrokerError:
    """
    POST the authorization code to GitHub's token endpoint with the client secret.
    Transport errors, timeouts, non-2xx and unreadable bodies become token_exchange_failed.
    A 2xx body with `error` is returned as-is; callers decide how to surface it.
    """
    try:
        r = httpx.post(
            GITHUB_TOKEN_URL,
            json={
                "client_id": settings.github_client_id,
                "client_secret": settings.github_client_secret,
                "code": code,
                "redirect_uri": callback_url,
            },
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            timeout=settings.http_timeout,
        )
    except httpx.TimeoutException:
        logger.warning("GitHub token exchange timed out after %ss", settings.http_timeout)
        return BrokerError(
            ErrorKind.EXCHANGE_TRANSPORT_FAILURE,
            TOKEN_EXCHANGE_FAILED,
            "GitHub token exchange timed out",
        )
    except httpx.HTTPError as e:
        logger.warning("GitHub token exchange transport error: %s", type(e).__name__)
        return BrokerError(
            ErrorKind.EXCHANGE_TRANSPORT_FAILURE,
            TOKEN_EXCHANGE_FAILED,
            f"GitHub token exchange failed: {e}" if str(e) else "GitHub token exchange failed",
        )

    if not _is_success(r.status_code):
        reason = getattr(r, "reason_phrase", "") or str(r.status_code)
        logger.warning("GitHub token exchange returned HTTP %s", r.status_code)
        return BrokerError(
            ErrorKind.EXCHANGE_TRANSPORT_FAILURE,
            TOKEN_EXCHANGE_FAILED,
            f"GitHub token exchange failed: {reason}",
        )

    try:
        data = r.json()
    except ValueError:
        logger.warning("GitHub token exchange returned a non-JSON body")
        return BrokerError(
            ErrorKind.EXCHANGE_TRANSPORT_FAILURE,
            TOKEN_EXCHANGE_FAILED,
            "GitHub token exchange returned an unreadable response",
        )
    if not isinstance(data, dict):
        return BrokerError(
            ErrorKind.EXCHANGE_TRANSPORT_FAILURE,
            TOKEN_EXCHANGE_FAILED,
            "GitHub token exchange returned an unreadable response",
        )
    return ProviderTokenResponse.from_json(data)


def fetch_user(token: str, timeout: float = 10.0) -> GitHubUser | None:
    """GET /user with the token. None if GitHub rejects it or is unreachable."""
    try:
        r = httpx.get(f"{GITHUB_API_URL}/user", headers=_api_headers(token), timeout=timeout)
    except httpx.HTTPError as e:
        logger.warning("GitHub user lookup failed: %s", type(e).__name__)
        return None
    if not _is_success(r.status_code):
        logger.debug("GitHub user lookup returned HTTP %s", r.status_code)
        return None
    try:
        data = r.json()
        return GitHubUser(
            id=int(data["id"]),
            login=str(data["login"]),
            name=data.get("name"),
            html_url=data.get("html_url"),
        )
    except (ValueError, KeyError, TypeError):
        logger.warning("GitHub user lookup returned an unexpected body")
        return None


def default_me_url(user: str, repo: str) -> str:
    user_lower = user.lower()
    if repo.lower() == f"{user_lower}.github.io":
        return f"https://{user_lower}.github.io"
    return f"https://{user_lower}.github.io/{repo}"


def resolve_me_url(user: str, repo: str, token: str, timeout: float = 10.0) -> str:
    """
    The user's site URL for IndieAuth `me`: the user pages root for a
    {user}.github.io repo, else the repo's https homepage, else its GitHub Pages URL.
    """
    if repo.lower() == f"{user.lower()}.github.io":
        return default_me_url(user, repo)
    try:
        r = httpx.get(f"{GITHUB_API_URL}/repos/{user}/{repo}", headers=_api_headers(token), timeout=timeout)
        if _is_success(r.status_code):
            homepage = r.json().get("homepage")
            if isinstance(homepage, str) and homepage.startswith("https://"):
                return homepage
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.debug("repo homepage lookup failed for %s/%s: %s", user, repo, type(e).__name__)
    return default_me_url(user, repo)
