"""
Redirect helpers shared by the relay routes.
"""
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi.responses import RedirectResponse

from auth_broker.errors import BrokerError
from auth_broker.state import DecodedState


def with_query_params(url: str, params: dict[str, str]) -> str:
    """Set params on url's query string, replacing any existing values of the same name."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in params]
    query.extend(params.items())
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def redirect_to_client(decoded: DecodedState, params: dict[str, str]) -> RedirectResponse:
    """302 to the client's redirect_uri, echoing its own state back as `state`."""
    params = dict(params)
    if decoded.client_state:
        params["state"] = decoded.client_state
    return RedirectResponse(url=with_query_params(decoded.redirect_uri, params), status_code=302)


def redirect_error(decoded: DecodedState, err: BrokerError) -> RedirectResponse:
    return redirect_to_client(decoded, err.as_params())
