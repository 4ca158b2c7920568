"""
Error kinds for the broker. Validation and exchange helpers return a BrokerError
instead of raising; routes decide whether it becomes a redirect or a JSON 400.
"""
from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    MISSING_PARAMETER = "missing_parameter"
    INVALID_STATE = "invalid_state"
    PROVIDER_ERROR = "provider_error"
    EXCHANGE_TRANSPORT_FAILURE = "exchange_transport_failure"
    EXCHANGE_REJECTED = "exchange_rejected"


MISSING_CODE_OR_STATE = "Missing code or state parameter"
INVALID_STATE = "Invalid state parameter"
TOKEN_EXCHANGE_FAILED = "token_exchange_failed"


@dataclass(frozen=True)
class BrokerError:
    kind: ErrorKind
    error: str
    error_description: str | None = None

    def as_body(self) -> dict:
        """JSON body for direct (non-redirect) error responses."""
        body = {"error": self.error}
        if self.error_description is not None:
            body["error_description"] = self.error_description
        return body

    def as_params(self) -> dict[str, str]:
        """Query parameters for redirecting the error to the client."""
        params = {"error": self.error}
        if self.error_description:
            params["error_description"] = self.error_description
        return params


def missing_parameter() -> BrokerError:
    return BrokerError(ErrorKind.MISSING_PARAMETER, MISSING_CODE_OR_STATE)


def invalid_state() -> BrokerError:
    return BrokerError(ErrorKind.INVALID_STATE, INVALID_STATE)
