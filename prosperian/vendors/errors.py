"""Error types shared by the upstream API clients."""

from dataclasses import dataclass
from typing import Any, Optional

import requests

TIMEOUT_MARKER = "Timeout"


class UpstreamError(RuntimeError):
    """Raised when an upstream API call fails in a way the caller must surface."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload if payload is not None else message


@dataclass(frozen=True)
class TaggedError:
    """Failure of a bounded call, returned instead of raised."""

    error: Any
    timed_out: bool = False

    def as_payload(self) -> dict:
        return {"error": self.error}


def response_payload(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def upstream_error_from(exc: requests.RequestException, label: str) -> UpstreamError:
    """Wrap a requests exception, keeping the upstream status and body when there is one."""
    response = getattr(exc, "response", None)
    if response is not None:
        return UpstreamError(
            f"{label} failed with HTTP {response.status_code}",
            status_code=response.status_code,
            payload=response_payload(response),
        )
    return UpstreamError(f"{label} failed: {exc}", payload=str(exc))


def tag_failure(exc: requests.RequestException) -> TaggedError:
    if isinstance(exc, requests.Timeout):
        return TaggedError(TIMEOUT_MARKER, timed_out=True)
    response = getattr(exc, "response", None)
    if response is not None:
        return TaggedError(response_payload(response))
    return TaggedError(str(exc))
