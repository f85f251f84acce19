"""Client utilities for the INSEE Sirene business registry API."""

import logging
import threading
from typing import Any, Dict, Optional, Union

import requests

from prosperian.core.config import get_settings
from prosperian.vendors.bounded import Deadline, bounded_request
from prosperian.vendors.errors import (
    TIMEOUT_MARKER,
    TaggedError,
    UpstreamError,
    response_payload,
    tag_failure,
    upstream_error_from,
)

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

DEFAULT_TIMEOUT = 30
REGISTRY_TIMEOUT = 0.8

_token_lock = threading.Lock()
_access_token: Optional[str] = None


def _current_token() -> str:
    global _access_token
    with _token_lock:
        if _access_token is None:
            _access_token = get_settings().insee_access_token
        return _access_token


def refresh_token(deadline: Optional[Deadline] = None) -> str:
    """Exchange the client credentials for a new bearer token.

    ``deadline`` lets a bounded caller spend only what is left of its budget.
    """
    global _access_token
    settings = get_settings()
    deadline = deadline if deadline is not None else Deadline(DEFAULT_TIMEOUT)
    try:
        response = bounded_request(
            _SESSION,
            "POST",
            settings.insee_token_url,
            deadline,
            data={"grant_type": "client_credentials"},
            auth=(settings.insee_client_id, settings.insee_client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        error = upstream_error_from(exc, "INSEE token refresh")
        logger.error("INSEE token refresh failed: %s", error.payload)
        raise error from exc

    payload = response_payload(response)
    token = payload.get("access_token") if isinstance(payload, dict) else None
    if not token:
        raise UpstreamError("INSEE token refresh returned no access_token", payload=payload)
    with _token_lock:
        _access_token = token
    logger.info("INSEE access token refreshed")
    return token


def _send(
    method: str,
    path: str,
    deadline: Deadline,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> requests.Response:
    """One call, plus a token refresh and a single retry on 401, all within ``deadline``."""
    url = f"{get_settings().insee_base_url}{path}"

    def attempt(token: str) -> requests.Response:
        return bounded_request(
            _SESSION,
            method,
            url,
            deadline,
            params=params,
            data=data,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )

    response = attempt(_current_token())
    if response.status_code == 401:
        logger.info("INSEE returned 401 for %s %s; refreshing token", method, path)
        response = attempt(refresh_token(deadline))
    response.raise_for_status()
    return response


def insee_request(
    method: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Authenticated registry call, re-authenticating once on 401."""
    try:
        response = _send(method, path, Deadline(timeout), params=params, data=data)
    except requests.RequestException as exc:
        error = upstream_error_from(exc, f"INSEE {method} {path}")
        logger.error("INSEE request failed: %s %s", error.status_code, error.payload)
        raise error from exc
    return response_payload(response)


def search_legal_units(params: Optional[Dict[str, Any]] = None) -> Any:
    return insee_request("GET", "/unitesLegales", params=params)


def get_siren(siren: str) -> Any:
    return insee_request("GET", f"/siren/{siren}")


def get_siret(siret: str) -> Any:
    return insee_request("GET", f"/siret/{siret}")


def search_establishments(query: str) -> Any:
    return insee_request("GET", "/siret", params={"q": query})


def post_registry_search(company_name: str, timeout: float = REGISTRY_TIMEOUT) -> Union[Dict[str, Any], TaggedError]:
    """Search establishments by quoted company name.

    ``timeout`` covers the whole search, including a token refresh and its
    retry. Failures are returned as a TaggedError rather than raised.
    """
    deadline = Deadline(timeout)
    try:
        response = _send("POST", "/siret", deadline, data={"q": f'"{company_name}"'})
    except requests.RequestException as exc:
        tagged = tag_failure(exc)
        if tagged.timed_out:
            logger.warning("Registry search timed out for %s", company_name)
        else:
            logger.warning("Registry search failed for %s: %s", company_name, tagged.error)
        return tagged
    except UpstreamError as exc:
        if isinstance(exc.__cause__, requests.Timeout) or deadline.expired():
            logger.warning("Registry search timed out for %s during token refresh", company_name)
            return TaggedError(TIMEOUT_MARKER, timed_out=True)
        logger.warning("Registry search for %s could not authenticate: %s", company_name, exc.payload)
        return TaggedError(exc.payload)
    return response_payload(response)
