"""Client utilities for the Pronto lead and company enrichment API."""

import logging
from typing import Any, Dict, List, Optional, Union

import requests

from prosperian.core.config import get_settings
from prosperian.vendors.bounded import Deadline, bounded_request
from prosperian.vendors.errors import TaggedError, response_payload, tag_failure, upstream_error_from

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

DEFAULT_TIMEOUT = 30
DETAIL_TIMEOUT = 0.9
ENRICH_TIMEOUT = 0.8


def _headers() -> Dict[str, str]:
    return {
        "X-API-KEY": get_settings().pronto_api_key,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def request(
    method: str,
    path: str,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Send an authenticated request and return the decoded body.

    ``timeout`` bounds the whole call, body included, in seconds.

    Raises UpstreamError carrying the upstream status and body on any failure.
    """
    url = f"{get_settings().pronto_base_url}{path}"
    logger.info("Pronto API Request: %s %s", method.upper(), path)
    try:
        response = bounded_request(
            _SESSION, method, url, Deadline(timeout), headers=_headers(), json=json, params=params
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        error = upstream_error_from(exc, f"Pronto {method.upper()} {path}")
        logger.error("Pronto API Response Error: %s %s", error.status_code, error.payload)
        raise error from exc
    logger.info("Pronto API Response: %s %s", response.status_code, path)
    if not response.content:
        return {}
    return response_payload(response)


def list_searches() -> List[Dict[str, Any]]:
    payload = request("GET", "/searches")
    if not isinstance(payload, dict):
        return []
    return payload.get("searches") or []


def fetch_detail(search_id: str, timeout: float = DETAIL_TIMEOUT) -> Dict[str, Any]:
    return request("GET", f"/searches/{search_id}", timeout=timeout)


def extract_leads(search_id: str, page: int = 1, limit: int = 100) -> Dict[str, Any]:
    return request("POST", "/leads/extract", json={"search_id": search_id, "page": page, "limit": limit})


def enrich_lead(payload: Dict[str, Any]) -> Dict[str, Any]:
    return request("POST", "/enrichments/lead", json=payload)


def enrich_account(payload: Dict[str, Any]) -> Dict[str, Any]:
    return request("POST", "/enrichments/account", json=payload)


def post_enrich(payload: Dict[str, Any], timeout: float = ENRICH_TIMEOUT) -> Union[Dict[str, Any], TaggedError]:
    """Single account enrichment bounded by ``timeout``.

    Never raises for upstream failures: a timeout or error response comes back
    as a TaggedError so callers can tell the two apart.
    """
    url = f"{get_settings().pronto_base_url}/accounts/single_enrich"
    try:
        response = bounded_request(_SESSION, "POST", url, Deadline(timeout), headers=_headers(), json=payload)
        response.raise_for_status()
    except requests.RequestException as exc:
        tagged = tag_failure(exc)
        if tagged.timed_out:
            logger.warning("single_enrich timed out for name=%s", payload.get("name"))
        else:
            logger.warning("single_enrich failed for name=%s: %s", payload.get("name"), tagged.error)
        return tagged
    return response_payload(response)

