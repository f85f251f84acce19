"""Passthrough client for the public recherche-entreprises API."""

import logging
from typing import Any, Dict, Optional

import requests

from prosperian.vendors.errors import response_payload, upstream_error_from

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://recherche-entreprises.api.gouv.fr"


def search(params: Optional[Dict[str, Any]] = None) -> Any:
    try:
        response = _SESSION.get(
            f"{_BASE_URL}/search",
            params=params,
            headers={"accept": "application/json"},
            timeout=10,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        error = upstream_error_from(exc, "recherche-entreprises search")
        logger.error("Company search failed: %s %s", error.status_code, error.payload)
        raise error from exc
    return response_payload(response)
