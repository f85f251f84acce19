"""Client utilities for the Google Places API."""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def text_search(query: str, api_key: str, pagetoken: Optional[str] = None) -> Dict[str, Any]:
    params = {"query": query, "key": api_key, "language": "fr"}
    if pagetoken:
        params["pagetoken"] = pagetoken
    response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("text_search failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def search_places(activity: str, location: str, api_key: str, limit: int = 50) -> List[Dict[str, Any]]:
    """Collect up to ``limit`` raw results for ``activity`` in ``location``, following page tokens."""
    query = f"{activity} {location}".strip()
    results: List[Dict[str, Any]] = []
    page_token = None
    while len(results) < limit:
        payload = text_search(query, api_key, pagetoken=page_token)
        results.extend(payload.get("results", []))
        page_token = payload.get("next_page_token")
        if not page_token or len(results) >= limit:
            break
        # next_page_token only becomes valid after a short delay
        time.sleep(2.5)
    logger.info("Places search for %r returned %d results", query, len(results))
    return results[:limit]
