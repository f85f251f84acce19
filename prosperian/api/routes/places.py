"""Google Places company search."""

import logging
from datetime import datetime, timezone
from typing import Any

from flask import Blueprint, jsonify, request

from prosperian.core.config import get_settings
from prosperian.etl.transform import normalize_place
from prosperian.vendors import google_places

logger = logging.getLogger(__name__)

places_bp = Blueprint("google_places", __name__, url_prefix="/api/google-places")


@places_bp.get("/search")
def search() -> Any:
    """
    Search businesses by activity.
    Required: activity. Optional: location (default France), limit (default 50),
    format ("normalized" or "raw").
    """
    activity = (request.args.get("activity") or "").strip()
    if not activity:
        return (
            jsonify(
                {
                    "error": 'The "activity" parameter is required',
                    "example": "/api/google-places/search?activity=restaurant&location=Paris&limit=50",
                }
            ),
            400,
        )

    location = request.args.get("location", "France")
    output_format = request.args.get("format", "normalized")
    try:
        limit = int(request.args.get("limit", 50))
        if limit <= 0:
            return jsonify({"error": "limit must be positive"}), 400
    except (TypeError, ValueError):
        return jsonify({"error": "limit must be numeric"}), 400

    api_key = get_settings().google_api_key
    if not api_key:
        return jsonify({"success": False, "error": "GOOGLE_API_KEY is not configured"}), 500

    try:
        raw_results = google_places.search_places(activity, location, api_key, limit=limit)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Places search failed for %s in %s: %s", activity, location, exc)
        return jsonify({"success": False, "error": "Google Places search failed", "message": str(exc)}), 500

    if output_format == "normalized":
        results = [normalize_place(r, fallback_country=location) for r in raw_results]
    else:
        results = raw_results
    logger.info("%d businesses found for %r in %s", len(results), activity, location)

    return jsonify(
        {
            "success": True,
            "query": {"activity": activity, "location": location, "limit": limit, "format": output_format},
            "total_results": len(results),
            "results": results,
            "metadata": {
                "source": "google_places",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }
    )
