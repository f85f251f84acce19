"""HTTP entrypoint for the Prosperian backend."""

from __future__ import annotations

import logging
import os
from typing import Any

import psycopg2
from flask import Flask, jsonify

from prosperian.api.routes.lists import lists_bp
from prosperian.api.routes.places import places_bp
from prosperian.api.routes.pronto import pronto_bp
from prosperian.api.routes.records import clients_bp, companies_bp, files_bp, subscriptions_bp
from prosperian.api.routes.registry import registry_bp
from prosperian.api.routes.workflows import global_result_bp, pronto_workflows_bp
from prosperian.core.config import get_settings
from prosperian.core.file_store import MAX_UPLOAD_BYTES
from prosperian.vendors.errors import UpstreamError

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
app.json.sort_keys = False

for blueprint in (
    global_result_bp,
    pronto_workflows_bp,
    pronto_bp,
    registry_bp,
    places_bp,
    companies_bp,
    files_bp,
    subscriptions_bp,
    clients_bp,
    lists_bp,
):
    app.register_blueprint(blueprint)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, no upstream or DB call."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "port_config": settings.port,
                "pronto_configured": bool(settings.pronto_api_key),
                "database_configured": bool(settings.database_url),
            }
        ),
        200,
    )


# ---------- Error handlers ----------


@app.errorhandler(UpstreamError)
def handle_upstream_error(exc: UpstreamError) -> Any:
    return jsonify({"error": exc.payload}), exc.status_code or 500


@app.errorhandler(psycopg2.Error)
def handle_database_error(exc: psycopg2.Error) -> Any:
    logger.error("Database error: %s", exc)
    return jsonify({"error": str(exc)}), 500


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
