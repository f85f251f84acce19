"""Passthrough routes to the Pronto API under /api/pronto."""

import logging
from typing import Any

from flask import Blueprint, jsonify, request

from prosperian.vendors import pronto

logger = logging.getLogger(__name__)

pronto_bp = Blueprint("pronto", __name__, url_prefix="/api/pronto")

# POST routes whose body is forwarded verbatim to the same upstream path.
_POST_PASSTHROUGH = (
    "/accounts/profiles",
    "/accounts/headcount",
    "/accounts/extract",
    "/accounts/single_enrich",
    "/leads/extract",
    "/leads/company",
    "/enrichments/account",
    "/enrichments/lead",
    "/enrichments/contact",
    "/enrichments/contacts/bulk",
    "/intent/hiring",
    "/intent/growing",
    "/intent/lookalikes",
    "/intent/new-hires",
    "/intent/job-changes",
)

_GET_PASSTHROUGH = ("/personas", "/lists", "/searches", "/credits", "/account")


def _body() -> Any:
    return request.get_json(silent=True) or {}


def _forward_post(path: str):
    def view() -> Any:
        return jsonify(pronto.request("POST", path, json=_body()))

    view.__name__ = "post_" + path.strip("/").replace("/", "_").replace("-", "_")
    return view


def _forward_get(path: str):
    def view() -> Any:
        return jsonify(pronto.request("GET", path, params=request.args.to_dict() or None))

    view.__name__ = "get_" + path.strip("/").replace("/", "_")
    return view


for _path in _POST_PASSTHROUGH:
    pronto_bp.add_url_rule(_path, view_func=_forward_post(_path), methods=["POST"])

for _path in _GET_PASSTHROUGH:
    pronto_bp.add_url_rule(_path, view_func=_forward_get(_path), methods=["GET"])


@pronto_bp.get("/personas/<persona_id>")
def get_persona(persona_id: str) -> Any:
    return jsonify(pronto.request("GET", f"/personas/{persona_id}"))


@pronto_bp.get("/lists/<list_id>")
def get_list(list_id: str) -> Any:
    return jsonify(pronto.request("GET", f"/lists/{list_id}"))


@pronto_bp.post("/lists")
def create_list() -> Any:
    return jsonify(pronto.request("POST", "/lists", json=_body())), 201


@pronto_bp.put("/lists/<list_id>")
def update_list(list_id: str) -> Any:
    return jsonify(pronto.request("PUT", f"/lists/{list_id}", json=_body()))


@pronto_bp.get("/searches/<search_id>")
def get_search(search_id: str) -> Any:
    return jsonify(pronto.request("GET", f"/searches/{search_id}"))


@pronto_bp.get("/searches/<search_id>/leads")
def get_search_leads(search_id: str) -> Any:
    page = request.args.get("page", default=1, type=int)
    limit = request.args.get("limit", default=100, type=int)
    return jsonify(pronto.extract_leads(search_id, page=page, limit=limit))
