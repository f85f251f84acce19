"""Workflow routes: the aggregated global result and the Pronto search workflows."""

import logging
from typing import Any, Callable

from flask import Blueprint, jsonify, request

from prosperian.vendors.errors import UpstreamError
from prosperian.workflows import searches
from prosperian.workflows.global_result import build_global_result

logger = logging.getLogger(__name__)

global_result_bp = Blueprint("global_result", __name__)
pronto_workflows_bp = Blueprint("pronto_workflows", __name__, url_prefix="/api/pronto-workflows")


@global_result_bp.get("/api/prosperian/get/global/result")
@global_result_bp.get("/global/result")
def global_result() -> Any:
    """Merged leads of the latest searches, enriched and optionally paginated.

    Query: page, paginate (wins over page), activitePrincipaleEtablissement.
    """
    payload = build_global_result(
        page=request.args.get("page"),
        paginate=request.args.get("paginate"),
        activity=request.args.get("activitePrincipaleEtablissement") or None,
    )
    return jsonify(payload)


def _flag(name: str, default: bool) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.lower() == "true"


def _int_arg(name: str, default: int) -> int:
    value = request.args.get(name, default=default, type=int)
    return value if value is not None else default


def _run_workflow(label: str, run: Callable[[], dict]) -> Any:
    try:
        return jsonify(run())
    except UpstreamError as exc:
        logger.error("%s workflow failed: %s", label, exc)
        return (
            jsonify(
                {
                    "success": False,
                    "error": f"{label} workflow execution failed",
                    "message": str(exc),
                    "details": exc.payload,
                }
            ),
            500,
        )


@pronto_workflows_bp.get("/all-searches-complete")
def all_searches_complete() -> Any:
    return _run_workflow(
        "Complete searches",
        lambda: searches.all_searches_complete(
            include_leads=_flag("include_leads", True),
            leads_per_search=_int_arg("leads_per_search", 50),
            include_enrichment=_flag("include_enrichment", False),
            max_searches=_int_arg("max_searches", 20),
        ),
    )


@pronto_workflows_bp.get("/search-leads/<search_id>")
def search_leads(search_id: str) -> Any:
    return _run_workflow(
        "Search leads",
        lambda: searches.search_leads(
            search_id,
            page=_int_arg("page", 1),
            limit=_int_arg("limit", 100),
            include_enrichment=_flag("include_enrichment", False),
        ),
    )


@pronto_workflows_bp.get("/search-leads-enhanced/<search_id>")
def search_leads_enhanced(search_id: str) -> Any:
    return _run_workflow(
        "Enhanced search leads",
        lambda: searches.search_leads_enhanced(
            search_id,
            page=_int_arg("page", 1),
            limit=_int_arg("limit", 50),
            include_company_data=_flag("include_company_data", True),
        ),
    )
