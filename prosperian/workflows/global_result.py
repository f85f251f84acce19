"""Aggregated, enriched and paginated view over the most recent Pronto searches."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from prosperian.etl.transform import PAGE_SIZE, filter_by_activity, select_page, total_pages
from prosperian.vendors import pronto
from prosperian.workflows.enrichment import RequestCache, enrich_records

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 10


def _fetch_detail_or_none(search_id: str) -> Optional[Dict[str, Any]]:
    try:
        return pronto.fetch_detail(search_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Dropping search %s: detail fetch failed: %s", search_id, exc)
        return None


def fetch_details(search_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
    """Fetch every search detail in parallel; results line up with ``search_ids``."""
    if not search_ids:
        return []
    with ThreadPoolExecutor(max_workers=len(search_ids)) as executor:
        return list(executor.map(_fetch_detail_or_none, search_ids))


def merge_leads(search_ids: Sequence[str], details: Sequence[Optional[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    merged: List[Dict[str, Any]] = []
    for search_id, detail in zip(search_ids, details):
        if not isinstance(detail, dict):
            continue
        leads = detail.get("leads") or detail.get("companies") or []
        merged.extend({**lead, "search_id": search_id} for lead in leads if isinstance(lead, dict))
    return merged


def build_global_result(
    page: Optional[str] = None,
    paginate: Optional[str] = None,
    activity: Optional[str] = None,
    max_candidates: int = MAX_CANDIDATES,
    page_size: int = PAGE_SIZE,
) -> Dict[str, Any]:
    """Run the whole aggregation for one incoming request.

    A failing search listing raises UpstreamError; everything after it
    degrades per search or per record.
    """
    searches = pronto.list_searches()
    search_ids = [s.get("id") for s in searches[:max_candidates] if isinstance(s, dict)]
    logger.info("Aggregating %d of %d searches", len(search_ids), len(searches))

    details = fetch_details(search_ids)
    all_leads = merge_leads(search_ids, details)

    page_number, selected = select_page(all_leads, page=page, paginate=paginate, page_size=page_size)

    # caches are scoped to this call and dropped with it
    results = enrich_records(selected, enrich_cache=RequestCache(), registry_cache=RequestCache())

    if activity:
        results = filter_by_activity(results, activity)

    total = len(all_leads)
    paginated = page_number is not None
    return {
        "page": page_number,
        "pageSize": page_size if paginated else total,
        "total": total,
        "totalPages": total_pages(total, page_size) if paginated else 1,
        "totalCompanies": total,
        "results": results,
    }
