"""Search and lead workflows chaining several Pronto calls."""

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from prosperian.vendors import pronto
from prosperian.vendors.errors import UpstreamError

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _pagination(page: int, limit: int, payload: Dict[str, Any], leads: List[Dict[str, Any]]) -> Dict[str, int]:
    total = payload.get("total") or len(leads)
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


def _lead_enrichment_request(lead: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "first_name": lead.get("first_name"),
        "last_name": lead.get("last_name"),
        "email": lead.get("email"),
        "company": lead.get("company"),
        "linkedin_url": lead.get("linkedin_url"),
    }


def enrich_lead_in_place(leads: List[Dict[str, Any]], index: int) -> Optional[Dict[str, Any]]:
    """Merge the enrichment response into ``leads[index]``; returns it, or None on failure."""
    lead = leads[index]
    try:
        enrichment = pronto.enrich_lead(_lead_enrichment_request(lead))
    except UpstreamError as exc:
        error = str(exc)
    else:
        if isinstance(enrichment, dict):
            leads[index] = {**lead, **enrichment, "enriched": True}
            return enrichment
        error = f"unexpected enrichment response: {enrichment!r}"
    logger.warning("Enrichment failed for %s %s: %s", lead.get("first_name"), lead.get("last_name"), error)
    leads[index] = {**lead, "enriched": False, "enrichment_error": error}
    return None


def _fetch_search_details(search_id: str) -> Optional[Dict[str, Any]]:
    try:
        return pronto.fetch_detail(search_id, timeout=pronto.DEFAULT_TIMEOUT)
    except UpstreamError as exc:
        logger.warning("Could not fetch details for search %s: %s", search_id, exc)
        return None


def all_searches_complete(
    include_leads: bool = True,
    leads_per_search: int = 50,
    include_enrichment: bool = False,
    max_searches: int = 20,
) -> Dict[str, Any]:
    """Walk every search: details, first page of leads and optional lead enrichment."""
    started = time.monotonic()
    stats = {"searches_processed": 0, "searches_with_leads": 0, "leads_enriched": 0, "errors": 0}
    results: Dict[str, Any] = {
        "workflow": "all-searches-complete",
        "timestamp": _now_iso(),
        "searches": [],
        "total_searches": 0,
        "total_leads": 0,
        "processing_time": 0,
        "stats": stats,
    }

    all_searches = pronto.list_searches()
    to_process = all_searches[:max_searches]
    results["total_searches"] = len(all_searches)
    logger.info("Found %d searches, processing %d", len(all_searches), len(to_process))

    for position, search in enumerate(to_process, start=1):
        search_id = search.get("id")
        logger.info("Processing search %d/%d: %s", position, len(to_process), search.get("name"))
        base = {
            "id": search_id,
            "name": search.get("name"),
            "leads_count": search.get("leads_count"),
            "created_at": search.get("created_at"),
        }
        try:
            details = _fetch_search_details(search_id) or search
            leads: List[Dict[str, Any]] = []
            leads_pagination = None
            if include_leads:
                try:
                    payload = pronto.extract_leads(search_id, page=1, limit=leads_per_search)
                    leads = payload.get("leads") or []
                    leads_pagination = _pagination(1, leads_per_search, payload, leads)
                    stats["searches_with_leads"] += 1
                    results["total_leads"] += len(leads)
                    if include_enrichment:
                        for index in range(len(leads)):
                            if enrich_lead_in_place(leads, index) is not None:
                                stats["leads_enriched"] += 1
                except UpstreamError as exc:
                    logger.warning("Could not fetch leads for %s: %s", search.get("name"), exc)
                    leads = []
                    leads_pagination = None

            results["searches"].append(
                {**base, "details": details, "leads": leads, "leads_pagination": leads_pagination,
                 "processed": True, "error": None}
            )
            stats["searches_processed"] += 1
        except Exception as exc:  # noqa: BLE001
            logger.error("Error processing search %s: %s", search.get("name"), exc)
            stats["errors"] += 1
            results["searches"].append(
                {**base, "details": None, "leads": [], "leads_pagination": None,
                 "processed": False, "error": str(exc)}
            )

    results["processing_time"] = _elapsed_ms(started)
    logger.info(
        "Complete searches workflow finished in %dms: %d searches, %d leads",
        results["processing_time"],
        stats["searches_processed"],
        results["total_leads"],
    )
    return {
        "success": True,
        "data": results,
        "summary": {
            "total_searches_found": results["total_searches"],
            "searches_processed": stats["searches_processed"],
            "searches_with_leads": stats["searches_with_leads"],
            "total_leads_extracted": results["total_leads"],
            "leads_enriched": stats["leads_enriched"],
            "errors_encountered": stats["errors"],
            "processing_time_ms": results["processing_time"],
        },
    }


def search_leads(search_id: str, page: int = 1, limit: int = 100, include_enrichment: bool = False) -> Dict[str, Any]:
    started = time.monotonic()
    results: Dict[str, Any] = {
        "workflow": "search-leads",
        "timestamp": _now_iso(),
        "search_id": search_id,
        "leads": [],
        "pagination": {},
        "processing_time": 0,
    }

    search_details = _fetch_search_details(search_id)
    if search_details is not None:
        results["search_details"] = search_details

    payload = pronto.extract_leads(search_id, page=page, limit=limit)
    leads = payload.get("leads") or []
    results["pagination"] = _pagination(page, limit, payload, leads)
    logger.info("Extracted %d leads for search %s", len(leads), search_id)

    if include_enrichment:
        for index in range(len(leads)):
            enrich_lead_in_place(leads, index)
    results["leads"] = leads
    results["processing_time"] = _elapsed_ms(started)

    return {
        "success": True,
        "data": results,
        "summary": {
            "search_name": (search_details or {}).get("name") or "Unknown",
            "leads_found": len(leads),
            "leads_enriched": sum(1 for lead in leads if lead.get("enriched")) if include_enrichment else 0,
            "total_pages": results["pagination"]["pages"],
            "processing_time_ms": results["processing_time"],
        },
    }


def _enhanced_lead(lead: Dict[str, Any], enrichment: Dict[str, Any]) -> Dict[str, Any]:
    return {
        **lead,
        **enrichment,
        "enriched": True,
        "personal_data": {
            "full_name": f"{lead.get('first_name') or ''} {lead.get('last_name') or ''}".strip(),
            "email": lead.get("email"),
            "phone": lead.get("phone") or enrichment.get("phone"),
            "location": enrichment.get("location"),
            "social_profiles": {
                "linkedin": lead.get("linkedin_url"),
                "twitter": enrichment.get("twitter"),
                "facebook": enrichment.get("facebook"),
            },
            "bio": enrichment.get("bio"),
            "skills": enrichment.get("skills") or [],
        },
        "professional_data": {
            "current_position": lead.get("job_title"),
            "company": lead.get("company"),
            "industry": enrichment.get("industry"),
            "experience_years": enrichment.get("experience_years"),
            "education": enrichment.get("education") or [],
            "certifications": enrichment.get("certifications") or [],
            "career_history": enrichment.get("career_history") or [],
        },
        "company_data": None,
        "contact_details": {
            "email_verified": bool(enrichment.get("email_verified")),
            "phone_verified": bool(enrichment.get("phone_verified")),
            "preferred_contact_method": enrichment.get("preferred_contact_method") or "email",
        },
    }


def _company_data(lead: Dict[str, Any], enrichment: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    try:
        account = pronto.enrich_account(
            {"company_name": lead.get("company"), "domain": enrichment.get("company_domain")}
        )
    except UpstreamError:
        logger.warning("Company data not available for %s", lead.get("company"))
        return None
    if not isinstance(account, dict):
        logger.warning("Unexpected account enrichment response for %s", lead.get("company"))
        return None
    fields = ("headcount", "industry", "location", "founded_year", "company_type", "website", "linkedin_url")
    return {**account, **{field: account.get(field) for field in fields}}


def search_leads_enhanced(
    search_id: str,
    page: int = 1,
    limit: int = 50,
    include_company_data: bool = True,
) -> Dict[str, Any]:
    started = time.monotonic()
    stats = {"leads_enriched": 0, "leads_with_company_data": 0, "leads_with_contact_details": 0}
    results: Dict[str, Any] = {
        "workflow": "enhanced-search-leads",
        "timestamp": _now_iso(),
        "search_id": search_id,
        "leads": [],
        "pagination": {},
        "processing_time": 0,
        "enrichment_stats": stats,
    }

    search_details = _fetch_search_details(search_id)
    if search_details is not None:
        results["search_details"] = search_details

    payload = pronto.extract_leads(search_id, page=page, limit=limit)
    leads = payload.get("leads") or []
    results["pagination"] = _pagination(page, limit, payload, leads)

    for index, lead in enumerate(leads):
        enrichment = enrich_lead_in_place(leads, index)
        if enrichment is None:
            continue
        enhanced = _enhanced_lead(lead, enrichment)
        stats["leads_enriched"] += 1
        stats["leads_with_contact_details"] += 1
        if include_company_data and lead.get("company"):
            enhanced["company_data"] = _company_data(lead, enrichment)
            if enhanced["company_data"] is not None:
                stats["leads_with_company_data"] += 1
        leads[index] = enhanced

    results["leads"] = leads
    results["processing_time"] = _elapsed_ms(started)
    return {
        "success": True,
        "data": results,
        "summary": {
            "search_name": (search_details or {}).get("name") or "Unknown",
            "leads_found": len(leads),
            **stats,
            "total_pages": results["pagination"]["pages"],
            "processing_time_ms": results["processing_time"],
        },
    }
