"""Utilities for shaping upstream lead, registry and Places payloads."""

import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

PAGE_SIZE = 12

_IGNORE_TYPES = {"point_of_interest", "establishment", "political", "premise"}
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _string_at(record: Dict[str, Any], *path: str) -> Optional[str]:
    node: Any = record
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) else None


def company_name(record: Dict[str, Any]) -> str:
    """Derive a company name: name, cleaned_name, company.name, lead.company.name, else ""."""
    return (
        _string_at(record, "name")
        or _string_at(record, "cleaned_name")
        or _string_at(record, "company", "name")
        or _string_at(record, "lead", "company", "name")
        or ""
    )


def build_enrich_payload(record: Dict[str, Any]) -> Dict[str, str]:
    # industry is sent as the domain when present; upstream behaviour kept as is
    return {
        "company_linkedin_url": record.get("linkedin_url") or record.get("company_linkedin_url") or "",
        "name": record.get("name") or "",
        "domain": record.get("industry") or record.get("domain") or "",
    }


def parse_page_number(raw: Optional[str]) -> Optional[int]:
    """Parse a page query value the lenient way: leading digits, 0 or garbage means 1.

    Returns None when the value is absent or empty.
    """
    if raw is None or str(raw) == "":
        return None
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 1
    return int(match.group(1)) or 1


def select_page(
    records: Sequence[Dict[str, Any]],
    page: Optional[str] = None,
    paginate: Optional[str] = None,
    page_size: int = PAGE_SIZE,
) -> Tuple[Optional[int], List[Dict[str, Any]]]:
    """Pick the requested slice; ``paginate`` wins over ``page``.

    Without either, the full list is returned with a page of None.
    """
    number = parse_page_number(paginate)
    if number is None:
        number = parse_page_number(page)
    if number is None:
        return None, list(records)
    if number < 1:
        return number, []
    start = (number - 1) * page_size
    return number, list(records[start:start + page_size])


def total_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(total / page_size)


def current_activity(siret_result: Any) -> Optional[str]:
    """Activity code of the open period (dateFin is null) of the first establishment."""
    if not isinstance(siret_result, dict):
        return None
    establishments = siret_result.get("etablissements")
    if not isinstance(establishments, list) or not establishments:
        return None
    first = establishments[0] if isinstance(establishments[0], dict) else {}
    for period in first.get("periodesEtablissement") or []:
        if isinstance(period, dict) and "dateFin" in period and period["dateFin"] is None:
            return period.get("activitePrincipaleEtablissement")
    return None


def filter_by_activity(records: Iterable[Dict[str, Any]], activity_code: str) -> List[Dict[str, Any]]:
    kept = [r for r in records if current_activity(r.get("siret_result")) == activity_code]
    logger.debug("Activity filter %s kept %d records", activity_code, len(kept))
    return kept


def parse_city_country(address_components: Iterable[Dict[str, Any]]) -> Tuple[Optional[str], Optional[str]]:
    city = None
    country = None
    for component in address_components or []:
        types = set(component.get("types", []))
        if "locality" in types or "administrative_area_level_2" in types:
            city = component.get("long_name")
        if "country" in types:
            country = component.get("long_name")
    return city, country


def _extract_primary_type(types: Iterable[str]) -> Optional[str]:
    for type_name in types or []:
        if type_name not in _IGNORE_TYPES:
            return type_name
    return None


def normalize_place(result: Dict[str, Any], fallback_country: Optional[str] = None) -> Dict[str, Any]:
    geometry = result.get("geometry", {}).get("location", {})
    city, country = parse_city_country(result.get("address_components", []))

    return {
        "place_id": result.get("place_id"),
        "name": result.get("name"),
        "address": result.get("formatted_address"),
        "phone": result.get("formatted_phone_number"),
        "website": result.get("website"),
        "rating": result.get("rating"),
        "reviews": result.get("user_ratings_total"),
        "category": _extract_primary_type(result.get("types", [])),
        "city": city,
        "country": country or fallback_country,
        "lng": geometry.get("lng"),
        "lat": geometry.get("lat"),
    }
