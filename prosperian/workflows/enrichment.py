"""Per-record enrichment: account enrichment plus registry lookup, memoized per request."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from prosperian.etl.transform import build_enrich_payload, company_name
from prosperian.vendors import insee, pronto
from prosperian.vendors.errors import TaggedError

logger = logging.getLogger(__name__)


class RequestCache:
    """Name-keyed memo that lives for a single incoming request.

    Concurrent callers asking for the same key wait on one fetch instead of
    issuing duplicate upstream calls.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get_or_fetch(self, key: str, fetch: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._values:
                return self._values[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            with self._lock:
                if key in self._values:
                    return self._values[key]
            value = fetch()
            with self._lock:
                self._values[key] = value
        return value


def _attachable(value: Any) -> Optional[Any]:
    """What goes on the record: None for timeouts, the error payload for other failures."""
    if isinstance(value, TaggedError):
        return None if value.timed_out else value.as_payload()
    return value


def enrich_record(record: Dict[str, Any], enrich_cache: RequestCache, registry_cache: RequestCache) -> Dict[str, Any]:
    result = dict(record)
    name = company_name(record)
    if not name:
        return result

    enrich = enrich_cache.get_or_fetch(name, lambda: pronto.post_enrich(build_enrich_payload(record)))
    siret_result = registry_cache.get_or_fetch(name, lambda: insee.post_registry_search(name))

    enrich = _attachable(enrich)
    if enrich is not None:
        result["enrich"] = enrich
    siret_result = _attachable(siret_result)
    if siret_result is not None:
        result["siret_result"] = siret_result
    return result


def enrich_records(
    records: Sequence[Dict[str, Any]],
    enrich_cache: Optional[RequestCache] = None,
    registry_cache: Optional[RequestCache] = None,
) -> List[Dict[str, Any]]:
    """Enrich every record concurrently and return them in input order."""
    if not records:
        return []
    enrich_cache = enrich_cache if enrich_cache is not None else RequestCache()
    registry_cache = registry_cache if registry_cache is not None else RequestCache()

    # one task per record
    with ThreadPoolExecutor(max_workers=len(records)) as executor:
        futures = [executor.submit(enrich_record, record, enrich_cache, registry_cache) for record in records]
        enriched = []
        for record, future in zip(records, futures):
            try:
                enriched.append(future.result())
            except Exception as exc:  # noqa: BLE001
                logger.warning("Enrichment failed for %s: %s", company_name(record) or "<unnamed>", exc)
                enriched.append(dict(record))

    logger.info(
        "Enriched %d records (%d distinct companies)",
        len(enriched),
        len(enrich_cache),
    )
    return enriched
