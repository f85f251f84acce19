import threading
import time

from prosperian.vendors import insee, pronto
from prosperian.vendors.errors import TaggedError
from prosperian.workflows import enrichment


def test_request_cache_fetches_once_per_key():
    cache = enrichment.RequestCache()
    calls = []

    def fetch():
        calls.append(1)
        return {"ok": True}

    assert cache.get_or_fetch("Acme", fetch) == {"ok": True}
    assert cache.get_or_fetch("Acme", fetch) == {"ok": True}
    assert len(calls) == 1
    assert "Acme" in cache
    assert len(cache) == 1


def test_request_cache_shares_concurrent_fetch():
    cache = enrichment.RequestCache()
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow_fetch():
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return "value"

    results = []
    first = threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", slow_fetch)))
    first.start()
    started.wait(timeout=5)
    second = threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", slow_fetch)))
    second.start()
    release.set()
    first.join()
    second.join()

    assert results == ["value", "value"]
    assert len(calls) == 1


def test_enrich_records_attaches_results_in_order(monkeypatch):
    monkeypatch.setattr(pronto, "post_enrich", lambda payload: {"enriched": payload["name"]})
    monkeypatch.setattr(insee, "post_registry_search", lambda name: {"etablissements": [], "q": name})

    records = [{"name": "Acme"}, {"cleaned_name": "beta"}, {"name": "Gamma"}]
    result = enrichment.enrich_records(records)

    assert [r.get("name") or r.get("cleaned_name") for r in result] == ["Acme", "beta", "Gamma"]
    assert result[0]["enrich"] == {"enriched": "Acme"}
    assert result[0]["siret_result"]["q"] == "Acme"
    # the enrichment payload carries the raw ``name`` field, which is empty here
    assert result[1]["enrich"] == {"enriched": ""}
    assert result[1]["siret_result"]["q"] == "beta"
    assert "enrich" not in records[0]


def test_record_without_name_gets_no_enrichment(monkeypatch):
    calls = []
    monkeypatch.setattr(pronto, "post_enrich", lambda payload: calls.append(payload) or {})
    monkeypatch.setattr(insee, "post_registry_search", lambda name: calls.append(name) or {})

    result = enrichment.enrich_records([{"linkedin_url": "https://linkedin.com/x"}])

    assert result == [{"linkedin_url": "https://linkedin.com/x"}]
    assert calls == []


def test_timeout_is_suppressed_but_error_is_attached(monkeypatch):
    monkeypatch.setattr(pronto, "post_enrich", lambda payload: TaggedError("Timeout", timed_out=True))
    monkeypatch.setattr(insee, "post_registry_search", lambda name: TaggedError({"message": "server error"}))

    (result,) = enrichment.enrich_records([{"name": "Acme"}])

    assert "enrich" not in result
    assert result["siret_result"] == {"error": {"message": "server error"}}


def test_duplicate_names_share_one_upstream_call(monkeypatch):
    enrich_calls = []
    registry_calls = []
    lock = threading.Lock()

    def fake_enrich(payload):
        with lock:
            enrich_calls.append(payload["name"])
        return {"id": payload["name"]}

    def fake_registry(name):
        with lock:
            registry_calls.append(name)
        return {"etablissements": []}

    monkeypatch.setattr(pronto, "post_enrich", fake_enrich)
    monkeypatch.setattr(insee, "post_registry_search", fake_registry)

    records = [{"name": "Acme", "search_id": "a"}, {"name": "Acme", "search_id": "b"}]
    result = enrichment.enrich_records(records)

    assert enrich_calls == ["Acme"]
    assert registry_calls == ["Acme"]
    assert result[0]["enrich"] == result[1]["enrich"] == {"id": "Acme"}


def test_unexpected_failure_keeps_record(monkeypatch):
    def broken(payload):
        raise KeyError("boom")

    monkeypatch.setattr(pronto, "post_enrich", broken)
    monkeypatch.setattr(insee, "post_registry_search", lambda name: {})

    result = enrichment.enrich_records([{"name": "Acme"}, {"name": ""}])

    assert result == [{"name": "Acme"}, {"name": ""}]


def test_empty_input():
    assert enrichment.enrich_records([]) == []


def test_every_record_is_enriched_concurrently(monkeypatch):
    def slow_enrich(payload):
        time.sleep(0.3)
        return {"id": payload["name"]}

    monkeypatch.setattr(pronto, "post_enrich", slow_enrich)
    monkeypatch.setattr(insee, "post_registry_search", lambda name: {"etablissements": []})

    records = [{"name": f"Company {i}"} for i in range(50)]
    started = time.monotonic()
    result = enrichment.enrich_records(records)
    elapsed = time.monotonic() - started

    assert [r["enrich"]["id"] for r in result] == [f"Company {i}" for i in range(50)]
    assert elapsed < 0.9
