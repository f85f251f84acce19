from prosperian.etl import transform


def _records(count):
    return [{"name": f"Company {i}"} for i in range(count)]


def test_company_name_fallback_chain():
    assert transform.company_name({"name": "Acme", "cleaned_name": "acme"}) == "Acme"
    assert transform.company_name({"cleaned_name": "acme"}) == "acme"
    assert transform.company_name({"company": {"name": "Nested"}}) == "Nested"
    assert transform.company_name({"lead": {"company": {"name": "Deep"}}}) == "Deep"
    assert transform.company_name({"name": "", "company": None}) == ""
    assert transform.company_name({}) == ""


def test_company_name_skips_non_string_values():
    assert transform.company_name({"name": 42, "cleaned_name": "acme"}) == "acme"
    assert transform.company_name({"name": {"fr": "Acme"}}) == ""
    assert transform.company_name({"name": 42, "company": {"name": "Nested"}}) == "Nested"


def test_build_enrich_payload_prefers_industry_as_domain():
    record = {"name": "Acme", "linkedin_url": "https://linkedin.com/company/acme", "industry": "Software", "domain": "acme.fr"}

    assert transform.build_enrich_payload(record) == {
        "company_linkedin_url": "https://linkedin.com/company/acme",
        "name": "Acme",
        "domain": "Software",
    }
    assert transform.build_enrich_payload({"company_linkedin_url": "x", "domain": "acme.fr"}) == {
        "company_linkedin_url": "x",
        "name": "",
        "domain": "acme.fr",
    }


def test_parse_page_number():
    assert transform.parse_page_number(None) is None
    assert transform.parse_page_number("") is None
    assert transform.parse_page_number("3") == 3
    assert transform.parse_page_number("2abc") == 2
    assert transform.parse_page_number("abc") == 1
    assert transform.parse_page_number("0") == 1


def test_select_page_without_params_returns_everything():
    records = _records(30)

    page, selected = transform.select_page(records)

    assert page is None
    assert selected == records


def test_select_page_paginate_wins_over_page():
    records = _records(30)

    page, selected = transform.select_page(records, page="1", paginate="2")

    assert page == 2
    assert selected == records[12:24]


def test_select_page_out_of_range_is_empty():
    page, selected = transform.select_page(_records(5), page="4")

    assert page == 4
    assert selected == []


def test_total_pages():
    assert transform.total_pages(0) == 0
    assert transform.total_pages(12) == 1
    assert transform.total_pages(13) == 2


def test_current_activity_uses_open_period_of_first_establishment():
    siret_result = {
        "etablissements": [
            {
                "periodesEtablissement": [
                    {"dateFin": "2019-12-31", "activitePrincipaleEtablissement": "4711A"},
                    {"dateFin": None, "activitePrincipaleEtablissement": "6201Z"},
                ]
            },
            {"periodesEtablissement": [{"dateFin": None, "activitePrincipaleEtablissement": "7022Z"}]},
        ]
    }

    assert transform.current_activity(siret_result) == "6201Z"
    assert transform.current_activity({"etablissements": []}) is None
    assert transform.current_activity({"error": "boom"}) is None
    assert transform.current_activity(None) is None
    assert transform.current_activity(
        {"etablissements": [{"periodesEtablissement": [{"activitePrincipaleEtablissement": "6201Z"}]}]}
    ) is None


def test_filter_by_activity_is_fail_closed():
    open_period = {"etablissements": [{"periodesEtablissement": [{"dateFin": None, "activitePrincipaleEtablissement": "6201Z"}]}]}
    other_code = {"etablissements": [{"periodesEtablissement": [{"dateFin": None, "activitePrincipaleEtablissement": "4711A"}]}]}
    closed_only = {"etablissements": [{"periodesEtablissement": [{"dateFin": "2020-01-01", "activitePrincipaleEtablissement": "6201Z"}]}]}
    records = [
        {"name": "match", "siret_result": open_period},
        {"name": "other", "siret_result": other_code},
        {"name": "closed", "siret_result": closed_only},
        {"name": "none"},
    ]

    kept = transform.filter_by_activity(records, "6201Z")

    assert [r["name"] for r in kept] == ["match"]


def test_parse_city_country():
    components = [
        {"long_name": "Lyon", "types": ["locality"]},
        {"long_name": "France", "types": ["country"]},
    ]
    city, country = transform.parse_city_country(components)
    assert city == "Lyon"
    assert country == "France"

    city, country = transform.parse_city_country([])
    assert city is None and country is None


def test_normalize_place_uses_fallback_country():
    result = {
        "place_id": "pid",
        "name": "Boulangerie Dupont",
        "formatted_address": "1 rue de Paris",
        "rating": 4.5,
        "user_ratings_total": 10,
        "types": ["point_of_interest", "bakery"],
        "geometry": {"location": {"lng": 2.35, "lat": 48.85}},
    }

    row = transform.normalize_place(result, fallback_country="France")

    assert row["name"] == "Boulangerie Dupont"
    assert row["country"] == "France"
    assert row["category"] == "bakery"
    assert row["lat"] == 48.85


def test_select_page_negative_is_empty_and_echoed():
    page, selected = transform.select_page(_records(5), paginate="-1")

    assert page == -1
    assert selected == []
