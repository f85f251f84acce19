"""Business registry routes: INSEE Sirene and the public company search."""

from typing import Any

from flask import Blueprint, jsonify, request

from prosperian.vendors import insee, recherche_entreprises

registry_bp = Blueprint("registry", __name__, url_prefix="/api")


@registry_bp.get("/insee/unitesLegales")
def legal_units() -> Any:
    """Legal unit search; query parameters go to Sirene unchanged."""
    return jsonify(insee.search_legal_units(request.args.to_dict()))


@registry_bp.get("/insee/siren/<siren>")
def by_siren(siren: str) -> Any:
    return jsonify(insee.get_siren(siren))


@registry_bp.get("/insee/siret/<siret>")
def by_siret(siret: str) -> Any:
    return jsonify(insee.get_siret(siret))


@registry_bp.get("/siret")
def establishment_search() -> Any:
    query = request.args.get("q", "").strip()
    if not query:
        return jsonify({"error": "q is required"}), 400
    return jsonify(insee.search_establishments(query))


@registry_bp.get("/search")
def company_search() -> Any:
    return jsonify(recherche_entreprises.search(request.args.to_dict()))
