"""CRUD routes over the record store."""

import logging
from typing import Any

import psycopg2
from flask import Blueprint, jsonify, request

from prosperian.core import db

logger = logging.getLogger(__name__)


def crud_blueprint(name: str, table: str, url_prefix: str) -> Blueprint:
    """Build list/get/create/update/delete routes for one table."""
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    @bp.get("")
    def list_rows() -> Any:
        try:
            return jsonify(db.select(table))
        except psycopg2.Error as exc:
            logger.error("Listing %s failed: %s", table, exc)
            return jsonify({"error": str(exc)}), 500

    @bp.get("/<record_id>")
    def get_row(record_id: str) -> Any:
        try:
            return jsonify(db.select_one(table, record_id))
        except (db.RecordNotFound, psycopg2.Error) as exc:
            return jsonify({"error": str(exc)}), 404

    @bp.post("")
    def create_row() -> Any:
        try:
            return jsonify(db.insert(table, request.get_json(silent=True) or {})), 201
        except (ValueError, psycopg2.Error) as exc:
            return jsonify({"error": str(exc)}), 400

    @bp.put("/<record_id>")
    def update_row(record_id: str) -> Any:
        try:
            return jsonify(db.update(table, record_id, request.get_json(silent=True) or {}))
        except db.RecordNotFound as exc:
            return jsonify({"error": str(exc)}), 404
        except (ValueError, psycopg2.Error) as exc:
            return jsonify({"error": str(exc)}), 400

    @bp.delete("/<record_id>")
    def delete_row(record_id: str) -> Any:
        try:
            db.delete(table, record_id)
        except db.RecordNotFound as exc:
            return jsonify({"error": str(exc)}), 404
        except psycopg2.Error as exc:
            return jsonify({"error": str(exc)}), 400
        return "", 204

    return bp


companies_bp = crud_blueprint("companies", "company", "/api/companies")
files_bp = crud_blueprint("files", "file", "/api/files")
subscriptions_bp = crud_blueprint("subscriptions", "subscription", "/api/subscriptions")

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")
_CLIENT_FIELDS = ("nom", "email", "telephone")


def _client_fields() -> dict:
    payload = request.get_json(silent=True) or {}
    return {field: payload.get(field) for field in _CLIENT_FIELDS}


@clients_bp.get("")
def list_clients() -> Any:
    return jsonify(db.select("clients"))


@clients_bp.post("")
def create_client() -> Any:
    return jsonify(db.insert("clients", _client_fields())), 201


@clients_bp.put("/<client_id>")
def update_client(client_id: str) -> Any:
    try:
        return jsonify(db.update("clients", client_id, _client_fields()))
    except db.RecordNotFound:
        return jsonify({"message": "Client not found"}), 404


@clients_bp.delete("/<client_id>")
def delete_client(client_id: str) -> Any:
    try:
        db.delete("clients", client_id)
    except db.RecordNotFound:
        return jsonify({"message": "Client not found"}), 404
    return jsonify({"message": "Client deleted"})
