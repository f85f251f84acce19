"""Uploaded CSV lists: rows in the ``liste`` table, files in the file store."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import psycopg2
from flask import Blueprint, jsonify, request, send_file

from prosperian.core import db
from prosperian.core.config import get_settings
from prosperian.core.file_store import MAX_UPLOAD_BYTES, FileStore

logger = logging.getLogger(__name__)

lists_bp = Blueprint("lists", __name__, url_prefix="/api/lists")

PUBLIC_PREFIX = "/public/list"
TABLE = "liste"


def get_file_store() -> FileStore:
    return FileStore(get_settings().list_storage_dir)


def _is_csv(upload) -> bool:
    return upload.mimetype == "text/csv" or Path(upload.filename or "").suffix.lower() == ".csv"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@lists_bp.get("")
def list_lists() -> Any:
    try:
        return jsonify(db.select(TABLE, order_by="created_at", descending=True) or [])
    except psycopg2.Error as exc:
        logger.error("Listing lists failed: %s", exc)
        return jsonify({"error": str(exc)}), 500


@lists_bp.get("/<list_id>")
def get_list(list_id: str) -> Any:
    try:
        return jsonify(db.select_one(TABLE, list_id))
    except (db.RecordNotFound, psycopg2.Error) as exc:
        return jsonify({"error": str(exc)}), 404


@lists_bp.post("")
def create_list() -> Any:
    """
    Create a list from a CSV upload.
    Required multipart fields: type, nom, file (.csv, at most 10MB).
    """
    list_type = request.form.get("type")
    nom = request.form.get("nom")
    upload = request.files.get("file")
    if not list_type or not nom or upload is None:
        return jsonify({"error": "type, nom and file are required"}), 400
    if not _is_csv(upload):
        return jsonify({"error": "only CSV files are accepted"}), 400
    if request.content_length is not None and request.content_length > MAX_UPLOAD_BYTES:
        return jsonify({"error": "file exceeds the 10MB limit"}), 413

    store = get_file_store()
    stored_name = store.save(upload.stream, upload.filename)
    try:
        elements = store.count_rows(stored_name)
    except OSError as exc:
        logger.warning("Could not count rows of %s: %s", stored_name, exc)
        elements = 0

    now = _now_iso()
    row = {
        "type": list_type,
        "nom": nom,
        "elements": elements,
        "path": f"{PUBLIC_PREFIX}/{stored_name}",
        "created_at": now,
        "updated_at": now,
    }
    try:
        created = db.insert(TABLE, row)
    except (ValueError, psycopg2.Error) as exc:
        logger.error("Inserting list %s failed: %s", nom, exc)
        store.delete(stored_name)
        return jsonify({"error": str(exc)}), 400

    return jsonify({**created, "filePath": row["path"], "originalName": upload.filename}), 201


@lists_bp.put("/<list_id>")
def update_list(list_id: str) -> Any:
    patch = {**(request.get_json(silent=True) or {}), "updated_at": _now_iso()}
    try:
        return jsonify(db.update(TABLE, list_id, patch))
    except db.RecordNotFound as exc:
        return jsonify({"error": str(exc)}), 404
    except (ValueError, psycopg2.Error) as exc:
        return jsonify({"error": str(exc)}), 400


@lists_bp.delete("/<list_id>")
def delete_list(list_id: str) -> Any:
    try:
        existing = db.select_one(TABLE, list_id)
    except (db.RecordNotFound, psycopg2.Error) as exc:
        return jsonify({"error": str(exc)}), 404

    try:
        db.delete(TABLE, list_id)
    except (db.RecordNotFound, psycopg2.Error) as exc:
        return jsonify({"error": str(exc)}), 400

    if existing.get("path"):
        get_file_store().delete(existing["path"])
    return "", 204


@lists_bp.get("/<list_id>/download")
def download_list(list_id: str) -> Any:
    try:
        existing = db.select_one(TABLE, list_id)
    except (db.RecordNotFound, psycopg2.Error) as exc:
        return jsonify({"error": str(exc)}), 404

    store = get_file_store()
    path = existing.get("path") or ""
    if not path or not store.exists(path):
        return jsonify({"error": "file not found"}), 404

    return send_file(
        store.open(path),
        mimetype="text/csv",
        as_attachment=True,
        download_name=f"{existing.get('nom')}.csv",
    )
