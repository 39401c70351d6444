from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from farm_importer import config
from farm_importer.errors import MissingCredentialError
from farm_importer.importer.exporter import export_csv, export_filename
from farm_importer.importer.session import RunInProgressError, get_session
from farm_importer.services.supabase import publish_records

api = Blueprint("api", __name__)


def _error(message: str, status: int) -> Any:
    return jsonify({"ok": False, "error": message}), status


@api.route("/", methods=["GET"])
def healthcheck() -> str:
    return "Farm importer running"


@api.route("/import", methods=["POST"])
def start_import() -> Any:
    """
    Start a playlist import.

    Body:
        playlist_url: YouTube playlist link (required)
        youtube_api_key / openai_api_key: optional, default to the environment
        wait: run in the request instead of in the background
    """
    body: Dict[str, Any] = request.get_json(silent=True) or {}
    playlist_url = str(body.get("playlist_url") or "")
    youtube_key = str(body.get("youtube_api_key") or config.YOUTUBE_API_KEY or "")
    openai_key = str(body.get("openai_api_key") or config.OPENAI_API_KEY or "")
    wait = bool(body.get("wait"))

    session = get_session()
    try:
        session.start(playlist_url, youtube_key, openai_key, background=not wait)
    except RunInProgressError as e:
        return _error(str(e), 409)

    progress = session.progress()
    if wait:
        if progress["status"] == "failed":
            return jsonify({"ok": False, "progress": progress, "error": progress["error"]}), 400
        records = [r.to_dict() for r in session.buffer.records()]
        return jsonify({"ok": True, "progress": progress, "records": records})

    return jsonify({"ok": True, "progress": progress}), 202


@api.route("/import/progress", methods=["GET"])
def import_progress() -> Any:
    return jsonify(get_session().progress())


@api.route("/import/cancel", methods=["POST"])
def cancel_import() -> Any:
    cancelled = get_session().cancel()
    return jsonify({"ok": True, "cancelled": cancelled})


@api.route("/records", methods=["GET"])
def list_records() -> Any:
    records = get_session().buffer.records()
    return jsonify({
        "records": [r.to_dict() for r in records],
        "needs_review": sum(1 for r in records if r.needs_review),
    })


@api.route("/records/<int:index>", methods=["GET"])
def get_record(index: int) -> Any:
    try:
        record = get_session().buffer.get(index)
    except IndexError as e:
        return _error(str(e), 404)
    return jsonify(record.to_dict())


@api.route("/records/<int:index>", methods=["PATCH"])
def update_record(index: int) -> Any:
    changes = request.get_json(silent=True)
    if not isinstance(changes, dict) or not changes:
        return _error("Body must be a JSON object of fields to change", 400)

    try:
        record = get_session().buffer.update(index, **changes)
    except IndexError as e:
        return _error(str(e), 404)
    except KeyError as e:
        return _error(f"Unknown field: {e.args[0]}", 400)
    except TypeError as e:
        return _error(str(e), 400)

    logging.info("[REVIEW] record %d updated: %s", index, ", ".join(changes))
    return jsonify(record.to_dict())


@api.route("/export", methods=["GET"])
def export() -> Response:
    data = export_csv(get_session().buffer.records())
    return Response(
        data,
        mimetype="text/csv",
        headers={
            "Content-Type": "text/csv; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{export_filename()}"',
        },
    )


@api.route("/publish", methods=["POST"])
def publish() -> Any:
    """
    Insert reviewed records into Supabase. `author_id` is the signed-in
    user's id, passed through as-is.
    """
    body: Dict[str, Any] = request.get_json(silent=True) or {}
    author_id = str(body.get("author_id") or "").strip()
    if not author_id:
        return _error("author_id is required", 400)

    session = get_session()
    if session.is_running():
        return _error("An import is still running", 409)

    try:
        result = publish_records(session.buffer.records(), author_id)
    except MissingCredentialError as e:
        return _error(str(e), 503)

    return jsonify({
        "ok": result.failed == 0,
        "success": result.success,
        "failed": result.failed,
        "errors": result.errors,
    })
