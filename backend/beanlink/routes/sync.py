# Overview: Flask API routes for terminal sync; parses input and returns JSON responses.

# backend/beanlink/routes/sync.py
"""
Sync routes.

Terminals push one record per POST, or many via /batch. Bodies may be the
record itself, a {"data": ...} envelope, or JSON text encoded into either.

Batch calls always answer 200 once the body parsed; callers inspect
"success" and "errors" rather than the status code.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import sync_service
from ..services.normalizer import unwrap_envelope
from ..services.sync_schemas import SCHEMAS
from ..validation import SyncError, to_int

sync_bp = Blueprint("sync", __name__, url_prefix="/sync")


def _request_body():
    body = request.get_json(silent=True)
    if body is None:
        # Not application/json, or double-encoded text: let the normalizer try
        body = request.get_data(as_text=True) or None
    return body


def _error_response(exc: SyncError):
    return jsonify(exc.to_dict()), exc.status_code


@sync_bp.get("/collections")
def list_collections_route():
    return jsonify({"collections": sorted(SCHEMAS.keys())})


@sync_bp.get("/registration/<path:hostname>")
def get_registration_route(hostname: str):
    try:
        row = sync_service.get_registration(hostname)
    except SyncError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load registration")
        return jsonify({"error": "Internal server error"}), 500

    if row is None:
        return jsonify({"error": "Registration not found", "key": hostname}), 404
    return jsonify(row), 200


@sync_bp.get("/<kind>")
def list_route(kind: str):
    """
    List every row of a collection.

    Query params:
    - mid: int (optional) - only rows for this tenant
    """
    try:
        mid = to_int(request.args.get("mid"))
        rows = sync_service.list_rows(kind, mid=mid)
        return jsonify(rows), 200
    except SyncError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list %s", kind)
        return jsonify({"error": "Database error"}), 500


@sync_bp.post("/<kind>")
def sync_one_route(kind: str):
    """Create-or-update one record; returns the persisted row."""
    try:
        record = unwrap_envelope(_request_body())
        row = sync_service.upsert(kind, record)
        return jsonify(row), 200
    except SyncError as e:
        current_app.logger.warning("Sync of %s rejected: %s (key=%s)", kind, e, e.key)
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to sync %s", kind)
        return jsonify({"error": "Database error"}), 500


@sync_bp.post("/<kind>/batch")
def sync_batch_route(kind: str):
    """Best-effort batch upsert; per-record failures are reported, not raised."""
    try:
        result = sync_service.upsert_batch(kind, _request_body())
        return jsonify(result.to_dict()), 200
    except SyncError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to batch sync %s", kind)
        return jsonify({"error": "Database error"}), 500
