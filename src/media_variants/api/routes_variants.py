"""
Variant repair endpoints.

Blueprint: variants_bp
Prefix: /api
Routes:
    POST /api/regenerate-variants   # {mediaId?, forceRegenerate?}
    POST /api/fix-batch-media       # rows with a file but missing metadata/variants
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from ..core.models import AssetFilter

variants_bp = Blueprint("variants", __name__)

logger = logging.getLogger(__name__)


def _scanner():
    return current_app.config["MEDIA_SERVICES"].scanner


def _server_error(exc: Exception):
    logger.error(f"Variant endpoint failed: {exc}", exc_info=True)
    return jsonify({"success": False, "error": str(exc)}), 500


@variants_bp.route("/regenerate-variants", methods=["POST"])
def regenerate_variants():
    """Regenerate one media row, rows missing metadata, or everything when forced."""
    body = request.get_json(silent=True) or {}
    media_id = body.get("mediaId") or None
    force = bool(body.get("forceRegenerate", False))

    try:
        summary = _scanner().scan_and_repair(AssetFilter(media_id=media_id, force=force))
    except Exception as exc:  # noqa: BLE001
        return _server_error(exc)

    if summary.processed == 0:
        return jsonify(summary.to_response("No media files need processing"))
    return jsonify(summary.to_response("Variant regeneration completed"))


@variants_bp.route("/fix-batch-media", methods=["POST"])
def fix_batch_media():
    """Repair rows that have a stored file but null/empty width, height or variants."""
    try:
        summary = _scanner().scan_and_repair(AssetFilter(require_source=True))
    except Exception as exc:  # noqa: BLE001
        return _server_error(exc)

    if summary.processed == 0:
        return jsonify(summary.to_response("All media files are already fixed!"))
    return jsonify(summary.to_response(f"Fixed {summary.success_count} media files"))
