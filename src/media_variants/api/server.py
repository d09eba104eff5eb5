"""Flask application exposing the variant repair endpoints."""

from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..core.factories import MediaServices
from .routes_variants import variants_bp

logger = logging.getLogger(__name__)


def create_app(services: MediaServices) -> Flask:
    """Create the Flask application around an already-wired set of services."""
    app = Flask(__name__)
    app.config["MEDIA_SERVICES"] = services

    app.register_blueprint(variants_bp, url_prefix="/api")  # /api/regenerate-variants, /api/fix-batch-media

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    logger.info("Regenerate Variants API registered at POST /api/regenerate-variants")
    logger.info("Fix Batch Media API registered at POST /api/fix-batch-media")
    return app
