"""Flask API for promptgen.

This provides REST endpoints for:
- Rendering entry points
- Listing entry points and separator sets
- Previewing separator rules
- Validating content trees
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from promptgen.config.settings import Settings, get_settings
from promptgen.core.exceptions import SeparatorRulesError
from promptgen.core.interfaces import Resolver
from promptgen.core.render_models import RenderRequest
from promptgen.rendering.engine import PromptRenderer
from promptgen.rendering.separators import builtin_separator_names
from promptgen.storage.resolver import InMemoryResolver
from promptgen.utils.logging import get_logger
from promptgen.validation.content_validator import validate_content

logger = get_logger(__name__)


def create_app(resolver: Optional[Resolver] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or get_settings()
    resolver = resolver if resolver is not None else InMemoryResolver()

    app = Flask(__name__)
    CORS(app)
    register_routes(app, renderer=PromptRenderer(resolver, settings))
    return app


def _bad_request(message: str, **details: Any):
    return jsonify({"error": message, **details}), 400


def register_routes(app: Flask, *, renderer: PromptRenderer) -> None:
    resolver = renderer.resolver

    @app.before_request
    def log_request() -> None:
        logger.info(
            "HTTP request",
            extra={"method": request.method, "path": request.path, "remote_addr": request.remote_addr},
        )

    # -------------------------------------------------------------------------
    # Info
    # -------------------------------------------------------------------------

    @app.route("/api")
    def api_info():
        """API info."""
        return jsonify({
            "name": "promptgen API",
            "endpoints": {
                "health": "/api/health",
                "entry_points": "/api/entry-points",
                "separator_sets": "/api/separator-sets",
                "render": "/api/render",
                "preview_separator": "/api/preview-separator",
                "validate": "/api/validate",
            },
        })

    @app.route("/api/health")
    def health():
        """Health check."""
        return jsonify({"status": "healthy"})

    # -------------------------------------------------------------------------
    # Definitions
    # -------------------------------------------------------------------------

    @app.route("/api/entry-points", methods=["GET"])
    def list_entry_points():
        """List entry point sections known to the resolver."""
        sections = resolver.list_entry_points() if isinstance(resolver, InMemoryResolver) else []
        entry_points = [
            {
                "id": s.id,
                "namespace": s.namespace,
                "name": s.name,
                "description": s.description,
                "required_variables": s.required_variables,
            }
            for s in sections
        ]
        return jsonify({"entry_points": entry_points, "count": len(entry_points)})

    @app.route("/api/separator-sets", methods=["GET"])
    def list_separator_sets():
        """List built-in and user-defined separator sets."""
        custom = []
        if isinstance(resolver, InMemoryResolver):
            custom = [
                {"id": s.id, "namespace": s.namespace, "name": s.name}
                for s in resolver.list_separator_sets()
            ]
        return jsonify({"builtin": builtin_separator_names(), "custom": custom})

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    @app.route("/api/render", methods=["POST"])
    def render():
        """Render an entry point."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _bad_request("Request body must be a JSON object")

        try:
            render_request = RenderRequest.model_validate(body)
        except ValidationError as e:
            return _bad_request(
                "Invalid render request",
                details=e.errors(include_url=False, include_context=False),
            )

        result = renderer.render(render_request)
        return jsonify(result.model_dump(mode="json"))

    @app.route("/api/preview-separator", methods=["POST"])
    def preview_separator():
        """Join sample items with a separator set or inline rules."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return _bad_request("Request body must be a JSON object")

        items = body.get("items")
        if not isinstance(items, list):
            return _bad_request("'items' must be a list")

        rules = body.get("rules", body.get("set"))
        if rules is None:
            return _bad_request("Provide 'rules' or 'set'")

        try:
            text = renderer.preview_separator(rules, items)
        except SeparatorRulesError as e:
            return _bad_request(e.message, details=e.context)

        return jsonify({"text": text})

    @app.route("/api/validate", methods=["POST"])
    def validate():
        """Structurally validate a content tree."""
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or "content" not in body:
            return _bad_request("Request body must contain 'content'")

        errors = validate_content(body["content"])
        return jsonify({"valid": not errors, "errors": [asdict(e) for e in errors]})
