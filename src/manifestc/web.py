"""Read-only inspector for registered packages, plus a generate action.

    flask --app "manifestc.web:create_app()" run
"""

from __future__ import annotations

import logging
from typing import Optional

import jsonschema
from flask import Flask, abort, jsonify

from .config import GeneratorConfig
from .context import PackageRegistry, build_package, register_default
from .errors import ManifestError
from .generator import JsonPlanGenerator
from .pipeline import run
from .plan import build_plan, validate_plan

logger = logging.getLogger(__name__)


def create_app(registry: Optional[PackageRegistry] = None, config: Optional[GeneratorConfig] = None) -> Flask:
    app = Flask(__name__)
    reg = registry or register_default(PackageRegistry())
    cfg = config or GeneratorConfig.from_env()

    def _factory(name: str):
        factory = reg.factory_for(name)
        if factory is None:
            abort(404, description=f"Unknown package '{name}'")
        return factory

    @app.errorhandler(404)
    def not_found(err):
        return jsonify({"error": "not_found", "message": err.description}), 404

    @app.get("/packages")
    def list_packages():
        return jsonify({"packages": reg.names()})

    @app.get("/packages/<name>")
    def show_package(name: str):
        factory = _factory(name)
        try:
            doc = build_plan(build_package(factory))
        except ManifestError as e:
            logger.warning("[%s] %s", e.diag.code, e)
            return jsonify({"error": "manifest_error", "diagnostic": e.diag.to_dict()}), 422
        try:
            validate_plan(doc)
        except jsonschema.ValidationError as e:
            logger.warning("plan for %s does not match the plan schema: %s", name, e.message)
            return jsonify({"error": "invalid_plan", "message": e.message}), 422
        return jsonify(doc)

    @app.post("/packages/<name>/generate")
    def generate_package(name: str):
        factory = _factory(name)
        report = run(factory, JsonPlanGenerator(cfg), shape=cfg.shape)
        return jsonify(report.to_dict()), (200 if report.ok else 422)

    return app
