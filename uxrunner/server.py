"""HTTP surface for parsing, resolving and running UX steps."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List

from flask import Flask, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from uxsteps.dsl import Scenario, parse_steps, resolve, resolve_field

from .config import load_config, validate_run_id
from .matrix import run_matrix

app = Flask(__name__)
log = logging.getLogger(__name__)


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _bad_request(message: str, **extra: Any):
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), 400


@app.errorhandler(Exception)
def handle_exception(error):  # pragma: no cover - defensive handler
    if isinstance(error, HTTPException):
        return error
    correlation_id = str(uuid.uuid4())[:8]
    log.exception("[%s] Uncaught exception: %s", correlation_id, error)
    return jsonify({"error": f"internal failure - {error}", "correlation_id": correlation_id}), 500


@app.get("/healthz")
def healthz():
    return jsonify({"status": "ok"})


@app.post("/parse")
def parse():
    data = _json_body()
    steps = data.get("steps")
    if isinstance(steps, str):
        steps = [steps]
    if not isinstance(steps, list) or not all(isinstance(step, str) for step in steps):
        return _bad_request("steps must be a list of strings")
    cleaned: List[str] = [step for step in (s.strip() for s in steps) if step]
    actions = parse_steps(cleaned, str(data.get("base_url") or ""))
    return jsonify({"actions": [action.payload() for action in actions]})


@app.post("/resolve")
def resolve_selectors():
    data = _json_body()
    description = data.get("description")
    if not isinstance(description, str):
        return _bad_request("description must be a string")
    candidates = resolve_field(description) if data.get("field") else resolve(description)
    return jsonify({"selectors": candidates})


@app.post("/run")
def run():
    data = _json_body()
    raw_scenarios = data.get("scenarios")
    if not isinstance(raw_scenarios, list) or not raw_scenarios:
        return _bad_request("scenarios must be a non-empty list")
    try:
        scenarios = [Scenario.model_validate(item) for item in raw_scenarios]
    except ValidationError as exc:
        return _bad_request("invalid scenario", details=exc.errors(include_url=False, include_context=False))

    run_id = data.get("run_id")
    if run_id is not None:
        try:
            validate_run_id(run_id)
        except ValueError as exc:
            return _bad_request(str(exc))

    overrides = {key: data[key] for key in ("browsers", "viewports", "halt_on_failure") if key in data}
    try:
        config = load_config(overrides=overrides)
    except (ValueError, ValidationError) as exc:
        return _bad_request(f"invalid configuration: {exc}")

    report = asyncio.run(run_matrix(scenarios, config, run_id=run_id))
    return jsonify(report.to_payload())
