from __future__ import annotations
import logging
import os
import posixpath
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from flask import Blueprint, current_app, jsonify, redirect, send_from_directory, abort
from werkzeug.security import safe_join

from .settings import IsolationMode
from .utils import is_safe_identifier

logger = logging.getLogger(__name__)

EXPLICIT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".css": "text/css; charset=utf-8",
}

ISOLATION_HEADERS = {
    IsolationMode.PERMISSIVE: {
        "Cross-Origin-Embedder-Policy": "unsafe-none",
        "Cross-Origin-Opener-Policy": "unsafe-none",
    },
    IsolationMode.ISOLATED: {
        "Cross-Origin-Embedder-Policy": "require-corp",
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Resource-Policy": "same-origin",
    },
}

def _cfg() -> Tuple[Dict[str, Path], Optional[Tuple[str, str]], bool]:
    c = current_app.config
    return c["TITLE_ROOTS"], c["SCOPE"], bool(c["PACKAGED"])

def _error(message: str, code: int):
    return jsonify({"error": message}), code

def _in_scope(kind: str, title_id: str) -> bool:
    scope = current_app.config["SCOPE"]
    return scope is None or scope == (kind, title_id)

def build_blueprint(title_types: Sequence[str]) -> Blueprint:
    """Health, launch and static routes shared by every ContentServer."""
    bp = Blueprint("gameshelf", __name__)
    kinds = ", ".join(title_types)

    @bp.after_app_request
    def security_headers(resp):
        resp.headers["X-Frame-Options"] = "SAMEORIGIN"
        for k, v in ISOLATION_HEADERS[current_app.config["ISOLATION"]].items():
            resp.headers[k] = v
        return resp

    @bp.get("/health")
    def health():
        _, _, packaged = _cfg()
        return jsonify({
            "status": "ok",
            "ts": datetime.now(timezone.utc).isoformat(),
            "packaged": packaged,
        })

    @bp.get("/launch/<kind>/<path:game>")
    def launch(kind, game):
        roots, _, _ = _cfg()
        if kind not in current_app.config["TITLE_TYPES"]:
            return _error("Invalid game type", 400)
        if not is_safe_identifier(game):
            return _error("Invalid game id", 400)
        if not _in_scope(kind, game):
            return _error("Game not found", 404)
        if not (roots[kind] / game / "index.html").is_file():
            return _error("Game not found", 404)
        return redirect(f"/{kind}/{game}/", code=302)

    @bp.get(f"/<any({kinds}):kind>/<title_id>/", defaults={"filename": ""})
    @bp.get(f"/<any({kinds}):kind>/<title_id>/<path:filename>")
    def title_file(kind, title_id, filename):
        roots, _, _ = _cfg()
        if not is_safe_identifier(title_id):
            return _error("Invalid game id", 400)
        if not _in_scope(kind, title_id):
            abort(404)
        folder = roots[kind] / title_id
        target = safe_join(str(folder), filename) if filename else str(folder)
        if target is None:
            abort(404)
        if os.path.isdir(target):
            filename = posixpath.join(filename, "index.html")
        resp = send_from_directory(folder, filename)
        ctype = EXPLICIT_TYPES.get(posixpath.splitext(filename)[1].lower())
        if ctype:
            resp.headers["Content-Type"] = ctype
        return resp

    @bp.app_errorhandler(404)
    def not_found(e):
        return _error("Not found", 404)

    @bp.app_errorhandler(405)
    def method_not_allowed(e):
        return _error("Method not allowed", 405)

    @bp.app_errorhandler(500)
    def internal_error(e):
        logger.error("Server error: %r", getattr(e, "original_exception", e))
        return _error("Internal server error", 500)

    return bp

# Only the shared discovery server carries these.
discovery_bp = Blueprint("discovery", __name__)

@discovery_bp.get("/api/catalog")
def catalog():
    scanner = current_app.config.get("SCANNER")
    if scanner is None:
        abort(404)
    return jsonify(scanner.scan().to_dict())

@discovery_bp.get("/screenshots/<path:name>")
def screenshot(name):
    shots = current_app.config.get("SCREENSHOTS_DIR")
    if shots is None:
        abort(404)
    return send_from_directory(shots, name)
