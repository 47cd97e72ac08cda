from typing import Optional, Tuple

from flask import Flask
from flask_cors import CORS

from .errors import BindError, GameShelfError, InvalidIdentifier, TitleNotFound
from .paths import PathResolver, ResolvedPaths, resolve_paths
from .routes import build_blueprint, discovery_bp
from .settings import IsolationMode, ServerConfig, config_from_env, load_ignore_list

def create_app(config: ServerConfig, paths: ResolvedPaths,
               scope: Optional[Tuple[str, str]] = None, scanner=None) -> Flask:
    """Build the WSGI app for one ContentServer.

    ``scope`` = (type, id) restricts the app to a single title; ``None`` makes
    it the discovery server, which also exposes the catalog and screenshots.
    """
    app = Flask(__name__)
    kinds = config.title_types if scope is None else (scope[0],)
    app.config["TITLE_ROOTS"] = {k: paths.root_for(k).absolute() for k in kinds}
    app.config["TITLE_TYPES"] = config.title_types
    app.config["SCOPE"] = scope
    app.config["PACKAGED"] = paths.packaged
    app.config["ISOLATION"] = config.isolation
    app.config["SCANNER"] = scanner
    app.config["SCREENSHOTS_DIR"] = paths.screenshots_path.absolute() if paths.screenshots_path else None
    app.json.sort_keys = False

    CORS(app, supports_credentials=True)
    app.register_blueprint(build_blueprint(kinds))
    if scope is None:
        app.register_blueprint(discovery_bp)
    return app

__all__ = [
    "BindError", "GameShelfError", "InvalidIdentifier", "TitleNotFound",
    "PathResolver", "ResolvedPaths", "resolve_paths",
    "IsolationMode", "ServerConfig", "config_from_env", "load_ignore_list",
    "create_app",
]
