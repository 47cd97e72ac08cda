import pytest

from gameshelf import create_app
from gameshelf.scanning import AssetScanner
from gameshelf.settings import IsolationMode, ServerConfig


@pytest.fixture
def client(paths):
    app = create_app(ServerConfig(), paths, scanner=AssetScanner(paths))
    return app.test_client()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["packaged"] is False
    assert body["ts"]


def test_static_files_with_explicit_content_types(client):
    resp = client.get("/games/Pong/")
    assert resp.status_code == 200
    assert b"Classic Pong" in resp.data
    assert resp.headers["Content-Type"] == "text/html; charset=utf-8"

    assert client.get("/games/Pong/game.js").headers["Content-Type"] == "application/javascript; charset=utf-8"
    assert client.get("/games/Pong/style.css").headers["Content-Type"] == "text/css; charset=utf-8"
    assert client.get("/games/Pong/thumbnail.png").status_code == 200

    sub = client.get("/games/Pong/levels/")
    assert sub.status_code == 200 and b"Levels" in sub.data

    assert client.get("/emulators/nes-box/").status_code == 200


def test_title_url_without_slash_redirects(client):
    resp = client.get("/games/Pong")
    assert resp.status_code in (301, 308)
    assert resp.headers["Location"].endswith("/games/Pong/")


def test_missing_files_are_json_404(client):
    for url in ("/games/Pong/missing.js", "/games/NoSuchGame/", "/nothing/here", "/games/Pong/../../secret"):
        resp = client.get(url)
        assert resp.status_code == 404, url
        assert resp.get_json() == {"error": "Not found"}


def test_launch_redirects_to_static_route(client):
    resp = client.get("/launch/games/Pong")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/games/Pong/")


def test_launch_validation(client):
    assert client.get("/launch/roms/Pong").status_code == 400
    assert client.get("/launch/games/..%2f..%2fetc").status_code == 400
    assert client.get("/launch/games/bad name").status_code == 400
    resp = client.get("/launch/games/zelda-clone")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Game not found"}
    assert client.get("/launch/games/Nope").status_code == 404


def test_security_headers_follow_isolation_mode(paths):
    permissive = create_app(ServerConfig(), paths).test_client().get("/health")
    assert permissive.headers["Cross-Origin-Embedder-Policy"] == "unsafe-none"
    assert permissive.headers["X-Frame-Options"] == "SAMEORIGIN"

    isolated = create_app(ServerConfig(isolation=IsolationMode.ISOLATED), paths).test_client().get("/health")
    assert isolated.headers["Cross-Origin-Embedder-Policy"] == "require-corp"
    assert isolated.headers["Cross-Origin-Opener-Policy"] == "same-origin"


def test_cors_reflects_origin(client):
    resp = client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert resp.headers.get("Access-Control-Allow-Origin") in ("http://localhost:3000", "*")


def test_scoped_app_serves_only_its_title(paths):
    client = create_app(ServerConfig(), paths, scope=("games", "Pong")).test_client()
    assert client.get("/games/Pong/").status_code == 200
    assert client.get("/games/SuperMario/").status_code == 404
    assert client.get("/emulators/nes-box/").status_code == 404
    assert client.get("/launch/games/SuperMario").status_code == 404
    assert client.get("/launch/emulators/nes-box").status_code == 404
    assert client.get("/launch/roms/Pong").status_code == 400
    assert client.get("/api/catalog").status_code == 404


def test_catalog_and_screenshots_on_discovery_app(client, paths, touch):
    touch(paths.screenshots_path / "Pong.png", b"png")
    body = client.get("/api/catalog").get_json()
    assert body["total"] == 4
    assert [g["title"] for g in body["games"]] == ["Classic Pong", "Super Mario", "Zelda Clone"]
    assert body["games"][0]["thumbnailExternal"] is True

    assert client.get("/screenshots/Pong.png").data == b"png"
    assert client.get("/screenshots/Other.png").status_code == 404


def test_internal_errors_are_json_500(paths):
    app = create_app(ServerConfig(), paths)

    def explode():
        raise RuntimeError("secret detail")

    app.add_url_rule("/explode", "explode", explode)
    resp = app.test_client().get("/explode")
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}
    assert b"secret detail" not in resp.data
