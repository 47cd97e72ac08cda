import shutil
import tempfile
from pathlib import Path

import pytest

from gameshelf.paths import ResolvedPaths


def _touch(p: Path, data: bytes = b""):
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(data or b"stub")


PONG_HTML = b"""<!doctype html>
<html><head>
  <title>Classic Pong</title>
  <meta name="description" content="Two paddles, one ball.">
</head><body><script src="game.js"></script></body></html>
"""


@pytest.fixture
def content_root():
    tmp = Path(tempfile.mkdtemp(prefix="gameshelf_test_"))
    try:
        games = tmp / "games"
        emus = tmp / "emulators"
        shots = tmp / "screenshots"

        _touch(games / "SuperMario" / "index.html", b"<html><body>no title here</body></html>")
        _touch(games / "zelda-clone" / "data.bin", b"x" * 10)
        _touch(games / "Pong" / "index.html", PONG_HTML)
        _touch(games / "Pong" / "game.js", b"console.log('pong');")
        _touch(games / "Pong" / "style.css", b"body{}")
        _touch(games / "Pong" / "thumbnail.png", b"\x89PNG fake")
        _touch(games / "Pong" / "levels" / "index.html", b"<html><title>Levels</title></html>")
        _touch(games / "notes.txt", b"not a title folder")

        _touch(emus / "nes-box" / "index.html", b"<title>NES Box</title>")
        _touch(emus / "nes-box" / "cover.jpg", b"jpg")
        shots.mkdir()
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def paths(content_root):
    return ResolvedPaths(
        games_path=content_root / "games",
        emulators_path=content_root / "emulators",
        screenshots_path=content_root / "screenshots",
        packaged=False,
    )


@pytest.fixture
def touch():
    return _touch
