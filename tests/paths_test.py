import json

import pytest

from gameshelf.paths import PathResolver
from gameshelf.settings import IsolationMode, ServerConfig, config_from_env, load_ignore_list


def test_development_paths_when_not_packaged(tmp_path):
    (tmp_path / "res" / "packaged-assets").mkdir(parents=True)
    r = PathResolver(resources_root=tmp_path / "res", packaged_signal=False,
                     dev_root=tmp_path / "dev", screenshot_candidates=[])
    p = r.resolve()
    assert p.packaged is False
    assert p.games_path == tmp_path / "dev" / "games"
    assert p.emulators_path == tmp_path / "dev" / "emulators"
    assert p.screenshots_path is None


def test_packaged_paths_require_bundle_and_signal(tmp_path):
    bundle = tmp_path / "res" / "packaged-assets"
    r = PathResolver(resources_root=tmp_path / "res", packaged_signal=True,
                     dev_root=tmp_path / "dev", screenshot_candidates=[])
    assert r.resolve().packaged is False

    bundle.mkdir(parents=True)
    r = PathResolver(resources_root=tmp_path / "res", packaged_signal=True,
                     dev_root=tmp_path / "dev", screenshot_candidates=[])
    p = r.resolve()
    assert p.packaged is True
    assert p.games_path == bundle / "games"


def test_first_existing_screenshot_dir_wins_and_result_is_cached(tmp_path):
    a, b, c = tmp_path / "a", tmp_path / "b", tmp_path / "c"
    b.mkdir()
    c.mkdir()
    r = PathResolver(dev_root=tmp_path, screenshot_candidates=[a, b, c])
    first = r.resolve()
    assert first.screenshots_path == b
    b.rmdir()
    assert r.resolve() is first


def test_root_for_rejects_unknown_segment(tmp_path):
    p = PathResolver(dev_root=tmp_path, screenshot_candidates=[]).resolve()
    assert p.root_for("games") == tmp_path / "games"
    with pytest.raises(KeyError):
        p.root_for("../etc")


def test_config_refuses_wildcard_bind():
    for host in ("", "0.0.0.0", "::"):
        with pytest.raises(ValueError):
            ServerConfig(host=host)
    with pytest.raises(ValueError):
        ServerConfig(title_types=("games", "roms"))


def test_config_normalizes_inputs():
    cfg = ServerConfig(title_types=["games"], isolation="isolated", ignore_list=["A"])
    assert cfg.title_types == ("games",)
    assert cfg.isolation is IsolationMode.ISOLATED
    assert cfg.ignore_list == ("A",)


def test_load_ignore_list(tmp_path):
    f = tmp_path / "ignore.json"
    assert load_ignore_list(f) == []
    f.write_text(json.dumps([" Old Game ", "", 42]), encoding="utf-8")
    assert load_ignore_list(f) == ["Old Game", "42"]
    f.write_text('{"not": "a list"}', encoding="utf-8")
    assert load_ignore_list(f) == []
    f.write_text("[broken", encoding="utf-8")
    assert load_ignore_list(f) == []


def test_config_from_env(tmp_path, monkeypatch):
    f = tmp_path / "ignore.json"
    f.write_text('["x"]', encoding="utf-8")
    monkeypatch.setenv("GAMESHELF_IGNORE_FILE", str(f))
    monkeypatch.setenv("GAMESHELF_ISOLATION", "Isolated")
    monkeypatch.setenv("GAMESHELF_PORT", "0")
    monkeypatch.delenv("GAMESHELF_BIND", raising=False)
    cfg = config_from_env()
    assert cfg.host == "127.0.0.1"
    assert cfg.isolation is IsolationMode.ISOLATED
    assert cfg.ignore_list == ("x",)
