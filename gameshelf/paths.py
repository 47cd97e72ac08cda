"""Locate the games / emulators trees and the optional screenshots directory.

Content comes either from a packaged asset bundle under the runtime's
resource root (``<resources>/packaged-assets/{games,emulators}``) or from the
development checkout, two levels above this module.
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

PACKAGED_DIRNAME = "packaged-assets"
PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent
DEV_ROOT = PROJECT_ROOT.parent


@dataclass(frozen=True)
class ResolvedPaths:
    games_path: Path
    emulators_path: Path
    screenshots_path: Optional[Path]
    packaged: bool

    def root_for(self, segment: str) -> Path:
        if segment == "games":
            return self.games_path
        if segment == "emulators":
            return self.emulators_path
        raise KeyError(segment)


class PathResolver:
    """Resolves content locations once; later calls return the cached result."""

    def __init__(self, resources_root: Optional[Path] = None, packaged_signal: bool = False,
                 dev_root: Optional[Path] = None, screenshot_candidates: Optional[Iterable[Path]] = None):
        self.resources_root = Path(resources_root) if resources_root else None
        self.packaged_signal = packaged_signal
        self.dev_root = Path(dev_root) if dev_root else DEV_ROOT
        self._screenshot_candidates = list(screenshot_candidates) if screenshot_candidates is not None else None
        self._resolved: Optional[ResolvedPaths] = None
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "PathResolver":
        res = os.environ.get("GAMESHELF_RESOURCES")
        return cls(
            resources_root=Path(res) if res else None,
            packaged_signal=os.environ.get("GAMESHELF_PACKAGED") == "1",
        )

    def screenshot_candidates(self) -> List[Path]:
        if self._screenshot_candidates is not None:
            return self._screenshot_candidates
        cands: List[Path] = []
        env = os.environ.get("GAMESHELF_SCREENSHOTS")
        if env:
            cands.append(Path(env))
        cands.append(PROJECT_ROOT / "public" / "screenshots")
        if self.resources_root:
            cands.append(self.resources_root / "public" / "screenshots")
        cands.append(Path.cwd() / "public" / "screenshots")
        return cands

    def resolve(self) -> ResolvedPaths:
        with self._lock:
            if self._resolved is None:
                self._resolved = self._resolve()
            return self._resolved

    def _resolve(self) -> ResolvedPaths:
        packaged_root = self.resources_root / PACKAGED_DIRNAME if self.resources_root else None
        if packaged_root is not None and packaged_root.is_dir() and self.packaged_signal:
            logger.info("Using packaged assets at %s", packaged_root)
            base, packaged = packaged_root, True
        else:
            logger.info("Using development asset paths under %s", self.dev_root)
            base, packaged = self.dev_root, False

        screenshots = next((c for c in self.screenshot_candidates() if c.is_dir()), None)
        if screenshots is None:
            logger.info("No screenshots directory found")
        return ResolvedPaths(
            games_path=base / "games",
            emulators_path=base / "emulators",
            screenshots_path=screenshots,
            packaged=packaged,
        )


def resolve_paths() -> ResolvedPaths:
    return PathResolver.from_env().resolve()
