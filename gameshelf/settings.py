import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_TITLE_TYPES = ("games", "emulators")
WILDCARD_HOSTS = {"", "0.0.0.0", "::", "*"}


class IsolationMode(str, Enum):
    PERMISSIVE = "permissive"
    ISOLATED = "isolated"


@dataclass(frozen=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    title_types: Tuple[str, ...] = DEFAULT_TITLE_TYPES
    isolation: IsolationMode = IsolationMode.PERMISSIVE
    ignore_list: Tuple[str, ...] = field(default_factory=tuple)
    discovery_port: int = 0

    def __post_init__(self):
        if self.host.strip() in WILDCARD_HOSTS:
            raise ValueError(f"refusing to bind wildcard address {self.host!r}; use a loopback host")
        # accept lists / plain strings from callers, store immutable tuples
        object.__setattr__(self, "title_types", tuple(self.title_types))
        object.__setattr__(self, "ignore_list", tuple(self.ignore_list))
        object.__setattr__(self, "isolation", IsolationMode(self.isolation))
        if not self.title_types:
            raise ValueError("at least one title type is required")
        unknown = set(self.title_types) - set(DEFAULT_TITLE_TYPES)
        if unknown:
            raise ValueError(f"unknown title types: {sorted(unknown)}")


def load_ignore_list(ignore_file: Optional[Path]) -> List[str]:
    """Read a JSON array of folder names. Anything unusable yields []."""
    if ignore_file is None:
        return []
    p = Path(ignore_file)
    if not p.exists():
        return []
    try:
        data = json.loads(p.read_text("utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignore list %s unreadable: %s", p, e)
        return []
    if not isinstance(data, list):
        logger.warning("Ignore list %s is not a JSON array; ignoring it", p)
        return []
    return [s for s in (str(item).strip() for item in data) if s]


def config_from_env(default_ignore_file: Optional[Path] = None) -> ServerConfig:
    ignore_env = os.environ.get("GAMESHELF_IGNORE_FILE")
    ignore_file = Path(ignore_env) if ignore_env else default_ignore_file
    return ServerConfig(
        host=os.environ.get("GAMESHELF_BIND", DEFAULT_HOST),
        isolation=IsolationMode(os.environ.get("GAMESHELF_ISOLATION", "permissive").strip().lower()),
        ignore_list=tuple(load_ignore_list(ignore_file)),
        discovery_port=int(os.environ.get("GAMESHELF_PORT", "0")),
    )
