from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


class TitleType(str, Enum):
    GAME = "game"
    EMULATOR = "emulator"

    @property
    def segment(self) -> str:
        """Folder / URL segment for this type."""
        return self.value + "s"


@dataclass(frozen=True)
class Thumbnail:
    filename: str
    external: bool = False     # True = lives in the shared screenshots dir


@dataclass(frozen=True)
class TitleRecord:
    id: str
    title: str
    description: str
    type: TitleType
    thumbnail: Optional[Thumbnail]
    size: int
    last_modified: datetime = EPOCH

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "path": self.id,
            "thumbnail": self.thumbnail.filename if self.thumbnail else None,
            "thumbnailExternal": bool(self.thumbnail and self.thumbnail.external),
            "lastModified": self.last_modified.isoformat(),
            "size": self.size,
        }


@dataclass
class Catalog:
    games: List[TitleRecord] = field(default_factory=list)
    emulators: List[TitleRecord] = field(default_factory=list)
    degraded: List[Tuple[str, str]] = field(default_factory=list)   # (title id, reason)

    @property
    def total(self) -> int:
        return len(self.games) + len(self.emulators)

    def to_dict(self) -> Dict:
        return {
            "games": [r.to_dict() for r in self.games],
            "emulators": [r.to_dict() for r in self.emulators],
            "total": self.total,
        }
