import logging
import os
import re
import unicodedata
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from .models import EPOCH, Catalog, Thumbnail, TitleRecord, TitleType
from .paths import ResolvedPaths
from .utils import is_safe_identifier

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"
THUMB_BASENAMES = ["thumbnail", "thumbnail@2x", "thumbnail-large", "cover", "preview", "icon", "logo", "favicon"]
THUMB_EXTS = [".png", ".webp", ".jpg", ".jpeg", ".gif", ".svg", ".ico"]

TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
DESC_RE = re.compile(r"""<meta[^>]*name=["']description["'][^>]*content=["']([^"']+)["'][^>]*>""", re.IGNORECASE)
CAMEL_RE = re.compile(r"([a-z])([A-Z])")

# --- names ---

def format_title(name: str) -> str:
    """'SuperMario' -> 'Super Mario', 'zelda-clone' -> 'Zelda Clone'."""
    spaced = CAMEL_RE.sub(r"\1 \2", re.sub(r"[_-]", " ", name))
    return " ".join(w[:1].upper() + w[1:].lower() for w in spaced.split())

def normalize_name(name: str) -> str:
    return re.sub(r"[\W_]+", "", name.lower())

def collation_key(text: str) -> str:
    """Case- and accent-insensitive key: 'Éclair' sorts with 'eclair'."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()

def title_sort_key(record: TitleRecord) -> Tuple[str, str]:
    return collation_key(record.title), record.title.casefold()

# --- per-folder metadata ---

def extract_html_meta(html: str) -> Tuple[Optional[str], str]:
    """Return (title or None, description) from an index.html body; first match wins."""
    title = None
    m = TITLE_RE.search(html)
    if m and m.group(1).strip():
        title = m.group(1).strip()
    desc = ""
    m = DESC_RE.search(html)
    if m:
        desc = m.group(1).strip()
    return title, desc

def resolve_thumbnail(folder: Path, title_id: str, screenshots_dir: Optional[Path]) -> Optional[Thumbnail]:
    if screenshots_dir is not None and (screenshots_dir / f"{title_id}.png").is_file():
        return Thumbnail(filename=f"{title_id}.png", external=True)
    for base in THUMB_BASENAMES:
        for ext in THUMB_EXTS:
            if (folder / (base + ext)).is_file():
                return Thumbnail(filename=base + ext, external=False)
    return None

def folder_size(folder: Path) -> int:
    """Recursive byte sum. Directory symlinks are not followed; each inode is visited once."""
    total = 0
    seen: Set[Tuple[int, int]] = set()
    stack = [Path(folder)]
    while stack:
        cur = stack.pop()
        try:
            st = cur.stat()
        except OSError:
            continue
        if (st.st_dev, st.st_ino) in seen:
            continue
        seen.add((st.st_dev, st.st_ino))
        try:
            with os.scandir(cur) as it:
                entries = list(it)
        except OSError:
            continue
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(Path(entry.path))
                elif entry.is_file():
                    total += entry.stat().st_size
            except OSError:
                continue
    return total

def safe_mtime(folder: Path) -> datetime:
    try:
        return datetime.fromtimestamp(folder.stat().st_mtime, tz=timezone.utc)
    except OSError:
        return EPOCH

# --- scanner ---

class AssetScanner:
    def __init__(self, paths: ResolvedPaths, ignore_list: Iterable[str] = (), max_workers: int = 8):
        self.paths = paths
        self.ignore_list = [s for s in (str(n).strip() for n in ignore_list) if s]
        self._ignore_set = {normalize_name(n) for n in self.ignore_list}
        self.max_workers = max_workers
        logger.debug("Ignore list normalized: %s", sorted(self._ignore_set))

    def is_ignored(self, folder_name: str) -> bool:
        ignored = (normalize_name(folder_name) in self._ignore_set
                   or normalize_name(format_title(folder_name)) in self._ignore_set)
        if ignored:
            logger.debug("Ignored folder: %s", folder_name)
        return ignored

    def scan(self) -> Catalog:
        catalog = Catalog()
        try:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="scan-type") as pool:
                games_f = pool.submit(self.scan_type, TitleType.GAME)
                emus_f = pool.submit(self.scan_type, TitleType.EMULATOR)
                catalog.games, games_deg = games_f.result()
                catalog.emulators, emus_deg = emus_f.result()
            catalog.degraded = games_deg + emus_deg
        except Exception:
            logger.exception("Scan failed")
            return Catalog()
        logger.info("Scanned %d games, %d emulators (%d degraded)",
                    len(catalog.games), len(catalog.emulators), len(catalog.degraded))
        return catalog

    def list_folders(self, root: Path) -> List[str]:
        if not root.is_dir():
            logger.warning("Directory not found: %s", root)
            return []
        try:
            return sorted(p.name for p in root.iterdir() if p.is_dir())
        except OSError as e:
            logger.warning("Cannot list %s: %s", root, e)
            return []

    def scan_type(self, title_type: TitleType) -> Tuple[List[TitleRecord], List[Tuple[str, str]]]:
        root = self.paths.root_for(title_type.segment)
        degraded: List[Tuple[str, str]] = []
        names = []
        for name in self.list_folders(root):
            if self.is_ignored(name):
                continue
            if not is_safe_identifier(name):
                logger.warning("Skipping %s/%s: folder name is not a safe identifier", title_type.segment, name)
                degraded.append((name, "unsafe folder name"))
                continue
            names.append(name)

        records: List[TitleRecord] = []
        if names:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="scan-title") as pool:
                futures = [(n, pool.submit(self.extract_title, root / n, n, title_type)) for n in names]
                for name, fut in futures:
                    try:
                        record, reasons = fut.result()
                    except Exception as e:
                        logger.warning("Metadata extraction failed for %s: %s", name, e)
                        record = TitleRecord(id=name, title=format_title(name), description="",
                                             type=title_type, thumbnail=None, size=0)
                        reasons = [str(e)]
                    records.append(record)
                    degraded.extend((name, r) for r in reasons)

        records.sort(key=title_sort_key)
        return records, degraded

    def extract_title(self, folder: Path, folder_name: str, title_type: TitleType) -> Tuple[TitleRecord, List[str]]:
        reasons: List[str] = []
        title = format_title(folder_name)
        description = ""

        index = folder / INDEX_FILE
        if index.exists():
            try:
                html_title, description = extract_html_meta(index.read_text("utf-8", errors="replace"))
                if html_title:
                    title = html_title
            except OSError as e:
                logger.warning("Failed reading %s for %s: %s", INDEX_FILE, folder_name, e)
                reasons.append(f"unreadable {INDEX_FILE}: {e}")

        thumb = resolve_thumbnail(folder, folder_name, self.paths.screenshots_path)

        last_modified = safe_mtime(folder)
        if last_modified == EPOCH:
            reasons.append("stat failed")

        record = TitleRecord(
            id=folder_name,
            title=title,
            description=description,
            type=title_type,
            thumbnail=thumb,
            size=folder_size(folder),
            last_modified=last_modified,
        )
        return record, reasons
