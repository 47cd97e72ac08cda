from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import InvalidIdentifier, TitleNotFound
from .paths import ResolvedPaths
from .server import ContentServer
from .settings import ServerConfig
from .utils import require_safe_identifier

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


@dataclass(frozen=True)
class ServerInstance:
    key: Key
    port: int
    root_paths: Tuple[Path, ...]
    server: ContentServer = field(repr=False, compare=False)
    created_at: float = field(default_factory=time.monotonic)


class InstanceRegistry:
    """Owns every per-title ContentServer plus the shared discovery server.

    Calls for the same (type, id) key are serialized by a per-key lock; the
    map itself is guarded by ``_guard``. Different keys never wait on each other
    except for the brief map updates.
    """

    def __init__(self, config: ServerConfig, paths: ResolvedPaths, scanner=None):
        self.config = config
        self.paths = paths
        self.scanner = scanner
        self.discovery: Optional[ContentServer] = None
        self._instances: Dict[Key, ServerInstance] = {}
        self._key_locks: Dict[Key, threading.Lock] = {}
        self._guard = threading.Lock()

    # ── per-title instances ──────────────────────────────────────────

    def _key(self, title_type: str, title_id: str) -> Key:
        require_safe_identifier("title type", title_type)
        if title_type not in self.config.title_types:
            raise InvalidIdentifier("title type", title_type)
        require_safe_identifier("title id", title_id)
        return title_type, title_id

    def _lock_for(self, key: Key) -> threading.Lock:
        with self._guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def ensure_started(self, title_type: str, title_id: str) -> int:
        key = self._key(title_type, title_id)
        # unknown ids never get an entry in _key_locks
        if not (self.paths.root_for(title_type) / title_id).is_dir():
            raise TitleNotFound(title_type, title_id)
        with self._lock_for(key):
            with self._guard:
                inst = self._instances.get(key)
            if inst is not None:
                return inst.port

            server = ContentServer(self.config, self.paths, scope=key)
            port = server.start(0)
            inst = ServerInstance(key=key, port=port, root_paths=tuple(server.root_paths), server=server)
            with self._guard:
                self._instances[key] = inst
            logger.info("Started instance %s/%s on port %d", title_type, title_id, port)
            return port

    def stop(self, title_type: str, title_id: str) -> bool:
        key = (title_type, title_id)
        with self._guard:
            # a key without a lock has never been started
            lock = self._key_locks.get(key)
        if lock is None:
            return False
        with lock:
            with self._guard:
                inst = self._instances.get(key)
            if inst is None:
                return False
            try:
                inst.server.stop()
            finally:
                with self._guard:
                    self._instances.pop(key, None)
            logger.info("Stopped instance %s/%s (port %d)", title_type, title_id, inst.port)
            return True

    def stop_all(self) -> None:
        with self._guard:
            keys = list(self._instances)
        if not keys:
            return
        failures: List[Tuple[Key, BaseException]] = []
        with ThreadPoolExecutor(max_workers=min(len(keys), 16), thread_name_prefix="stop") as pool:
            futures = [(k, pool.submit(self.stop, *k)) for k in keys]
            for k, fut in futures:
                try:
                    fut.result()
                except Exception as e:
                    failures.append((k, e))
        for (title_type, title_id), e in failures:
            logger.error("Failed to stop instance %s/%s: %s", title_type, title_id, e)

    def port_for(self, title_type: str, title_id: str) -> Optional[int]:
        with self._guard:
            inst = self._instances.get((title_type, title_id))
        return inst.port if inst else None

    def instances(self) -> List[ServerInstance]:
        with self._guard:
            return list(self._instances.values())

    # ── discovery server ─────────────────────────────────────────────

    def start_discovery(self, port: Optional[int] = None) -> int:
        with self._guard:
            if self.discovery is None:
                self.discovery = ContentServer(self.config, self.paths, scanner=self.scanner)
            server = self.discovery
        return server.start(self.config.discovery_port if port is None else port)

    def stop_discovery(self) -> None:
        with self._guard:
            server, self.discovery = self.discovery, None
        if server is not None:
            server.stop()

    def shutdown(self) -> None:
        self.stop_all()
        self.stop_discovery()
