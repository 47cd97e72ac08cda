"""One loopback HTTP server per ContentServer, each on its own port.

The WSGI app comes from :func:`gameshelf.create_app`; the listener is a
Werkzeug threaded server running ``serve_forever`` on a background thread.
"""
from __future__ import annotations

import logging
import socket
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from werkzeug.serving import ThreadedWSGIServer, WSGIRequestHandler, select_address_family

from . import create_app
from .errors import BindError
from .paths import ResolvedPaths
from .settings import ServerConfig

logger = logging.getLogger(__name__)


class _RequestHandler(WSGIRequestHandler):
    # one request per connection, so stop() only waits on in-flight requests
    protocol_version = "HTTP/1.0"


class _DrainingServer(ThreadedWSGIServer):
    daemon_threads = False
    block_on_close = True


class ContentServer:
    def __init__(self, config: ServerConfig, paths: ResolvedPaths,
                 scope: Optional[Tuple[str, str]] = None, scanner=None):
        self.config = config
        self.paths = paths
        self.scope = scope
        self.app = create_app(config, paths, scope=scope, scanner=scanner)
        self.port: Optional[int] = None
        self._server: Optional[_DrainingServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def root_paths(self) -> List[Path]:
        roots = self.app.config["TITLE_ROOTS"]
        if self.scope is not None:
            kind, title_id = self.scope
            return [roots[kind] / title_id]
        return list(roots.values())

    @property
    def running(self) -> bool:
        return self._server is not None

    def _bind(self, port: int) -> socket.socket:
        host = self.config.host
        sock = socket.socket(select_address_family(host, port), socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(socket.SOMAXCONN)
        except OSError as e:
            sock.close()
            raise BindError(host, port, e.strerror or str(e)) from e
        return sock

    def start(self, port: int = 0) -> int:
        """Bind and serve; returns the actual port. A running server keeps its port."""
        with self._lock:
            if self._server is not None:
                return self.port
            sock = self._bind(port)
            try:
                server = _DrainingServer(self.config.host, port, self.app,
                                         handler=_RequestHandler, fd=sock.fileno())
            finally:
                sock.close()
            self.port = server.server_address[1]
            name = "serve-%s" % ("/".join(self.scope) if self.scope else "discovery")
            self._thread = threading.Thread(target=server.serve_forever, name=name, daemon=True)
            self._thread.start()
            self._server = server
            logger.info("Content server started on http://%s:%d (%s)", self.config.host, self.port, name)
            return self.port

    def stop(self) -> None:
        """Close the listener and wait for in-flight requests. No-op when stopped."""
        with self._lock:
            server, thread = self._server, self._thread
            if server is None:
                return
            try:
                server.shutdown()
                server.server_close()
                if thread is not None:
                    thread.join()
            finally:
                self._server = None
                self._thread = None
            logger.info("Content server on port %s stopped", self.port)
