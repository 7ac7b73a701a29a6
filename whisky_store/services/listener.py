"""HTTP listener: binds the socket, then serves the app with uvicorn."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Optional

import uvicorn

logger = logging.getLogger(__name__)


class ListenerError(RuntimeError):
    """Raised when the HTTP server fails to come up."""


class UvicornListener:
    """Two-phase listener: ``bind()`` claims the port, ``start()`` accepts traffic.

    Until ``start()`` completes nothing accepts connections on the socket, so
    requests cannot reach the app before the service is ready.
    """

    def __init__(
        self,
        app,
        host: str = "0.0.0.0",
        port: int = 8080,
        *,
        log_level: str = "info",
        startup_timeout: float = 10.0,
        backlog: int = 2048,
    ) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.log_level = log_level
        self.startup_timeout = startup_timeout
        self.backlog = backlog
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def bound_port(self) -> Optional[int]:
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    async def bind(self) -> None:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        self._socket = sock
        logger.info("Bound HTTP listener on %s:%s", self.host, self.bound_port)

    async def start(self) -> None:
        if self._socket is None:
            raise ListenerError("listener must be bound before it can start")
        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            log_level=self.log_level.lower(),
        )
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._server.serve(sockets=[self._socket]))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        while not self._server.started:
            if self._task.done():
                cause = None if self._task.cancelled() else self._task.exception()
                raise ListenerError("HTTP server stopped during startup") from cause
            if loop.time() > deadline:
                raise ListenerError(f"HTTP server did not start within {self.startup_timeout}s")
            await asyncio.sleep(0.01)
        logger.info("Serving HTTP on %s:%s", self.host, self.bound_port)

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def close(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        task, self._task, self._server = self._task, None, None
        try:
            if task is not None:
                await task
        except Exception:
            logger.warning("HTTP server exited with an error", exc_info=True)
        finally:
            if self._socket is not None:
                self._socket.close()
                self._socket = None
