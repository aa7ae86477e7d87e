"""
Harness lifecycle: bind an ephemeral port, serve the handler table on a
background task, and shut down with the close error surfaced to the caller.

    UNINITIALIZED --start()--> LISTENING --close()--> CLOSED
"""

import asyncio
import enum
import hashlib
import logging
import os
import socket
import ssl

from aiohttp import web

from transfer_harness.constants import DEFAULT_HOST
from transfer_harness.errors import HarnessError, SetupError
from transfer_harness.handlers import build_handlers, make_app
from transfer_harness.logsink import LogSink
from transfer_harness.structs import HandlerTable
from transfer_harness.tracker import UploadTracker

logger = logging.getLogger(__name__)


class DataManager:
    """Hold the one fixed payload served by /data."""

    def __init__(self):
        self.data = b""

    def set_data(self, length: int):
        """Replace the payload with `length` random bytes."""
        self.data = os.urandom(length)

    def get_data(self) -> bytes:
        return self.data

    def get_md5(self) -> str:
        return hashlib.md5(self.data).hexdigest()

    def clear(self):
        self.data = b""


class HarnessState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LISTENING = "listening"
    CLOSED = "closed"


async def serve(
    table: HandlerTable,
    sock: socket.socket,
    ssl_context: ssl.SSLContext | None,
    failures: list,
    ready: asyncio.Event,
):
    """
    Serve the handler table on an already bound socket until cancelled.

    Args:
        table: Handler table from build_handlers()
        sock: Bound, listening socket
        ssl_context: TLS configuration, or None for plain HTTP
        failures: List receiving handler failures
        ready: Set once the server accepts connections
    """
    runner = web.AppRunner(make_app(table, failures))
    await runner.setup()
    try:
        site = web.SockSite(runner, sock, ssl_context=ssl_context)
        await site.start()
        ready.set()
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


class Harness:
    """Own the tracker, the fixed payload and the background server."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        ssl_context: ssl.SSLContext | None = None,
        data: DataManager | None = None,
        tracker: UploadTracker | None = None,
    ):
        self.host = host
        self.ssl_context = ssl_context
        self.data = data if data is not None else DataManager()
        self.tracker = tracker if tracker is not None else UploadTracker()
        self.failures = []
        self.log_sink = LogSink()
        self.state = HarnessState.UNINITIALIZED
        self.port = None
        self.table = None
        self._task = None

    @property
    def base_url(self) -> str:
        if self.port is None:
            raise HarnessError("Harness is not listening")
        scheme = "https" if self.ssl_context is not None else "http"
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{scheme}://{host}:{self.port}"

    def bind(self) -> socket.socket:
        """Bind a listening TCP socket on a port chosen by the OS."""
        try:
            sock = socket.create_server((self.host, 0))
        except OSError as exc:
            raise SetupError(f"Failed to bind {self.host}: {exc}") from exc
        sock.setblocking(False)
        return sock

    async def start(self) -> asyncio.Task:
        """
        Start serving in the background.

        Returns:
            The background serving task; close() awaits it
        """
        if self.state is not HarnessState.UNINITIALIZED:
            raise HarnessError(f"Cannot start a harness in state {self.state.value}")

        sock = self.bind()
        self.port = sock.getsockname()[1]
        self.table = build_handlers(self.tracker, self.data)

        ready = asyncio.Event()
        self._task = asyncio.create_task(
            serve(self.table, sock, self.ssl_context, self.failures, ready),
            name=f"transfer-harness-{self.port}",
        )
        waiter = asyncio.ensure_future(ready.wait())
        await asyncio.wait({self._task, waiter}, return_when=asyncio.FIRST_COMPLETED)

        if not ready.is_set():
            waiter.cancel()
            sock.close()
            if self._task.cancelled():
                raise SetupError("Server task was cancelled before it started listening")
            exc = self._task.exception()
            raise SetupError(f"Server failed to start: {exc}") from exc

        self.state = HarnessState.LISTENING
        logger.info("Listening on %s", self.base_url)
        return self._task

    async def close(self):
        """
        Stop serving and wait for the background task to finish.

        Raises:
            HarnessError: If the harness is not listening or the server failed
        """
        if self.state is not HarnessState.LISTENING:
            raise HarnessError(f"Cannot close a harness in state {self.state.value}")

        self.state = HarnessState.CLOSED
        try:
            if self._task.done():
                if self._task.cancelled():
                    raise HarnessError("Server task was cancelled before close()")
                error = self._task.exception()
                raise HarnessError(f"Server stopped before close(): {error}") from error

            self._task.cancel()
            # wait() leaves the task's outcome to us; a cancelled caller still propagates
            await asyncio.wait({self._task})
            if not self._task.cancelled():
                error = self._task.exception()
                if error is not None:
                    raise HarnessError(f"Error while closing server: {error}") from error
        finally:
            self.log_sink.close()

        logger.info("Closed harness on port %d", self.port)

    def reset(self, log_file: str | None = None):
        """
        Reset per-scenario state.

        Args:
            log_file: Redirect diagnostic logs to this file for the next scenario
        """
        self.tracker.reset()
        self.failures.clear()
        if log_file:
            self.log_sink.open(log_file)

    def assert_no_failures(self):
        """Raise the first recorded handler failure, if any."""
        if self.failures:
            raise self.failures[0]

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
