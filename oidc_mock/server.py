"""Starting and stopping the provider from a test harness.

Two handles, one for each kind of harness:

  ``await start(settings)`` runs uvicorn as a task on the caller's event
  loop and returns a RunningServer; ``await running.stop()`` shuts it down.

  ``BackgroundServer(settings)`` runs uvicorn on a daemon thread with its
  own event loop, for synchronous harnesses (plain pytest, scripts).  It
  is also a context manager.

Both return only once the listener is bound, so the relying party can
fetch the discovery document immediately.  Stopping is graceful: the
listener closes, in-flight requests run to completion, nothing is
cancelled.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI

from oidc_mock.core.config import SETTINGS, Settings
from oidc_mock.main import create_app

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.01


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to whoever embeds it."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def build_server(
    settings: Settings = SETTINGS,
    *,
    app: FastAPI | None = None,
    handle_signals: bool = False,
) -> uvicorn.Server:
    config = uvicorn.Config(
        app if app is not None else create_app(settings),
        host=settings.host,
        port=settings.port,
        # Logging is configured by oidc_mock.core.logging
        log_config=None,
        access_log=False,
        lifespan="off",
    )
    return uvicorn.Server(config) if handle_signals else _Server(config)


def bound_port(server: uvicorn.Server) -> int:
    """The port actually bound; differs from the configured one when that is 0."""
    for listener in server.servers:
        for sock in listener.sockets:
            return sock.getsockname()[1]
    return server.config.port


class RunningServer:
    def __init__(self, server: uvicorn.Server, task: asyncio.Task) -> None:
        self._server = server
        self._task = task

    @property
    def port(self) -> int:
        return bound_port(self._server)

    @property
    def base_url(self) -> str:
        return f"http://{self._server.config.host}:{self.port}"

    async def stop(self) -> None:
        if self._task.done():
            return
        logger.info("Mock OpenID Connect server: stopping")
        self._server.should_exit = True
        await self._task


async def _serve(server: uvicorn.Server) -> None:
    # uvicorn calls sys.exit(1) when it cannot bind
    try:
        await server.serve()
    except SystemExit as exc:
        raise RuntimeError(
            f"Mock OpenID Connect server failed to bind "
            f"{server.config.host}:{server.config.port}"
        ) from exc


async def start(
    settings: Settings = SETTINGS, *, app: FastAPI | None = None
) -> RunningServer:
    server = build_server(settings, app=app)
    logger.info("Mock OpenID Connect server: starting on %s:%d", settings.host, settings.port)
    task = asyncio.create_task(_serve(server), name="oidc-mock")
    while not server.started:
        if task.done():
            # Re-raises the bind failure, if that is what stopped it
            task.result()
            raise RuntimeError("Mock OpenID Connect server exited during startup")
        await asyncio.sleep(_POLL_INTERVAL)
    return RunningServer(server, task)


async def stop(running: RunningServer | None) -> None:
    if running is not None:
        await running.stop()


class BackgroundServer:
    def __init__(self, settings: Settings = SETTINGS, *, app: FastAPI | None = None) -> None:
        self._settings = settings
        self._server = build_server(settings, app=app)
        self._thread = threading.Thread(
            target=self._server.run, name="oidc-mock", daemon=True
        )

    @property
    def port(self) -> int:
        return bound_port(self._server)

    @property
    def base_url(self) -> str:
        return f"http://{self._settings.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self, timeout: float = 10.0) -> BackgroundServer:
        logger.info(
            "Mock OpenID Connect server: starting on %s:%d",
            self._settings.host,
            self._settings.port,
        )
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive():
                # The thread swallows uvicorn's sys.exit(1) on a bind failure
                raise RuntimeError(
                    f"Mock OpenID Connect server failed to bind "
                    f"{self._settings.host}:{self._settings.port}"
                )
            if time.monotonic() > deadline:
                self.stop()
                raise TimeoutError(
                    f"Mock OpenID Connect server did not start within {timeout}s"
                )
            time.sleep(_POLL_INTERVAL)
        return self

    def stop(self, timeout: float | None = 10.0) -> None:
        if not self._thread.is_alive():
            return
        logger.info("Mock OpenID Connect server: stopping")
        self._server.should_exit = True
        self._thread.join(timeout)

    def __enter__(self) -> BackgroundServer:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def serve_forever(settings: Settings = SETTINGS) -> None:
    """Run in the foreground until SIGINT/SIGTERM."""
    server = build_server(settings, handle_signals=True)
    logger.info("Mock OpenID Connect server: starting on %s:%d", settings.host, settings.port)
    server.run()
    logger.info("Mock OpenID Connect server: stopped")
