"""
Process lifecycle.

Boots components in dependency order, serves until told to stop, and
tears everything down in exact reverse order:

    config -> logging -> monitor -> auth (db, policy, enforcer) -> routes -> listener

Every stage registers its cleanup on one AsyncExitStack as soon as it is
built, so a failure at any stage unwinds only what already exists.

Exit codes:
    0  stopped by SIGINT / SIGTERM / SIGQUIT
    1  startup failed, or the listener stopped on its own
"""

import asyncio
import inspect
import signal
import socket
from contextlib import AsyncExitStack, contextmanager
from enum import Enum
from typing import Awaitable, Callable, Protocol

import structlog
import uvicorn
from fastapi import FastAPI

from admingate.main import create_app

from .config import HTTPSettings, Settings, get_settings
from .container import Container, build_container
from .errors import StartupAbort
from .logging import configure_logging
from .monitor import MonitorAgent

logger = structlog.get_logger()

# Seconds allowed on top of the HTTP grace period before the listener is cancelled
FORCE_STOP_MARGIN = 5


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONFIG_LOADED = "config_loaded"
    LOGGING_READY = "logging_ready"
    MONITOR_READY = "monitor_ready"
    AUTH_READY = "auth_ready"
    ROUTES_READY = "routes_ready"
    SERVING = "serving"
    DRAINING = "draining"
    STOPPED = "stopped"


class Listener(Protocol):
    async def start(self) -> None: ...

    async def wait(self) -> None: ...

    async def stop(self) -> None: ...


ListenerFactory = Callable[[FastAPI, HTTPSettings], Listener]


# ============================================================
# HTTP LISTENER
# ============================================================

class ListenerServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the lifecycle."""

    @contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


class HTTPListener:
    """
    Network listener wrapping uvicorn.

    The socket is bound here so that a bind failure surfaces as OSError
    during startup. In-flight requests get ``shutdown_timeout`` seconds
    once stop() is called.
    """

    def __init__(self, app: FastAPI, cfg: HTTPSettings):
        self.cfg = cfg
        config = uvicorn.Config(
            app,
            host=cfg.host,
            port=cfg.port,
            lifespan="off",
            log_config=None,
            timeout_graceful_shutdown=cfg.shutdown_timeout,
            ssl_certfile=cfg.cert_file if cfg.tls_enabled else None,
            ssl_keyfile=cfg.key_file if cfg.tls_enabled else None,
        )
        self.server = ListenerServer(config)
        self._sock: socket.socket | None = None
        self._task: asyncio.Task | None = None

    @property
    def bound_port(self) -> int | None:
        """Port actually bound; differs from cfg.port when that is 0."""
        if self._sock is None:
            return None
        return self._sock.getsockname()[1]

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.cfg.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.cfg.host, self.cfg.port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        return sock

    async def start(self) -> None:
        self._sock = self._bind()
        self._task = asyncio.create_task(self.server.serve(sockets=[self._sock]))
        while not self.server.started and not self._task.done():
            await asyncio.sleep(0.05)
        if self._task.done():
            self._close_socket()
            self._task.result()
            raise OSError("listener exited during startup")
        logger.info(
            "listener_started",
            host=self.cfg.host,
            port=self.bound_port,
            tls=self.cfg.tls_enabled,
        )

    async def wait(self) -> None:
        """Block until the server stops."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        if self._task is None:
            return
        self.server.should_exit = True
        try:
            await asyncio.wait_for(
                asyncio.shield(self._task),
                timeout=self.cfg.shutdown_timeout + FORCE_STOP_MARGIN,
            )
        except asyncio.TimeoutError:
            logger.warning("listener_force_stop", timeout=self.cfg.shutdown_timeout)
            self.server.force_exit = True
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._close_socket()

    def _close_socket(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None


# ============================================================
# LIFECYCLE
# ============================================================

class Lifecycle:
    """
    Ordered startup and reverse-order teardown of the whole process.

    Usage:
        exit_code = await Lifecycle(get_settings()).run()
    """

    STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)
    IGNORED_SIGNALS = (signal.SIGHUP,)

    def __init__(
        self,
        settings: Settings | None = None,
        listener_factory: ListenerFactory = HTTPListener,
    ):
        self.settings = settings
        self.listener_factory = listener_factory
        self.state = LifecycleState.UNINITIALIZED
        self.history: list[LifecycleState] = [self.state]
        self.exit_code = 1
        self.container: Container | None = None
        self.app: FastAPI | None = None
        self.listener: Listener | None = None
        self._stack = AsyncExitStack()
        self._stop_event: asyncio.Event | None = None

    def _advance(self, state: LifecycleState) -> None:
        self.state = state
        self.history.append(state)
        logger.info("lifecycle_state", state=state.value)

    def _push_cleanup(self, name: str, fn: Callable[[], Awaitable[None] | None]) -> None:
        """Register a best-effort cleanup; errors are logged and teardown goes on."""

        async def cleanup() -> None:
            try:
                result = fn()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("cleanup_failed", component=name)
            else:
                logger.info("component_stopped", component=name)

        self._stack.push_async_callback(cleanup)

    # ------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------

    async def _load_config(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    async def _start_logging(self) -> None:
        self._push_cleanup("logging", configure_logging(self.settings.log))

    async def _start_monitor(self) -> None:
        agent = MonitorAgent(self.settings.monitor)
        agent.start()
        self._push_cleanup("monitor", agent.close)

    async def _start_auth(self) -> None:
        self.container = await build_container(self.settings)
        self._push_cleanup("auth", self.container.close)

    async def _build_routes(self) -> None:
        self.app = create_app(self.container)

    async def _start_listener(self) -> None:
        self.listener = self.listener_factory(self.app, self.settings.http)
        await self.listener.start()
        self._push_cleanup("listener", self.listener.stop)

    async def startup(self) -> None:
        """
        Run every stage in order.

        Raises:
            StartupAbort: a stage failed; everything built so far is closed
        """
        stages = [
            (self._load_config, LifecycleState.CONFIG_LOADED),
            (self._start_logging, LifecycleState.LOGGING_READY),
            (self._start_monitor, LifecycleState.MONITOR_READY),
            (self._start_auth, LifecycleState.AUTH_READY),
            (self._build_routes, LifecycleState.ROUTES_READY),
            (self._start_listener, LifecycleState.SERVING),
        ]
        for stage, state in stages:
            if self._stop_requested():
                logger.info("startup_interrupted", before=state.value)
                return
            try:
                await stage()
            except Exception as exc:
                logger.exception("startup_failed", stage=state.value, error=str(exc))
                await self.shutdown()
                raise StartupAbort(f"{state.value}: {exc}") from exc
            self._advance(state)

    async def shutdown(self) -> None:
        """Close every built component in reverse order."""
        if self.state == LifecycleState.STOPPED:
            return
        self._advance(LifecycleState.DRAINING)
        await self._stack.aclose()
        self._advance(LifecycleState.STOPPED)

    # ------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------

    def _stop_requested(self) -> bool:
        return self._stop_event is not None and self._stop_event.is_set()

    def handle_signal(self, sig: signal.Signals) -> None:
        if sig in self.IGNORED_SIGNALS:
            logger.info("signal_ignored", signal=sig.name)
            return
        logger.info("signal_received", signal=sig.name)
        self.exit_code = 0
        if self._stop_event is not None:
            self._stop_event.set()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[signal.Signals]:
        installed = []
        for sig in self.STOP_SIGNALS + self.IGNORED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.warning("signal_handler_unavailable", signal=sig.name)
                continue
            installed.append(sig)
        return installed

    # ------------------------------------------------------------
    # Run
    # ------------------------------------------------------------

    async def serve(self) -> int:
        """Wait for a stop signal or for the listener to end."""
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        listener_task = asyncio.ensure_future(self.listener.wait())
        try:
            done, _ = await asyncio.wait(
                {stop_task, listener_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (stop_task, listener_task):
                if not task.done():
                    task.cancel()

        if stop_task not in done:
            self.exit_code = 1
            exc = None if listener_task.cancelled() else listener_task.exception()
            logger.error("listener_exited", error=str(exc) if exc else None)
        return self.exit_code

    async def run(self) -> int:
        """
        Boot, serve, tear down. Returns the process exit code.

        Signal handlers are in place for the whole run, so a stop signal
        during startup ends it after the current stage and still tears
        down everything built so far.
        """
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop)
        try:
            try:
                await self.startup()
            except StartupAbort:
                return 1

            if self._stop_requested():
                return self.exit_code
            return await self.serve()
        finally:
            await self.shutdown()
            for sig in installed:
                loop.remove_signal_handler(sig)
