"""Session manager owning the single OBS connection.

This layer is responsible for:
- Connecting with the configured credentials (and remembering them)
- Serialising every command against the live client behind one lock
- Classifying failures (auth rejection vs. transient loss)
- Driving the fixed-interval background retry loop
- Publishing every lifecycle transition to the inspector

The client handle is present exactly while the state is CONNECTED; both are
swapped together while the lock is held.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Set, TypeVar

from tilepad_obs.config import PluginSettings
from tilepad_obs.models import Auth, ClientStateMessage
from tilepad_obs.network import FailureKind, ObsClient, TransportFactory, classify_failure
from tilepad_obs.session.state import ClientState, StateTracker

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Connector = Callable[[Auth], Awaitable[ObsClient]]


class StateObserver(Protocol):
    """Anything that can receive lifecycle notifications (the inspector)."""

    def send(self, message: Any) -> None:
        ...


def make_connector(settings: PluginSettings, transport_factory: TransportFactory) -> Connector:
    """Build a connector that opens an ``ObsClient`` bounded by the connect timeout."""

    async def _connect(auth: Auth) -> ObsClient:
        return await ObsClient.connect(
            auth.host,
            auth.port,
            auth.effective_password(),
            transport_factory=transport_factory,
            timeout=float(settings.connect_timeout_seconds),
            request_timeout=float(settings.request_timeout_seconds),
        )

    return _connect


@dataclass
class ObsSession:
    """Owns the OBS client, its lifecycle state and the reconnect loop."""

    settings: PluginSettings
    connector: Connector
    on_connected: Optional[Callable[[Auth], Awaitable[None]]] = None
    tracker: StateTracker = field(default_factory=StateTracker)

    _client: Optional[ObsClient] = field(default=None, init=False, repr=False)
    _auth: Optional[Auth] = field(default=None, init=False, repr=False)
    _inspector: Optional[StateObserver] = field(default=None, init=False, repr=False)
    _retry_task: Optional[asyncio.Task[None]] = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _connect_attempts: int = field(default=0, init=False, repr=False)
    _hook_tasks: Set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    # State + observer

    def get_state(self) -> ClientState:
        return self.tracker.state

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def current_auth(self) -> Optional[Auth]:
        return self._auth

    @property
    def connect_attempts(self) -> int:
        return self._connect_attempts

    def retry_active(self) -> bool:
        task = self._retry_task
        return task is not None and not task.done()

    def set_inspector(self, inspector: Optional[StateObserver]) -> None:
        self._inspector = inspector

    def _set_state(self, state: ClientState) -> None:
        previous = self.tracker.state
        self.tracker.transition(state)
        LOGGER.debug("OBS client state %s -> %s", previous.value, state.value)
        self._publish(state)

    def _publish(self, state: ClientState) -> None:
        inspector = self._inspector
        if inspector is None:
            return
        try:
            inspector.send(ClientStateMessage(state=state.value))
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress inspector state notification error", exc_info=True)

    # Public entry points

    async def configure(self, auth: Optional[Auth]) -> None:
        """Apply plugin properties: connect with ``auth`` or drop to NOT_CONNECTED."""

        if auth is None:
            await self.disconnect()
            return
        await self._connect_foreground(auth)

    async def request_reconnect(self, auth: Auth) -> None:
        """Explicit connect request from the inspector."""

        LOGGER.info("Reconnect requested for OBS at %s:%s", auth.host, auth.port)
        await self._connect_foreground(auth)

    async def execute(self, work: Callable[[ObsClient], Awaitable[T]]) -> Optional[T]:
        """Run ``work`` against the live client while holding the session lock.

        Returns ``None`` without calling ``work`` when there is no client. Failures
        that break the connection are absorbed into the lifecycle state (and
        ``None`` is returned); any other failure is logged and re-raised with the
        connection left intact.
        """

        async with self._lock:
            client = self._client
            if client is None:
                return None
            try:
                return await work(client)
            except Exception as exc:  # noqa: BLE001
                kind = classify_failure(exc)
                if kind is FailureKind.COMMAND_FAILED:
                    LOGGER.error("OBS command failed: %s", exc)
                    raise

                self._client = None
                if kind is FailureKind.AUTH_REJECTED:
                    LOGGER.error("OBS rejected the session credentials: %s", exc)
                    self._set_state(ClientState.INVALID_AUTH)
                else:
                    LOGGER.warning("Lost connection to OBS: %s", exc)
                    self._set_state(ClientState.NOT_CONNECTED)
                await self._close_client(client)

                if kind is FailureKind.TRANSIENT and self._auth is not None:
                    self.queue_background_retry(self._auth)
                return None

    async def disconnect(self) -> None:
        """Forget the credentials, stop retrying and close the client."""

        async with self._lock:
            await self._cancel_retry()
            client = self._client
            self._client = None
            self._auth = None
            self._set_state(ClientState.NOT_CONNECTED)
            await self._close_client(client)

    async def stop(self) -> None:
        """Shut the session down (process exit)."""

        LOGGER.info("Stopping OBS session")
        hooks = list(self._hook_tasks)
        for task in hooks:
            task.cancel()
        if hooks:
            await asyncio.gather(*hooks, return_exceptions=True)
        await self.disconnect()

    # Connect + retry

    def queue_background_retry(self, auth: Auth) -> None:
        """Start the retry loop unless one is already registered."""

        if self.retry_active():
            LOGGER.debug("Background retry already running")
            return
        self._retry_task = asyncio.create_task(self._retry_loop(auth), name="obs-retry")

    async def _connect_foreground(self, auth: Auth) -> None:
        state = self.tracker.state
        if state in (ClientState.CONNECTING, ClientState.CONNECTED):
            LOGGER.debug("Ignoring connect request while %s", state.value)
            return
        failure = await self._try_connect(auth, retry=False)
        if failure is FailureKind.TRANSIENT:
            self.queue_background_retry(auth)

    async def _try_connect(self, auth: Auth, *, retry: bool) -> Optional[FailureKind]:
        """Attempt one connect; returns ``None`` on success, else the failure kind."""

        async with self._lock:
            if retry:
                if self.tracker.state is ClientState.CONNECTED:
                    return None
                self._set_state(ClientState.RETRY_CONNECTING)
            else:
                # any retry still queued behind the lock must not start another attempt
                await self._cancel_retry()
                if self.tracker.state is ClientState.CONNECTED and self._auth == auth:
                    return None
                previous = self._client
                self._client = None
                self._set_state(ClientState.CONNECTING)
                await self._close_client(previous)

            self._auth = auth
            self._connect_attempts += 1
            try:
                client = await self.connector(auth)
            except Exception as exc:  # noqa: BLE001
                if classify_failure(exc) is FailureKind.AUTH_REJECTED:
                    LOGGER.error("OBS at %s:%s rejected the password", auth.host, auth.port)
                    if retry:
                        self._release_retry_slot()
                    self._set_state(ClientState.INVALID_AUTH)
                    return FailureKind.AUTH_REJECTED
                LOGGER.warning("Failed to connect to OBS at %s:%s: %s", auth.host, auth.port, exc)
                if not retry:
                    self._set_state(ClientState.CONNECT_ERROR)
                return FailureKind.TRANSIENT

            # a loss observed after this point must be able to queue a fresh retry
            if retry:
                self._release_retry_slot()
            self._client = client
            self._set_state(ClientState.CONNECTED)

        LOGGER.info("Connected to OBS at %s:%s", auth.host, auth.port)
        hook = self._spawn_on_connected(auth)
        if hook is not None and not retry:
            await hook
        return None

    async def _retry_loop(self, auth: Auth) -> None:
        interval = float(self.settings.retry_interval_seconds)
        attempt = 0
        try:
            while True:
                attempt += 1
                failure = await self._try_connect(auth, retry=True)
                if failure is None:
                    LOGGER.info("Background retry finished after %s attempt(s)", attempt)
                    return
                if failure is FailureKind.AUTH_REJECTED:
                    LOGGER.warning("Stopping background retry: credentials were rejected")
                    return
                LOGGER.info("Retrying OBS connection in %.1fs (attempt %s)", interval, attempt)
                await asyncio.sleep(interval)
        finally:
            self._release_retry_slot()

    def _release_retry_slot(self) -> None:
        if self._retry_task is asyncio.current_task():
            self._retry_task = None

    async def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        if task is None or task.done():
            return
        LOGGER.debug("Cancelling background retry")
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _spawn_on_connected(self, auth: Auth) -> Optional[asyncio.Task[None]]:
        """Run the connected hook in its own task so retry/cancel never interrupts it."""

        if self.on_connected is None:
            return None
        task = asyncio.create_task(self._run_on_connected(auth), name="obs-on-connected")
        self._hook_tasks.add(task)
        task.add_done_callback(self._hook_tasks.discard)
        return task

    async def _run_on_connected(self, auth: Auth) -> None:
        if self.on_connected is None:
            return
        try:
            await self.on_connected(auth)
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress on_connected callback error", exc_info=True)

    @staticmethod
    async def _close_client(client: Optional[ObsClient]) -> None:
        if client is None:
            return
        try:
            await client.close()
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress OBS client close error", exc_info=True)
