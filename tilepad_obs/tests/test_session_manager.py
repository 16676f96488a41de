import asyncio

import pytest

from tilepad_obs.config import PluginSettings
from tilepad_obs.models import Auth, ClientStateMessage
from tilepad_obs.network import (
    ObsAuthError,
    ObsConnectError,
    ObsConnectionClosed,
    ObsRequestError,
    ObsSendError,
)
from tilepad_obs.network.protocol import CloseCode
from tilepad_obs.session import ClientState, ObsSession, StateTracker

AUTH = Auth(host="127.0.0.1", port=4455, password="")


class _FakeClient:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class _ScriptedConnector:
    """Plays back outcomes in order; the last outcome repeats forever."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = []

    async def __call__(self, auth):
        self.calls.append(auth)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _SinkInspector:
    def __init__(self, session=None) -> None:
        self.messages = []
        self.session = session
        self.violations = []

    def send(self, message) -> None:
        self.messages.append(message)
        if self.session is not None:
            connected = self.session.get_state() is ClientState.CONNECTED
            if self.session.is_connected != connected:
                self.violations.append(self.session.get_state())

    @property
    def states(self):
        return [message.state for message in self.messages if isinstance(message, ClientStateMessage)]


class _BrokenInspector:
    def send(self, message) -> None:
        raise RuntimeError("inspector window went away")


def _settings(**overrides) -> PluginSettings:
    values = {"retry_interval_seconds": 0.01, "connect_timeout_seconds": 0.5}
    values.update(overrides)
    return PluginSettings(**values)


async def _wait_for(predicate, *, timeout: float = 1.0, interval: float = 0.005) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


def _retry_tasks():
    return [task for task in asyncio.all_tasks() if task.get_name() == "obs-retry" and not task.done()]


@pytest.mark.asyncio
async def test_successful_connect_publishes_connecting_then_connected():
    client = _FakeClient()
    connector = _ScriptedConnector(client)
    session = ObsSession(settings=_settings(), connector=connector)
    inspector = _SinkInspector(session)
    session.set_inspector(inspector)

    assert session.get_state() is ClientState.INITIAL

    await session.configure(AUTH)

    assert session.get_state() is ClientState.CONNECTED
    assert inspector.states == ["CONNECTING", "CONNECTED"]
    assert inspector.messages[-1].model_dump() == {"type": "CLIENT_STATE", "state": "CONNECTED"}
    assert session.is_connected
    assert session.current_auth == AUTH
    assert connector.calls == [AUTH]
    assert not inspector.violations
    await session.stop()


@pytest.mark.asyncio
async def test_configure_without_credentials_goes_not_connected():
    connector = _ScriptedConnector(_FakeClient())
    session = ObsSession(settings=_settings(), connector=connector)
    inspector = _SinkInspector()
    session.set_inspector(inspector)

    await session.configure(None)

    assert session.get_state() is ClientState.NOT_CONNECTED
    assert inspector.states == ["NOT_CONNECTED"]
    assert connector.calls == []


@pytest.mark.asyncio
async def test_removing_credentials_closes_live_client():
    client = _FakeClient()
    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(client))
    await session.configure(AUTH)

    await session.configure(None)

    assert client.closed
    assert not session.is_connected
    assert session.current_auth is None
    assert session.get_state() is ClientState.NOT_CONNECTED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        ObsAuthError("bad password"),
        ObsConnectionClosed(CloseCode.AUTHENTICATION_FAILED, "Authentication failed."),
    ],
)
async def test_auth_rejection_is_terminal(failure):
    connector = _ScriptedConnector(failure)
    session = ObsSession(settings=_settings(), connector=connector)
    inspector = _SinkInspector(session)
    session.set_inspector(inspector)

    await session.configure(AUTH)
    await asyncio.sleep(0.05)

    assert session.get_state() is ClientState.INVALID_AUTH
    assert inspector.states == ["CONNECTING", "INVALID_AUTH"]
    assert not session.retry_active()
    assert not _retry_tasks()
    assert len(connector.calls) == 1

    called = []

    async def _work(client):
        called.append(client)
        return "ran"

    assert await session.execute(_work) is None
    assert called == []


@pytest.mark.asyncio
async def test_transient_failure_reports_error_then_retries_until_connected():
    client = _FakeClient()
    connector = _ScriptedConnector(
        ObsConnectError("connection refused"),
        ObsConnectError("connection refused"),
        client,
    )
    session = ObsSession(settings=_settings(), connector=connector)
    inspector = _SinkInspector(session)
    session.set_inspector(inspector)

    await session.configure(AUTH)

    assert session.get_state() is ClientState.CONNECT_ERROR
    assert session.retry_active()

    assert await _wait_for(lambda: session.get_state() is ClientState.CONNECTED)
    assert inspector.states == [
        "CONNECTING",
        "CONNECT_ERROR",
        "RETRY_CONNECTING",
        "RETRY_CONNECTING",
        "CONNECTED",
    ]
    assert await _wait_for(lambda: not session.retry_active())
    assert len(connector.calls) == 3
    assert not inspector.violations
    await session.stop()


@pytest.mark.asyncio
async def test_retry_stops_when_credentials_are_rejected():
    connector = _ScriptedConnector(
        ObsConnectError("timed out"),
        ObsConnectionClosed(CloseCode.AUTHENTICATION_FAILED, ""),
    )
    session = ObsSession(settings=_settings(), connector=connector)

    await session.configure(AUTH)

    assert await _wait_for(lambda: session.get_state() is ClientState.INVALID_AUTH)
    assert await _wait_for(lambda: not session.retry_active())
    calls = len(connector.calls)
    await asyncio.sleep(0.05)
    assert len(connector.calls) == calls


@pytest.mark.asyncio
async def test_configure_twice_while_connecting_makes_one_attempt():
    gate = asyncio.Event()
    calls = []

    async def _connector(auth):
        calls.append(auth)
        await gate.wait()
        return _FakeClient()

    session = ObsSession(settings=_settings(), connector=_connector)
    first = asyncio.create_task(session.configure(AUTH))
    assert await _wait_for(lambda: session.get_state() is ClientState.CONNECTING)

    await session.configure(AUTH)
    await session.request_reconnect(AUTH)

    gate.set()
    await first
    assert len(calls) == 1
    assert session.connect_attempts == 1
    assert session.get_state() is ClientState.CONNECTED
    await session.stop()


@pytest.mark.asyncio
async def test_only_one_retry_supervisor_runs():
    connector = _ScriptedConnector(ObsConnectError("unreachable"))
    session = ObsSession(settings=_settings(), connector=connector)

    await session.configure(AUTH)
    for _ in range(5):
        session.queue_background_retry(AUTH)

    assert len(_retry_tasks()) == 1
    assert await _wait_for(lambda: len(connector.calls) >= 4)
    assert len(_retry_tasks()) == 1
    assert session.get_state() is ClientState.RETRY_CONNECTING

    await session.stop()
    assert not _retry_tasks()
    assert session.get_state() is ClientState.NOT_CONNECTED


@pytest.mark.asyncio
async def test_explicit_reconnect_cancels_running_retry():
    connector = _ScriptedConnector(ObsConnectError("unreachable"))
    session = ObsSession(settings=_settings(retry_interval_seconds=30), connector=connector)

    await session.configure(AUTH)
    assert await _wait_for(lambda: len(connector.calls) >= 2)
    assert session.retry_active()

    client = _FakeClient()
    connector.outcomes = [client]
    await session.request_reconnect(AUTH)

    assert session.get_state() is ClientState.CONNECTED
    assert not session.retry_active()
    assert not _retry_tasks()
    await session.stop()


@pytest.mark.asyncio
async def test_transport_loss_during_command_reconnects():
    first = _FakeClient()
    second = _FakeClient()
    connector = _ScriptedConnector(first, ObsConnectError("still down"), second)
    session = ObsSession(settings=_settings(), connector=connector)
    inspector = _SinkInspector(session)
    session.set_inspector(inspector)
    await session.configure(AUTH)

    async def _send_fails(client):
        raise ObsSendError("socket is gone")

    assert await session.execute(_send_fails) is None
    assert session.get_state() in (ClientState.NOT_CONNECTED, ClientState.RETRY_CONNECTING)
    assert first.closed

    assert await _wait_for(lambda: session.get_state() is ClientState.CONNECTED)
    assert inspector.states[2:] == ["NOT_CONNECTED", "RETRY_CONNECTING", "RETRY_CONNECTING", "CONNECTED"]
    assert connector.calls == [AUTH, AUTH, AUTH]

    async def _identity(client):
        return client

    assert await session.execute(_identity) is second
    assert not inspector.violations
    await session.stop()


@pytest.mark.asyncio
async def test_command_failure_is_raised_and_connection_kept():
    client = _FakeClient()
    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(client))
    await session.configure(AUTH)

    async def _rejected(client):
        raise ObsRequestError("StartRecord", 500, "Output already active")

    with pytest.raises(ObsRequestError):
        await session.execute(_rejected)

    assert session.get_state() is ClientState.CONNECTED
    assert session.is_connected
    assert not client.closed
    assert not session.retry_active()
    await session.stop()


@pytest.mark.asyncio
async def test_auth_rejection_during_command_clears_handle_without_retry():
    client = _FakeClient()
    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(client))
    await session.configure(AUTH)

    async def _kicked(client):
        raise ObsConnectionClosed(CloseCode.AUTHENTICATION_FAILED, "")

    assert await session.execute(_kicked) is None
    assert session.get_state() is ClientState.INVALID_AUTH
    assert not session.is_connected
    assert client.closed
    assert not session.retry_active()


@pytest.mark.asyncio
async def test_commands_do_not_interleave():
    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(_FakeClient()))
    await session.configure(AUTH)
    events = []

    def _slow(name):
        async def _work(client):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

        return _work

    await asyncio.gather(session.execute(_slow("a")), session.execute(_slow("b")))
    assert events == ["a-start", "a-end", "b-start", "b-end"]
    await session.stop()


@pytest.mark.asyncio
async def test_successful_connect_runs_on_connected_hook():
    persisted = []

    async def _persist(auth):
        persisted.append(auth)

    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(_FakeClient()), on_connected=_persist)
    await session.request_reconnect(AUTH)

    assert persisted == [AUTH]
    await session.stop()


@pytest.mark.asyncio
async def test_retry_success_persists_credentials():
    persisted = []

    async def _persist(auth):
        persisted.append(auth)

    connector = _ScriptedConnector(ObsConnectError("down"), _FakeClient())
    session = ObsSession(settings=_settings(), connector=connector, on_connected=_persist)

    await session.configure(AUTH)
    assert persisted == []

    assert await _wait_for(lambda: persisted == [AUTH])
    assert session.get_state() is ClientState.CONNECTED
    await session.stop()


@pytest.mark.asyncio
async def test_connection_lost_while_persisting_retry_success_starts_new_retry():
    release = asyncio.Event()
    persisted = []

    async def _slow_persist(auth):
        persisted.append(auth)
        await release.wait()

    first = _FakeClient()
    second = _FakeClient()
    connector = _ScriptedConnector(ObsConnectError("down"), first, second)
    session = ObsSession(settings=_settings(), connector=connector, on_connected=_slow_persist)

    await session.configure(AUTH)
    assert await _wait_for(lambda: session.get_state() is ClientState.CONNECTED and bool(persisted))
    assert not session.retry_active()

    async def _send_fails(client):
        raise ObsSendError("socket is gone")

    assert await session.execute(_send_fails) is None
    assert session.retry_active()

    release.set()
    assert await _wait_for(lambda: session.get_state() is ClientState.CONNECTED)

    async def _identity(client):
        return client

    assert await session.execute(_identity) is second
    assert len(connector.calls) == 3
    await session.stop()


@pytest.mark.asyncio
async def test_retry_success_persists_while_foreground_configure_waits():
    gate = asyncio.Event()
    calls = []
    persisted = []

    async def _connector(auth):
        calls.append(auth)
        if len(calls) == 1:
            raise ObsConnectError("down")
        await gate.wait()
        return _FakeClient()

    async def _persist(auth):
        persisted.append(auth)

    session = ObsSession(settings=_settings(), connector=_connector, on_connected=_persist)
    await session.configure(AUTH)
    assert await _wait_for(lambda: len(calls) == 2)

    foreground = asyncio.create_task(session.configure(AUTH))
    await asyncio.sleep(0.01)
    assert not foreground.done()

    gate.set()
    await foreground

    assert session.get_state() is ClientState.CONNECTED
    assert await _wait_for(lambda: persisted == [AUTH])
    assert len(calls) == 2
    await session.stop()


@pytest.mark.asyncio
async def test_broken_inspector_does_not_affect_state():
    session = ObsSession(settings=_settings(), connector=_ScriptedConnector(_FakeClient()))
    session.set_inspector(_BrokenInspector())

    await session.configure(AUTH)

    assert session.get_state() is ClientState.CONNECTED
    await session.stop()


def test_state_tracker_rejects_reentering_initial():
    tracker = StateTracker()
    tracker.transition(ClientState.CONNECTING)
    tracker.transition(ClientState.CONNECTED)
    assert tracker.previous is ClientState.CONNECTING

    with pytest.raises(ValueError):
        tracker.transition(ClientState.INITIAL)
    with pytest.raises(ValueError):
        tracker.transition(ClientState.RETRY_CONNECTING)
