"""Broker session lifecycle: connect, watch, reconnect, teardown.

This module implements the ConnectionManager class, the single owner of the
aiomqtt session. Everything else borrows the session for one publish through
``borrow_session()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import ssl
from collections.abc import AsyncIterator

import aiomqtt

from esmart_switch.correlation import ensure_correlation_id
from esmart_switch.logging_abstraction import get_logger
from esmart_switch.metrics import registry
from esmart_switch.state_tracker import DeviceStateTracker
from esmart_switch.structs import BrokerOptions, ConnectionState
from esmart_switch.transport.endpoint import BrokerEndpoint
from esmart_switch.transport.exceptions import NoActiveSessionError, TransportError
from esmart_switch.transport.retry_policy import ReconnectPolicy

logger = get_logger(__name__)

CONNECTION_LOOP_TASK_NAME = "ConnectionManager_RUN"


class ConnectionManager:
    """Owns the broker session and its Disconnected/Connecting/Connected/Failed state machine.

    Transitions:
    - start(): DISCONNECTED -> CONNECTING, then the background loop connects
    - handshake ok: CONNECTING -> CONNECTED
    - handshake failed: CONNECTING -> FAILED, wait, FAILED -> CONNECTING
    - link dropped: CONNECTED -> CONNECTING (session torn down at once), wait, retry
    - stop(): any -> DISCONNECTED

    The loop never gives up. It is a single ``asyncio.Task`` that iterates,
    so long outages do not grow the stack.

    **Thread Safety**: state and the session handle change together while
    ``_state_lock`` is held, and the tracker is notified inside the same
    critical section, so no observer sees CONNECTED without a session or a
    session without CONNECTED. ``borrow_session()`` checks state under the
    lock and releases it before network I/O.
    """

    lp: str = "conn:"

    def __init__(
        self,
        options: BrokerOptions,
        tracker: DeviceStateTracker | None = None,
        retry_policy: ReconnectPolicy | None = None,
    ) -> None:
        """Initialize connection manager.

        Args:
            options: Broker URL, client identifier and timing
            tracker: Receives every state transition (a private one is created if None)
            retry_policy: Reconnect delays (defaults to the options' reconnect interval)

        Raises:
            ValueError: the broker URL cannot be parsed

        """
        self.options: BrokerOptions = options
        self.endpoint: BrokerEndpoint = BrokerEndpoint.parse(options.url)
        self.tracker: DeviceStateTracker = tracker or DeviceStateTracker()
        self.retry_policy: ReconnectPolicy = retry_policy or ReconnectPolicy(
            base_delay_seconds=options.reconnect_interval_seconds,
            max_delay_seconds=options.reconnect_max_interval_seconds,
        )
        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self.run_task: asyncio.Task[None] | None = None
        self.connect_attempts: int = 0

        self._state_lock: asyncio.Lock = asyncio.Lock()
        self._client: aiomqtt.Client | None = None
        self._session_lost: asyncio.Event | None = None
        self._lost_reason: str = ""

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def start(self) -> None:
        """Begin connecting in the background. No-op if the loop is already running."""
        lp = f"{self.lp}start:"
        if self.run_task is not None and not self.run_task.done():
            logger.debug("%s connection loop already running", lp)
            return

        logger.info(
            "%s connecting to %s as %s",
            lp,
            self.endpoint,
            self.options.client_id,
        )
        await self._transition(ConnectionState.CONNECTING)
        self.run_task = asyncio.create_task(self._run(), name=CONNECTION_LOOP_TASK_NAME)

    async def stop(self) -> None:
        """Cancel the loop (and any pending retry), release the session, go DISCONNECTED.

        Idempotent: safe before start() and when already stopped.
        """
        lp = f"{self.lp}stop:"
        task, self.run_task = self.run_task, None
        if task is not None and not task.done():
            logger.debug("%s cancelling connection loop", lp)
            _ = task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        async with self._state_lock:
            self._client = None
            self._session_lost = None
            if self.state is not ConnectionState.DISCONNECTED:
                self._set_state(ConnectionState.DISCONNECTED)
                logger.info("%s disconnected from broker", lp)

    @contextlib.asynccontextmanager
    async def borrow_session(self, operation: str) -> AsyncIterator[aiomqtt.Client]:
        """Lend the live session for a single operation.

        Raises:
            NoActiveSessionError: not CONNECTED, or the session dropped during the operation

        """
        async with self._state_lock:
            client = self._client
            if self.state is not ConnectionState.CONNECTED or client is None:
                raise NoActiveSessionError(
                    f"'{operation}' requires a connected session",
                    state=self.state.value,
                )

        try:
            yield client
        except aiomqtt.MqttError as exc:
            logger.warning("%s session failed during %s: %s", self.lp, operation, exc)
            await self.report_transport_error(client, str(exc))
            raise NoActiveSessionError(
                f"session lost during '{operation}': {exc}",
                state=self.state.value,
            ) from exc

    async def report_transport_error(self, client: aiomqtt.Client, reason: str) -> None:
        """Tear down ``client``'s session now and let the loop reconnect.

        Ignored if ``client`` is no longer the active session.
        """
        if await self._drop_session(client, ConnectionState.CONNECTING, reason):
            registry.record_transport_error("publish_failed")

    async def _run(self) -> None:
        lp = f"{self.lp}run:"
        _ = ensure_correlation_id()
        attempt = 0
        while True:
            try:
                client = self._build_client()
                await self._open(client)
            except TransportError as exc:
                logger.warning("%s connect attempt %d failed: %s", lp, self.connect_attempts, exc.reason)
                await self._transition(ConnectionState.FAILED)
                await self._wait_before_retry(attempt)
                attempt += 1
                await self._transition(ConnectionState.CONNECTING)
                continue
            except Exception:
                logger.exception("%s unexpected error while connecting", lp)
                await self._transition(ConnectionState.FAILED)
                await self._wait_before_retry(attempt)
                attempt += 1
                await self._transition(ConnectionState.CONNECTING)
                continue

            attempt = 0
            try:
                await self._hold_session(client)
            except TransportError as exc:
                logger.warning("%s broker link lost: %s", lp, exc.reason)
                if await self._drop_session(client, ConnectionState.CONNECTING, exc.reason):
                    registry.record_transport_error("link_lost")
            except asyncio.CancelledError:
                _ = await self._drop_session(client, ConnectionState.DISCONNECTED, "stopped")
                raise
            finally:
                await self._close(client)

            await self._wait_before_retry(attempt)
            attempt += 1

    def _build_client(self) -> aiomqtt.Client:
        ep = self.endpoint
        return aiomqtt.Client(
            ep.hostname,
            port=ep.port,
            identifier=self.options.client_id,
            transport=ep.transport,
            websocket_path=ep.websocket_path,
            tls_context=ssl.create_default_context() if ep.tls else None,
            timeout=self.options.connect_timeout_seconds,
            keepalive=self.options.keepalive,
        )

    async def _open(self, client: aiomqtt.Client) -> None:
        """Run the handshake and publish the new session. Raises TransportError on failure."""
        lp = f"{self.lp}open:"
        self.connect_attempts += 1
        try:
            _ = await client.__aenter__()
        except aiomqtt.MqttError as exc:
            registry.record_connect_attempt("failure")
            raise TransportError(str(exc) or "handshake failed") from exc
        except asyncio.CancelledError:
            # cancelled mid-handshake: let aiomqtt drop the half-open socket
            await self._close(client)
            raise

        registry.record_connect_attempt("success")
        async with self._state_lock:
            self._client = client
            self._session_lost = asyncio.Event()
            self._lost_reason = ""
            self._set_state(ConnectionState.CONNECTED)
        logger.info(
            "%s connected to MQTT broker: %s (attempt %d)",
            lp,
            self.endpoint,
            self.connect_attempts,
        )

    async def _hold_session(self, client: aiomqtt.Client) -> None:
        """Block while the session is healthy; raise TransportError when it is not."""
        lost = self._session_lost
        assert lost is not None, "session_lost must be set while connected"

        watcher = asyncio.create_task(self._watch_link(client))
        waiter = asyncio.create_task(lost.wait())
        try:
            done, _ = await asyncio.wait({watcher, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (watcher, waiter):
                _ = task.cancel()
            _ = await asyncio.gather(watcher, waiter, return_exceptions=True)

        if waiter in done:
            raise TransportError(self._lost_reason or "session dropped")
        exc = watcher.exception() if not watcher.cancelled() else None
        raise TransportError(str(exc) if exc else "broker closed the link")

    async def _watch_link(self, client: aiomqtt.Client) -> None:
        # aiomqtt raises MqttError from the message iterator once the link drops
        async for message in client.messages:
            logger.debug("%s ignoring message on %s", self.lp, message.topic)

    async def _drop_session(self, client: aiomqtt.Client, next_state: ConnectionState, reason: str) -> bool:
        """Detach ``client`` as the active session. Returns False if it already was."""
        async with self._state_lock:
            if self._client is not client:
                return False
            self._client = None
            self._lost_reason = reason
            if self._session_lost is not None:
                self._session_lost.set()
            self._set_state(next_state)
        return True

    async def _close(self, client: aiomqtt.Client) -> None:
        lp = f"{self.lp}close:"
        try:
            await client.__aexit__(None, None, None)
        except aiomqtt.MqttError as exc:
            logger.debug("%s broker link already closed: %s", lp, exc)
        else:
            logger.debug("%s released broker session", lp)

    async def _wait_before_retry(self, attempt: int) -> None:
        delay = self.retry_policy.get_delay(attempt)
        logger.info("%s retrying broker connection in %.2fs", self.lp, delay)
        await asyncio.sleep(delay)

    async def _transition(self, new_state: ConnectionState) -> None:
        async with self._state_lock:
            self._set_state(new_state)

    def _set_state(self, new_state: ConnectionState) -> None:
        """Apply a transition. Caller must hold ``_state_lock``."""
        if new_state is self.state:
            return
        logger.debug("%s %s -> %s", self.lp, self.state.value, new_state.value)
        self.state = new_state
        registry.record_connection_state(new_state.value)
        self.tracker.set_connection(new_state)
