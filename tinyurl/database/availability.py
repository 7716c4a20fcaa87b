"""Primary-store availability tracking and per-request store selection."""

import asyncio
import logging
from typing import Optional, List, Callable, Awaitable, TypeVar

from .base import RecordStore
from ..exceptions import StoreUnavailable

T = TypeVar("T")

CONNECTED = "connected"
DISCONNECTED = "disconnected"
RECONNECTED = "reconnected"


class AvailabilityMonitor:
    """Cached view of whether the primary store is reachable.

    Request handlers only ever read the flag. It changes through the
    explicit ``mark_*`` callbacks, which the connection manager and the
    primary store call on connection events.
    """

    def __init__(self, initially_available: bool = False, logger: Optional[logging.Logger] = None):
        self._available = initially_available
        self._ever_connected = initially_available
        self._listeners: List[Callable[[str], None]] = []
        self.last_reason: Optional[str] = None
        self.logger = logger or logging.getLogger(__name__)

    def is_primary_available(self) -> bool:
        """Cheap, non-blocking read of the cached connection state."""
        return self._available

    def subscribe(self, listener: Callable[[str], None]) -> None:
        """Register a callback receiving ``connected``/``disconnected``/``reconnected``."""
        self._listeners.append(listener)

    def _emit(self, event: str) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                self.logger.exception(f"Availability listener failed on {event}")

    def mark_connected(self) -> None:
        if self._available:
            return
        event = RECONNECTED if self._ever_connected else CONNECTED
        self._available = True
        self._ever_connected = True
        self.last_reason = None
        self.logger.info(f"Primary store {event}")
        self._emit(event)

    def mark_reconnected(self) -> None:
        self._ever_connected = True
        self.mark_connected()

    def mark_disconnected(self, reason: str = "") -> None:
        self.last_reason = reason or None
        if not self._available:
            return
        self._available = False
        self.logger.warning(f"Primary store disconnected{': ' + reason if reason else ''}")
        self._emit(DISCONNECTED)


class PrimaryConnectionManager:
    """Connects the primary store and keeps the monitor in sync.

    Connection attempts back off linearly (``retry_delay * attempt``) up to
    ``max_retries``. After start-up a heartbeat health-checks the store and
    reports disconnected/reconnected transitions; it keeps probing after a
    failed start, so the primary can come back at any time.
    """

    def __init__(
        self,
        store: RecordStore,
        monitor: AvailabilityMonitor,
        max_retries: int = 5,
        retry_delay: float = 2.0,
        heartbeat_seconds: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.monitor = monitor
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.heartbeat_seconds = heartbeat_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.connection_attempts = 0
        self._heartbeat_task: Optional[asyncio.Task] = None

    async def connect(self) -> bool:
        """Try to connect, retrying with linear backoff.

        Returns:
            True once connected, False after the retry ceiling
        """
        self.connection_attempts = 0
        while True:
            try:
                self.logger.info("Connecting to primary store...")
                await self.store.connect()
                self.connection_attempts = 0
                self.monitor.mark_connected()
                return True
            except StoreUnavailable as e:
                self.monitor.mark_disconnected(str(e))
                if self.connection_attempts >= self.max_retries:
                    self.logger.error(
                        f"Primary store connection failed after {self.max_retries} retries, "
                        "continuing on fallback storage"
                    )
                    return False

                self.connection_attempts += 1
                delay = self.retry_delay * self.connection_attempts
                self.logger.info(
                    f"Retrying primary store connection "
                    f"({self.connection_attempts}/{self.max_retries}) in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

    async def check_once(self) -> bool:
        """Health-check the store and report the result to the monitor."""
        healthy = await self.store.health_check()
        if healthy:
            self.monitor.mark_connected()
        else:
            self.monitor.mark_disconnected("health check failed")
        return healthy

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            await self.check_once()

    async def start(self) -> bool:
        """Connect, then start the heartbeat regardless of the outcome."""
        try:
            return await self.connect()
        finally:
            if self.heartbeat_seconds > 0 and self._heartbeat_task is None:
                self._heartbeat_task = asyncio.create_task(self._heartbeat())

    async def stop(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None
        await self.store.close()


class StoreSelector:
    """Chooses the store serving a request and fails over on outage.

    The primary store is used while the monitor reports it available. If
    it raises ``StoreUnavailable`` mid-operation, the monitor is told and
    the operation runs once more against the fallback store. Only a
    failing fallback store surfaces ``StoreUnavailable`` to the caller.
    """

    def __init__(
        self,
        primary: Optional[RecordStore],
        fallback: RecordStore,
        monitor: AvailabilityMonitor,
        logger: Optional[logging.Logger] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.monitor = monitor
        self.logger = logger or logging.getLogger(__name__)

    def select(self) -> RecordStore:
        """The store that should serve the current request."""
        if self.primary is not None and self.monitor.is_primary_available():
            return self.primary
        return self.fallback

    @property
    def active_kind(self) -> str:
        return self.select().kind

    async def run(self, operation: Callable[[RecordStore], Awaitable[T]]) -> T:
        """Run ``operation`` against the selected store, failing over once.

        Args:
            operation: Coroutine function taking the store to use

        Returns:
            Whatever ``operation`` returns

        Raises:
            StoreUnavailable: If the fallback store is unavailable too
        """
        store = self.select()
        try:
            return await operation(store)
        except StoreUnavailable as e:
            if store is self.fallback:
                raise
            self.monitor.mark_disconnected(str(e))
            self.logger.warning(f"Primary store failed mid-request, retrying on fallback: {e}")
            return await operation(self.fallback)
