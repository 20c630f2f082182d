"""Network reachability tracking."""

import asyncio
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger()

ConnectivityListener = Callable[[bool], None]


class ConnectivityMonitor:
    """Holds the latest reachability snapshot.

    Updates are pushed through ``set_connected``, either by the built-in TCP
    probe or by whatever platform hook owns the network path. Readers only
    ever see the current snapshot; nothing waits for a change.
    """

    def __init__(
        self,
        host: str = "api.openai.com",
        port: int = 443,
        interval: float = 10.0,
        probe_timeout: float = 5.0,
        initially_connected: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.interval = interval
        self.probe_timeout = probe_timeout
        self._connected = initially_connected
        self._listeners: List[ConnectivityListener] = []
        self._probe_task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a callback for transitions; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_connected(self, connected: bool) -> None:
        """Record a new reachability state and notify listeners on change."""
        if connected == self._connected:
            return
        self._connected = connected
        logger.info("connectivity_changed", connected=connected)
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception as e:
                logger.error("connectivity_listener_error", error=str(e))

    async def probe(self) -> bool:
        """Try a TCP connection to the configured host and push the result."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.probe_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("connectivity_probe_failed", host=self.host, error=str(e))
            reachable = False
        else:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            reachable = True
        self.set_connected(reachable)
        return reachable

    async def start(self) -> None:
        """Start the periodic probe."""
        if self._probe_task is None:
            self._probe_task = asyncio.create_task(self._periodic_probe())
            logger.info("connectivity_monitor_started", host=self.host, port=self.port)

    async def stop(self) -> None:
        """Stop the periodic probe."""
        if self._probe_task is not None:
            self._probe_task.cancel()
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
            self._probe_task = None
            logger.info("connectivity_monitor_stopped")

    async def _periodic_probe(self) -> None:
        while True:
            try:
                await self.probe()
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("connectivity_probe_error", error=str(e))
                await asyncio.sleep(self.interval)
