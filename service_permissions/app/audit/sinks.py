"""
Security event sinks.

A sink receives one ``SecurityEvent`` per denial. Sinks are best effort:
they never retry, and a failed delivery is dropped rather than allowed to
block request handling.
"""

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol, Set

import httpx

from shared.config import PermissionSettings
from shared.logging import get_logger

from ..rules.models import SecurityEvent


class SecurityEventSink(Protocol):
    def emit(self, event: SecurityEvent) -> None:
        ...


class LoggingSecuritySink:
    """Writes security events to the structured log."""

    def __init__(self, logger_name: str = "permissions.security"):
        self.logger = get_logger(logger_name)

    def emit(self, event: SecurityEvent) -> None:
        self.logger.warning("Security event", event_type=event.type, security_event=event.to_payload())


class HttpSecuritySink:
    """Posts security events to an external collector.

    ``emit`` never waits for the collector. Inside a running event loop the
    request is scheduled as a background task; otherwise it is handed to a
    small worker pool owned by the sink. Each request is bounded by
    ``timeout``.
    """

    def __init__(self, url: str, timeout: float = 2.0, transport: Optional[httpx.BaseTransport] = None,
                 async_transport: Optional[httpx.AsyncBaseTransport] = None, max_workers: int = 2):
        self.url = url
        self.timeout = timeout
        self.transport = transport
        self.async_transport = async_transport
        self.logger = get_logger("permissions.security_sink")
        self._pending: Set[asyncio.Task] = set()
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="security-sink")

    def emit(self, event: SecurityEvent) -> None:
        payload = event.to_payload()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            future = self._executor.submit(self._post, payload)
            with self._lock:
                self._futures.add(future)
            future.add_done_callback(self._forget)
            return

        task = loop.create_task(self._post_async(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until deliveries handed to the worker pool have finished."""
        with self._lock:
            futures = list(self._futures)
        if futures:
            wait(futures, timeout=timeout)

    async def drain(self) -> None:
        """Wait for scheduled deliveries; used on shutdown and in tests."""
        with self._lock:
            futures = list(self._futures)
        pending = list(self._pending) + [asyncio.wrap_future(f) for f in futures]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        """Finish queued deliveries and stop the worker pool."""
        self._executor.shutdown(wait=True)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def _post(self, payload) -> None:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
        except Exception as e:
            self.logger.warning("Security event dropped", url=self.url, error=str(e))

    async def _post_async(self, payload) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.async_transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except Exception as e:
            self.logger.warning("Security event dropped", url=self.url, error=str(e))


def build_sink(settings: PermissionSettings) -> SecurityEventSink:
    """HTTP sink when a collector URL is configured, log sink otherwise."""
    if settings.audit_sink_url:
        return HttpSecuritySink(settings.audit_sink_url, timeout=settings.audit_timeout_seconds)
    return LoggingSecuritySink()
