"""Cancellable timeouts for rate limit waits and retry backoff.

A ``SafeTimeout`` wraps ``loop.call_later``: its future resolves once
after the duration, and ``cancel()`` stops it from ever resolving
without raising into whoever is waiting on it.
"""

from __future__ import annotations

import asyncio

from github_tools.logging import get_logger

logger = get_logger(__name__)


class SafeTimeout:
    """A one-shot timer whose completion can be awaited or cancelled.

    Usage:
        timeout = create_safe_timeout(2500, label="rate limit reset")
        await timeout.wait()

        # elsewhere, before it fires
        timeout.cancel()  # wait() callers stay pending, nothing is raised
    """

    def __init__(self, duration_ms: float, label: str | None = None) -> None:
        """Start the timer on the running event loop.

        Args:
            duration_ms: Milliseconds until the timeout fires (negative is 0)
            label: Optional name used in debug logs

        Raises:
            RuntimeError: If there is no running event loop.
        """
        loop = asyncio.get_running_loop()
        self.duration_ms = max(0.0, float(duration_ms))
        self.label = label
        self._cancelled = False
        self._future: asyncio.Future[None] = loop.create_future()
        self._handle: asyncio.TimerHandle | None = loop.call_later(
            self.duration_ms / 1000, self._fire
        )

    @property
    def future(self) -> asyncio.Future[None]:
        """Resolves with None when the timeout fires. Never rejects."""
        return self._future

    @property
    def done(self) -> bool:
        """True once the timeout has fired."""
        return self._future.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        self._handle = None
        if self._cancelled or self._future.done():
            return
        self._future.set_result(None)
        if self.label:
            logger.debug("Timeout completed: {}", self.label)

    def cancel(self) -> None:
        """Stop the timer. Idempotent, and a no-op once it has fired."""
        if self._cancelled or self._future.done():
            return
        self._cancelled = True
        self._release()
        if self.label:
            logger.debug("Timeout cancelled: {}", self.label)

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def wait(self) -> None:
        """Wait for the timeout to fire.

        If the waiting task is itself cancelled, the timeout is cancelled
        too, releasing the timer before the cancellation propagates.
        """
        try:
            await asyncio.shield(self._future)
        finally:
            if not self._future.done():
                self.cancel()


def create_safe_timeout(duration_ms: float, label: str | None = None) -> SafeTimeout:
    """Start a cancellable timeout on the running loop."""
    return SafeTimeout(duration_ms, label)


async def sleep_safely(duration_ms: float, label: str | None = None) -> None:
    """Sleep for ``duration_ms`` through a SafeTimeout, always releasing the timer."""
    timeout = create_safe_timeout(duration_ms, label)
    await timeout.wait()
