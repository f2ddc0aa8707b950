"""Background sweep that purges expired records from a :class:`TTLStore`.

The scheduler runs a daemon thread that blocks on a :class:`threading.Event`
for one interval, sweeps, and repeats. Setting the event (through
:meth:`CleanupScheduler.cancel` or by the caller who supplied it) wakes the
thread immediately, so cancellation is observed well within one interval
and no sweep starts afterwards. Lookups and inserts running concurrently
are unaffected by cancellation.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from proxycache.cache.ttl_store import TTLStore

logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Periodically calls :meth:`TTLStore.purge_expired` until cancelled.

    Args:
        store: The store to sweep.
        interval: Seconds between sweeps.
        cancel: Optional externally owned event; the loop exits once it is set.

    Raises:
        ValueError: If *interval* is not positive.
    """

    def __init__(
        self,
        store: TTLStore,
        interval: float,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._store = store
        self._interval = interval
        self._cancel = cancel if cancel is not None else threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._sweeps = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def sweeps(self) -> int:
        """Number of sweeps completed so far."""
        return self._sweeps

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep thread. Calling it on a running scheduler is a no-op."""
        if self.is_running:
            return
        self._thread = threading.Thread(
            target=self._run, name="proxycache-cleanup", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        """Signal the loop to stop; returns without waiting for the thread."""
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel and wait for the sweep thread to exit."""
        self.cancel()
        self.join(timeout)

    def _run(self) -> None:
        logger.debug("Cleanup scheduler started (interval=%ss)", self._interval)
        while not self._cancel.wait(self._interval):
            try:
                removed = self._store.purge_expired()
            except Exception:
                logger.exception("Cache sweep failed")
                continue
            self._sweeps += 1
            if removed:
                logger.debug("Swept %d expired cache entries", removed)
        logger.debug("Cleanup scheduler stopped")
