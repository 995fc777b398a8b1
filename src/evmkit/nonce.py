"""Per-account nonce reservation for concurrent senders."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .account import Account

logger = logging.getLogger(__name__)


class NonceSequencer:
    """Hand out consecutive nonces under a lock.

    The counter is seeded once from the pending-nonce view of the node and then
    advanced locally, so two threads building at the same time never receive
    the same nonce. Call :meth:`reset` after a dropped or replaced transaction.
    """

    def __init__(self, account: Account):
        self._account = account
        self._lock = threading.Lock()
        self._next: int | None = None

    def reserve(self) -> int:
        with self._lock:
            if self._next is None:
                self._next = self._account.nonce(self._account.address)
                logger.debug("Seeded nonce sequencer for %s at %d", self._account.address, self._next)
            nonce = self._next
            self._next += 1
            return nonce

    def peek(self) -> int | None:
        with self._lock:
            return self._next

    def release(self, nonce: int) -> None:
        """Give back ``nonce`` if it was the most recent reservation."""
        with self._lock:
            if self._next is not None and nonce == self._next - 1:
                self._next = nonce

    def reset(self) -> None:
        with self._lock:
            self._next = None
        logger.debug("Nonce sequencer for %s reset", self._account.address)
