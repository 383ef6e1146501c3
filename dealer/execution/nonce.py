"""Nonce issuance for signed exchange actions."""

from __future__ import annotations

import threading
import time
from typing import Callable


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class NonceIssuer:
    """Issues strictly increasing millisecond nonces.

    Nonces follow wall-clock time; when two are requested within the same
    millisecond (or the clock steps backwards) the previous nonce + 1 is used,
    so a nonce is never reused for the lifetime of the issuer.
    """

    def __init__(self, clock: Callable[[], int] = _wall_clock_ms) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    @property
    def last(self) -> int:
        return self._last

    def next(self) -> int:
        with self._lock:
            nonce = max(self._clock(), self._last + 1)
            self._last = nonce
            return nonce
