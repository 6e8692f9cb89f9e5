"""A monotonic lap timer."""

from __future__ import annotations

import time
from typing import Callable


class ChiliTimer:
    """Measures time since its creation or its last mark, in seconds."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last = clock()

    def mark(self) -> float:
        """Return the time since the last mark and start a new lap."""
        old = self._last
        self._last = self._clock()
        return self._last - old

    def peek(self) -> float:
        """Return the time since the last mark without starting a new lap."""
        return self._clock() - self._last