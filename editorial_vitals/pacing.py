from __future__ import annotations

import time


class SleepPacer:
    """Blocking delay between provider calls.

    Anything with a ``pause(seconds)`` method can replace it; tests pass a
    recorder so no wall-clock time is spent.
    """

    def __init__(self, scale: float = 1.0) -> None:
        self.scale = max(0.0, scale)

    def pause(self, seconds: float) -> None:
        delay = max(0.0, seconds) * self.scale
        if delay > 0:
            time.sleep(delay)
