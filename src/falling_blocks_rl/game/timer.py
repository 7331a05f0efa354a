from __future__ import annotations


class GravityTimer:
    """Accumulates elapsed time and hands out gravity ticks.

    The owner calls `advance` with the milliseconds since the last frame and
    then drains due ticks with `tick`, passing the current interval each time
    so a level change takes effect on the very next tick.
    """

    def __init__(self) -> None:
        self.elapsed_ms = 0.0

    def advance(self, elapsed_ms: float) -> None:
        if elapsed_ms > 0:
            self.elapsed_ms += elapsed_ms

    def tick(self, interval_ms: float) -> bool:
        # A zero interval would never drain the accumulator.
        interval_ms = max(1.0, float(interval_ms))
        if self.elapsed_ms < interval_ms:
            return False
        self.elapsed_ms -= interval_ms
        return True

    def reset(self) -> None:
        self.elapsed_ms = 0.0
