"""Round-trip time statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class RttStats:
    """Min/max/average of RTT samples, all in seconds."""

    min: float = math.inf
    max: float = 0.0
    total: float = 0.0
    count: int = 0

    def add_sample(self, rtt: float) -> None:
        """Record one round-trip time in seconds."""
        if self.count == 0 or rtt < self.min:
            self.min = rtt
        if rtt > self.max:
            self.max = rtt
        self.total += rtt
        self.count += 1

    def average(self) -> float:
        """Mean RTT in seconds, zero when there are no samples."""
        return self.total / self.count if self.count else 0.0

    def reset(self) -> None:
        """Discard all samples."""
        self.min = math.inf
        self.max = 0.0
        self.total = 0.0
        self.count = 0

    def min_ms(self) -> float:
        """Minimum RTT in milliseconds, zero when there are no samples."""
        return self.min * 1000.0 if self.count else 0.0

    def max_ms(self) -> float:
        """Maximum RTT in milliseconds."""
        return self.max * 1000.0

    def average_ms(self) -> float:
        """Mean RTT in milliseconds."""
        return self.average() * 1000.0