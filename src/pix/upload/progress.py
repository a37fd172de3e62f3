"""Quantized upload progress reporting."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

FINE_INCREMENT = 10
COARSE_INCREMENT = 25


@dataclass(slots=True)
class ProgressTracker:
    """Emit a status line each time received bytes cross a new bucket.

    Buckets are 25% wide for bodies above ``coarse_threshold_bytes`` and 10%
    otherwise. Emissions are strictly increasing by bucket.
    """

    emit: Callable[[str], None]
    coarse_threshold_bytes: int = 512 * 1024
    last_bucket: int = field(default=-1)

    def update(self, received: int, total: int) -> None:
        if total <= 0:
            return
        percent = min(100, 100 * received // total)
        increment = COARSE_INCREMENT if total > self.coarse_threshold_bytes else FINE_INCREMENT
        bucket = percent // increment * increment
        if bucket > self.last_bucket:
            self.last_bucket = bucket
            self.emit(f"{percent}% received...")
