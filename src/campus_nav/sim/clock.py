# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass(frozen=True)
class SimClock:
    epoch: datetime  # wall time of t=0, UTC

    @classmethod
    def utc_epoch(cls, y: int, m: int, d: int, hh=0, mm=0, ss=0) -> SimClock:
        return cls(datetime(y, m, d, hh, mm, ss, tzinfo=UTC))

    # sim seconds -> wall
    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t)

    def to_epoch_ms(self, t: float) -> float:
        """Sim seconds -> device-style timestamp (ms since the Unix epoch)."""
        return self.to_wall(t).timestamp() * 1000.0
