# sim/event.py
from dataclasses import dataclass


@dataclass(order=True)
class BaseEvent:
    """Anything the kernel can dispatch. `t` is sim seconds since the clock epoch."""

    t: float
