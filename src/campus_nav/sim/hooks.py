# sim/hooks.py
from typing import Protocol

from campus_nav.sim.event import BaseEvent


class KernelHooks(Protocol):
    """
    Observation points of the kernel loop; hooks never change what runs.

    - run_start / run_end bracket one `Kernel.run` call (wall_ms is real time).
    - schedule fires for every queued event, navigation ticks and walker steps included.
    - dispatch_start fires before an event's handlers run; KernelLogging logs
      navigation outcomes (RouteCalculated, DestinationReached, ...) here and
      test traces record the timeline from it.
    - dispatch_end reports how many follow-up events the handlers returned.
    - error fires just before the kernel raises (an event scheduled in the past,
      time running backwards).
    """

    def run_start(self, *, until, max_events, qsize): ...
    def run_end(self, *, processed, last_t, qsize, wall_ms): ...
    def schedule(self, ev: BaseEvent, *, now, qsize): ...
    def dispatch_start(self, ev: BaseEvent, *, seq, qsize, handlers): ...
    def dispatch_end(self, ev: BaseEvent, *, produced, qsize, ms): ...
    def error(self, ev: BaseEvent, *, reason: str, **kw): ...


class NoopHooks:
    """Base for hook objects that only care about a few of the callbacks."""

    def run_start(self, **_):
        pass

    def run_end(self, **_):
        pass

    def schedule(self, *_, **__):
        pass

    def dispatch_start(self, *_, **__):
        pass

    def dispatch_end(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
