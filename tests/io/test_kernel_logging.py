import json
import logging

from campus_nav.app.events import NavigationFailed, NavigationProgress
from campus_nav.io.kernel_logging import JsonFormatter, KernelLogging
from campus_nav.sim.clock import SimClock
from campus_nav.sim.kernel import Kernel


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.setFormatter(JsonFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def make_logger(name):
    h = ListHandler()
    logger = logging.getLogger(name)
    logger.handlers[:] = [h]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger, h


def test_business_events_logged_at_info():
    logger, h = make_logger("test.kernel_logging.business")
    hooks = KernelLogging(run_id="r1", clock=SimClock.utc_epoch(2025, 1, 1), logger=logger)
    k = Kernel(hooks=hooks)
    k.schedule(NavigationFailed(t=1.0, destination="Gym", reason="destination_not_found"))
    k.schedule(
        NavigationProgress(
            t=2.0,
            instruction="Continue",
            distance=3.0,
            eta_s=2,
            eta_text="2 seconds",
            waypoint_index=1,
            waypoint_count=3,
            heading=(1.0, 0.0),
        )
    )
    k.run()

    failed = [line for line in h.lines if line["msg"] == "NavigationFailed"]
    assert len(failed) == 1
    assert failed[0]["destination"] == "Gym"
    assert failed[0]["reason"] == "destination_not_found"
    assert failed[0]["run_id"] == "r1"
    assert failed[0]["wall"].startswith("2025-01-01T00:00:01")
    # progress is chatter; only shown in debug mode
    assert not any(line["msg"] == "NavigationProgress" for line in h.lines)


def test_scheduling_in_the_past_is_logged_as_error():
    logger, h = make_logger("test.kernel_logging.error")
    k = Kernel(hooks=KernelLogging(logger=logger))
    k.advance_to(5.0)
    try:
        k.schedule(NavigationFailed(t=1.0, destination=None, reason="no_route"))
    except RuntimeError:
        pass
    (err,) = [line for line in h.lines if line["level"] == "ERROR"]
    assert err["reason"] == "scheduled_past"
    assert err["event"] == "NavigationFailed"
    assert err["now"] == 5.0
