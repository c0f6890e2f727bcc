"""Ways to wait for rendering to finish after the click."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .config import Settings
from .interfaces import Page

log = logging.getLogger(__name__)

_COUNTERS = ("RecalcStyleCount", "LayoutCount")


class FixedDelay:
    """Sleep a fixed time; enough when durations come from trace timestamps."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds

    def before_click(self, page: Page) -> None:
        return None

    def after_click(self, page: Page) -> None:
        page.wait(self.seconds)


class MetricsStability:
    """Poll style-recalc and layout counters until two reads agree.

    The baseline is read before the click, so the first post-click read
    already compares against pre-click state.
    """

    def __init__(self, interval: float, max_iterations: int) -> None:
        self.interval = interval
        self.max_iterations = max_iterations
        self._previous: Optional[Dict[str, float]] = None

    def before_click(self, page: Page) -> None:
        self._previous = _counters(page.metrics())

    def after_click(self, page: Page) -> None:
        previous = self._previous if self._previous is not None else _counters(page.metrics())
        for i in range(self.max_iterations):
            current = _counters(page.metrics())
            if current == previous:
                log.debug("rendering stable after %d polls", i + 1)
                break
            previous = current
            page.wait(self.interval)
        else:
            log.debug("rendering not stable after %d polls", self.max_iterations)
        self._previous = None


def _counters(metrics: Dict[str, float]) -> Dict[str, float]:
    return {k: metrics.get(k, 0.0) for k in _COUNTERS}


def make_settle(name: str, settings: Settings):
    if name == "fixed":
        return FixedDelay(settings.settle_delay_s)
    if name == "metrics":
        return MetricsStability(settings.stability_interval_s, settings.stability_max_iterations)
    raise ValueError(f"unknown settle strategy {name!r}")
