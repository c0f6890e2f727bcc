"""Compiled-in benchmark constants and their environment overrides."""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
import pathlib
import tempfile
from typing import Tuple


COUNT = 25
SETTLE_DELAY_S = 0.5
FRAMEWORKS: Tuple[str, ...] = ("vanillajs", "svelte")
SITE_URL_PREFIX = "https://stefankrause.net"
PAGE_URL_TEMPLATE = SITE_URL_PREFIX + "/chrome-perf/frameworks/keyed/{framework}/index.html"
TRACE_CATEGORIES: Tuple[str, ...] = ("devtools.timeline", "blink.user_timing")
ADD_BUTTON_SELECTOR = "#add"
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 800
CHROMEDRIVER_PORT = 9998
STABILITY_POLL_INTERVAL_S = 0.016
STABILITY_MAX_ITERATIONS = 100


@dataclass(frozen=True)
class Settings:
    count: int = COUNT
    settle_delay_s: float = SETTLE_DELAY_S
    frameworks: Tuple[str, ...] = FRAMEWORKS
    page_url_template: str = PAGE_URL_TEMPLATE
    console_url_prefix: str = SITE_URL_PREFIX
    trace_categories: Tuple[str, ...] = TRACE_CATEGORIES
    selector: str = ADD_BUTTON_SELECTOR
    window_size: Tuple[int, int] = (WINDOW_WIDTH, WINDOW_HEIGHT)
    chromedriver_port: int = CHROMEDRIVER_PORT
    stability_interval_s: float = STABILITY_POLL_INTERVAL_S
    stability_max_iterations: int = STABILITY_MAX_ITERATIONS
    trace_dir: pathlib.Path | None = None

    def page_url(self, framework: str) -> str:
        return self.page_url_template.format(framework=framework)

    def trace_path(self, framework: str) -> pathlib.Path:
        base = self.trace_dir if self.trace_dir is not None else pathlib.Path(tempfile.gettempdir())
        return base / f"trace_{framework}.json"

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer")


def load_settings() -> Settings:
    """Build settings from the constants above plus PAINTBENCH_* variables."""
    count = _env_int("PAINTBENCH_COUNT")
    if count is not None and count < 1:
        raise ValueError("PAINTBENCH_COUNT must be at least 1")
    settle_ms = _env_int("PAINTBENCH_SETTLE_MS")
    trace_dir = os.getenv("PAINTBENCH_TRACE_DIR")
    return Settings().with_overrides(
        count=count,
        settle_delay_s=(settle_ms / 1000.0) if settle_ms is not None else None,
        chromedriver_port=_env_int("PAINTBENCH_CHROMEDRIVER_PORT"),
        trace_dir=pathlib.Path(trace_dir) if trace_dir else None,
    )
