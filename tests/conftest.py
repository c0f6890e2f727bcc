from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import pytest

ROOT = Path(__file__).resolve().parents[1]
for rel in (
    "libs/core/src",
    "libs/adapters/playwright/src",
    "libs/adapters/chromedriver/src",
    "apps/cli/src",
):
    candidate = str(ROOT / rel)
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from paintbench import registry  # noqa: E402
from paintbench.config import Settings  # noqa: E402
from paintbench.interfaces import CONSOLE_BROWSER_LOG, CONSOLE_EVENTS  # noqa: E402
from paintbench_cli.runners.common import _load_adapters  # noqa: E402
from paintbench.timeline import (  # noqa: E402
    CYCLE_BOUNDARY_METHOD,
    PERFORMANCE_LOG,
    TRACE_FILE,
    TraceCapture,
)


def trace_record(name: str, ts: float, *, ph: str = "X", dur: float | None = None, data_type: str | None = None) -> dict:
    record: dict = {"name": name, "ph": ph, "ts": ts, "pid": 1, "tid": 1, "cat": "devtools.timeline"}
    if dur is not None:
        record["dur"] = dur
    if data_type is not None:
        record["args"] = {"data": {"type": data_type}}
    else:
        record["args"] = {}
    return record


def perf_log_entry(method: str, params: dict) -> dict:
    return {
        "level": "INFO",
        "timestamp": 0,
        "message": json.dumps({"message": {"method": method, "params": params}, "webview": "ABC"}),
    }


def boundary_entry() -> dict:
    return perf_log_entry(CYCLE_BOUNDARY_METHOD, {"frameId": "F1"})


def trace_entry(record: dict) -> dict:
    return perf_log_entry("Tracing.dataCollected", record)


class FakePage:
    def __init__(self, session: "FakeSession") -> None:
        self.session = session
        self.console_cb: Optional[Callable[[str], None]] = None
        self.url: str | None = None
        self.waits: List[float] = []

    def navigate(self, url: str) -> None:
        self.url = url
        self.session.on_navigate()

    def wait_for_selector(self, selector: str) -> None:
        assert selector == "#add"

    def click(self, selector: str) -> None:
        self.session.on_click(self)

    def wait(self, seconds: float) -> None:
        self.waits.append(seconds)

    def on_console_message(self, callback: Callable[[str], None]) -> None:
        self.console_cb = callback

    def metrics(self) -> Dict[str, float]:
        return self.session.read_metrics()


class FakeSession:
    def __init__(self, backend: "FakeBackend", *, tracing: bool) -> None:
        self.backend = backend
        self.tracing = tracing
        self.closed = False
        self.capturing = False
        self.pending_console: List[str] = []
        self.perf_log: List[dict] = []
        self.trace_records: List[dict] = []
        self.browser_lines: List[str] = []
        self.pages: List[FakePage] = []
        self.task_seconds = 0.0
        self.metric_reads = 0
        if tracing and backend.trace_source == PERFORMANCE_LOG:
            # the blank start page paints before the first navigation
            self.perf_log.append(trace_entry(trace_record("Paint", 10.0, dur=5.0)))

    # -- capability interface -------------------------------------------------
    def new_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        return page

    def start_trace_capture(self, page: FakePage, path: Path, categories) -> None:
        self.capturing = True
        self.trace_records = []
        self.perf_log = []
        self._flush_pending(page)

    def stop_trace_capture(self) -> TraceCapture:
        self.capturing = False
        if self.backend.trace_source == PERFORMANCE_LOG:
            entries, self.perf_log = self.perf_log, []
            return TraceCapture(PERFORMANCE_LOG, entries)
        return TraceCapture(TRACE_FILE, {"traceEvents": list(self.trace_records), "metadata": {}})

    def browser_log(self) -> List[str]:
        lines, self.browser_lines = self.browser_lines, []
        return lines

    def close(self) -> None:
        self.closed = True

    # -- simulation -------------------------------------------------------------
    def on_navigate(self) -> None:
        if self.tracing and self.backend.trace_source == PERFORMANCE_LOG:
            self.perf_log.append(boundary_entry())
            self.perf_log.append(perf_log_entry("Network.requestWillBeSent", {"requestId": "1"}))

    def _flush_pending(self, page: FakePage) -> None:
        while self.pending_console and page.console_cb is not None:
            page.console_cb(self.pending_console.pop(0))

    def on_click(self, page: FakePage) -> None:
        backend = self.backend
        trial = backend.clicks
        backend.clicks += 1
        if trial in backend.fail_on_clicks:
            raise RuntimeError(f"click {trial} failed")

        click_ts = 1_000_000.0 * (trial + 1)
        paint_ts = click_ts + backend.timeline_us - 500.0
        records = [
            trace_record("EventDispatch", click_ts - 50.0, dur=10.0, data_type="mousedown"),
            trace_record("EventDispatch", click_ts, dur=30.0, data_type="click"),
            trace_record("Paint", click_ts + 100.0, dur=200.0),
            trace_record("Paint", paint_ts, dur=500.0),
            trace_record("Paint", paint_ts + 10_000.0, ph="B"),
        ]
        if self.tracing and backend.trace_source == PERFORMANCE_LOG:
            self.perf_log.extend(trace_entry(r) for r in records)
        elif self.capturing:
            self.trace_records.extend(records)

        self.task_seconds += backend.task_ms / 1000.0

        if trial in backend.missing_console_clicks:
            return
        value = backend.client_tracing_ms if self.tracing else backend.client_no_tracing_ms
        text = f"{value}"
        if backend.console_source == CONSOLE_BROWSER_LOG:
            self.browser_lines.append("https://example.org/noise.js 1:1 unrelated")
            self.browser_lines.append(f"{page.url} 42:17 {text}")
            return
        if backend.delay_untraced_console:
            self._flush_pending(page)
            if not self.capturing:
                self.pending_console.append(text)
                return
        if page.console_cb is not None:
            page.console_cb(text)
            for extra in range(backend.duplicate_console):
                page.console_cb(text)

    def read_metrics(self) -> Dict[str, float]:
        self.metric_reads += 1
        return {
            "TaskDuration": self.task_seconds,
            "RecalcStyleCount": 3.0,
            "LayoutCount": 2.0,
        }


class FakeBackend:
    name = "fake"

    def __init__(
        self,
        *,
        console_source: str = CONSOLE_EVENTS,
        trace_source: str = TRACE_FILE,
        client_tracing_ms: float = 12.0,
        client_no_tracing_ms: float = 10.0,
        timeline_us: float = 2500.0,
        task_ms: float = 4.0,
    ) -> None:
        self.console_source = console_source
        self.trace_source = trace_source
        self.client_tracing_ms = client_tracing_ms
        self.client_no_tracing_ms = client_no_tracing_ms
        self.timeline_us = timeline_us
        self.task_ms = task_ms
        self.clicks = 0
        self.missing_console_clicks: Set[int] = set()
        self.fail_on_clicks: Set[int] = set()
        self.delay_untraced_console = False
        self.duplicate_console = 0
        self.sessions: List[FakeSession] = []
        self.settings: Settings | None = None

    def __call__(self, settings: Settings) -> "FakeBackend":
        # registered in place of a class; the runner instantiates with settings
        self.settings = settings
        return self

    def launch(self, executable: str, *, tracing: bool) -> FakeSession:
        session = FakeSession(self, tracing=tracing)
        self.sessions.append(session)
        return session


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(count=5, frameworks=("vanillajs",), trace_dir=tmp_path)


@pytest.fixture
def fake_registry():
    # adapters register on first import; import them before swapping the items out
    _load_adapters()
    original_items = dict(registry._items)  # type: ignore[attr-defined]
    registry._items.clear()  # type: ignore[attr-defined]
    try:
        yield registry
    finally:
        registry._items.clear()  # type: ignore[attr-defined]
        registry._items.update(original_items)  # type: ignore[attr-defined]
