"""Click-to-paint extraction from Chrome trace data.

Mirrors what js-framework-benchmark does with the devtools timeline: the
duration of a run is the span from the `EventDispatch` of the click to the
end of the last `Paint` that follows it.

Two raw encodings are accepted and normalized into the same `TraceEvent`
sequence:

* a trace file written by ``Browser.start_tracing`` (a JSON object holding a
  ``traceEvents`` array of flat records);
* chromedriver performance-log entries, where each entry's ``message`` is a
  JSON envelope ``{"message": {"method": ..., "params": {...}}}``.

Only the performance log carries page-load notifications, so only it can be
split into several cycles.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import pathlib
from typing import Any, Iterable, Iterator, List, Mapping

from .errors import MalformedTraceData, MissingInteractionEvent

TRACE_FILE = "trace-file"
PERFORMANCE_LOG = "performance-log"

CLICK_EVENT = "EventDispatch"
PAINT_EVENT = "Paint"
COMPLETE_PHASE = "X"
CYCLE_BOUNDARY_METHOD = "Page.frameStartedLoading"


@dataclass(frozen=True)
class TraceEvent:
    name: str
    phase: str
    timestamp_us: float
    duration_us: float | None = None
    data_type: str | None = None
    cycle_boundary: bool = False


@dataclass(frozen=True)
class TraceCapture:
    """Raw trace data handed back by a backend session."""

    source: str
    payload: Any


@dataclass(frozen=True)
class DurationWindow:
    click_start_us: float = 0.0
    paint_end_us: float = 0.0

    def is_default(self) -> bool:
        return self.click_start_us == 0 and self.paint_end_us == 0

    @property
    def duration_ms(self) -> float:
        if not self.click_start_us:
            raise MissingInteractionEvent("no click EventDispatch in trace window")
        if not self.paint_end_us:
            raise MissingInteractionEvent("no Paint event in trace window")
        if self.paint_end_us < self.click_start_us:
            raise MissingInteractionEvent(
                f"last Paint ends at {self.paint_end_us} before the click at {self.click_start_us}"
            )
        return (self.paint_end_us - self.click_start_us) / 1000.0


def _number(record: Mapping[str, Any], key: str) -> float | None:
    value = record.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedTraceData(f"trace record field {key!r} is not numeric: {value!r}")


def _event_from_record(record: Any) -> TraceEvent:
    if not isinstance(record, Mapping):
        raise MalformedTraceData(f"trace record is not an object: {record!r}")
    args = record.get("args")
    data = args.get("data") if isinstance(args, Mapping) else None
    data_type = data.get("type") if isinstance(data, Mapping) else None
    return TraceEvent(
        name=str(record.get("name", "")),
        phase=str(record.get("ph", "")),
        timestamp_us=_number(record, "ts") or 0.0,
        duration_us=_number(record, "dur"),
        data_type=data_type,
    )


def events_from_trace_document(document: Any) -> Iterator[TraceEvent]:
    if isinstance(document, Mapping):
        records = document.get("traceEvents")
        if not isinstance(records, list):
            raise MalformedTraceData("trace document has no traceEvents array")
    elif isinstance(document, list):
        records = document
    else:
        raise MalformedTraceData(f"unsupported trace document type {type(document).__name__}")
    for record in records:
        yield _event_from_record(record)


def load_trace_file(path: str | pathlib.Path) -> List[TraceEvent]:
    try:
        document = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedTraceData(f"{path}: {exc}") from exc
    return list(events_from_trace_document(document))


def events_from_performance_log(entries: Iterable[Any]) -> Iterator[TraceEvent]:
    for entry in entries:
        raw = entry.get("message") if isinstance(entry, Mapping) else None
        if not isinstance(raw, str):
            raise MalformedTraceData(f"performance log entry without message: {entry!r}")
        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedTraceData(f"performance log message is not JSON: {exc}") from exc
        inner = envelope.get("message") if isinstance(envelope, Mapping) else None
        if not isinstance(inner, Mapping) or "method" not in inner:
            raise MalformedTraceData(f"performance log envelope without method: {raw[:200]}")
        if inner["method"] == CYCLE_BOUNDARY_METHOD:
            yield TraceEvent(name=CYCLE_BOUNDARY_METHOD, phase="", timestamp_us=0.0, cycle_boundary=True)
            continue
        params = inner.get("params")
        if isinstance(params, Mapping) and "name" in params:
            yield _event_from_record(params)


def normalize(capture: TraceCapture) -> List[TraceEvent]:
    if capture.source == TRACE_FILE:
        if isinstance(capture.payload, (str, pathlib.Path)):
            return load_trace_file(capture.payload)
        return list(events_from_trace_document(capture.payload))
    if capture.source == PERFORMANCE_LOG:
        return list(events_from_performance_log(capture.payload))
    raise MalformedTraceData(f"unknown trace capture source {capture.source!r}")


class _WindowBuilder:
    def __init__(self) -> None:
        self.click_start_us = 0.0
        self.paint_end_us = 0.0

    def feed(self, event: TraceEvent) -> None:
        if event.name == CLICK_EVENT:
            if event.data_type == "click":
                self.click_start_us = event.timestamp_us
        elif event.name == PAINT_EVENT and event.phase == COMPLETE_PHASE:
            end = event.timestamp_us + (event.duration_us or 0.0)
            self.paint_end_us = max(self.paint_end_us, end)

    def build(self) -> DurationWindow:
        return DurationWindow(self.click_start_us, self.paint_end_us)


def extract_window(events: Iterable[TraceEvent]) -> DurationWindow:
    """Single-cycle extraction; boundary markers are ignored."""
    builder = _WindowBuilder()
    for event in events:
        builder.feed(event)
    return builder.build()


def extract_windows(events: Iterable[TraceEvent]) -> List[DurationWindow]:
    """Multi-cycle extraction: one window per page-load cycle.

    Events before the first page load belong to no cycle and are dropped.
    """
    windows: List[DurationWindow] = []
    builder: _WindowBuilder | None = None
    for event in events:
        if event.cycle_boundary:
            if builder is not None:
                _close_window(builder, windows)
            builder = _WindowBuilder()
            continue
        if builder is not None:
            builder.feed(event)
    if builder is not None:
        _close_window(builder, windows)
    return windows


def _close_window(builder: _WindowBuilder, windows: List[DurationWindow]) -> None:
    window = builder.build()
    if not window.is_default():
        windows.append(window)


def click_to_paint_ms(capture: TraceCapture) -> float:
    return extract_window(normalize(capture)).duration_ms


def click_to_paint_series_ms(capture: TraceCapture) -> List[float]:
    return [w.duration_ms for w in extract_windows(normalize(capture))]
