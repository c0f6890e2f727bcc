from .interfaces import Backend, BrowserLogSession, ConsoleEventPage, Page, Session
from .registry import registry
from .metrics import BenchmarkResult, Statistics, Values, overhead_factor
from .console import ConsoleCollector
from .config import Settings, load_settings
from .errors import (
    MalformedConsoleMeasurement,
    MalformedTraceData,
    MeasurementCountMismatch,
    MissingInteractionEvent,
    PaintbenchError,
)
from .timeline import (
    DurationWindow,
    TraceCapture,
    TraceEvent,
    click_to_paint_ms,
    click_to_paint_series_ms,
    extract_window,
    extract_windows,
    normalize,
)

__all__ = [
    "Backend",
    "BrowserLogSession",
    "ConsoleEventPage",
    "Page",
    "Session",
    "registry",
    "BenchmarkResult",
    "Statistics",
    "Values",
    "overhead_factor",
    "ConsoleCollector",
    "Settings",
    "load_settings",
    "MalformedConsoleMeasurement",
    "MalformedTraceData",
    "MeasurementCountMismatch",
    "MissingInteractionEvent",
    "PaintbenchError",
    "DurationWindow",
    "TraceCapture",
    "TraceEvent",
    "click_to_paint_ms",
    "click_to_paint_series_ms",
    "extract_window",
    "extract_windows",
    "normalize",
]
