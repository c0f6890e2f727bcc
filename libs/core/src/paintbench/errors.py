from __future__ import annotations

"""Errors raised while turning browser output into measurements.

Every one of these is fatal for a run: the orchestrator never catches them,
so a missing sample or an unreadable trace aborts all remaining runners.
"""


class PaintbenchError(RuntimeError):
    """Base class for measurement failures."""


class MeasurementCountMismatch(PaintbenchError):
    """A sample set does not hold exactly one value per trial."""

    def __init__(self, label: str, expected: int, actual: int) -> None:
        super().__init__(f"Expected {expected} {label}, but there were {actual}")
        self.label = label
        self.expected = expected
        self.actual = actual


class MalformedConsoleMeasurement(PaintbenchError, ValueError):
    """Console text that should hold a duration is not a number."""


class MalformedTraceData(PaintbenchError, ValueError):
    """Trace file or performance log could not be decoded."""


class MissingInteractionEvent(PaintbenchError):
    """A duration window lacks its click or its paint."""
