from __future__ import annotations
from dataclasses import dataclass
import statistics
from typing import Dict, Iterable, List, Optional

from .errors import MeasurementCountMismatch

"""Sample sets and per-framework result records.

A `Values` instance lives for exactly one (framework, tracing-mode)
combination; the runner builds a `BenchmarkResult` from them once both
tracing modes of a framework are done.
"""


@dataclass(frozen=True)
class Statistics:
    mean: float
    standard_deviation: float


class Values:
    """Append-only sample set; statistics are recomputed on every call."""

    def __init__(self, values: Iterable[float] | None = None) -> None:
        self._values: List[float] = [float(v) for v in values] if values is not None else []

    def add(self, value: float) -> None:
        self._values.append(value)

    @property
    def values(self) -> List[float]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def require_count(self, expected: int, label: str) -> None:
        if len(self._values) != expected:
            raise MeasurementCountMismatch(label, expected, len(self._values))

    def statistics(self) -> Statistics:
        if not self._values:
            raise ValueError("statistics() needs at least one sample")
        mean = statistics.mean(self._values)
        stdev = statistics.stdev(self._values) if len(self._values) > 1 else 0.0
        return Statistics(mean=mean, standard_deviation=stdev)

    def __str__(self) -> str:
        s = self.statistics()
        return f"{s.mean:.3f} ({s.standard_deviation:.3f})"

    def __repr__(self) -> str:
        return f"Values({self._values!r})"


def overhead_factor(tracing: Values, no_tracing: Values) -> float:
    """Ratio of the tracing-enabled mean to the tracing-disabled mean."""
    return round(tracing.statistics().mean / no_tracing.statistics().mean, 3)


@dataclass(frozen=True)
class BenchmarkResult:
    runner: str
    framework: str
    client_tracing: Values
    client_no_tracing: Values
    client_factor: float
    timeline: Optional[Values] = None
    task_tracing: Optional[Values] = None
    task_no_tracing: Optional[Values] = None
    task_factor: Optional[float] = None

    def as_row(self) -> Dict[str, str]:
        row = {
            "runner": self.runner,
            "framework": self.framework,
            "clientTracing": str(self.client_tracing),
            "clientNoTracing": str(self.client_no_tracing),
        }
        if self.timeline is not None and len(self.timeline):
            row["timeline"] = str(self.timeline)
        if self.task_tracing is not None and self.task_no_tracing is not None:
            row["taskTracing"] = str(self.task_tracing)
            row["taskNoTracing"] = str(self.task_no_tracing)
        row["clientFactor"] = f"{self.client_factor:.3f}"
        if self.task_factor is not None:
            row["taskFactor"] = f"{self.task_factor:.3f}"
        return row
