from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from .common import PER_COMBINATION, PER_TRIAL, RunnerSpec

# "It": fresh browser per trial. "Fw": one browser per framework and tracing mode.
RUNNERS: Dict[str, RunnerSpec] = {
    spec.name: spec
    for spec in (
        RunnerSpec("playwrightIt", backend="playwright", session_policy=PER_TRIAL),
        RunnerSpec(
            "playwrightFw",
            backend="playwright",
            session_policy=PER_COMBINATION,
            tracing_order=(False, True),
            console_compensation=True,
        ),
        # traced batch first, no dummy trial: the plain CDP per-framework policy
        RunnerSpec("playwrightTraceFirstFw", backend="playwright", session_policy=PER_COMBINATION),
        RunnerSpec(
            "playwrightStableIt",
            backend="playwright",
            session_policy=PER_TRIAL,
            settle="metrics",
            collect_task_metrics=True,
        ),
        RunnerSpec("chromedriverIt", backend="chromedriver", session_policy=PER_TRIAL),
        RunnerSpec(
            "chromedriverFw",
            backend="chromedriver",
            session_policy=PER_COMBINATION,
            batch_trace=True,
        ),
    )
}


def select_runners(names: Optional[Iterable[str]] = None) -> List[RunnerSpec]:
    if not names:
        return list(RUNNERS.values())
    selected = []
    for name in names:
        if name not in RUNNERS:
            raise KeyError(f"unknown runner {name!r} (choose from {', '.join(RUNNERS)})")
        selected.append(RUNNERS[name])
    return selected


def describe(spec: RunnerSpec) -> str:
    parts = [spec.backend, spec.session_policy, f"settle={spec.settle}"]
    if spec.batch_trace:
        parts.append("batch-trace")
    if spec.console_compensation:
        parts.append("console-compensation")
    if spec.collect_task_metrics:
        parts.append("task-metrics")
    return ", ".join(parts)
