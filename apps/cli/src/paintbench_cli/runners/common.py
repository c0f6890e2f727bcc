from __future__ import annotations
"""Trial orchestration shared by every runner variant.

Includes adapter bootstrap, the per-trial and per-combination trial loops,
the console-delivery compensation step and result assembly.

Everything runs strictly in sequence: one session, one page and one trial at
a time. Sample sets and the console collector are created fresh for every
(framework, tracing-mode) combination and never outlive it.
"""

import contextlib
import importlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, cast

from paintbench import registry
from paintbench.config import Settings
from paintbench.console import ConsoleCollector
from paintbench.interfaces import (
    CONSOLE_BROWSER_LOG,
    CONSOLE_EVENTS,
    Backend,
    BrowserLogSession,
    ConsoleEventPage,
    Page,
    Session,
)
from paintbench.metrics import BenchmarkResult, Values, overhead_factor
from paintbench.settle import make_settle
from paintbench.timeline import click_to_paint_ms, click_to_paint_series_ms

log = logging.getLogger(__name__)

PER_TRIAL = "per-trial"
PER_COMBINATION = "per-combination"

_ADAPTER_MODULES = ("paintbench_playwright", "paintbench_chromedriver")


def _load_adapters() -> None:
    for mod in _ADAPTER_MODULES:
        try:
            importlib.import_module(mod)
        except ImportError as e:
            # A runner that needs the missing backend still fails at registry.get
            log.warning("[adapter import error] %s: %s", mod, e)


@dataclass(frozen=True)
class RunnerSpec:
    """One way of driving a backend through the trials.

    `session_policy` picks a fresh browser per trial (isolation) or one
    browser per combination (cheaper). `batch_trace` reads the performance
    log once per combination and splits it at page loads instead of
    capturing a trace per trial.
    """
    name: str
    backend: str
    session_policy: str = PER_TRIAL
    settle: str = "fixed"
    tracing_order: Tuple[bool, ...] = (True, False)
    batch_trace: bool = False
    console_compensation: bool = False
    collect_task_metrics: bool = False

    def __post_init__(self) -> None:
        if self.session_policy not in (PER_TRIAL, PER_COMBINATION):
            raise ValueError(f"{self.name}: unknown session policy {self.session_policy!r}")
        if sorted(self.tracing_order) != [False, True]:
            raise ValueError(f"{self.name}: tracing_order must hold True and False once each")
        if self.batch_trace and self.session_policy != PER_COMBINATION:
            raise ValueError(f"{self.name}: batch_trace needs a per-combination session")


@dataclass
class TrialResult:
    timeline_ms: Optional[float] = None
    task_ms: Optional[float] = None


@dataclass
class CombinationSamples:
    client: Values = field(default_factory=Values)
    timeline: Values = field(default_factory=Values)
    task: Values = field(default_factory=Values)

    def record(self, trial: TrialResult) -> None:
        if trial.timeline_ms is not None:
            self.timeline.add(trial.timeline_ms)
        if trial.task_ms is not None:
            self.task.add(trial.task_ms)


@contextlib.contextmanager
def open_session(backend: Backend, executable: str, *, tracing: bool) -> Iterator[Session]:
    session = backend.launch(executable, tracing=tracing)
    try:
        yield session
    finally:
        session.close()


def _attach_console(backend: Backend, page: Page, collector: ConsoleCollector) -> None:
    if backend.console_source == CONSOLE_EVENTS:
        cast(ConsoleEventPage, page).on_console_message(collector.push)


def _collect_console(
    backend: Backend,
    spec: RunnerSpec,
    session: Session,
    page: Page,
    collector: ConsoleCollector,
    settings: Settings,
) -> None:
    """Give the page time to print its last duration, then read the browser log if needed."""
    if backend.console_source == CONSOLE_BROWSER_LOG:
        page.wait(settings.settle_delay_s)
        matched = collector.feed_log(cast(BrowserLogSession, session).browser_log())
        log.debug("browser log yielded %d console measurements", matched)
    elif spec.settle != "fixed":
        # a stability settle can finish before the page logs its own timing
        page.wait(settings.settle_delay_s)


def run_trial(
    session: Session,
    page: Page,
    spec: RunnerSpec,
    framework: str,
    *,
    tracing: bool,
    settings: Settings,
    settle,
) -> TrialResult:
    """Load the page, click `#add` once and read back what the trace says."""
    result = TrialResult()
    page.navigate(settings.page_url(framework))
    page.wait_for_selector(settings.selector)
    metrics_before = page.metrics() if spec.collect_task_metrics else None

    capture = tracing and not spec.batch_trace
    if capture:
        session.start_trace_capture(page, settings.trace_path(framework), settings.trace_categories)
    settle.before_click(page)
    page.click(settings.selector)
    settle.after_click(page)
    if capture:
        result.timeline_ms = click_to_paint_ms(session.stop_trace_capture())
        log.debug("%s %s timeline %.3f ms", spec.name, framework, result.timeline_ms)

    if metrics_before is not None:
        metrics_after = page.metrics()
        result.task_ms = (metrics_after["TaskDuration"] - metrics_before["TaskDuration"]) * 1000.0
    return result


def compensate_console_delivery(
    session: Session,
    page: Page,
    spec: RunnerSpec,
    framework: str,
    collector: ConsoleCollector,
    *,
    settings: Settings,
    settle,
) -> None:
    """Flush the console message of the last tracing-disabled trial.

    When one Playwright page serves a whole tracing-disabled batch, the
    console message of the final trial is often not delivered until tracing
    is started again. One extra traced trial forces it out; the extra trial's
    own message (the last one collected) and its timeline are dropped.
    Remove once a tracing-disabled batch reliably yields one message per trial.
    """
    log.debug("%s %s: dummy traced trial to flush console output", spec.name, framework)
    run_trial(session, page, spec, framework, tracing=True, settings=settings, settle=settle)
    collector.discard_last()


def run_combination(
    backend: Backend,
    spec: RunnerSpec,
    executable: str,
    framework: str,
    *,
    tracing: bool,
    settings: Settings,
) -> CombinationSamples:
    count = settings.count
    collector = ConsoleCollector(
        count,
        settings.console_url_prefix,
        slack=1 if spec.console_compensation else 0,
    )
    samples = CombinationSamples()
    settle = make_settle(spec.settle, settings)

    if spec.session_policy == PER_TRIAL:
        for i in range(count):
            log.debug("%s %s tracing=%s trial %d/%d", spec.name, framework, tracing, i + 1, count)
            with open_session(backend, executable, tracing=tracing) as session:
                page = session.new_page()
                _attach_console(backend, page, collector)
                samples.record(run_trial(session, page, spec, framework, tracing=tracing, settings=settings, settle=settle))
                _collect_console(backend, spec, session, page, collector, settings)
    else:
        with open_session(backend, executable, tracing=tracing) as session:
            page = session.new_page()
            _attach_console(backend, page, collector)
            for i in range(count):
                log.debug("%s %s tracing=%s trial %d/%d", spec.name, framework, tracing, i + 1, count)
                samples.record(run_trial(session, page, spec, framework, tracing=tracing, settings=settings, settle=settle))
            if spec.batch_trace and tracing:
                for duration in click_to_paint_series_ms(session.stop_trace_capture()):
                    samples.timeline.add(duration)
            if spec.console_compensation and not tracing:
                compensate_console_delivery(
                    session, page, spec, framework, collector, settings=settings, settle=settle
                )
            _collect_console(backend, spec, session, page, collector, settings)

    samples.client = collector.to_values()
    if tracing:
        samples.timeline.require_count(count, "timeline samples")
    if spec.collect_task_metrics:
        samples.task.require_count(count, "task samples")
    return samples


def run_framework(
    backend: Backend,
    spec: RunnerSpec,
    executable: str,
    framework: str,
    *,
    settings: Settings,
) -> BenchmarkResult:
    client: Dict[bool, Values] = {}
    task: Dict[bool, Values] = {}
    timeline = Values()
    for tracing in spec.tracing_order:
        samples = run_combination(backend, spec, executable, framework, tracing=tracing, settings=settings)
        client[tracing] = samples.client
        task[tracing] = samples.task
        if tracing:
            timeline = samples.timeline
    log.info("%s %s timeline %s", spec.name, framework, timeline.values)

    task_tracing = task[True] if spec.collect_task_metrics else None
    task_no_tracing = task[False] if spec.collect_task_metrics else None
    return BenchmarkResult(
        runner=spec.name,
        framework=framework,
        client_tracing=client[True],
        client_no_tracing=client[False],
        client_factor=overhead_factor(client[True], client[False]),
        timeline=timeline,
        task_tracing=task_tracing,
        task_no_tracing=task_no_tracing,
        task_factor=(
            overhead_factor(task_tracing, task_no_tracing)
            if task_tracing is not None and task_no_tracing is not None
            else None
        ),
    )


def run_runner(spec: RunnerSpec, executable: str, *, settings: Settings) -> List[BenchmarkResult]:
    """Run every configured framework through one runner variant."""
    _load_adapters()
    backend = registry.get(spec.backend)(settings)
    return [
        run_framework(backend, spec, executable, framework, settings=settings)
        for framework in settings.frameworks
    ]


def run_all(
    specs: Sequence[RunnerSpec],
    executable: str,
    *,
    settings: Settings,
    on_runner_done: Optional[Callable[[RunnerSpec, List[BenchmarkResult]], None]] = None,
) -> List[BenchmarkResult]:
    results: List[BenchmarkResult] = []
    for spec in specs:
        runner_results = run_runner(spec, executable, settings=settings)
        if on_runner_done is not None:
            on_runner_done(spec, runner_results)
        results.extend(runner_results)
    return results
