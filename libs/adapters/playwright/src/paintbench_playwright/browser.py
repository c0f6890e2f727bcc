from __future__ import annotations

import logging
import pathlib
from typing import Callable, Dict, Optional, Sequence, Tuple

from playwright.sync_api import Browser, ConsoleMessage, Page, Playwright, sync_playwright

from paintbench import registry
from paintbench.config import Settings
from paintbench.interfaces import CONSOLE_EVENTS
from paintbench.timeline import TRACE_FILE, TraceCapture

log = logging.getLogger(__name__)


class PlaywrightPage:
    def __init__(self, page: Page) -> None:
        self._page = page
        self._cdp = None

    def navigate(self, url: str) -> None:
        self._page.goto(url)

    def wait_for_selector(self, selector: str) -> None:
        self._page.wait_for_selector(selector)

    def click(self, selector: str) -> None:
        self._page.click(selector)

    def wait(self, seconds: float) -> None:
        # wait_for_timeout keeps dispatching page events, time.sleep would not
        self._page.wait_for_timeout(seconds * 1000.0)

    def on_console_message(self, callback: Callable[[str], None]) -> None:
        def _on_console(msg: ConsoleMessage) -> None:
            for arg in msg.args:
                callback(str(arg.json_value()))

        self._page.on("console", _on_console)

    def metrics(self) -> Dict[str, float]:
        if self._cdp is None:
            self._cdp = self._page.context.new_cdp_session(self._page)
            self._cdp.send("Performance.enable")
        result = self._cdp.send("Performance.getMetrics")
        return {m["name"]: float(m["value"]) for m in result.get("metrics", [])}


class PlaywrightSession:
    def __init__(self, playwright: Playwright, browser: Browser, viewport: Tuple[int, int]) -> None:
        self._playwright = playwright
        self._browser = browser
        self._viewport = viewport
        self._trace_path: Optional[pathlib.Path] = None

    def new_page(self) -> PlaywrightPage:
        width, height = self._viewport
        page = self._browser.new_page(viewport={"width": width, "height": height})
        return PlaywrightPage(page)

    def start_trace_capture(self, page: PlaywrightPage, path: pathlib.Path, categories: Sequence[str]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._browser.start_tracing(
            page=page._page,
            path=str(path),
            screenshots=False,
            categories=list(categories),
        )
        self._trace_path = path

    def stop_trace_capture(self) -> TraceCapture:
        if self._trace_path is None:
            raise RuntimeError("stop_trace_capture() called without start_trace_capture()")
        self._browser.stop_tracing()
        path, self._trace_path = self._trace_path, None
        return TraceCapture(TRACE_FILE, path)

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()


@registry.register("playwright")
class PlaywrightBackend:
    name = "playwright"
    console_source = CONSOLE_EVENTS

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def launch(self, executable: str, *, tracing: bool) -> PlaywrightSession:
        # Tracing is started per page, so the launch is identical either way.
        width, height = self.settings.window_size
        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(
                headless=False,
                executable_path=executable,
                ignore_default_args=["--enable-automation"],
                args=[f"--window-size={width},{height}"],
            )
        except Exception:
            playwright.stop()
            raise
        log.debug("launched %s (tracing=%s)", executable, tracing)
        return PlaywrightSession(playwright, browser, (width, height))
