from __future__ import annotations

import logging
import pathlib
import sys
import time
from typing import Dict, List, Sequence

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as ec
from selenium.webdriver.support.ui import WebDriverWait

from paintbench import registry
from paintbench.config import Settings
from paintbench.interfaces import CONSOLE_BROWSER_LOG
from paintbench.timeline import PERFORMANCE_LOG, TraceCapture

log = logging.getLogger(__name__)

_ELEMENT_TIMEOUT_S = 30


def build_options(executable: str, settings: Settings, *, tracing: bool) -> ChromeOptions:
    width, height = settings.window_size
    if sys.platform.startswith("linux"):
        # Chrome 95+ on Linux reports the window size in device pixels
        width *= 2
        height *= 2
    options = ChromeOptions()
    options.binary_location = executable
    options.add_argument("--disable-extensions")
    options.add_argument(f"--window-size={width},{height}")
    options.add_experimental_option("excludeSwitches", ["enable-automation"])
    logging_prefs = {"browser": "ALL"}
    if tracing:
        options.add_experimental_option(
            "perfLoggingPrefs",
            {
                "enableNetwork": True,
                "enablePage": True,
                "traceCategories": ",".join(settings.trace_categories),
            },
        )
        logging_prefs["performance"] = "ALL"
    options.set_capability("goog:loggingPrefs", logging_prefs)
    return options


class ChromedriverPage:
    def __init__(self, driver: WebDriver) -> None:
        self._driver = driver
        self._metrics_enabled = False

    def navigate(self, url: str) -> None:
        self._driver.get(url)

    def wait_for_selector(self, selector: str) -> None:
        WebDriverWait(self._driver, _ELEMENT_TIMEOUT_S).until(
            ec.presence_of_element_located((By.CSS_SELECTOR, selector))
        )

    def click(self, selector: str) -> None:
        self._driver.find_element(By.CSS_SELECTOR, selector).click()

    def wait(self, seconds: float) -> None:
        time.sleep(seconds)

    def metrics(self) -> Dict[str, float]:
        if not self._metrics_enabled:
            self._driver.execute_cdp_cmd("Performance.enable", {})
            self._metrics_enabled = True
        result = self._driver.execute_cdp_cmd("Performance.getMetrics", {})
        return {m["name"]: float(m["value"]) for m in result.get("metrics", [])}


class ChromedriverSession:
    """One chromedriver session; performance logging is fixed at launch."""

    def __init__(self, driver: WebDriver, *, tracing: bool) -> None:
        self._driver = driver
        self._tracing = tracing

    def new_page(self) -> ChromedriverPage:
        return ChromedriverPage(self._driver)

    def start_trace_capture(self, page: ChromedriverPage, path: pathlib.Path, categories: Sequence[str]) -> None:
        if not self._tracing:
            raise RuntimeError("session was launched without performance logging")
        # get_log drains the buffer; what remains belongs to this capture
        self._driver.get_log("performance")

    def stop_trace_capture(self) -> TraceCapture:
        if not self._tracing:
            raise RuntimeError("session was launched without performance logging")
        return TraceCapture(PERFORMANCE_LOG, self._driver.get_log("performance"))

    def browser_log(self) -> List[str]:
        return [entry["message"] for entry in self._driver.get_log("browser")]

    def close(self) -> None:
        self._driver.quit()


@registry.register("chromedriver")
class ChromedriverBackend:
    name = "chromedriver"
    console_source = CONSOLE_BROWSER_LOG

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def launch(self, executable: str, *, tracing: bool) -> ChromedriverSession:
        options = build_options(executable, self.settings, tracing=tracing)
        # a fixed port avoids chromedriver's port probing, which fails on some Windows hosts
        service = Service(port=self.settings.chromedriver_port)
        driver = webdriver.Chrome(service=service, options=options)
        log.debug("chromedriver session on port %d (tracing=%s)", self.settings.chromedriver_port, tracing)
        return ChromedriverSession(driver, tracing=tracing)
