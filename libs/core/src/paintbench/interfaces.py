from __future__ import annotations
import pathlib
from typing import Callable, Dict, List, Protocol, Sequence

from .timeline import TraceCapture

"""Browser automation interfaces used by adapters.

Adapters implement these Protocols and register themselves into the global
registry. The runners interact only with these interfaces, never with
Playwright or Selenium directly.
"""

CONSOLE_EVENTS = "events"
CONSOLE_BROWSER_LOG = "browser-log"


class Page(Protocol):
    """One browser tab."""
    def navigate(self, url: str) -> None: ...
    def wait_for_selector(self, selector: str) -> None: ...
    def click(self, selector: str) -> None: ...
    def wait(self, seconds: float) -> None: ...
    def metrics(self) -> Dict[str, float]: ...


class ConsoleEventPage(Page, Protocol):
    """A tab that pushes console output as it is printed (`CONSOLE_EVENTS`)."""
    def on_console_message(self, callback: Callable[[str], None]) -> None: ...


class Session(Protocol):
    """A launched browser; closing it ends the process."""
    def new_page(self) -> Page: ...
    def start_trace_capture(self, page: Page, path: pathlib.Path, categories: Sequence[str]) -> None: ...
    def stop_trace_capture(self) -> TraceCapture: ...
    def close(self) -> None: ...


class BrowserLogSession(Session, Protocol):
    """A browser whose console output is fetched afterwards (`CONSOLE_BROWSER_LOG`)."""
    def browser_log(self) -> List[str]: ...


class Backend(Protocol):
    """Launches sessions; `console_source` says how console output is read."""
    name: str
    console_source: str
    def launch(self, executable: str, *, tracing: bool) -> Session: ...
