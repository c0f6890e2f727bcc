from __future__ import annotations

"""Collects the durations benchmark pages print to their console.

The framework pages measure their own run on the client side and log the
result. One collector is created per (framework, tracing-mode) combination;
it must end up holding exactly one message per trial.
"""

import logging
import queue
import re
from typing import Iterable, List

from .errors import MalformedConsoleMeasurement, MeasurementCountMismatch
from .metrics import Values

log = logging.getLogger(__name__)


def console_line_pattern(url_prefix: str) -> re.Pattern[str]:
    """Pattern for browser-log lines: source URL, anything, then a number."""
    return re.compile(r"^" + re.escape(url_prefix) + r".* (\d+(\.\d+)?)$")


class ConsoleCollector:
    def __init__(self, expected: int, url_prefix: str, *, slack: int = 1) -> None:
        # Room for `slack` extra messages so a compensation step can still
        # receive the message it discards.
        self.expected = expected
        self._pattern = console_line_pattern(url_prefix)
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=expected + slack)
        self._overflow = 0

    def push(self, text: str) -> None:
        # Called from browser event handlers, where raising would be lost;
        # overflow is counted here and reported by to_values().
        try:
            self._queue.put_nowait(text)
        except queue.Full:
            self._overflow += 1
            log.warning("console buffer full, dropping %r", text)
            return
        log.debug("console message %r", text)

    def feed_log(self, messages: Iterable[str]) -> int:
        """Push the numeric tail of every matching log line; returns the match count."""
        matched = 0
        for message in messages:
            m = self._pattern.match(message)
            if m is None:
                log.debug("ignoring log message %r", message)
                continue
            self.push(m.group(1))
            matched += 1
        return matched

    def __len__(self) -> int:
        return self._queue.qsize() + self._overflow

    def drain(self) -> List[str]:
        items: List[str] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def discard_last(self) -> None:
        if self._overflow:
            self._overflow -= 1
            return
        items = self.drain()
        if items:
            log.debug("discarding console message %r", items.pop())
        for item in items:
            self._queue.put_nowait(item)

    def to_values(self) -> Values:
        overflow, self._overflow = self._overflow, 0
        items = self.drain()
        if overflow or len(items) != self.expected:
            raise MeasurementCountMismatch("console messages", self.expected, len(items) + overflow)
        values = Values()
        for item in items:
            try:
                values.add(float(item))
            except ValueError:
                raise MalformedConsoleMeasurement(f"console message {item!r} is not a duration") from None
        return values
