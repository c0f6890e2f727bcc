"""Adapter package for Playwright-driven Chromium.

Importing the package registers the `playwright` backend.
"""

from .browser import PlaywrightBackend

__all__ = ["PlaywrightBackend"]
