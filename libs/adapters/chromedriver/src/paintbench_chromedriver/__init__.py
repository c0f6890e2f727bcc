"""Adapter package for Chrome driven through chromedriver (Selenium).

Importing the package registers the `chromedriver` backend.
"""

from .driver import ChromedriverBackend

__all__ = ["ChromedriverBackend"]
