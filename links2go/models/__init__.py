"""
Data models for Links2Go.

Both models live in Redis: the URL record as a hash, click events as
JSON entries of a bounded list.
"""

from .url import UrlRecord
from .click import ClickEvent

__all__ = ["UrlRecord", "ClickEvent"]
