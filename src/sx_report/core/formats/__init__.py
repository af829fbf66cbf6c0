"""Log line parsers.

Contains the SHOUTcast destination-event parser and the parser interface.
"""

from __future__ import annotations

from .base import EventParser
from .shoutcast import ShoutcastLineParser

__all__ = [
    "EventParser",
    "ShoutcastLineParser",
]
