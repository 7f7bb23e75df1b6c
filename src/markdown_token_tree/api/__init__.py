"""Public parsing API.

Key Components:
    get_events: Complete event stream for a document
    parse: Token tree for a document
    MarkdownTokenParser: Configured parser for repeated use
"""

from .parser import MarkdownTokenParser, get_events, parse

__all__ = [
    "MarkdownTokenParser",
    "get_events",
    "parse",
]
