"""Markdown Token Tree.

Turns Markdown into a position-accurate token tree for lint rules: every
construct with its source span and verbatim text, diagnostic tokens for
reference links whose label is never defined, and the Markdown inside raw
HTML blocks parsed as well.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), get_events()
- Level 2: Configured parser - MarkdownTokenParser class
"""

__version__ = "0.1.0"
__author__ = "Markdown Token Tree Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import MarkdownTokenParser, get_events, parse

# Configuration classes and errors for advanced usage
from .shared.config import ConfigError, ConfigValidationError, ParseOptions, TokenizerConfig

# Core result objects for all API levels
from .tree import FrozenTokenError, Token, TokenList, UnbalancedEventError

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions (progressive disclosure entry point)
    "parse",
    "get_events",

    # Level 2: Advanced parser class
    "MarkdownTokenParser",

    # Result objects and data structures
    "Token",
    "TokenList",

    # Configuration classes for advanced usage
    "ParseOptions",
    "TokenizerConfig",

    # Errors
    "ConfigError",
    "ConfigValidationError",
    "FrozenTokenError",
    "UnbalancedEventError",
]
