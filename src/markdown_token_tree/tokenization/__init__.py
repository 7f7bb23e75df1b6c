"""Tokenizer engine producing positioned enter/exit event streams.

The engine is markdown-it-py, instrumented to report where every construct
starts and ends and to expose its link/image label completion as an
overridable routine.

Key Components:
    TokenizerEngine: Configured engine; ``parse()`` returns a ParseContext
    ParseContext: ``write(chunks)`` turns preprocessed text into events
    Event: Enter or exit marker referencing an EngineToken
    LabelEnd: Label-completion routine with ok/nok continuations
    Extension: Grammar extension applied to the markdown-it instance
"""

from .engine import ParseContext, TokenizerEngine
from .events import (
    EngineToken,
    Event,
    EventKind,
    SourceContext,
    TokenPosition,
    preprocess,
)
from .extensions import (
    CONSTRUCT_RULES,
    Extension,
    default_extensions,
    directive,
    disable,
    gfm_autolink_literal,
    gfm_footnote,
    gfm_table,
    math,
)
from .inline import LabelContext, LabelEnd

__all__ = [
    "CONSTRUCT_RULES",
    "EngineToken",
    "Event",
    "EventKind",
    "Extension",
    "LabelContext",
    "LabelEnd",
    "ParseContext",
    "SourceContext",
    "TokenPosition",
    "TokenizerEngine",
    "default_extensions",
    "directive",
    "disable",
    "gfm_autolink_literal",
    "gfm_footnote",
    "gfm_table",
    "math",
    "preprocess",
]
