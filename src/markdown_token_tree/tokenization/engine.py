"""Tokenizer engine producing enter/exit event streams.

``TokenizerEngine`` configures one markdown-it-py instance for a
``TokenizerConfig`` and instruments it so a parse yields positioned events.
The label-completion routine used for ``[`` and ``![`` constructs is held in
``engine.label_end`` and may be replaced for the duration of a parse.
"""

from typing import Dict, List, Sequence

from markdown_it import MarkdownIt

from ..shared.config import TokenizerConfig
from ..shared.logging import get_logger
from .conversion import EventStreamWriter
from .events import Event, SourceContext
from .inline import (
    PARSE_CONTEXT_ENV_KEY,
    LabelEnd,
    hook_label,
    join_text_spans,
    positioned_inline,
    track_positions,
)

# Inline rules that attempt link and image labels
LABEL_RULES = ("link", "image")


class TokenizerEngine:
    """markdown-it-py based tokenizer engine.

    Example:
        >>> engine = TokenizerEngine(TokenizerConfig())
        >>> events = engine.parse().write(["*hi*"])
    """

    def __init__(self, config: TokenizerConfig) -> None:
        self.config = config
        self.label_end = LabelEnd()
        self.logger = get_logger(__name__, component="tokenizer_engine")
        self.md = self._build()

    def _build(self) -> MarkdownIt:
        md = MarkdownIt(self.config.preset, dict(self.config.options) or None)
        for extension in self.config.extensions:
            extension(md)

        # Escapes and entities stay separate tokens
        md.disable("text_join", ignoreInvalid=True)
        md.core.ruler.at("inline", positioned_inline)

        ruler = md.inline.ruler
        for rule in list(ruler.__rules__):
            fn = rule.fn
            if rule.name in LABEL_RULES:
                fn = hook_label(self, fn, rule.name)
            ruler.at(rule.name, track_positions(fn), {"alt": rule.alt})

        if "fragments_join" in md.inline.ruler2.get_all_rules():
            rule = md.inline.ruler2.__rules__[
                md.inline.ruler2.get_all_rules().index("fragments_join")
            ]
            md.inline.ruler2.at("fragments_join", join_text_spans(rule.fn), {"alt": rule.alt})

        self.logger.debug(
            "Tokenizer engine configured",
            extra={
                "preset": self.config.preset,
                "extensions": len(self.config.extensions),
                "inline_rules": md.inline.ruler.get_active_rules(),
            }
        )
        return md

    def parse(self) -> "ParseContext":
        """Start a new parse."""
        return ParseContext(self)


class ParseContext:
    """State of one document parse."""

    def __init__(self, engine: TokenizerEngine) -> None:
        self.engine = engine
        self.source = SourceContext("")
        self.line_cursors: Dict[int, int] = {}

    def write(self, chunks: Sequence[str]) -> List[Event]:
        """Tokenize preprocessed chunks into the document's event stream.

        Args:
            chunks: Output of ``preprocess``

        Returns:
            Strictly nested enter/exit events in document order
        """
        text = "".join(chunks)
        self.source = SourceContext(text)
        self.line_cursors = {}
        tokens = self.engine.md.parse(text, {PARSE_CONTEXT_ENV_KEY: self})
        return EventStreamWriter(self.source).convert(tokens)
