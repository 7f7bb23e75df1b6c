"""Position tracking for markdown-it inline parsing.

markdown-it-py does not record where inline tokens come from. The engine
replaces the core ``inline`` rule so every inline token is parsed with a
``PositionedStateInline`` and wraps each inline rule to stamp the tokens it
pushes with a ``(start, end)`` span in the inline source. The ``[`` and ``![``
rules additionally route through the engine's label-completion routine.
"""

import string
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from markdown_it.rules_inline.state_inline import StateInline
from markdown_it.token import Token as MarkdownItToken

from .events import EngineToken, Event, EventKind, SourceContext
from .locator import InlineLocator, block_frames

if TYPE_CHECKING:
    from .engine import TokenizerEngine

# Key under which the active ParseContext is passed through markdown-it's env
PARSE_CONTEXT_ENV_KEY = "markdown_token_tree.parse_context"
SPAN_KEY = "span"
LOCATOR_KEY = "locator"

ASCII_PUNCTUATION = frozenset(string.punctuation)

RuleFunc = Callable[[StateInline, bool], bool]


class PositionedStateInline(StateInline):
    """Inline parser state that remembers where pending text started."""

    def __init__(
        self,
        src: str,
        md: Any,
        env: Any,
        out_tokens: List[MarkdownItToken],
        locator: InlineLocator,
        source_context: SourceContext
    ) -> None:
        self._pending = ""
        self.pending_start = 0
        self.pending_reclaimed_at: Optional[int] = None
        self.failed_image_at: Optional[int] = None
        self.locator = locator
        self.source_context = source_context
        super().__init__(src, md, env, out_tokens)

    @property
    def pending(self) -> str:
        return self._pending

    @pending.setter
    def pending(self, value: str) -> None:
        if value and not self._pending:
            self.pending_start = self.pos
        elif len(value) < len(self._pending):
            # Rules such as newline and linkify take back trailing pending text
            self.pending_reclaimed_at = self.pending_start + len(value)
        self._pending = value

    def pushPending(self) -> MarkdownItToken:
        token = MarkdownItToken("text", "", 0)
        token.content = self._pending
        token.level = self.pendingLevel
        token.meta[SPAN_KEY] = (self.pending_start, self.pending_start + len(self._pending))
        self.tokens.append(token)
        self._pending = ""
        return token


def _assign_spans(state: PositionedStateInline, start: int, mark: int) -> None:
    if state.pending_reclaimed_at is not None and state.pending_reclaimed_at < start:
        start = state.pending_reclaimed_at
    unspanned = [token for token in state.tokens[mark:] if SPAN_KEY not in token.meta]
    if not unspanned:
        return

    width = state.pos - start
    if (all(token.type == "text" for token in unspanned)
            and sum(len(token.content) for token in unspanned) == width):
        # Delimiter run: one text token per marker group, laid out in order
        offset = start
        for token in unspanned:
            token.meta[SPAN_KEY] = (offset, offset + len(token.content))
            offset += len(token.content)
        return

    for token in unspanned:
        end = state.pos
        if token.type in ("softbreak", "hardbreak"):
            newline = state.src.find("\n", start)
            if newline >= 0:
                end = min(end, newline + 1)
        token.meta[SPAN_KEY] = (start, end)


def track_positions(rule: RuleFunc) -> RuleFunc:
    """Wrap an inline rule so the tokens it pushes carry source spans."""

    @wraps(rule)
    def tracked(state: StateInline, silent: bool) -> bool:
        if silent or not isinstance(state, PositionedStateInline):
            return rule(state, silent)
        start = state.pos
        mark = len(state.tokens)
        state.pending_reclaimed_at = None
        ok = rule(state, silent)
        if ok:
            _assign_spans(state, start, mark)
        return ok

    return tracked


class LabelContext:
    """Label construct being completed, as seen by the label-completion routine.

    ``events`` lists the events recorded for the label so far: the open
    ``labelLink``/``labelImage`` enter, its markers, the label content and the
    closing ``labelEnd``. It is empty when the brackets do not form a label.
    """

    def __init__(self, state: PositionedStateInline, kind: str, rule: RuleFunc, start: int):
        self.state = state
        self.kind = kind
        self.start = start
        self._rule = rule
        self._events: Optional[List[Event]] = None

    def attempt(self) -> bool:
        """Run the underlying link or image rule."""
        return self._rule(self.state, False)

    @property
    def events(self) -> List[Event]:
        if self._events is None:
            self._events = self._label_events()
        return self._events

    def _label_end(self) -> int:
        state = self.state
        old_pos = state.pos
        if self.kind == "image":
            label_end = state.md.helpers.parseLinkLabel(state, self.start + 1, False)
        else:
            label_end = state.md.helpers.parseLinkLabel(state, self.start, True)
        state.pos = old_pos
        return label_end

    def _span(self, token_type: str, start: int, end: int) -> EngineToken:
        locator = self.state.locator
        return EngineToken(token_type, locator.locate(start), locator.locate(end, is_end=True))

    def _leaf(self, events: List[Event], token_type: str, start: int, end: int) -> None:
        token = self._span(token_type, start, end)
        context = self.state.source_context
        events.append(Event(EventKind.ENTER, token, context))
        events.append(Event(EventKind.EXIT, token, context))

    def _label_events(self) -> List[Event]:
        label_end = self._label_end()
        if label_end < 0:
            return []

        src = self.state.src
        context = self.state.source_context
        events: List[Event] = []
        start = self.start

        if self.kind == "image":
            label = self._span("labelImage", start, label_end + 1)
            events.append(Event(EventKind.ENTER, label, context))
            self._leaf(events, "labelImageMarker", start, start + 1)
            self._leaf(events, "labelMarker", start + 1, start + 2)
            index = start + 2
        else:
            label = self._span("labelLink", start, label_end + 1)
            events.append(Event(EventKind.ENTER, label, context))
            self._leaf(events, "labelMarker", start, start + 1)
            index = start + 1

        content_start = index
        while index < label_end:
            char = src[index]
            if char == "\\" and index + 1 < label_end and src[index + 1] in ASCII_PUNCTUATION:
                token_type, end = "characterEscape", index + 2
            elif char == "\n":
                token_type, end = "lineEnding", index + 1
            elif char in " \t" and index > content_start and src[index - 1] == "\n":
                token_type, end = "linePrefix", index + 1
                while end < label_end and src[end] in " \t":
                    end += 1
            else:
                token_type, end = "data", index + 1
                while end < label_end and src[end] != "\n" and not (
                    src[end] == "\\" and end + 1 < label_end
                    and src[end + 1] in ASCII_PUNCTUATION
                ):
                    end += 1
            self._leaf(events, token_type, index, end)
            index = end

        closing = self._span("labelEnd", label_end, label_end + 1)
        events.append(Event(EventKind.ENTER, closing, context))
        self._leaf(events, "labelMarker", label_end, label_end + 1)
        events.append(Event(EventKind.EXIT, closing, context))
        return events


class LabelEnd:
    """Default label-completion routine.

    Completes the construct when the underlying rule succeeds and takes the
    failure continuation otherwise.
    """

    def tokenize(self, context: LabelContext, ok: Callable[[], bool],
                 nok: Callable[[], bool]) -> bool:
        return ok() if context.attempt() else nok()


def hook_label(engine: "TokenizerEngine", rule: RuleFunc, kind: str) -> RuleFunc:
    """Route a link or image rule through ``engine.label_end``."""
    opener = "![" if kind == "image" else "["

    @wraps(rule)
    def hooked(state: StateInline, silent: bool) -> bool:
        if (silent or not isinstance(state, PositionedStateInline)
                or not state.src.startswith(opener, state.pos)):
            return rule(state, silent)
        start = state.pos
        if kind == "link" and state.failed_image_at is not None \
                and state.failed_image_at == start - 1:
            # The brackets of a failed ![label] were already reported
            return rule(state, silent)
        context = LabelContext(state, kind, rule, start)
        ok = engine.label_end.tokenize(context, lambda: True, lambda: False)
        if not ok and kind == "image":
            state.failed_image_at = start
        return ok

    return hooked


def join_text_spans(rule: Callable[[StateInline], Any]) -> Callable[[StateInline], Any]:
    """Wrap ``fragments_join`` so merged text tokens keep an exact span."""

    @wraps(rule)
    def joined(state: StateInline) -> Any:
        if isinstance(state, PositionedStateInline):
            merged: List[MarkdownItToken] = []
            for token in state.tokens:
                previous = merged[-1] if merged else None
                if token.type == "text" and previous is not None and previous.type == "text":
                    previous.meta[SPAN_KEY] = _union(previous, token)
                    previous.content += token.content
                    continue
                merged.append(token)
            state.tokens[:] = merged
        return rule(state)

    return joined


def _union(first: MarkdownItToken, second: MarkdownItToken) -> Optional[Tuple[int, int]]:
    first_span = first.meta.get(SPAN_KEY)
    second_span = second.meta.get(SPAN_KEY)
    if not first.content or first_span is None:
        return second_span
    if not second.content or second_span is None:
        return first_span
    return (first_span[0], second_span[1])


def positioned_inline(state: Any) -> None:
    """Core rule parsing every ``inline`` block token with position tracking."""
    parse_context = state.env.get(PARSE_CONTEXT_ENV_KEY)
    frames = block_frames(state.tokens, parse_context.source) if parse_context else []
    md = state.md

    for index, token in enumerate(state.tokens):
        if token.type != "inline":
            continue
        if token.children is None:
            token.children = []
        if parse_context is None or token.map is None:
            md.inline.parse(token.content, md, state.env, token.children)
            continue

        locator = InlineLocator(
            parse_context.source,
            token.content,
            token.map[0] + 1,
            frames[index],
            parse_context.line_cursors,
        )
        token.meta[LOCATOR_KEY] = locator
        inline_state = PositionedStateInline(
            token.content, md, state.env, token.children, locator, parse_context.source
        )
        md.inline.tokenize(inline_state)
        for rule in md.inline.ruler2.getRules(""):
            rule(inline_state)
