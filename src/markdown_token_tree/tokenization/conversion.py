"""Conversion of markdown-it token streams into positioned events."""

import re
from typing import Dict, List, Optional, Sequence

from .events import EngineToken, Event, EventKind, SourceContext, TokenPosition
from .inline import LOCATOR_KEY, SPAN_KEY
from .locator import ContentFrame, InlineLocator, block_frames, first_nonspace

# markdown-it token names (without _open/_close) and the event types they become
TOKEN_TYPES: Dict[str, str] = {
    "blockquote": "blockQuote",
    "bullet_list": "listUnordered",
    "code_block": "codeIndented",
    "code_inline": "codeText",
    "colon_fence": "directiveContainer",
    "em": "emphasis",
    "fence": "codeFenced",
    "footnote_ref": "gfmFootnoteCall",
    "footnote_reference": "gfmFootnoteDefinition",
    "hr": "thematicBreak",
    "html_block": "htmlFlow",
    "html_inline": "htmlText",
    "image": "image",
    "list_item": "listItem",
    "math_block": "mathFlow",
    "math_block_label": "mathFlow",
    "math_inline": "mathText",
    "math_inline_double": "mathText",
    "ordered_list": "listOrdered",
    "paragraph": "paragraph",
    "s": "strikethrough",
    "softbreak": "lineEnding",
    "strong": "strong",
    "table": "table",
    "tbody": "tableBody",
    "td": "tableData",
    "text": "data",
    "th": "tableHeader",
    "thead": "tableHead",
    "tr": "tableRow",
}

# Inline containers whose open/close tokens stand for their delimiter run
DELIMITED = frozenset({"em", "strong", "s"})

_SUFFIX_RE = re.compile(r"_(open|close)$")
_CAMEL_RE = re.compile(r"_([a-z0-9])")


def base_name(token) -> str:
    """markdown-it token type without its ``_open``/``_close`` suffix."""
    if token.nesting == 0:
        return token.type
    return _SUFFIX_RE.sub("", token.type)


def event_type(token, src: str = "", start: int = 0) -> str:
    """Map a markdown-it token onto its event type name.

    Args:
        token: markdown-it token
        src: Inline source the token was parsed from (for hard breaks)
        start: Offset of the token in ``src``
    """
    name = base_name(token)
    if name == "heading":
        return "atxHeading" if token.markup.startswith("#") else "setextHeading"
    if name == "link":
        if token.markup == "autolink":
            return "autolink"
        if token.markup == "linkify":
            return "literalAutolink"
        return "link"
    if name == "hardbreak":
        return "hardBreakEscape" if src[start:start + 1] == "\\" else "hardBreakTrailing"
    if name == "text_special":
        if token.info == "entity":
            return "characterReference"
        return "characterEscape" if token.content != token.markup else "data"
    if name in TOKEN_TYPES:
        return TOKEN_TYPES[name]
    return _CAMEL_RE.sub(lambda match: match.group(1).upper(), name)


class _Open:
    """Open container on the conversion stack."""

    def __init__(self, token: EngineToken, source_token, frame: ContentFrame,
                 is_block: bool):
        self.token = token
        self.source_token = source_token
        self.frame = frame
        self.is_block = is_block
        self.first_child: Optional[TokenPosition] = None
        self.last_child: Optional[TokenPosition] = None

    def add_child(self, token: EngineToken) -> None:
        if self.first_child is None:
            self.first_child = token.start
        if self.last_child is None or token.end.offset > self.last_child.offset:
            self.last_child = token.end


class EventStreamWriter:
    """Turns a parsed markdown-it token stream into an event stream."""

    def __init__(self, source: SourceContext) -> None:
        self.source = source
        self.events: List[Event] = []
        self._stack: List[_Open] = []
        self._cursor = source.point(1, 1)

    def convert(self, tokens: Sequence) -> List[Event]:
        """Convert block tokens (with their inline children) into events."""
        frames = block_frames(tokens, self.source)
        for token, frame in zip(tokens, frames):
            if token.type == "inline":
                self._inline(token)
            elif token.nesting == 1:
                self._open(event_type(token), self._block_start(token, frame), token, frame,
                           is_block=True)
            elif token.nesting == -1:
                self._close()
            else:
                start = self._block_start(token, frame)
                self._leaf(event_type(token), start, self._block_end(token) or start)
        return self.events

    def _emit(self, kind: EventKind, token: EngineToken) -> None:
        self.events.append(Event(kind, token, self.source))

    def _open(self, token_type: str, start: Optional[TokenPosition], source_token,
              frame: ContentFrame, is_block: bool) -> None:
        start = start or self._cursor
        token = EngineToken(token_type, start, start)
        self._emit(EventKind.ENTER, token)
        self._stack.append(_Open(token, source_token, frame, is_block))

    def _close(self, end: Optional[TokenPosition] = None) -> None:
        entry = self._stack.pop()
        token = entry.token
        if entry.is_block:
            end = self._block_end(entry.source_token)
            if not entry.source_token.map and entry.first_child is not None:
                # Map-less containers (table cells, footnote definitions) span their children
                token.start = entry.first_child
        if entry.last_child is not None and (end is None or entry.last_child.offset > end.offset):
            end = entry.last_child
        token.end = self._clamp(token.start, end or token.start)
        self._cursor = token.end
        if self._stack:
            self._stack[-1].add_child(token)
        self._emit(EventKind.EXIT, token)

    def _leaf(self, token_type: str, start: TokenPosition, end: TokenPosition) -> None:
        token = EngineToken(token_type, start, self._clamp(start, end))
        if self._stack:
            self._stack[-1].add_child(token)
        self._cursor = token.end
        self._emit(EventKind.ENTER, token)
        self._emit(EventKind.EXIT, token)

    @staticmethod
    def _clamp(start: TokenPosition, end: TokenPosition) -> TokenPosition:
        return end if end.offset >= start.offset else start

    def _block_start(self, token, frame: ContentFrame) -> Optional[TokenPosition]:
        if not token.map:
            return None
        line = token.map[0] + 1
        text = self.source.line(line)
        floor = min(frame.column(line), len(text))
        if token.type == "code_block":
            column = floor
        else:
            column = first_nonspace(text, floor)
            if column is None:
                column = first_nonspace(text)
            if column is None:
                column = floor
        return self.source.point(line, column + 1)

    def _block_end(self, token) -> Optional[TokenPosition]:
        if not token.map:
            return None
        first, last = token.map[0] + 1, token.map[1]
        for line in range(last, first - 1, -1):
            text = self.source.line(line).rstrip()
            if text:
                return self.source.point(line, len(text) + 1)
        return None

    def _inline(self, token) -> None:
        locator: Optional[InlineLocator] = token.meta.get(LOCATOR_KEY)
        if locator is None or not token.children:
            return
        src = token.content
        cursor = 0
        inline_stack: List[tuple] = []

        for child in token.children:
            if child.type == "text" and not child.content:
                continue
            span = child.meta.get(SPAN_KEY) if child.meta else None
            if span is None:
                found = src.find(child.content, cursor) if child.content else -1
                span = (found, found + len(child.content)) if found >= 0 else (cursor, cursor)
            name = base_name(child)

            if child.nesting == 1:
                start = span[0]
                if name in DELIMITED:
                    start = max(0, span[1] - len(child.markup))
                cursor = max(cursor, start)
                self._open(event_type(child, src, start), locator.locate(start), child,
                           self._stack[-1].frame if self._stack else ContentFrame(self.source),
                           is_block=False)
                inline_stack.append(name)
            elif child.nesting == -1:
                end = span[1]
                if name in DELIMITED:
                    end = span[0] + len(child.markup)
                cursor = max(cursor, end)
                if inline_stack:
                    inline_stack.pop()
                    self._close(locator.locate(end, is_end=True))
            else:
                cursor = max(cursor, span[1])
                self._leaf(
                    event_type(child, src, span[0]),
                    locator.locate(span[0]),
                    locator.locate(span[1], is_end=True),
                )
