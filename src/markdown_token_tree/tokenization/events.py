"""Event stream data model produced by the tokenizer engine.

An event stream is a flat, strictly nested sequence of ``enter``/``exit``
markers. Both markers of a pair reference the same ``EngineToken``, and every
event carries the ``SourceContext`` that can slice the token's verbatim text
out of the document.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import List

# Line endings recognised when splitting a document into lines
NEWLINE_RE = re.compile(r"\r\n?|\n")
# One line and its ending
CHUNK_RE = re.compile(r"[^\r\n]*(?:\r\n?|\n)|[^\r\n]+")


class EventKind(Enum):
    """Marker kinds of the event stream."""

    ENTER = "enter"
    EXIT = "exit"


@dataclass(frozen=True)
class TokenPosition:
    """Position of a token boundary in the preprocessed document."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def same_place(self, other: "TokenPosition") -> bool:
        """Check whether two positions share line and column."""
        return self.line == other.line and self.column == other.column


@dataclass
class EngineToken:
    """Token referenced by an enter/exit event pair.

    Mutable on purpose: the engine fills in the end of container tokens after
    their children are known, and label diagnostics are retyped and extended
    after they have been recorded.
    """

    type: str
    start: TokenPosition
    end: TokenPosition


class SourceContext:
    """Preprocessed document text with slicing support for events.

    Line endings are kept as written, so offsets and slices cover ``\\r\\n``
    and ``\\r`` verbatim while lines and columns ignore them.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.lines = NEWLINE_RE.split(text)
        self._line_starts: List[int] = [0]
        for match in NEWLINE_RE.finditer(text):
            self._line_starts.append(match.end())

    @property
    def line_count(self) -> int:
        """Number of lines in the document."""
        return len(self.lines)

    def line(self, number: int) -> str:
        """Get the text of a 1-based line, or "" past the end of the document."""
        if 1 <= number <= len(self.lines):
            return self.lines[number - 1]
        return ""

    def line_range(self, first: int, last: int) -> str:
        """Get the verbatim text of lines ``first`` to ``last``, 1-based and inclusive.

        Line endings between the lines are kept; the ending after ``last`` is not.
        """
        first = max(1, first)
        last = min(last, len(self.lines))
        if first > last:
            return ""
        end = self._line_starts[last - 1] + len(self.lines[last - 1])
        return self.text[self._line_starts[first - 1]:end]

    def point(self, line: int, column: int) -> TokenPosition:
        """Build a position from a 1-based line and column, clamped to the text."""
        line = max(1, min(line, len(self.lines)))
        column = max(1, min(column, len(self.lines[line - 1]) + 1))
        return TokenPosition(line, column, self._line_starts[line - 1] + column - 1)

    def point_at(self, offset: int) -> TokenPosition:
        """Build a position from an absolute offset."""
        offset = max(0, min(offset, len(self.text)))
        index = bisect_right(self._line_starts, offset) - 1
        column = min(offset - self._line_starts[index], len(self.lines[index])) + 1
        return TokenPosition(index + 1, column, self._line_starts[index] + column - 1)

    def slice_serialize(self, token: EngineToken) -> str:
        """Return the verbatim source text spanned by a token."""
        return self.text[token.start.offset:token.end.offset]


@dataclass(frozen=True)
class Event:
    """Single enter or exit marker of the event stream."""

    kind: EventKind
    token: EngineToken
    context: SourceContext

    @property
    def type(self) -> str:
        """Type of the referenced token."""
        return self.token.type

    @property
    def start(self) -> TokenPosition:
        """Start position of the referenced token."""
        return self.token.start

    @property
    def end(self) -> TokenPosition:
        """End position of the referenced token."""
        return self.token.end

    @property
    def is_enter(self) -> bool:
        """Check whether this is an enter marker."""
        return self.kind is EventKind.ENTER


def preprocess(markdown: str) -> List[str]:
    """Split a document into line chunks.

    NUL becomes U+FFFD. Line endings (``\\n``, ``\\r\\n`` and ``\\r``) stay in
    their chunks unchanged, so token text sliced from the chunks is the
    verbatim source.

    Args:
        markdown: Source document

    Returns:
        Line chunks, each ending in its line ending except possibly the last
    """
    return CHUNK_RE.findall(markdown.replace("\x00", "\ufffd"))
