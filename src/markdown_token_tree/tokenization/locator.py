"""Source position recovery for markdown-it tokens.

markdown-it reports block tokens as line ranges and gives inline rules a
rewritten source (container prefixes and indentation stripped). The helpers
here map both back onto the preprocessed document.
"""

import re
from bisect import bisect_right
from typing import Dict, List, Optional, Sequence, Tuple

from .events import SourceContext, TokenPosition

LIST_MARKER_RE = re.compile(r"\d{1,9}[.)]|[-+*]")


def first_nonspace(text: str, start: int = 0) -> Optional[int]:
    """Index of the first non-blank character at or after ``start``."""
    index = start
    while index < len(text) and text[index] in " \t":
        index += 1
    return index if index < len(text) else None


class ContentFrame:
    """Column at which block content begins on each line of a container.

    The base frame is the document itself, whose content starts at column 0
    of every line.
    """

    def __init__(self, source: SourceContext, parent: Optional["ContentFrame"] = None):
        self.source = source
        self.parent = parent

    def column(self, line: int) -> int:
        """0-based index where content starts on a 1-based line."""
        return 0


class BlockQuoteFrame(ContentFrame):
    """Content after ``>`` and one optional space."""

    def column(self, line: int) -> int:
        outer = self.parent.column(line)
        text = self.source.line(line)
        index = outer
        while index < len(text) and index - outer < 3 and text[index] == " ":
            index += 1
        if text[index:index + 1] != ">":
            # Lazy continuation line
            return outer
        index += 1
        if text[index:index + 1] in (" ", "\t"):
            index += 1
        return index


class ListItemFrame(ContentFrame):
    """Content after a list marker and its following spaces."""

    def __init__(self, source: SourceContext, parent: ContentFrame, first_line: int):
        super().__init__(source, parent)
        self.first_line = first_line
        text = source.line(first_line)
        outer = parent.column(first_line)
        marker_at = first_nonspace(text, outer)
        if marker_at is None:
            self.first_column = outer
        else:
            match = LIST_MARKER_RE.match(text, marker_at)
            after = match.end() if match else marker_at
            rest = text[after:]
            spaces = len(rest) - len(rest.lstrip(" "))
            if not rest.strip() or spaces > 4:
                spaces = min(1, spaces)
            self.first_column = after + spaces
        self.indent = self.first_column - outer

    def column(self, line: int) -> int:
        if line == self.first_line:
            return self.first_column
        return min(self.parent.column(line) + self.indent, len(self.source.line(line)))


def block_frames(tokens: Sequence, source: SourceContext) -> List[ContentFrame]:
    """Compute the frame each block token lives in.

    Args:
        tokens: Block-level markdown-it token stream
        source: Document the tokens were parsed from

    Returns:
        One frame per token, aligned with ``tokens``
    """
    stack = [ContentFrame(source)]
    frames = []
    for token in tokens:
        frame = stack[-1]
        frames.append(frame)
        if token.nesting == 1:
            if token.type == "blockquote_open" and token.map:
                stack.append(BlockQuoteFrame(source, frame))
            elif token.type == "list_item_open" and token.map:
                stack.append(ListItemFrame(source, frame, token.map[0] + 1))
            else:
                stack.append(frame)
        elif token.nesting == -1 and len(stack) > 1:
            stack.pop()
    return frames


class InlineLocator:
    """Maps offsets in an inline token's content back to document positions.

    Each content line is searched for in its document line, starting at the
    container's content column or at the end of the previous match on the
    same line, so several inline tokens on one line (table cells) resolve to
    successive positions.
    """

    def __init__(
        self,
        source: SourceContext,
        content: str,
        first_line: int,
        frame: ContentFrame,
        line_cursors: Dict[int, int]
    ) -> None:
        self.source = source
        self.content = content
        self._starts: List[int] = []
        self._lines: List[Tuple[int, int]] = []

        offset = 0
        for index, piece in enumerate(content.split("\n")):
            line = first_line + index
            text = source.line(line)
            cursor = max(line_cursors.get(line, 0), min(frame.column(line), len(text)))
            found = text.find(piece, cursor)
            if found < 0:
                found = first_nonspace(text, cursor)
                if found is None:
                    found = cursor
            line_cursors[line] = found + len(piece)
            self._starts.append(offset)
            self._lines.append((line, found))
            offset += len(piece) + 1

    def locate(self, offset: int, is_end: bool = False) -> TokenPosition:
        """Convert a content offset into a document position.

        Args:
            offset: Offset into the inline content
            is_end: Whether the offset closes a span; an end that falls on the
                start of a content line is reported at column 1 of that line

        Returns:
            Document position
        """
        index = max(0, bisect_right(self._starts, offset) - 1)
        line, base = self._lines[index]
        if is_end and index > 0 and offset == self._starts[index]:
            return self.source.point(line, 1)
        return self.source.point(line, base + offset - self._starts[index] + 1)
