"""Tests for the tokenizer engine event streams."""

from markdown_token_tree.shared.config import TokenizerConfig
from markdown_token_tree.tokenization import (
    LabelEnd,
    TokenizerEngine,
    default_extensions,
    disable,
    preprocess,
)


def make_engine(*extensions):
    """Engine with the default extensions plus ``extensions``."""
    return TokenizerEngine(TokenizerConfig(extensions=default_extensions() + extensions))


def tokenize(markdown, *extensions):
    """Event stream for a document."""
    return make_engine(*extensions).parse().write(preprocess(markdown))


def spans(events):
    """(type, start line, start column, end line, end column) of every token."""
    return [
        (event.type, event.start.line, event.start.column, event.end.line, event.end.column)
        for event in events if event.is_enter
    ]


def types(events):
    """Token types in enter order."""
    return [event.type for event in events if event.is_enter]


class RecordingLabelEnd(LabelEnd):
    """Label-completion routine that records every attempt."""

    def __init__(self):
        self.calls = []
        self.failed_labels = []

    def tokenize(self, context, ok, nok):
        def record_failure():
            self.failed_labels.append(context.events)
            return nok()

        result = super().tokenize(context, ok, record_failure)
        self.calls.append((context.kind, result))
        return result


class TestEventStream:
    """Test event stream structure."""

    def test_events_are_strictly_nested(self) -> None:
        """Test that every exit closes the most recent open token."""
        events = tokenize("# Title\n\n> quote *with* `code`\n\n- one\n- two\n\n| a | b |\n| - | - |\n| c | d |")

        stack = []
        for event in events:
            if event.is_enter:
                stack.append(event.token)
            else:
                assert stack.pop() is event.token
        assert stack == []

    def test_end_never_precedes_start(self) -> None:
        """Test the ordering of every token span."""
        events = tokenize("Some *emphasis*  \nand a [link](/url) and \\* and &amp;\n\n    code\n")

        for event in events:
            assert event.end.offset >= event.start.offset

    def test_empty_document(self) -> None:
        """Test that an empty document has no events."""
        assert tokenize("") == []

    def test_slice_serialize_returns_source(self) -> None:
        """Test that events slice their verbatim text."""
        events = tokenize("# Title")

        heading = events[0]
        assert heading.context.slice_serialize(heading.token) == "# Title"


class TestBlockPositions:
    """Test positions of block constructs."""

    def test_atx_heading(self) -> None:
        """Test heading and its content."""
        assert spans(tokenize("# Title")) == [
            ("atxHeading", 1, 1, 1, 8),
            ("data", 1, 3, 1, 8),
        ]

    def test_setext_heading(self) -> None:
        """Test a heading underlined on the next line."""
        assert spans(tokenize("Title\n==="))[0] == ("setextHeading", 1, 1, 2, 4)

    def test_block_quote(self) -> None:
        """Test quote content columns."""
        assert spans(tokenize("> quote")) == [
            ("blockQuote", 1, 1, 1, 8),
            ("paragraph", 1, 3, 1, 8),
            ("data", 1, 3, 1, 8),
        ]

    def test_list_items(self) -> None:
        """Test bullet list and item spans."""
        result = spans(tokenize("- a\n- b"))

        assert result[0] == ("listUnordered", 1, 1, 2, 4)
        items = [span for span in result if span[0] == "listItem"]
        assert items == [("listItem", 1, 1, 1, 4), ("listItem", 2, 1, 2, 4)]

    def test_html_flow(self) -> None:
        """Test a raw HTML block spanning three lines."""
        assert spans(tokenize("<div>\nhi\n</div>")) == [("htmlFlow", 1, 1, 3, 7)]

    def test_disabled_html_flow(self) -> None:
        """Test that disabling raw HTML blocks yields a paragraph."""
        result = types(tokenize("<div>\nhi\n</div>", disable("htmlFlow")))

        assert "htmlFlow" not in result
        assert result[0] == "paragraph"
        assert "htmlText" in result


class TestInlinePositions:
    """Test positions of inline constructs."""

    def test_emphasis(self) -> None:
        """Test emphasis delimiters are part of the span."""
        assert spans(tokenize("*a*")) == [
            ("paragraph", 1, 1, 1, 4),
            ("emphasis", 1, 1, 1, 4),
            ("data", 1, 2, 1, 3),
        ]

    def test_strong(self) -> None:
        """Test strong emphasis span."""
        assert ("strong", 1, 1, 1, 6) in spans(tokenize("**a**"))

    def test_code_text(self) -> None:
        """Test inline code span."""
        assert ("codeText", 1, 1, 1, 4) in spans(tokenize("`x`"))

    def test_character_escape(self) -> None:
        """Test backslash escapes."""
        assert ("characterEscape", 1, 1, 1, 3) in spans(tokenize("\\*"))

    def test_character_reference(self) -> None:
        """Test entity references."""
        assert ("characterReference", 1, 1, 1, 6) in spans(tokenize("&amp;"))

    def test_hard_break_trailing(self) -> None:
        """Test trailing-space hard breaks."""
        result = spans(tokenize("a  \nb"))

        assert ("data", 1, 1, 1, 2) in result
        assert ("hardBreakTrailing", 1, 2, 2, 1) in result
        assert ("data", 2, 1, 2, 2) in result

    def test_literal_autolink(self) -> None:
        """Test bare URLs."""
        result = spans(tokenize("see https://example.com now"))

        assert ("literalAutolink", 1, 5, 1, 24) in result
        assert ("data", 1, 1, 1, 5) in result

    def test_line_ending_in_paragraph(self) -> None:
        """Test soft line breaks."""
        result = spans(tokenize("a\nb"))

        assert ("lineEnding", 1, 2, 2, 1) in result
        assert ("data", 2, 1, 2, 2) in result


class TestExtensions:
    """Test constructs provided by the default extensions."""

    def test_table(self) -> None:
        """Test table structure types."""
        result = types(tokenize("| a | b |\n| - | - |\n| c | d |"))

        assert result[0] == "table"
        for expected in ("tableHead", "tableRow", "tableHeader", "tableBody", "tableData"):
            assert expected in result

    def test_math(self) -> None:
        """Test inline dollar math."""
        assert "mathText" in types(tokenize("$x$"))

    def test_directive(self) -> None:
        """Test colon fence containers."""
        assert types(tokenize(":::note\ncontent\n:::"))[0] == "directiveContainer"

    def test_footnotes(self) -> None:
        """Test footnote calls and definitions."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()
        result = types(engine.parse().write(preprocess("Text[^1]\n\n[^1]: Note")))

        assert "gfmFootnoteCall" in result
        assert "gfmFootnoteDefinition" in result
        assert engine.label_end.calls == []


class TestLabelCompletion:
    """Test the overridable label-completion routine."""

    def test_routine_sees_links_and_images(self) -> None:
        """Test that each bracket construct is offered once."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()

        engine.parse().write(preprocess("[a] ![b]"))

        assert engine.label_end.calls == [("link", False), ("image", False)]

    def test_resolved_reference(self) -> None:
        """Test that a defined label completes."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()

        result = types(engine.parse().write(preprocess("[foo]: /url\n\n[foo]")))

        assert engine.label_end.calls == [("link", True)]
        assert "link" in result

    def test_failed_label_events(self) -> None:
        """Test the events recorded for a failed link label."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()

        engine.parse().write(preprocess("[foo]"))

        events = engine.label_end.failed_labels[0]
        assert spans(events) == [
            ("labelLink", 1, 1, 1, 6),
            ("labelMarker", 1, 1, 1, 2),
            ("data", 1, 2, 1, 5),
            ("labelEnd", 1, 5, 1, 6),
            ("labelMarker", 1, 5, 1, 6),
        ]

    def test_failed_image_label_events(self) -> None:
        """Test the events recorded for a failed image label."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()

        engine.parse().write(preprocess("![foo]"))

        assert types(engine.label_end.failed_labels[0]) == [
            "labelImage", "labelImageMarker", "labelMarker", "data", "labelEnd", "labelMarker",
        ]

    def test_label_spanning_lines(self) -> None:
        """Test line endings inside a label."""
        engine = make_engine()
        engine.label_end = RecordingLabelEnd()

        engine.parse().write(preprocess("[foo\nbar]"))

        assert types(engine.label_end.failed_labels[0]) == [
            "labelLink", "labelMarker", "data", "lineEnding", "data", "labelEnd", "labelMarker",
        ]

    def test_default_routine_leaves_brackets_as_text(self) -> None:
        """Test that a failed label stays literal text."""
        assert spans(tokenize("[foo]")) == [
            ("paragraph", 1, 1, 1, 6),
            ("data", 1, 1, 1, 6),
        ]
