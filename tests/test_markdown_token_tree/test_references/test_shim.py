"""Tests for unresolved reference detection."""

from types import SimpleNamespace

import pytest

from markdown_token_tree.references import (
    COLLAPSED,
    FULL,
    SHORTCUT,
    UNDEFINED_REFERENCE,
    LabelResolutionShim,
    shim_label_resolution,
)
from markdown_token_tree.tokenization import EngineToken, Event, EventKind, LabelEnd, SourceContext


def label_events(context, start, end, kind="labelLink"):
    """Events recorded for a label covering offsets ``start`` to ``end``."""
    def pair(token):
        return [Event(EventKind.ENTER, token, context), Event(EventKind.EXIT, token, context)]

    events = [Event(EventKind.ENTER, EngineToken(kind, context.point_at(start), context.point_at(end)),
                    context)]
    if end - start > 2:
        events += pair(EngineToken("data", context.point_at(start + 1), context.point_at(end - 1)))
    events += pair(EngineToken("labelEnd", context.point_at(end - 1), context.point_at(end)))
    return events


def span(token):
    return (token.start.line, token.start.column, token.end.line, token.end.column)


class FakeLabelContext:
    """Label context with a fixed outcome."""

    def __init__(self, succeeds, events):
        self.succeeds = succeeds
        self.events = events

    def attempt(self):
        return self.succeeds


class TestRecordFailure:
    """Test classification of failed labels."""

    def test_shortcut(self) -> None:
        """Test a lone label."""
        context = SourceContext("[foo]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 5))

        assert shim.synthetic_count == 1
        group = shim.groups[0]
        assert group.token.type == SHORTCUT
        assert span(group.token) == (1, 1, 1, 6)
        assert group.inner.type == UNDEFINED_REFERENCE
        assert span(group.inner) == (1, 1, 1, 6)

    def test_collapsed(self) -> None:
        """Test a label followed by empty brackets."""
        context = SourceContext("[foo][]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 5))
        shim.record_failure(label_events(context, 5, 7))

        assert shim.synthetic_count == 1
        group = shim.groups[0]
        assert group.token.type == COLLAPSED
        assert span(group.token) == (1, 1, 1, 8)
        assert span(group.inner) == (1, 1, 1, 6)

    def test_full(self) -> None:
        """Test text brackets followed by a label."""
        context = SourceContext("[text][foo]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 6))
        shim.record_failure(label_events(context, 6, 11))

        assert shim.synthetic_count == 1
        group = shim.groups[0]
        assert group.token.type == FULL
        assert span(group.token) == (1, 1, 1, 12)
        assert span(group.inner) == (1, 7, 1, 12)
        assert [event.context.slice_serialize(event.token)
                for event in group.captured if event.is_enter] == ["foo"]

    def test_separated_labels_stay_shortcuts(self) -> None:
        """Test that whitespace between labels prevents merging."""
        context = SourceContext("[a] [b]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 3))
        shim.record_failure(label_events(context, 4, 7))

        assert [group.token.type for group in shim.groups] == [SHORTCUT, SHORTCUT]
        assert [span(group.token) for group in shim.groups] == [(1, 1, 1, 4), (1, 5, 1, 8)]

    def test_empty_label_alone(self) -> None:
        """Test that empty brackets are not a reference."""
        context = SourceContext("[] x")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 2))

        assert shim.synthetic_count == 0

    def test_nested_bracket_in_text(self) -> None:
        """Test that a closing bracket inside the label suppresses the diagnostic."""
        context = SourceContext("[a]b]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 5))

        assert shim.synthetic_count == 0

    def test_whitespace_only_label_is_empty(self) -> None:
        """Test that label text is stripped before classification."""
        context = SourceContext("[  ]")
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure(label_events(context, 0, 4))

        assert shim.synthetic_count == 0

    def test_no_label_start(self) -> None:
        """Test that events without a label opener are ignored."""
        context = SourceContext("abc")
        token = EngineToken("data", context.point_at(0), context.point_at(3))
        shim = LabelResolutionShim(LabelEnd())

        shim.record_failure([Event(EventKind.ENTER, token, context),
                             Event(EventKind.EXIT, token, context)])
        shim.record_failure([])

        assert shim.synthetic_count == 0

    def test_image_label(self) -> None:
        """Test that image labels are recognised."""
        context = SourceContext("![foo]")
        shim = LabelResolutionShim(LabelEnd())

        events = [Event(EventKind.ENTER,
                        EngineToken("labelImage", context.point_at(0), context.point_at(6)),
                        context)]
        data = EngineToken("data", context.point_at(2), context.point_at(5))
        events += [Event(EventKind.ENTER, data, context), Event(EventKind.EXIT, data, context)]
        shim.record_failure(events)

        assert span(shim.groups[0].token) == (1, 1, 1, 6)


class TestSyntheticEvents:
    """Test materialized diagnostic groups."""

    def test_group_event_order(self) -> None:
        """Test the nesting of one diagnostic group."""
        context = SourceContext("[foo]")
        shim = LabelResolutionShim(LabelEnd())
        shim.record_failure(label_events(context, 0, 5))

        events = shim.synthetic_events()

        assert [(event.kind, event.type) for event in events] == [
            (EventKind.ENTER, SHORTCUT),
            (EventKind.ENTER, UNDEFINED_REFERENCE),
            (EventKind.ENTER, "data"),
            (EventKind.EXIT, "data"),
            (EventKind.EXIT, UNDEFINED_REFERENCE),
            (EventKind.EXIT, SHORTCUT),
        ]

    def test_captured_events_are_copies(self) -> None:
        """Test that captured tokens are not shared with the engine's events."""
        context = SourceContext("[foo]")
        original = label_events(context, 0, 5)
        shim = LabelResolutionShim(LabelEnd())
        shim.record_failure(original)

        captured = shim.groups[0].captured
        assert captured[0].token is not original[1].token
        assert captured[0].token == original[1].token
        assert captured[0].token is captured[1].token

    def test_groups_in_discovery_order(self) -> None:
        """Test that groups are emitted in the order they were found."""
        context = SourceContext("[a] [b]")
        shim = LabelResolutionShim(LabelEnd())
        shim.record_failure(label_events(context, 0, 3))
        shim.record_failure(label_events(context, 4, 7))

        starts = [event.start.column for event in shim.synthetic_events()
                  if event.is_enter and event.type == SHORTCUT]
        assert starts == [1, 5]


class TestShimTokenize:
    """Test delegation to the wrapped routine."""

    def test_failure_is_recorded(self) -> None:
        """Test that the failure continuation records a group."""
        context = SourceContext("[foo]")
        shim = LabelResolutionShim(LabelEnd())

        result = shim.tokenize(FakeLabelContext(False, label_events(context, 0, 5)),
                               lambda: True, lambda: False)

        assert result is False
        assert shim.synthetic_count == 1

    def test_success_is_not_recorded(self) -> None:
        """Test that completed labels produce no diagnostics."""
        context = SourceContext("[foo]")
        shim = LabelResolutionShim(LabelEnd())

        result = shim.tokenize(FakeLabelContext(True, label_events(context, 0, 5)),
                               lambda: True, lambda: False)

        assert result is True
        assert shim.synthetic_count == 0


class TestShimInstallation:
    """Test scoped installation on an engine."""

    def test_installs_and_restores(self) -> None:
        """Test the routine is replaced only inside the block."""
        original = LabelEnd()
        engine = SimpleNamespace(label_end=original)

        with shim_label_resolution(engine) as shim:
            assert engine.label_end is shim
            assert shim.original is original

        assert engine.label_end is original

    def test_restores_on_exception(self) -> None:
        """Test the routine is restored when the block raises."""
        original = LabelEnd()
        engine = SimpleNamespace(label_end=original)

        with pytest.raises(RuntimeError, match="engine failure"):
            with shim_label_resolution(engine):
                raise RuntimeError("engine failure")

        assert engine.label_end is original

    def test_nested_installations_unwind(self) -> None:
        """Test that nested shims restore their own predecessor."""
        original = LabelEnd()
        engine = SimpleNamespace(label_end=original)

        with shim_label_resolution(engine) as outer:
            with shim_label_resolution(engine) as inner:
                assert inner.original is outer
                assert engine.label_end is inner
            assert engine.label_end is outer

        assert engine.label_end is original
