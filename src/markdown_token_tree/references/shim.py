"""Diagnostic synthesis for unresolved reference labels.

The tokenizer engine turns a reference link or image whose label has no
definition back into literal bracket text without saying so. The shim in this
module sits in front of the engine's label-completion routine, watches its
failure continuation and records an ``undefinedReference*`` event group for
every failed label that is a plausible reference:

* ``[label]`` becomes ``undefinedReferenceShortcut``
* ``[label][]`` becomes ``undefinedReferenceCollapsed``
* ``[text][label]`` becomes ``undefinedReferenceFull``
"""

from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional

from ..shared.logging import get_logger
from ..tokenization.engine import TokenizerEngine
from ..tokenization.events import EngineToken, Event, EventKind, SourceContext
from ..tokenization.inline import LabelContext

SHORTCUT = "undefinedReferenceShortcut"
COLLAPSED = "undefinedReferenceCollapsed"
FULL = "undefinedReferenceFull"
UNDEFINED_REFERENCE = "undefinedReference"

LABEL_START_TYPES = frozenset({"labelImage", "labelLink"})
CAPTURED_TYPES = frozenset({"data", "lineEnding"})


class SyntheticGroup:
    """Pending diagnostic for one unresolved reference.

    Attributes:
        token: Outer diagnostic token; retyped and extended by later merges
        inner: ``undefinedReference`` token spanning the label that failed
        captured: Copies of the label's data and line ending events
        context: Source context the events slice from
    """

    def __init__(self, token: EngineToken, inner: EngineToken,
                 captured: List[Event], context: SourceContext) -> None:
        self.token = token
        self.inner = inner
        self.captured = captured
        self.context = context

    def events(self) -> List[Event]:
        """Materialize the group as a nested enter/exit sequence."""
        return [
            Event(EventKind.ENTER, self.token, self.context),
            Event(EventKind.ENTER, self.inner, self.context),
            *self.captured,
            Event(EventKind.EXIT, self.inner, self.context),
            Event(EventKind.EXIT, self.token, self.context),
        ]


def _copy_events(events: List[Event]) -> List[Event]:
    copies: Dict[int, EngineToken] = {}
    result = []
    for event in events:
        token = copies.get(id(event.token))
        if token is None:
            token = copies[id(event.token)] = replace(event.token)
        result.append(Event(event.kind, token, event.context))
    return result


class LabelResolutionShim:
    """Label-completion routine that reports unresolved references.

    Delegates every label to the routine it replaces and only adds behaviour
    on the failure path.
    """

    def __init__(self, original, correlation_id: Optional[str] = None) -> None:
        self.original = original
        self.groups: List[SyntheticGroup] = []
        self.logger = get_logger(__name__, correlation_id, "label_resolution_shim")

    def tokenize(self, context: LabelContext, ok: Callable[[], bool],
                 nok: Callable[[], bool]) -> bool:
        def nok_shim() -> bool:
            self.record_failure(context.events)
            return nok()

        return self.original.tokenize(context, ok, nok_shim)

    @property
    def synthetic_count(self) -> int:
        """Number of diagnostic groups that survived merging."""
        return len(self.groups)

    def synthetic_events(self) -> List[Event]:
        """All surviving groups as one event sequence, in discovery order."""
        events: List[Event] = []
        for group in self.groups:
            events.extend(group.events())
        return events

    def record_failure(self, events: List[Event]) -> None:
        """Classify one label failure against the groups found so far.

        Args:
            events: Events recorded for the failed label
        """
        index = len(events) - 1
        while index >= 0:
            event = events[index]
            if event.is_enter and event.type in LABEL_START_TYPES:
                break
            index -= 1
        if index < 0:
            return

        label_events = events[index:]
        start = events[index].start
        end = events[-1].end
        captured = [event for event in label_events if event.type in CAPTURED_TYPES]
        text = "".join(
            event.context.slice_serialize(event.token)
            for event in captured if event.is_enter
        ).strip()
        if "]" in text:
            # Nested brackets cannot be represented as one reference
            return

        previous = self.groups[-1] if self.groups else None
        adjacent = previous is not None and previous.token.end.same_place(start)

        if adjacent and not text:
            previous.token.type = COLLAPSED
            previous.token.end = end
            self.logger.debug(
                "Collapsed reference label",
                extra={"line": previous.token.start.line, "column": previous.token.start.column}
            )
            return

        if adjacent:
            self.groups.pop()
            token_type, token_start = FULL, previous.token.start
        elif text:
            token_type, token_start = SHORTCUT, start
        else:
            return

        group = SyntheticGroup(
            EngineToken(token_type, token_start, end),
            EngineToken(UNDEFINED_REFERENCE, start, end),
            _copy_events(captured),
            events[index].context,
        )
        self.groups.append(group)
        self.logger.debug(
            "Recorded unresolved reference",
            extra={"type": token_type, "line": token_start.line, "column": token_start.column}
        )


@contextmanager
def shim_label_resolution(engine: TokenizerEngine,
                          correlation_id: Optional[str] = None) -> Iterator[LabelResolutionShim]:
    """Install a label-resolution shim on ``engine`` for the enclosed block.

    The routine that was installed before is restored on every exit path,
    including exceptions, so nested installations unwind independently.

    Example:
        >>> with shim_label_resolution(engine) as shim:
        ...     events = engine.parse().write(chunks)
        >>> events += shim.synthetic_events()
    """
    previous = engine.label_end
    shim = LabelResolutionShim(previous, correlation_id)
    engine.label_end = shim
    try:
        yield shim
    finally:
        engine.label_end = previous
