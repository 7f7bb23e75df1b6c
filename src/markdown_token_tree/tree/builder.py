"""Token tree construction from event streams.

This module turns a strictly nested enter/exit event stream into an ordered
token tree plus a flat pre-order view of every token. Raw HTML blocks are
handed to a delegate that re-tokenizes their lines under a restricted grammar;
the delegated tokens are spliced in at their absolute source positions.
"""

import time
from typing import Callable, Iterable, List, Optional

from ..shared import BuildStatistics, ParseOptions, get_logger
from ..tokenization.events import Event
from .reparse import ReparsePlan, reparse_plan
from .token import Token, TokenList

# Delegate signature: (markdown, plan, line_offset, ancestor) -> TokenList
ReparseDelegate = Callable[[str, ReparsePlan, int, Token], TokenList]


class UnbalancedEventError(AssertionError):
    """Raised when an exit event has no matching open enter event."""


class TokenTreeBuilder:
    """Builds token trees from event streams.

    One builder handles one event stream at a time; nested re-tokenization
    goes through the delegate, which uses its own builder.
    """

    def __init__(
        self,
        options: Optional[ParseOptions] = None,
        delegate: Optional[ReparseDelegate] = None,
        correlation_id: Optional[str] = None,
        depth: int = 0
    ) -> None:
        """Initialize tree builder.

        Args:
            options: Parse options (freezing)
            delegate: Callable re-tokenizing content for a ReparsePlan; when
                None, tokens needing a delegated parse keep no children
            correlation_id: Optional correlation ID for request tracking
            depth: Re-tokenization depth, for log records
        """
        self.options = options or ParseOptions()
        self.delegate = delegate
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "token_tree_builder", depth)
        self.statistics = BuildStatistics()

    def build(
        self,
        events: Iterable[Event],
        line_offset: int = 0,
        ancestor: Optional[Token] = None
    ) -> TokenList:
        """Build the token tree for an event stream.

        Args:
            events: Strictly nested enter/exit events
            line_offset: Lines to add to every reported line number
            ancestor: Token enclosing the document when it is a delegated parse

        Returns:
            Top-level tokens with ``flat_tokens`` attached

        Raises:
            UnbalancedEventError: If an exit event has no matching enter
        """
        start_time = time.time()
        self.statistics = BuildStatistics()
        freeze = self.options.freeze_tokens

        self.logger.info(
            "Starting tree building",
            extra={"line_offset": line_offset, "delegated": ancestor is not None}
        )

        document = TokenList()
        flat: List[Token] = []
        history: List[Optional[Token]] = []
        current: Optional[Token] = None
        suppressing: Optional[str] = None

        for event in events:
            self.statistics.events_processed += 1

            if event.is_enter:
                if suppressing is not None:
                    self.statistics.suppressed_events += 1
                    continue

                start, end = event.start, event.end
                token = Token(
                    type=event.type,
                    start_line=start.line + line_offset,
                    start_column=start.column,
                    end_line=end.line + line_offset,
                    end_column=end.column,
                    text=event.context.slice_serialize(event.token),
                    in_html_flow=ancestor is not None,
                )
                token.parent = ancestor if current is None else current
                (document if current is None else current.children).append(token)
                flat.append(token)
                history.append(current)
                current = token
                self.statistics.tokens_created += 1

                plan = reparse_plan(token)
                if plan is not None:
                    suppressing = plan.construct
                    if self.delegate is not None:
                        delegated = self.delegate(
                            event.context.line_range(start.line, end.line),
                            plan,
                            line_offset + start.line - 1,
                            token,
                        )
                        token.children = delegated
                        flat.extend(delegated.flat_tokens)
                        self.statistics.delegated_reparses += 1
                        self.statistics.delegated_tokens += len(delegated.flat_tokens)
            else:
                if suppressing is not None and event.type == suppressing:
                    suppressing = None
                if suppressing is not None:
                    self.statistics.suppressed_events += 1
                    continue
                if current is None:
                    raise UnbalancedEventError(
                        f"Exit event for {event.type} at {event.start.line}:"
                        f"{event.start.column} has no matching enter event"
                    )
                if freeze:
                    current.freeze()
                current = history.pop()

        if current is not None:
            self.logger.warning(
                "Event stream ended with open tokens",
                extra={"open_type": current.type, "open_count": len(history)}
            )

        document.flat_tokens = flat
        if freeze:
            document.freeze()

        self.statistics.processing_time_ms = (time.time() - start_time) * 1000
        self.logger.info(
            "Tree building completed",
            extra=self.statistics.to_dict()
        )
        return document
