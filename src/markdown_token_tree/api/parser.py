"""Parse facade with progressive disclosure for markdown token trees.

Level 1 is the pair of module functions ``get_events`` and ``parse``; level 2
is ``MarkdownTokenParser``, which keeps its options across calls and adds
validation and usage statistics.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..references import shim_label_resolution
from ..shared import ParseOptions, TokenizerConfig, get_logger
from ..shared.logging import CorrelationLogger
from ..tokenization import Event, TokenizerEngine, default_extensions, disable, preprocess
from ..tree import (
    ReparsePlan,
    Token,
    TokenList,
    TokenTreeBuilder,
    TreeValidator,
    ValidationResult,
)

OptionsType = Union[ParseOptions, Mapping[str, Any], None]

# Constants for API operations
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def _resolve_options(parse_options: OptionsType) -> ParseOptions:
    if parse_options is None:
        return ParseOptions()
    if isinstance(parse_options, ParseOptions):
        return parse_options
    return ParseOptions.from_dict(parse_options)


def _engine_config(tokenizer_config: TokenizerConfig) -> TokenizerConfig:
    """Return the configuration the engine runs with: defaults, then the caller's."""
    return tokenizer_config.replace_extensions(
        *default_extensions(), *tokenizer_config.extensions
    )


def _build_engine(tokenizer_config: TokenizerConfig) -> TokenizerEngine:
    return TokenizerEngine(_engine_config(tokenizer_config))


def _collect_events(
    markdown: str,
    options: ParseOptions,
    engine: TokenizerEngine,
    logger: CorrelationLogger
) -> List[Event]:
    if options.shim_references:
        logger.debug("shim_references is a reserved hook and does not change the output")

    with shim_label_resolution(engine, options.correlation_id) as shim:
        try:
            events = engine.parse().write(preprocess(markdown))
        except Exception:
            logger.exception(
                "Tokenization failed",
                extra={"input_length": len(markdown), "preset": engine.config.preset}
            )
            raise

    if shim.synthetic_count:
        logger.debug(
            "Appending unresolved reference diagnostics",
            extra={"synthetic_groups": shim.synthetic_count}
        )
    return events + shim.synthetic_events()


def get_events(
    markdown: str,
    parse_options: OptionsType = None,
    tokenizer_config: Optional[TokenizerConfig] = None
) -> List[Event]:
    """Tokenize a Markdown document into its complete event stream.

    The stream holds the engine's events followed by one group of events per
    unresolved reference label.

    Args:
        markdown: Markdown document
        parse_options: ParseOptions or a mapping accepted by ParseOptions.from_dict
        tokenizer_config: Engine configuration; default extensions are added on top

    Returns:
        Strictly nested enter/exit events

    Examples:
        >>> events = get_events("[foo]")
        >>> [event.type for event in events if event.is_enter][-3:]
        ['undefinedReferenceShortcut', 'undefinedReference', 'data']
    """
    options = _resolve_options(parse_options)
    logger = get_logger(__name__, options.correlation_id, "get_events")
    engine = _build_engine(tokenizer_config or TokenizerConfig())
    return _collect_events(markdown, options, engine, logger)


def parse(
    markdown: str,
    parse_options: OptionsType = None,
    tokenizer_config: Optional[TokenizerConfig] = None
) -> TokenList:
    """Parse a Markdown document into a token tree.

    Args:
        markdown: Markdown document
        parse_options: ParseOptions or a mapping accepted by ParseOptions.from_dict
        tokenizer_config: Engine configuration; default extensions are added on top

    Returns:
        Top-level tokens with the pre-order ``flat_tokens`` view attached

    Examples:
        >>> tokens = parse("# Title")
        >>> tokens[0].type, tokens[0].text
        ('atxHeading', '# Title')

        Frozen output:
        >>> tokens = parse("text", {"freezeTokens": True})
        >>> tokens[0].is_frozen
        True
    """
    return MarkdownTokenParser(parse_options, tokenizer_config).parse(markdown)


class MarkdownTokenParser:
    """Configured Markdown token tree parser for repeated use.

    Attributes:
        options: Parse options applied to every call
        tokenizer_config: Engine configuration applied to every call
        correlation_id: Correlation ID for request tracking

    Examples:
        >>> parser = MarkdownTokenParser({"freezeTokens": True})
        >>> tokens = parser.parse("Some *text*")
        >>> parser.validate(tokens).success
        True
    """

    def __init__(
        self,
        options: OptionsType = None,
        tokenizer_config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            options: ParseOptions or a mapping accepted by ParseOptions.from_dict
            tokenizer_config: Engine configuration (defaults to CommonMark)
            correlation_id: Optional correlation ID for request tracking
        """
        self.options = _resolve_options(options)
        self.tokenizer_config = tokenizer_config or TokenizerConfig()
        self.correlation_id = correlation_id or self.options.correlation_id
        if self.options.correlation_id != self.correlation_id:
            self.options = self.options.override(correlation_id=self.correlation_id)

        self.logger = get_logger(__name__, self.correlation_id, "markdown_token_parser")

        self._parse_count = 0
        self._total_processing_time = 0.0
        self._delegated_reparses = 0

    def events(self, markdown: str) -> List[Event]:
        """Tokenize a document into its complete event stream."""
        engine = _build_engine(self.tokenizer_config)
        return _collect_events(markdown, self.options, engine, self.logger)

    def parse(self, markdown: str) -> TokenList:
        """Parse a document into a token tree.

        Args:
            markdown: Markdown document

        Returns:
            Top-level tokens with ``flat_tokens`` attached

        Raises:
            UnbalancedEventError: If the engine produced a malformed event stream
        """
        start_time = time.time()
        self.logger.info(
            "Starting parse operation",
            extra={"input_length": len(markdown), "parse_count": self._parse_count + 1}
        )

        engines: Dict[Tuple[str, ...], TokenizerEngine] = {
            (): _build_engine(self.tokenizer_config)
        }
        tokens = self._parse_internal(markdown, (), engines, 0, None, self.logger)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        self._parse_count += 1
        self._total_processing_time += processing_time
        self.logger.info(
            "Parse completed",
            extra={
                "top_level_tokens": len(tokens),
                "total_tokens": len(tokens.flat_tokens),
                "processing_time_ms": processing_time
            }
        )
        return tokens

    def validate(self, tokens: TokenList) -> ValidationResult:
        """Check a parse result for structural consistency."""
        return TreeValidator(self.correlation_id).validate(tokens)

    def _parse_internal(
        self,
        markdown: str,
        disabled: Tuple[str, ...],
        engines: Dict[Tuple[str, ...], TokenizerEngine],
        line_offset: int,
        ancestor: Optional[Token],
        logger: CorrelationLogger
    ) -> TokenList:
        """Parse one document, or the lines of a token being re-tokenized.

        ``engines`` holds the engines of the current ``parse`` call, keyed by
        the constructs they disable; each is built on first use.
        """
        events = _collect_events(markdown, self.options, engines[disabled], logger)

        def delegate(content: str, plan: ReparsePlan, offset: int, token: Token) -> TokenList:
            self._delegated_reparses += 1
            nested = logger.nested("delegated_reparse")
            nested.debug(
                "Re-tokenizing token content",
                extra={"type": token.type, "line_offset": offset}
            )
            constructs = tuple(sorted(set(disabled) | set(plan.disabled_constructs)))
            if constructs not in engines:
                config = self.tokenizer_config.with_extensions(disable(*constructs))
                engines[constructs] = _build_engine(config)
            return self._parse_internal(content, constructs, engines, offset, token, nested)

        builder = TokenTreeBuilder(self.options, delegate, self.correlation_id, logger.depth)
        return builder.build(events, line_offset, ancestor)

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "delegated_reparses": self._delegated_reparses,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0
        self._delegated_reparses = 0

        self.logger.info("Parser statistics reset")
