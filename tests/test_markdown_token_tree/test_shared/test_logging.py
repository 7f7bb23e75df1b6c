"""Tests for correlation-aware logging."""

import logging

from markdown_token_tree.shared.logging import CorrelationLogger, get_logger


class TestCorrelationLogger:
    """Test CorrelationLogger behaviour."""

    def test_get_logger_returns_adapter(self) -> None:
        """Test factory returns a configured adapter."""
        logger = get_logger("markdown_token_tree.tests", "req-1", "builder")

        assert isinstance(logger, CorrelationLogger)
        assert logger.correlation_id == "req-1"
        assert logger.component == "builder"
        assert logger.depth == 0

    def test_component_defaults_to_last_name_segment(self) -> None:
        """Test default component naming."""
        logger = get_logger("markdown_token_tree.tree.builder")

        assert logger.component == "builder"

    def test_records_carry_correlation_fields(self, caplog) -> None:
        """Test that emitted records carry structured fields."""
        logger = get_logger("markdown_token_tree.tests", "req-2", "facade")

        with caplog.at_level(logging.INFO, logger="markdown_token_tree.tests"):
            logger.info("Parse completed", extra={"total_tokens": 3})

        record = caplog.records[-1]
        assert record.component == "facade"
        assert record.correlation_id == "req-2"
        assert record.depth == 0
        assert record.total_tokens == 3

    def test_nested_logger_increments_depth(self, caplog) -> None:
        """Test loggers for delegated re-tokenization."""
        logger = get_logger("markdown_token_tree.tests", "req-3", "facade")
        nested = logger.nested("delegated_reparse")

        assert nested.depth == 1
        assert nested.correlation_id == "req-3"
        assert nested.component == "delegated_reparse"
        assert nested.nested().depth == 2

        with caplog.at_level(logging.DEBUG, logger="markdown_token_tree.tests"):
            nested.debug("Re-tokenizing token content")

        assert caplog.records[-1].depth == 1
