"""Token tree validation.

This module checks a finished token tree against the structural invariants a
consumer relies on: ordered spans, containment of children, consistent parent
back-references and a flat view matching a pre-order traversal.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..shared import DiagnosticSeverity, get_logger
from .token import Token, TokenList

# Diagnostic tokens appended after the document with their own spans
SYNTHETIC_PREFIX = "undefinedReference"


class ValidationIssueType(Enum):
    """Types of validation issues that can be detected."""

    POSITION = "position"
    CONTAINMENT = "containment"
    ORDERING = "ordering"
    PARENT_LINK = "parent_link"
    FLAT_VIEW = "flat_view"


@dataclass
class ValidationIssue:
    """Single validation issue with detailed information."""

    issue_type: ValidationIssueType
    severity: DiagnosticSeverity
    message: str
    token_path: Optional[str] = None
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        """Validate issue data."""
        if not self.message:
            raise ValueError("Validation issue message cannot be empty")


@dataclass
class ValidationResult:
    """Validation result with detailed findings."""

    success: bool = True
    issues: List[ValidationIssue] = field(default_factory=list)
    rules_checked: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    tokens_validated: int = 0

    @property
    def error_count(self) -> int:
        """Get number of error-level issues."""
        return len([
            issue for issue in self.issues
            if issue.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ])

    @property
    def warning_count(self) -> int:
        """Get number of warning-level issues."""
        return len([
            issue for issue in self.issues
            if issue.severity == DiagnosticSeverity.WARNING
        ])

    def get_issues_by_type(self, issue_type: ValidationIssueType) -> List[ValidationIssue]:
        """Get validation issues of specific type."""
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    def get_issues_by_severity(self, severity: DiagnosticSeverity) -> List[ValidationIssue]:
        """Get validation issues of specific severity."""
        return [issue for issue in self.issues if issue.severity == severity]


def _start(token: Token) -> tuple:
    return (token.start_line, token.start_column)


def _end(token: Token) -> tuple:
    return (token.end_line, token.end_column)


def _position(token: Token) -> Dict[str, int]:
    return {"line": token.start_line, "column": token.start_column}


class TreeValidator:
    """Checks token trees for structural consistency.

    Span ordering and parent links are errors; containment and sibling order
    are reported as warnings because delegated re-tokenization and synthetic
    diagnostics legitimately relax them at the top level.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize tree validator.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_validator")

    def validate(self, tokens: Sequence[Token]) -> ValidationResult:
        """Validate a top-level token sequence.

        Args:
            tokens: Result of a parse, ideally carrying ``flat_tokens``

        Returns:
            ValidationResult with findings
        """
        start_time = time.time()
        result = ValidationResult()

        self.logger.info("Starting tree validation", extra={"top_level_tokens": len(tokens)})

        traversal: List[Token] = []
        self._validate_siblings(tokens, None, "", result, top_level=True)
        for index, token in enumerate(tokens):
            self._validate_token(token, f"{token.type}[{index}]", result, traversal)
        result.rules_checked.extend(["position", "containment", "ordering", "parent_link"])

        if isinstance(tokens, TokenList) and tokens.flat_tokens:
            self._validate_flat_view(tokens.flat_tokens, traversal, result)
            result.rules_checked.append("flat_view")

        result.tokens_validated = len(traversal)
        result.processing_time_ms = (time.time() - start_time) * 1000
        if result.error_count > 0:
            result.success = False

        self.logger.info(
            "Tree validation completed",
            extra={
                "success": result.success,
                "error_count": result.error_count,
                "warning_count": result.warning_count,
                "processing_time_ms": result.processing_time_ms
            }
        )
        return result

    def _validate_token(self, token: Token, path: str, result: ValidationResult,
                        traversal: List[Token]) -> None:
        traversal.append(token)

        if _end(token) < _start(token):
            result.issues.append(ValidationIssue(
                issue_type=ValidationIssueType.POSITION,
                severity=DiagnosticSeverity.ERROR,
                message=f"Token {token.type} ends before it starts",
                token_path=path,
                position=_position(token)
            ))

        for child in token.children:
            if child.parent is not token:
                result.issues.append(ValidationIssue(
                    issue_type=ValidationIssueType.PARENT_LINK,
                    severity=DiagnosticSeverity.ERROR,
                    message=f"Child {child.type} does not reference {token.type} as parent",
                    token_path=path,
                    position=_position(child)
                ))
            if _start(child) < _start(token) or _end(child) > _end(token):
                result.issues.append(ValidationIssue(
                    issue_type=ValidationIssueType.CONTAINMENT,
                    severity=DiagnosticSeverity.WARNING,
                    message=f"Child {child.type} extends outside {token.type}",
                    token_path=path,
                    position=_position(child)
                ))

        self._validate_siblings(token.children, token, path, result, top_level=False)
        for index, child in enumerate(token.children):
            self._validate_token(child, f"{path}/{child.type}[{index}]", result, traversal)

    def _validate_siblings(self, siblings: Sequence[Token], parent: Optional[Token],
                           path: str, result: ValidationResult, top_level: bool) -> None:
        previous: Optional[Token] = None
        for sibling in siblings:
            if top_level and sibling.type.startswith(SYNTHETIC_PREFIX):
                continue
            if previous is not None and _start(sibling) < _end(previous):
                result.issues.append(ValidationIssue(
                    issue_type=ValidationIssueType.ORDERING,
                    severity=DiagnosticSeverity.WARNING,
                    message=f"Token {sibling.type} overlaps preceding {previous.type}",
                    token_path=path or None,
                    position=_position(sibling),
                    details={"parent": parent.type if parent is not None else None}
                ))
            previous = sibling

    def _validate_flat_view(self, flat: Sequence[Token], traversal: List[Token],
                            result: ValidationResult) -> None:
        if len(flat) != len(traversal) or any(a is not b for a, b in zip(flat, traversal)):
            result.issues.append(ValidationIssue(
                issue_type=ValidationIssueType.FLAT_VIEW,
                severity=DiagnosticSeverity.ERROR,
                message="Flat token view does not match a pre-order traversal",
                details={"flat_tokens": len(flat), "tree_tokens": len(traversal)}
            ))
