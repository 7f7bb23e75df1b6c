"""Token tree construction and validation.

Key Components:
    Token: Tree node with absolute position, text and ordered children
    TokenList: Ordered tokens; top-level results carry ``flat_tokens``
    TokenTreeBuilder: Builds trees from event streams
    TreeValidator: Checks finished trees for structural consistency
"""

from .builder import ReparseDelegate, TokenTreeBuilder, UnbalancedEventError
from .reparse import ReparsePlan, is_html_flow_comment, reparse_plan
from .token import FrozenTokenError, Token, TokenList
from .validation import (
    TreeValidator,
    ValidationIssue,
    ValidationIssueType,
    ValidationResult,
)

__all__ = [
    "FrozenTokenError",
    "ReparseDelegate",
    "ReparsePlan",
    "Token",
    "TokenList",
    "TokenTreeBuilder",
    "TreeValidator",
    "UnbalancedEventError",
    "ValidationIssue",
    "ValidationIssueType",
    "ValidationResult",
    "is_html_flow_comment",
    "reparse_plan",
]
