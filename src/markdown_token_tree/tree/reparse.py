"""Classification of tokens whose content is re-tokenized separately.

The primary grammar treats a raw HTML block as opaque markup, yet Markdown
written between block-level tags still matters to lint rules. Such tokens are
parsed again on their own, under a grammar that cannot produce the same
construct a second time, so recursion stays bounded.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .token import Token

HTML_FLOW = "htmlFlow"


@dataclass(frozen=True)
class ReparsePlan:
    """How to re-tokenize the content of one token.

    Attributes:
        construct: Token type whose events are suppressed until it exits
        disabled_constructs: Constructs turned off for the delegated parse
    """

    construct: str
    disabled_constructs: Tuple[str, ...] = ("codeIndented", "htmlFlow")


def is_html_flow_comment(token: Token) -> bool:
    """Check whether a raw HTML block is one complete HTML comment.

    Comments are left alone: their content is not Markdown. The body rules
    follow the HTML specification, so ``--`` inside a comment is allowed.
    When the markers overlap, as in ``<!-->`` and ``<!--->``, the body is
    empty and the block counts as a comment.
    """
    text = token.text
    if token.type != HTML_FLOW:
        return False
    if not (text.startswith("<!--") and text.endswith("-->")):
        return False
    body = text[4:-3] if len(text) >= 7 else ""
    return not (body.startswith(">") or body.startswith("->") or body.endswith("-"))


def reparse_plan(token: Token) -> Optional[ReparsePlan]:
    """Return the delegated re-tokenization plan for a token, if it needs one."""
    if token.type == HTML_FLOW and not is_html_flow_comment(token):
        return ReparsePlan(HTML_FLOW)
    return None
