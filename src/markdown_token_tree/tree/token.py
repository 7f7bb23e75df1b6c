"""Token tree nodes.

A ``Token`` is one parsed construct with its absolute source span, verbatim
text and ordered children. Children are owned by their parent; the parent
link is a weak back-reference. ``TokenList`` holds children and, for the
top-level result, the flat pre-order view of every token in the tree.
"""

import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional


class FrozenTokenError(TypeError):
    """Raised when frozen tokens or token lists are modified."""


def _frozen_guard(name: str) -> Callable[..., Any]:
    original = getattr(list, name)

    def guarded(self: "TokenList", *args: Any, **kwargs: Any) -> Any:
        if self._frozen:
            raise FrozenTokenError(f"Cannot call {name}() on a frozen token list")
        return original(self, *args, **kwargs)

    guarded.__name__ = name
    return guarded


class TokenList(list):
    """Ordered sequence of tokens.

    Attributes:
        flat_tokens: Every token of the tree in pre-order, including tokens
            from delegated re-tokenization. Only set on top-level results.
    """

    _frozen = False

    def __init__(self, *args: Any) -> None:
        super().__init__(*args)
        self.flat_tokens: List["Token"] = []

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise FrozenTokenError(f"Cannot set {name} on a frozen token list")
        super().__setattr__(name, value)

    append = _frozen_guard("append")
    extend = _frozen_guard("extend")
    insert = _frozen_guard("insert")
    remove = _frozen_guard("remove")
    pop = _frozen_guard("pop")
    clear = _frozen_guard("clear")
    sort = _frozen_guard("sort")
    reverse = _frozen_guard("reverse")
    __setitem__ = _frozen_guard("__setitem__")
    __delitem__ = _frozen_guard("__delitem__")
    __iadd__ = _frozen_guard("__iadd__")
    __imul__ = _frozen_guard("__imul__")

    @property
    def is_frozen(self) -> bool:
        """Check whether the list rejects modification."""
        return self._frozen

    def freeze(self) -> None:
        """Make the list (and its flat view) immutable."""
        if isinstance(self.flat_tokens, list):
            object.__setattr__(self, "flat_tokens", tuple(self.flat_tokens))
        object.__setattr__(self, "_frozen", True)

    def filter_by_types(self, *types: str) -> List["Token"]:
        """Select tokens of the given types from the flat view, in pre-order."""
        source = self.flat_tokens if self.flat_tokens else self
        wanted = set(types)
        return [token for token in source if token.type in wanted]


@dataclass(eq=False)
class Token:
    """Parsed construct with position, text and ordered children.

    Lines and columns are 1-based and absolute within the document passed to
    the top-level parse.
    """

    type: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    text: str
    children: TokenList = field(default_factory=TokenList)
    in_html_flow: bool = False

    # Class-level defaults; not dataclass fields
    _frozen = False
    _parent_ref = None

    def __post_init__(self) -> None:
        """Validate token values."""
        if not self.type:
            raise ValueError("Token type cannot be empty")
        if (self.end_line, self.end_column) < (self.start_line, self.start_column):
            raise ValueError(
                f"Token end {self.end_line}:{self.end_column} precedes start "
                f"{self.start_line}:{self.start_column}"
            )
        if not isinstance(self.children, TokenList):
            self.children = TokenList(self.children)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._frozen:
            raise FrozenTokenError(f"Cannot set {name} on a frozen {self.type} token")
        super().__setattr__(name, value)

    @property
    def parent(self) -> Optional["Token"]:
        """Enclosing token, or None at the top level.

        The link is a weak reference: it resolves only while the caller holds
        the tree (the returned ``TokenList`` or an ancestor). A token kept
        after the tree is released reports ``None``.
        """
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @parent.setter
    def parent(self, value: Optional["Token"]) -> None:
        self._parent_ref = None if value is None else weakref.ref(value)

    @property
    def is_frozen(self) -> bool:
        """Check whether the token rejects modification."""
        return self._frozen

    def freeze(self) -> None:
        """Make this token and its children list immutable."""
        self.children.freeze()
        object.__setattr__(self, "_frozen", True)

    def iter_descendants(self) -> Iterator["Token"]:
        """Iterate over all descendants in pre-order."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def find(self, token_type: str) -> Optional["Token"]:
        """Find the first descendant of the given type (pre-order)."""
        for token in self.iter_descendants():
            if token.type == token_type:
                return token
        return None

    def find_all(self, token_type: str) -> List["Token"]:
        """Find all descendants of the given type (pre-order)."""
        return [token for token in self.iter_descendants() if token.type == token_type]

    def get_depth(self) -> int:
        """Get depth of this token in the tree (top level = 0)."""
        if self.parent is None:
            return 0
        return self.parent.get_depth() + 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert the token and its children to a dictionary."""
        return {
            "type": self.type,
            "start_line": self.start_line,
            "start_column": self.start_column,
            "end_line": self.end_line,
            "end_column": self.end_column,
            "text": self.text,
            "in_html_flow": self.in_html_flow,
            "children": [child.to_dict() for child in self.children],
        }
