"""Configuration classes for markdown token tree construction.

This module provides the immutable option objects that control a parse call:
``ParseOptions`` for the tree layer and ``TokenizerConfig`` for the tokenizer
engine it drives.
"""

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

# markdown-it presets the tokenizer engine can start from
SUPPORTED_PRESETS = ("commonmark", "default", "gfm-like", "zero")

# Keys accepted by ParseOptions.from_dict besides the field names themselves
_PARSE_OPTION_ALIASES = {
    "freezeTokens": "freeze_tokens",
    "shimReferences": "shim_references",
    "correlationId": "correlation_id",
}


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParseOptions:
    """Options for one parse call.

    Attributes:
        freeze_tokens: Make every returned Token and children list immutable
        shim_references: Reserved hook for treating every reference label as
            defined. Accepted and logged, but it does not change the output.
        correlation_id: Optional correlation ID attached to log records
    """

    freeze_tokens: bool = False
    shim_references: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parse options."""
        if not isinstance(self.freeze_tokens, bool):
            raise ValueError("freeze_tokens must be a bool")
        if not isinstance(self.shim_references, bool):
            raise ValueError("shim_references must be a bool")
        if self.correlation_id is not None and not isinstance(self.correlation_id, str):
            raise ValueError("correlation_id must be a string or None")

    def override(self, **kwargs: Any) -> "ParseOptions":
        """Create new options with specific overrides.

        Example:
            >>> ParseOptions().override(freeze_tokens=True).freeze_tokens
            True
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary format."""
        return {item.name: getattr(self, item.name) for item in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        """Convert options to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParseOptions":
        """Create options from a dictionary.

        Both the field names and the camelCase spellings used by markdownlint
        style configuration (``freezeTokens``, ``shimReferences``) are accepted.

        Raises:
            ConfigValidationError: For unknown keys or invalid values
        """
        if not isinstance(data, Mapping):
            raise ConfigValidationError(
                f"Parse options must be a mapping, got {type(data).__name__}"
            )

        known = {item.name for item in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _PARSE_OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigValidationError(
                    f"Unknown parse option: {key}",
                    field_name=key,
                    suggestions=sorted(known),
                )
            values[name] = value

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "ParseOptions":
        """Create options from a JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid JSON for parse options: {e}") from e
        return cls.from_dict(data)


@dataclass(frozen=True)
class TokenizerConfig:
    """Configuration of the tokenizer engine.

    Attributes:
        preset: markdown-it preset the engine starts from
        extensions: Grammar extensions applied in order. Each one is a callable
            taking the markdown-it instance, such as the factories in
            ``markdown_token_tree.tokenization.extensions`` or any markdown-it
            plugin.
        options: markdown-it option overrides (for example ``maxNesting``)
    """

    preset: str = "commonmark"
    extensions: Tuple[Callable[..., Any], ...] = ()
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate tokenizer configuration."""
        if self.preset not in SUPPORTED_PRESETS:
            raise ValueError(f"preset must be one of {list(SUPPORTED_PRESETS)}")
        if not isinstance(self.extensions, tuple):
            # Lists are convenient to pass in; store an immutable copy
            object.__setattr__(self, "extensions", tuple(self.extensions))
        for extension in self.extensions:
            if not callable(extension):
                raise ValueError(
                    f"extension must be callable, got {type(extension).__name__}"
                )
        if not isinstance(self.options, Mapping):
            raise ValueError("options must be a mapping")

    def with_extensions(self, *extensions: Callable[..., Any]) -> "TokenizerConfig":
        """Return a copy with extra extensions appended after the existing ones."""
        return replace(self, extensions=self.extensions + tuple(extensions))

    def replace_extensions(self, *extensions: Callable[..., Any]) -> "TokenizerConfig":
        """Return a copy whose extension list is exactly ``extensions``."""
        return replace(self, extensions=tuple(extensions))
