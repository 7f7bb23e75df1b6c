"""Unresolved reference detection.

Key Components:
    LabelResolutionShim: Label-completion routine recording diagnostic groups
    shim_label_resolution: Context manager installing a shim on one engine
"""

from .shim import (
    COLLAPSED,
    FULL,
    SHORTCUT,
    UNDEFINED_REFERENCE,
    LabelResolutionShim,
    SyntheticGroup,
    shim_label_resolution,
)

__all__ = [
    "COLLAPSED",
    "FULL",
    "SHORTCUT",
    "UNDEFINED_REFERENCE",
    "LabelResolutionShim",
    "SyntheticGroup",
    "shim_label_resolution",
]
