"""
Styling Context

Responsibilities:
- Converts oklch()/oklab() colors to rgb() equivalents
- Resolves custom property (var()) indirection before conversion
- Produces normalized styled-tree snapshots plus the overrides that apply them

Owns: color conversion, styled-tree normalization
Never: Touches a live document directly (backends apply the overrides)
"""

from quire.contexts.styling.color import UNSUPPORTED_COLOR_FUNCTIONS, convert_color
from quire.contexts.styling.normalizer import (
    NormalizedTree,
    normalize_custom_properties,
    normalize_tree,
    replace_unsupported_colors,
    resolve_var_functions,
)
from quire.contexts.styling.styled_node import StyledNode, StyleOverride

__all__ = [
    "UNSUPPORTED_COLOR_FUNCTIONS",
    "NormalizedTree",
    "StyleOverride",
    "StyledNode",
    "convert_color",
    "normalize_custom_properties",
    "normalize_tree",
    "replace_unsupported_colors",
    "resolve_var_functions",
]
