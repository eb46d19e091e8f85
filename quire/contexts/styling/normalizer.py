"""
Color Space Normalization

Rewrites every unsupported color expression in a styled tree into an rgb()
equivalent the rasterizer can paint. Works as a pure transform over
StyledNode snapshots: the input tree is never modified, and the result carries
both the normalized tree and the StyleOverride edits that apply it to a live
document.

Handles:
- Several occurrences per value, nested inside other functions
  (e.g. gradients, shadows)
- Custom property indirection: var(--x) is resolved against the node's
  computed style, following fallbacks, with cycle detection
- Conversion failures: the original text is kept and a warning is recorded
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from quire.contexts.styling.color import UNSUPPORTED_COLOR_FUNCTIONS, convert_color
from quire.contexts.styling.logger import log_normalization_result
from quire.contexts.styling.styled_node import NodePath, StyledNode, StyleOverride

PropertyLookup = Callable[[str], str]


@dataclass
class NormalizedTree:
    """
    Result of normalizing a styled tree.

    Attributes:
        node: Normalized copy of the input tree
        overrides: Edits to apply to the live tree, in application order
        warnings: Non-fatal conversion failures
    """

    node: StyledNode
    overrides: List[StyleOverride] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.overrides)


def contains_unsupported_color(
    value: Optional[str], functions: Iterable[str] = UNSUPPORTED_COLOR_FUNCTIONS
) -> bool:
    if not value or not isinstance(value, str):
        return False
    lowered = value.lower()
    return any(f"{function}(" in lowered for function in functions)


def find_function_spans(value: str, name: str) -> List[Tuple[int, int]]:
    """
    Locate balanced-parenthesis occurrences of `name(...)` in a CSS value.

    Returns (start, end) slices, end exclusive. An occurrence whose closing
    parenthesis is missing runs to the end of the string. Occurrences nested
    inside an earlier match are part of that match, not reported separately.

    Example:
        >>> find_function_spans("a oklch(0.5 0.1 calc(1 + 2)) b", "oklch")
        [(2, 28)]
    """
    spans = []
    lowered = value.lower()
    needle = f"{name.lower()}("
    index = 0

    while True:
        start = lowered.find(needle, index)
        if start == -1:
            break
        # Skip matches that are the tail of a longer identifier (e.g. "myoklch(")
        if start > 0 and (lowered[start - 1].isalnum() or lowered[start - 1] in "-_"):
            index = start + len(needle)
            continue

        depth = 0
        end = start + len(needle) - 1
        while end < len(value):
            char = value[end]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    end += 1
                    break
            end += 1

        spans.append((start, end))
        index = end

    return spans


def _split_top_level_comma(text: str) -> Tuple[str, Optional[str]]:
    """Split 'name, fallback' at the first comma outside parentheses."""
    depth = 0
    for position, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            return text[:position], text[position + 1 :]
    return text, None


def _function_arguments(value: str, start: int, end: int, name: str) -> str:
    """Text between the parentheses of the span [start, end)."""
    inner_end = end - 1 if value[end - 1 : end] == ")" else end
    return value[start + len(name) + 1 : inner_end]


def resolve_var_functions(
    value: Optional[str], lookup: PropertyLookup, seen: frozenset = frozenset()
) -> Optional[str]:
    """
    Substitute every var(--name[, fallback]) in `value`.

    Resolution uses `lookup` (the node's computed style); on a miss the declared
    fallback is used, and with neither the reference becomes ''. A variable
    already on the current resolution chain is never re-entered, which
    guarantees termination on cyclic definitions.

    Args:
        value: CSS value text
        lookup: Property name -> computed value ('' when unset)
        seen: Variables already being resolved on this chain

    Returns:
        The value with all var() references substituted
    """
    if not value or "var(" not in value:
        return value

    parts = []
    index = 0
    for start, end in find_function_spans(value, "var"):
        parts.append(value[index:start])
        name, fallback = _split_top_level_comma(_function_arguments(value, start, end, "var"))
        name = name.strip()
        fallback = fallback.strip() if fallback is not None else None

        if name in seen:
            resolved = resolve_var_functions(fallback, lookup, seen) if fallback else ""
        else:
            chain = seen | {name}
            raw = (lookup(name) or "").strip()
            if raw:
                resolved = resolve_var_functions(raw, lookup, chain)
            elif fallback:
                resolved = resolve_var_functions(fallback, lookup, chain)
            else:
                resolved = ""

        parts.append(resolved or "")
        index = end

    parts.append(value[index:])
    return "".join(parts)


def _unsupported_spans(value: str, functions: Iterable[str]) -> List[Tuple[int, int]]:
    spans = sorted(span for function in functions for span in find_function_spans(value, function))
    merged = []
    for start, end in spans:
        if merged and start < merged[-1][1]:
            continue
        merged.append((start, end))
    return merged


def replace_unsupported_colors(
    value: str,
    lookup: PropertyLookup,
    functions: Iterable[str] = UNSUPPORTED_COLOR_FUNCTIONS,
) -> Tuple[str, List[str]]:
    """
    Replace every unsupported color occurrence in `value` with rgb()/rgba().

    Text around the occurrences is kept verbatim. An occurrence that cannot be
    converted keeps its original, unresolved text.

    Returns:
        Tuple of (new value, warnings)

    Example:
        >>> replace_unsupported_colors("1px solid oklch(0 0 0)", lambda name: "")
        ('1px solid rgb(0, 0, 0)', [])
    """
    if not contains_unsupported_color(value, functions):
        return value, []

    parts = []
    warnings = []
    index = 0
    for start, end in _unsupported_spans(value, functions):
        parts.append(value[index:start])
        expression = value[start:end]
        outcome = convert_color(resolve_var_functions(expression, lookup))
        if outcome.ok:
            parts.append(outcome.value)
        else:
            parts.append(expression)
            warnings.append(outcome.warning)
        index = end

    parts.append(value[index:])
    return "".join(parts), warnings


def _normalize_node(
    node: StyledNode,
    path: NodePath,
    functions: Tuple[str, ...],
    overrides: List[StyleOverride],
    warnings: List[str],
) -> StyledNode:
    lookup = node.get_property

    inline_style = node.inline_style
    if contains_unsupported_color(inline_style, functions):
        replaced, inline_warnings = replace_unsupported_colors(inline_style, lookup, functions)
        warnings.extend(inline_warnings)
        if replaced != inline_style:
            overrides.append(StyleOverride(path=path, value=replaced))
            inline_style = replaced

    computed = dict(node.computed_style)
    for name, value in node.computed_style.items():
        if not contains_unsupported_color(value, functions):
            continue
        converted, value_warnings = replace_unsupported_colors(value, lookup, functions)
        warnings.extend(value_warnings)
        if converted and converted != value:
            computed[name] = converted
            overrides.append(StyleOverride(path=path, value=converted, property_name=name))

    children = tuple(
        _normalize_node(child, path + (index,), functions, overrides, warnings)
        for index, child in enumerate(node.children)
    )

    return StyledNode(
        tag=node.tag,
        computed_style=computed,
        inline_style=inline_style,
        children=children,
    )


def normalize_tree(
    root: StyledNode, functions: Iterable[str] = UNSUPPORTED_COLOR_FUNCTIONS
) -> NormalizedTree:
    """
    Normalize every unsupported color in a styled tree, depth-first pre-order.

    For each node the inline style attribute is rewritten first, then each
    computed property holding an unsupported color gets an !important override.
    Normalizing an already-normalized tree produces no overrides.

    Args:
        root: Snapshot of the subtree to normalize
        functions: Color function names the rasterizer cannot paint

    Returns:
        NormalizedTree with the new tree, overrides and warnings
    """
    overrides: List[StyleOverride] = []
    warnings: List[str] = []
    node = _normalize_node(root, (), tuple(functions), overrides, warnings)
    warnings = list(dict.fromkeys(warnings))

    log_normalization_result(node.count(), len(overrides), warnings)
    return NormalizedTree(node=node, overrides=overrides, warnings=warnings)


def normalize_custom_properties(
    scope: StyledNode, functions: Iterable[str] = UNSUPPORTED_COLOR_FUNCTIONS
) -> Tuple[Dict[str, str], List[str]]:
    """
    Convert custom properties defined at an outer scope (document root, body).

    Every custom property holding an unsupported color is converted, whether or
    not the captured subtree uses it.

    Args:
        scope: Snapshot of the outer element (only its own properties are read)
        functions: Color function names the rasterizer cannot paint

    Returns:
        Tuple of (property name -> converted value, warnings)
    """
    converted = {}
    warnings = []

    for name, value in scope.computed_style.items():
        if not name.startswith("--"):
            continue
        if not contains_unsupported_color(value, functions):
            continue
        new_value, value_warnings = replace_unsupported_colors(value, scope.get_property, functions)
        warnings.extend(value_warnings)
        if new_value and new_value != value:
            converted[name] = new_value

    return converted, warnings
