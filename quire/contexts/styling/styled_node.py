"""
Substrate-independent styled tree.

A StyledNode is a read-only snapshot of one element: its tag, the computed
style properties of interest, its inline style attribute, and its children.
Capture backends build these from a live document; the normalizer transforms
them without touching any rendering engine.

Nodes are addressed by path: the tuple of child indices from the root, so
() is the root and (0, 2) is the third child of the first child.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

NodePath = Tuple[int, ...]


@dataclass(frozen=True)
class StyledNode:
    """
    Immutable snapshot of a styled element subtree.

    Attributes:
        tag: Lowercase element name
        computed_style: Computed property name -> value (custom properties included)
        inline_style: Raw style attribute text, None when absent
        children: Child element snapshots in document order
    """

    tag: str
    computed_style: Mapping[str, str] = field(default_factory=dict)
    inline_style: Optional[str] = None
    children: Tuple["StyledNode", ...] = ()

    def get_property(self, name: str) -> str:
        """Return the trimmed computed value of a property, '' when unset."""
        return (self.computed_style.get(name) or "").strip()

    def walk(self, path: NodePath = ()) -> Iterator[Tuple[NodePath, "StyledNode"]]:
        """Yield (path, node) pairs depth-first, pre-order."""
        yield path, self
        for index, child in enumerate(self.children):
            yield from child.walk(path + (index,))

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StyledNode":
        """
        Build a tree from the nested dict shape produced by capture backends:
        {"tag": ..., "computed": {...}, "inline": ... | None, "children": [...]}.
        """
        return cls(
            tag=str(data.get("tag", "")).lower(),
            computed_style=dict(data.get("computed") or {}),
            inline_style=data.get("inline"),
            children=tuple(cls.from_dict(child) for child in data.get("children") or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "computed": dict(self.computed_style),
            "inline": self.inline_style,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class StyleOverride:
    """
    One edit needed to bring a live element in line with its normalized snapshot.

    property_name=None rewrites the whole inline style attribute; otherwise the
    named property is set with !important.
    """

    path: NodePath
    value: str
    property_name: Optional[str] = None

    @property
    def is_inline_rewrite(self) -> bool:
        return self.property_name is None

    def to_dict(self) -> Dict[str, Any]:
        return {"path": list(self.path), "property": self.property_name, "value": self.value}
