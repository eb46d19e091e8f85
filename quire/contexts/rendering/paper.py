"""
Paper and margin profiles.

Paper profiles are a fixed table of physical sizes. Margin profiles are in
layout pixels (96 DPI) and clamped to [0, MAX_MARGIN_PX].
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

# Layout pixels are CSS pixels at 96 DPI
PX_TO_MM = 25.4 / 96

MAX_MARGIN_PX = 128
DEFAULT_MARGIN_PX = 24  # 0.25in
DEFAULT_PAPER = "A4"


@dataclass(frozen=True)
class PaperProfile:
    """
    Named physical paper size.

    Attributes:
        name: Profile id ("short", "A4", "legal")
        width_mm: Physical width
        height_mm: Physical height
        format_tag: Page format understood by document writers
    """

    name: str
    width_mm: float
    height_mm: float
    format_tag: str

    def __post_init__(self):
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError(f"Paper profile {self.name} must have positive dimensions")

    @property
    def width_px(self) -> float:
        return self.width_mm / PX_TO_MM

    @property
    def height_px(self) -> float:
        return self.height_mm / PX_TO_MM


PAPER_PROFILES: Mapping[str, PaperProfile] = MappingProxyType(
    {
        "short": PaperProfile("short", 215.9, 279.4, "letter"),
        "A4": PaperProfile("A4", 210.0, 297.0, "a4"),
        "legal": PaperProfile("legal", 215.9, 355.6, "legal"),
    }
)

TALLEST_PAPER = max(PAPER_PROFILES.values(), key=lambda paper: paper.height_mm)


def get_paper_profile(name: str) -> Optional[PaperProfile]:
    """Look up a paper profile by id, None if unknown."""
    return PAPER_PROFILES.get(name)


@dataclass(frozen=True)
class MarginProfile:
    """Page margins in layout pixels. Only top/bottom affect pagination."""

    top: int = DEFAULT_MARGIN_PX
    right: int = DEFAULT_MARGIN_PX
    bottom: int = DEFAULT_MARGIN_PX
    left: int = DEFAULT_MARGIN_PX

    @classmethod
    def uniform(cls, value: Any) -> "MarginProfile":
        margin = clamp_margin(value)
        return cls(top=margin, right=margin, bottom=margin, left=margin)

    def to_dict(self) -> dict:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}


def clamp_margin(value: Any, maximum: int = MAX_MARGIN_PX) -> int:
    """Round a margin to whole pixels within [0, maximum]; non-numeric becomes 0."""
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(numeric):
        return 0
    return min(max(int(round(numeric)), 0), maximum)


def _side(margins: Any, side: str) -> Any:
    if margins is None:
        return None
    if isinstance(margins, Mapping):
        return margins.get(side)
    return getattr(margins, side, None)


def resolve_page_margins(
    page_margins: Any = None,
    fallback: Optional[MarginProfile] = None,
    maximum: int = MAX_MARGIN_PX,
) -> MarginProfile:
    """
    Resolve user margins into a clamped MarginProfile.

    Sides missing from `page_margins` (a mapping or MarginProfile-like object)
    come from `fallback`.

    Args:
        page_margins: User-selected margins, possibly partial or None
        fallback: Default margins for the selected paper
        maximum: Upper clamp bound in pixels

    Returns:
        MarginProfile with every side in [0, maximum]
    """
    fallback = fallback or MarginProfile()
    sides = {}
    for side in ("top", "right", "bottom", "left"):
        value = _side(page_margins, side)
        sides[side] = clamp_margin(getattr(fallback, side) if value is None else value, maximum)
    return MarginProfile(**sides)
