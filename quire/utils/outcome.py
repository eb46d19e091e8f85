"""
Result-style outcomes for pipeline steps that may degrade instead of failing.

Each step that has a fallback returns an Outcome rather than raising, and the
fallback it takes is declared up front in FALLBACK_POLICY.

Usage:
    outcome = convert_color("oklch(0.7 0.1 200)")
    if outcome.ok:
        text = outcome.value
    else:
        warnings.append(outcome.warning)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Fallback(str, Enum):
    """What a step does instead of failing the export."""

    NONE = "none"
    KEEP_ORIGINAL = "keep_original"
    TREAT_AS_SETTLED = "treat_as_settled"
    RETRY_WITHOUT_FONTS = "retry_without_fonts"
    FULL_PAGE = "full_page"
    DEFAULT_PAPER = "default_paper"
    SKIP = "skip"


# Step name -> fallback taken when that step fails
FALLBACK_POLICY = {
    "color_conversion": Fallback.KEEP_ORIGINAL,
    "image_settle": Fallback.TREAT_AS_SETTLED,
    "rasterize": Fallback.RETRY_WITHOUT_FONTS,
    "printable_height": Fallback.FULL_PAGE,
    "content_padding": Fallback.FULL_PAGE,
    "paper_size": Fallback.DEFAULT_PAPER,
    "page_slice": Fallback.SKIP,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of one pipeline step.

    Attributes:
        ok: Whether the step produced its intended value
        value: The produced value (on failure, whatever the fallback yields)
        fallback: Fallback taken, Fallback.NONE on success
        warning: Human-readable description of the degradation
        error: The exception that triggered the fallback, if any
    """

    ok: bool
    value: Optional[T] = None
    fallback: Fallback = Fallback.NONE
    warning: Optional[str] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def degraded(
        cls,
        step: str,
        warning: str,
        value: Optional[T] = None,
        error: Optional[BaseException] = None,
    ) -> "Outcome[T]":
        """Build a failed outcome using the fallback declared for `step`."""
        return cls(
            ok=False,
            value=value,
            fallback=FALLBACK_POLICY[step],
            warning=warning,
            error=error,
        )
