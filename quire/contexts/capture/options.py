"""Capture and rasterization options."""

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class RasterOptions:
    """
    Options for one call to the rasterization primitive.

    Attributes:
        cache_bust: Append a cache-busting query to fetched resources
        pixel_ratio: Raster pixels per layout pixel (oversampling)
        background_color: Color painted behind transparent regions
        skip_fonts: Do not embed web fonts (degraded retry path)
    """

    cache_bust: bool = True
    pixel_ratio: float = 2.0
    background_color: str = "#ffffff"
    skip_fonts: bool = False

    def without_fonts(self) -> "RasterOptions":
        return replace(self, skip_fonts=True)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CaptureSettings:
    """
    Capture-wide settings, loaded from export settings.

    Attributes:
        pixel_ratio: Oversampling factor passed to the rasterizer
        background_color: Background for the staged clone and the raster
        cache_bust: Whether the rasterizer busts resource caches
        blocked_at_rules: Stylesheet at-rules dropped while rasterizing
    """

    pixel_ratio: float = 2.0
    background_color: str = "#ffffff"
    cache_bust: bool = True
    blocked_at_rules: Tuple[str, ...] = ("@charset",)

    def raster_options(self) -> RasterOptions:
        return RasterOptions(
            cache_bust=self.cache_bust,
            pixel_ratio=self.pixel_ratio,
            background_color=self.background_color,
        )
