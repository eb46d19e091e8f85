"""
Capture Engine

Stages a detached clone of the source node, makes it safe to rasterize, and
produces exactly one tall pixel buffer.

Steps:
1. Measure the source node's natural content box
2. Mount the clone off-screen and pin it to that box (short content is raised
   to the minimum height, so it fills at least one full page)
3. Inline outer-scope custom properties holding unsupported colors, normalized
4. Normalize unsupported colors throughout the clone
5. Wait for every image to load or fail
6. Rasterize once, retrying without embedded fonts on failure

The clone's container is released on every exit path by the stage.
"""

import io
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from PIL import Image

from quire.contexts.capture.exceptions import CaptureError
from quire.contexts.capture.images import settle_images
from quire.contexts.capture.interception import AtRuleFilter, StylesheetInterceptor
from quire.contexts.capture.interfaces import CaptureStage, Rasterizer
from quire.contexts.capture.logger import (
    log_capture_result,
    log_capture_start,
    log_raster_failure,
)
from quire.contexts.capture.options import CaptureSettings, RasterOptions
from quire.contexts.styling import (
    normalize_custom_properties,
    normalize_tree,
)
from quire.utils.outcome import Outcome


@dataclass
class CaptureResult:
    """
    Result of capturing a node.

    Attributes:
        image: RGB raster of the whole staged clone
        width_px: Raster width
        height_px: Raster height
        capture_scale: Raster pixels per layout pixel (1.0 if layout width unknown)
        warnings: Non-fatal degradations encountered during capture
    """

    image: Image.Image
    width_px: int
    height_px: int
    capture_scale: float
    warnings: List[str] = field(default_factory=list)


def raster_attempts(options: RasterOptions) -> List[Tuple[str, RasterOptions]]:
    """Ordered rasterization attempts: as configured, then without embedded fonts."""
    return [("primary", options), ("without_fonts", options.without_fonts())]


async def rasterize(
    rasterizer: Rasterizer,
    clone: Any,
    options: RasterOptions,
    interceptor: Optional[StylesheetInterceptor] = None,
) -> Outcome[bytes]:
    """
    Run the rasterization attempts in order until one succeeds.

    Returns:
        Outcome with PNG bytes; degraded when a fallback attempt was needed

    Raises:
        CaptureError: If every attempt fails
    """
    attempts = raster_attempts(options)
    errors: List[BaseException] = []

    for name, attempt_options in attempts:
        try:
            data = await rasterizer.capture(clone, attempt_options, interceptor)
        except Exception as e:
            log_raster_failure(name, e)
            errors.append(e)
            continue

        if errors:
            return Outcome.degraded(
                "rasterize",
                f"Primary capture failed, retried without embedded fonts: {errors[0]}",
                value=data,
                error=errors[0],
            )
        return Outcome.success(data)

    raise CaptureError(
        "Rasterization failed on every attempt",
        attempts=[name for name, _ in attempts],
        errors=errors,
    ) from errors[-1]


def decode_capture(data: bytes, background_color: str = "#ffffff") -> Image.Image:
    """Decode rasterizer output to an opaque RGB image."""
    image = Image.open(io.BytesIO(data))
    image.load()

    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        image = image.convert("RGBA")
        background = Image.new("RGB", image.size, background_color)
        background.paste(image, mask=image.getchannel("A"))
        return background

    return image.convert("RGB") if image.mode != "RGB" else image


async def capture_node(
    node: Any,
    stage: CaptureStage,
    rasterizer: Rasterizer,
    settings: Optional[CaptureSettings] = None,
    min_height_px: float = 0.0,
) -> CaptureResult:
    """
    Capture a node as one tall raster.

    Args:
        node: Source node handle (never mutated)
        stage: Staging area that owns the clone and its container
        rasterizer: Rasterization primitive
        settings: Capture settings (defaults: 2x oversampling, white background)
        min_height_px: Minimum layout height forced on short content

    Returns:
        CaptureResult with the raster and its capture scale

    Raises:
        CaptureError: If the node is missing or rasterization fails twice
    """
    if node is None:
        raise CaptureError("Capture node is not available.")

    settings = settings or CaptureSettings()
    interceptor = AtRuleFilter(settings.blocked_at_rules) if settings.blocked_at_rules else None
    warnings: List[str] = []

    box = await stage.measure(node)
    height = max(box.height, min_height_px)
    log_capture_start(box.width, box.height, height)

    async with stage.staged(node) as clone:
        await stage.force_dimensions(clone, box.width, height)

        scope_properties = {}
        for scope in await stage.outer_scopes():
            converted, scope_warnings = normalize_custom_properties(scope)
            scope_properties.update(converted)
            warnings.extend(scope_warnings)
        if scope_properties:
            await stage.inline_custom_properties(clone, scope_properties)

        normalized = normalize_tree(await stage.snapshot(clone))
        warnings.extend(normalized.warnings)
        if normalized.changed:
            await stage.apply_overrides(clone, normalized.overrides)

        for outcome in await settle_images(stage, clone):
            if not outcome.ok:
                warnings.append(outcome.warning)

        raster = await rasterize(rasterizer, clone, settings.raster_options(), interceptor)
        if not raster.ok:
            warnings.append(raster.warning)

    image = decode_capture(raster.value, settings.background_color)
    capture_scale = image.width / box.width if box.width else 1.0

    log_capture_result(image.width, image.height, capture_scale)
    return CaptureResult(
        image=image,
        width_px=image.width,
        height_px=image.height,
        capture_scale=capture_scale,
        warnings=list(dict.fromkeys(warnings)),
    )
