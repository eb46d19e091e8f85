"""
Capture Context

Responsibilities:
- Stages a detached clone of the preview node off-screen
- Normalizes colors on the clone before rasterizing
- Waits for embedded images to settle
- Rasterizes once, retrying without embedded fonts on failure

Owns: staging lifecycle, rasterization, capture scale
Never: Mutates the source node or the live document outside the staging container
"""

from quire.contexts.capture.engine import CaptureResult, capture_node, decode_capture, rasterize
from quire.contexts.capture.exceptions import CaptureError
from quire.contexts.capture.interception import AtRuleFilter, StylesheetInterceptor
from quire.contexts.capture.interfaces import CaptureStage, ContentPadding, NodeBox, Rasterizer
from quire.contexts.capture.options import CaptureSettings, RasterOptions

__all__ = [
    "AtRuleFilter",
    "CaptureError",
    "CaptureResult",
    "CaptureSettings",
    "CaptureStage",
    "ContentPadding",
    "NodeBox",
    "RasterOptions",
    "Rasterizer",
    "StylesheetInterceptor",
    "capture_node",
    "decode_capture",
    "rasterize",
]
