"""
Interfaces for the Capture Context

Defines the two substrates the capture engine drives: a staging area that
clones, measures, and restyles the source node, and the rasterization
primitive that turns the staged clone into pixels. Node, clone, and image
handles are opaque to the engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Dict, List, Optional

from quire.contexts.capture.interception import StylesheetInterceptor
from quire.contexts.capture.options import RasterOptions
from quire.contexts.styling.styled_node import StyledNode, StyleOverride


@dataclass(frozen=True)
class NodeBox:
    """Natural content box of a node, in layout pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class ContentPadding:
    """Padding above and below the printable content area, in layout pixels."""

    top: float
    bottom: float


class CaptureStage(ABC):
    """
    Staging area for a detached, mutable copy of the node being exported.

    Implementations own the off-screen container; staged() must remove it on
    every exit path.
    """

    @abstractmethod
    async def measure(self, node: Any) -> NodeBox:
        """Return the natural content box of the source node."""

    @abstractmethod
    def staged(self, node: Any) -> AsyncContextManager[Any]:
        """
        Mount a deep clone of `node` in an off-screen, aria-hidden container.

        Yields:
            Handle to the clone. The container is unmounted on exit.
        """

    @abstractmethod
    async def force_dimensions(self, clone: Any, width: float, height: float) -> None:
        """Pin the clone to explicit pixel dimensions."""

    @abstractmethod
    async def snapshot(self, clone: Any) -> StyledNode:
        """Snapshot the clone subtree's styles as a StyledNode tree."""

    @abstractmethod
    async def outer_scopes(self) -> List[StyledNode]:
        """Snapshot the document root and body (own properties only, no children)."""

    @abstractmethod
    async def inline_custom_properties(self, clone: Any, properties: Dict[str, str]) -> None:
        """Define custom properties on the clone's container with !important."""

    @abstractmethod
    async def apply_overrides(self, clone: Any, overrides: List[StyleOverride]) -> None:
        """Apply normalization overrides to the clone, in order."""

    @abstractmethod
    async def images(self, clone: Any) -> List[Any]:
        """Return handles to every embedded raster image in the clone."""

    @abstractmethod
    async def wait_for_image(self, image: Any) -> bool:
        """
        Wait until an image has loaded or failed.

        Returns:
            True if the image loaded, False if it failed to load
        """

    @abstractmethod
    async def content_padding(
        self, node: Any, selector: Optional[str] = None
    ) -> Optional[ContentPadding]:
        """
        Read the top/bottom padding of the printable content node.

        Args:
            node: Source node
            selector: CSS selector of the printable area within `node` (None = node itself)

        Returns:
            ContentPadding, or None if it cannot be determined
        """


class Rasterizer(ABC):
    """Interface for the rasterization primitive."""

    @abstractmethod
    async def capture(
        self,
        node: Any,
        options: RasterOptions,
        interceptor: Optional[StylesheetInterceptor] = None,
    ) -> bytes:
        """
        Rasterize a staged node.

        Args:
            node: Staged clone handle
            options: Raster options for this attempt
            interceptor: Stylesheet interception active only during this call

        Returns:
            PNG bytes

        Raises:
            Exception: If rasterization fails
        """
