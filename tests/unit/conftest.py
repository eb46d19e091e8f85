"""Shared fakes for capture and rendering unit tests."""

import io
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from quire.contexts.capture.interfaces import CaptureStage, ContentPadding, NodeBox, Rasterizer
from quire.contexts.rendering.writer import DocumentWriter
from quire.contexts.styling.styled_node import StyledNode


@dataclass
class FakeNode:
    """Source node with a fixed layout box and style snapshot."""

    width: float
    height: float
    tree: StyledNode = field(default_factory=lambda: StyledNode("div"))
    images: List[Any] = field(default_factory=list)
    padding: Optional[ContentPadding] = field(default_factory=lambda: ContentPadding(0, 0))


@dataclass
class FakeClone:
    source: FakeNode
    width: float = 0.0
    height: float = 0.0
    custom_properties: Dict[str, str] = field(default_factory=dict)
    overrides: List[Any] = field(default_factory=list)


class FakeStage(CaptureStage):
    """In-memory staging area that records every call."""

    def __init__(self, outer_scopes: Optional[List[StyledNode]] = None):
        self._outer_scopes = outer_scopes or []
        self.calls: List[str] = []
        self.mounted = 0
        self.clone: Optional[FakeClone] = None

    async def measure(self, node):
        self.calls.append("measure")
        return NodeBox(node.width, node.height)

    @asynccontextmanager
    async def staged(self, node):
        self.calls.append("mount")
        self.mounted += 1
        self.clone = FakeClone(source=node)
        try:
            yield self.clone
        finally:
            self.mounted -= 1
            self.calls.append("unmount")

    async def force_dimensions(self, clone, width, height):
        self.calls.append("force_dimensions")
        clone.width = width
        clone.height = height

    async def snapshot(self, clone):
        self.calls.append("snapshot")
        return clone.source.tree

    async def outer_scopes(self):
        return list(self._outer_scopes)

    async def inline_custom_properties(self, clone, properties):
        self.calls.append("inline_custom_properties")
        clone.custom_properties.update(properties)

    async def apply_overrides(self, clone, overrides):
        self.calls.append("apply_overrides")
        clone.overrides.extend(overrides)

    async def images(self, clone):
        return list(clone.source.images)

    async def wait_for_image(self, image):
        if isinstance(image, Exception):
            raise image
        return bool(image)

    async def content_padding(self, node, selector=None):
        return node.padding


class FakeRasterizer(Rasterizer):
    """
    Rasterizer that paints the clone's forced box at the requested pixel ratio.

    `failures` lists exceptions raised by successive calls before succeeding.
    """

    def __init__(self, failures: Optional[List[Exception]] = None, color="#336699"):
        self.failures = list(failures or [])
        self.color = color
        self.calls: List[Any] = []

    async def capture(self, node, options, interceptor=None):
        self.calls.append((options, interceptor))
        if self.failures:
            raise self.failures.pop(0)
        size = (
            int(round(node.width * options.pixel_ratio)),
            int(round(node.height * options.pixel_ratio)),
        )
        return png_bytes(size, self.color)


class RecordingWriter(DocumentWriter):
    """DocumentWriter that records calls instead of writing a file."""

    def __init__(self):
        self.events: List[tuple] = []
        self.images: List[bytes] = []

    def new_document(self, format_tag):
        self.events.append(("new_document", format_tag))

    def add_page(self, format_tag, orientation="portrait"):
        self.events.append(("add_page", format_tag, orientation))

    def add_image(self, data, x_mm, y_mm, width_mm, height_mm):
        self.events.append(("add_image", x_mm, y_mm, width_mm, height_mm))
        self.images.append(data)

    def save(self, file_name):
        self.events.append(("save", str(file_name)))
        return None


def png_bytes(size, color="#336699", mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def stage():
    return FakeStage()


@pytest.fixture
def rasterizer():
    return FakeRasterizer()


@pytest.fixture
def writer():
    return RecordingWriter()
