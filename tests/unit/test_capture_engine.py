"""Unit tests for the capture engine, image settling and stylesheet interception."""

import asyncio

import pytest
from conftest import FakeNode, FakeRasterizer, FakeStage, png_bytes

from quire.contexts.capture import (
    AtRuleFilter,
    CaptureError,
    CaptureSettings,
    capture_node,
    decode_capture,
)
from quire.contexts.capture.images import settle_images
from quire.contexts.styling import StyledNode
from quire.utils.outcome import Fallback


def run(coroutine):
    return asyncio.run(coroutine)


@pytest.mark.unit
def test_capture_scale_and_size(stage, rasterizer):
    """Test the raster is oversampled by the pixel ratio."""
    node = FakeNode(width=400, height=300)

    result = run(capture_node(node, stage, rasterizer))

    assert (result.width_px, result.height_px) == (800, 600)
    assert result.capture_scale == 2.0
    assert result.image.mode == "RGB"
    assert result.warnings == []


@pytest.mark.unit
def test_clone_is_staged_and_released(stage, rasterizer):
    """Test the clone is mounted, pinned, and always unmounted."""
    run(capture_node(FakeNode(400, 300), stage, rasterizer))

    assert stage.calls[:4] == ["measure", "mount", "force_dimensions", "snapshot"]
    assert stage.calls[-1] == "unmount"
    assert stage.mounted == 0


@pytest.mark.unit
def test_short_content_forced_to_minimum_height(stage, rasterizer):
    """Test short content is raised to the minimum capture height."""
    node = FakeNode(width=400, height=500)

    result = run(capture_node(node, stage, rasterizer, min_height_px=1344))

    assert stage.clone.height == 1344
    assert result.height_px == 2688


@pytest.mark.unit
def test_tall_content_keeps_natural_height(stage, rasterizer):
    """Test the minimum never shrinks tall content."""
    run(capture_node(FakeNode(400, 3000), stage, rasterizer, min_height_px=1344))

    assert stage.clone.height == 3000


@pytest.mark.unit
def test_missing_node(stage, rasterizer):
    """Test a missing node raises before anything is staged."""
    with pytest.raises(CaptureError, match="not available"):
        run(capture_node(None, stage, rasterizer))

    assert stage.calls == []


@pytest.mark.unit
def test_retry_without_fonts(stage):
    """Test a failed first attempt retries once without embedded fonts."""
    rasterizer = FakeRasterizer(failures=[RuntimeError("font fetch failed")])

    result = run(capture_node(FakeNode(400, 300), stage, rasterizer))

    assert [options.skip_fonts for options, _ in rasterizer.calls] == [False, True]
    assert len(result.warnings) == 1
    assert "font fetch failed" in result.warnings[0]


@pytest.mark.unit
def test_both_attempts_fail(stage):
    """Test CaptureError reports both attempts and the clone is still released."""
    rasterizer = FakeRasterizer(failures=[RuntimeError("first"), ValueError("second")])

    with pytest.raises(CaptureError) as excinfo:
        run(capture_node(FakeNode(400, 300), stage, rasterizer))

    error = excinfo.value
    assert error.attempts == ["primary", "without_fonts"]
    assert [str(e) for e in error.errors] == ["first", "second"]
    assert isinstance(error.__cause__, ValueError)
    assert stage.mounted == 0


@pytest.mark.unit
def test_interceptor_is_passed_to_rasterizer(stage, rasterizer):
    """Test the at-rule filter is handed to the rasterizer, not installed globally."""
    run(capture_node(FakeNode(400, 300), stage, rasterizer))

    _, interceptor = rasterizer.calls[0]
    assert isinstance(interceptor, AtRuleFilter)
    assert interceptor.blocked == ("@charset",)


@pytest.mark.unit
def test_no_interceptor_when_nothing_blocked(stage, rasterizer):
    """Test no interceptor is used with an empty block list."""
    settings = CaptureSettings(blocked_at_rules=())

    run(capture_node(FakeNode(400, 300), stage, rasterizer, settings))

    assert rasterizer.calls[0][1] is None


@pytest.mark.unit
def test_color_overrides_applied_to_clone(stage, rasterizer):
    """Test unsupported colors on the clone are overridden before rasterizing."""
    tree = StyledNode(
        "div",
        {"color": "oklch(1 0 0)"},
        children=(StyledNode("span", inline_style="border: 1px solid oklch(0 0 0)"),),
    )

    run(capture_node(FakeNode(400, 300, tree=tree), stage, rasterizer))

    overrides = stage.clone.overrides
    assert [(o.path, o.property_name, o.value) for o in overrides] == [
        ((), "color", "rgb(255, 255, 255)"),
        ((0,), None, "border: 1px solid rgb(0, 0, 0)"),
    ]
    assert stage.calls.index("apply_overrides") < stage.calls.index("unmount")


@pytest.mark.unit
def test_outer_scope_properties_inlined(rasterizer):
    """Test unsupported root and body custom properties are converted onto the clone."""
    root = StyledNode("html", {"--accent": "oklch(1 0 0)", "--gap": "8px"})
    body = StyledNode("body", {"--rule": "1px solid oklch(0 0 0)"})
    stage = FakeStage(outer_scopes=[root, body])
    # Computed values arrive with var() already substituted
    tree = StyledNode("div", {"color": "oklch(1 0 0)"})

    run(capture_node(FakeNode(400, 300, tree=tree), stage, rasterizer))

    assert stage.clone.custom_properties == {
        "--accent": "rgb(255, 255, 255)",
        "--rule": "1px solid rgb(0, 0, 0)",
    }
    assert stage.calls.index("inline_custom_properties") < stage.calls.index("snapshot")
    assert [o.value for o in stage.clone.overrides] == ["rgb(255, 255, 255)"]


@pytest.mark.unit
def test_failed_images_do_not_block_capture(stage, rasterizer):
    """Test failed and erroring images are reported but capture proceeds."""
    node = FakeNode(400, 300, images=[True, False, RuntimeError("decode error")])

    result = run(capture_node(node, stage, rasterizer))

    assert result.height_px == 600
    assert len(result.warnings) == 2
    assert any("decode error" in warning for warning in result.warnings)


@pytest.mark.unit
def test_settle_images_waits_concurrently():
    """Test every image is awaited concurrently and outcomes keep document order."""

    class SlowStage(FakeStage):
        def __init__(self):
            super().__init__()
            self.active = 0
            self.peak = 0

        async def wait_for_image(self, image):
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(0.01)
            self.active -= 1
            return image

    stage = SlowStage()
    clone = type("Clone", (), {"source": FakeNode(10, 10, images=[True, False, True])})()

    outcomes = run(settle_images(stage, clone))

    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert outcomes[1].fallback == Fallback.TREAT_AS_SETTLED
    assert stage.peak == 3


@pytest.mark.unit
def test_decode_capture_flattens_transparency():
    """Test transparent pixels are painted with the background color."""
    data = png_bytes((4, 4), (0, 0, 0, 0), mode="RGBA")

    image = decode_capture(data, "#ffffff")

    assert image.mode == "RGB"
    assert image.getpixel((0, 0)) == (255, 255, 255)


@pytest.mark.unit
def test_at_rule_filter_installs_lowercase_prefixes():
    """Test blocked at-rules are handed to the page lowercased for case-insensitive matching."""

    class Target:
        def __init__(self):
            self.calls = []

        async def evaluate(self, expression, arg=None):
            self.calls.append((expression, arg))

    target = Target()
    run(AtRuleFilter(("@CHARSET", "@Import")).install(target))

    expression, blocked = target.calls[0]
    assert blocked == ["@charset", "@import"]
    assert "toLowerCase" in expression


@pytest.mark.unit
def test_interceptor_scoped_restores_on_error():
    """Test the interceptor is restored even when the scoped block raises."""

    class Target:
        def __init__(self):
            self.scripts = []

        async def evaluate(self, expression, arg=None):
            self.scripts.append(expression)

    async def scoped_failure(target):
        async with AtRuleFilter().scoped(target):
            raise RuntimeError("rasterizer crashed")

    target = Target()
    with pytest.raises(RuntimeError):
        run(scoped_failure(target))

    assert len(target.scripts) == 2
    assert "insertRule" in target.scripts[0]
    assert "__quireInsertRule" in target.scripts[1]
