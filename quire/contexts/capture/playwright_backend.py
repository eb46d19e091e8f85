"""
Playwright (Chromium) capture backend.

PlaywrightStage implements CaptureStage against a live page: it clones the
preview node into an off-screen container, snapshots computed styles for the
normalizer, and applies the resulting overrides.

PlaywrightRasterizer implements Rasterizer: it serializes the staged clone
with its computed styles inlined, loads it into a fresh browser context whose
device scale factor equals the requested pixel ratio, and takes an element
screenshot.
"""

import html
import re
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import Browser, ElementHandle, Page, async_playwright

from quire.contexts.capture.interception import StylesheetInterceptor
from quire.contexts.capture.interfaces import (
    CaptureStage,
    ContentPadding,
    NodeBox,
    Rasterizer,
)
from quire.contexts.capture.logger import _log_debug
from quire.contexts.capture.options import RasterOptions
from quire.contexts.styling import UNSUPPORTED_COLOR_FUNCTIONS, StyledNode, StyleOverride

# Preview-only scaling classes stripped from the clone
PREVIEW_SCALE_CLASSES = ["scale-75", "origin-top-left", "w-[133%]", "h-[133%]"]

_PIXELS = re.compile(r"^\s*(-?\d+(?:\.\d+)?)px\s*$")

MEASURE_JS = """
(el) => {
    const rect = el.getBoundingClientRect();
    return {width: el.scrollWidth || rect.width, height: el.scrollHeight || rect.height};
}
"""

STAGE_JS = """
([el, options]) => {
    const container = document.createElement('div');
    container.setAttribute('data-quire-stage', options.stageId);
    container.setAttribute('aria-hidden', 'true');
    Object.assign(container.style, {
        position: 'fixed',
        top: '0',
        left: '0',
        width: '100%',
        height: `${options.containerHeight}px`,
        display: 'flex',
        alignItems: 'flex-start',
        justifyContent: 'center',
        padding: '32px',
        backgroundColor: options.backgroundColor,
        zIndex: '-1',
        pointerEvents: 'none',
        opacity: '0',
        overflow: 'hidden',
    });

    const clone = el.cloneNode(true);
    options.removeClasses.forEach((name) => clone.classList.remove(name));
    Object.assign(clone.style, {
        transform: 'scale(1)',
        transformOrigin: 'top left',
        margin: '0',
        boxSizing: 'border-box',
        backgroundColor: options.backgroundColor,
        maxWidth: 'unset',
        maxHeight: 'unset',
    });

    container.appendChild(clone);
    document.body.appendChild(container);
    return clone;
}
"""

UNSTAGE_JS = """
(stageId) => {
    document.querySelectorAll(`[data-quire-stage="${stageId}"]`).forEach((node) => node.remove());
}
"""

FORCE_DIMENSIONS_JS = """
([el, width, height]) => {
    if (width) {
        el.style.width = `${width}px`;
    }
    if (height) {
        el.style.height = `${height}px`;
        el.style.minHeight = `${height}px`;
    }
}
"""

SNAPSHOT_JS = """
([root, functions]) => {
    const interesting = (name, value) =>
        name.startsWith('--') || (value && functions.some((fn) => value.includes(`${fn}(`)));

    const snap = (el) => {
        const style = getComputedStyle(el);
        const computed = {};
        for (const name of style) {
            const value = style.getPropertyValue(name);
            if (interesting(name, value)) {
                computed[name] = value;
            }
        }
        return {
            tag: el.tagName.toLowerCase(),
            computed,
            inline: el.getAttribute('style'),
            children: Array.from(el.children).map(snap),
        };
    };
    return snap(root);
}
"""

OUTER_SCOPES_JS = """
() => [document.documentElement, document.body].filter(Boolean).map((el) => {
    const style = getComputedStyle(el);
    const computed = {};
    for (const name of style) {
        if (name.startsWith('--')) {
            computed[name] = style.getPropertyValue(name);
        }
    }
    return {tag: el.tagName.toLowerCase(), computed, inline: null, children: []};
})
"""

INLINE_PROPERTIES_JS = """
([clone, properties]) => {
    const container = clone.parentElement || clone;
    for (const [name, value] of Object.entries(properties)) {
        container.style.setProperty(name, value, 'important');
    }
}
"""

APPLY_OVERRIDES_JS = """
([root, overrides]) => {
    const resolve = (path) => path.reduce((el, index) => (el ? el.children[index] : null), root);
    for (const override of overrides) {
        const el = resolve(override.path);
        if (!el) {
            continue;
        }
        if (override.property === null) {
            el.setAttribute('style', override.value);
        } else {
            el.style.setProperty(override.property, override.value, 'important');
        }
    }
}
"""

WAIT_FOR_IMAGE_JS = """
async (img) => {
    if (img.complete) {
        if (img.naturalWidth === 0) {
            return false;
        }
        if (typeof img.decode === 'function') {
            try {
                await img.decode();
            } catch (e) {
                return true;
            }
        }
        return true;
    }
    return await new Promise((resolve) => {
        img.addEventListener('load', () => resolve(true), {once: true});
        img.addEventListener('error', () => resolve(false), {once: true});
    });
}
"""

CONTENT_PADDING_JS = """
([el, selector]) => {
    const target = selector ? el.querySelector(selector) : el;
    if (!target) {
        return null;
    }
    const style = getComputedStyle(target);
    return {top: style.paddingTop, bottom: style.paddingBottom};
}
"""

SERIALIZE_JS = """
([root, options]) => {
    const copy = root.cloneNode(true);

    const inlineStyles = (source, target) => {
        const style = getComputedStyle(source);
        const declarations = [];
        for (const name of style) {
            declarations.push(`${name}: ${style.getPropertyValue(name)};`);
        }
        target.setAttribute('style', declarations.join(' '));
        Array.from(source.children).forEach((child, index) => {
            if (target.children[index]) {
                inlineStyles(child, target.children[index]);
            }
        });
    };
    inlineStyles(root, copy);

    copy.querySelectorAll('script').forEach((node) => node.remove());
    copy.querySelectorAll('img[src]').forEach((img) => {
        let src = new URL(img.getAttribute('src'), document.baseURI).href;
        if (options.cacheBust && !src.startsWith('data:')) {
            src += `${src.includes('?') ? '&' : '?'}quire=${Date.now()}`;
        }
        img.setAttribute('src', src);
    });

    const rules = [];
    if (options.embedFonts) {
        for (const sheet of Array.from(document.styleSheets)) {
            let sheetRules;
            try {
                sheetRules = sheet.cssRules;
            } catch (e) {
                continue;
            }
            for (const rule of Array.from(sheetRules)) {
                if (rule.type === CSSRule.FONT_FACE_RULE) {
                    rules.push(rule.cssText);
                }
            }
        }
    }

    const rect = root.getBoundingClientRect();
    return {
        html: copy.outerHTML,
        rules,
        width: Math.ceil(root.offsetWidth || rect.width),
        height: Math.ceil(root.offsetHeight || rect.height),
        baseUrl: document.baseURI,
    };
}
"""

INSERT_RULES_JS = """
(rules) => {
    const style = document.createElement('style');
    document.head.appendChild(style);
    for (const rule of rules) {
        try {
            style.sheet.insertRule(rule, style.sheet.cssRules.length);
        } catch (e) {
            console.warn('Skipped stylesheet rule', rule);
        }
    }
}
"""

RASTER_DOCUMENT = (
    '<!DOCTYPE html><html><head><meta charset="utf-8"><base href="{base}">'
    "<style>html, body {{ margin: 0; padding: 0; background: {background}; }}</style>"
    "</head><body>{body}</body></html>"
)


def parse_pixels(value: Optional[str]) -> Optional[float]:
    """Parse a computed '24px' length; None for anything else."""
    if not value:
        return None
    match = _PIXELS.match(value)
    return float(match.group(1)) if match else None


class PlaywrightStage(CaptureStage):
    """
    CaptureStage backed by a Playwright page.

    Args:
        page: Page that holds the preview
        container_height: Height of the off-screen container, taller than any paper
        background_color: Background painted behind the clone
    """

    def __init__(
        self,
        page: Page,
        container_height: float = 1400,
        background_color: str = "#ffffff",
    ):
        self.page = page
        self.container_height = container_height
        self.background_color = background_color

    async def measure(self, node: ElementHandle) -> NodeBox:
        box = await node.evaluate(MEASURE_JS)
        return NodeBox(width=float(box["width"] or 0), height=float(box["height"] or 0))

    @asynccontextmanager
    async def staged(self, node: ElementHandle) -> AsyncIterator[ElementHandle]:
        stage_id = uuid.uuid4().hex
        options = {
            "stageId": stage_id,
            "containerHeight": self.container_height,
            "backgroundColor": self.background_color,
            "removeClasses": PREVIEW_SCALE_CLASSES,
        }
        handle = await self.page.evaluate_handle(STAGE_JS, [node, options])
        try:
            _log_debug(f"Mounted staging container {stage_id}")
            yield handle.as_element()
        finally:
            await handle.dispose()
            await self.page.evaluate(UNSTAGE_JS, stage_id)
            _log_debug(f"Removed staging container {stage_id}")

    async def force_dimensions(self, clone: ElementHandle, width: float, height: float) -> None:
        await self.page.evaluate(FORCE_DIMENSIONS_JS, [clone, width, height])

    async def snapshot(self, clone: ElementHandle) -> StyledNode:
        data = await self.page.evaluate(SNAPSHOT_JS, [clone, list(UNSUPPORTED_COLOR_FUNCTIONS)])
        return StyledNode.from_dict(data)

    async def outer_scopes(self) -> List[StyledNode]:
        return [StyledNode.from_dict(scope) for scope in await self.page.evaluate(OUTER_SCOPES_JS)]

    async def inline_custom_properties(
        self, clone: ElementHandle, properties: Dict[str, str]
    ) -> None:
        await self.page.evaluate(INLINE_PROPERTIES_JS, [clone, properties])

    async def apply_overrides(self, clone: ElementHandle, overrides: List[StyleOverride]) -> None:
        await self.page.evaluate(
            APPLY_OVERRIDES_JS, [clone, [override.to_dict() for override in overrides]]
        )

    async def images(self, clone: ElementHandle) -> List[ElementHandle]:
        return await clone.query_selector_all("img")

    async def wait_for_image(self, image: ElementHandle) -> bool:
        return bool(await image.evaluate(WAIT_FOR_IMAGE_JS))

    async def content_padding(
        self, node: ElementHandle, selector: Optional[str] = None
    ) -> Optional[ContentPadding]:
        padding = await self.page.evaluate(CONTENT_PADDING_JS, [node, selector])
        if not padding:
            return None
        top = parse_pixels(padding.get("top"))
        bottom = parse_pixels(padding.get("bottom"))
        if top is None or bottom is None:
            return None
        return ContentPadding(top=top, bottom=bottom)


class PlaywrightRasterizer(Rasterizer):
    """
    Rasterizer that screenshots a standalone copy of the staged clone.

    Each capture runs in its own browser context so the device scale factor can
    match the requested pixel ratio; the context is always closed afterwards.
    """

    def __init__(self, browser: Browser):
        self.browser = browser

    async def capture(
        self,
        node: ElementHandle,
        options: RasterOptions,
        interceptor: Optional[StylesheetInterceptor] = None,
    ) -> bytes:
        document = await node.evaluate(
            SERIALIZE_JS,
            {"cacheBust": options.cache_bust, "embedFonts": not options.skip_fonts},
        )
        width = max(int(document["width"]), 1)
        height = max(int(document["height"]), 1)

        context = await self.browser.new_context(
            device_scale_factor=options.pixel_ratio,
            viewport={"width": width, "height": height},
        )
        try:
            page = await context.new_page()
            await page.set_content(
                RASTER_DOCUMENT.format(
                    base=html.escape(document["baseUrl"], quote=True),
                    background=options.background_color,
                    body=document["html"],
                ),
                wait_until="load",
            )
            if document["rules"]:
                if interceptor is not None:
                    async with interceptor.scoped(page):
                        await page.evaluate(INSERT_RULES_JS, document["rules"])
                else:
                    await page.evaluate(INSERT_RULES_JS, document["rules"])
            await page.evaluate("() => document.fonts.ready.then(() => true)")

            element = await page.query_selector("body > *")
            if element is None:
                raise RuntimeError("Serialized clone produced no element to capture")
            return await element.screenshot(type="png")
        finally:
            await context.close()


@dataclass
class PreviewSession:
    """An open preview page with its capture stage and rasterizer."""

    page: Page
    stage: PlaywrightStage
    rasterizer: PlaywrightRasterizer

    async def select(self, selector: str) -> Optional[ElementHandle]:
        return await self.page.query_selector(selector)


def _as_url(source: Any) -> str:
    path = Path(source)
    if path.exists():
        return path.resolve().as_uri()
    return str(source)


@asynccontextmanager
async def open_preview(
    source: Any,
    viewport_width: int = 1280,
    viewport_height: int = 1600,
    container_height: float = 1400,
    background_color: str = "#ffffff",
) -> AsyncIterator[PreviewSession]:
    """
    Open an HTML file or URL in headless Chromium for export.

    Args:
        source: Path to an HTML file, or a URL
        viewport_width: Preview page viewport width
        viewport_height: Preview page viewport height
        container_height: Height of the off-screen staging container
        background_color: Background painted behind the clone

    Yields:
        PreviewSession; the browser is closed on exit
    """
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=True)
        try:
            page = await browser.new_page(
                viewport={"width": viewport_width, "height": viewport_height}
            )
            await page.goto(_as_url(source), wait_until="networkidle")
            yield PreviewSession(
                page=page,
                stage=PlaywrightStage(page, container_height, background_color),
                rasterizer=PlaywrightRasterizer(browser),
            )
        finally:
            await browser.close()
