"""
Export Settings

Loads capture defaults, per-paper default margins, and margin presets from
export_settings.yaml. The packaged file is used unless QUIRE_EXPORT_SETTINGS
points elsewhere; keys missing from an override file keep their packaged
values.

Examples:
    >>> settings = load_export_settings()
    >>> settings.margins_for("legal")
    MarginProfile(top=24, right=24, bottom=24, left=24)
    >>> settings.preset_margins("0.5")
    MarginProfile(top=48, right=48, bottom=48, left=48)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from quire.contexts.capture.options import CaptureSettings
from quire.contexts.rendering.paper import (
    DEFAULT_PAPER,
    MAX_MARGIN_PX,
    MarginProfile,
    resolve_page_margins,
)

load_dotenv()

PACKAGED_SETTINGS_PATH = Path(__file__).parent / "export_settings.yaml"


@dataclass(frozen=True)
class ExportSettings:
    """
    Settings for one export.

    Attributes:
        capture: Rasterization settings
        default_margins: Paper id -> default MarginProfile
        margin_presets: Preset id (inches, e.g. "0.5") -> uniform margin in pixels
        max_margin_px: Upper clamp for every margin side
        content_selector: Selector of the printable content area inside the preview node
        min_height_paper: Paper whose height is forced on short content (None = selected paper)
    """

    capture: CaptureSettings = field(default_factory=CaptureSettings)
    default_margins: Dict[str, MarginProfile] = field(default_factory=dict)
    margin_presets: Dict[str, int] = field(default_factory=dict)
    max_margin_px: int = MAX_MARGIN_PX
    content_selector: Optional[str] = None
    min_height_paper: Optional[str] = None

    def margins_for(self, paper_name: str) -> MarginProfile:
        """Default margins for a paper, falling back to the A4 defaults."""
        if paper_name in self.default_margins:
            return self.default_margins[paper_name]
        return self.default_margins.get(DEFAULT_PAPER, MarginProfile())

    def preset_margins(self, preset_id: str) -> MarginProfile:
        """
        Uniform margins for a named preset.

        Raises:
            ValueError: If the preset is not defined
        """
        if preset_id not in self.margin_presets:
            available = list(self.margin_presets.keys())
            raise ValueError(f"Margin preset '{preset_id}' not found. Available presets: {available}")
        return MarginProfile.uniform(self.margin_presets[preset_id])


def _settings_path(config_path: Optional[Path]) -> Path:
    if config_path is not None:
        return Path(config_path)
    override = os.getenv("QUIRE_EXPORT_SETTINGS")
    return Path(override) if override else PACKAGED_SETTINGS_PATH


def load_export_settings(config_path: Optional[Path] = None) -> ExportSettings:
    """
    Load export settings, merging an override file over the packaged defaults.

    Args:
        config_path: Optional settings file (defaults to QUIRE_EXPORT_SETTINGS,
                     then the packaged export_settings.yaml)

    Returns:
        ExportSettings
    """
    config = OmegaConf.load(PACKAGED_SETTINGS_PATH)
    path = _settings_path(config_path)
    if path.resolve() != PACKAGED_SETTINGS_PATH.resolve():
        config = OmegaConf.merge(config, OmegaConf.load(path))
    data = OmegaConf.to_container(config, resolve=True)

    capture = data.get("capture") or {}
    margins = data.get("margins") or {}
    pagination = data.get("pagination") or {}
    max_margin = int(margins.get("max_px", MAX_MARGIN_PX))

    default_margins = {
        paper: resolve_page_margins(values, maximum=max_margin)
        for paper, values in (margins.get("defaults") or {}).items()
    }

    return ExportSettings(
        capture=CaptureSettings(
            pixel_ratio=float(capture.get("pixel_ratio", 2)),
            background_color=str(capture.get("background_color", "#ffffff")),
            cache_bust=bool(capture.get("cache_bust", True)),
            blocked_at_rules=tuple(capture.get("blocked_at_rules") or ()),
        ),
        default_margins=default_margins,
        margin_presets={str(key): int(value) for key, value in (margins.get("presets") or {}).items()},
        max_margin_px=max_margin,
        content_selector=pagination.get("content_selector"),
        min_height_paper=pagination.get("min_height_paper"),
    )
