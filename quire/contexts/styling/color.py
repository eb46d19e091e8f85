"""
OKLab-family color conversion to sRGB.

Rasterizers that predate CSS Color 4 cannot paint oklch() or oklab(). This
module converts a single such expression into the equivalent rgb()/rgba()
string using the OKLab reference matrices (Björn Ottosson, 2020).

Conversion chain:
    oklch(L C H) -> oklab(L a b) -> LMS (cubed) -> linear sRGB -> gamma sRGB -> 0..255
"""

import math
import re
from typing import List, Optional, Tuple

from quire.utils.outcome import Outcome

UNSUPPORTED_COLOR_FUNCTIONS = ("oklch", "oklab")

# 100% chroma (oklch) or 100% a/b (oklab) per CSS Color 4
PERCENT_REFERENCE_CHROMA = 0.4

_EXPRESSION = re.compile(r"^\s*(oklch|oklab)\(\s*(.*)\s*\)\s*$", re.IGNORECASE | re.DOTALL)
_NUMBER = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_TOKEN = re.compile(rf"^({_NUMBER})(%|deg|rad|grad|turn)?$", re.IGNORECASE)

_HUE_UNITS = {
    None: 1.0,
    "deg": 1.0,
    "rad": 180.0 / math.pi,
    "grad": 0.9,
    "turn": 360.0,
}


def _parse_token(token: str) -> Tuple[float, Optional[str]]:
    """Parse one channel token into (number, unit); 'none' is zero."""
    if token.lower() == "none":
        return 0.0, None
    match = _TOKEN.match(token)
    if match is None:
        raise ValueError(f"Unparseable color channel: {token!r}")
    unit = match.group(2).lower() if match.group(2) else None
    return float(match.group(1)), unit


def _split_channels(body: str) -> Tuple[List[str], Optional[str]]:
    """Split 'L C H / A' (or comma-separated) into channel tokens and alpha."""
    alpha = None
    if "/" in body:
        body, alpha = body.split("/", 1)
        alpha = alpha.strip()
    tokens = [token for token in re.split(r"[\s,]+", body.strip()) if token]
    return tokens, alpha


def _lightness(token: str) -> float:
    value, unit = _parse_token(token)
    if unit == "%":
        value /= 100.0
    elif unit is not None:
        raise ValueError(f"Invalid lightness unit: {token!r}")
    return min(max(value, 0.0), 1.0)


def _axis(token: str) -> float:
    value, unit = _parse_token(token)
    if unit == "%":
        return value / 100.0 * PERCENT_REFERENCE_CHROMA
    if unit is not None:
        raise ValueError(f"Invalid axis unit: {token!r}")
    return value


def _hue_degrees(token: str) -> float:
    value, unit = _parse_token(token)
    if unit == "%":
        raise ValueError(f"Hue cannot be a percentage: {token!r}")
    return value * _HUE_UNITS[unit]


def _alpha(token: Optional[str]) -> float:
    if token is None:
        return 1.0
    value, unit = _parse_token(token)
    if unit == "%":
        value /= 100.0
    elif unit is not None:
        raise ValueError(f"Invalid alpha unit: {token!r}")
    return min(max(value, 0.0), 1.0)


def parse_oklab(expression: str) -> Tuple[float, float, float, float]:
    """
    Parse an oklch() or oklab() expression into OKLab (L, a, b, alpha).

    Raises:
        ValueError: If the expression is not a fully resolved oklch/oklab color
    """
    match = _EXPRESSION.match(expression)
    if match is None:
        raise ValueError(f"Not an OKLab-family color: {expression!r}")

    function = match.group(1).lower()
    tokens, alpha_token = _split_channels(match.group(2))
    if len(tokens) != 3:
        raise ValueError(f"Expected 3 channels, got {len(tokens)}: {expression!r}")

    lightness = _lightness(tokens[0])
    alpha = _alpha(alpha_token)

    if function == "oklch":
        chroma = max(_axis(tokens[1]), 0.0)
        hue = math.radians(_hue_degrees(tokens[2]))
        return lightness, chroma * math.cos(hue), chroma * math.sin(hue), alpha

    return lightness, _axis(tokens[1]), _axis(tokens[2]), alpha


def _gamma_encode(channel: float) -> float:
    """Linear-light sRGB channel to gamma-encoded sRGB."""
    magnitude = abs(channel)
    if magnitude <= 0.0031308:
        encoded = 12.92 * magnitude
    else:
        encoded = 1.055 * magnitude ** (1 / 2.4) - 0.055
    return math.copysign(encoded, channel)


def oklab_to_srgb(lightness: float, a: float, b: float) -> Tuple[int, int, int]:
    """Convert OKLab coordinates to clamped 8-bit sRGB channels."""
    l_ = lightness + 0.3963377774 * a + 0.2158037573 * b
    m_ = lightness - 0.1055613458 * a - 0.0638541728 * b
    s_ = lightness - 0.0894841775 * a - 1.2914855480 * b

    l, m, s = l_**3, m_**3, s_**3

    linear = (
        4.0767416621 * l - 3.3077115913 * m + 0.2309699292 * s,
        -1.2684380046 * l + 2.6097574011 * m - 0.3413193965 * s,
        -0.0041960863 * l - 0.7034186147 * m + 1.7076147010 * s,
    )

    return tuple(
        int(round(min(max(_gamma_encode(channel), 0.0), 1.0) * 255)) for channel in linear
    )


def format_rgb(red: int, green: int, blue: int, alpha: float = 1.0) -> str:
    """Format channels as rgb(...) or, when translucent, rgba(...)."""
    if alpha >= 1.0:
        return f"rgb({red}, {green}, {blue})"
    alpha_text = f"{alpha:.3f}".rstrip("0").rstrip(".")
    return f"rgba({red}, {green}, {blue}, {alpha_text or '0'})"


def convert_color(expression: str) -> Outcome[str]:
    """
    Convert one resolved oklch()/oklab() expression to rgb()/rgba().

    Never raises: failures come back as a degraded Outcome whose value is None,
    leaving the caller to keep the original text.

    Examples:
        >>> convert_color("oklch(1 0 0)").value
        'rgb(255, 255, 255)'
        >>> convert_color("oklch(var(--missing))").ok
        False
    """
    try:
        lightness, a, b, alpha = parse_oklab(expression)
        red, green, blue = oklab_to_srgb(lightness, a, b)
    except (ValueError, OverflowError) as e:
        return Outcome.degraded(
            "color_conversion", f"Failed to convert color: {expression}", error=e
        )
    return Outcome.success(format_rgb(red, green, blue, alpha))
