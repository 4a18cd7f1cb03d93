from __future__ import annotations

import math
import re

from PIL import ImageColor

RGB = tuple[int, int, int]

_FUNCTION_PATTERN = re.compile(r"^\s*(oklch|oklab)\(\s*([^)]*)\)\s*$", re.IGNORECASE)


class UnsupportedColor(ValueError):
    pass


def _component(token: str, *, percent_scale: float = 1.0) -> float:
    token = token.strip()
    if token.endswith("%"):
        return float(token[:-1]) / 100 * percent_scale
    if token.endswith("deg"):
        return float(token[:-3])
    if token.lower() == "none":
        return 0.0
    return float(token)


def _linear_to_srgb(value: float) -> int:
    if value <= 0.0031308:
        encoded = 12.92 * value
    else:
        encoded = 1.055 * math.pow(value, 1 / 2.4) - 0.055
    return int(round(min(1.0, max(0.0, encoded)) * 255))


def oklab_to_rgb(lightness: float, a: float, b: float) -> RGB:
    l_ = lightness + 0.3963377774 * a + 0.2158037573 * b
    m_ = lightness - 0.1055613458 * a - 0.0638541728 * b
    s_ = lightness - 0.0894841775 * a - 1.2914855480 * b

    l, m, s = l_**3, m_**3, s_**3

    red = 4.0767416621 * l - 3.3077115913 * m + 0.2309699292 * s
    green = -1.2684380046 * l + 2.6097574011 * m - 0.3413193965 * s
    blue = -0.0041960863 * l - 0.7034186147 * m + 1.7076147010 * s
    return _linear_to_srgb(red), _linear_to_srgb(green), _linear_to_srgb(blue)


def oklch_to_rgb(lightness: float, chroma: float, hue_degrees: float) -> RGB:
    hue = math.radians(hue_degrees)
    return oklab_to_rgb(lightness, chroma * math.cos(hue), chroma * math.sin(hue))


def _parse_perceptual(value: str) -> RGB | None:
    match = _FUNCTION_PATTERN.match(value)
    if not match:
        return None

    space = match.group(1).lower()
    channels = match.group(2).split("/")[0].replace(",", " ").split()
    if len(channels) != 3:
        raise UnsupportedColor(f"Expected three channels in {value!r}")

    try:
        if space == "oklch":
            return oklch_to_rgb(
                _component(channels[0]),
                _component(channels[1], percent_scale=0.4),
                _component(channels[2]),
            )
        return oklab_to_rgb(
            _component(channels[0]),
            _component(channels[1], percent_scale=0.4),
            _component(channels[2], percent_scale=0.4),
        )
    except ValueError as exc:
        raise UnsupportedColor(f"Invalid channel in {value!r}") from exc


def parse_color(value: str) -> RGB:
    """Resolve a CSS color to RGB, converting ``oklch()``/``oklab()`` when Pillow cannot."""
    try:
        return ImageColor.getrgb(value)[:3]
    except ValueError:
        converted = _parse_perceptual(value)
        if converted is None:
            raise UnsupportedColor(f"Unsupported color value: {value!r}") from None
        return converted
