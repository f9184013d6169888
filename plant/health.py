"""Map moisture and light readings to a health score and leaf color.

These functions are the single source of organ color: leaves never keep a
color of their own, they are tinted from here on creation and on every
update.
"""

import colorsys

import numpy as np

HEALTHY_GREEN = 0x32CD32
LIGHT_GREEN = 0x9ACD32
YELLOW = 0xFFD700
UNHEALTHY_RED = 0xB22222

# (exclusive lower bound, color), checked top to bottom
COLOR_BUCKETS = (
    (0.7, HEALTHY_GREEN),
    (0.5, LIGHT_GREEN),
    (0.3, YELLOW),
)

LIGHT_SATURATION = 1000.0


def health_score(moisture: float, light: float) -> float:
    """Weighted health in [0, 1]: 60% moisture, 40% light (saturating at 1000)."""
    moisture_factor = moisture / 100.0
    light_factor = min(light, LIGHT_SATURATION) / LIGHT_SATURATION
    return 0.6 * moisture_factor + 0.4 * light_factor


def color_bucket(score: float) -> int:
    """Hex leaf color for a health score; first threshold exceeded wins."""
    for threshold, color in COLOR_BUCKETS:
        if score > threshold:
            return color
    return UNHEALTHY_RED


def hex_to_rgb(color: int) -> np.ndarray:
    """0xRRGGBB -> (3,) float RGB in [0, 1]."""
    return np.array(
        [(color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF],
        dtype=np.float64,
    ) / 255.0


def leaf_color(moisture: float, light: float) -> np.ndarray:
    """RGB leaf color for the given environment."""
    return hex_to_rgb(color_bucket(health_score(moisture, light)))


def offset_hsl(rgb: np.ndarray, hue: float = 0.0, saturation: float = 0.0, lightness: float = 0.0) -> np.ndarray:
    """Shift a color in HSL space; hue wraps, saturation and lightness clamp."""
    h, l, s = colorsys.rgb_to_hls(*np.clip(rgb, 0.0, 1.0))
    h = (h + hue) % 1.0
    l = min(max(l + lightness, 0.0), 1.0)
    s = min(max(s + saturation, 0.0), 1.0)
    return np.array(colorsys.hls_to_rgb(h, l, s), dtype=np.float64)
