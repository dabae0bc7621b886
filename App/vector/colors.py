"""Color literal parsing and formatting for the vector codecs.

AIDEV-NOTE: Document colors are plain RGB tuples (0-255). Any alpha found
in a literal is returned separately so codecs can fold it into the
fill/stroke alpha attributes.
"""

import re

# A small subset of CSS named colors, enough for hand-written SVG icons
NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "lime": (0, 255, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "cyan": (0, 255, 255),
    "aqua": (0, 255, 255),
    "magenta": (255, 0, 255),
    "fuchsia": (255, 0, 255),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "maroon": (128, 0, 0),
    "olive": (128, 128, 0),
    "navy": (0, 0, 128),
    "purple": (128, 0, 128),
    "teal": (0, 128, 128),
    "orange": (255, 165, 0),
}

_RGB_PATTERN = re.compile(
    r"rgba?\s*\(\s*([\d.]+%?)\s*[, ]\s*([\d.]+%?)\s*[, ]\s*([\d.]+%?)"
    r"(?:\s*[,/]\s*([\d.]+%?))?\s*\)$"
)


def parse_hex_color(text: str, alpha_first: bool = True) -> "tuple[tuple[int, int, int], float]":
    """Parse a hex color literal.

    Args:
        text: "#RGB", "#RRGGBB", and the 4/8 digit forms with alpha
        alpha_first: Android writes alpha first (#AARRGGBB); CSS writes
            it last (#RRGGBBAA)

    Returns:
        Tuple of (RGB color, alpha 0.0-1.0)

    Raises:
        ValueError: If the literal is not a hex color
    """
    value = text.strip()
    if not value.startswith("#"):
        raise ValueError(f"Not a hex color: {text!r}")
    digits = value[1:]
    if not re.fullmatch(r"[0-9a-fA-F]+", digits) or len(digits) not in (3, 4, 6, 8):
        raise ValueError(f"Invalid hex color: {text!r}")

    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)

    alpha = 255
    if len(digits) == 8:
        if alpha_first:
            alpha, digits = int(digits[:2], 16), digits[2:]
        else:
            digits, alpha = digits[:6], int(digits[6:], 16)

    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    return (r, g, b), alpha / 255.0


def parse_css_color(text: str) -> "tuple[tuple[int, int, int] | None, float]":
    """Parse an SVG paint value.

    Returns:
        Tuple of (RGB color or None for "none"/"transparent", alpha)

    Raises:
        ValueError: For unsupported paints (url(), currentColor, ...)
    """
    value = text.strip()
    lowered = value.lower()
    if lowered in ("none", "transparent"):
        return None, 1.0
    if value.startswith("#"):
        return parse_hex_color(value, alpha_first=False)
    if lowered in NAMED_COLORS:
        return NAMED_COLORS[lowered], 1.0

    match = _RGB_PATTERN.match(lowered)
    if match:
        channels = tuple(_channel(part) for part in match.groups()[:3])
        alpha = match.group(4)
        if alpha is None:
            alpha_value = 1.0
        elif alpha.endswith("%"):
            alpha_value = float(alpha[:-1]) / 100.0
        else:
            alpha_value = float(alpha)
        return channels, max(0.0, min(1.0, alpha_value))

    raise ValueError(f"Unsupported color {text!r}")


def _channel(part: str) -> int:
    if part.endswith("%"):
        return max(0, min(255, round(float(part[:-1]) * 2.55)))
    return max(0, min(255, round(float(part))))


def format_hex_color(
    color: "tuple[int, int, int]",
    alpha: "float | None" = None,
) -> str:
    """Format as #RRGGBB, or #AARRGGBB (Android order) when alpha < 1."""
    r, g, b = (max(0, min(255, int(c))) for c in color[:3])
    if alpha is not None and alpha < 1.0:
        a = max(0, min(255, round(alpha * 255)))
        return f"#{a:02X}{r:02X}{g:02X}{b:02X}"
    return f"#{r:02X}{g:02X}{b:02X}"
