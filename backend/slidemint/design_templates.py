"""
Design catalog for carousel decks.

Three independent customization options:
1. TEMPLATE - dark or light, sets the default background/text pairing
2. COVER STYLE - decorative treatment applied to every slide
3. ASPECT RATIO - square or portrait canvas
"""

import re
from enum import Enum

from slidemint.exceptions import InvalidStyleError


class Template(str, Enum):
    DARK = "dark"
    LIGHT = "light"


class CoverStyle(str, Enum):
    MINIMALIST = "minimalist"
    BIG_NUMBER = "big_number"
    ACCENT_BLOCK = "accent_block"
    GRADIENT_OVERLAY = "gradient_overlay"
    GEOMETRIC = "geometric"
    BOLD_FRAME = "bold_frame"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    PORTRAIT = "4:5"


# ============================================
# TEMPLATES
# ============================================
TEMPLATES = {
    "dark": {
        "id": "dark",
        "name": "Dark",
        "background": "#000000",
        "text": "#FFFFFF",
        "accent": "#FFFFFF",
    },
    "light": {
        "id": "light",
        "name": "Light",
        "background": "#FFFFFF",
        "text": "#000000",
        "accent": "#000000",
    },
}


# ============================================
# COVER STYLES
# ============================================
COVER_STYLES = {
    "minimalist": {
        "id": "minimalist",
        "name": "Minimalist",
        "description": "Thin accent bar along the top edge",
    },
    "big_number": {
        "id": "big_number",
        "name": "Big Number",
        "description": "Oversized faint slide numeral in the corner",
    },
    "accent_block": {
        "id": "accent_block",
        "name": "Accent Block",
        "description": "Quarter-circle accent block in the corner",
    },
    "gradient_overlay": {
        "id": "gradient_overlay",
        "name": "Gradient Overlay",
        "description": "Diagonal accent wash fading to transparent",
    },
    "geometric": {
        "id": "geometric",
        "name": "Geometric",
        "description": "Two opposite corner brackets",
    },
    "bold_frame": {
        "id": "bold_frame",
        "name": "Bold Frame",
        "description": "Solid accent bar along the side edge",
    },
}


# ============================================
# ASPECT RATIOS
# ============================================
ASPECT_RATIOS = {
    "1:1": {"id": "1:1", "name": "Square", "width": 1, "height": 1},
    "4:5": {"id": "4:5", "name": "Portrait", "width": 4, "height": 5},
}

DEFAULT_TEMPLATE = Template.DARK
DEFAULT_COVER_STYLE = CoverStyle.MINIMALIST
DEFAULT_ASPECT_RATIO = AspectRatio.PORTRAIT

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def get_template_colors(template) -> tuple[str, str]:
    """Canonical (background, text) pair for a template."""
    t = TEMPLATES[Template(template).value]
    return t["background"], t["text"]


def default_accent(template) -> str:
    """Accent used when the deck has none."""
    return TEMPLATES[Template(template).value]["accent"]


def base_dimensions(aspect_ratio, width: int = 540) -> tuple[int, int]:
    """Logical (width, height) for an aspect ratio; 540 wide -> 540x540 or 540x675."""
    ratio = ASPECT_RATIOS[AspectRatio(aspect_ratio).value]
    return width, width * ratio["height"] // ratio["width"]


def parse_template(value) -> Template:
    try:
        return Template(value)
    except ValueError:
        raise InvalidStyleError(f"Unknown template: {value!r}")


def parse_cover_style(value) -> CoverStyle:
    try:
        return CoverStyle(value)
    except ValueError:
        raise InvalidStyleError(f"Unknown cover style: {value!r}")


def parse_aspect_ratio(value) -> AspectRatio:
    try:
        return AspectRatio(value)
    except ValueError:
        raise InvalidStyleError(f"Unknown aspect ratio: {value!r}")


def normalize_color(value: str) -> str:
    """Validate a hex color and return it upper-cased in #RRGGBB form."""
    if not isinstance(value, str) or not HEX_COLOR.match(value):
        raise InvalidStyleError(f"Invalid hex color: {value!r}")
    digits = value[1:]
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return f"#{digits.upper()}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    digits = normalize_color(value)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def list_templates():
    """List all templates."""
    return [{"id": t["id"], "name": t["name"]} for t in TEMPLATES.values()]


def list_cover_styles():
    """List all cover styles."""
    return [{"id": s["id"], "name": s["name"], "description": s["description"]} for s in COVER_STYLES.values()]


def list_aspect_ratios():
    """List all aspect ratios."""
    return [{"id": r["id"], "name": r["name"]} for r in ASPECT_RATIOS.values()]
