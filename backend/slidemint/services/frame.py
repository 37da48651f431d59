"""
Scene graph produced by the slide renderer.

All coordinates are logical layout units (the 540-wide canvas). The painter
multiplies by the upscale factor; nothing here knows about pixels.
"""

from dataclasses import dataclass, field, asdict, replace
from typing import Optional


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    color: str
    opacity: float = 1.0
    kind: str = "rect"


@dataclass(frozen=True)
class Border:
    """Rectangle outline drawn only on the listed sides."""
    x: float
    y: float
    width: float
    height: float
    color: str
    thickness: float
    sides: tuple = ("top", "right", "bottom", "left")
    opacity: float = 1.0
    kind: str = "border"


@dataclass(frozen=True)
class Ellipse:
    cx: float
    cy: float
    rx: float
    ry: float
    color: str
    opacity: float = 1.0
    kind: str = "ellipse"


@dataclass(frozen=True)
class LinearGradient:
    """Wash from `color` at start_alpha (start corner) to end_alpha (opposite corner)."""
    x: float
    y: float
    width: float
    height: float
    color: str
    start_corner: str  # "top_left" | "top_right"
    start_alpha: float
    end_alpha: float = 0.0
    kind: str = "gradient"


@dataclass(frozen=True)
class TextLine:
    text: str
    x: float
    y: float
    width: float


@dataclass(frozen=True)
class TextBlock:
    role: str  # "title" | "body" | "number" | "indicator" | "watermark"
    x: float
    y: float
    width: float
    height: float
    lines: tuple
    color: str
    font_size: int
    font_weight: str
    line_height: float
    align: str = "left"
    opacity: float = 1.0
    editable: bool = False
    kind: str = "text"


@dataclass(frozen=True)
class Frame:
    width: int
    height: int
    background: str
    direction: str
    elements: tuple = field(default_factory=tuple)
    slide_number: int = 1
    total_slides: int = 1

    def text_blocks(self, role: Optional[str] = None) -> list:
        return [e for e in self.elements if isinstance(e, TextBlock) and (role is None or e.role == role)]

    def editable_regions(self) -> list:
        return [e for e in self.elements if isinstance(e, TextBlock) and e.editable]

    def geometry(self) -> tuple:
        """Frame with editability stripped; equal for preview and export of the same slide."""
        return (
            self.width, self.height, self.background, self.direction,
            tuple(_without_editable(e) for e in self.elements),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def _without_editable(element):
    if isinstance(element, TextBlock) and element.editable:
        return replace(element, editable=False)
    return element
