"""
Slide layout engine.

Turns one slide plus its deck's style into a Frame (scene graph) on a fixed
540-unit-wide canvas. The same function feeds the interactive preview and the
off-screen export surface, so line breaks and element placement are identical
in both; only the `editable` flag on the title/body blocks differs.

Decorations are anchored to the reading "start" edge (left for LTR, right for
RTL) and mirror with the text direction.
"""

from dataclasses import dataclass
from typing import Optional

from slidemint.config import get_settings
from slidemint.design_templates import AspectRatio, CoverStyle, Template, base_dimensions, default_accent
from slidemint.schemas import Carousel, Slide
from slidemint.services.fonts import FontBook, get_font_book
from slidemint.services.frame import Border, Ellipse, Frame, LinearGradient, Rect, TextBlock, TextLine
from slidemint.services.text_direction import TextDirection, slide_direction

INTERACTIVE = "interactive"
DISPLAY = "display"

# Layout (logical units on the 540 canvas)
PADDING = 48
TITLE_SIZE = 36
TITLE_LINE_HEIGHT = 40
TITLE_GAP = 16
BODY_SIZE = 20
BODY_LINE_HEIGHT = 32.5

BIG_NUMBER_SIZE = 128
BIG_NUMBER_TOP = 32
BIG_NUMBER_SIDE = 48
BIG_NUMBER_OPACITY = 0.1

ACCENT_BLOCK_RADIUS = 256
ACCENT_BLOCK_OPACITY = 0.2
MINIMAL_BAR = (128, 8)
GEOMETRIC_SIZE = 128
GEOMETRIC_THICKNESS = 4
FRAME_BAR_WIDTH = 12
GRADIENT_ALPHA = 0x33 / 255

FOOTER_SIZE = 14
FOOTER_INSET = 16
WATERMARK_OPACITY = 0.4
INDICATOR_OPACITY = 0.6


@dataclass(frozen=True)
class RenderParams:
    title: str
    body: str
    template: Template
    cover_style: CoverStyle
    background_color: str
    text_color: str
    accent_color: Optional[str]
    aspect_ratio: AspectRatio
    slide_number: int
    total_slides: int
    text_direction: TextDirection
    mode: str = DISPLAY
    show_slide_number: bool = True
    watermark: str = ""
    width: int = 540
    # Text is measured at the painted pixel size, then divided back
    upscale_factor: int = 2

    @property
    def dimensions(self) -> tuple[int, int]:
        return base_dimensions(self.aspect_ratio, self.width)


def build_render_params(
    carousel: Carousel,
    position: int,
    mode: str = DISPLAY,
    settings=None,
) -> RenderParams:
    """Derive render parameters for the slide at `position`; direction is recomputed every call."""
    settings = settings or get_settings()
    slide: Slide = carousel.slides[position]
    return RenderParams(
        title=slide.title or "",
        body=slide.body or "",
        template=carousel.template,
        cover_style=carousel.cover_style,
        background_color=carousel.background_color,
        text_color=carousel.text_color,
        accent_color=carousel.accent_color,
        aspect_ratio=carousel.aspect_ratio,
        slide_number=position + 1,
        total_slides=len(carousel.slides),
        text_direction=slide_direction(slide.title, slide.body),
        mode=mode,
        show_slide_number=settings.show_slide_number,
        watermark=settings.watermark_text,
        width=settings.render_width,
        upscale_factor=settings.upscale_factor,
    )


class SlideRenderer:
    """Pure layout: RenderParams in, Frame out."""

    def __init__(self, font_book: Optional[FontBook] = None):
        self.font_book = font_book or get_font_book()

    def wrap_text(self, text: str, weight: str, size: int, max_width: float,
                  scale: int = 1, direction: Optional[str] = None) -> list:
        """Greedy word wrap; explicit newlines start a new line, over-long words break by character."""
        lines = []
        for paragraph in (text or "").split("\n"):
            words = paragraph.split()
            if not words:
                lines.append("")
                continue
            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if self.font_book.text_width(candidate, weight, size, scale, direction) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                current = ""
                for piece in self._break_word(word, weight, size, max_width, scale, direction):
                    if current:
                        lines.append(current)
                    current = piece
            lines.append(current)
        # Trailing blank lines carry no content
        while lines and not lines[-1]:
            lines.pop()
        return lines

    def _break_word(self, word: str, weight: str, size: int, max_width: float, scale: int = 1,
                    direction: Optional[str] = None) -> list:
        if self.font_book.text_width(word, weight, size, scale, direction) <= max_width:
            return [word]
        pieces, current = [], ""
        for ch in word:
            if current and self.font_book.text_width(current + ch, weight, size, scale, direction) > max_width:
                pieces.append(current)
                current = ch
            else:
                current += ch
        if current:
            pieces.append(current)
        return pieces

    def render(self, params: RenderParams) -> Frame:
        width, height = params.dimensions
        rtl = params.text_direction == TextDirection.RTL
        accent = params.accent_color or default_accent(params.template)

        def from_start(offset: float, w: float) -> float:
            return width - offset - w if rtl else offset

        def from_end(offset: float, w: float) -> float:
            return offset if rtl else width - offset - w

        elements = list(self._decorations(params, width, height, accent, rtl, from_start, from_end))
        elements.extend(self._content(params, width, height, rtl))
        elements.extend(self._footer(params, width, height, from_start, from_end))

        return Frame(
            width=width,
            height=height,
            background=params.background_color,
            direction=params.text_direction.value,
            elements=tuple(elements),
            slide_number=params.slide_number,
            total_slides=params.total_slides,
        )

    def _decorations(self, params, width, height, accent, rtl, from_start, from_end):
        style = params.cover_style

        if style == CoverStyle.BIG_NUMBER:
            label = str(params.slide_number)
            w = self._width(params, label, "bold", BIG_NUMBER_SIZE)
            x = from_start(BIG_NUMBER_SIDE, w)
            yield TextBlock(
                role="number", x=x, y=BIG_NUMBER_TOP, width=w, height=BIG_NUMBER_SIZE,
                lines=(TextLine(label, x, BIG_NUMBER_TOP, w),),
                color=params.text_color, font_size=BIG_NUMBER_SIZE, font_weight="bold",
                line_height=BIG_NUMBER_SIZE, align="right" if rtl else "left",
                opacity=BIG_NUMBER_OPACITY,
            )

        elif style == CoverStyle.ACCENT_BLOCK:
            # Quarter circle: a full circle centred on the top start corner, clipped by the canvas
            cx = width if rtl else 0
            yield Ellipse(cx=cx, cy=0, rx=ACCENT_BLOCK_RADIUS, ry=ACCENT_BLOCK_RADIUS,
                          color=accent, opacity=ACCENT_BLOCK_OPACITY)

        elif style == CoverStyle.MINIMALIST:
            bar_w, bar_h = MINIMAL_BAR
            yield Rect(x=from_start(0, bar_w), y=0, width=bar_w, height=bar_h, color=accent)

        elif style == CoverStyle.GRADIENT_OVERLAY:
            yield LinearGradient(
                x=0, y=0, width=width, height=height, color=accent,
                start_corner="top_right" if rtl else "top_left",
                start_alpha=GRADIENT_ALPHA,
            )

        elif style == CoverStyle.GEOMETRIC:
            size = GEOMETRIC_SIZE
            start_side, end_side = ("right", "left") if rtl else ("left", "right")
            yield Border(x=from_end(0, size), y=0, width=size, height=size, color=accent,
                         thickness=GEOMETRIC_THICKNESS, sides=("top", end_side))
            yield Border(x=from_start(0, size), y=height - size, width=size, height=size, color=accent,
                         thickness=GEOMETRIC_THICKNESS, sides=("bottom", start_side))

        elif style == CoverStyle.BOLD_FRAME:
            yield Rect(x=from_start(0, FRAME_BAR_WIDTH), y=0, width=FRAME_BAR_WIDTH, height=height, color=accent)

    def _content(self, params, width, height, rtl):
        content_width = width - 2 * PADDING
        editable = params.mode == INTERACTIVE
        align = "right" if rtl else "left"

        scale, direction = params.upscale_factor, params.text_direction.value
        title_lines = self.wrap_text(params.title, "bold", TITLE_SIZE, content_width, scale, direction)
        body_lines = self.wrap_text(params.body, "regular", BODY_SIZE, content_width, scale, direction)
        title_h = len(title_lines) * TITLE_LINE_HEIGHT
        body_h = len(body_lines) * BODY_LINE_HEIGHT

        # Vertically centred inside the padded area
        available = height - 2 * PADDING
        y = PADDING + max(0, (available - (title_h + TITLE_GAP + body_h)) / 2)

        yield self._text_block(params, "title", title_lines, PADDING, y, content_width, title_h, params.text_color,
                               TITLE_SIZE, "bold", TITLE_LINE_HEIGHT, align, editable)
        y += title_h + TITLE_GAP
        yield self._text_block(params, "body", body_lines, PADDING, y, content_width, body_h, params.text_color,
                               BODY_SIZE, "regular", BODY_LINE_HEIGHT, align, editable)

    def _footer(self, params, width, height, from_start, from_end):
        y = height - FOOTER_INSET - FOOTER_SIZE
        if params.watermark:
            w = self._width(params, params.watermark, "medium", FOOTER_SIZE)
            x = from_start(FOOTER_INSET, w)
            yield TextBlock(
                role="watermark", x=x, y=y, width=w, height=FOOTER_SIZE,
                lines=(TextLine(params.watermark, x, y, w),),
                color=params.text_color, font_size=FOOTER_SIZE, font_weight="medium",
                line_height=FOOTER_SIZE, opacity=WATERMARK_OPACITY,
            )
        if params.show_slide_number:
            label = f"{params.slide_number}/{params.total_slides}"
            w = self._width(params, label, "medium", FOOTER_SIZE)
            x = from_end(FOOTER_INSET, w)
            yield TextBlock(
                role="indicator", x=x, y=y, width=w, height=FOOTER_SIZE,
                lines=(TextLine(label, x, y, w),),
                color=params.text_color, font_size=FOOTER_SIZE, font_weight="medium",
                line_height=FOOTER_SIZE, opacity=INDICATOR_OPACITY,
            )

    def _width(self, params: RenderParams, text: str, weight: str, size: int) -> float:
        """Width as the painter will draw it for this slide."""
        return self.font_book.text_width(text, weight, size, params.upscale_factor, params.text_direction.value)

    def _text_block(self, params, role, lines, x, y, width, height, color, size, weight, line_height, align, editable):
        placed = []
        for i, line in enumerate(lines):
            line_w = self._width(params, line, weight, size)
            line_x = x + width - line_w if align == "right" else x
            placed.append(TextLine(line, line_x, y + i * line_height, line_w))
        return TextBlock(
            role=role, x=x, y=y, width=width, height=height, lines=tuple(placed),
            color=color, font_size=size, font_weight=weight, line_height=line_height,
            align=align, editable=editable,
        )


_renderer = None


def get_renderer() -> SlideRenderer:
    global _renderer
    if _renderer is None:
        _renderer = SlideRenderer()
    return _renderer
