"""
Deck editing: structural slide operations, style setters and the inline
edit session, with debounced persistence of whatever changed.

Every operation validates before it mutates, so a rejected call leaves the
deck and the selection exactly as they were.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from slidemint.design_templates import (
    get_template_colors, normalize_color,
    parse_aspect_ratio, parse_cover_style, parse_template,
)
from slidemint.exceptions import MinimumSlideCountError, SlidePositionError, StructuralInvariantViolation
from slidemint.schemas import MIN_SLIDES, Carousel, Slide, renumber
from slidemint.services.autosave import DebouncedSaver

logger = logging.getLogger(__name__)

NEW_SLIDE_TITLE = "New Title"
NEW_SLIDE_BODY = "New content"
EDITABLE_FIELDS = ("title", "body")


@dataclass
class EditSession:
    """Click-to-edit state: one field of one slide at a time."""
    position: int
    field: str
    original: str
    draft: str


def reorder_selection(selected: int, from_pos: int, adjusted: int) -> int:
    """Selection after moving `from_pos` to `adjusted`; focus stays on the same slide."""
    if selected == from_pos:
        return adjusted
    sel = selected - 1 if from_pos < selected else selected
    if adjusted <= sel:
        sel += 1
    return sel


class CarouselEditor:
    def __init__(self, carousel: Carousel, saver: Optional[DebouncedSaver] = None):
        self.carousel = carousel
        self.saver = saver
        self.selected_index = 0 if carousel.slides else -1
        self.session: Optional[EditSession] = None

    # ---- helpers ----

    @property
    def slides(self) -> list[Slide]:
        return self.carousel.slides

    def _check_position(self, position: int, upper: Optional[int] = None):
        count = len(self.slides)
        limit = count if upper is None else upper
        if not isinstance(position, int) or not 0 <= position < limit:
            raise SlidePositionError(position, count)

    def _set_slides(self, slides: list[Slide]):
        renumber(slides)
        self.carousel.slides = slides
        self._changed("slides")

    def _changed(self, *fields: str):
        # Built-in decks are never written back
        if self.saver is None or self.carousel.read_only:
            return
        snapshot = self.carousel.persisted_fields()
        self.saver.schedule(self.carousel.id, {name: snapshot[name] for name in fields})

    def select(self, position: int):
        self._check_position(position)
        self.selected_index = position

    # ---- structural operations ----

    def add_slide(self) -> Optional[Slide]:
        if self.carousel.read_only:
            return None
        slides = list(self.slides)
        slide = Slide(position=len(slides), title=NEW_SLIDE_TITLE, body=NEW_SLIDE_BODY)
        slides.append(slide)
        self._set_slides(slides)
        self.selected_index = slide.position
        return slide

    def delete_slide(self, position: int) -> Optional[Slide]:
        if self.carousel.read_only:
            return None
        self._check_position(position)
        if len(self.slides) - 1 < MIN_SLIDES:
            raise MinimumSlideCountError(MIN_SLIDES)

        slides = list(self.slides)
        removed = slides.pop(position)
        self._drop_session_for(position)
        self._set_slides(slides)
        if self.selected_index >= len(slides):
            self.selected_index = len(slides) - 1
        return removed

    def duplicate_slide(self, position: int) -> Optional[Slide]:
        if self.carousel.read_only:
            return None
        self._check_position(position)
        slides = list(self.slides)
        copy = slides[position].model_copy()
        slides.insert(position + 1, copy)
        self._set_slides(slides)
        return copy

    def reorder_slide(self, from_pos: int, to_pos: int) -> int:
        """Move a slide; `to_pos` is a drop index in 0..count. Returns the final position."""
        if self.carousel.read_only:
            return from_pos
        self._check_position(from_pos)
        self._check_position(to_pos, upper=len(self.slides) + 1)
        adjusted = to_pos - 1 if to_pos > from_pos else to_pos
        if adjusted == from_pos:
            return from_pos

        slides = list(self.slides)
        slides.insert(adjusted, slides.pop(from_pos))
        self.session = None
        self._set_slides(slides)
        self.selected_index = reorder_selection(self.selected_index, from_pos, adjusted)
        return adjusted

    def update_slide(self, position: int, title: Optional[str] = None, body: Optional[str] = None) -> Slide:
        self._check_position(position)
        slide = self.slides[position]
        if title is not None:
            slide.title = title
        if body is not None:
            slide.body = body
        self._changed("slides")
        return slide

    # ---- style ----

    def change_template(self, template):
        template = parse_template(template)
        background, text = get_template_colors(template)
        self.carousel.template = template
        self.carousel.background_color = background
        self.carousel.text_color = text
        self._changed("template", "background_color", "text_color")

    def set_cover_style(self, cover_style):
        self.carousel.cover_style = parse_cover_style(cover_style)
        self._changed("cover_style")

    def set_background_color(self, color: str):
        self.carousel.background_color = normalize_color(color)
        self._changed("background_color")

    def set_text_color(self, color: str):
        self.carousel.text_color = normalize_color(color)
        self._changed("text_color")

    def set_accent_color(self, color: str):
        self.carousel.accent_color = normalize_color(color)
        self._changed("accent_color")

    def set_aspect_ratio(self, aspect_ratio):
        self.carousel.aspect_ratio = parse_aspect_ratio(aspect_ratio)
        self._changed("aspect_ratio")

    def apply_style(self, **changes):
        """Apply several style fields; all are validated before any is set."""
        setters = {
            "template": (parse_template, self.change_template),
            "cover_style": (parse_cover_style, self.set_cover_style),
            "background_color": (normalize_color, self.set_background_color),
            "text_color": (normalize_color, self.set_text_color),
            "accent_color": (normalize_color, self.set_accent_color),
            "aspect_ratio": (parse_aspect_ratio, self.set_aspect_ratio),
        }
        unknown = set(changes) - set(setters)
        if unknown:
            raise StructuralInvariantViolation(f"Unknown style fields: {sorted(unknown)}")
        parsed = {name: setters[name][0](value) for name, value in changes.items() if value is not None}
        # Template first so explicit colors in the same call win over its defaults
        for name in sorted(parsed, key=lambda n: n != "template"):
            setters[name][1](parsed[name])

    def rename(self, name: str):
        """Rename the deck; the first slide's title follows the name."""
        name = (name or "").strip()
        if not name:
            return
        self.carousel.carousel_name = name
        if self.slides:
            self.slides[0].title = name
        if self.saver is not None and not self.carousel.read_only:
            self.saver.schedule(self.carousel.id, {
                "carousel_name": name,
                "slides": self.carousel.persisted_fields()["slides"],
            })

    # ---- inline editing ----

    def begin_edit(self, position: int, field: str) -> EditSession:
        """Start editing a field; any other active edit is committed first."""
        self._check_position(position)
        if field not in EDITABLE_FIELDS:
            raise StructuralInvariantViolation(f"Field '{field}' is not editable")
        if self.session is not None:
            self.commit_edit()
        value = getattr(self.slides[position], field)
        self.selected_index = position
        self.session = EditSession(position=position, field=field, original=value, draft=value)
        return self.session

    def set_draft(self, value: str):
        if self.session is None:
            raise StructuralInvariantViolation("No edit in progress")
        self.session.draft = value

    def commit_edit(self) -> bool:
        """End the edit. Empty or whitespace-only drafts are discarded."""
        session, self.session = self.session, None
        if session is None:
            return False
        if not (session.draft or "").strip() or session.draft == session.original:
            return False
        self.update_slide(session.position, **{session.field: session.draft})
        return True

    def cancel_edit(self):
        self.session = None

    def _drop_session_for(self, position: int):
        if self.session is not None and self.session.position >= position:
            self.session = None
