"""
Core data model: slides and carousel decks.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from slidemint.design_templates import (
    AspectRatio, CoverStyle, Template,
    DEFAULT_ASPECT_RATIO, DEFAULT_COVER_STYLE, DEFAULT_TEMPLATE,
    get_template_colors, default_accent, normalize_color,
)

MIN_SLIDES = 2
UNTITLED = "Untitled Carousel"

# Fields the carousels table persists; everything else is local-only
PERSISTED_FIELDS = (
    "slides", "template", "cover_style",
    "background_color", "text_color", "accent_color", "aspect_ratio",
)


class Slide(BaseModel):
    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    # Older rows store the position under "index"
    position: int = Field(default=0, validation_alias=AliasChoices("position", "index"))
    title: str = ""
    body: str = ""

    @field_validator("title", "body", mode="before")
    @classmethod
    def _missing_text_is_empty(cls, value):
        return "" if value is None else str(value)


class Carousel(BaseModel):
    """A deck: ordered slides plus the style shared by every slide."""

    model_config = ConfigDict(validate_assignment=True)

    id: str
    carousel_name: str = UNTITLED
    user_id: Optional[str] = None
    original_text: str = ""
    slides: list[Slide] = Field(default_factory=list)
    template: Template = DEFAULT_TEMPLATE
    cover_style: CoverStyle = DEFAULT_COVER_STYLE
    background_color: str = get_template_colors(DEFAULT_TEMPLATE)[0]
    text_color: str = get_template_colors(DEFAULT_TEMPLATE)[1]
    accent_color: str = default_accent(DEFAULT_TEMPLATE)
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    # Built-in sample decks cannot be structurally edited
    read_only: bool = False
    # Shadowed by the local override store
    post_content: Optional[str] = None
    content_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("background_color", "text_color", "accent_color", mode="before")
    @classmethod
    def _valid_color(cls, value):
        return normalize_color(value)

    @property
    def display_name(self) -> str:
        return self.carousel_name or "carousel"

    def persisted_fields(self) -> dict:
        """Snapshot of the fields sent to the save collaborator."""
        data = self.model_dump(mode="json", include=set(PERSISTED_FIELDS))
        return {name: data[name] for name in PERSISTED_FIELDS}


def renumber(slides: list[Slide]) -> None:
    """Make positions exactly 0..n-1 in list order."""
    for i, slide in enumerate(slides):
        if slide.position != i:
            slide.position = i
