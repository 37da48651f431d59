"""
Carousel persistence.

Two tiers:
- the authoritative store (SQL table or in-memory dict) holds the deck fields
  the `carousels` table knows about;
- the local override store holds `post_content` / `content_type`, which the
  table does not have yet. Overrides win on read and are the only place those
  fields are written.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import select

from slidemint.design_templates import (
    DEFAULT_ASPECT_RATIO, DEFAULT_COVER_STYLE, DEFAULT_TEMPLATE, default_accent, get_template_colors,
)
from slidemint.exceptions import CarouselNotFound, PersistenceError
from slidemint.models import CarouselRecord
from slidemint.schemas import PERSISTED_FIELDS, UNTITLED, Carousel, Slide, renumber
from slidemint.services.content_generator import DEFAULT_STYLE, SlideGenerator, get_generator
from slidemint.services.text_direction import detect_language

logger = logging.getLogger(__name__)

STORED_FIELDS = PERSISTED_FIELDS + ("carousel_name",)
OVERRIDE_FIELDS = ("post_content", "content_type")
DEFAULT_CONTENT_TYPE = "full_post"

SAMPLE_ID = "welcome-carousel"


def welcome_carousel() -> Carousel:
    """Built-in onboarding deck. Readable and restylable, never structurally edited."""
    slides = [
        ("Welcome to Post24", "Your visual content creation platform for stunning LinkedIn carousels. Let us show you around!"),
        ("Create Your First Carousel", "Click \"New Carousel\" to start. Choose your content type and we'll structure it into beautiful slides."),
        ("Customize Your Design", "Adjust colors, templates, styles, and aspect ratios. Make your carousel uniquely yours!"),
        ("Edit Individual Slides", "Click any slide to edit its content directly. Add, duplicate, or remove slides as needed."),
        ("Edit Post Content", "View and edit your original post content. Changes are automatically saved!"),
        ("Export & Share", "Ready to share? Export your carousel as PNG images and post directly to LinkedIn or other platforms."),
        ("You're Ready!", "Start creating amazing visual content. Your audience will love the professional carousels you can make with Post24!"),
    ]
    now = datetime.now(timezone.utc)
    return Carousel(
        id=SAMPLE_ID,
        carousel_name="Welcome to Post24",
        slides=[Slide(position=i, title=t, body=b) for i, (t, b) in enumerate(slides)],
        template="dark",
        cover_style="gradient_overlay",
        background_color="#000000",
        text_color="#FFFFFF",
        accent_color="#3B82F6",
        aspect_ratio="4:5",
        read_only=True,
        content_type=DEFAULT_CONTENT_TYPE,
        post_content="Welcome to Post24 - Your visual content creation platform for stunning LinkedIn carousels. "
                     "Create professional carousels with our easy-to-use interface, customize designs, and export "
                     "high-quality images ready for social media.",
        created_at=now,
        updated_at=now,
    )


def _stored_only(fields: dict) -> dict:
    unknown = set(fields) - set(STORED_FIELDS)
    if unknown:
        raise PersistenceError(f"Fields not stored in the carousels table: {sorted(unknown)}")
    return fields


# ============================================
# AUTHORITATIVE STORES
# ============================================

class InMemoryCarouselStore:
    """Dict-backed store for development and tests."""

    def __init__(self):
        self._rows: dict[str, Carousel] = {}

    async def get(self, carousel_id: str) -> Optional[Carousel]:
        row = self._rows.get(carousel_id)
        return row.model_copy(deep=True) if row else None

    async def insert(self, carousel: Carousel) -> Carousel:
        now = datetime.now(timezone.utc)
        row = carousel.model_copy(deep=True, update={
            "created_at": carousel.created_at or now,
            "updated_at": now,
            "post_content": None,
            "content_type": None,
        })
        self._rows[row.id] = row
        return row.model_copy(deep=True)

    async def save(self, carousel_id: str, fields: dict):
        row = self._rows.get(carousel_id)
        if row is None:
            raise CarouselNotFound(carousel_id)
        data = row.model_dump()
        data.update(_stored_only(fields))
        data["updated_at"] = datetime.now(timezone.utc)
        self._rows[carousel_id] = Carousel.model_validate(data)

    async def delete(self, carousel_id: str) -> bool:
        return self._rows.pop(carousel_id, None) is not None

    async def list(self, user_id: Optional[str] = None) -> list[Carousel]:
        rows = [r for r in self._rows.values() if user_id is None or r.user_id == user_id]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in rows]


class SqlCarouselStore:
    """Store backed by the `carousels` table."""

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def get(self, carousel_id: str) -> Optional[Carousel]:
        async with self.session_maker() as db:
            record = await db.get(CarouselRecord, carousel_id)
            return _to_carousel(record) if record else None

    async def insert(self, carousel: Carousel) -> Carousel:
        data = carousel.model_dump(mode="json", include={
            "id", "user_id", "carousel_name", "original_text", "read_only", *PERSISTED_FIELDS,
        })
        async with self.session_maker() as db:
            record = CarouselRecord(**data)
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return _to_carousel(record)

    async def save(self, carousel_id: str, fields: dict):
        fields = _stored_only(fields)
        # Validated and normalized by the model before reaching the table
        validated = Carousel.model_validate({"id": carousel_id, **fields}).model_dump(mode="json")
        async with self.session_maker() as db:
            record = await db.get(CarouselRecord, carousel_id)
            if record is None:
                raise CarouselNotFound(carousel_id)
            for name in fields:
                setattr(record, name, validated[name])
            record.updated_at = datetime.now(timezone.utc)
            await db.commit()

    async def delete(self, carousel_id: str) -> bool:
        async with self.session_maker() as db:
            record = await db.get(CarouselRecord, carousel_id)
            if record is None:
                return False
            await db.delete(record)
            await db.commit()
            return True

    async def list(self, user_id: Optional[str] = None) -> list[Carousel]:
        query = select(CarouselRecord).order_by(CarouselRecord.created_at.desc())
        if user_id is not None:
            query = query.where(CarouselRecord.user_id == user_id)
        async with self.session_maker() as db:
            result = await db.execute(query)
            return [_to_carousel(r) for r in result.scalars().all()]


def _to_carousel(record: CarouselRecord) -> Carousel:
    return Carousel(
        id=record.id,
        user_id=record.user_id,
        carousel_name=record.carousel_name or UNTITLED,
        original_text=record.original_text or "",
        slides=record.slides or [],
        template=record.template,
        cover_style=record.cover_style,
        background_color=record.background_color,
        text_color=record.text_color,
        accent_color=record.accent_color,
        aspect_ratio=record.aspect_ratio,
        read_only=bool(record.read_only),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


# ============================================
# LOCAL OVERRIDES
# ============================================

class LocalOverrideStore:
    """Key-value strings keyed `<field>_<carousel id>`, optionally mirrored to a JSON file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._values: dict[str, str] = {}
        if self.path and self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                self._values = json.load(f)

    @staticmethod
    def key(field: str, carousel_id: str) -> str:
        return f"{field}_{carousel_id}"

    def get(self, field: str, carousel_id: str) -> Optional[str]:
        return self._values.get(self.key(field, carousel_id))

    def set(self, field: str, carousel_id: str, value: str):
        self._values[self.key(field, carousel_id)] = value
        self._flush()

    def discard(self, carousel_id: str):
        removed = False
        for field in OVERRIDE_FIELDS:
            removed |= self._values.pop(self.key(field, carousel_id), None) is not None
        if removed:
            self._flush()

    def _flush(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, ensure_ascii=False, indent=2)


# ============================================
# REPOSITORY
# ============================================

class CarouselRepository:
    def __init__(self, store, overrides: Optional[LocalOverrideStore] = None,
                 generator: Optional[SlideGenerator] = None):
        self.store = store
        self.overrides = overrides or LocalOverrideStore()
        self._generator = generator
        self._samples = {SAMPLE_ID: welcome_carousel()}

    @property
    def generator(self) -> SlideGenerator:
        return self._generator or get_generator()

    def _overlay(self, carousel: Carousel) -> Carousel:
        for field in OVERRIDE_FIELDS:
            value = self.overrides.get(field, carousel.id)
            if value is not None:
                setattr(carousel, field, value)
        return carousel

    async def get(self, carousel_id: str) -> Carousel:
        if carousel_id in self._samples:
            return self._overlay(self._samples[carousel_id].model_copy(deep=True))
        carousel = await self.store.get(carousel_id)
        if carousel is None:
            raise CarouselNotFound(carousel_id)
        return self._overlay(carousel)

    async def save(self, carousel_id: str, fields: dict):
        """Idempotent partial save; override fields go to the local tier only."""
        stored = {k: v for k, v in fields.items() if k not in OVERRIDE_FIELDS}
        if stored and carousel_id in self._samples:
            raise PersistenceError("Built-in sample carousels are read-only; duplicate it to make changes")

        for field in OVERRIDE_FIELDS:
            if fields.get(field) is not None:
                self.overrides.set(field, carousel_id, fields[field])
        if stored and carousel_id not in self._samples:
            await self.store.save(carousel_id, stored)

    async def insert(self, carousel: Carousel) -> Carousel:
        created = await self.store.insert(carousel)
        for field in OVERRIDE_FIELDS:
            value = getattr(carousel, field)
            if value is not None:
                self.overrides.set(field, created.id, value)
        return self._overlay(created)

    async def create(self, text: str, style: str = DEFAULT_STYLE, user_id: Optional[str] = None,
                     content_type: str = DEFAULT_CONTENT_TYPE) -> Carousel:
        """Generate slides from raw text and store a new deck with default styling."""
        language = detect_language(text)
        slides = await self.generator.generate(text, style, language)
        renumber(slides)
        background, text_color = get_template_colors(DEFAULT_TEMPLATE)
        carousel = Carousel(
            id=uuid.uuid4().hex,
            user_id=user_id,
            carousel_name=(slides[0].title if slides else "") or UNTITLED,
            original_text=text,
            slides=slides,
            template=DEFAULT_TEMPLATE,
            cover_style=DEFAULT_COVER_STYLE,
            background_color=background,
            text_color=text_color,
            accent_color=default_accent(DEFAULT_TEMPLATE),
            aspect_ratio=DEFAULT_ASPECT_RATIO,
            post_content=text,
            content_type=content_type,
        )
        created = await self.insert(carousel)
        logger.info(f"✓ Created carousel {created.id} with {len(created.slides)} slides ({language})")
        return created

    async def duplicate(self, carousel_id: str, user_id: Optional[str] = None) -> Carousel:
        source = await self.get(carousel_id)
        post_content = source.post_content or source.original_text or ""
        copy = source.model_copy(deep=True, update={
            "id": uuid.uuid4().hex,
            "user_id": user_id or source.user_id,
            "carousel_name": (source.slides[0].title if source.slides else "") or UNTITLED,
            "original_text": source.original_text or post_content,
            "read_only": False,
            "post_content": post_content,
            "content_type": source.content_type or DEFAULT_CONTENT_TYPE,
            "created_at": None,
            "updated_at": None,
        })
        created = await self.insert(copy)
        logger.info(f"✓ Duplicated carousel {carousel_id} -> {created.id}")
        return created

    async def delete(self, carousel_id: str):
        if carousel_id in self._samples:
            raise PersistenceError("Built-in sample carousels cannot be deleted")
        if not await self.store.delete(carousel_id):
            raise CarouselNotFound(carousel_id)
        self.overrides.discard(carousel_id)

    async def list(self, user_id: Optional[str] = None, query: Optional[str] = None) -> list[Carousel]:
        """User decks newest first, the sample deck last; optional case-insensitive search."""
        carousels = [self._overlay(c) for c in await self.store.list(user_id)]
        carousels.extend(self._overlay(s.model_copy(deep=True)) for s in self._samples.values())
        if query:
            needle = query.lower()
            carousels = [c for c in carousels if _matches(c, needle)]
        return carousels


def _matches(carousel: Carousel, needle: str) -> bool:
    if needle in (carousel.carousel_name or "").lower():
        return True
    return any(needle in s.title.lower() or needle in s.body.lower() for s in carousel.slides)
