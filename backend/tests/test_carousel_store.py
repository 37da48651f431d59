"""Tests for the authoritative stores, the local override layer and the repository."""

import pytest

from conftest import StaticGenerator, make_carousel
from slidemint.database import build_engine, build_session_maker, create_tables
from slidemint.design_templates import AspectRatio, CoverStyle, Template
from slidemint.exceptions import CarouselNotFound, PersistenceError
from slidemint.schemas import Slide
from slidemint.services.carousel_store import (
    SAMPLE_ID, CarouselRepository, InMemoryCarouselStore, LocalOverrideStore, SqlCarouselStore,
)


@pytest.fixture
async def sql_store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'slidemint.db'}")
    await create_tables(engine)
    yield SqlCarouselStore(build_session_maker(engine))
    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryCarouselStore()
        return
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'decks.db'}")
    await create_tables(engine)
    yield SqlCarouselStore(build_session_maker(engine))
    await engine.dispose()


class TestStores:
    async def test_insert_and_get(self, store):
        await store.insert(make_carousel(3, accent_color="#123456", aspect_ratio="1:1"))
        loaded = await store.get("deck-1")
        assert [s.title for s in loaded.slides] == ["Slide 1", "Slide 2", "Slide 3"]
        assert loaded.accent_color == "#123456"
        assert loaded.aspect_ratio == AspectRatio.SQUARE
        assert loaded.created_at is not None

    async def test_partial_save(self, store):
        await store.insert(make_carousel(3))
        await store.save("deck-1", {"template": "light", "slides": [{"position": 0, "title": "A", "body": "a"},
                                                                    {"position": 1, "title": "B", "body": "b"}]})
        loaded = await store.get("deck-1")
        assert loaded.template == Template.LIGHT
        assert [s.title for s in loaded.slides] == ["A", "B"]
        assert loaded.cover_style == CoverStyle.MINIMALIST

    async def test_save_is_idempotent(self, store):
        await store.insert(make_carousel(3))
        fields = {"cover_style": "geometric"}
        await store.save("deck-1", fields)
        await store.save("deck-1", fields)
        assert (await store.get("deck-1")).cover_style == CoverStyle.GEOMETRIC

    async def test_save_missing(self, store):
        with pytest.raises(CarouselNotFound):
            await store.save("nope", {"template": "dark"})

    async def test_override_fields_never_stored(self, store):
        await store.insert(make_carousel(2))
        with pytest.raises(PersistenceError):
            await store.save("deck-1", {"post_content": "x"})

    async def test_delete_and_list(self, store):
        await store.insert(make_carousel(2, id="a", user_id="u1"))
        await store.insert(make_carousel(2, id="b", user_id="u2"))
        assert {c.id for c in await store.list()} == {"a", "b"}
        assert [c.id for c in await store.list(user_id="u1")] == ["a"]
        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.get("a") is None


class TestOverrides:
    def test_keys(self):
        assert LocalOverrideStore.key("post_content", "abc") == "post_content_abc"

    def test_persisted_to_file(self, tmp_path):
        path = tmp_path / "overrides.json"
        LocalOverrideStore(str(path)).set("content_type", "abc", "topic_idea")
        assert LocalOverrideStore(str(path)).get("content_type", "abc") == "topic_idea"

    def test_discard(self):
        overrides = LocalOverrideStore()
        overrides.set("post_content", "abc", "text")
        overrides.discard("abc")
        assert overrides.get("post_content", "abc") is None


class TestRepository:
    async def test_create_uses_defaults(self, repository):
        carousel = await repository.create("Some text to turn into slides", "Professional")
        assert carousel.carousel_name == "Point 1"
        assert carousel.template == Template.DARK
        assert carousel.cover_style == CoverStyle.MINIMALIST
        assert (carousel.background_color, carousel.text_color, carousel.accent_color) == (
            "#000000", "#FFFFFF", "#FFFFFF",
        )
        assert carousel.aspect_ratio == AspectRatio.PORTRAIT
        assert carousel.post_content == "Some text to turn into slides"
        assert carousel.content_type == "full_post"

    async def test_create_detects_language(self):
        generator = StaticGenerator()
        repository = CarouselRepository(InMemoryCarouselStore(), generator=generator)
        await repository.create("זה טקסט בעברית לגמרי")
        assert generator.requests[0][2] == "he"

    async def test_untitled_when_first_title_blank(self):
        generator = StaticGenerator(slides=[Slide(title="", body="a"), Slide(title="B", body="b")])
        repository = CarouselRepository(InMemoryCarouselStore(), generator=generator)
        assert (await repository.create("text")).carousel_name == "Untitled Carousel"

    async def test_override_wins_on_read(self, repository):
        carousel = await repository.create("original post")
        await repository.save(carousel.id, {"post_content": "edited post", "cover_style": "geometric"})
        loaded = await repository.get(carousel.id)
        assert loaded.post_content == "edited post"
        assert loaded.cover_style == CoverStyle.GEOMETRIC
        assert repository.overrides.get("post_content", carousel.id) == "edited post"

    async def test_duplicate_carries_overrides(self, repository):
        source = await repository.create("original post")
        await repository.save(source.id, {"content_type": "topic_idea"})
        copy = await repository.duplicate(source.id)
        assert copy.id != source.id
        assert [s.title for s in copy.slides] == [s.title for s in source.slides]
        assert copy.post_content == "original post"
        assert copy.content_type == "topic_idea"
        assert copy.carousel_name == source.slides[0].title

    async def test_duplicate_of_sample_is_editable(self, repository):
        copy = await repository.duplicate(SAMPLE_ID)
        assert copy.read_only is False
        assert len(copy.slides) == 7

    async def test_sample_deck(self, repository):
        sample = await repository.get(SAMPLE_ID)
        assert sample.read_only
        with pytest.raises(PersistenceError):
            await repository.delete(SAMPLE_ID)

    async def test_sample_deck_cannot_be_rewritten(self, repository):
        slides = [{"position": 0, "title": "Replaced", "body": "x"}, {"position": 1, "title": "B", "body": "y"}]
        with pytest.raises(PersistenceError):
            await repository.save(SAMPLE_ID, {"slides": slides, "carousel_name": "Replaced"})
        sample = await repository.get(SAMPLE_ID)
        assert len(sample.slides) == 7
        assert sample.slides[0].title == "Welcome to Post24"
        assert sample.carousel_name == "Welcome to Post24"

    async def test_sample_deck_keeps_local_fields(self, repository):
        await repository.save(SAMPLE_ID, {"post_content": "my notes"})
        assert (await repository.get(SAMPLE_ID)).post_content == "my notes"

    async def test_list_puts_sample_last_and_searches(self, repository):
        await repository.create("first")
        decks = await repository.list()
        assert decks[-1].id == SAMPLE_ID
        found = await repository.list(query="detail 2")
        assert len(found) == 1 and found[0].id != SAMPLE_ID

    async def test_delete(self, repository):
        carousel = await repository.create("text")
        await repository.delete(carousel.id)
        with pytest.raises(CarouselNotFound):
            await repository.get(carousel.id)
        with pytest.raises(CarouselNotFound):
            await repository.delete(carousel.id)

    async def test_repository_over_sql(self, sql_store):
        repository = CarouselRepository(sql_store, generator=StaticGenerator())
        carousel = await repository.create("text for sql")
        await repository.save(carousel.id, {"aspect_ratio": "1:1", "carousel_name": "Renamed"})
        loaded = await repository.get(carousel.id)
        assert loaded.aspect_ratio == AspectRatio.SQUARE
        assert loaded.carousel_name == "Renamed"
        assert loaded.post_content == "text for sql"
