"""Tests for OpenAI slide generation and the local fallback heuristic."""

import json
from types import SimpleNamespace

import pytest

from slidemint.exceptions import GenerationUnavailable
from slidemint.services.content_generator import SlideGenerator, generate_slides_heuristic, parse_slides


def fake_client(content=None, error=None):
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        if error:
            raise error
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    client.calls = calls
    return client


def response(count):
    return json.dumps({"slides": [{"index": i + 1, "title": f"T{i + 1}", "body": f"B{i + 1}"} for i in range(count)]})


class TestHeuristic:
    def test_short_text_gets_six_slides(self):
        slides = generate_slides_heuristic("One two three four five six seven. Second sentence here. Third.")
        assert len(slides) == 6
        assert [s.position for s in slides] == list(range(6))
        assert slides[0].title == "One two three four five..."
        assert slides[0].body == "six seven"
        # Chunk shorter than the title keeps itself as the body
        assert slides[1].title == "Second sentence here"
        assert slides[1].body == "Second sentence here"
        assert slides[3].title == "שקופית 4"
        assert slides[3].body == ""

    def test_many_sentences_capped_at_twelve(self):
        text = " ".join(f"Sentence number {i} is here." for i in range(40))
        slides = generate_slides_heuristic(text)
        assert len(slides) == 12

    def test_slide_count_scales_with_sentences(self):
        text = " ".join(f"Sentence {i}." for i in range(16))
        assert len(generate_slides_heuristic(text)) == 8

    def test_body_capped(self):
        text = "Title words go here then " + "word " * 200 + "."
        slides = generate_slides_heuristic(text)
        assert len(slides[0].body) == 300

    def test_empty_text(self):
        slides = generate_slides_heuristic("")
        assert len(slides) == 6
        assert slides[0].title == "שקופית 1"


class TestParse:
    def test_valid(self):
        slides = parse_slides(response(7))
        assert [s.title for s in slides][:2] == ["T1", "T2"]
        assert [s.position for s in slides] == list(range(7))

    def test_truncates_to_twelve(self):
        assert len(parse_slides(response(15))) == 12

    @pytest.mark.parametrize("content", [None, "", "not json", "[]", '{"slides": "x"}', response(1)])
    def test_malformed(self, content):
        with pytest.raises(GenerationUnavailable):
            parse_slides(content)

    def test_skips_bad_entries(self):
        content = json.dumps({"slides": [{"title": "A", "body": "a"}, "junk", {"title": 3}, {"title": "B", "body": "b"}]})
        assert [s.title for s in parse_slides(content)] == ["A", "B"]


class TestGenerator:
    async def test_uses_model_response(self):
        client = fake_client(content=response(6))
        generator = SlideGenerator(client=client, model="gpt-4o-mini")
        slides = await generator.generate("Some long text", "Educational", "en")
        assert len(slides) == 6
        call = client.calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["response_format"] == {"type": "json_object"}
        assert "USER SELECTED STYLE: Educational" in call["messages"][0]["content"]
        assert call["messages"][1]["content"] == "Some long text"

    async def test_falls_back_on_api_error(self):
        generator = SlideGenerator(client=fake_client(error=RuntimeError("503")))
        slides = await generator.generate("First point. Second point.", "Professional", "en")
        assert len(slides) == 6
        assert slides[0].title == "First point"

    async def test_falls_back_on_malformed_response(self):
        generator = SlideGenerator(client=fake_client(content="{}"))
        slides = await generator.generate("Only one sentence here.")
        assert len(slides) == 6

    async def test_unknown_style_defaults(self):
        client = fake_client(content=response(6))
        await SlideGenerator(client=client).generate("text", "Shouting", "en")
        assert "USER SELECTED STYLE: Professional" in client.calls[0]["messages"][0]["content"]

    async def test_missing_key_falls_back(self):
        generator = SlideGenerator()
        generator._api_key = ""
        slides = await generator.generate("A sentence. Another one.")
        assert len(slides) == 6

    def test_client_requires_key(self):
        generator = SlideGenerator()
        generator._api_key = ""
        with pytest.raises(GenerationUnavailable):
            generator.client
