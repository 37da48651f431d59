"""
Slide generation service using OpenAI to turn long text into carousel slides.
Falls back to a local sentence-chunking heuristic whenever the model is
unavailable or returns something unusable, so a deck can always be built.
"""

import json
import logging
import math
import re
from typing import Optional

import httpx
from openai import AsyncOpenAI

from slidemint.config import get_settings
from slidemint.exceptions import GenerationUnavailable
from slidemint.schemas import Slide, renumber

logger = logging.getLogger(__name__)

STYLES = ("Professional", "Storytelling", "Educational", "List / Tips")
DEFAULT_STYLE = "Professional"

REQUEST_TIMEOUT = 30.0

MIN_GENERATED_SLIDES = 6
MAX_GENERATED_SLIDES = 12
# Fewer usable entries than this and the response is treated as malformed
MIN_USABLE_SLIDES = 2
TITLE_WORDS = 5
BODY_LIMIT = 300

SENTENCE_SPLIT = re.compile(r"[.!?]+")


def build_system_prompt(style: str, language: str) -> str:
    """Build the system prompt for slide generation."""
    return f"""You are SlideMint, an AI model specialized in transforming long Hebrew or English text into high-quality, LinkedIn-ready carousel slides.

TASK
Given the following long text, transform it into a structured sequence of {MIN_GENERATED_SLIDES}-{MAX_GENERATED_SLIDES} carousel slides.

REQUIREMENTS
1. Output JSON only. No explanations.
2. Each slide must have:
   - "index": number
   - "title": a short, punchy LinkedIn-style headline
   - "body": 1-3 short sentences
3. The tone must fit the user-selected style:
   - "Professional": clear, concise, business tone
   - "Storytelling": emotionally engaging narrative
   - "Educational": structured, helpful, logical
   - "List / Tips": direct bullets with strong clarity
4. Simplify the text. Remove filler.
5. Highlight key insights and make them scannable.
6. If the text is Hebrew, output Hebrew. If English, output English.
7. First slide must always mention the main idea.
8. Last slide must include a short closing message or call-to-action.

OUTPUT FORMAT
{{
  "slides": [
     {{ "index": 1, "title": "...", "body": "..." }},
     {{ "index": 2, "title": "...", "body": "..." }}
  ]
}}

USER SELECTED STYLE: {style}
DETECTED LANGUAGE: {language}
"""


def parse_slides(content: Optional[str]) -> list[Slide]:
    """Validate a model response. Raises GenerationUnavailable if it is unusable."""
    if not content:
        raise GenerationUnavailable("No content in AI response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise GenerationUnavailable(f"Failed to parse OpenAI response as JSON: {e}")

    raw = data.get("slides") if isinstance(data, dict) else None
    if not isinstance(raw, list):
        raise GenerationUnavailable("Response has no 'slides' list")

    slides = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        body = entry.get("body")
        if not isinstance(title, str) or not isinstance(body, str) or not (title.strip() or body.strip()):
            continue
        slides.append(Slide(title=title.strip(), body=body.strip()))

    if len(slides) < MIN_USABLE_SLIDES:
        raise GenerationUnavailable(f"Only {len(slides)} usable slides in response")
    if len(slides) > MAX_GENERATED_SLIDES:
        logger.info(f"Truncating {len(slides)} generated slides to {MAX_GENERATED_SLIDES}")
        slides = slides[:MAX_GENERATED_SLIDES]

    renumber(slides)
    return slides


def generate_slides_heuristic(text: str) -> list[Slide]:
    """Split text into sentence chunks; first words become the title, the rest the body."""
    sentences = [s for s in SENTENCE_SPLIT.split(text or "") if s.strip()]
    slide_count = min(MAX_GENERATED_SLIDES, max(MIN_GENERATED_SLIDES, math.ceil(len(sentences) / 2)))
    per_slide = math.ceil(len(sentences) / slide_count)

    slides = []
    for i in range(slide_count):
        start = i * per_slide
        end = min(start + per_slide, len(sentences))
        chunk = ". ".join(sentences[start:end]).strip()
        words = chunk.split(" ")
        title_words = words[:TITLE_WORDS]
        title = " ".join(title_words) + ("..." if len(title_words) < len(words) else "")
        body = " ".join(words[len(title_words):]).strip() or chunk
        slides.append(Slide(
            position=i,
            title=title or f"שקופית {i + 1}",
            body=body[:BODY_LIMIT],
        ))
    return slides


class SlideGenerator:
    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        settings = get_settings()
        self.model = model or settings.generation_model
        self._client = client
        self._api_key = settings.openai_api_key

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise GenerationUnavailable("OPENAI_API_KEY not configured")
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                http_client=httpx.AsyncClient(timeout=REQUEST_TIMEOUT),
            )
        return self._client

    async def generate_with_openai(self, text: str, style: str, language: str) -> list[Slide]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(style, language)},
                    {"role": "user", "content": text},
                ],
                temperature=0.7,
                response_format={"type": "json_object"},
            )
        except GenerationUnavailable:
            raise
        except Exception as e:
            raise GenerationUnavailable(f"OpenAI API error: {e}") from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        return parse_slides(content)

    async def generate(self, text: str, style: str = DEFAULT_STYLE, language: str = "he") -> list[Slide]:
        """
        Generate slides for `text`, never failing for generation reasons alone.

        Args:
            text: The raw source text
            style: One of STYLES
            language: "he" or "en"

        Returns:
            list of Slide with positions 0..n-1
        """
        if style not in STYLES:
            style = DEFAULT_STYLE
        try:
            slides = await self.generate_with_openai(text, style, language)
            logger.info(f"✓ Generated {len(slides)} slides with {self.model}")
            return slides
        except GenerationUnavailable as e:
            logger.warning(f"OpenAI generation failed, falling back to heuristic: {e}")
            return generate_slides_heuristic(text)


_generator = None


def get_generator() -> SlideGenerator:
    global _generator
    if _generator is None:
        _generator = SlideGenerator()
    return _generator
