"""Hebrew-ratio heuristic for slide text direction."""

import re
from enum import Enum

HEBREW_CHARS = re.compile(r"[\u0590-\u05FF]")
WHITESPACE = re.compile(r"\s")
RTL_THRESHOLD = 0.3


class TextDirection(str, Enum):
    LTR = "ltr"
    RTL = "rtl"


def hebrew_ratio(text: str) -> float:
    """Hebrew characters over non-whitespace characters (0 for blank text)."""
    if not text:
        return 0.0
    total = len(WHITESPACE.sub("", text))
    if total == 0:
        return 0.0
    return len(HEBREW_CHARS.findall(text)) / total


def classify(text: str) -> TextDirection:
    """RTL when more than 30% of the non-space characters are Hebrew."""
    return TextDirection.RTL if hebrew_ratio(text) > RTL_THRESHOLD else TextDirection.LTR


def slide_direction(title: str, body: str) -> TextDirection:
    return classify(f"{title or ''} {body or ''}")


def detect_language(text: str) -> str:
    """Language hint for the generation service ('he' or 'en')."""
    hebrew = len(HEBREW_CHARS.findall(text or ""))
    return "he" if hebrew and hebrew > len(text) * RTL_THRESHOLD else "en"
