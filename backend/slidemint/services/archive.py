"""
ZIP archive assembly and export file naming.
"""

import asyncio
import re
from io import BytesIO
from zipfile import ZIP_DEFLATED, ZipFile

UNSAFE_NAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def safe_name(deck_name: str) -> str:
    cleaned = UNSAFE_NAME_CHARS.sub("-", (deck_name or "").strip()).strip(" .")
    return cleaned or "carousel"


def slide_filename(deck_name: str, position: int) -> str:
    """`<deck-name>-slide-<n>.png` with n the 1-based visual position."""
    return f"{safe_name(deck_name)}-slide-{position + 1}.png"


def archive_filename(deck_name: str) -> str:
    return f"{safe_name(deck_name)}.zip"


def build_archive(named_buffers: dict) -> bytes:
    """Pack `{filename: bytes}` into one ZIP, entries in insertion order."""
    buffer = BytesIO()
    with ZipFile(buffer, "w", compression=ZIP_DEFLATED) as zf:
        for name, data in named_buffers.items():
            zf.writestr(name, data)
    return buffer.getvalue()


async def build_archive_async(named_buffers: dict) -> bytes:
    """Same as build_archive, off the event loop."""
    return await asyncio.to_thread(build_archive, dict(named_buffers))
