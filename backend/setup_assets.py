#!/usr/bin/env python3
"""
Setup script to download the Heebo font family (Latin + Hebrew) used for
slide layout and export. Run this before starting the server; without it the
renderer falls back to Pillow's built-in face, which has no Hebrew glyphs.
"""

import io
import os
import urllib.request
import zipfile
from pathlib import Path

from slidemint.services.fonts import FONT_WEIGHTS

FONT_URL = "https://fonts.google.com/download?family=Heebo"
FAMILY = "Heebo"
FONTS_DIR = Path("assets") / "fonts" / FAMILY


def extract_fonts(archive: bytes, dest: Path) -> list[str]:
    """Pull the static weights we render with out of a Google Fonts archive."""
    wanted = {f"{FAMILY}-{suffix}.ttf" for suffix in FONT_WEIGHTS.values()}
    dest.mkdir(parents=True, exist_ok=True)
    extracted = []
    with zipfile.ZipFile(io.BytesIO(archive), "r") as zip_ref:
        for file in zip_ref.namelist():
            font_name = os.path.basename(file)
            if font_name in wanted and font_name not in extracted:
                with open(dest / font_name, "wb") as f:
                    f.write(zip_ref.read(file))
                extracted.append(font_name)
                print(f"  Extracted: {font_name}")
    return sorted(extracted)


def download_fonts():
    """Download Heebo from Google Fonts."""
    if any(FONTS_DIR.glob("*.ttf")):
        print("✓ Fonts already exist, skipping download")
        return

    print(f"Downloading {FAMILY} fonts...")
    try:
        with urllib.request.urlopen(FONT_URL) as response:
            archive = response.read()
        print("✓ Downloaded font archive")
        extracted = extract_fonts(archive, FONTS_DIR)
        print(f"✓ {len(extracted)} fonts installed")
    except Exception as e:
        print(f"✗ Failed to download fonts: {e}")
        print(f"  Please download {FAMILY} manually from https://fonts.google.com/specimen/{FAMILY}")
        print(f"  and place the static TTF files in: {FONTS_DIR}")


def check_assets():
    print("\nAsset Status:")
    missing = [s for s in FONT_WEIGHTS.values() if not (FONTS_DIR / f"{FAMILY}-{s}.ttf").exists()]
    if missing:
        print(f"✗ Missing weights: {', '.join(missing)}")
    else:
        print(f"✓ All {FAMILY} weights found")


def main():
    print("=" * 50)
    print("SlideMint Asset Setup")
    print("=" * 50)
    download_fonts()
    check_assets()


if __name__ == "__main__":
    main()
