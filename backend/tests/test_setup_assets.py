"""Tests for font archive extraction."""

import io
import zipfile

from setup_assets import extract_fonts


def font_archive(names):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name in names:
            zf.writestr(name, f"data:{name}")
    return buffer.getvalue()


def test_extracts_only_rendered_weights(tmp_path):
    archive = font_archive([
        "Heebo-Bold.ttf",
        "static/Heebo-Regular.ttf",
        "static/Heebo-Thin.ttf",
        "OFL.txt",
    ])
    extracted = extract_fonts(archive, tmp_path / "fonts")
    assert extracted == ["Heebo-Bold.ttf", "Heebo-Regular.ttf"]
    assert (tmp_path / "fonts" / "Heebo-Regular.ttf").read_bytes() == b"data:static/Heebo-Regular.ttf"
    assert not (tmp_path / "fonts" / "OFL.txt").exists()


def test_first_copy_wins(tmp_path):
    archive = font_archive(["static/Heebo-Medium.ttf", "other/Heebo-Medium.ttf"])
    assert extract_fonts(archive, tmp_path) == ["Heebo-Medium.ttf"]
    assert (tmp_path / "Heebo-Medium.ttf").read_bytes() == b"data:static/Heebo-Medium.ttf"
