"""Tests for structural deck operations, style setters and inline editing."""

import random

import pytest

from conftest import RecordingSaver, make_carousel
from slidemint.design_templates import AspectRatio, CoverStyle, Template
from slidemint.exceptions import (
    InvalidStyleError, MinimumSlideCountError, SlidePositionError, StructuralInvariantViolation,
)
from slidemint.services.deck_editor import CarouselEditor, reorder_selection


def positions(editor):
    return [s.position for s in editor.slides]


def titles(editor):
    return [s.title for s in editor.slides]


class TestStructure:
    def test_positions_stay_contiguous(self):
        rng = random.Random(7)
        editor = CarouselEditor(make_carousel(4))
        for _ in range(200):
            op = rng.choice(["add", "delete", "duplicate", "reorder"])
            count = len(editor.slides)
            if op == "add":
                editor.add_slide()
            elif op == "delete":
                if count > 2:
                    editor.delete_slide(rng.randrange(count))
            elif op == "duplicate":
                editor.duplicate_slide(rng.randrange(count))
            else:
                editor.reorder_slide(rng.randrange(count), rng.randrange(count + 1))
            assert positions(editor) == list(range(len(editor.slides)))
            assert 0 <= editor.selected_index < len(editor.slides)

    def test_delete_from_two_slide_deck_fails_unchanged(self):
        editor = CarouselEditor(make_carousel(2))
        before = [s.model_dump() for s in editor.slides]
        with pytest.raises(MinimumSlideCountError):
            editor.delete_slide(0)
        assert [s.model_dump() for s in editor.slides] == before

    def test_delete_clamps_selection(self):
        editor = CarouselEditor(make_carousel(3))
        editor.select(2)
        editor.delete_slide(2)
        assert editor.selected_index == 1
        assert titles(editor) == ["Slide 1", "Slide 2"]

    def test_delete_bad_position(self):
        editor = CarouselEditor(make_carousel(3))
        with pytest.raises(SlidePositionError):
            editor.delete_slide(3)
        assert len(editor.slides) == 3

    def test_add_slide_appends_and_selects(self):
        editor = CarouselEditor(make_carousel(3))
        slide = editor.add_slide()
        assert slide.position == 3
        assert (slide.title, slide.body) == ("New Title", "New content")
        assert editor.selected_index == 3

    def test_read_only_deck_ignores_structural_changes(self):
        editor = CarouselEditor(make_carousel(3, read_only=True))
        assert editor.add_slide() is None
        assert editor.delete_slide(0) is None
        assert editor.duplicate_slide(0) is None
        assert editor.reorder_slide(0, 3) == 0
        assert len(editor.slides) == 3
        assert titles(editor) == ["Slide 1", "Slide 2", "Slide 3"]

    def test_duplicate_inserts_after(self):
        editor = CarouselEditor(make_carousel(3))
        copy = editor.duplicate_slide(0)
        assert titles(editor) == ["Slide 1", "Slide 1", "Slide 2", "Slide 3"]
        assert copy.position == 1
        assert copy is not editor.slides[0]

    def test_reorder_forward_adjusts_target(self):
        editor = CarouselEditor(make_carousel(4))
        final = editor.reorder_slide(0, 3)
        assert final == 2
        assert titles(editor) == ["Slide 2", "Slide 3", "Slide 1", "Slide 4"]

    def test_reorder_backward(self):
        editor = CarouselEditor(make_carousel(4))
        editor.reorder_slide(3, 0)
        assert titles(editor) == ["Slide 4", "Slide 1", "Slide 2", "Slide 3"]

    def test_reorder_to_end(self):
        editor = CarouselEditor(make_carousel(4))
        editor.reorder_slide(1, 4)
        assert titles(editor) == ["Slide 1", "Slide 3", "Slide 4", "Slide 2"]

    def test_reorder_onto_itself_is_noop(self):
        editor = CarouselEditor(make_carousel(4))
        editor.reorder_slide(1, 2)
        assert titles(editor) == ["Slide 1", "Slide 2", "Slide 3", "Slide 4"]


class TestReorderSelection:
    def test_moving_slide_before_selection_past_it(self):
        # 4 slides, selection 1, move 0 -> drop index 2
        editor = CarouselEditor(make_carousel(4))
        editor.select(1)
        editor.reorder_slide(0, 2)
        assert editor.selected_index == 0
        assert editor.slides[editor.selected_index].title == "Slide 2"

    def test_selected_slide_moves_with_drag(self):
        editor = CarouselEditor(make_carousel(4))
        editor.select(0)
        editor.reorder_slide(0, 3)
        assert editor.selected_index == 2
        assert editor.slides[2].title == "Slide 1"

    def test_moving_after_selection_to_before_it(self):
        editor = CarouselEditor(make_carousel(4))
        editor.select(1)
        editor.reorder_slide(3, 0)
        assert editor.selected_index == 2
        assert editor.slides[2].title == "Slide 2"

    def test_unrelated_move_keeps_selection(self):
        assert reorder_selection(0, 2, 3) == 0

    def test_focus_always_follows_same_slide(self):
        for count in range(2, 6):
            for selected in range(count):
                for src in range(count):
                    for dst in range(count + 1):
                        editor = CarouselEditor(make_carousel(count))
                        editor.select(selected)
                        focused = editor.slides[selected].title
                        editor.reorder_slide(src, dst)
                        assert editor.slides[editor.selected_index].title == focused


class TestStyle:
    def test_template_switch_resets_colors_keeps_accent(self):
        editor = CarouselEditor(make_carousel(3))
        editor.set_accent_color("#123456")
        editor.change_template("light")
        deck = editor.carousel
        assert deck.template == Template.LIGHT
        assert deck.background_color == "#FFFFFF"
        assert deck.text_color == "#000000"
        assert deck.accent_color == "#123456"

    def test_switch_back_to_dark(self):
        editor = CarouselEditor(make_carousel(3, template="light", background_color="#FFFFFF", text_color="#000000"))
        editor.change_template(Template.DARK)
        assert (editor.carousel.background_color, editor.carousel.text_color) == ("#000000", "#FFFFFF")

    def test_unknown_cover_style_rejected(self):
        editor = CarouselEditor(make_carousel(3))
        with pytest.raises(InvalidStyleError):
            editor.set_cover_style("sparkles")
        assert editor.carousel.cover_style == CoverStyle.MINIMALIST

    def test_bad_color_rejected(self):
        editor = CarouselEditor(make_carousel(3))
        with pytest.raises(InvalidStyleError):
            editor.set_background_color("red")
        assert editor.carousel.background_color == "#000000"

    def test_short_hex_normalized(self):
        editor = CarouselEditor(make_carousel(3))
        editor.set_text_color("#abc")
        assert editor.carousel.text_color == "#AABBCC"

    def test_apply_style_validates_everything_first(self):
        editor = CarouselEditor(make_carousel(3))
        with pytest.raises(InvalidStyleError):
            editor.apply_style(aspect_ratio="1:1", accent_color="nope")
        assert editor.carousel.aspect_ratio == AspectRatio.PORTRAIT

    def test_apply_style_explicit_colors_win_over_template(self):
        editor = CarouselEditor(make_carousel(3))
        editor.apply_style(template="light", background_color="#EEEEEE")
        assert editor.carousel.background_color == "#EEEEEE"
        assert editor.carousel.text_color == "#000000"


class TestPersistence:
    def test_changes_are_scheduled(self):
        saver = RecordingSaver()
        editor = CarouselEditor(make_carousel(3), saver=saver)
        editor.update_slide(1, title="Changed")
        editor.set_aspect_ratio("1:1")
        editor.change_template("light")
        fields = [set(f) for _, f in saver.calls]
        assert fields == [
            {"slides"},
            {"aspect_ratio"},
            {"template", "background_color", "text_color"},
        ]
        assert saver.calls[0][1]["slides"][1]["title"] == "Changed"
        assert saver.calls[1][1]["aspect_ratio"] == "1:1"

    def test_rejected_operation_schedules_nothing(self):
        saver = RecordingSaver()
        editor = CarouselEditor(make_carousel(2), saver=saver)
        with pytest.raises(MinimumSlideCountError):
            editor.delete_slide(1)
        assert saver.calls == []

    def test_read_only_deck_is_never_saved(self):
        saver = RecordingSaver()
        editor = CarouselEditor(make_carousel(3, read_only=True), saver=saver)
        editor.update_slide(0, title="Changed")
        editor.set_cover_style("geometric")
        editor.rename("Other")
        assert saver.calls == []

    def test_rename_updates_first_title(self):
        saver = RecordingSaver()
        editor = CarouselEditor(make_carousel(3), saver=saver)
        editor.rename("  Fresh name ")
        assert editor.carousel.carousel_name == "Fresh name"
        assert editor.slides[0].title == "Fresh name"
        assert saver.calls[-1][1]["carousel_name"] == "Fresh name"


class TestInlineEdit:
    def test_commit_updates_slide(self):
        editor = CarouselEditor(make_carousel(3))
        editor.begin_edit(1, "body")
        editor.set_draft("Rewritten body")
        assert editor.commit_edit() is True
        assert editor.slides[1].body == "Rewritten body"
        assert editor.selected_index == 1
        assert editor.session is None

    def test_blank_commit_is_discarded(self):
        editor = CarouselEditor(make_carousel(3))
        editor.begin_edit(0, "title")
        editor.set_draft("   ")
        assert editor.commit_edit() is False
        assert editor.slides[0].title == "Slide 1"

    def test_cancel_keeps_original(self):
        editor = CarouselEditor(make_carousel(3))
        editor.begin_edit(0, "title")
        editor.set_draft("Something else")
        editor.cancel_edit()
        assert editor.slides[0].title == "Slide 1"

    def test_one_active_edit_at_a_time(self):
        editor = CarouselEditor(make_carousel(3))
        editor.begin_edit(0, "title")
        editor.set_draft("First")
        editor.begin_edit(2, "body")
        assert editor.slides[0].title == "First"
        assert editor.session.position == 2

    def test_unknown_field(self):
        editor = CarouselEditor(make_carousel(3))
        with pytest.raises(StructuralInvariantViolation):
            editor.begin_edit(0, "position")
