"""Tests for the image slot board and preview lifecycle."""

import os
from unittest.mock import patch

import pytest

from _helpers import image_bytes
from prompt_architect.core.errors import ImageProcessingError
from prompt_architect.image.slots import MAX_SLOTS, ImageSlotBoard


@pytest.fixture
def board(tmp_path):
    with ImageSlotBoard(preview_dir=str(tmp_path)) as slot_board:
        yield slot_board


def test_attach_creates_preview(board: ImageSlotBoard) -> None:
    board.attach_image(0, image_bytes(40, 40))

    preview = board.slots[0].preview_path
    assert preview is not None and os.path.exists(preview)
    assert board.previews == {preview}


def test_replacing_image_releases_old_preview(board: ImageSlotBoard) -> None:
    board.attach_image(0, image_bytes(40, 40))
    first = board.slots[0].preview_path

    board.attach_image(0, image_bytes(60, 30))

    assert not os.path.exists(first)
    assert board.previews == {board.slots[0].preview_path}


def test_remove_image_releases_preview(board: ImageSlotBoard) -> None:
    board.attach_image(1, image_bytes(40, 40))
    preview = board.slots[1].preview_path

    board.remove_image(1)

    assert not os.path.exists(preview)
    assert board.slots[1].image is None
    assert board.previews == set()


def test_failed_attach_leaves_slot_unchanged(board: ImageSlotBoard) -> None:
    board.attach_image(0, image_bytes(40, 40))
    before = (board.slots[0].image, board.slots[0].preview_path)

    with pytest.raises(ImageProcessingError):
        board.attach_image(0, b"broken")

    assert (board.slots[0].image, board.slots[0].preview_path) == before
    assert os.path.exists(before[1])


def test_close_releases_all_previews(tmp_path) -> None:
    with ImageSlotBoard(preview_dir=str(tmp_path)) as board:
        board.attach_image(0, image_bytes(40, 40))
        board.attach_image(2, image_bytes(40, 40))
        paths = board.previews

    assert len(paths) == 2
    assert not any(os.path.exists(p) for p in paths)


def test_clear_resets_slots(board: ImageSlotBoard) -> None:
    board.set_description(0, "first")
    board.attach_image(0, image_bytes(40, 40))

    board.clear()

    assert board.previews == set()
    assert not board.has_content(MAX_SLOTS)


def test_prompt_inputs_carry_data_urls(board: ImageSlotBoard) -> None:
    board.set_description(0, "sunset")
    board.set_description(1, "city")
    board.attach_image(1, image_bytes(40, 40))

    inputs = board.prompt_inputs(2)

    assert [(p.index, p.description) for p in inputs] == [(0, "sunset"), (1, "city")]
    assert inputs[0].image_data is None
    assert inputs[1].image_data.startswith("data:image/jpeg;base64,")


def test_slot_index_out_of_range(board: ImageSlotBoard) -> None:
    with pytest.raises(IndexError):
        board.set_description(MAX_SLOTS, "too far")


def test_failed_preview_write_leaves_slot_unchanged(board: ImageSlotBoard) -> None:
    board.attach_image(0, image_bytes(40, 40))
    before = (board.slots[0].image, board.slots[0].preview_path)

    with patch.object(board, "_write_preview", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            board.attach_image(0, image_bytes(60, 30))

    assert (board.slots[0].image, board.slots[0].preview_path) == before
    assert os.path.exists(before[1])
