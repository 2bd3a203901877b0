import pytest

from chessgraph.rules import InvalidMoveError, apply_move
from chessgraph.tests import fen_after
from chessgraph.tree import START_FEN


@pytest.mark.parametrize(
    "move_text, expected_san",
    [
        ("e4", "e4"),
        ("e2e4", "e4"),
        ("Nf3", "Nf3"),
        ("g1f3", "Nf3"),
        ("Nf3!", "Nf3"),
        ("e4!?", "e4"),
        (" d4 ", "d4"),
    ],
)
def test_apply_move_from_start(move_text, expected_san):
    applied = apply_move(START_FEN, move_text)

    assert applied.san == expected_san
    assert applied.fen == fen_after(expected_san)


def test_apply_move_castling_notations():
    fen = fen_after("e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5")

    for move_text in ("O-O", "0-0", "e1g1"):
        applied = apply_move(fen, move_text)
        assert applied.san == "O-O"
        assert applied.fen == fen_after("e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5", "O-O")


def test_apply_move_canonical_capture_and_check():
    fen = fen_after("e4", "d5")
    assert apply_move(fen, "exd5").san == "exd5"

    fen = fen_after("e4", "e5", "Bc4", "Nc6", "Qh5", "Nf6")
    assert apply_move(fen, "Qxf7").san == "Qxf7#"


@pytest.mark.parametrize("move_text", ["Zz9", "e5", "Ke2", "", "--", "0000"])
def test_apply_move_rejects_bad_moves(move_text):
    with pytest.raises(InvalidMoveError):
        apply_move(START_FEN, move_text)


def test_invalid_move_error_is_a_value_error():
    with pytest.raises(ValueError, match="Zz9"):
        apply_move(START_FEN, "Zz9")


def test_apply_move_rejects_bad_position():
    with pytest.raises(InvalidMoveError, match="Invalid position"):
        apply_move("not a fen", "e4")
