"""
Move legality lives in python-chess; this is the thin adapter the tree
code talks to.
"""

import re
from dataclasses import dataclass

import chess

# e4!, Nxd5??, O-O!? -- the tokenizer usually splits these off already
_TRAILING_GLYPHS_RE = re.compile(r"[!?]+$")


class InvalidMoveError(ValueError):
    pass


@dataclass(frozen=True)
class AppliedMove:
    fen: str  # position after the move
    san: str  # canonical SAN, e.g. "exd5" for "e4xd5" or "Nf3" for "g1f3"


def apply_move(fen: str, move_text: str) -> AppliedMove:
    """
    Play `move_text` in `fen` and return the resulting position along with
    the canonical SAN. Accepts SAN (glyphs and 0-0 style castling allowed)
    and falls back to UCI.
    """
    try:
        board = chess.Board(fen)
    except ValueError as e:
        raise InvalidMoveError(f"Invalid position {fen}: {e}") from e

    san = _TRAILING_GLYPHS_RE.sub("", move_text.strip())
    try:
        move = board.parse_san(san)
    except ValueError:
        try:
            move = board.parse_uci(san)
        except ValueError as e:
            raise InvalidMoveError(
                f'Invalid move "{move_text}" in position {fen}'
            ) from e

    if not move:
        # "--", "0000" and friends parse as null moves
        raise InvalidMoveError(f'Null move "{move_text}" is not allowed')

    canonical_san = board.san(move)
    board.push(move)
    return AppliedMove(fen=board.fen(), san=canonical_san)
