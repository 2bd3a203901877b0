import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Callable

from chessgraph import rules
from chessgraph.fen import PositionIndex
from chessgraph.moves import place_move
from chessgraph.pgn import PgnMove, parse_pgn
from chessgraph.tree import NODE_COLORS, BoardArrow, HighlightedSquare, PositionNode

logger = logging.getLogger(__name__)

# PGN directives like [%csl ...] and [%cal ...]
_DIRECTIVE_RE = re.compile(r"\[%([a-zA-Z]+)\s+([^\]]*)\]")

_CAL_CSL_COLORS = {
    "G": NODE_COLORS["green"],
    "R": NODE_COLORS["red"],
    "B": NODE_COLORS["blue"],
    "Y": NODE_COLORS["yellow"],
}
_SQUARE_RE = re.compile(r"^[a-h][1-8]$")
_ARROW_RE = re.compile(r"^[a-h][1-8][a-h][1-8]$")


@dataclass
class ImportErrorRecord:
    game: int  # 1-based; 0 for problems in the PGN structure itself
    move: str
    message: str


@dataclass
class ImportStats:
    games_processed: int = 0
    nodes_created: int = 0
    nodes_reused: int = 0
    transpositions_found: int = 0
    errors: list[ImportErrorRecord] = field(default_factory=list)

    def as_dict(self):
        return asdict(self)


@dataclass
class ImportResult:
    nodes: dict[str, PositionNode]
    stats: ImportStats


def import_pgn(
    pgn_text: str,
    nodes: dict[str, PositionNode],
    root_node_id: str,
    apply: Callable[[str, str], rules.AppliedMove] = rules.apply_move,
    extract_directives: bool = False,
) -> ImportResult:
    """
    Merge every game in `pgn_text` into a copy of `nodes`.

    Moves already in the tree are reused, positions reached by another
    move order become transposition edges, and only genuinely new positions
    create nodes. An illegal move ends its line (and skips any variations
    hanging off it) but everything before it is kept.

    `nodes` is not modified; the merged map is returned in the result.

    With extract_directives, [%csl]/[%cal] comment directives become
    highlighted squares/arrows on new nodes and all [%...] directives are
    stripped from comments.
    """
    nodes = dict(nodes)
    stats = ImportStats()
    index = PositionIndex(nodes)

    parsed = parse_pgn(pgn_text)
    for error in parsed.errors:
        stats.errors.append(ImportErrorRecord(game=0, move="", message=error.message))

    def walk(moves: list[PgnMove], parent_id: str, game_number: int):
        current_id = parent_id

        for pgn_move in moves:
            parent = nodes.get(current_id)
            if parent is None:
                break

            try:
                applied = apply(parent.fen, pgn_move.san)
            except rules.InvalidMoveError as e:
                stats.errors.append(
                    ImportErrorRecord(
                        game=game_number, move=pgn_move.san, message=str(e)
                    )
                )
                logger.debug("Game %s: stopping line at %s", game_number, pgn_move.san)
                break

            comment, annotations = pgn_move.comment, None
            if extract_directives:
                comment, arrows, squares = extract_pgn_directives(comment)
                annotations = {"arrows": arrows, "highlighted_squares": squares}

            placement = place_move(
                nodes,
                current_id,
                applied.san,
                applied.fen,
                comment=comment,
                index=index,
                annotations=annotations,
            )

            if placement.created:
                stats.nodes_created += 1
            else:
                stats.nodes_reused += 1
                if placement.outcome == "transposition":
                    stats.transpositions_found += 1

            # variations are alternatives to this move, so they branch from
            # the position before it
            for variation in pgn_move.variations:
                walk(variation, current_id, game_number)

            current_id = placement.node_id

    for game_number, game in enumerate(parsed.games, start=1):
        stats.games_processed += 1
        walk(game.moves, root_node_id, game_number)

    logger.info(
        "Imported %d game(s): %d created, %d reused, %d transpositions, %d errors",
        stats.games_processed,
        stats.nodes_created,
        stats.nodes_reused,
        stats.transpositions_found,
        len(stats.errors),
    )
    return ImportResult(nodes=nodes, stats=stats)


def extract_pgn_directives(
    text: str,
) -> tuple[str, tuple[BoardArrow, ...], tuple[HighlightedSquare, ...]]:
    """
    Extract Lichess/ChessBase-style PGN directives from comment text:
      - [%csl ...] => highlighted squares
      - [%cal ...] => arrows
    Discard all other directives (e.g. clk/eval) by stripping them from text.
    Returns (text_without_directives, arrows, squares).
    """
    if not text:
        return "", (), ()

    arrows: list[BoardArrow] = []
    squares: list[HighlightedSquare] = []

    def add_square(color_letter: str, sq: str):
        color = _CAL_CSL_COLORS.get(color_letter)
        if not color or not _SQUARE_RE.match(sq):
            return
        square = HighlightedSquare(square=sq, color=color)
        if square not in squares:
            squares.append(square)

    def add_arrow(color_letter: str, coords: str):
        color = _CAL_CSL_COLORS.get(color_letter)
        if not color or not _ARROW_RE.match(coords):
            return

        orig = coords[:2]
        dest = coords[2:]

        # Treat "arrow to self" as a square highlight
        if orig == dest:
            add_square(color_letter, orig)
            return

        arrow = BoardArrow(start_square=orig, end_square=dest, color=color)
        if arrow not in arrows:
            arrows.append(arrow)

    for m in _DIRECTIVE_RE.finditer(text):
        key = m.group(1).lower()
        payload = (m.group(2) or "").strip()

        if key == "csl":
            # Example payload: "Rf3,Yd4"
            for token in re.split(r"[\s,]+", payload):
                if token:
                    add_square(token[0], token[1:])
        elif key == "cal":
            # Example payload: "Gg4f3,Rc1h6"
            for token in re.split(r"[\s,]+", payload):
                if token:
                    add_arrow(token[0], token[1:])

    # strip all directives (including csl/cal, eval, clk, etc.)
    cleaned = _DIRECTIVE_RE.sub("", text)
    if cleaned != text:
        cleaned = re.sub(r" +", " ", cleaned).strip()

    return cleaned, tuple(arrows), tuple(squares)
