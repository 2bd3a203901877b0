from typing import Optional

from chessgraph.tree import PositionNode


def position_key(fen: str) -> str:
    """
    Piece placement, side to move, castling rights and en passant square.

    The halfmove clock and fullmove number are dropped so two move orders
    reaching the same position produce the same key:

    rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2
    ➤ rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq -
    """
    return " ".join(fen.split()[:4])


def find_transposition(
    fen: str,
    nodes: dict[str, PositionNode],
    exclude_node_id: Optional[str] = None,
) -> Optional[PositionNode]:
    """First node (in map order) whose position matches `fen`."""
    key = position_key(fen)
    for node_id, node in nodes.items():
        if node_id == exclude_node_id:
            continue
        if position_key(node.fen) == key:
            return node
    return None


class PositionIndex:
    """
    Position key ➤ node id lookup, so bulk imports don't scan the whole map
    for every move. The first node registered for a key wins, same as
    find_transposition().
    """

    def __init__(self, nodes: dict[str, PositionNode]):
        self._ids: dict[str, str] = {}
        for node_id, node in nodes.items():
            self._ids.setdefault(position_key(node.fen), node_id)

    def __len__(self):
        return len(self._ids)

    def get(self, fen: str) -> Optional[str]:
        return self._ids.get(position_key(fen))

    def add(self, node: PositionNode):
        self._ids.setdefault(position_key(node.fen), node.id)
