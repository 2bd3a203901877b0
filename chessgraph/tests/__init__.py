import chess

from chessgraph.repertoire import RepertoireStore
from chessgraph.tree import PositionNode, make_root_node


def fen_after(*sans: str) -> str:
    """FEN after playing `sans` from the starting position."""
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return board.fen()


def empty_tree(repertoire_id="rep-1"):
    """Returns (nodes, root_id) for a tree holding only the root."""
    root = make_root_node(repertoire_id)
    return {root.id: root}, root.id


def child_moves(nodes: dict[str, PositionNode], node_id: str) -> list[str]:
    return [nodes[child_id].move for child_id in nodes[node_id].child_ids]


def node_at(nodes: dict[str, PositionNode], root_id: str, *sans: str):
    """Walk child edges from the root by SAN; None if the line isn't there."""
    node = nodes[root_id]
    for san in sans:
        matches = [
            nodes[child_id]
            for child_id in node.child_ids
            if nodes[child_id].move == san
        ]
        if not matches:
            return None
        node = matches[0]
    return node


def play_line(store: RepertoireStore, *sans: str) -> list[str]:
    """add_child_node() each move in turn from the root; returns the node ids."""
    ids = []
    parent_id = store.root_node_id
    for i, san in enumerate(sans):
        parent_id = store.add_child_node(parent_id, san, fen_after(*sans[: i + 1]))
        ids.append(parent_id)
    return ids


class FakePersister:
    """Records persister calls instead of writing anywhere."""

    def __init__(self):
        self.calls = []
        self.stored = {}

    def put_nodes(self, repertoire_id, nodes):
        self.calls.append(("put", [node.id for node in nodes]))
        for node in nodes:
            self.stored[node.id] = node

    def delete_nodes(self, repertoire_id, node_ids):
        self.calls.append(("delete", list(node_ids)))
        for node_id in node_ids:
            self.stored.pop(node_id, None)

    def touch(self, repertoire_id):
        self.calls.append(("touch", repertoire_id))


class BrokenPersister:
    def put_nodes(self, repertoire_id, nodes):
        raise ConnectionError("database is down")

    def delete_nodes(self, repertoire_id, node_ids):
        raise ConnectionError("database is down")

    def touch(self, repertoire_id):
        raise ConnectionError("database is down")
