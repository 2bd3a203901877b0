"""
The opening tree: position nodes joined by parent/child move edges, with
transposition edges laid over the top.

Nodes are frozen. Every change replaces the node object in the map, so a
shallow copy of a node map is a complete snapshot of the tree.
"""

import uuid
from dataclasses import dataclass, replace
from typing import Optional

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

NODE_COLORS = {
    "default": "#3f3f46",
    "green": "#16a34a",
    "red": "#dc2626",
    "yellow": "#ca8a04",
    "blue": "#2563eb",
    "purple": "#9333ea",
}
DEFAULT_COLOR = NODE_COLORS["default"]

# annotation payload; opaque to the tree logic
ANNOTATION_FIELDS = ("comment", "color", "tags", "arrows", "highlighted_squares")


@dataclass(frozen=True)
class TranspositionEdge:
    target_id: str
    move: str


@dataclass(frozen=True)
class BoardArrow:
    start_square: str
    end_square: str
    color: str


@dataclass(frozen=True)
class HighlightedSquare:
    square: str
    color: str


@dataclass(frozen=True)
class PositionNode:
    id: str
    repertoire_id: str
    move: Optional[str]  # SAN, None for the root
    fen: str  # position after `move`
    comment: str = ""
    color: str = DEFAULT_COLOR
    tags: tuple[str, ...] = ()
    parent_id: Optional[str] = None
    child_ids: tuple[str, ...] = ()
    transposition_edges: tuple[TranspositionEdge, ...] = ()
    arrows: tuple[BoardArrow, ...] = ()
    highlighted_squares: tuple[HighlightedSquare, ...] = ()

    @property
    def is_root(self):
        return self.parent_id is None

    def edge_for_move(self, move: str) -> Optional[TranspositionEdge]:
        for edge in self.transposition_edges:
            if edge.move == move:
                return edge
        return None

    def __str__(self):
        return f"{self.move or 'root'} ({self.id[:8]})"


def new_node_id() -> str:
    return str(uuid.uuid4())


def make_root_node(repertoire_id: str, fen: str = START_FEN, node_id=None):
    return PositionNode(
        id=node_id or new_node_id(),
        repertoire_id=repertoire_id,
        move=None,
        fen=fen,
    )


def find_child_by_move(
    nodes: dict[str, PositionNode], parent: PositionNode, move: str
) -> Optional[PositionNode]:
    for child_id in parent.child_ids:
        child = nodes.get(child_id)
        if child is not None and child.move == move:
            return child
    return None


def collect_descendants(node_id: str, nodes: dict[str, PositionNode]) -> list[str]:
    """Return node_id and every id below it, following child_ids only."""
    ids = []
    stack = [node_id]
    while stack:
        current = stack.pop()
        ids.append(current)
        node = nodes.get(current)
        if node is not None:
            stack.extend(node.child_ids)
    return ids


def strip_transposition_edges(nodes: dict[str, PositionNode], removed_ids) -> None:
    """Drop edges pointing at removed nodes from every node left in the map."""
    removed = set(removed_ids)
    for node_id, node in nodes.items():
        kept = tuple(
            edge for edge in node.transposition_edges if edge.target_id not in removed
        )
        if len(kept) != len(node.transposition_edges):
            nodes[node_id] = replace(node, transposition_edges=kept)


def delete_subtree(nodes: dict[str, PositionNode], node_id: str) -> list[str]:
    """
    Remove node_id and its descendants from `nodes` (in place) and return the
    removed ids. The root, and ids not in the map, are left alone.
    """
    node = nodes.get(node_id)
    if node is None or node.is_root:
        return []

    removed = collect_descendants(node_id, nodes)
    for removed_id in removed:
        nodes.pop(removed_id, None)

    parent = nodes.get(node.parent_id)
    if parent is not None:
        nodes[parent.id] = replace(
            parent, child_ids=tuple(cid for cid in parent.child_ids if cid != node_id)
        )

    strip_transposition_edges(nodes, removed)
    return removed


def clear_children(nodes: dict[str, PositionNode], root_id: str) -> list[str]:
    """
    Remove everything below the root. The root keeps its fen, comment and
    tags; its children, edges and board overlays are reset.
    """
    root = nodes[root_id]
    removed = []
    for child_id in root.child_ids:
        removed.extend(collect_descendants(child_id, nodes))
    for removed_id in removed:
        nodes.pop(removed_id, None)

    strip_transposition_edges(nodes, removed)
    nodes[root_id] = replace(
        nodes[root_id],
        child_ids=(),
        transposition_edges=(),
        arrows=(),
        highlighted_squares=(),
    )
    return removed


def move_path(nodes: dict[str, PositionNode], node_id: str) -> list[str]:
    """SAN moves from the root down to node_id."""
    path = []
    node = nodes.get(node_id)
    while node is not None and node.parent_id is not None:
        path.append(node.move)
        node = nodes.get(node.parent_id)
    path.reverse()
    return path


def validate_tree(nodes: dict[str, PositionNode], root_node_id: str) -> bool:
    root = nodes.get(root_node_id)
    if root is None:
        raise ValueError(f"Root node {root_node_id} not found")
    if root.parent_id is not None or root.move is not None:
        raise ValueError("Root node must have no parent and no move")

    roots = [node_id for node_id, node in nodes.items() if node.parent_id is None]
    if roots != [root_node_id]:
        raise ValueError(f"Expected exactly one root, found {len(roots)}")

    visited = set()
    stack = [root_node_id]
    while stack:
        current = stack.pop()
        if current in visited:
            raise ValueError(f"Circular reference detected involving node {current}")
        visited.add(current)

        node = nodes.get(current)
        if node is None:
            raise ValueError(f"Child {current} does not exist")

        moves = set()
        for child_id in node.child_ids:
            child = nodes.get(child_id)
            if child is None:
                raise ValueError(f"Node {current} lists missing child {child_id}")
            if child.parent_id != current:
                raise ValueError(f"Node {child_id} does not point back to {current}")
            if child.move in moves:
                raise ValueError(f"Duplicate move {child.move} below node {current}")
            moves.add(child.move)
            stack.append(child_id)

        for edge in node.transposition_edges:
            if edge.target_id not in nodes:
                raise ValueError(
                    f"Node {current} has a transposition edge to missing node "
                    f"{edge.target_id}"
                )

    if len(visited) != len(nodes):
        raise ValueError(f"{len(nodes) - len(visited)} node(s) unreachable from root")

    return True
