import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from django.utils import timezone

from chessgraph import pgn_import
from chessgraph.moves import place_move
from chessgraph.tree import (
    ANNOTATION_FIELDS,
    START_FEN,
    PositionNode,
    TranspositionEdge,
    clear_children,
    delete_subtree,
    find_child_by_move,
    make_root_node,
    new_node_id,
)

logger = logging.getLogger(__name__)

SIDES = ("white", "black")

# stored as tuples on the frozen nodes
_TUPLE_FIELDS = ("tags", "arrows", "highlighted_squares")


@dataclass
class Repertoire:
    id: str
    name: str
    side: str
    root_node_id: str
    created_at: datetime = field(default_factory=timezone.now)
    updated_at: datetime = field(default_factory=timezone.now)


class RepertoireStore:
    """
    One repertoire's tree, the selected node, and every mutation on it.

    The in-memory map is authoritative. After each mutation the changed and
    removed nodes are handed to the persister (if any); a persister failure
    is logged and the in-memory change stands. Persister calls must be
    idempotent: put_nodes(repertoire_id, nodes), delete_nodes(repertoire_id,
    ids), touch(repertoire_id).
    """

    def __init__(self, repertoire: Repertoire, nodes: dict, persister=None):
        self.repertoire = repertoire
        self.nodes: dict[str, PositionNode] = dict(nodes)
        self.selected_node_id: Optional[str] = repertoire.root_node_id
        self.persister = persister

    @classmethod
    def create(cls, name, side="white", fen=START_FEN, persister=None):
        if side not in SIDES:
            raise ValueError(f"Side must be 'white' or 'black', not {side!r}")
        repertoire_id = new_node_id()
        root = make_root_node(repertoire_id, fen=fen)
        repertoire = Repertoire(
            id=repertoire_id, name=name, side=side, root_node_id=root.id
        )
        return cls(repertoire, {root.id: root}, persister=persister)

    @property
    def root_node_id(self):
        return self.repertoire.root_node_id

    @property
    def root(self) -> PositionNode:
        return self.nodes[self.root_node_id]

    @property
    def selected_node(self) -> Optional[PositionNode]:
        return self.nodes.get(self.selected_node_id)

    def select_node(self, node_id: str):
        self.selected_node_id = node_id

    def add_child_node(self, parent_id: str, move: str, fen: str) -> Optional[str]:
        """
        Play a single (already validated) move from parent_id. An existing
        child, transposition edge or transposed position is selected instead
        of creating a duplicate. Returns the selected node id.
        """
        if parent_id not in self.nodes:
            return None

        nodes = dict(self.nodes)
        placement = place_move(nodes, parent_id, move, fen)
        self._commit(nodes)
        self.selected_node_id = placement.node_id
        return placement.node_id

    def update_node(self, node_id: str, **updates):
        """Change annotation fields (comment, color, tags, arrows, squares)."""
        structural = set(updates) - set(ANNOTATION_FIELDS)
        if structural:
            raise ValueError(
                f"Cannot update structural field(s): {sorted(structural)}"
            )

        node = self.nodes.get(node_id)
        if node is None:
            return

        for field_name in _TUPLE_FIELDS:
            if field_name in updates:
                if isinstance(updates[field_name], str):
                    raise ValueError(f"{field_name} must be a list, not a string")
                updates[field_name] = tuple(updates[field_name])

        nodes = dict(self.nodes)
        nodes[node_id] = replace(node, **updates)
        self._commit(nodes)

    def delete_node(self, node_id: str) -> list[str]:
        """Delete a node and its subtree; the root can't be deleted."""
        node = self.nodes.get(node_id)
        if node is None or node.is_root:
            return []

        nodes = dict(self.nodes)
        removed = delete_subtree(nodes, node_id)
        self._commit(nodes)

        if self.selected_node_id in removed:
            self.selected_node_id = node.parent_id
        return removed

    def clear_graph(self) -> list[str]:
        """Delete everything below the root."""
        nodes = dict(self.nodes)
        removed = clear_children(nodes, self.root_node_id)
        self._commit(nodes)

        if self.selected_node_id not in self.nodes:
            self.selected_node_id = self.root_node_id
        return removed

    def add_transposition_edge(self, node_id: str, target_id: str, move: str):
        """Manually record that `move` from node_id reaches target_id."""
        node = self.nodes.get(node_id)
        if node is None or target_id not in self.nodes:
            raise ValueError("Both nodes must exist to link a transposition")
        if node_id == target_id:
            raise ValueError("A node can't transpose to itself")
        if find_child_by_move(self.nodes, node, move) or node.edge_for_move(move):
            raise ValueError(f"{move} is already linked from this node")

        nodes = dict(self.nodes)
        nodes[node_id] = replace(
            node,
            transposition_edges=node.transposition_edges
            + (TranspositionEdge(target_id=target_id, move=move),),
        )
        self._commit(nodes)

    def remove_transposition_edge(self, node_id: str, target_id: str):
        node = self.nodes.get(node_id)
        if node is None:
            return

        nodes = dict(self.nodes)
        nodes[node_id] = replace(
            node,
            transposition_edges=tuple(
                edge
                for edge in node.transposition_edges
                if edge.target_id != target_id
            ),
        )
        self._commit(nodes)

    def replace_nodes(self, nodes: dict[str, PositionNode]):
        self._commit(dict(nodes))

    def import_pgn(self, pgn_text: str, **kwargs) -> pgn_import.ImportStats:
        result = pgn_import.import_pgn(
            pgn_text, self.nodes, self.root_node_id, **kwargs
        )
        self.replace_nodes(result.nodes)
        return result.stats

    def _commit(self, nodes: dict[str, PositionNode]):
        """Swap in the new map and pass the differences to the persister."""
        previous = self.nodes
        self.nodes = nodes
        self.repertoire.updated_at = timezone.now()

        if self.persister is None:
            return

        # nodes are immutable, so anything changed is a different object
        changed = [
            node
            for node_id, node in nodes.items()
            if previous.get(node_id) is not node
        ]
        removed = [node_id for node_id in previous if node_id not in nodes]

        repertoire_id = self.repertoire.id
        try:
            if removed:
                self.persister.delete_nodes(repertoire_id, removed)
            if changed:
                self.persister.put_nodes(repertoire_id, changed)
            self.persister.touch(repertoire_id)
        except Exception:
            logger.exception("Persisting repertoire %s failed", repertoire_id)
