"""
Placing a move below a node: reuse what the tree already has before
creating anything.

Precedence, first match wins:
  1. child of the parent with the same SAN
  2. transposition edge on the parent with the same SAN
  3. a node elsewhere with the same position (not already a direct child)
     ➤ record a transposition edge on the parent
  4. create a new child node
"""

from dataclasses import dataclass, replace
from typing import Literal, Optional

from chessgraph.fen import PositionIndex, find_transposition, position_key
from chessgraph.tree import (
    PositionNode,
    TranspositionEdge,
    find_child_by_move,
    new_node_id,
)

Outcome = Literal["child", "edge", "transposition", "created"]


@dataclass(frozen=True)
class Placement:
    node_id: str
    outcome: Outcome

    @property
    def created(self):
        return self.outcome == "created"


def place_move(
    nodes: dict[str, PositionNode],
    parent_id: str,
    san: str,
    fen: str,
    comment: str = "",
    index: Optional[PositionIndex] = None,
    annotations: Optional[dict] = None,
) -> Placement:
    """
    Resolve `san` (already played, leading to `fen`) below parent_id,
    updating `nodes` in place. Pass an index for bulk work; without one
    transpositions are found with a linear scan.

    `comment` and `annotations` (arrows/highlighted_squares) only land on a
    node that is created here, except that a comment is copied onto an
    existing child whose own comment is empty.
    """
    parent = nodes[parent_id]

    child = find_child_by_move(nodes, parent, san)
    if child is not None:
        if comment and not child.comment:
            nodes[child.id] = replace(child, comment=comment)
        return Placement(child.id, "child")

    edge = parent.edge_for_move(san)
    if edge is not None:
        return Placement(edge.target_id, "edge")

    target = _find_transposition_target(nodes, parent, fen, index)
    if target is not None:
        nodes[parent_id] = replace(
            parent,
            transposition_edges=parent.transposition_edges
            + (TranspositionEdge(target_id=target.id, move=san),),
        )
        return Placement(target.id, "transposition")

    node = PositionNode(
        id=new_node_id(),
        repertoire_id=parent.repertoire_id,
        move=san,
        fen=fen,
        comment=comment,
        color=parent.color,
        parent_id=parent_id,
        **(annotations or {}),
    )
    nodes[node.id] = node
    nodes[parent_id] = replace(parent, child_ids=parent.child_ids + (node.id,))
    if index is not None:
        index.add(node)

    return Placement(node.id, "created")


def _find_transposition_target(nodes, parent, fen, index):
    # an existing direct child would just duplicate a parent-child edge
    if index is not None:
        candidate = nodes.get(index.get(fen))
        if (
            candidate is not None
            and position_key(candidate.fen) == position_key(fen)
            and candidate.id not in parent.child_ids
        ):
            return candidate

    candidate = find_transposition(fen, nodes)
    if candidate is not None and candidate.id not in parent.child_ids:
        return candidate
    return None
