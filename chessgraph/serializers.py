from datetime import datetime
from datetime import timezone as dt_timezone

from django.utils import timezone

from chessgraph.repertoire import Repertoire
from chessgraph.tree import (
    DEFAULT_COLOR,
    BoardArrow,
    HighlightedSquare,
    PositionNode,
    TranspositionEdge,
)

EXPORT_VERSION = 3


def _edges_from_dicts(edges, target_key, move_key="move"):
    return tuple(
        TranspositionEdge(target_id=str(edge[target_key]), move=edge[move_key])
        for edge in edges or ()
    )


def _arrows_from_dicts(arrows, start_key, end_key):
    return tuple(
        BoardArrow(
            start_square=arrow[start_key],
            end_square=arrow[end_key],
            color=arrow.get("color", DEFAULT_COLOR),
        )
        for arrow in arrows or ()
    )


def _squares_from_dicts(squares):
    return tuple(
        HighlightedSquare(square=square["square"], color=square["color"])
        for square in squares or ()
    )


# --- Django model rows (snake_case JSON fields) ---


def node_model_fields(node: PositionNode) -> dict:
    """Everything but id, repertoire and sequence, ready for Node(**fields)."""
    return {
        "move": node.move,
        "fen": node.fen,
        "comment": node.comment,
        "color": node.color,
        "tags": list(node.tags),
        "parent_id": node.parent_id,
        "child_ids": list(node.child_ids),
        "transposition_edges": [
            {"target_id": edge.target_id, "move": edge.move}
            for edge in node.transposition_edges
        ],
        "arrows": [
            {
                "start_square": arrow.start_square,
                "end_square": arrow.end_square,
                "color": arrow.color,
            }
            for arrow in node.arrows
        ],
        "highlighted_squares": [
            {"square": square.square, "color": square.color}
            for square in node.highlighted_squares
        ],
    }


def node_from_model(row) -> PositionNode:
    return PositionNode(
        id=str(row.id),
        repertoire_id=str(row.repertoire_id),
        move=row.move,
        fen=row.fen,
        comment=row.comment,
        color=row.color,
        tags=tuple(row.tags),
        parent_id=str(row.parent_id) if row.parent_id else None,
        child_ids=tuple(str(child_id) for child_id in row.child_ids),
        transposition_edges=_edges_from_dicts(row.transposition_edges, "target_id"),
        arrows=_arrows_from_dicts(row.arrows, "start_square", "end_square"),
        highlighted_squares=_squares_from_dicts(row.highlighted_squares),
    )


def repertoire_from_model(row) -> Repertoire:
    return Repertoire(
        id=str(row.id),
        name=row.name,
        side=row.side,
        root_node_id=str(row.root_node_id),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# --- export format (camelCase, timestamps in epoch milliseconds) ---


def to_epoch_ms(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def from_epoch_ms(value) -> datetime:
    if value is None:
        return timezone.now()
    return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)


def serialize_node(node: PositionNode) -> dict:
    return {
        "id": node.id,
        "repertoireId": node.repertoire_id,
        "fen": node.fen,
        "move": node.move,
        "comment": node.comment,
        "color": node.color,
        "tags": list(node.tags),
        "parentId": node.parent_id,
        "childIds": list(node.child_ids),
        "transpositionEdges": [
            {"targetId": edge.target_id, "move": edge.move}
            for edge in node.transposition_edges
        ],
        "arrows": [
            {
                "startSquare": arrow.start_square,
                "endSquare": arrow.end_square,
                "color": arrow.color,
            }
            for arrow in node.arrows
        ],
        "highlightedSquares": [
            {"square": square.square, "color": square.color}
            for square in node.highlighted_squares
        ],
    }


def deserialize_node(data: dict) -> PositionNode:
    return PositionNode(
        id=data["id"],
        repertoire_id=data["repertoireId"],
        move=data.get("move"),
        fen=data["fen"],
        comment=data.get("comment") or "",
        color=data.get("color") or DEFAULT_COLOR,
        tags=tuple(data.get("tags") or ()),
        parent_id=data.get("parentId"),
        child_ids=tuple(data.get("childIds") or ()),
        transposition_edges=_edges_from_dicts(
            data.get("transpositionEdges"), "targetId"
        ),
        arrows=_arrows_from_dicts(data.get("arrows"), "startSquare", "endSquare"),
        highlighted_squares=_squares_from_dicts(data.get("highlightedSquares")),
    )


def serialize_repertoire(repertoire: Repertoire) -> dict:
    return {
        "id": repertoire.id,
        "name": repertoire.name,
        "side": repertoire.side,
        "rootNodeId": repertoire.root_node_id,
        "createdAt": to_epoch_ms(repertoire.created_at),
        "updatedAt": to_epoch_ms(repertoire.updated_at),
    }


def deserialize_repertoire(data: dict) -> Repertoire:
    return Repertoire(
        id=data["id"],
        name=data["name"],
        side=data["side"],
        root_node_id=data["rootNodeId"],
        created_at=from_epoch_ms(data.get("createdAt")),
        updated_at=from_epoch_ms(data.get("updatedAt")),
    )


def serialize_export(stores) -> dict:
    """
    Build the export document for one or more RepertoireStores:

        {"version": 3, "repertoires": [...], "nodes": [...]}
    """
    repertoires = []
    nodes = []
    for store in stores:
        repertoires.append(serialize_repertoire(store.repertoire))
        nodes.extend(serialize_node(node) for node in store.nodes.values())

    return {"version": EXPORT_VERSION, "repertoires": repertoires, "nodes": nodes}
