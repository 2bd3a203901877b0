from datetime import datetime
from datetime import timezone as dt_timezone

from chessgraph import serializers
from chessgraph.repertoire import RepertoireStore
from chessgraph.tests import fen_after, play_line
from chessgraph.tree import NODE_COLORS, BoardArrow, HighlightedSquare


def annotated_store():
    store = RepertoireStore.create("Ruy Lopez", side="white")
    nc6 = play_line(store, "e4", "e5", "Nf3", "Nc6")[-1]
    play_line(store, "Nf3", "Nc6", "e4")
    store.add_child_node(
        store.selected_node_id, "e5", fen_after("Nf3", "Nc6", "e4", "e5")
    )
    store.update_node(
        nc6,
        comment="Main line",
        color=NODE_COLORS["purple"],
        tags=["spanish"],
        arrows=[BoardArrow(start_square="f1", end_square="b5", color="#16a34a")],
        highlighted_squares=[HighlightedSquare(square="e5", color="#dc2626")],
    )
    return store, nc6


def test_serialize_node_uses_camel_case():
    store, nc6 = annotated_store()

    data = serializers.serialize_node(store.nodes[nc6])

    assert data == {
        "id": nc6,
        "repertoireId": store.repertoire.id,
        "fen": fen_after("e4", "e5", "Nf3", "Nc6"),
        "move": "Nc6",
        "comment": "Main line",
        "color": NODE_COLORS["purple"],
        "tags": ["spanish"],
        "parentId": store.nodes[nc6].parent_id,
        "childIds": [],
        "transpositionEdges": [],
        "arrows": [{"startSquare": "f1", "endSquare": "b5", "color": "#16a34a"}],
        "highlightedSquares": [{"square": "e5", "color": "#dc2626"}],
    }


def test_serialize_root_node():
    store = RepertoireStore.create("Empty")

    data = serializers.serialize_node(store.root)

    assert data["move"] is None
    assert data["parentId"] is None


def test_transposition_edges_survive_export():
    store, nc6 = annotated_store()
    source = next(node for node in store.nodes.values() if node.transposition_edges)

    data = serializers.serialize_node(source)

    assert data["transpositionEdges"] == [{"targetId": nc6, "move": "e5"}]
    assert serializers.deserialize_node(data) == source


def test_deserialize_node_fills_defaults():
    node = serializers.deserialize_node(
        {
            "id": "n1",
            "repertoireId": "r1",
            "fen": fen_after("d4"),
            "move": "d4",
            "parentId": "root",
            "childIds": [],
        }
    )

    assert node.comment == ""
    assert node.color == NODE_COLORS["default"]
    assert node.tags == ()
    assert node.arrows == ()
    assert node.highlighted_squares == ()
    assert node.transposition_edges == ()


def test_serialize_repertoire_timestamps_in_ms():
    store = RepertoireStore.create("London", side="white")
    store.repertoire.created_at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=dt_timezone.utc)

    data = serializers.serialize_repertoire(store.repertoire)

    assert data["createdAt"] == 1735787045000
    assert data["rootNodeId"] == store.root_node_id
    assert serializers.deserialize_repertoire(data).created_at == (
        store.repertoire.created_at
    )


def test_serialize_export():
    store, _ = annotated_store()
    other = RepertoireStore.create("Caro-Kann", side="black")

    data = serializers.serialize_export([store, other])

    assert data["version"] == serializers.EXPORT_VERSION == 3
    assert [r["name"] for r in data["repertoires"]] == ["Ruy Lopez", "Caro-Kann"]
    assert len(data["nodes"]) == len(store.nodes) + 1
    assert [n["id"] for n in data["nodes"][: len(store.nodes)]] == list(store.nodes)


def test_model_fields_are_snake_case():
    store, nc6 = annotated_store()

    fields = serializers.node_model_fields(store.nodes[nc6])

    assert fields["arrows"] == [
        {"start_square": "f1", "end_square": "b5", "color": "#16a34a"}
    ]
    assert fields["highlighted_squares"] == [{"square": "e5", "color": "#dc2626"}]
    assert fields["tags"] == ["spanish"]
    assert "id" not in fields
