from dataclasses import replace

from chessgraph.fen import PositionIndex
from chessgraph.moves import place_move
from chessgraph.tests import child_moves, empty_tree, fen_after
from chessgraph.tree import NODE_COLORS, BoardArrow, TranspositionEdge


def play(nodes, parent_id, *sans, history=()):
    """place_move() each SAN in turn; returns the last placement."""
    placement = None
    history = list(history)
    for san in sans:
        history.append(san)
        placement = place_move(nodes, parent_id, san, fen_after(*history))
        parent_id = placement.node_id
    return placement


def test_creates_child():
    nodes, root_id = empty_tree()

    placement = place_move(nodes, root_id, "e4", fen_after("e4"), comment="best")

    assert placement.outcome == "created"
    assert placement.created
    node = nodes[placement.node_id]
    assert node.move == "e4"
    assert node.parent_id == root_id
    assert node.comment == "best"
    assert node.repertoire_id == nodes[root_id].repertoire_id
    assert nodes[root_id].child_ids == (node.id,)


def test_new_node_inherits_parent_color():
    nodes, root_id = empty_tree()
    e4 = play(nodes, root_id, "e4")
    nodes[e4.node_id] = replace(nodes[e4.node_id], color=NODE_COLORS["green"])

    e5 = play(nodes, e4.node_id, "e5", history=["e4"])

    assert nodes[e5.node_id].color == NODE_COLORS["green"]


def test_existing_child_is_reused():
    nodes, root_id = empty_tree()
    first = place_move(nodes, root_id, "e4", fen_after("e4"))

    second = place_move(nodes, root_id, "e4", fen_after("e4"))

    assert second.outcome == "child"
    assert not second.created
    assert second.node_id == first.node_id
    assert len(nodes) == 2


def test_comment_only_fills_an_empty_one():
    nodes, root_id = empty_tree()
    placement = place_move(nodes, root_id, "e4", fen_after("e4"))

    place_move(nodes, root_id, "e4", fen_after("e4"), comment="first")
    place_move(nodes, root_id, "e4", fen_after("e4"), comment="second")

    assert nodes[placement.node_id].comment == "first"


def test_transposition_adds_edge_instead_of_node():
    nodes, root_id = empty_tree()
    italian = play(nodes, root_id, "e4", "e5", "Nf3", "Nc6")
    nf3_nc6 = play(nodes, root_id, "Nf3", "Nc6", "e4")
    count = len(nodes)

    placement = place_move(
        nodes, nf3_nc6.node_id, "e5", fen_after("Nf3", "Nc6", "e4", "e5")
    )

    assert placement.outcome == "transposition"
    assert placement.node_id == italian.node_id
    assert len(nodes) == count
    assert nodes[nf3_nc6.node_id].transposition_edges == (
        TranspositionEdge(target_id=italian.node_id, move="e5"),
    )
    assert child_moves(nodes, nf3_nc6.node_id) == []


def test_existing_edge_is_followed():
    nodes, root_id = empty_tree()
    italian = play(nodes, root_id, "e4", "e5", "Nf3", "Nc6")
    parent = play(nodes, root_id, "Nf3", "Nc6", "e4")
    fen = fen_after("Nf3", "Nc6", "e4", "e5")
    place_move(nodes, parent.node_id, "e5", fen)

    again = place_move(nodes, parent.node_id, "e5", fen)

    assert again.outcome == "edge"
    assert again.node_id == italian.node_id
    assert len(nodes[parent.node_id].transposition_edges) == 1


def test_index_lookup_matches_linear_scan():
    nodes, root_id = empty_tree()
    italian = play(nodes, root_id, "e4", "e5", "Nf3", "Nc6")
    parent = play(nodes, root_id, "Nf3", "Nc6", "e4")
    index = PositionIndex(nodes)

    placement = place_move(
        nodes,
        parent.node_id,
        "e5",
        fen_after("Nf3", "Nc6", "e4", "e5"),
        index=index,
    )

    assert placement.outcome == "transposition"
    assert placement.node_id == italian.node_id


def test_created_node_is_added_to_index():
    nodes, root_id = empty_tree()
    index = PositionIndex(nodes)

    placement = place_move(nodes, root_id, "d4", fen_after("d4"), index=index)

    assert index.get(fen_after("d4")) == placement.node_id


def test_annotations_land_on_new_nodes():
    nodes, root_id = empty_tree()
    arrow = BoardArrow(start_square="g1", end_square="f3", color=NODE_COLORS["green"])

    placement = place_move(
        nodes,
        root_id,
        "e4",
        fen_after("e4"),
        annotations={"arrows": (arrow,), "highlighted_squares": ()},
    )

    assert nodes[placement.node_id].arrows == (arrow,)
