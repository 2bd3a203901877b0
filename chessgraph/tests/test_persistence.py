import uuid

import pytest

from chessgraph.models import Node, Repertoire
from chessgraph.persistence import (
    DjangoPersister,
    create_repertoire,
    load_repertoire_store,
    save_repertoire_store,
)
from chessgraph.tests import fen_after, node_at, play_line
from chessgraph.tree import NODE_COLORS, BoardArrow, validate_tree
from chessgraph.undo import UndoRedo


@pytest.mark.django_db
def test_create_repertoire_saves_root():
    store = create_repertoire("Najdorf", side="black")

    row = Repertoire.objects.get(pk=store.repertoire.id)
    assert row.name == "Najdorf"
    assert row.side == "black"
    assert str(row.root_node_id) == store.root_node_id
    assert [str(node.id) for node in row.nodes.all()] == [store.root_node_id]
    assert isinstance(store.persister, DjangoPersister)


@pytest.mark.django_db
def test_mutations_are_written_through():
    store = create_repertoire("Italian")
    e4, e5 = play_line(store, "e4", "e5")
    store.update_node(
        e5,
        comment="Open game",
        color=NODE_COLORS["yellow"],
        arrows=[BoardArrow(start_square="g1", end_square="f3", color="#16a34a")],
    )

    reloaded = load_repertoire_store(store.repertoire.id)

    assert reloaded.nodes == store.nodes
    assert list(reloaded.nodes) == list(store.nodes)
    assert reloaded.nodes[e5].comment == "Open game"


@pytest.mark.django_db
def test_deletes_are_written_through():
    store = create_repertoire("Scandi")
    e4, d5 = play_line(store, "e4", "d5")
    play_line(store, "d4")

    store.delete_node(e4)

    assert not Node.objects.filter(id__in=[e4, d5]).exists()
    reloaded = load_repertoire_store(store.repertoire.id)
    assert reloaded.nodes == store.nodes
    assert validate_tree(reloaded.nodes, reloaded.root_node_id)


@pytest.mark.django_db
def test_import_pgn_is_written_through():
    store = create_repertoire("Queen's Gambit")

    store.import_pgn("1. d4 d5 2. c4 e6 (2... c6) 3. Nc3 *")
    store.import_pgn("1. c4 e6 2. d4 d5 *")

    reloaded = load_repertoire_store(store.repertoire.id)
    assert reloaded.nodes == store.nodes
    source = node_at(reloaded.nodes, reloaded.root_node_id, "c4", "e6", "d4")
    assert source.edge_for_move("d5") is not None


@pytest.mark.django_db
def test_reload_keeps_creation_order():
    store = create_repertoire("Order")
    play_line(store, "e4")
    play_line(store, "d4")
    play_line(store, "c4")

    reloaded = load_repertoire_store(store.repertoire.id)

    assert list(reloaded.nodes) == list(store.nodes)
    assert [node.sequence for node in Node.objects.all()] == [0, 1, 2, 3]


@pytest.mark.django_db
def test_undo_is_written_through():
    store = create_repertoire("Undo")
    history = UndoRedo(store)
    history.add_child_node(store.root_node_id, "e4", fen_after("e4"))
    history.clear_graph()

    history.undo()

    reloaded = load_repertoire_store(store.repertoire.id)
    assert reloaded.nodes == store.nodes
    assert len(reloaded.nodes) == 2


@pytest.mark.django_db
def test_put_nodes_is_idempotent():
    store = create_repertoire("Twice")
    node_id = store.add_child_node(store.root_node_id, "e4", fen_after("e4"))
    persister = DjangoPersister()

    persister.put_nodes(store.repertoire.id, list(store.nodes.values()))
    persister.put_nodes(store.repertoire.id, list(store.nodes.values()))

    assert Node.objects.count() == 2
    assert Node.objects.get(pk=node_id).sequence == 1


@pytest.mark.django_db
def test_delete_nodes_ignores_missing_ids():
    store = create_repertoire("Nothing to delete")

    DjangoPersister().delete_nodes(store.repertoire.id, [str(uuid.uuid4())])

    assert Node.objects.count() == 1


@pytest.mark.django_db
def test_save_repertoire_store_replaces_rows():
    store = create_repertoire("Resave")
    play_line(store, "e4", "e5")
    store.persister = None
    store.clear_graph()
    play_line(store, "d4")

    save_repertoire_store(store)

    reloaded = load_repertoire_store(store.repertoire.id)
    assert reloaded.nodes == store.nodes
    assert [node.sequence for node in Node.objects.all()] == [0, 1]


@pytest.mark.django_db
def test_load_unknown_repertoire():
    with pytest.raises(Repertoire.DoesNotExist):
        load_repertoire_store(uuid.uuid4())
