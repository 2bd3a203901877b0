import copy
import logging
import uuid

from django.conf import settings
from django.db import transaction

from chessgraph.models import Repertoire as RepertoireModel
from chessgraph.persistence import save_repertoire_store
from chessgraph.repertoire import SIDES, RepertoireStore
from chessgraph.serializers import (
    EXPORT_VERSION,
    deserialize_node,
    deserialize_repertoire,
)
from chessgraph.tree import validate_tree

logger = logging.getLogger(__name__)

MAX_IMPORT_NODES = 500_000


def _is_id(value):
    return isinstance(value, str) and value != ""


def upgrade_import_data(data: dict) -> dict:
    """
    Bring an older export up to the current version. Returns a new dict;
    `data` is left alone.

    version 1: a child's "transposesTo" becomes a transposition edge on its
               parent, labelled with the child's move
    version 2: nodes get empty "arrows" and "highlightedSquares"
    """
    data = copy.deepcopy(data)
    version = data.get("version", EXPORT_VERSION)
    nodes = data.get("nodes")
    if not isinstance(nodes, list):
        return data

    if version == 1:
        by_id = {node.get("id"): node for node in nodes if isinstance(node, dict)}
        for node in by_id.values():
            edges = []
            for child_id in node.get("childIds") or []:
                child = by_id.get(child_id)
                if child and child.get("transposesTo") and child.get("move"):
                    edges.append(
                        {"targetId": child["transposesTo"], "move": child["move"]}
                    )
            node["transpositionEdges"] = edges
        for node in by_id.values():
            node.pop("transposesTo", None)
        version = 2

    if version == 2:
        for node in nodes:
            if not isinstance(node, dict):
                continue
            if not isinstance(node.get("arrows"), list):
                node["arrows"] = []
            if not isinstance(node.get("highlightedSquares"), list):
                node["highlightedSquares"] = []
        version = 3

    data["version"] = version
    return data


def validate_import_data(data) -> bool:
    """Raise ValueError describing the first problem found in an export."""
    if not isinstance(data, dict):
        raise ValueError("Import data is not an object")

    repertoires = data.get("repertoires")
    nodes = data.get("nodes")
    if not isinstance(repertoires, list):
        raise ValueError('Missing or invalid "repertoires" array')
    if not isinstance(nodes, list):
        raise ValueError('Missing or invalid "nodes" array')

    max_nodes = getattr(settings, "CHESSGRAPH_MAX_IMPORT_NODES", MAX_IMPORT_NODES)
    if len(nodes) > max_nodes:
        raise ValueError(
            f"Import contains {len(nodes)} nodes, exceeding the limit of {max_nodes}"
        )

    for i, repertoire in enumerate(repertoires):
        if not isinstance(repertoire, dict) or not _is_id(repertoire.get("id")):
            raise ValueError(f'Repertoire at index {i} has missing or invalid "id"')
        rid = repertoire["id"]
        if not isinstance(repertoire.get("name"), str):
            raise ValueError(f'Repertoire "{rid}" has missing or invalid "name"')
        if repertoire.get("side") not in SIDES:
            raise ValueError(
                f'Repertoire "{rid}" has invalid "side" (must be "white" or "black")'
            )
        if not _is_id(repertoire.get("rootNodeId")):
            raise ValueError(f'Repertoire "{rid}" has missing or invalid "rootNodeId"')

    node_ids = set()
    for i, node in enumerate(nodes):
        if not isinstance(node, dict) or not _is_id(node.get("id")):
            raise ValueError(f'Node at index {i} has missing or invalid "id"')
        nid = node["id"]
        if not _is_id(node.get("repertoireId")):
            raise ValueError(f'Node "{nid}" has missing or invalid "repertoireId"')
        if not _is_id(node.get("fen")):
            raise ValueError(f'Node "{nid}" has missing or invalid "fen"')
        parent_id = node.get("parentId")
        if parent_id is not None and not isinstance(parent_id, str):
            raise ValueError(
                f'Node "{nid}" has invalid "parentId" (must be string or null)'
            )
        if not isinstance(node.get("childIds"), list):
            raise ValueError(f'Node "{nid}" has missing or invalid "childIds"')
        node_ids.add(nid)

    for repertoire in repertoires:
        if repertoire["rootNodeId"] not in node_ids:
            raise ValueError(
                f'Repertoire "{repertoire["id"]}" references rootNodeId '
                f'"{repertoire["rootNodeId"]}" which does not exist in nodes'
            )

    _check_circular_references(nodes)
    return True


def _check_circular_references(nodes):
    """childIds form a strict tree, so reaching a node twice means a cycle."""
    children = {node["id"]: node["childIds"] for node in nodes}
    visited = set()

    for node in nodes:
        # a node without a "parentId" key is not a root
        if "parentId" not in node or node["parentId"] is not None:
            continue

        stack = [node["id"]]
        while stack:
            current = stack.pop()
            if current in visited:
                raise ValueError(
                    f'Circular reference detected involving node "{current}"'
                )
            visited.add(current)
            stack.extend(children.get(current) or [])


def build_stores(data: dict) -> list[RepertoireStore]:
    """Group a validated export's nodes into one store per repertoire."""
    stores = {}
    for repertoire_data in data["repertoires"]:
        repertoire = deserialize_repertoire(repertoire_data)
        stores[repertoire.id] = RepertoireStore(repertoire, {})

    for node_data in data["nodes"]:
        store = stores.get(node_data["repertoireId"])
        if store is None:
            logger.warning(
                "Skipping node %s for unknown repertoire %s",
                node_data["id"],
                node_data["repertoireId"],
            )
            continue
        node = deserialize_node(node_data)
        store.nodes[node.id] = node

    return list(stores.values())


def _check_uuid_ids(data):
    """The tables key repertoires and nodes (and parent links) by UUID."""
    ids = [item["id"] for item in data["repertoires"] + data["nodes"]]
    ids.extend(node["parentId"] for node in data["nodes"] if node.get("parentId"))
    for value in ids:
        try:
            uuid.UUID(value)
        except ValueError:
            raise ValueError(f'"{value}" is not a valid UUID') from None


@transaction.atomic
def import_data(data) -> list[RepertoireStore]:
    """
    Replace every stored repertoire with the contents of an export.
    Older versions are upgraded first; nothing is written unless the whole
    payload validates. A "folders" list, if present, is accepted and
    ignored.
    """
    if isinstance(data, dict):
        data = upgrade_import_data(data)
    validate_import_data(data)
    _check_uuid_ids(data)

    stores = build_stores(data)
    for store in stores:
        try:
            validate_tree(store.nodes, store.root_node_id)
        except ValueError as e:
            raise ValueError(f'Repertoire "{store.repertoire.name}": {e}') from e

    RepertoireModel.objects.all().delete()
    for store in stores:
        save_repertoire_store(store)

    logger.info(
        "Imported %d repertoire(s), %d node(s)", len(stores), len(data["nodes"])
    )
    return stores
