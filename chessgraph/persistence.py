import logging
import uuid

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from chessgraph.models import Node
from chessgraph.models import Repertoire as RepertoireModel
from chessgraph.repertoire import RepertoireStore
from chessgraph.serializers import (
    node_from_model,
    node_model_fields,
    repertoire_from_model,
)

logger = logging.getLogger(__name__)


class DjangoPersister:
    """
    Writes RepertoireStore changes to the Node/Repertoire tables.

    Every call can be repeated safely: nodes are inserted or updated by id
    and deletes are filtered, so a retried write converges on the same rows.
    New rows are numbered after the repertoire's current highest sequence,
    which keeps creation order across reloads.
    """

    @transaction.atomic
    def put_nodes(self, repertoire_id, nodes):
        node_ids = [uuid.UUID(node.id) for node in nodes]
        existing = set(
            Node.objects.filter(id__in=node_ids).values_list("id", flat=True)
        )
        highest = Node.objects.filter(repertoire_id=repertoire_id).aggregate(
            Max("sequence")
        )["sequence__max"]
        next_sequence = 0 if highest is None else highest + 1

        for node_id, node in zip(node_ids, nodes):
            fields = node_model_fields(node)
            if node_id in existing:
                Node.objects.filter(pk=node_id).update(**fields)
            else:
                Node.objects.create(
                    id=node_id,
                    repertoire_id=repertoire_id,
                    sequence=next_sequence,
                    **fields,
                )
                next_sequence += 1

        logger.debug("Stored %d node(s) for repertoire %s", len(nodes), repertoire_id)

    def delete_nodes(self, repertoire_id, node_ids):
        deleted, _ = Node.objects.filter(
            repertoire_id=repertoire_id, id__in=node_ids
        ).delete()
        logger.debug("Deleted %d node(s) from repertoire %s", deleted, repertoire_id)

    def touch(self, repertoire_id):
        RepertoireModel.objects.filter(pk=repertoire_id).update(
            updated_at=timezone.now()
        )


def load_repertoire_store(repertoire_id, persister=None) -> RepertoireStore:
    """Raises Repertoire.DoesNotExist for an unknown id."""
    row = RepertoireModel.objects.get(pk=repertoire_id)
    nodes = {}
    for node_row in row.nodes.all():
        node = node_from_model(node_row)
        nodes[node.id] = node

    return RepertoireStore(
        repertoire_from_model(row),
        nodes,
        persister=persister or DjangoPersister(),
    )


@transaction.atomic
def save_repertoire_store(store: RepertoireStore):
    """
    Write a whole store: the repertoire row and every node in map order.
    The repertoire's node rows are replaced, so sequence matches the map.
    """
    repertoire = store.repertoire
    RepertoireModel.objects.update_or_create(
        id=repertoire.id,
        defaults={
            "name": repertoire.name,
            "side": repertoire.side,
            "root_node_id": repertoire.root_node_id,
            "created_at": repertoire.created_at,
            "updated_at": repertoire.updated_at,
        },
    )

    rows = []
    for sequence, node in enumerate(store.nodes.values()):
        rows.append(
            Node(
                id=node.id,
                repertoire_id=repertoire.id,
                sequence=sequence,
                **node_model_fields(node),
            )
        )
    Node.objects.filter(repertoire_id=repertoire.id).delete()
    Node.objects.bulk_create(rows)

    logger.info("Saved repertoire %s with %d node(s)", repertoire.name, len(rows))


def create_repertoire(name, side="white") -> RepertoireStore:
    """New repertoire with just a root node, saved and ready for edits."""
    store = RepertoireStore.create(name, side=side, persister=DjangoPersister())
    save_repertoire_store(store)
    return store
