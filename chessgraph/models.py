import uuid

from django.db import models
from django.utils import timezone

from chessgraph.tree import DEFAULT_COLOR


class Repertoire(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    side = models.CharField(
        max_length=5, choices=[("white", "White"), ("black", "Black")]
    )
    root_node_id = models.UUIDField()
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.name} ({self.side})"


class Node(models.Model):
    """
    A position in a repertoire tree. Tree structure is kept as plain ids
    (parent_id, child_ids, transposition_edges) rather than foreign keys;
    the in-memory tree is authoritative and writes arrive in no particular
    order.

    transposition_edges: [{"target_id": "...", "move": "Nf3"}]
    arrows: [{"start_square": "g1", "end_square": "f3", "color": "#16a34a"}]
    highlighted_squares: [{"square": "e4", "color": "#dc2626"}]
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    repertoire = models.ForeignKey(
        Repertoire, on_delete=models.CASCADE, related_name="nodes"
    )
    move = models.CharField(max_length=16, null=True, blank=True)
    fen = models.CharField(max_length=100, db_index=True)
    comment = models.TextField(default="", blank=True)
    color = models.CharField(max_length=7, default=DEFAULT_COLOR)
    tags = models.JSONField(default=list, blank=True)
    parent_id = models.UUIDField(null=True, blank=True, db_index=True)
    child_ids = models.JSONField(default=list, blank=True)
    transposition_edges = models.JSONField(default=list, blank=True)
    arrows = models.JSONField(default=list, blank=True)
    highlighted_squares = models.JSONField(default=list, blank=True)
    # keeps map order (and so "first transposition match") stable on reload
    sequence = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sequence"]

    def __str__(self):
        return f"{self.move or 'root'} ({self.id})"
