import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Repertoire",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                (
                    "side",
                    models.CharField(
                        choices=[("white", "White"), ("black", "Black")],
                        max_length=5,
                    ),
                ),
                ("root_node_id", models.UUIDField()),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="Node",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("move", models.CharField(blank=True, max_length=16, null=True)),
                ("fen", models.CharField(db_index=True, max_length=100)),
                ("comment", models.TextField(blank=True, default="")),
                ("color", models.CharField(default="#3f3f46", max_length=7)),
                ("tags", models.JSONField(blank=True, default=list)),
                (
                    "parent_id",
                    models.UUIDField(blank=True, db_index=True, null=True),
                ),
                ("child_ids", models.JSONField(blank=True, default=list)),
                (
                    "transposition_edges",
                    models.JSONField(blank=True, default=list),
                ),
                ("arrows", models.JSONField(blank=True, default=list)),
                (
                    "highlighted_squares",
                    models.JSONField(blank=True, default=list),
                ),
                ("sequence", models.PositiveIntegerField(default=0)),
                (
                    "repertoire",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="nodes",
                        to="chessgraph.repertoire",
                    ),
                ),
            ],
            options={
                "ordering": ["sequence"],
            },
        ),
    ]
