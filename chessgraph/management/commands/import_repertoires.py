import json
import os

from django.core.management.base import BaseCommand, CommandError

from chessgraph import importer


class Command(BaseCommand):
    help = "Replace all repertoires with the contents of an export file"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument(
            "-f",
            "--file",
            type=str,
            default="/tmp/chessgraph-export.json",
            help="Path to JSON file (default: /tmp/chessgraph-export.json)",
        )

    def handle(self, *args, **kwargs):
        file_path = kwargs["file"]

        self.stdout.write(f"Importing from file: {file_path}")

        if not os.path.exists(file_path):
            raise CommandError("❌ File does not exist")

        with open(file_path, "r", encoding="utf-8") as file:
            try:
                data = json.load(file)
            except json.JSONDecodeError as e:
                raise CommandError(f"❌ Invalid JSON: {e}") from e

        try:
            stores = importer.import_data(data)
        except ValueError as e:
            raise CommandError(f"❌ {e}") from e

        node_count = sum(len(store.nodes) for store in stores)
        self.stdout.write(
            f"✅ Imported {len(stores)} repertoires, {node_count} nodes"
        )
