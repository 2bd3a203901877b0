import os

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from chessgraph.models import Repertoire
from chessgraph.persistence import create_repertoire, load_repertoire_store


class Command(BaseCommand):
    help = "Merge the games in a PGN file into a repertoire"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument(
            "-f",
            "--file",
            type=str,
            required=True,
            help="Path to PGN file",
        )
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument(
            "--repertoire",
            type=str,
            help="Id of an existing repertoire to merge into",
        )
        target.add_argument(
            "--name",
            type=str,
            help="Create a new repertoire with this name",
        )
        parser.add_argument(
            "--side",
            choices=["white", "black"],
            default="white",
            help="Side for a new repertoire (default: white)",
        )
        parser.add_argument(
            "--directives",
            action="store_true",
            help="Turn [%%csl]/[%%cal] comment directives into board annotations",
        )

    def handle(self, *args, **kwargs):
        file_path = kwargs["file"]
        if not os.path.exists(file_path):
            raise CommandError(f"❌ File does not exist: {file_path}")

        with open(file_path, "r", encoding="utf-8", errors="replace") as file:
            pgn_text = file.read()

        if kwargs["name"]:
            store = create_repertoire(kwargs["name"], side=kwargs["side"])
            self.stdout.write(f"🆕 Created repertoire {store.repertoire.id}")
        else:
            try:
                store = load_repertoire_store(kwargs["repertoire"])
            except (Repertoire.DoesNotExist, ValidationError) as e:
                raise CommandError(
                    f"❌ No repertoire with id {kwargs['repertoire']}"
                ) from e

        self.stdout.write(f"📥️ Importing {file_path} into {store.repertoire.name}")
        stats = store.import_pgn(pgn_text, extract_directives=kwargs["directives"])

        for error in stats.errors:
            where = f"game {error.game}" if error.game else "PGN"
            move = f" at {error.move}" if error.move else ""
            self.stderr.write(f"⚠️  {where}{move}: {error.message}")

        self.stdout.write(
            f"✅ {stats.games_processed} games: {stats.nodes_created} created, "
            f"{stats.nodes_reused} reused, "
            f"{stats.transpositions_found} transpositions, "
            f"{len(stats.errors)} errors"
        )
