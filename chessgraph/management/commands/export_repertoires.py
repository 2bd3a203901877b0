import json
import os
import tempfile
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from chessgraph.models import Repertoire
from chessgraph.persistence import load_repertoire_store
from chessgraph.serializers import serialize_export


class Command(BaseCommand):
    help = "Export repertoires and their nodes as JSON"  # noqa: A003

    def add_arguments(self, parser):
        parser.add_argument(
            "-f",
            "--file",
            type=str,
            default="/tmp/chessgraph-export.json",
            help="Output JSON file path (default: /tmp/chessgraph-export.json). Use '-' for stdout.",  # noqa: E501
        )
        parser.add_argument(
            "--repertoire",
            type=str,
            action="append",
            help="Only export this repertoire id (repeatable)",
        )

    def handle(self, *args, **kwargs):
        file_path = kwargs["file"]

        qs = Repertoire.objects.all()
        if kwargs["repertoire"]:
            qs = qs.filter(pk__in=kwargs["repertoire"])
        stores = [load_repertoire_store(repertoire.id) for repertoire in qs]
        data = serialize_export(stores)

        if file_path == "-":
            self.stdout.write(json.dumps(data, indent=2, ensure_ascii=False))
            self._report_count(data)
            return

        out_path = Path(file_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        # write to a temp file and swap it in, so a failed export never
        # leaves a truncated file behind
        tmp_fd, tmp_name = tempfile.mkstemp(
            prefix=f".{out_path.name}.",
            dir=str(out_path.parent),
            text=True,
        )

        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as out:
                json.dump(data, out, indent=2, ensure_ascii=False)
                out.write("\n")

            os.replace(tmp_name, out_path)
            self._report_count(data)

        except Exception as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise CommandError(str(exc)) from exc

    def _report_count(self, data):
        self.stderr.write(
            f"➡️  Exported {len(data['repertoires'])} repertoires, "
            f"{len(data['nodes'])} nodes"
        )
