import json
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from chessgraph.models import Repertoire
from chessgraph.persistence import load_repertoire_store
from chessgraph.serializers import serialize_export

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@require_GET
def repertoire_list(request):
    repertoires = [
        {
            "id": str(repertoire.id),
            "name": repertoire.name,
            "side": repertoire.side,
            "root_node_id": str(repertoire.root_node_id),
            "node_count": repertoire.nodes.count(),
            "updated_at": repertoire.updated_at.isoformat(),
        }
        for repertoire in Repertoire.objects.all()
    ]
    return JsonResponse({"repertoires": repertoires})


def _get_pgn_payload(request):
    """
    PGN comes from a form field ("pgn", with optional "directives") or from
    a JSON body ({"pgn": ..., "directives": true}).
    """
    if request.content_type in FORM_CONTENT_TYPES:
        pgn_text = request.POST.get("pgn", "")
        if upload := request.FILES.get("pgn_file"):
            pgn_text = upload.read().decode("utf-8", errors="replace")
        directives = request.POST.get("directives", "").lower() in ("1", "true", "on")
        return pgn_text, directives

    data = json.loads(request.body or b"{}")
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data.get("pgn") or "", bool(data.get("directives"))


@csrf_exempt
@require_POST
def import_pgn(request, repertoire_id):
    get_object_or_404(Repertoire, pk=repertoire_id)

    try:
        pgn_text, directives = _get_pgn_payload(request)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        return JsonResponse({"status": "error", "message": str(e)}, status=400)

    if not pgn_text.strip():
        return JsonResponse(
            {"status": "error", "message": "No PGN provided"}, status=400
        )

    store = load_repertoire_store(repertoire_id)
    stats = store.import_pgn(pgn_text, extract_directives=directives)
    logger.info(
        "PGN import into %s: %d created", store.repertoire.name, stats.nodes_created
    )

    return JsonResponse({"status": "success", **stats.as_dict()})


@require_GET
def export_repertoire(request, repertoire_id):
    get_object_or_404(Repertoire, pk=repertoire_id)
    store = load_repertoire_store(repertoire_id)
    return JsonResponse(serialize_export([store]))


@require_GET
def export_all(request):
    stores = [
        load_repertoire_store(repertoire.id) for repertoire in Repertoire.objects.all()
    ]
    return JsonResponse(serialize_export(stores))
