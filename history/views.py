import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from chat.documents import InvalidMessage
from .store import HistoryMessage, get_history_store

logger = logging.getLogger(__name__)


def _read(request):
    try:
        history = get_history_store().read()
    except Exception:
        logger.exception("Failed to read chat history")
        return JsonResponse({"error": "Failed to read chat history"}, status=500)
    return JsonResponse(history, safe=False)


def _save(request):
    try:
        payload = json.loads(request.body.decode("utf-8"))
        if not isinstance(payload, list):
            raise InvalidMessage("history payload must be an array")
        incoming = [HistoryMessage.from_dict(m) for m in payload]
    except (UnicodeDecodeError, ValueError) as e:
        # InvalidMessage is a ValueError
        logger.warning("Rejected chat history payload: %s", e)
        return JsonResponse({"error": "Failed to save chat history"}, status=500)

    try:
        get_history_store().merge(incoming)
    except Exception:
        logger.exception("Failed to save chat history")
        return JsonResponse({"error": "Failed to save chat history"}, status=500)
    return JsonResponse({"success": True})


@csrf_exempt
@require_http_methods(["GET", "POST"])
def history(request):
    if request.method == "GET":
        return _read(request)
    return _save(request)
