"""
Security middleware for request size limiting.
"""
import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024
WRITE_METHODS = {"POST", "PUT", "PATCH"}


class RequestSizeLimitMiddleware:
    """
    Rejects write requests whose declared body is larger than
    settings.MAX_REQUEST_BODY_BYTES with a 413 JSON body.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    @property
    def max_size(self):
        return int(getattr(settings, "MAX_REQUEST_BODY_BYTES", DEFAULT_MAX_BODY_BYTES))

    def __call__(self, request):
        if request.method in WRITE_METHODS:
            too_large = self._declared_size_exceeds_limit(request)
            if too_large is not None:
                logger.warning(
                    "Request size limit exceeded: %s bytes on %s from %s",
                    too_large, request.path, request.META.get("REMOTE_ADDR"),
                )
                return JsonResponse({
                    "error": "Request too large",
                    "max_size_mb": round(self.max_size / (1024 * 1024), 2),
                    "your_size_mb": round(too_large / (1024 * 1024), 2),
                }, status=413)

        return self.get_response(request)

    def _declared_size_exceeds_limit(self, request):
        content_length = request.META.get("CONTENT_LENGTH")
        if not content_length:
            return None
        try:
            size = int(content_length)
        except (ValueError, TypeError):
            # malformed header; Django rejects the body later if it matters
            return None
        return size if size > self.max_size else None
