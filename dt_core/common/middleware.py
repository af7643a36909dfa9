# backend/dt_core/common/middleware.py
from __future__ import annotations

import logging
import re

from django.utils.deprecation import MiddlewareMixin

from dt_core.common.api.exceptions import ensure_request_id

logger = logging.getLogger(__name__)

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


class RequestIdMiddleware(MiddlewareMixin):
    """
    Stamps every request with request.request_id and echoes it back as
    X-Request-Id, so error envelopes and log lines can be correlated.

    Behavior:
      - A well-formed incoming X-Request-Id is reused (e.g. from a proxy).
      - Anything else gets a fresh uuid4 hex.
    """

    REQUEST_META_KEY = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-Id"

    def process_request(self, request):
        incoming = request.META.get(self.REQUEST_META_KEY) or ""
        if _VALID_REQUEST_ID.match(incoming):
            request.request_id = incoming
        else:
            request.request_id = None
        ensure_request_id(request)
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[self.RESPONSE_HEADER] = rid
        if response.status_code >= 500:
            logger.error(
                "request failed status=%s method=%s path=%s request_id=%s",
                response.status_code,
                request.method,
                request.path,
                rid,
            )
        return response
