from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import Response

from middleware.chain import Handler, request_path, status_text

logger = logging.getLogger(__name__)


def with_logging(handler: Handler) -> Handler:
    """Log "<status> <status text> <path>" once the wrapped handler has answered."""

    async def _logged(request: Request) -> Response:
        response = await handler(request)
        logger.info("%s %s %s", response.status_code, status_text(response.status_code), request_path(request))
        return response

    return _logged
