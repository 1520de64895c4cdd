from __future__ import annotations

from http import HTTPStatus
from typing import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

Handler = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Handler], Handler]


def compose(handler: Handler, *middlewares: Middleware) -> Handler:
    """
    Wrap handler with middlewares listed outer-to-inner.

    compose(h, a, b) == a(b(h)): b post-processes first, a last.
    """
    for middleware in reversed(middlewares):
        handler = middleware(handler)
    return handler


def status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def request_path(request: Request) -> str:
    # scope path, not request.url: a malformed Host header makes the URL unparsable
    return request.scope.get("path", "")
