"""
Registry request handler.

Every request ends in exactly one of four responses:

  REDIRECT      request arrived on a non-canonical hostname (301, no store access)
  OBJECT_FOUND  exact key exists in the store (200, object body)
  LISTING       no object at the key; prefix listing rendered as HTML (200)
  ERROR         store access or rendering failed (500)

An empty listing is still a LISTING, not an error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from middleware.chain import Handler
from providers.storage import ObjectStore, StoredObject
from registry.listing import synthesize_listing
from registry.paths import Resolution, request_target, resolve
from registry.render import render_listing

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"
DEFAULT_CACHE_CONTROL = "max-age=3600"

# object metadata entries surfaced verbatim as response headers
SURFACED_METADATA: Dict[str, str] = {
    "security-advisory": "X-Security-Advisory",
}


@dataclass(frozen=True)
class HandlerOptions:
    canonical_hostname: str = ""
    title: str = "Module Registry"


def object_headers(obj: StoredObject) -> Dict[str, str]:
    headers = {
        "Content-Type": obj.content_type or DEFAULT_CONTENT_TYPE,
        "Cache-Control": obj.cache_control or DEFAULT_CACHE_CONTROL,
    }
    if obj.etag:
        headers["ETag"] = obj.etag
    metadata = {str(k).lower(): v for k, v in (obj.metadata or {}).items()}
    for meta_key, header in SURFACED_METADATA.items():
        value = metadata.get(meta_key)
        if value:
            headers[header] = value
    return headers


class RegistryHandler:
    """
    Resolves a request path against the object store.

    The store is shared across concurrent requests and only read here.
    """

    def __init__(self, store: ObjectStore, options: Optional[HandlerOptions] = None) -> None:
        self.store = store
        self.options = options or HandlerOptions()

    async def __call__(self, request: Request) -> Response:
        try:
            resolution = resolve(
                request.url,
                self.options.canonical_hostname,
                request_target(request.scope),
            )
            if resolution.redirect_to:
                return RedirectResponse(resolution.redirect_to, status_code=301)
            return await self._serve(resolution)
        except Exception as e:
            logger.exception("failed to serve %s", request.scope.get("path", ""))
            return PlainTextResponse(f"Internal Server Error: {e}", status_code=500)

    async def _serve(self, resolution: Resolution) -> Response:
        # files shadow identically-named directories
        if resolution.key is not None:
            obj = await run_in_threadpool(self.store.get_object, resolution.key)
            if obj is not None:
                return Response(content=obj.body, status_code=200, headers=object_headers(obj))

        entries = await run_in_threadpool(self.store.list_objects, resolution.prefix)
        names = synthesize_listing(entries, resolution.prefix)
        body = render_listing(self.options.title, resolution.prefix, names)
        return HTMLResponse(body, status_code=200)


def make_registry_handler(store: ObjectStore, options: Optional[HandlerOptions] = None) -> Handler:
    return RegistryHandler(store, options)
