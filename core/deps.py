from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Request


def get_registry_handler(request: Request) -> Any:
    """
    The composed registry handler (middlewares included).
    EXPECTS: app.state.handler, set during startup
    """
    try:
        return request.app.state.handler
    except Exception as exc:
        raise RuntimeError("Registry handler not initialized on app.state (startup/lifespan not executed).") from exc


RegistryHandlerDep = Annotated[Any, Depends(get_registry_handler)]
