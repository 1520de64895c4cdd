from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from core.settings import Settings
from providers.factory import Providers, build_providers


def init_providers(app: FastAPI, settings: Settings, providers: Optional[Providers] = None) -> Providers:
    """
    Canonical provider initialization.
    Called once during app startup/lifespan. Attaches Providers onto app.state.
    """
    app.state.providers = providers or build_providers(settings)
    return app.state.providers

