from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _env_optional(name: str) -> Optional[str]:
    v = (_env(name, "") or "").strip()
    return v or None


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class StoreSettings:
    """
    Object store configuration.

    provider:
      - "s3"     -> S3StorageProvider (default)
      - "minio"  -> MinIO/S3-compatible object store provider
      - "local"  -> LocalFilesStorageProvider
    """
    provider: str
    bucket: str = ""

    # AWS credentials; None falls through to the boto3 credential chain
    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None

    # Local
    local_dir: str = "./data"

    # MinIO (used when provider == "minio")
    minio_endpoint: str = "http://minio:9000"
    minio_access_key: str = ""
    minio_secret_key: str = ""


@dataclass(frozen=True)
class DeliverySettings:
    stream_name: str
    timeout_seconds: float = 2.0

    @property
    def enabled(self) -> bool:
        return bool(self.stream_name)


@dataclass(frozen=True)
class ServerSettings:
    canonical_hostname: str = ""
    title: str = "Module Registry"
    log_level: str = "INFO"


@dataclass(frozen=True)
class Settings:
    store: StoreSettings
    delivery: DeliverySettings
    server: ServerSettings


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

def _normalize_storage_provider(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("minio",):
        return "minio"
    if v in ("local", "file", "files", "filesystem"):
        return "local"
    return "s3"


def _load_store_settings() -> StoreSettings:
    """
    Storage precedence (DO NOT break this):
      1) STORAGE_MODE (deployment/runtime truth)  <-- must win
      2) STORAGE_PROVIDER (legacy override)
      3) default s3
    """
    raw_mode = (_env("STORAGE_MODE", "") or "").strip()
    raw_provider = (_env("STORAGE_PROVIDER", "") or "").strip()
    provider = _normalize_storage_provider(raw_mode or raw_provider or "s3")

    bucket = (_env("REGISTRY_BUCKET", "") or _env("S3_BUCKET", "")).strip()
    region = _env_optional("AWS_REGION") or _env_optional("AWS_DEFAULT_REGION")

    local_dir = (_env("STORAGE_LOCAL_DIR", "") or "./data").strip()

    minio_endpoint = (_env("MINIO_ENDPOINT", "") or "http://minio:9000").strip().rstrip("/")
    minio_access_key = (_env("MINIO_ACCESS_KEY", "") or "").strip()
    minio_secret_key = (_env("MINIO_SECRET_KEY", "") or "").strip()

    return StoreSettings(
        provider=provider,
        bucket=bucket,
        region=region,
        access_key_id=_env_optional("AWS_ACCESS_KEY_ID"),
        secret_access_key=_env_optional("AWS_SECRET_ACCESS_KEY"),
        session_token=_env_optional("AWS_SESSION_TOKEN"),
        local_dir=local_dir,
        minio_endpoint=minio_endpoint,
        minio_access_key=minio_access_key,
        minio_secret_key=minio_secret_key,
    )


def _load_delivery_settings() -> DeliverySettings:
    stream_name = (_env("DELIVERY_STREAM_NAME", "") or "").strip()
    timeout_seconds = _env_float("DELIVERY_TIMEOUT_SECONDS", 2.0)
    timeout_seconds = max(0.1, min(float(timeout_seconds), 30.0))
    return DeliverySettings(stream_name=stream_name, timeout_seconds=timeout_seconds)


def _load_server_settings() -> ServerSettings:
    hostname = (_env("CANONICAL_HOSTNAME", "") or "").strip().lower().rstrip(".")
    title = (_env("REGISTRY_TITLE", "") or "Module Registry").strip()
    log_level = (_env("LOG_LEVEL", "") or "INFO").strip().upper()
    return ServerSettings(canonical_hostname=hostname, title=title, log_level=log_level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        store=_load_store_settings(),
        delivery=_load_delivery_settings(),
        server=_load_server_settings(),
    )
