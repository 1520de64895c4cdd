from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.settings import Settings, StoreSettings
from .storage import ObjectStore
from .delivery import DeliveryStream
from providers.impl.delivery_firehose import FirehoseDeliveryStream
from providers.impl.storage_local_files import LocalFilesStorageProvider
from providers.impl.storage_minio import MinioStorageProvider
from providers.impl.storage_s3 import S3StorageProvider


@dataclass(frozen=True)
class Providers:
    """
    Central container for providers.

    Built once per process and handed to whoever needs it; there is no
    module-level instance.
    """
    settings: Settings
    store: ObjectStore
    delivery: Optional[DeliveryStream] = None


def build_store(settings: StoreSettings) -> ObjectStore:
    if settings.provider == "local":
        return LocalFilesStorageProvider(root=settings.local_dir)

    if settings.provider == "minio":
        return MinioStorageProvider.from_settings(
            endpoint=settings.minio_endpoint,
            bucket=settings.bucket,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
        )

    return S3StorageProvider(
        bucket=settings.bucket,
        region=settings.region,
        access_key_id=settings.access_key_id,
        secret_access_key=settings.secret_access_key,
        session_token=settings.session_token,
    )


def build_delivery(settings: Settings) -> Optional[DeliveryStream]:
    if not settings.delivery.enabled:
        return None
    return FirehoseDeliveryStream(
        region=settings.store.region,
        access_key_id=settings.store.access_key_id,
        secret_access_key=settings.store.secret_access_key,
        session_token=settings.store.session_token,
    )


def build_providers(settings: Settings) -> Providers:
    return Providers(
        settings=settings,
        store=build_store(settings.store),
        delivery=build_delivery(settings),
    )
