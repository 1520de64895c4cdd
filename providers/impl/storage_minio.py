from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Dict, Any, List

from minio import Minio
from minio.error import S3Error

from providers.storage import ObjectStore, StoredObject


_META_PREFIX = "x-amz-meta-"


def _strip_http(endpoint: str) -> str:
    # Minio client expects "host:port" (no scheme)
    endpoint = (endpoint or "").strip()
    endpoint = endpoint.replace("http://", "").replace("https://", "")
    endpoint = endpoint.rstrip("/")
    return endpoint


@dataclass
class MinioStorageProvider(ObjectStore):
    """
    MinIO-backed object store for the local stack.

    Notes:
      - The bucket must already exist; the registry never creates buckets.
      - Keys are treated as opaque strings (e.g. mod@1.0.0/mod.ts).
    """

    endpoint: str
    bucket: str
    access_key: str
    secret_key: str
    secure: bool = False

    def __post_init__(self) -> None:
        host = _strip_http(self.endpoint)
        if not host:
            raise RuntimeError("MINIO_ENDPOINT is empty or invalid")

        self._client = Minio(
            host,
            access_key=self.access_key,
            secret_key=self.secret_key,
            secure=bool(self.secure),
        )

    @classmethod
    def from_settings(cls, endpoint: str, bucket: str, access_key: str, secret_key: str) -> "MinioStorageProvider":
        # Derive secure from scheme (best-effort)
        secure = (endpoint or "").lower().startswith("https://")
        return cls(
            endpoint=endpoint,
            bucket=bucket,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )

    def get_object(self, key: str) -> Optional[StoredObject]:
        try:
            resp = self._client.get_object(bucket_name=self.bucket, object_name=key)
        except S3Error as e:
            if getattr(e, "code", "") in ("NoSuchKey", "NoSuchObject"):
                return None
            raise

        try:
            data = resp.read()
            headers = resp.headers
        finally:
            resp.close()
            resp.release_conn()

        metadata: Dict[str, str] = {}
        for name, value in headers.items():
            lower = name.lower()
            if lower.startswith(_META_PREFIX):
                metadata[lower[len(_META_PREFIX):]] = value

        return StoredObject(
            key=key,
            body=data,
            content_type=headers.get("Content-Type"),
            etag=headers.get("ETag"),
            cache_control=headers.get("Cache-Control"),
            metadata=metadata,
        )

    def list_objects(self, prefix: str) -> List[Dict[str, Any]]:
        objects = self._client.list_objects(
            bucket_name=self.bucket,
            prefix=prefix,
            recursive=True,
        )
        return [{"Key": obj.object_name} for obj in objects]

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        if data is None:
            data = b""

        # metadata headers must be strings
        meta: Dict[str, str] = {}
        if metadata:
            for k, v in metadata.items():
                if v is None:
                    continue
                meta[str(k)] = str(v)

        result = self._client.put_object(
            bucket_name=self.bucket,
            object_name=key,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
            metadata=meta or None,
        )
        return getattr(result, "etag", None)
