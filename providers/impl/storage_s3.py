from __future__ import annotations

import os
from typing import Optional, Dict, Any, List

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from providers.storage import ObjectStore, StoredObject


_MISSING_CODES = ("NoSuchKey", "NotFound", "404")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or "").strip()


class S3StorageProvider(ObjectStore):
    """
    Native AWS S3 object store.

    Explicit credentials are optional; when omitted boto3 credential
    resolution applies (env, profile, instance role).

    Required:
      - bucket

    Optional env (from_env):
      - REGISTRY_BUCKET or S3_BUCKET
      - AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN
      - AWS_REGION or AWS_DEFAULT_REGION
    """

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        client: Any = None,
    ):
        bucket = (bucket or "").strip()
        if not bucket:
            raise RuntimeError("A bucket name is required for the S3 storage provider")

        self.bucket = bucket

        if client is not None:
            self.s3 = client
            return

        region = (region or _env("AWS_REGION") or _env("AWS_DEFAULT_REGION") or "").strip() or None

        cfg = Config(
            retries={"max_attempts": 8, "mode": "standard"},
            region_name=region,
        )
        self.s3 = boto3.client(
            "s3",
            config=cfg,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            aws_session_token=session_token or None,
        )

    @classmethod
    def from_env(cls, bucket: Optional[str] = None) -> "S3StorageProvider":
        bucket = bucket or _env("REGISTRY_BUCKET") or _env("S3_BUCKET")
        return cls(
            bucket=bucket,
            region=_env("AWS_REGION") or _env("AWS_DEFAULT_REGION") or None,
            access_key_id=_env("AWS_ACCESS_KEY_ID") or None,
            secret_access_key=_env("AWS_SECRET_ACCESS_KEY") or None,
            session_token=_env("AWS_SESSION_TOKEN") or None,
        )

    def get_object(self, key: str) -> Optional[StoredObject]:
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return None
            raise

        body = resp["Body"]
        try:
            data = body.read()
        finally:
            body.close()

        return StoredObject(
            key=key,
            body=data,
            content_type=resp.get("ContentType"),
            etag=resp.get("ETag"),
            cache_control=resp.get("CacheControl"),
            metadata=dict(resp.get("Metadata") or {}),
        )

    def list_objects(self, prefix: str) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        paginator = self.s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            out.extend(page.get("Contents") or [])
        return out

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        kwargs: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": data,
        }
        # no ContentType means the store's default applies
        if content_type:
            kwargs["ContentType"] = content_type
        if metadata:
            # S3 metadata keys must be strings
            kwargs["Metadata"] = {str(kk): str(vv) for kk, vv in metadata.items()}
        resp = self.s3.put_object(**kwargs)
        return resp.get("ETag")
