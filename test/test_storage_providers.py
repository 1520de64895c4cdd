import io
from typing import Any, Dict, List

import pytest
from botocore.exceptions import ClientError

from core.settings import DeliverySettings, ServerSettings, Settings, StoreSettings
from providers import factory
from providers.impl import storage_minio
from providers.impl.delivery_firehose import FirehoseDeliveryStream
from providers.impl.storage_local_files import LocalFilesStorageProvider
from providers.impl.storage_s3 import S3StorageProvider


class _Body(io.BytesIO):
    pass


class FakeS3Client:
    def __init__(self, objects: Dict[str, Dict[str, Any]], page_size: int = 2):
        self.objects = objects
        self.page_size = page_size
        self.put_calls: List[Dict[str, Any]] = []

    def get_object(self, Bucket: str, Key: str):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "GetObject")
        obj = dict(self.objects[Key])
        obj["Body"] = _Body(obj.pop("data"))
        return obj

    def get_paginator(self, name: str):
        assert name == "list_objects_v2"
        client = self

        class _Paginator:
            def paginate(self, Bucket: str, Prefix: str):
                keys = sorted(k for k in client.objects if k.startswith(Prefix))
                for i in range(0, len(keys), client.page_size):
                    yield {"Contents": [{"Key": k} for k in keys[i:i + client.page_size]]}
                if not keys:
                    yield {"KeyCount": 0}

        return _Paginator()

    def put_object(self, **kwargs):
        self.put_calls.append(kwargs)
        return {"ETag": '"put-etag"'}


def test_s3_requires_bucket():
    with pytest.raises(RuntimeError):
        S3StorageProvider(bucket="  ", client=FakeS3Client({}))


def test_s3_get_maps_response_fields():
    client = FakeS3Client({
        "pkg@1.0.0/mod.ts": {
            "data": b"export {};",
            "ContentType": "text/typescript",
            "ETag": '"e1"',
            "CacheControl": "max-age=60",
            "Metadata": {"security-advisory": "yes"},
        }
    })
    store = S3StorageProvider(bucket="modules", client=client)

    obj = store.get_object("pkg@1.0.0/mod.ts")

    assert obj.body == b"export {};"
    assert obj.content_type == "text/typescript"
    assert obj.etag == '"e1"'
    assert obj.cache_control == "max-age=60"
    assert obj.metadata == {"security-advisory": "yes"}


def test_s3_missing_key_is_absent():
    store = S3StorageProvider(bucket="modules", client=FakeS3Client({}))
    assert store.get_object("nope") is None


def test_s3_other_errors_propagate():
    class DeniedClient(FakeS3Client):
        def get_object(self, Bucket, Key):
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "GetObject")

    store = S3StorageProvider(bucket="modules", client=DeniedClient({}))
    with pytest.raises(ClientError):
        store.get_object("pkg")


def test_s3_list_follows_every_page():
    objects = {f"pkg@1.0.0/f{i}.ts": {"data": b""} for i in range(5)}
    objects["other@1.0.0/x.ts"] = {"data": b""}
    store = S3StorageProvider(bucket="modules", client=FakeS3Client(objects, page_size=2))

    keys = [e["Key"] for e in store.list_objects("pkg@1.0.0/")]

    assert len(keys) == 5
    assert all(k.startswith("pkg@1.0.0/") for k in keys)
    assert store.list_objects("missing/") == []


def test_s3_put_only_sets_content_type_when_known():
    client = FakeS3Client({})
    store = S3StorageProvider(bucket="modules", client=client)

    assert store.put_object("m@1/a.ts", b"a", content_type="text/typescript") == '"put-etag"'
    store.put_object("m@1/LICENSE", b"l")

    assert client.put_calls[0]["ContentType"] == "text/typescript"
    assert "ContentType" not in client.put_calls[1]
    assert client.put_calls[1]["Bucket"] == "modules"


def test_local_store_put_get_and_list(tmp_path):
    store = LocalFilesStorageProvider(root=str(tmp_path))
    etag = store.put_object("pkg@1.0.0/lib/util.ts", b"util")
    store.put_object("pkg@1.0.0/mod.ts", b"mod")

    obj = store.get_object("pkg@1.0.0/lib/util.ts")
    assert obj.body == b"util"
    assert obj.etag == etag
    assert obj.content_type is None
    assert store.get_object("pkg@1.0.0/lib") is None
    assert store.get_object("pkg@1.0.0/missing.ts") is None

    keys = sorted(e["Key"] for e in store.list_objects("pkg@1.0.0/"))
    assert keys == ["pkg@1.0.0/lib/util.ts", "pkg@1.0.0/mod.ts"]


class _FakeMinioResponse:
    def __init__(self, data: bytes, headers: Dict[str, str]):
        self._data = data
        self.headers = headers
        self.closed = False

    def read(self):
        return self._data

    def close(self):
        self.closed = True

    def release_conn(self):
        pass


class _NoSuchKey(storage_minio.S3Error):
    code = "NoSuchKey"

    def __init__(self, object_name):
        Exception.__init__(self, f"NoSuchKey: {object_name}")


class FakeMinio:
    instances: List["FakeMinio"] = []

    def __init__(self, host, access_key=None, secret_key=None, secure=False):
        self.host = host
        self.secure = secure
        self.objects: Dict[str, _FakeMinioResponse] = {}
        FakeMinio.instances.append(self)

    def get_object(self, bucket_name, object_name):
        if object_name not in self.objects:
            raise _NoSuchKey(object_name)
        return self.objects[object_name]

    def list_objects(self, bucket_name, prefix=None, recursive=False):
        class _Obj:
            def __init__(self, name):
                self.object_name = name
        return [_Obj(k) for k in self.objects if k.startswith(prefix or "")]

    def put_object(self, bucket_name, object_name, data, length, content_type=None, metadata=None):
        self.objects[object_name] = _FakeMinioResponse(data.read(), {"Content-Type": content_type})

        class _Result:
            etag = "minio-etag"
        return _Result()


def test_minio_store(monkeypatch):
    monkeypatch.setattr(storage_minio, "Minio", FakeMinio)
    store = storage_minio.MinioStorageProvider.from_settings(
        endpoint="https://minio.local:9000/", bucket="modules", access_key="a", secret_key="b"
    )
    client = FakeMinio.instances[-1]
    assert client.host == "minio.local:9000"
    assert client.secure is True

    client.objects["pkg@1.0.0/mod.ts"] = _FakeMinioResponse(
        b"mod",
        {"Content-Type": "text/typescript", "ETag": '"m1"', "X-Amz-Meta-Security-Advisory": "yes"},
    )
    obj = store.get_object("pkg@1.0.0/mod.ts")
    assert obj.body == b"mod"
    assert obj.content_type == "text/typescript"
    assert obj.etag == '"m1"'
    assert obj.metadata == {"security-advisory": "yes"}

    assert store.get_object("pkg@1.0.0/nope.ts") is None
    assert store.put_object("pkg@1.0.0/lib/a.ts", b"a", content_type="text/typescript") == "minio-etag"
    assert sorted(e["Key"] for e in store.list_objects("pkg@1.0.0/")) == [
        "pkg@1.0.0/lib/a.ts",
        "pkg@1.0.0/mod.ts",
    ]


def test_minio_requires_endpoint(monkeypatch):
    monkeypatch.setattr(storage_minio, "Minio", FakeMinio)
    with pytest.raises(RuntimeError):
        storage_minio.MinioStorageProvider(endpoint="", bucket="b", access_key="a", secret_key="s")


def test_firehose_returns_acknowledgment_status():
    class FakeFirehose:
        def __init__(self):
            self.calls = []

        def put_record(self, DeliveryStreamName, Record):
            self.calls.append((DeliveryStreamName, Record))
            return {"RecordId": "r1", "ResponseMetadata": {"HTTPStatusCode": 200}}

    client = FakeFirehose()
    stream = FirehoseDeliveryStream(client=client)

    assert stream.put_record("registry-requests", b"{}\n") == 200
    assert client.calls == [("registry-requests", {"Data": b"{}\n"})]


def _settings(provider: str, stream_name: str = "") -> Settings:
    return Settings(
        store=StoreSettings(provider=provider, bucket="modules", local_dir="./data"),
        delivery=DeliverySettings(stream_name=stream_name),
        server=ServerSettings(),
    )


def test_factory_selects_local_store_without_delivery():
    providers = factory.build_providers(_settings("local"))
    assert isinstance(providers.store, LocalFilesStorageProvider)
    assert providers.delivery is None


def test_factory_builds_delivery_when_stream_configured(monkeypatch):
    monkeypatch.setattr(factory, "FirehoseDeliveryStream", lambda **kwargs: ("firehose", kwargs))
    providers = factory.build_providers(_settings("local", stream_name="registry-requests"))
    assert providers.delivery[0] == "firehose"


def test_factory_selects_minio(monkeypatch):
    monkeypatch.setattr(storage_minio, "Minio", FakeMinio)
    store = factory.build_store(StoreSettings(provider="minio", bucket="modules", minio_endpoint="http://minio:9000"))
    assert isinstance(store, storage_minio.MinioStorageProvider)
