from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable, Optional, Dict, Any, List


@dataclass
class StoredObject:
    """
    A single object read back from the store.

    content_type / etag / cache_control are None when the store
    does not report them; defaults are applied by the request handler.
    """
    key: str
    body: bytes
    content_type: Optional[str] = None
    etag: Optional[str] = None
    cache_control: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ObjectStore(Protocol):
    """
    Object storage abstraction.

    Keys are opaque strings with "/" used as the directory separator.
    """

    def get_object(self, key: str) -> Optional[StoredObject]: ...

    def list_objects(self, prefix: str) -> List[Dict[str, Any]]:
        """
        Every key starting with prefix, as S3-style summaries ({"Key": ...}).
        Entries may lack a "Key".
        """
        ...

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Store data under key and return the store's etag."""
        ...
