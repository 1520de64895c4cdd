from __future__ import annotations

import hashlib
import os
from typing import Any, Dict, List, Optional

from providers.storage import ObjectStore, StoredObject


class LocalFilesStorageProvider(ObjectStore):
    """
    Local filesystem object store rooted at a directory.

    Development only: content types, cache directives and metadata are not
    persisted, so the handler defaults apply to every object.
    """

    def __init__(self, root: str = "./data") -> None:
        self.root = os.path.abspath(root)

    def _path(self, key: str) -> str:
        safe = key.replace("..", "").lstrip("/").replace("/", os.sep)
        return os.path.join(self.root, safe)

    def get_object(self, key: str) -> Optional[StoredObject]:
        path = self._path(key)
        if not os.path.isfile(path):
            return None
        with open(path, "rb") as f:
            data = f.read()
        return StoredObject(
            key=key,
            body=data,
            etag='"%s"' % hashlib.md5(data).hexdigest(),
        )

    def list_objects(self, prefix: str) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        if not os.path.isdir(self.root):
            return out
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for fn in filenames:
                rel = os.path.relpath(os.path.join(dirpath, fn), self.root)
                key = rel.replace(os.sep, "/")
                if key.startswith(prefix):
                    out.append({"Key": key})
        return out

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return '"%s"' % hashlib.md5(data).hexdigest()
