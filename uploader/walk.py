from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterator, Optional

# common dirs to exclude
EXCLUDE_DIRS = {".git", ".terraform", ".vscode"}

MEDIA_TYPES = {
    ".md": "text/markdown",
    ".html": "text/html",
    ".htm": "text/html",
    ".json": "application/json",
    ".map": "application/json",
    ".txt": "text/plain",
    ".ts": "text/typescript",
    ".tsx": "text/tsx",
    ".js": "application/javascript",
    ".jsx": "text/jsx",
    ".gz": "application/gzip",
    ".css": "text/css",
    ".wasm": "application/wasm",
    ".mjs": "application/javascript",
}


@dataclass(frozen=True)
class UploadEntry:
    path: str
    key: str
    content_type: Optional[str]


def media_type(name: str) -> Optional[str]:
    return MEDIA_TYPES.get(os.path.splitext(name)[1].lower())


def versioned_key(module: str, version: str, relative: str) -> str:
    """mymod, 1.2.3, sub/b.json -> mymod@1.2.3/sub/b.json"""
    parts = [f"{module}@{version}"] + [p for p in relative.replace(os.sep, "/").split("/") if p]
    return "/".join(parts)


def iter_entries(root: str, version: str) -> Iterator[UploadEntry]:
    """
    Lazily yield one UploadEntry per regular file under root.

    Excluded directories are pruned, never descended into. Each call
    starts a fresh walk.
    """
    root = os.path.abspath(root)
    module = os.path.basename(root.rstrip(os.sep))
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDE_DIRS)
        for fn in sorted(filenames):
            full = os.path.join(dirpath, fn)
            if not os.path.isfile(full):
                continue
            rel = os.path.relpath(full, root)
            yield UploadEntry(path=full, key=versioned_key(module, version, rel), content_type=media_type(fn))
