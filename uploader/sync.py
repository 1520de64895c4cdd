from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from providers.storage import ObjectStore
from uploader.pool import pooled_map
from uploader.walk import UploadEntry, iter_entries

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 20
DEFAULT_VERSION = "unstable"


@dataclass(frozen=True)
class UploadResult:
    key: str
    ok: bool
    etag: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SyncReport:
    uploaded: List[UploadResult] = field(default_factory=list)
    failed: List[UploadResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _read_and_put(store: ObjectStore, entry: UploadEntry) -> Optional[str]:
    data = Path(entry.path).read_bytes()
    return store.put_object(entry.key, data, content_type=entry.content_type)


async def upload_entry(store: ObjectStore, entry: UploadEntry) -> UploadResult:
    """Upload one file; failures are logged and returned, never raised."""
    try:
        etag = await asyncio.to_thread(_read_and_put, store, entry)
    except Exception as e:
        logger.error("failed to upload %s -> %s: %s", entry.path, entry.key, e)
        return UploadResult(key=entry.key, ok=False, error=str(e))

    logger.info("uploaded %s (%s)", entry.key, etag)
    return UploadResult(key=entry.key, ok=True, etag=etag)


async def sync_directory(
    store: ObjectStore,
    root: str,
    version: str = DEFAULT_VERSION,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> SyncReport:
    """
    Mirror every file under root into the store as <module>@<version>/<path>.
    """
    results = await pooled_map(
        concurrency,
        iter_entries(root, version),
        lambda entry: upload_entry(store, entry),
    )

    report = SyncReport()
    for r in results:
        (report.uploaded if r.ok else report.failed).append(r)

    if report.failed:
        logger.warning("sync finished: %d uploaded, %d failed", len(report.uploaded), len(report.failed))
    else:
        logger.info("sync finished: %d uploaded", len(report.uploaded))
    return report
