from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import Response

from middleware.chain import Handler, Middleware, request_path, status_text
from providers.delivery import DeliveryStream

logger = logging.getLogger(__name__)


class DeliveryRecord(BaseModel):
    """One analytics event per answered request."""
    status_code: int = Field(serialization_alias="statusCode")
    status_text: str = Field(serialization_alias="statusText")
    path: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_bytes(self) -> bytes:
        # newline-delimited so the stream's consumers can split concatenated records
        return (self.model_dump_json(by_alias=True) + "\n").encode("utf-8")


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


def _acknowledged(status_code: int) -> bool:
    return 200 <= status_code < 400


async def deliver_record(
    delivery: DeliveryStream,
    stream_name: str,
    record: DeliveryRecord,
    timeout_seconds: float,
) -> DeliveryResult:
    """
    Send record to the stream. Never raises: every failure, a timeout
    included, comes back as a failed DeliveryResult.
    """
    try:
        status_code = await asyncio.wait_for(
            asyncio.to_thread(delivery.put_record, stream_name, record.to_bytes()),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError:
        return DeliveryResult(ok=False, error=f"timed out after {timeout_seconds}s")
    except Exception as e:
        return DeliveryResult(ok=False, error=f"{type(e).__name__}: {e}")

    if not _acknowledged(status_code):
        return DeliveryResult(ok=False, status_code=status_code, error=f"stream answered {status_code}")
    return DeliveryResult(ok=True, status_code=status_code)


def with_analytics(delivery: DeliveryStream, stream_name: str, timeout_seconds: float = 2.0) -> Middleware:
    """
    Build a middleware that reports every response to the delivery stream.

    Delivery happens after the wrapped handler answered and before the
    response is handed back; its outcome never changes the response.
    """

    def _middleware(handler: Handler) -> Handler:
        async def _reported(request: Request) -> Response:
            response = await handler(request)
            record = DeliveryRecord(
                status_code=response.status_code,
                status_text=status_text(response.status_code),
                path=request_path(request),
            )
            result = await deliver_record(delivery, stream_name, record, timeout_seconds)
            if not result.ok:
                logger.error("analytics delivery to %s failed: %s", stream_name, result.error)
            return response

        return _reported

    return _middleware
