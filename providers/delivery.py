from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DeliveryStream(Protocol):
    """
    Analytics delivery stream abstraction.

    put_record returns the HTTP status of the stream's acknowledgment and
    may raise on transport failure.
    """

    def put_record(self, stream_name: str, data: bytes) -> int: ...
