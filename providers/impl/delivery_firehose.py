from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from providers.delivery import DeliveryStream


class FirehoseDeliveryStream(DeliveryStream):
    """
    Kinesis Data Firehose delivery stream.

    Retries are kept low: a lost analytics record is acceptable, a slow
    response is not.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if client is not None:
            self.client = client
            return

        cfg = Config(
            retries={"max_attempts": 2, "mode": "standard"},
            region_name=region or None,
        )
        self.client = boto3.client(
            "firehose",
            config=cfg,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            aws_session_token=session_token or None,
        )

    def put_record(self, stream_name: str, data: bytes) -> int:
        resp = self.client.put_record(
            DeliveryStreamName=stream_name,
            Record={"Data": data},
        )
        return int((resp.get("ResponseMetadata") or {}).get("HTTPStatusCode") or 0)
