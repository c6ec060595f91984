import logging
from typing import Optional

import boto3
from botocore.config import Config

from ..config import settings

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Public-read uploads to an S3-compatible bucket."""

    def __init__(self, client, bucket: str, endpoint: str):
        self.client = client
        self.bucket = bucket
        self.endpoint = endpoint.rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.endpoint}/{self.bucket}/{key}"

    def upload(self, key: str, body: bytes, content_type: Optional[str] = None) -> str:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ACL": "public-read",
        }
        if content_type:
            params["ContentType"] = content_type
        self.client.put_object(**params)
        logger.info("Uploaded %s (%d bytes) to bucket %s", key, len(body), self.bucket)
        return self.public_url(key)


_storage: Optional[ObjectStorage] = None


def get_storage() -> ObjectStorage:
    global _storage

    if _storage is None:
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint or None,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            config=Config(s3={"addressing_style": "path"}),
        )
        _storage = ObjectStorage(client, settings.s3_bucket_name, settings.s3_endpoint)
    return _storage
