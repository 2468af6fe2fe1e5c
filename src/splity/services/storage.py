"""Object storage for uploaded receipt images (S3)."""
import asyncio
import logging
import uuid
from typing import Any

import boto3

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    Uploads files to an S3 bucket and returns their public URLs.

    boto3 is synchronous, so uploads run in a worker thread to keep the event
    loop free. The bucket policy is expected to allow public reads of the
    uploaded keys, which is what lets the OCR service fetch them by URL.
    """

    def __init__(self, bucket_name: str, region: str, client: Any = None) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self._client = client or boto3.client("s3", region_name=region)

    def object_url(self, key: str) -> str:
        """Public URL of an object in the bucket."""
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(self, content: bytes, file_name: str, key_prefix: str = "") -> str:
        """
        Upload ``content`` under a unique key and return its URL.

        Keys have the form ``{key_prefix}_{uuid}_{file_name}``.

        Raises:
            ValueError: If content or file name is empty.
            botocore.exceptions.ClientError: If S3 rejects the upload.
        """
        if not content:
            raise ValueError("File content cannot be empty")
        if not file_name or not file_name.strip():
            raise ValueError("File name cannot be empty")

        key = f"{key_prefix}_{uuid.uuid4()}_{file_name.strip()}"
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self.bucket_name,
            Key=key,
            Body=content,
        )
        logger.info("Uploaded %d bytes to s3://%s/%s", len(content), self.bucket_name, key)
        return self.object_url(key)
