"""
S3-compatible object storage client (AWS S3 or MinIO).

The API never handles media bytes: clients ask for a pre-signed PUT URL,
upload straight to the bucket, then reference the returned object key in
posts and profile edits.
"""
import logging
import uuid
from typing import Optional

import boto3
from botocore.client import Config

from postboard.config import settings
from postboard.errors import ValidationFailed

logger = logging.getLogger(__name__)


class StorageClient:
    def __init__(self, bucket: Optional[str] = None) -> None:
        self.bucket = bucket or settings.s3_bucket
        self._s3 = None

    def start(self) -> None:
        """Create the S3 client and, if configured, ensure the bucket exists."""
        self._s3 = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            config=Config(signature_version="s3v4"),
            region_name=settings.s3_region,
        )

        if settings.s3_create_bucket:
            existing = [b["Name"] for b in self._s3.list_buckets().get("Buckets", [])]
            if self.bucket not in existing:
                self._s3.create_bucket(Bucket=self.bucket)
                logger.info("Created bucket '%s'", self.bucket)
            else:
                logger.info("Bucket '%s' already exists", self.bucket)

    @property
    def s3(self):
        if self._s3 is None:
            self.start()
        return self._s3

    def signed_upload_url(self, content_type: str) -> dict:
        """
        Issue a pre-signed PUT URL for a new object.
        Key format: {uuid}.{subtype} — 'image/png' → '<uuid>.png'
        """
        major, _, subtype = content_type.partition("/")
        if not major or not subtype:
            raise ValidationFailed("Invalid contentType, expected 'type/subtype'")

        key = f"{uuid.uuid4()}.{subtype}"
        upload_url = self.s3.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=settings.upload_url_ttl,
        )
        logger.debug("Issued upload URL for %s", key)
        return {"file_name": key, "upload_url": upload_url}

    @staticmethod
    def public_url(key: Optional[str]) -> str:
        """Public URL for an uploaded object key; empty when no key is given."""
        if not key:
            return ""
        return f"{settings.s3_base_url}{key}"


# Singleton instance shared across requests
storage_client = StorageClient()


def get_storage() -> StorageClient:
    """FastAPI dependency for the object storage client."""
    return storage_client
