import logging
import re
import uuid
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import settings
from services.exceptions import StorageError

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageService:
    """Object storage for submitted files (S3)"""

    def __init__(self, bucket_name: Optional[str] = None, s3_client=None, key_prefix: Optional[str] = None):
        self.bucket_name = bucket_name if bucket_name is not None else settings.S3_BUCKET_NAME
        self.key_prefix = (key_prefix if key_prefix is not None else settings.S3_KEY_PREFIX).strip("/")
        self.s3_client = s3_client

        # Initialize S3 if configured
        if self.s3_client is None and self.bucket_name:
            try:
                self.s3_client = boto3.client(
                    "s3",
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    region_name=settings.AWS_DEFAULT_REGION,
                )
                logger.info("S3 client initialized successfully")
            except Exception as e:
                logger.error(f"Failed to initialize S3 client: {str(e)}")
                self.s3_client = None

    @property
    def available(self) -> bool:
        return bool(self.s3_client and self.bucket_name)

    def build_key(self, form_id: str, filename: str) -> str:
        safe_name = _UNSAFE_KEY_CHARS.sub("_", filename or "upload").strip("_") or "upload"
        parts = [self.key_prefix, form_id, uuid.uuid4().hex, safe_name]
        return "/".join(part for part in parts if part)

    def public_url(self, key: str) -> str:
        region = settings.AWS_DEFAULT_REGION
        return f"https://{self.bucket_name}.s3.{region}.amazonaws.com/{key}"

    async def upload_file(self, content: bytes, key: str, content_type: str) -> str:
        """Store one object and return its durable URL"""
        if not self.available:
            raise StorageError("File storage is not configured")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise StorageError() from e

        logger.info(f"Successfully uploaded file to S3: {key}")
        return self.public_url(key)

    async def delete_file(self, key: str) -> bool:
        """Best-effort removal, used to undo a partially stored submission"""
        if not self.available:
            return False

        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"Successfully deleted file from S3: {key}")
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete file from S3: {str(e)}")
            return False


# Global storage service instance
storage_service = StorageService()
