"""
Object storage for guest ID documents (S3 or MinIO via boto3).
"""

from __future__ import annotations

import mimetypes
import re
import uuid
from typing import Any, Optional

import boto3
import structlog
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from bookastay.config import (
    S3_ACCESS_KEY,
    S3_BUCKET_NAME,
    S3_ENDPOINT_URL,
    S3_KEY_PREFIX,
    S3_PUBLIC_BASE,
    S3_REGION,
    S3_SECRET_KEY,
)
from bookastay.exceptions import BookingValidationError, UpstreamServiceError

logger = structlog.get_logger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "application/pdf"}
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024
PRESIGNED_URL_TTL_SECONDS = 7 * 24 * 3600


def _safe_filename(filename: str) -> str:
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", filename or "document").strip("._")
    return name or "document"


class S3DocumentStore:
    """
    Stores uploaded ID documents and returns a URL the verification provider can fetch.

    URL priority: ``S3_PUBLIC_BASE`` + key when set, otherwise a presigned GET URL.
    """

    def __init__(
        self,
        bucket_name: str = S3_BUCKET_NAME,
        endpoint_url: Optional[str] = S3_ENDPOINT_URL,
        region: str = S3_REGION,
        access_key: Optional[str] = S3_ACCESS_KEY,
        secret_key: Optional[str] = S3_SECRET_KEY,
        public_base: str = S3_PUBLIC_BASE,
        key_prefix: str = S3_KEY_PREFIX,
        client: Any = None,
    ) -> None:
        self.bucket_name = bucket_name
        self.public_base = (public_base or "").rstrip("/")
        self.key_prefix = key_prefix.strip("/")
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version="s3v4", s3={"addressing_style": "path"}),
        )

    def _url_for(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{key}"
        return str(
            self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=PRESIGNED_URL_TTL_SECONDS,
            )
        )

    def upload(self, data: bytes, filename: str, content_type: Optional[str] = None) -> str:
        """
        Upload one document.

        Args:
            data: File contents
            filename: Original filename (sanitized into the object key)
            content_type: MIME type; guessed from the filename when missing

        Returns:
            str: URL of the stored document

        Raises:
            BookingValidationError: Empty, oversized or unsupported file
            UpstreamServiceError: Storage rejected the upload or is unreachable
        """
        if not data:
            raise BookingValidationError("ID file is empty")
        if len(data) > MAX_DOCUMENT_BYTES:
            raise BookingValidationError("ID file is too large (maximum 10 MB)")

        content_type = content_type or mimetypes.guess_type(filename)[0] or ""
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise BookingValidationError("ID file must be a JPEG, PNG, WEBP image or a PDF")

        key = f"{self.key_prefix}/{uuid.uuid4().hex}-{_safe_filename(filename)}".lstrip("/")
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
            url = self._url_for(key)
        except (BotoCoreError, ClientError) as err:
            logger.error("document_upload_failed", key=key, error=str(err))
            raise UpstreamServiceError("Document storage is unavailable") from err

        logger.info("document_uploaded", key=key, size=len(data), content_type=content_type)
        return url
