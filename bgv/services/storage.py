"""
File storage providers for applicant documents.

Two backends share one interface: local disk for development and an
S3-compatible bucket (AWS S3 or DigitalOcean Spaces via endpoint_url).
"""
import logging
import os
import re
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import boto3

from bgv.core import config

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """An uploaded file read into memory, tagged with the form field it came from."""
    field_name: str
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class StoredFile:
    file_path: str  # disk path or object URL
    key: str  # provider key used for deletion
    size: int
    mime_type: Optional[str]


def generate_file_name(application_id: int, original_name: str) -> str:
    """<appId>_<safe base name>_<unix ms>_<random><ext>"""
    base, ext = os.path.splitext(os.path.basename(original_name or "file"))
    safe_base = re.sub(r"[^A-Za-z0-9_-]+", "_", base).strip("_")[:50] or "file"
    timestamp = int(time.time() * 1000)
    return f"{application_id}_{safe_base}_{timestamp}_{secrets.token_hex(4)}{ext.lower()}"


class StorageProvider(ABC):
    provider_name: str = ""

    @abstractmethod
    def save_file(self, upload: IncomingFile, application_id: int) -> StoredFile:
        """Persist the bytes and return where they landed."""

    @abstractmethod
    def delete_file(self, key: str) -> bool:
        """Remove a stored file. Returns False when there was nothing to remove."""


class LocalStorageProvider(StorageProvider):
    provider_name = "local"

    def __init__(self, upload_dir: str = "uploads"):
        self.upload_dir = Path(upload_dir)

    def save_file(self, upload: IncomingFile, application_id: int) -> StoredFile:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        file_name = generate_file_name(application_id, upload.filename)
        path = self.upload_dir / file_name
        path.write_bytes(upload.data)
        logger.debug(f"Stored file on disk: path={path}, size={upload.size}")
        return StoredFile(file_path=str(path), key=file_name, size=upload.size, mime_type=upload.content_type)

    def delete_file(self, key: str) -> bool:
        path = self.upload_dir / os.path.basename(key)
        if not path.exists():
            return False
        path.unlink()
        return True


class S3StorageProvider(StorageProvider):
    provider_name = "s3"

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        key_prefix: str = "",
        client=None,
    ):
        if not bucket:
            raise ValueError("S3_BUCKET must be set when STORAGE_PROVIDER=s3")
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.key_prefix = key_prefix.strip("/")
        if client is None:
            client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)
        self.client = client

    def _object_key(self, application_id: int, file_name: str) -> str:
        parts = [self.key_prefix, "applications", str(application_id), file_name]
        return "/".join(part for part in parts if part)

    def public_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def save_file(self, upload: IncomingFile, application_id: int) -> StoredFile:
        key = self._object_key(application_id, generate_file_name(application_id, upload.filename))
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=upload.data,
            ContentType=upload.content_type or "application/octet-stream",
            Metadata={"application_id": str(application_id), "field_name": upload.field_name},
        )
        logger.debug(f"Stored file in bucket: bucket={self.bucket}, key={key}, size={upload.size}")
        return StoredFile(file_path=self.public_url(key), key=key, size=upload.size, mime_type=upload.content_type)

    def delete_file(self, key: str) -> bool:
        self.client.delete_object(Bucket=self.bucket, Key=key)
        return True


@lru_cache(maxsize=1)
def get_storage_provider() -> StorageProvider:
    """Build the provider selected by STORAGE_PROVIDER ("local" or "s3")."""
    provider = config.STORAGE_PROVIDER.lower()
    if provider in ("s3", "aws", "spaces"):
        logger.info(f"Using S3 storage: bucket={config.S3_BUCKET}, endpoint={config.S3_ENDPOINT_URL or 'aws'}")
        return S3StorageProvider(
            bucket=config.S3_BUCKET,
            region=config.S3_REGION,
            endpoint_url=config.S3_ENDPOINT_URL,
            key_prefix=config.ENVIRONMENT,
        )
    if provider != "local":
        raise ValueError(f"Unknown STORAGE_PROVIDER: {config.STORAGE_PROVIDER}")
    logger.info(f"Using local storage: upload_dir={config.UPLOAD_DIR}")
    return LocalStorageProvider(config.UPLOAD_DIR)


def get_storage() -> StorageProvider:
    """FastAPI dependency; override in tests to swap the provider."""
    return get_storage_provider()
