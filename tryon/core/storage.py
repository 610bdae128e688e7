"""
Storage Abstraction Layer - The Bridge Pattern

Stages local files at publicly reachable URLs so the inference provider can
fetch them. RemoteStorage writes to a Firebase (Google Cloud Storage) bucket;
LocalStorage hands out URLs under this service's own /uploads static mount.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Literal, Optional, Tuple
from urllib.parse import quote, unquote, urlparse

from pydantic import BaseModel

from tryon.core.config import Settings, settings
from tryon.core.exceptions import StorageError
from tryon.core.logging import get_logger
from tryon.core.metrics import record_storage_operation

logger = get_logger(__name__)

UPLOAD_PREFIX = "uploads"

CONTENT_TYPES: Dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def get_content_type(file_path) -> str:
    """Content type by file extension."""
    return CONTENT_TYPES.get(Path(file_path).suffix.lower(), "application/octet-stream")


class StorageDescriptor(BaseModel):
    """Read-only snapshot of the active storage backend."""
    kind: Literal["remote", "local"]
    configured: bool
    initialized: bool
    bucket: Optional[str] = None
    project_id: Optional[str] = None
    url: Optional[str] = None
    message: Optional[str] = None


class StorageBackend(ABC):
    """Interface for staging files at public URLs - The Bridge"""

    kind: str = ""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether this backend has everything it needs to run."""

    @abstractmethod
    async def upload_file(self, local_path: str, name: Optional[str] = None) -> str:
        """
        Make a local file reachable at a public URL.

        Args:
            local_path: Path of the file on this machine
            name: Optional object name; a unique one is derived when omitted

        Returns:
            Public URL of the staged file

        Raises:
            StorageError: file missing, backend uninitialized or upload failed
        """

    @abstractmethod
    async def delete_file(self, public_url: str) -> bool:
        """
        Best-effort removal of a staged file.

        Returns:
            True if deleted, False on any failure. Never raises.
        """

    @abstractmethod
    def describe(self) -> StorageDescriptor:
        """Describe the backend for health and response payloads."""


class RemoteStorage(StorageBackend):
    """Firebase Storage (Google Cloud Storage bucket) implementation."""

    kind = "remote"

    def __init__(self, config: Settings, client=None):
        self.config = config
        self.bucket_name = config.FIREBASE_STORAGE_BUCKET
        self.initialized = False
        self._bucket = None
        self._initialize(client)

    def _initialize(self, client=None):
        if not self.is_configured():
            logger.warning("firebase_not_configured", fallback="local")
            return

        try:
            if client is None:
                client = self._build_client()
            self._bucket = client.bucket(self.bucket_name)
            self.initialized = True
            logger.info("firebase_initialized", bucket=self.bucket_name)
        except Exception as e:
            self.initialized = False
            logger.error("firebase_initialization_failed", error=str(e), error_type=type(e).__name__)

    def _build_client(self):
        from google.cloud import storage as gcs
        from google.oauth2 import service_account

        info = {
            "type": "service_account",
            "project_id": self.config.FIREBASE_PROJECT_ID,
            "private_key_id": self.config.FIREBASE_PRIVATE_KEY_ID,
            # Keys pasted into env files usually carry literal "\n" sequences
            "private_key": self.config.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
            "client_email": self.config.FIREBASE_CLIENT_EMAIL,
            "client_id": self.config.FIREBASE_CLIENT_ID,
            "auth_uri": self.config.FIREBASE_AUTH_URI,
            "token_uri": self.config.FIREBASE_TOKEN_URI,
            "auth_provider_x509_cert_url": self.config.FIREBASE_AUTH_PROVIDER_X509_CERT_URL,
            "client_x509_cert_url": self.config.FIREBASE_CLIENT_X509_CERT_URL,
        }
        credentials = service_account.Credentials.from_service_account_info(info)
        return gcs.Client(project=self.config.FIREBASE_PROJECT_ID, credentials=credentials)

    def is_configured(self) -> bool:
        return all(self.config.firebase_credentials)

    @staticmethod
    def build_key(basename: str, name: Optional[str] = None) -> str:
        """uploads/<uuid>-<basename> unless an explicit name is given."""
        return f"{UPLOAD_PREFIX}/{name or f'{uuid.uuid4()}-{basename}'}"

    def public_url(self, key: str) -> str:
        # Keys keep the original basename, which may contain "#", "?" or spaces
        return f"https://storage.googleapis.com/{self.bucket_name}/{quote(key)}"

    @staticmethod
    def key_from_url(public_url: str) -> str:
        return unquote("/".join(urlparse(public_url).path.split("/")[-2:]))

    def _upload_sync(self, path: Path, key: str):
        blob = self._bucket.blob(key)
        blob.metadata = {
            "uploadedAt": datetime.utcnow().isoformat() + "Z",
            "originalName": path.name,
        }
        blob.upload_from_filename(str(path), content_type=get_content_type(path))
        # Not atomic with the write: a crash here leaves a private object behind
        blob.make_public()

    async def upload_file(self, local_path: str, name: Optional[str] = None) -> str:
        if not self.initialized:
            raise StorageError("Firebase storage not initialized", backend=self.kind)

        path = Path(local_path)
        if not path.exists():
            raise StorageError(f"File does not exist: {local_path}", backend=self.kind)

        key = self.build_key(path.name, name)
        logger.info("storage_upload_started", key=key, bucket=self.bucket_name)

        try:
            await asyncio.to_thread(self._upload_sync, path, key)
        except Exception as e:
            record_storage_operation(self.kind, "upload", False)
            logger.error("storage_upload_failed", key=key, error=str(e))
            raise StorageError(
                f"Failed to upload file to Firebase Storage: {e}",
                backend=self.kind
            ) from e

        record_storage_operation(self.kind, "upload", True)
        url = self.public_url(key)
        logger.info("storage_upload_completed", url=url)
        return url

    async def delete_file(self, public_url: str) -> bool:
        if not self.initialized:
            logger.warning("storage_delete_skipped", reason="not_initialized", url=public_url)
            return False

        key = self.key_from_url(public_url)
        try:
            await asyncio.to_thread(self._bucket.blob(key).delete)
        except Exception as e:
            record_storage_operation(self.kind, "delete", False)
            logger.error("storage_delete_failed", key=key, error=str(e))
            return False

        record_storage_operation(self.kind, "delete", True)
        logger.info("storage_delete_completed", key=key)
        return True

    def describe(self) -> StorageDescriptor:
        if self.initialized:
            return StorageDescriptor(
                kind="remote",
                configured=True,
                initialized=True,
                bucket=self.bucket_name,
                project_id=self.config.FIREBASE_PROJECT_ID,
            )
        configured = self.is_configured()
        return StorageDescriptor(
            kind="remote",
            configured=configured,
            initialized=False,
            message="Firebase configured but not initialized" if configured else "Firebase not configured",
        )


class LocalStorage(StorageBackend):
    """
    Fallback served by this process.

    Uploads already live in UPLOAD_PATH, which is mounted at /uploads, so
    staging only has to hand out the URL. The provider must be able to
    reach PUBLIC_BASE_URL for this to work.
    """

    kind = "local"

    def __init__(self, config: Settings):
        self.config = config

    def is_configured(self) -> bool:
        return True

    async def upload_file(self, local_path: str, name: Optional[str] = None) -> str:
        path = Path(local_path)
        if not path.exists():
            raise StorageError(f"File does not exist: {local_path}", backend=self.kind)

        url = f"{self.config.local_uploads_url}/{quote(path.name)}"
        record_storage_operation(self.kind, "upload", True)
        logger.info("storage_served_locally", url=url)
        return url

    async def delete_file(self, public_url: str) -> bool:
        # Nothing to remove: the URL points at the caller's own temp file
        return False

    def describe(self) -> StorageDescriptor:
        return StorageDescriptor(
            kind="local",
            configured=True,
            initialized=True,
            url=self.config.local_uploads_url,
        )


# Remote clients are reused per credential set; the choice itself is not cached
_remote_backends: Dict[Tuple[Optional[str], ...], RemoteStorage] = {}


def select_storage(config: Optional[Settings] = None) -> StorageBackend:
    """Pick the backend from the current configuration."""
    config = config or settings
    credentials = config.firebase_credentials
    if all(credentials):
        backend = _remote_backends.get(credentials)
        if backend is None:
            backend = RemoteStorage(config)
            _remote_backends[credentials] = backend
        return backend
    return LocalStorage(config)


def reset_storage_cache():
    """Drop cached remote clients (useful for testing)."""
    _remote_backends.clear()
