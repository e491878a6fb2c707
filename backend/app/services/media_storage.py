"""
Media storage abstraction for local and cloud storage.

Provides a unified interface for uploading and deleting user images (avatars,
cover images) on either the local filesystem or Azure Blob Storage. Every
upload returns a public URL plus a `public_id` that identifies the object for
later deletion.
"""
import logging
import shutil
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Raised when the media host rejects or fails an upload."""


@dataclass
class UploadedMedia:
    url: str
    public_id: str


class MediaStorage(ABC):
    """Abstract base class for media host operations."""

    @abstractmethod
    def upload(self, file_stream: BinaryIO, filename: str, folder: str) -> UploadedMedia:
        """
        Upload a file to the media host.

        Args:
            file_stream: Binary file stream
            filename: Original filename (used for the extension only)
            folder: Logical folder, e.g. "avatars"

        Returns:
            UploadedMedia with public URL and id

        Raises:
            MediaUploadError: upload failed
        """
        pass

    @abstractmethod
    def delete(self, public_id: str) -> bool:
        """
        Delete a previously uploaded file.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def public_id_from_url(self, url: str) -> Optional[str]:
        """Recover the public id from a URL this storage produced, if possible."""
        pass

    @staticmethod
    def _object_name(filename: str, folder: str) -> str:
        ext = Path(filename or "").suffix.lower()
        return f"{folder}/{uuid.uuid4().hex}{ext}"


class LocalMediaStorage(MediaStorage):
    """
    Local filesystem media storage.

    Files are written to ``{local_storage_path}/media/{folder}/{uuid}{ext}``
    and served by the application under ``media_url_prefix``.
    """

    def __init__(self, settings: Settings, base_path: str = None):
        self.base_path = Path(base_path or settings.local_storage_path)
        self.media_path = self.base_path / "media"
        self.url_prefix = settings.media_url_prefix.rstrip("/")

        # Create directory if it doesn't exist
        self.media_path.mkdir(parents=True, exist_ok=True)

    def upload(self, file_stream: BinaryIO, filename: str, folder: str) -> UploadedMedia:
        public_id = self._object_name(filename, folder)
        file_path = self.media_path / public_id
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                shutil.copyfileobj(file_stream, f)
        except OSError as exc:
            raise MediaUploadError(f"Could not store {filename}: {exc}") from exc

        logger.info(f"Stored media {public_id}")
        return UploadedMedia(url=f"{self.url_prefix}/{public_id}", public_id=public_id)

    def delete(self, public_id: str) -> bool:
        file_path = self.media_path / public_id
        if file_path.is_file():
            file_path.unlink()
            logger.info(f"Deleted media {public_id}")
            return True
        return False

    def public_id_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.url_prefix}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None


class AzureBlobMediaStorage(MediaStorage):
    """Azure Blob Storage media host (for production)."""

    def __init__(self, settings: Settings):
        if not settings.azure_storage_connection_string:
            raise ValueError("AZURE_STORAGE_CONNECTION_STRING is required for the azure storage backend")

        service_client = BlobServiceClient.from_connection_string(
            settings.azure_storage_connection_string
        )
        self.container_client = service_client.get_container_client(settings.azure_media_container)

    def upload(self, file_stream: BinaryIO, filename: str, folder: str) -> UploadedMedia:
        public_id = self._object_name(filename, folder)
        try:
            blob_client = self.container_client.upload_blob(name=public_id, data=file_stream)
        except AzureError as exc:
            raise MediaUploadError(f"Azure upload failed for {filename}: {exc}") from exc

        logger.info(f"Uploaded media {public_id} to Azure")
        return UploadedMedia(url=blob_client.url, public_id=public_id)

    def delete(self, public_id: str) -> bool:
        try:
            self.container_client.delete_blob(public_id)
        except ResourceNotFoundError:
            return False
        logger.info(f"Deleted media {public_id} from Azure")
        return True

    def public_id_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.container_client.url.rstrip('/')}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None


def get_media_storage(settings: Settings) -> MediaStorage:
    """
    Factory function to get the appropriate media storage based on configuration.

    Returns:
        MediaStorage instance (Local or Azure)
    """
    if settings.storage_backend == "local":
        return LocalMediaStorage(settings)
    elif settings.storage_backend == "azure":
        return AzureBlobMediaStorage(settings)
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


# Global media storage instance
media_storage = get_media_storage(settings)
