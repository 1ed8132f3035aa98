"""Media storage for uploaded selfies and generated results on Google Cloud Storage."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError, NotFound

from smileforward.settings import settings

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "video/mp4": "mp4",
}

PLACEHOLDER_OBJECT = ".emptyFolderPlaceholder"


class StorageError(Exception):
    """Custom exception for media storage errors."""
    pass


class MediaStorage:
    """Two-bucket media store.

    ``uploads`` holds raw user photos and is purged after the retention
    window. ``generated`` holds output images and videos and is public-read.
    """

    def __init__(
        self,
        project_id: str,
        uploads_bucket: str,
        generated_bucket: str,
        client: storage.Client | None = None,
    ) -> None:
        """Initialize the storage service; the GCS client is created lazily."""
        self.project_id = project_id
        self.uploads_bucket_name = uploads_bucket
        self.generated_bucket_name = generated_bucket
        self._client = client

    @property
    def client(self) -> storage.Client:
        """Lazy-load the GCS client."""
        if self._client is None:
            self._client = storage.Client(project=self.project_id)
        return self._client

    def _bucket(self, name: str) -> storage.Bucket:
        if not name:
            raise StorageError("Storage bucket is not configured")
        return self.client.bucket(name)

    @staticmethod
    def extension_for(content_type: str) -> str:
        """File extension for a content type, defaulting to jpg."""
        return CONTENT_TYPE_EXTENSIONS.get(content_type, "jpg")

    def public_url(self, path: str) -> str:
        """Public URL of an object in the generated bucket."""
        return f"https://storage.googleapis.com/{self.generated_bucket_name}/{path}"

    async def upload_photo(self, data: bytes, content_type: str) -> str:
        """Store a raw user photo in the uploads bucket.

        Returns:
            The object path within the uploads bucket
        """
        path = f"{uuid.uuid4()}.{self.extension_for(content_type)}"
        try:
            blob = self._bucket(self.uploads_bucket_name).blob(path)
            blob.upload_from_string(data, content_type=content_type)
        except GoogleCloudError as e:
            logger.error(f"GCS photo upload failed: {e}")
            raise StorageError(f"Failed to upload photo: {e}") from e

        logger.info(f"Uploaded photo: path={path}, size={len(data)}, type={content_type}")
        return path

    async def upload_generated(
        self,
        data: bytes,
        content_type: str,
        path: str | None = None,
    ) -> tuple[str, str]:
        """Store a generated image or video and make it public.

        Args:
            data: File bytes
            content_type: MIME type
            path: Object path; a unique name is generated when omitted

        Returns:
            Tuple of (object path, public URL)
        """
        if path is None:
            kind = "video" if content_type.startswith("video/") else "smile"
            path = f"{kind}_{uuid.uuid4().hex}.{self.extension_for(content_type)}"

        try:
            blob = self._bucket(self.generated_bucket_name).blob(path)
            blob.cache_control = "public, max-age=31536000"
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
        except GoogleCloudError as e:
            logger.error(f"GCS upload of generated media failed: {e}")
            raise StorageError(f"Failed to upload generated media: {e}") from e

        logger.info(f"Uploaded generated media: path={path}, size={len(data)}, type={content_type}")
        return path, self.public_url(path)

    async def download_generated(self, path: str) -> tuple[bytes, str]:
        """Download an object from the generated bucket.

        Returns:
            Tuple of (bytes, content type)
        """
        try:
            blob = self._bucket(self.generated_bucket_name).blob(path)
            data = blob.download_as_bytes()
        except NotFound as e:
            raise StorageError(f"Generated media not found: {path}") from e
        except GoogleCloudError as e:
            logger.error(f"GCS download failed for {path}: {e}")
            raise StorageError(f"Failed to download generated media: {e}") from e
        return data, blob.content_type or "image/jpeg"

    async def delete_expired_uploads(
        self,
        max_age: timedelta,
        now: datetime | None = None,
    ) -> list[str]:
        """Delete raw uploads older than ``max_age``.

        Returns:
            Names of the deleted objects
        """
        now = now or datetime.now(timezone.utc)
        bucket = self._bucket(self.uploads_bucket_name)

        try:
            expired = [
                blob
                for blob in self.client.list_blobs(bucket)
                if blob.name != PLACEHOLDER_OBJECT
                and blob.time_created is not None
                and now - blob.time_created > max_age
            ]
            for blob in expired:
                blob.delete()
        except GoogleCloudError as e:
            logger.error(f"GCS cleanup failed: {e}")
            raise StorageError(f"Failed to clean up uploads: {e}") from e

        deleted = [blob.name for blob in expired]
        if deleted:
            logger.info(f"Deleted {len(deleted)} expired uploads")
        return deleted


# Global instance
media_storage = MediaStorage(
    project_id=settings.gcp_project_id,
    uploads_bucket=settings.gcs_uploads_bucket,
    generated_bucket=settings.gcs_generated_bucket,
)


def get_media_storage() -> MediaStorage:
    """Dependency returning the shared media storage."""
    return media_storage
