"""
Poster image hosting on Google Cloud Storage.

Blobs live under ``<root folder>/<folder>/<desired id>`` in a single bucket.
The object name doubles as the deletion handle, and the public URL can be
mapped back to it with ``handle_from_url``.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from shared.errors import UpstreamError

logger = logging.getLogger(__name__)

CONTENT_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}


@dataclass
class UploadedBlob:
    url: str
    handle: str


class GcsBlobStore:
    """Uploads and deletes images in a Cloud Storage bucket."""

    def __init__(
        self,
        bucket_name: str,
        root_folder: str = 'aspire-chess-academy',
        project_id: Optional[str] = None,
        timeout: float = 30,
        client=None
    ):
        self.bucket_name = bucket_name
        self.root_folder = root_folder.strip('/')
        self.project_id = project_id or None
        self.timeout = timeout
        self._client = client
        self._url_pattern = re.compile(
            rf'/{re.escape(self.bucket_name)}/({re.escape(self.root_folder)}/[^?#]+)$'
        )

    @property
    def client(self):
        """Lazy-load the storage client so credentials are only needed on first use."""
        if self._client is None:
            from google.cloud import storage
            self._client = storage.Client(project=self.project_id)
        return self._client

    @property
    def bucket(self):
        return self.client.bucket(self.bucket_name)

    def object_name(self, folder: str, desired_id: str, content_type: str = None) -> str:
        extension = CONTENT_EXTENSIONS.get(content_type or '', 'jpg')
        return f"{self.root_folder}/{folder.strip('/')}/{desired_id}.{extension}"

    def upload(self, data: bytes, folder: str, desired_id: str,
               content_type: str = 'image/jpeg') -> UploadedBlob:
        from google.api_core.exceptions import GoogleAPIError

        name = self.object_name(folder, desired_id, content_type)
        try:
            blob = self.bucket.blob(name)
            blob.cache_control = 'public, max-age=31536000'
            blob.upload_from_string(data, content_type=content_type, timeout=self.timeout)
        except GoogleAPIError as e:
            logger.error(f"Upload of {name} to bucket {self.bucket_name} failed: {e}")
            raise UpstreamError('blob store', f"failed to upload {name}", cause=e) from e

        logger.info(f"Uploaded {name} ({len(data)} bytes)")
        return UploadedBlob(url=blob.public_url, handle=name)

    def delete(self, handle: str) -> bool:
        """Delete a blob by handle. Deleting a missing blob is not an error; returns False."""
        from google.api_core.exceptions import GoogleAPIError, NotFound

        try:
            self.bucket.blob(handle).delete(timeout=self.timeout)
        except NotFound:
            logger.info(f"Blob {handle} already absent")
            return False
        except GoogleAPIError as e:
            raise UpstreamError('blob store', f"failed to delete {handle}", cause=e) from e

        logger.info(f"Deleted blob {handle}")
        return True

    def handle_from_url(self, url: Optional[str]) -> Optional[str]:
        """Map a public URL back to its handle; None for URLs this store did not issue."""
        if not url:
            return None
        match = self._url_pattern.search(url.split('?', 1)[0])
        return unquote(match.group(1)) if match else None
