import logging
import random
import time
from typing import Callable, Optional

from .blob_store import UploadedBlob
from .models import TournamentRecord
from .validation import ImagePayload, validate_image

logger = logging.getLogger(__name__)

POSTER_FOLDER = 'posters'


def generate_blob_id(prefix: str = 'poster') -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"


class MutationCoordinator:
    """
    Couples poster uploads/deletes with tournament writes.

    Ordering rule: a stored record never points at a deleted blob. New images
    are uploaded before the record write and removed again if the write fails;
    replaced or orphaned images are removed only after the write succeeds.
    Blob cleanup is best-effort: failures are logged and never replace the
    error of the operation that triggered them.
    """

    def __init__(self, store, blob_store, max_image_bytes: int = 5 * 1024 * 1024,
                 folder: str = POSTER_FOLDER):
        self.store = store
        self.blob_store = blob_store
        self.max_image_bytes = max_image_bytes
        self.folder = folder

    def _upload(self, image: ImagePayload) -> UploadedBlob:
        uploaded = self.blob_store.upload(
            image.data,
            self.folder,
            generate_blob_id(),
            content_type=image.content_type
        )
        logger.info(f"Poster uploaded: {uploaded.url}")
        return uploaded

    def _discard(self, handle: str, reason: str) -> None:
        try:
            self.blob_store.delete(handle)
            logger.info(f"Deleted poster {handle} ({reason})")
        except Exception:
            logger.exception(f"Failed to delete poster {handle} ({reason})")

    def create(self, fields: dict, image: Optional[ImagePayload] = None) -> TournamentRecord:
        validate_image(image, self.max_image_bytes)

        fields = dict(fields)
        uploaded = None
        if image is not None:
            uploaded = self._upload(image)
            fields['poster_image'] = uploaded.url

        try:
            record = self.store.insert(fields)
        except Exception:
            if uploaded is not None:
                self._discard(uploaded.handle, 'cleanup after failed create')
            raise

        logger.info(f"Tournament created: {record.id}")
        return record

    def update(
        self,
        tournament_id: str,
        fields: dict,
        image: Optional[ImagePayload] = None,
        prepare: Callable[[TournamentRecord, dict], dict] = None
    ) -> TournamentRecord:
        """
        Apply ``fields`` to a stored tournament, optionally replacing its poster.

        ``prepare`` receives the loaded record and the requested fields and
        returns the fields to write; it runs before any upload so it may still
        raise ValidationError without side effects.
        """
        existing = self.store.get(tournament_id)
        validate_image(image, self.max_image_bytes)

        fields = dict(fields)
        if prepare is not None:
            fields = prepare(existing, fields)

        uploaded = None
        old_handle = None
        if image is not None:
            uploaded = self._upload(image)
            fields['poster_image'] = uploaded.url
            old_handle = self.blob_store.handle_from_url(existing.poster_image)

        try:
            record = self.store.update(tournament_id, fields)
        except Exception:
            if uploaded is not None:
                self._discard(uploaded.handle, 'cleanup after failed update')
            raise

        if old_handle and old_handle != (uploaded.handle if uploaded else None):
            self._discard(old_handle, 'replaced by new poster')

        logger.info(f"Tournament updated: {record.id}")
        return record

    def delete(self, tournament_id: str) -> TournamentRecord:
        existing = self.store.get(tournament_id)

        handle = self.blob_store.handle_from_url(existing.poster_image)
        if handle:
            self._discard(handle, 'tournament deleted')
        elif existing.poster_image:
            logger.warning(f"Poster {existing.poster_image} is not managed by the blob store, leaving it")

        self.store.delete(tournament_id)
        logger.info(f"Tournament deleted: {tournament_id}")
        return existing
