"""
Photo gallery helpers shared by wines and standard articles.

Attaching a photo is two independent calls: upload the blob, then insert the
row. Nothing is compensated if the second call fails; the orphaned blob is
logged.
"""
import logging
import os

from django.db import DatabaseError
from django.db.models import Max
from django.utils import timezone
from PIL import Image, UnidentifiedImageError

from cellar.core import blob_storage

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
}


class PhotoUploadError(Exception):
    """Raised when one photo of a batch could not be attached"""

    def __init__(self, message, attached):
        super().__init__(message)
        self.attached = attached


def validate_images(files):
    """
    Check every uploaded file is a readable image.

    Returns a list of error messages, empty when all files are valid.
    """
    errors = []
    for upload in files:
        try:
            with Image.open(upload) as image:
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError):
            errors.append(f"{upload.name} is not a valid image")
        finally:
            upload.seek(0)
    return errors


def _extension(upload, forced_extension):
    if forced_extension:
        return forced_extension
    ext = os.path.splitext(upload.name or '')[1].lstrip('.').lower()
    return ext if ext in CONTENT_TYPES else 'jpg'


def next_position(photos):
    current = photos.aggregate(max_position=Max('position'))['max_position']
    return 0 if current is None else current + 1


def attach_photos(entity, photos, container, files, comments=None, forced_extension=None):
    """
    Upload ``files`` for ``entity`` and insert one photo row per file.

    ``photos`` is the entity's related photo manager (e.g. ``wine.photos``).
    Positions continue after the current highest one. The loop stops at the
    first failure; photos already attached stay.

    Returns the list of created photo rows.

    Raises:
        PhotoUploadError: carrying the rows attached before the failure
    """
    start = next_position(photos)
    timestamp = int(timezone.now().timestamp() * 1000)
    attached = []

    for i, upload in enumerate(files):
        ext = _extension(upload, forced_extension)
        path = f"{entity.pk}/{timestamp}-{i}.{ext}"
        try:
            url = blob_storage.upload_blob(container, path, upload.read(), CONTENT_TYPES.get(ext, 'image/jpeg'))
        except blob_storage.BlobStorageError as e:
            raise PhotoUploadError(str(e), attached) from e

        fields = {'url': url, 'storage_path': path, 'position': start + i}
        if comments is not None:
            fields['comment'] = comments[i] if i < len(comments) else ''
        try:
            attached.append(photos.create(**fields))
        except DatabaseError as e:
            logger.error(f"Photo row insert failed, blob {container}/{path} is orphaned: {str(e)}", exc_info=True)
            raise PhotoUploadError(f"Could not record photo {upload.name}", attached) from e

    logger.info(f"Attached {len(attached)} photo(s) to {entity.__class__.__name__} {entity.pk}")
    return attached


def delete_photo(photo, container):
    """Remove the stored blob (best effort) then the photo row"""
    if not blob_storage.remove_blob(container, photo.storage_path):
        logger.warning(f"Blob {container}/{photo.storage_path} was not removed, deleting row anyway")
    photo.delete()


def remove_photo_blobs(photos, container):
    """Remove the blobs behind a set of photos, before their entity is deleted"""
    failed = 0
    for photo in photos:
        if not blob_storage.remove_blob(container, photo.storage_path):
            failed += 1
    if failed:
        logger.warning(f"{failed} photo blob(s) in {container} could not be removed")
    return failed
