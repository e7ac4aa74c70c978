"""Validation and storage of uploaded files (contract act photos, notification sounds)"""
import logging
import os

from django.core.files.storage import default_storage
from django.utils import timezone
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Rejected upload; the message is returned to the client"""


def file_extension(upload):
    return os.path.splitext(str(getattr(upload, 'name', '') or ''))[1].lower()


def validate_upload(upload, allowed_extensions, max_bytes):
    """Check presence, size and extension; returns the lower-cased extension"""
    if upload is None:
        raise UploadError('No file uploaded')
    size = int(getattr(upload, 'size', 0) or 0)
    if size <= 0:
        raise UploadError('Uploaded file is empty')
    if size > max_bytes:
        raise UploadError(f'File is too large (max {max_bytes // (1024 * 1024)} MB)')
    ext = file_extension(upload)
    if ext not in allowed_extensions:
        raise UploadError(f"File type not allowed. Allowed: {', '.join(allowed_extensions)}")
    return ext


def verify_image(upload):
    """Make sure the upload really is an image Pillow can read"""
    try:
        upload.seek(0)
        Image.open(upload).verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Rejected upload {getattr(upload, 'name', '')}: not a valid image ({e})")
        raise UploadError('File is not a valid image')
    finally:
        upload.seek(0)


def store_upload(upload, directory, prefix, ext):
    """
    Save the upload into media storage as <directory>/<prefix>-<timestamp><ext>.
    Returns (stored_name, url).
    """
    stamp = timezone.now().strftime('%Y%m%d%H%M%S%f')
    name = f"{directory}/{prefix}-{stamp}{ext}"
    stored_name = default_storage.save(name, upload)
    logger.info(f"Stored upload {stored_name} ({upload.size} bytes)")
    return stored_name, default_storage.url(stored_name)


def delete_stored_file(url, media_url):
    """Remove a file previously returned by store_upload; URLs outside media storage are ignored"""
    if not url:
        return False
    path = url.split('?', 1)[0]
    marker = path.find(media_url)
    if marker == -1:
        return False
    name = path[marker + len(media_url):]
    if not name or '..' in name.split('/'):
        return False
    if default_storage.exists(name):
        default_storage.delete(name)
        logger.info(f"Deleted stored file {name}")
        return True
    return False
