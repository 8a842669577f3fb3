"""
Upload pipeline: turn an uploaded image into full and thumbnail WebP files.
"""
import logging
import os
import re

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {'image/jpeg', 'image/png', 'image/webp'}

FULL_MAX_WIDTH = 1600
THUMB_MAX_WIDTH = 600
WEBP_QUALITY = 80


def sanitize_basename(filename):
    """
    Derive a safe file stem from an uploaded filename.
    Drops directories and the extension, then replaces anything outside
    letters, digits, underscore and dash with an underscore.
    """
    base = os.path.basename((filename or '').replace('\\', '/'))
    stem = os.path.splitext(base)[0]
    stem = re.sub(r'[^a-zA-Z0-9_-]+', '_', stem)
    return stem or 'image'


def is_allowed_mime(mimetype):
    return (mimetype or '').lower() in ALLOWED_MIME_TYPES


def bounded_size(width, height, max_width):
    if width <= max_width:
        return width, height
    return max_width, max(1, int(round(max_width * height / width)))


def resize_to_webp(source, dest_path, max_width, quality=WEBP_QUALITY):
    """
    Save ``source`` as WebP no wider than ``max_width``.

    ``source`` is a path or a binary file object. Aspect ratio is kept and
    images narrower than the bound are never upscaled. Returns the output size.
    """
    with Image.open(source) as im:
        im = ImageOps.exif_transpose(im)
        if im.mode in ('P', 'LA'):
            im = im.convert('RGBA')
        elif im.mode not in ('RGB', 'RGBA'):
            im = im.convert('RGB')

        size = bounded_size(im.width, im.height, max_width)
        if size != im.size:
            im = im.resize(size, Image.LANCZOS)

        im.save(dest_path, 'WEBP', quality=quality)
        return size


def save_upload(file_storage, event_dir, url_base, event_id, title=''):
    """
    Write the full and thumb derivatives of one uploaded file.

    Returns the photo record, or None when the file is not an allowed image
    or cannot be decoded.
    """
    filename = file_storage.filename or ''

    if not is_allowed_mime(file_storage.mimetype):
        logger.warning(f"[UPLOAD] Skipped file - event_id: {event_id}, filename: {filename}, mimetype: {file_storage.mimetype}, reason: mime")
        return None

    stem = sanitize_basename(filename)
    full_name = f"{stem}_full.webp"
    thumb_name = f"{stem}_thumb.webp"
    full_path = os.path.join(event_dir, full_name)
    thumb_path = os.path.join(event_dir, thumb_name)

    os.makedirs(event_dir, exist_ok=True)

    try:
        stream = file_storage.stream
        stream.seek(0)
        resize_to_webp(stream, full_path, FULL_MAX_WIDTH)
        stream.seek(0)
        resize_to_webp(stream, thumb_path, THUMB_MAX_WIDTH)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning(f"[UPLOAD] Skipped file - event_id: {event_id}, filename: {filename}, reason: decode, error: {str(e)}")
        for path in (full_path, thumb_path):
            if os.path.exists(path):
                os.remove(path)
        return None

    logger.info(f"[UPLOAD] Saved derivatives - event_id: {event_id}, full: {full_name}, thumb: {thumb_name}")

    base = f"{url_base.rstrip('/')}/{event_id}"
    return {
        'full': f"{base}/{full_name}",
        'thumb': f"{base}/{thumb_name}",
        'alt': f"{title} - image",
    }
