"""
Photo scanning and EXIF metadata extraction.

This module walks a directory tree, reads the capture time and camera
make/model from each image's EXIF data and yields :class:`Photo` records
ready for event detection.  Perceptual hashes can optionally be computed to
skip duplicate photos.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from PIL import Image, ExifTags
import imagehash
from loguru import logger

from .models import Photo

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".webp", ".tif", ".tiff")
_EXIF_FORMAT = "%Y:%m:%d %H:%M:%S"
_EXIF_IFD = 0x8769

# Map EXIF tag names to their numerical IDs
_TAG_IDS = {name: tag for tag, name in ExifTags.TAGS.items()
            if name in ("DateTimeOriginal", "DateTime", "Make", "Model")}


def iter_image_paths(root: Path) -> Iterator[Path]:
    """Yield all files under ``root`` that have an image-like extension, in sorted order."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for fn in sorted(filenames):
            if fn.lower().endswith(IMAGE_EXTENSIONS):
                yield Path(dirpath) / fn


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse an EXIF ``YYYY:MM:DD HH:MM:SS`` value, or return ``None``."""
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not isinstance(value, str):
        return None
    text = value.strip().strip("\x00").strip()
    try:
        return datetime.strptime(text, _EXIF_FORMAT)
    except ValueError:
        return None


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if not isinstance(value, str):
        return None
    text = value.strip().strip("\x00").strip()
    return text or None


def read_photo_metadata(path: Path, compute_phash: bool = False) -> Optional[Dict[str, Any]]:
    """Read capture metadata for an image.

    Returns a dictionary with ``captured_at`` (EXIF ``DateTimeOriginal``,
    falling back to ``DateTime``; ``None`` when neither is readable),
    ``device_make``, ``device_model``, ``width``, ``height`` and ``phash``,
    or ``None`` if the file cannot be opened as an image.
    """
    try:
        with Image.open(path) as im:
            width, height = im.size
            exif = im.getexif()
            tags: Dict[int, Any] = dict(exif)
            tags.update(exif.get_ifd(_EXIF_IFD))
            captured_at = parse_exif_datetime(tags.get(_TAG_IDS.get("DateTimeOriginal")))
            if captured_at is None:
                captured_at = parse_exif_datetime(tags.get(_TAG_IDS.get("DateTime")))
            phash = str(imagehash.phash(im)) if compute_phash else None
    except OSError as exc:
        logger.warning("Skipping unreadable image {}: {}", path, exc)
        return None
    return {
        "captured_at": captured_at,
        "device_make": _clean_text(tags.get(_TAG_IDS.get("Make"))),
        "device_model": _clean_text(tags.get(_TAG_IDS.get("Model"))),
        "width": width,
        "height": height,
        "phash": phash,
    }


def scan_photos(root: Path, use_phash: bool = False, mtime_fallback: bool = True) -> Iterator[Photo]:
    """Iterate over image files under ``root`` and yield :class:`Photo` records.

    The photo id is the path relative to ``root`` (POSIX separators).  When
    EXIF carries no capture time the file modification time is used if
    ``mtime_fallback`` is true; otherwise ``captured_at`` stays ``None`` and
    event detection will reject the photo.  Unreadable files are skipped.
    """
    root = Path(root)
    seen_hashes = set()
    for path in iter_image_paths(root):
        meta = read_photo_metadata(path, compute_phash=use_phash)
        if meta is None:
            continue
        if use_phash and meta["phash"]:
            if meta["phash"] in seen_hashes:
                logger.debug("Skipping duplicate photo {}", path)
                continue
            seen_hashes.add(meta["phash"])
        captured_at = meta["captured_at"]
        if captured_at is None and mtime_fallback:
            captured_at = datetime.fromtimestamp(path.stat().st_mtime)
        yield Photo(
            id=path.relative_to(root).as_posix(),
            captured_at=captured_at,
            device_make=meta["device_make"],
            device_model=meta["device_model"],
        )
