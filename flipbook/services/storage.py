import logging
import os
import shutil
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from slugify import slugify

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    filename: str
    path: str
    size: int


def stored_filename(original_name: Optional[str], default_ext: str) -> str:
    """``<slug>_<timestamp>_<random>.<ext>`` so uploads never collide."""
    original_name = original_name or "upload"
    stem, ext = os.path.splitext(original_name)
    ext = ext.lstrip(".").lower() or default_ext
    return f"{slugify(stem) or 'upload'}_{int(time.time())}_{uuid.uuid4().hex[:8]}.{ext}"


def save_bytes(contents: bytes, directory: str, original_name: Optional[str], default_ext: str) -> StoredFile:
    os.makedirs(directory, exist_ok=True)
    filename = stored_filename(original_name, default_ext)
    path = os.path.join(directory, filename)
    with open(path, "wb") as f:
        f.write(contents)
    return StoredFile(filename=filename, path=path, size=len(contents))


def remove_file(path: Optional[str]) -> bool:
    if not path or not os.path.exists(path):
        return False
    os.remove(path)
    logger.info(f"Deleted file {path}")
    return True


def remove_directory(path: Optional[str]) -> bool:
    if not path or not os.path.isdir(path):
        return False
    shutil.rmtree(path, ignore_errors=True)
    logger.info(f"Deleted directory {path}")
    return True
