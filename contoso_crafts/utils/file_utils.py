"""File writes and web-root path helpers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Union

IMAGES_PREFIX = "/images/"


def atomic_write(filepath: Path, data: Union[str, bytes]) -> None:
    """Write *data* to *filepath* via a temp file and ``os.replace``.

    Text is encoded as UTF-8, bytes are written as-is. Readers never
    observe a half-written file. The parent directory must already exist;
    the caller owns directory layout.

    Raises:
        OSError: If the temp file cannot be created, written or renamed.
    """
    filepath = Path(filepath)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_path, filepath)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def normalize_web_path(web_path: str | None) -> str:
    """Convert backslashes to forward slashes; ``None`` becomes ``""``."""
    if web_path is None:
        return ""
    return web_path.replace("\\", "/")


def is_local_image_path(web_path: str | None, *, ignore_case: bool = False) -> bool:
    """Return True if *web_path* points under ``/images/``.

    Remote URLs (``https://...``) and anything else return False.
    """
    normalized = normalize_web_path(web_path)
    if ignore_case:
        return normalized.lower().startswith(IMAGES_PREFIX)
    return normalized.startswith(IMAGES_PREFIX)


def resolve_web_path(web_root: Path, web_path: str) -> Path | None:
    """Map a site-relative path such as ``/images/a.png`` onto disk.

    The ``/images/`` prefix is matched in any case and always lands in
    ``<web_root>/images``. Returns None for paths without that prefix,
    paths that escape the directory (``/images/../data/products.json``)
    and paths the OS cannot represent (embedded NUL).
    """
    normalized = normalize_web_path(web_path)
    if not is_local_image_path(normalized, ignore_case=True) or "\x00" in normalized:
        return None

    try:
        images_dir = (Path(web_root) / "images").resolve()
        physical = (images_dir / normalized[len(IMAGES_PREFIX):]).resolve()
    except (OSError, ValueError):
        return None

    if images_dir not in physical.parents:
        return None
    return physical
