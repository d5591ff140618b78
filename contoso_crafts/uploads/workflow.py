"""Validate uploaded images and store them under ``<web_root>/images``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable

from contoso_crafts.config import MAX_UPLOAD_BYTES
from contoso_crafts.uploads.image_sniffer import sniff_image
from contoso_crafts.utils.file_utils import (
    IMAGES_PREFIX,
    atomic_write,
    is_local_image_path,
    resolve_web_path,
)
from contoso_crafts.utils.slug import build_initials

logger = logging.getLogger(__name__)


class UploadErrorKind(str, Enum):
    """Why an upload or image deletion was refused."""

    NO_FILE = "no_file"
    TOO_LARGE = "too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    ACCESS_DENIED = "access_denied"
    IO_FAILURE = "io_failure"
    INVALID_PATH = "invalid_path"


@dataclass
class UploadedFile:
    """A file received from a form post.

    Attributes:
        filename: Client-supplied name; informational only.
        content: Full file body.
        content_type: Client-declared MIME type; informational only.
    """

    filename: str
    content: bytes
    content_type: str = ""

    @property
    def length(self) -> int:
        return len(self.content)


@dataclass
class UploadResult:
    success: bool
    image_path: str | None = None
    error: str | None = None
    error_kind: UploadErrorKind | None = None

    @classmethod
    def failed(cls, kind: UploadErrorKind, error: str) -> UploadResult:
        return cls(success=False, error=error, error_kind=kind)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "imagePath": self.image_path}
        return {"success": False, "error": self.error}


@dataclass
class DeleteImageResult:
    success: bool
    error: str | None = None
    error_kind: UploadErrorKind | None = None

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True}
        return {"success": False, "error": self.error}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _save_error(exc: OSError) -> tuple[UploadErrorKind, str]:
    if isinstance(exc, PermissionError):
        return UploadErrorKind.ACCESS_DENIED, "Could not save upload: access denied."
    return UploadErrorKind.IO_FAILURE, f"Could not save upload: {exc}"


class ImageUploadWorkflow:
    """Upload, replace and delete images referenced by catalog records.

    Args:
        web_root: Site root; files land in ``<web_root>/images``.
        max_bytes: Largest accepted upload.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        web_root: Path | str,
        max_bytes: int = MAX_UPLOAD_BYTES,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.web_root = Path(web_root)
        self.max_bytes = max_bytes
        self.clock = clock

    @property
    def images_dir(self) -> Path:
        return self.web_root / "images"

    def build_file_name(self, title: str | None, extension: str) -> str:
        """``<INITIALS>_<yyyyMMddHHmmss><ext>`` using the UTC clock."""
        timestamp = self.clock().strftime("%Y%m%d%H%M%S")
        return f"{build_initials(title)}_{timestamp}{extension}"

    def _check(self, upload: UploadedFile | None) -> UploadResult | None:
        """Return a failure for an unusable upload, else None."""
        if upload is None or upload.length == 0:
            return UploadResult.failed(UploadErrorKind.NO_FILE, "No file provided.")
        if upload.length > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            return UploadResult.failed(
                UploadErrorKind.TOO_LARGE,
                f"File is too large. Maximum allowed size is {limit_mb} MB.",
            )
        if sniff_image(upload.content) is None:
            return UploadResult.failed(
                UploadErrorKind.UNSUPPORTED_TYPE,
                "Uploaded file is not a supported image type (png/jpg/jpeg).",
            )
        return None

    def _write(self, upload: UploadedFile, title: str | None) -> UploadResult:
        kind = sniff_image(upload.content)
        file_name = self.build_file_name(title, kind.extension)
        try:
            self.images_dir.mkdir(parents=True, exist_ok=True)
            atomic_write(self.images_dir / file_name, upload.content)
        except OSError as exc:
            error_kind, message = _save_error(exc)
            logger.warning("Failed to save upload %s: %s", file_name, exc)
            return UploadResult.failed(error_kind, message)

        image_path = f"{IMAGES_PREFIX}{file_name}"
        logger.info(
            "Saved %s upload as %s", kind.value, image_path,
            extra={"bytes": upload.length},
        )
        return UploadResult(success=True, image_path=image_path)

    def upload_image(
        self, upload: UploadedFile | None, title: str | None
    ) -> UploadResult:
        """Validate *upload* by content and save it with a generated name.

        Returns:
            An :class:`UploadResult` whose ``image_path`` is the site-relative
            path (``/images/...``) on success.
        """
        failure = self._check(upload)
        if failure is not None:
            return failure
        return self._write(upload, title)

    def replace_image(
        self,
        upload: UploadedFile | None,
        title: str | None,
        previous_image: str | None,
    ) -> UploadResult:
        """Save *upload* and delete the record's previous local image.

        The previous file is removed only after the new upload passes
        validation. A failure to remove it aborts the replacement so the
        record never loses track of a file still on disk.
        """
        failure = self._check(upload)
        if failure is not None:
            return failure

        # Any-case /images/ prefix; remote or escaping paths resolve to None
        physical = resolve_web_path(self.web_root, previous_image) if previous_image else None
        if physical is not None:
            try:
                physical.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                error_kind, message = _save_error(exc)
                logger.warning(
                    "Failed to remove previous image %s: %s", physical, exc
                )
                return UploadResult.failed(error_kind, message)

        return self._write(upload, title)

    def delete_image(self, image_path: str | None) -> DeleteImageResult:
        """Delete a previously uploaded image.

        Only paths beginning with ``/images/`` that stay inside the images
        directory are touched. A file that is already gone counts as
        deleted.
        """
        if image_path is None or not image_path.strip():
            return DeleteImageResult(
                False, "No image path provided.", UploadErrorKind.NO_FILE
            )

        physical = None
        if is_local_image_path(image_path):
            physical = resolve_web_path(self.web_root, image_path)
        if physical is None:
            return DeleteImageResult(
                False, "Invalid image path.", UploadErrorKind.INVALID_PATH
            )

        try:
            physical.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to delete image %s: %s", physical, exc)
            error_kind = (
                UploadErrorKind.ACCESS_DENIED
                if isinstance(exc, PermissionError)
                else UploadErrorKind.IO_FAILURE
            )
            return DeleteImageResult(False, f"Could not delete image: {exc}", error_kind)

        logger.info("Deleted image %s", image_path)
        return DeleteImageResult(True)
