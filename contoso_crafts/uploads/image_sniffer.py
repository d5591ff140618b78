"""Magic-number detection for uploaded images."""

from __future__ import annotations

from enum import Enum

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8"


class ImageKind(str, Enum):
    """Image formats accepted for upload."""

    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return ".png" if self is ImageKind.PNG else ".jpg"


def is_png(data: bytes | None) -> bool:
    return data is not None and data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def is_jpeg(data: bytes | None) -> bool:
    return data is not None and data[: len(JPEG_SIGNATURE)] == JPEG_SIGNATURE


def sniff_image(data: bytes | None) -> ImageKind | None:
    """Classify *data* by its leading bytes.

    File names and declared content types are never consulted; a PNG
    named ``notes.txt`` is still a PNG.
    """
    if is_png(data):
        return ImageKind.PNG
    if is_jpeg(data):
        return ImageKind.JPEG
    return None
