"""Image header sniffing.

Receipt images are checked before any paid extraction call.  The
functions in this module read the container signature and the declared
pixel dimensions straight from the header bytes, without decoding the
image.  Every offset access is bounds checked: truncated or unknown
input yields ``None`` so that validation fails open and malformed
images are left for the extraction provider to reject.

Supported containers: JPEG, PNG, GIF and WebP (lossy, lossless and
extended).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from focal.core.exceptions import ValidationError

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG"
GIF_SIGNATURE = b"GIF"

# Start-of-frame markers that carry the frame dimensions
# (baseline, extended sequential, progressive, lossless).
_JPEG_SOF_MARKERS = range(0xC0, 0xC4)
# Markers that stand alone without a length field.
_JPEG_STANDALONE_MARKERS = frozenset([0x01, *range(0xD0, 0xD8)])
# Start of scan / end of image: no frame header can follow.
_JPEG_TERMINAL_MARKERS = frozenset([0xD9, 0xDA])


@dataclass(frozen=True)
class ImageInfo:
    width: int
    height: int
    format: str


def _be16(data: bytes, offset: int) -> int:
    return (data[offset] << 8) | data[offset + 1]


def _le16(data: bytes, offset: int) -> int:
    return data[offset] | (data[offset + 1] << 8)


def _le24(data: bytes, offset: int) -> int:
    return data[offset] | (data[offset + 1] << 8) | (data[offset + 2] << 16)


def _parse_jpeg(data: bytes) -> Optional[ImageInfo]:
    offset = 2  # skip SOI
    size = len(data)
    while offset + 1 < size:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if marker == 0xFF:  # fill byte
            offset += 1
            continue
        if marker in _JPEG_SOF_MARKERS:
            if offset + 8 >= size:
                return None
            height = _be16(data, offset + 5)
            width = _be16(data, offset + 7)
            return ImageInfo(width=width, height=height, format="jpeg")
        if marker in _JPEG_TERMINAL_MARKERS:
            return None
        if marker in _JPEG_STANDALONE_MARKERS:
            offset += 2
            continue
        if offset + 3 >= size:
            return None
        length = _be16(data, offset + 2)
        if length < 2:
            return None
        offset += 2 + length
    return None


def _parse_png(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 24:
        return None
    width = int.from_bytes(data[16:20], "big")
    height = int.from_bytes(data[20:24], "big")
    return ImageInfo(width=width, height=height, format="png")


def _parse_gif(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 10:
        return None
    return ImageInfo(width=_le16(data, 6), height=_le16(data, 8), format="gif")


def _parse_webp(data: bytes) -> Optional[ImageInfo]:
    if len(data) < 16:
        return None
    chunk = data[12:16]
    if chunk == b"VP8 ":
        if len(data) < 30:
            return None
        width = _le16(data, 26) & 0x3FFF
        height = _le16(data, 28) & 0x3FFF
        return ImageInfo(width=width, height=height, format="webp")
    if chunk == b"VP8L":
        if len(data) < 25:
            return None
        bits = int.from_bytes(data[21:25], "little")
        width = (bits & 0x3FFF) + 1
        height = ((bits >> 14) & 0x3FFF) + 1
        return ImageInfo(width=width, height=height, format="webp")
    if chunk == b"VP8X":
        if len(data) < 30:
            return None
        width = _le24(data, 24) + 1
        height = _le24(data, 27) + 1
        return ImageInfo(width=width, height=height, format="webp")
    return None


def sniff_image(data: bytes) -> Optional[ImageInfo]:
    """Return the format and declared dimensions of an encoded image.

    :param data: Raw image bytes
    :returns: ``ImageInfo`` or ``None`` when the format is unknown or the
        header is truncated
    """
    if data.startswith(JPEG_SIGNATURE):
        return _parse_jpeg(data)
    if data.startswith(PNG_SIGNATURE):
        return _parse_png(data)
    if data.startswith(GIF_SIGNATURE):
        return _parse_gif(data)
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return _parse_webp(data)
    return None


def validate_image_dimensions(data: bytes, max_dimension: int) -> Optional[ImageInfo]:
    """Reject images whose declared width or height exceeds ``max_dimension``.

    Images whose dimensions cannot be read are allowed through.

    :raises ValidationError: if either dimension is too large
    """
    info = sniff_image(data)
    if info is None:
        return None
    if info.width > max_dimension or info.height > max_dimension:
        raise ValidationError(
            f"Image dimensions ({info.width}x{info.height}) exceed maximum allowed size of "
            f"{max_dimension}px. Please resize the image before uploading."
        )
    return info
