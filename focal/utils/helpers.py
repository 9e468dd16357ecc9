"""Miscellaneous helper functions."""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import math
import re
from typing import Optional

from focal.core.exceptions import ValidationError

_DATA_URI_RE = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)


def decode_image_data_uri(value: str) -> tuple[str, bytes]:
    """Split an image data URI into its mime type and decoded bytes.

    ``image/jpg`` is normalised to ``image/jpeg``.

    :raises ValidationError: if the value is not a base64 image data URI
    """
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ValidationError("Invalid image format. Expected data:image/{type};base64,{data}")
    mime_type = match.group(1).lower()
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"
    try:
        data = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image data is not valid base64") from exc
    if not data:
        raise ValidationError("Image data is required")
    return mime_type, data


def parse_local_date(value: str | None) -> Optional[dt.date]:
    """Parse the caller's ``YYYY-MM-DD`` local date.

    Browsers sometimes send a full ISO timestamp instead of a bare date;
    only the date part is kept.  Returns ``None`` if the value cannot be
    parsed.
    """
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def month_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """Return ``[first day of month, first day of next month)`` for ``day``."""
    start = day.replace(day=1)
    if day.month == 12:
        end = dt.date(day.year + 1, 1, 1)
    else:
        end = dt.date(day.year, day.month + 1, 1)
    return start, end


def hours_until(reset_at: float, now: float) -> int:
    """Whole hours (rounded up) from ``now`` to ``reset_at``, both epoch seconds."""
    return max(0, math.ceil((reset_at - now) / 3600))


def describe_hours(hours: int) -> str:
    return f"{hours} hour{'' if hours == 1 else 's'}"
