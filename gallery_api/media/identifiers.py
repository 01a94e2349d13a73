"""Helpers for inspecting image payloads and hosted URLs."""

import base64
import binascii
import re
from typing import Optional, Tuple
from urllib.parse import urlparse


_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[\w.+-]+=[\w.+-]+)*)(?P<base64>;base64)?,(?P<data>.*)$",
    re.DOTALL,
)


def public_id_from_url(url: str) -> str:
    """Derive a media host public id from a hosted URL.

    Takes the last path segment and drops everything from the first dot:
    ``https://res.cloudinary.com/demo/image/upload/v17/abc123.jpg`` -> ``abc123``.
    Only used for rows that predate stored public ids; folder-prefixed ids
    cannot be recovered this way.
    """
    path = urlparse(url).path or url
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    return segment.split(".", 1)[0]


def is_data_uri(payload: str) -> bool:
    return payload[:5].lower() == "data:"


def parse_data_uri(payload: str) -> Optional[Tuple[str, int]]:
    """Return ``(mime_type, decoded_size)`` for a data URI, or None if malformed."""
    match = _DATA_URI_RE.match(payload)
    if not match:
        return None

    mime = (match.group("mime") or "text/plain").lower()
    data = match.group("data")

    if match.group("base64"):
        try:
            size = len(base64.b64decode(data, validate=True))
        except (binascii.Error, ValueError):
            return None
    else:
        size = len(data.encode("utf-8"))

    return mime, size
