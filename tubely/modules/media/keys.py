"""Object key construction for stored videos.

Keys look like ``<aspect prefix>/<random name>.<extension>``, for example
``landscape/3q2-v...Xw.mp4``.
"""

import base64
import secrets

from tubely.modules.media.models import AspectClass

OBJECT_NAME_BYTES = 32

KEY_PREFIXES = {
    AspectClass.LANDSCAPE: "landscape",
    AspectClass.PORTRAIT: "portrait",
    AspectClass.OTHER: "other",
}


def generate_object_name(extension: str) -> str:
    """Random URL-safe file name with ``extension``.

    32 bytes from the system CSPRNG, base64 URL-safe without padding. Names
    are never checked against existing objects.
    """
    raw = secrets.token_bytes(OBJECT_NAME_BYTES)
    name = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return f"{name}.{extension}"


def extension_for(media_type: str) -> str:
    """File extension for a ``type/subtype`` media type (``video/mp4`` -> ``mp4``)."""
    _, _, subtype = media_type.partition("/")
    return subtype


def build_object_key(aspect: AspectClass, filename: str) -> str:
    """Storage key for ``filename`` under the prefix of ``aspect``."""
    return f"{KEY_PREFIXES[aspect]}/{filename}"
