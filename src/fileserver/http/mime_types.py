"""
=============================================================================
MIME TYPE TABLE
=============================================================================

Static extension → media type table used to pick the Content-Type of a
served file.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /images/logo.png                                               │
    │                                                                      │
    │    suffix ".png" ──► MIME_TYPES[".png"] ──► "image/png"             │
    │                                                                      │
    │  GET /notes.unknownext                                              │
    │                                                                      │
    │    suffix not in table ──► DEFAULT_MIME_TYPE                        │
    │                        ──► "application/octet-stream"               │
    └─────────────────────────────────────────────────────────────────────┘

The table is fixed at import time and never consults the host's
/etc/mime.types: the same file gets the same Content-Type on every machine,
which keeps responses (and the tests that pin them) reproducible.

No charset parameter is appended. The server does not know the encoding
of the bytes on disk, and text/plain without a charset lets the client
sniff rather than trust a guess.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


_TABLE = {
    # Documents and text
    ".html": "text/html",
    ".htm": "text/html",
    ".txt": "text/plain",
    ".text": "text/plain",
    ".log": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".pdf": "application/pdf",
    ".rtf": "application/rtf",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Audio / video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",

    # Archives and binaries
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tar": "application/x-tar",
    ".7z": "application/x-7z-compressed",
    ".wasm": "application/wasm",
    ".jar": "application/java-archive",
}

MIME_TYPES: Mapping[str, str] = MappingProxyType(_TABLE)
"""Read-only view; build a SiteConfig with a custom table to extend it."""

DEFAULT_MIME_TYPE = "application/octet-stream"

HTML_MIME_TYPE = MIME_TYPES[".html"]


def get_mime_type(
    path: str | Path,
    table: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Look up the media type for a file name by its (case-insensitive) suffix.

    Args:
        path: File path or bare name.
        table: Extension table to use; defaults to MIME_TYPES.

    Returns:
        The media type, or DEFAULT_MIME_TYPE for unknown or missing suffixes.

    Examples:
        >>> get_mime_type("example.txt")
        'text/plain'
        >>> get_mime_type("/srv/www/LOGO.PNG")
        'image/png'
        >>> get_mime_type("Makefile")
        'application/octet-stream'
    """
    suffix = Path(path).suffix.lower()
    return (table if table is not None else MIME_TYPES).get(suffix, DEFAULT_MIME_TYPE)
