"""
Site configuration passed into every static-core entry point.

Built once at startup from ServerConfig and never mutated, so worker
threads share it without locking.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping

from ..http.mime_types import MIME_TYPES


class EtagPolicy(str, Enum):
    """
    How file entity tags are generated.

    STAT     W/"<size hex>-<mtime ns hex>"; cheap, never reads content.
    CONTENT  "<md5 hex of the bytes>"; equal content always gives an
             equal tag, at the cost of reading the whole file.
    """

    STAT = "stat"
    CONTENT = "content"


@dataclass(frozen=True)
class SiteConfig:
    """
    Attributes:
        root:        Canonical (resolved) document root.
        mime_types:  Extension → media type table.
        etag_policy: File ETag strategy.
        chunk_size:  Bytes per read when streaming or hashing files.
    """

    root: Path
    mime_types: Mapping[str, str] = field(default_factory=lambda: MIME_TYPES)
    etag_policy: EtagPolicy = EtagPolicy.STAT
    chunk_size: int = 64 * 1024

    @classmethod
    def for_directory(cls, root_dir: str | Path, **kwargs) -> "SiteConfig":
        """
        Canonicalize `root_dir` and build a config for it.

        Raises:
            ValueError: If the directory does not exist.
        """
        root = Path(root_dir).resolve()
        if not root.is_dir():
            raise ValueError(f"Document root is not a directory: {root_dir}")
        if "etag_policy" in kwargs:
            kwargs["etag_policy"] = EtagPolicy(kwargs["etag_policy"])
        return cls(root=root, **kwargs)
