"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a request path onto the document root.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  request path              segments            result               │
    ├─────────────────────────────────────────────────────────────────────┤
    │  ""  or  "/"               []                  DIRECTORY  <root>    │
    │  "/example.txt"            [example.txt]       FILE                 │
    │  "/images/"                [images]            DIRECTORY            │
    │  "/images/./a/../logo.png" [images, logo.png]  FILE                 │
    │  "/missing.txt"            [missing.txt]       ABSENT               │
    │  "/../../etc/passwd"       ── climbs above ──  InvalidPath (400)    │
    │  "/link-to-etc/passwd"     symlink leaves root ABSENT               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TWO CONTAINMENT CHECKS
=============================================================================

1. LEXICAL. The path is normalized segment by segment before the
   filesystem is touched. A ".." with nothing left to pop means the client
   asked for something above the root; that is a malformed request and
   raises InvalidPath. This check does not depend on what exists on disk,
   so "/../x" is a 400 whether or not "x" exists anywhere.

2. CANONICAL. The joined path is resolved (symlinks followed) and must
   still be inside the canonical root. A symlink pointing outside is not
   the client's doing, so it is reported as ABSENT rather than 400.

The root itself is matched explicitly: an empty segment list IS the root
directory. No request-path rewriting is needed to reach it.
"""

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import InvalidPath


logger = logging.getLogger(__name__)


class EntityKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    ABSENT = "absent"


@dataclass(frozen=True)
class ResolvedEntity:
    """
    Result of resolving one request path.

    Attributes:
        kind:         FILE, DIRECTORY or ABSENT.
        path:         Canonical filesystem path; None when ABSENT.
        request_path: The (decoded) request path this came from.
    """

    kind: EntityKind
    path: Optional[Path] = None
    request_path: str = "/"

    @property
    def is_file(self) -> bool:
        return self.kind is EntityKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is EntityKind.DIRECTORY

    @property
    def exists(self) -> bool:
        return self.kind is not EntityKind.ABSENT

    @classmethod
    def absent(cls, request_path: str) -> "ResolvedEntity":
        return cls(EntityKind.ABSENT, None, request_path)


def normalize_segments(request_path: str) -> list[str]:
    """
    Collapse "." and ".." in a URL path into a list of name segments.

    Raises:
        InvalidPath: A ".." climbs above the root, or a segment holds a
                     NUL byte (no filesystem name can contain one).

    Examples:
        >>> normalize_segments("/a/./b/../c/")
        ['a', 'c']
        >>> normalize_segments("/")
        []
    """
    segments: list[str] = []
    for part in request_path.split("/"):
        if part in ("", "."):
            continue
        if "\x00" in part:
            raise InvalidPath(request_path)
        if part == "..":
            if not segments:
                raise InvalidPath(request_path)
            segments.pop()
        else:
            segments.append(part)
    return segments


def resolve(root: str | Path, request_path: str) -> ResolvedEntity:
    """
    Resolve `request_path` against the document root.

    Args:
        root: Document root directory.
        request_path: Percent-decoded URL path, e.g. "/images/logo.png".

    Returns:
        A ResolvedEntity. Anything that is not a readable regular file or a
        listable directory (missing, FIFO, device, permission denied) is
        ABSENT.

    Raises:
        InvalidPath: The lexically normalized path leaves the root.
    """
    root = Path(root).resolve()
    segments = normalize_segments(request_path)

    if not segments:
        return ResolvedEntity(EntityKind.DIRECTORY, root, request_path)

    candidate = root.joinpath(*segments)
    try:
        canonical = candidate.resolve(strict=True)
    except (OSError, RuntimeError):
        # RuntimeError: symlink loop on Python < 3.13
        return ResolvedEntity.absent(request_path)

    if not canonical.is_relative_to(root):
        logger.debug(f"Symlink target outside root: {request_path!r}")
        return ResolvedEntity.absent(request_path)

    try:
        mode = canonical.stat().st_mode
    except OSError:
        return ResolvedEntity.absent(request_path)

    if stat.S_ISDIR(mode):
        if os.access(canonical, os.R_OK | os.X_OK):
            return ResolvedEntity(EntityKind.DIRECTORY, canonical, request_path)
    elif stat.S_ISREG(mode):
        # "/example.txt/" names a directory that does not exist
        if not request_path.endswith("/") and os.access(canonical, os.R_OK):
            return ResolvedEntity(EntityKind.FILE, canonical, request_path)

    return ResolvedEntity.absent(request_path)
