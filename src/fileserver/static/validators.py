"""
=============================================================================
CACHE VALIDATORS
=============================================================================

Computes the ETag and Last-Modified value for a resolved entity.

=============================================================================
FORMULAS
=============================================================================

    FILE, stat policy (default)
        etag          W/"<st_size:x>-<st_mtime_ns:x>"
        last_modified st_mtime, floored to whole seconds, UTC

    FILE, content policy
        etag          "<md5(file bytes).hexdigest()>"
        last_modified as above

    DIRECTORY
        etag          W/"<sha1 hex>" over
                          for each entry in listing order:
                              utf-8(name + ("/" if directory else "")) + b"\\n"
                          then ascii(str(directory st_mtime_ns))
        last_modified max(directory mtime, every child's lstat mtime),
                      floored to whole seconds, UTC

=============================================================================
WHY WEAK
=============================================================================

A size+mtime tag says "probably the same bytes", not "byte-for-byte
identical": two different writes within the same nanosecond tick and of
the same length would collide. RFC 7232 calls that a weak validator, so
the tag carries the W/ prefix. The content policy hashes the bytes and
can honestly issue a strong tag.

Directory tags are weak as well: the rendered page also depends on the
request path (link prefix), so two byte-different pages can share a tag.

Last-Modified is floored rather than rounded so it is never later than
the real mtime; If-Modified-Since compares at the same one-second grain.
"""

import hashlib
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .config import EtagPolicy
from .errors import IOFailure
from .listing import DirectoryListing, read_listing
from .resolver import ResolvedEntity


NS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class Validators:
    """
    Attributes:
        etag:          Quoted entity tag, "W/"-prefixed when weak.
        last_modified: Aware UTC datetime with zero microseconds.
    """

    etag: str
    last_modified: datetime

    @property
    def is_weak(self) -> bool:
        return self.etag.startswith("W/")


def http_time(mtime_ns: int) -> datetime:
    """Floor a nanosecond timestamp to an aware UTC datetime at 1s precision."""
    return datetime.fromtimestamp(mtime_ns // NS_PER_SECOND, tz=timezone.utc)


def stat_etag(size: int, mtime_ns: int) -> str:
    return f'W/"{size:x}-{mtime_ns:x}"'


def content_etag(path: os.PathLike, chunk_size: int = 64 * 1024) -> str:
    digest = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return f'"{digest.hexdigest()}"'


def directory_etag(listing: DirectoryListing) -> str:
    digest = hashlib.sha1(usedforsecurity=False)
    for entry in listing.entries:
        name = entry.name + ("/" if entry.is_directory else "")
        digest.update(name.encode("utf-8", errors="surrogateescape") + b"\n")
    digest.update(str(listing.mtime_ns).encode("ascii"))
    return f'W/"{digest.hexdigest()}"'


def compute_validators(
    entity: ResolvedEntity,
    policy: EtagPolicy = EtagPolicy.STAT,
    listing: Optional[DirectoryListing] = None,
    chunk_size: int = 64 * 1024,
) -> Validators:
    """
    Compute validators for a FILE or DIRECTORY entity.

    Args:
        entity: The resolved entity.
        policy: File ETag policy (ignored for directories).
        listing: A listing already read for this directory, so the tag and
                 the rendered page come from the same enumeration.
        chunk_size: Read size for the content policy.

    Raises:
        ValueError: `entity` is ABSENT.
        IOFailure: Metadata or content could not be read.
    """
    if entity.is_directory:
        if listing is None:
            listing = read_listing(entity)
        latest = max([listing.mtime_ns, *(e.mtime_ns for e in listing.entries)])
        return Validators(directory_etag(listing), http_time(latest))

    if not entity.is_file:
        raise ValueError("Absent entities have no validators")

    try:
        st = os.stat(entity.path)
        if EtagPolicy(policy) is EtagPolicy.CONTENT:
            etag = content_etag(entity.path, chunk_size)
        else:
            etag = stat_etag(st.st_size, st.st_mtime_ns)
    except OSError as e:
        raise IOFailure(f"Cannot read validators for {entity.path}: {e}") from e

    return Validators(etag, http_time(st.st_mtime_ns))
