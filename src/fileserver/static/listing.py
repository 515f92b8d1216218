"""
=============================================================================
DIRECTORY LISTING
=============================================================================

Reads a directory's children and renders them as a small HTML page.

    GET /images/                           GET /empty/

    <!DOCTYPE html>                        <!DOCTYPE html>
    <html>                                 <html>
    <head>...Index of /images/...</head>   <head>...Index of /empty/...</head>
    <body>                                 <body>
    <h1>Index of /images/</h1>             <h1>Index of /empty/</h1>
    <ul>                                   <p>empty directory</p>
    <li><a href="icons/">icons/</a></li>   </body>
    <li><a href="logo.png">logo.png</a>    </html>
    </ul>
    </body>
    </html>

=============================================================================
STABILITY
=============================================================================

The page is a pure function of the listing: entries sorted by name
(code-point order, directories and files interleaved), no timestamps, no
sizes. The directory's ETag is derived from the same entry list (see
validators.py), so a byte-identical page always goes with an unchanged tag.

=============================================================================
ESCAPING
=============================================================================

File names are attacker-controlled in the sense that anyone who can drop a
file into the root chooses them. A name like `<script>.txt` or `a"b` must
not break out of the markup:

    link text   html.escape(name)
    href        html.escape(prefix + percent-encode(name))

Percent-encoding the href also keeps names such as "a:b" or "#notes" from
being read as a URL scheme or fragment.

=============================================================================
RELATIVE LINKS WITHOUT A TRAILING SLASH
=============================================================================

Browsers resolve relative links against the last "/" of the URL. For
"/images/" a bare "logo.png" lands on "/images/logo.png", but for "/images"
it would land on "/logo.png". Instead of redirecting, links for a
slash-less request are prefixed with the directory's own name:
"images/logo.png".
"""

import html
import os
from dataclasses import dataclass
from typing import NamedTuple
from urllib.parse import quote

from .errors import IOFailure
from .resolver import ResolvedEntity, normalize_segments
from ..http.mime_types import HTML_MIME_TYPE


EMPTY_DIRECTORY_MARKUP = "<p>empty directory</p>"


class ListingEntry(NamedTuple):
    name: str
    is_directory: bool
    mtime_ns: int


@dataclass(frozen=True)
class DirectoryListing:
    """
    Attributes:
        entries:      Children sorted by name.
        display_path: Normalized URL path of the directory, ending in "/".
        href_prefix:  Prepended to every link ("" or "<dirname>/").
        mtime_ns:     The directory's own modification time.
    """

    entries: tuple[ListingEntry, ...]
    display_path: str = "/"
    href_prefix: str = ""
    mtime_ns: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.entries


def _encode_name(name: str) -> str:
    # safe="" so ":" and "#" are encoded too
    return quote(name, safe="", errors="surrogateescape")


def read_listing(entity: ResolvedEntity) -> DirectoryListing:
    """
    Enumerate the direct children of a DIRECTORY entity.

    Children that vanish between enumeration and stat are skipped.

    Raises:
        ValueError: `entity` is not a directory.
        IOFailure: The directory could not be read.
    """
    if not entity.is_directory:
        raise ValueError(f"Not a directory entity: {entity.kind}")

    entries = []
    try:
        mtime_ns = os.stat(entity.path).st_mtime_ns
        with os.scandir(entity.path) as it:
            for child in it:
                try:
                    child_mtime = child.stat(follow_symlinks=False).st_mtime_ns
                    is_dir = child.is_dir()
                except FileNotFoundError:
                    continue
                entries.append(ListingEntry(child.name, is_dir, child_mtime))
    except OSError as e:
        raise IOFailure(f"Cannot list directory {entity.path}: {e}") from e

    entries.sort(key=lambda entry: entry.name)

    segments = normalize_segments(entity.request_path)
    display_path = "/" + "".join(f"{s}/" for s in segments)
    if segments and not entity.request_path.endswith("/"):
        href_prefix = _encode_name(segments[-1]) + "/"
    else:
        href_prefix = ""

    return DirectoryListing(
        entries=tuple(entries),
        display_path=display_path,
        href_prefix=href_prefix,
        mtime_ns=mtime_ns,
    )


def render(listing: DirectoryListing) -> tuple[bytes, str]:
    """
    Render a listing as an HTML document.

    Returns:
        (UTF-8 encoded page, "text/html")
    """
    title = html.escape(f"Index of {listing.display_path}")

    if listing.is_empty:
        content = EMPTY_DIRECTORY_MARKUP
    else:
        items = []
        for entry in listing.entries:
            marker = "/" if entry.is_directory else ""
            href = listing.href_prefix + _encode_name(entry.name) + marker
            text = html.escape(entry.name) + marker
            items.append(f'<li><a href="{html.escape(href)}">{text}</a></li>')
        content = "<ul>\n" + "\n".join(items) + "\n</ul>"

    page = (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{title}</title>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{title}</h1>\n"
        f"{content}\n"
        "</body>\n"
        "</html>\n"
    )
    # surrogateescape: undecodable names from os.scandir round-trip their bytes
    return page.encode("utf-8", errors="surrogateescape"), HTML_MIME_TYPE
