"""
=============================================================================
STATIC CORE
=============================================================================

Everything that decides what a GET/HEAD for a path under the document root
returns, independent of sockets and threads:

    resolver.py     request path ──► ResolvedEntity (file / directory / absent)
    validators.py   entity ──► ETag + Last-Modified
    conditional.py  request headers + validators ──► full / 304 / 412
    listing.py      directory ──► HTML index page
    builder.py      all of the above ──► HTTPResponse
    config.py       SiteConfig, EtagPolicy
    errors.py       InvalidPath (400), IOFailure (500)

The pipeline that strings these together lives in
fileserver.handlers.static.StaticFileHandler.
"""

from .builder import FileBody, build, build_error
from .conditional import ConditionalOutcome, Disposition, evaluate
from .config import EtagPolicy, SiteConfig
from .errors import InvalidPath, IOFailure, StaticFileError
from .listing import DirectoryListing, ListingEntry, read_listing, render
from .resolver import EntityKind, ResolvedEntity, resolve
from .validators import Validators, compute_validators

__all__ = [
    "FileBody",
    "build",
    "build_error",
    "ConditionalOutcome",
    "Disposition",
    "evaluate",
    "EtagPolicy",
    "SiteConfig",
    "InvalidPath",
    "IOFailure",
    "StaticFileError",
    "DirectoryListing",
    "ListingEntry",
    "read_listing",
    "render",
    "EntityKind",
    "ResolvedEntity",
    "resolve",
    "Validators",
    "compute_validators",
]
