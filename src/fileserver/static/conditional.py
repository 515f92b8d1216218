"""
=============================================================================
CONDITIONAL REQUEST EVALUATION
=============================================================================

Decides, from If-Match / If-None-Match / If-Modified-Since and the
current validators, whether the client gets the full representation.

=============================================================================
PRECEDENCE (RFC 7232 section 6, GET/HEAD only)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ 1. If-Match present?                                                │
    │        "*" or a listed tag matches ──► continue                     │
    │        otherwise                   ──► PRECONDITION_FAILED (412)    │
    │                                                                      │
    │ 2. If-None-Match present?                                           │
    │        "*" or a listed tag matches ──► NOT_MODIFIED (304)           │
    │        otherwise                   ──► FULL (200)                   │
    │        (If-Modified-Since is NOT consulted: tags are authoritative) │
    │                                                                      │
    │ 3. If-Modified-Since present and parseable?                         │
    │        date >= Last-Modified       ──► NOT_MODIFIED (304)           │
    │        date <  Last-Modified       ──► FULL (200)                   │
    │        unparseable                 ──► treated as absent            │
    │                                                                      │
    │ 4.                                 ──► FULL (200)                   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
TAG COMPARISON
=============================================================================

All comparisons are weak: W/"abc" and "abc" are the same tag. The default
tags are weak (see validators.py), and strong comparison would make every
If-Match against them fail.

A tag list is parsed leniently. Quoted tags may contain commas; bare
tokens (clients that forget the quotes) are kept as-is and simply never
match a quoted tag.

Both sides of the If-Modified-Since comparison are whole seconds: the
validator is floored when computed and HTTP dates have no fractions.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Sequence, Union

from .validators import Validators
from ..http.response import parse_http_date


HeaderValue = Union[str, Sequence[str]]

WILDCARD = "*"

_ETAG_TOKEN = re.compile(r'(?:W/)?"[^"]*"|[^,\s]+')


class Disposition(Enum):
    FULL = "full"
    NOT_MODIFIED = "not_modified"
    PRECONDITION_FAILED = "precondition_failed"


@dataclass(frozen=True)
class ConditionalOutcome:
    """
    Attributes:
        disposition: What the response should be.
        decided_by:  Header that decided it ("" when none applied).
    """

    disposition: Disposition
    decided_by: str = ""

    @property
    def is_full(self) -> bool:
        return self.disposition is Disposition.FULL


def get_header(headers: Mapping[str, HeaderValue], name: str) -> Optional[str]:
    """
    Case-insensitive lookup; a list of values is comma-joined.

    Returns None when the header is missing.
    """
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            if isinstance(value, str):
                return value
            return ", ".join(value)
    return None


def parse_etag_list(value: str) -> list[str]:
    """
    Split an If-Match / If-None-Match value into tags.

        >>> parse_etag_list('"a", W/"b,c" ,"d"')
        ['"a"', 'W/"b,c"', '"d"']
        >>> parse_etag_list(" * ")
        ['*']
    """
    return _ETAG_TOKEN.findall(value)


def opaque_tag(etag: str) -> str:
    """Strip the weakness marker: W/"x" -> "x"."""
    return etag[2:] if etag.startswith("W/") else etag


def etag_matches(header_value: str, current_etag: str) -> bool:
    """True if the list is "*" or contains a tag weakly equal to `current_etag`."""
    current = opaque_tag(current_etag)
    for tag in parse_etag_list(header_value):
        if tag == WILDCARD or opaque_tag(tag) == current:
            return True
    return False


def is_modified_since(header_value: str, last_modified: datetime) -> Optional[bool]:
    """
    Compare an If-Modified-Since value with a validator timestamp.

    Returns:
        True/False, or None when the date cannot be parsed.
    """
    since = parse_http_date(header_value)
    if since is None:
        return None
    return last_modified.replace(microsecond=0) > since


def evaluate(
    headers: Mapping[str, HeaderValue],
    validators: Validators,
) -> ConditionalOutcome:
    """
    Evaluate the conditional headers of a GET/HEAD request.

    Args:
        headers: Request headers (any key case; values str or list of str).
        validators: Current validators of the resolved entity.

    Returns:
        The outcome; never raises on malformed header values.
    """
    if_match = get_header(headers, "If-Match")
    if if_match is not None and not etag_matches(if_match, validators.etag):
        return ConditionalOutcome(Disposition.PRECONDITION_FAILED, "If-Match")

    if_none_match = get_header(headers, "If-None-Match")
    if if_none_match is not None:
        if etag_matches(if_none_match, validators.etag):
            return ConditionalOutcome(Disposition.NOT_MODIFIED, "If-None-Match")
        return ConditionalOutcome(Disposition.FULL, "If-None-Match")

    if_modified_since = get_header(headers, "If-Modified-Since")
    if if_modified_since is not None:
        modified = is_modified_since(if_modified_since, validators.last_modified)
        if modified is False:
            return ConditionalOutcome(Disposition.NOT_MODIFIED, "If-Modified-Since")

    return ConditionalOutcome(Disposition.FULL)
