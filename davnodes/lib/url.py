#!/usr/bin/env python
"""
Path and URL handling for DAV requests.

Paths coming from a workflow are typed by humans: they may or may not
start with a slash, may contain spaces and reserved characters, and
may or may not be percent-encoded already.  normalize_path() turns any
of those into an absolute, percent-encoded path that is safe to append
to the base URL of the credential.

Absolute URLs are a different matter.  An absolute URL in a path field
would make the client send the credential to whatever host it names,
so callers decide per field whether an absolute URL is passed through
(only sensible when resolving an href the server itself returned) or
refused.
"""
import re
from typing import Optional
from urllib.parse import quote
from urllib.parse import unquote
from urllib.parse import urlsplit

from davnodes.lib import error

ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

## the characters encodeURIComponent leaves alone, on top of the
## letters, digits and "_.-~" that quote() never touches
SEGMENT_SAFE = "!*'()"

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

DEFAULT_PORTS = {"http": 80, "https": 443}


def is_absolute_url(path: Optional[str]) -> bool:
    return bool(path) and bool(ABSOLUTE_URL_RE.match(path))


def strict_unquote(segment: str) -> str:
    if _BAD_ESCAPE_RE.search(segment):
        raise ValueError("malformed percent escape in %r" % segment)
    return unquote(segment, errors="strict")


def encode_segment(segment: str) -> str:
    """
    Percent-encode one path segment.  Already encoded input is decoded
    first so that it doesn't get encoded twice; if it can't be decoded
    the raw segment is encoded as-is.
    """
    if not segment:
        return ""
    try:
        decoded = strict_unquote(segment)
    except (ValueError, UnicodeDecodeError):
        decoded = segment
    return quote(decoded, safe=SEGMENT_SAFE)


def normalize_path(
    path: Optional[str], allow_absolute: bool = True, field: Optional[str] = None
) -> str:
    """
    Normalize a user supplied path to an absolute, percent-encoded DAV path.

    >>> normalize_path("calendars/user/My Calendar")
    '/calendars/user/My%20Calendar'

    Empty segments are kept, "a//b" becomes "/a//b".

    If path is an absolute URL it is returned unchanged when
    allow_absolute is set, otherwise InvalidPathError is raised naming
    field.
    """
    if not path or path == "/":
        return "/"
    if is_absolute_url(path):
        if allow_absolute:
            return path
        raise error.InvalidPathError(
            "%s must be a path on the configured server, not an absolute URL: %s"
            % (field or "path", path),
            field=field,
        )
    raw = path[1:] if path.startswith("/") else path
    return "/" + "/".join(encode_segment(seg) for seg in raw.split("/"))


def base_root(base_url: str) -> str:
    """The base URL without a trailing slash"""
    return base_url[:-1] if base_url.endswith("/") else base_url


def origin(url: str) -> str:
    """scheme://host:port, lower-cased, with the default port filled in"""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError:
        port = None
    if port is None:
        port = DEFAULT_PORTS.get(scheme)
    return "%s://%s:%s" % (scheme, (parts.hostname or "").lower(), port)


def same_origin(url: str, other: str) -> bool:
    return origin(url) == origin(other)


def resolve_url(root: str, path: Optional[str]) -> str:
    """
    Compose the URL to send a request to.  Absolute URLs pass through,
    anything else is appended, normalized, to the base root.
    """
    if is_absolute_url(path):
        return path
    return "%s%s" % (root, normalize_path(path))


def resolve_destination(
    root: str, destination: Optional[str], field: str = "destination"
) -> str:
    """
    Compose the absolute Destination header for MOVE and COPY.  An
    absolute destination has to live on the same origin as root.
    """
    if is_absolute_url(destination):
        if not same_origin(destination, root):
            raise error.CrossOriginError(
                "%s %s is on another server than the base URL %s"
                % (field, destination, origin(root)),
                field=field,
                url=destination,
            )
        return destination
    return "%s%s" % (root, normalize_path(destination))


def join_child(
    parent: Optional[str],
    identifier: str,
    extension: str = "",
    field: Optional[str] = None,
) -> str:
    """
    Path of a member resource of a collection: parent + "/" + identifier
    + extension, normalized once.
    """
    parent = parent or ""
    ## a slash in the identifier must not escape the collection
    identifier = identifier.replace("/", "%2F")
    if is_absolute_url(parent):
        ## raises
        normalize_path(parent, allow_absolute=False, field=field)
    if not parent.endswith("/"):
        parent += "/"
    return normalize_path("%s%s%s" % (parent, identifier, extension))


def file_name_from_path(path: Optional[str], default: str = "file") -> str:
    """Decoded last non-empty segment of a path or URL"""
    if not path:
        return default
    if is_absolute_url(path):
        path = urlsplit(path).path
    segments = [seg for seg in path.split("/") if seg]
    if not segments:
        return default
    try:
        return strict_unquote(segments[-1])
    except (ValueError, UnicodeDecodeError):
        return segments[-1]
