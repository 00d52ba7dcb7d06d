"""
Core protocol types.

These dataclasses represent HTTP requests and responses at the protocol level,
independent of any I/O implementation, plus the records extracted from
multi-status responses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from davnodes.lib.python_utilities import to_normal_str


class DAVMethod(Enum):
    """WebDAV/CalDAV/CardDAV HTTP methods."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"
    PROPFIND = "PROPFIND"
    REPORT = "REPORT"
    MKCOL = "MKCOL"
    MOVE = "MOVE"
    COPY = "COPY"


class ResourceFamily(Enum):
    """The collection flavours a home set can be listed for."""

    CALENDAR = "calendar"
    ADDRESSBOOK = "addressbook"


@dataclass(frozen=True)
class DAVRequest:
    """
    Represents an HTTP request to be made.

    This is a pure data structure with no I/O. It describes what request
    should be made, but does not make it.

    Attributes:
        method: HTTP method (GET, PUT, PROPFIND, etc.)
        url: Full URL for the request
        headers: HTTP headers as dict
        body: Request body as bytes (optional)
    """

    method: DAVMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True)
class DAVResponse:
    """
    Represents an HTTP response received.

    Attributes:
        status: HTTP status code
        headers: HTTP headers as dict
        body: Response body as bytes
        reason_phrase: Reason phrase sent by the server, if any
    """

    status: int
    headers: dict[str, str]
    body: bytes
    reason_phrase: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True if status indicates success (2xx)."""
        return 200 <= self.status < 300

    @property
    def reason(self) -> str:
        """Return a reason phrase for the status code."""
        if self.reason_phrase:
            return self.reason_phrase
        reasons = {
            200: "OK",
            201: "Created",
            204: "No Content",
            207: "Multi-Status",
            301: "Moved Permanently",
            302: "Found",
            304: "Not Modified",
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            405: "Method Not Allowed",
            409: "Conflict",
            412: "Precondition Failed",
            415: "Unsupported Media Type",
            423: "Locked",
            500: "Internal Server Error",
            501: "Not Implemented",
            502: "Bad Gateway",
            503: "Service Unavailable",
            507: "Insufficient Storage",
        }
        return reasons.get(self.status, "Unknown")

    @property
    def text(self) -> str:
        return to_normal_str(self.body) or ""

    def header(self, name: str, default: Any = None) -> Any:
        """Case-insensitive header lookup."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return default


@dataclass
class ParsedResource:
    """
    One <D:response> entry of a multi-status document.

    Attributes:
        href: Percent-decoded URL/path of the resource
        etag: ETag of the resource
        display_name: D:displayname
        description: calendar-description or addressbook-description
        data: calendar-data or address-data
        content_type: D:getcontenttype
        last_modified: D:getlastmodified
        content_length: D:getcontentlength as integer
        is_collection: True if the resourcetype contains a collection
    """

    href: str
    etag: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    data: Optional[str] = None
    content_type: Optional[str] = None
    last_modified: Optional[str] = None
    content_length: Optional[int] = None
    is_collection: bool = False
