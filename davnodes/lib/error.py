#!/usr/bin/env python
import logging
import os
import re
from typing import Any
from typing import Optional

from davnodes import __version__

## Environmental variables prepended with "PYTHON_DAVNODES" are used for
## debug purposes, environmental variables prepended with "DAV_" are for
## connection parameters
debug_dump_communication = os.environ.get("PYTHON_DAVNODES_COMMDUMP", False)
## one of DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_DAVNODES_DEBUGMODE")
if not debugmode:
    if "dev" in __version__:
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("davnodes")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


class DAVError(Exception):
    url: Optional[str] = None
    reason: str = "no reason"
    item_index: Optional[int] = None

    def __init__(self, url: Optional[str] = None, reason: Optional[str] = None) -> None:
        if url:
            self.url = url
        if reason:
            self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        return "%s at '%s', reason %s" % (
            self.__class__.__name__,
            self.url,
            self.reason,
        )


class CredentialInvalidError(DAVError):
    """
    The base URL of the credential is missing or lacks the http(s)
    scheme.  Raised once per run, before any item is processed.
    """

    def __str__(self) -> str:
        return self.reason


class InvalidInputError(DAVError):
    """
    A node parameter has a value that can't be turned into a request.
    The message names the offending field.
    """

    field: Optional[str] = None

    def __init__(
        self,
        reason: Optional[str] = None,
        field: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        self.field = field
        super().__init__(url=url, reason=reason)

    def __str__(self) -> str:
        return self.reason


class InvalidPathError(InvalidInputError):
    pass


class CrossOriginError(InvalidInputError):
    """
    A destination or href points to another origin than the configured
    base URL.  Credentials must never be sent there, so the request is
    refused before it leaves the client.
    """

    pass


class TransportError(DAVError):
    """
    The request never got an HTTP response.  code is one of ENOTFOUND,
    ECONNREFUSED, ETIMEDOUT or None if the failure couldn't be classified.
    """

    code: Optional[str] = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        self.code = code
        super().__init__(url=url, reason=reason)

    def __str__(self) -> str:
        return self.reason


class HttpStatusError(DAVError):
    """
    The server answered with a non-2xx status.  The response is kept
    around for callers wanting to dig into the body.
    """

    status: Optional[int] = None
    response: Any = None

    def __init__(
        self,
        url: Optional[str] = None,
        reason: Optional[str] = None,
        status: Optional[int] = None,
        response: Any = None,
    ) -> None:
        self.status = status
        self.response = response
        super().__init__(url=url, reason=reason)

    def __str__(self) -> str:
        return "HTTP %s %s at '%s'" % (self.status, self.reason, self.url)


class AuthorizationError(HttpStatusError):
    """
    The server answered 401 or 403.  The url property will contain the
    url in question, the reason property will contain the excuse the
    server sent.
    """

    pass


class UnsupportedOperationError(DAVError):
    def __str__(self) -> str:
        return self.reason


class MissingBinaryInputError(InvalidInputError):
    pass


class UnexpectedContentTypeError(DAVError):
    def __str__(self) -> str:
        return "%s (%s)" % (self.reason, self.url)


class NodeOperationError(DAVError):
    """
    The error surfaced to the host.  reason holds the translated,
    user-facing message; the triggering fault is chained as __cause__.
    """

    def __init__(
        self,
        reason: Optional[str] = None,
        item_index: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        self.item_index = item_index
        super().__init__(url=url, reason=reason)

    def __str__(self) -> str:
        return self.reason


def _status_of(obj: Any) -> Optional[int]:
    if obj is None:
        return None
    for attr in ("status", "status_code", "statusCode"):
        status = getattr(obj, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
    return None


def _reason_of(obj: Any) -> Optional[str]:
    if obj is None:
        return None
    for attr in ("reason", "status_text", "statusText"):
        reason = getattr(obj, attr, None)
        if isinstance(reason, str) and reason and reason != DAVError.reason:
            return reason
    return None


def find_status(exc: BaseException):
    """
    Look for an HTTP status on the error itself, on its response or on
    the response of the error it was raised from.  Returns a tuple
    (status, reason), both possibly None.
    """
    cause = exc.__cause__
    candidates = (
        exc,
        getattr(exc, "response", None),
        getattr(cause, "response", None),
    )
    for candidate in candidates:
        status = _status_of(candidate)
        if status:
            return status, _reason_of(candidate)
    return None, None


def translate_error(
    exc: BaseException,
    url: Optional[str],
    operation: str,
    resource: str,
    protocol: str = "DAV",
) -> str:
    """
    Turn a low-level failure into a message a workflow author can act
    on.  The operation, resource kind and attempted URL are always part
    of the message.
    """
    base = '%s %s on %s: "%s"' % (protocol, operation, resource, url)
    msg = str(exc) or exc.__class__.__name__

    if re.search("invalid url", msg, re.IGNORECASE):
        return (
            'Invalid URL for %s. Ensure Base URL has protocol (https://) and path starts with "/". '
            "Spaces/special chars are auto-encoded." % base
        )

    code = getattr(exc, "code", None)
    if code == "ENOTFOUND":
        return "Host not found for %s. Check the server hostname in credentials." % base
    if code == "ECONNREFUSED":
        return "Connection refused for %s. Server unreachable or port blocked." % base
    if code == "ETIMEDOUT":
        return "Connection timed out for %s. Server slow or network issues." % base

    status, reason = find_status(exc)
    if status:
        if reason:
            return "HTTP %s %s for %s." % (status, reason, base)
        return "HTTP %s for %s." % (status, base)

    return "%s (%s)" % (msg, base)
