"""
Synchronous I/O implementation using the requests library.
"""

import datetime
import logging
import socket
from tempfile import NamedTemporaryFile
from typing import Iterator, Optional

import requests
from requests.auth import AuthBase, HTTPBasicAuth

from davnodes.lib import error
from davnodes.lib.python_utilities import to_wire
from davnodes.lib.url import same_origin
from davnodes.protocol.types import DAVRequest, DAVResponse

log = logging.getLogger("davnodes")

## Fragments of resolver error messages, for platforms and library
## versions where the socket.gaierror isn't reachable from the exception
NOT_FOUND_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "failed to resolve",
    "temporary failure in name resolution",
    "no address associated with hostname",
)
REFUSED_HINTS = ("connection refused", "actively refused")


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """The exception and everything it wraps, breadth first."""
    seen = set()
    queue = [exc]
    while queue:
        current = queue.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        wrapped = [current.__cause__, current.__context__, getattr(current, "reason", None)]
        wrapped.extend(current.args)
        queue.extend(x for x in wrapped if isinstance(x, BaseException))


def classify_transport_error(exc: BaseException) -> Optional[str]:
    """
    Map a requests exception to ENOTFOUND, ECONNREFUSED or ETIMEDOUT,
    or None if it's none of those.
    """
    if isinstance(exc, requests.exceptions.Timeout):
        return "ETIMEDOUT"
    for current in _exception_chain(exc):
        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(current, (socket.timeout, TimeoutError)):
            return "ETIMEDOUT"
    msg = str(exc).lower()
    if any(hint in msg for hint in NOT_FOUND_HINTS):
        return "ENOTFOUND"
    if any(hint in msg for hint in REFUSED_HINTS):
        return "ECONNREFUSED"
    return None


class SyncIO:
    """
    Synchronous I/O shell using the requests library.

    This is a thin wrapper that executes DAVRequest objects via HTTP
    and returns DAVResponse objects.  Basic authentication is added to
    requests for the origin of the credential, and to nothing else.

    Example:
        io = SyncIO(credential)
        request = protocol.propfind_request("/Files/", depth="1")
        response = io.execute(request)
    """

    def __init__(
        self,
        credential=None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        verify: bool = True,
        auth: Optional[AuthBase] = None,
    ):
        """
        Initialize the sync I/O handler.

        Args:
            credential: davnodes.Credential used for Basic auth (optional)
            session: Existing requests Session to use (creates new if None)
            timeout: Request timeout in seconds
            verify: Verify SSL certificates
            auth: Explicit requests auth object, overrides the credential
        """
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout
        self.verify = verify
        self.credential = credential
        self.auth = auth
        if self.auth is None and credential is not None and credential.username:
            self.auth = HTTPBasicAuth(credential.username, credential.password or "")

    def auth_for(self, url: str) -> Optional[AuthBase]:
        """The auth object to use for url - None for foreign origins."""
        if self.auth is None:
            return None
        if self.credential is not None and not same_origin(url, self.credential.base_url):
            log.warning("not sending credentials to %s, it is outside the base URL", url)
            return None
        return self.auth

    def execute(self, request: DAVRequest) -> DAVResponse:
        """
        Execute a DAVRequest and return DAVResponse.

        Args:
            request: The request to execute

        Returns:
            DAVResponse with status, headers, and body

        Raises:
            TransportError: if no HTTP response was received
        """
        log.debug(
            "sending request - method=%s, url=%s, headers=%s",
            request.method.value,
            request.url,
            request.headers,
        )
        try:
            r = self.session.request(
                method=request.method.value,
                url=request.url,
                headers=request.headers,
                data=request.body,
                auth=self.auth_for(request.url),
                timeout=self.timeout,
                verify=self.verify,
            )
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise error.TransportError(
                url=request.url, reason="Invalid URL %s: %s" % (request.url, e)
            ) from e
        except requests.exceptions.RequestException as e:
            raise error.TransportError(
                url=request.url, reason=str(e), code=classify_transport_error(e)
            ) from e

        log.debug("server responded with %i %s", r.status_code, r.reason)
        response = DAVResponse(
            status=r.status_code,
            headers=dict(r.headers),
            body=r.content,
            reason_phrase=r.reason,
        )
        if error.debug_dump_communication:
            self._dump_communication(request, response)
        return response

    def _dump_communication(self, request: DAVRequest, response: DAVResponse) -> None:
        headers = {
            k: ("***" if k.lower() == "authorization" else v)
            for k, v in request.headers.items()
        }
        with NamedTemporaryFile(prefix="davcomm", delete=False) as commlog:
            commlog.write(b"=" * 80 + b"\n")
            commlog.write(f"{datetime.datetime.now():%FT%H:%M:%S}".encode("utf-8"))
            commlog.write(b"\n====>\n")
            commlog.write(f"{request.method.value} {request.url}\n".encode("utf-8"))
            commlog.write(
                b"\n".join(to_wire(f"{k}: {v}") for k, v in headers.items())
            )
            commlog.write(b"\n\n")
            commlog.write(request.body or b"")
            commlog.write(b"<====\n")
            commlog.write(f"{response.status} {response.reason}".encode("utf-8"))
            commlog.write(b"\n")
            commlog.write(
                b"\n".join(to_wire(f"{k}: {v}") for k, v in response.headers.items())
            )
            commlog.write(b"\n\n")
            commlog.write(response.body or b"")
            commlog.write(b"\n")
            log.debug("communication dumped to %s", commlog.name)

    def close(self) -> None:
        """Close the session if we created it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self) -> "SyncIO":
        """Context manager entry."""
        return self

    def __exit__(self, *args) -> None:
        """Context manager exit."""
        self.close()
