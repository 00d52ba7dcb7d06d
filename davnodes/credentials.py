"""
The DAV credential and the per-run context derived from it.
"""
import logging
import re
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Mapping

from davnodes.io import SyncIO
from davnodes.lib import error
from davnodes.lib.url import base_root
from davnodes.protocol.operations import DAVProtocol

log = logging.getLogger("davnodes")

BASE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)

INVALID_BASE_URL = (
    "Invalid Base URL in credentials. Include protocol (http:// or https://), "
    "e.g. https://your-server/remote.php/dav"
)


@dataclass(frozen=True)
class Credential:
    """
    Base URL and Basic auth login of a DAV server.  The password is
    never part of repr() and is only handed to the auth object of the
    I/O layer.
    """

    base_url: str
    username: str = ""
    password: str = field(default="", repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Credential":
        """Build from the host's credential record (baseUrl or base_url keys)."""
        base_url = data.get("baseUrl", data.get("base_url", data.get("url")))
        return cls(
            base_url=str(base_url).strip() if base_url is not None else "",
            username=data.get("username", data.get("user")) or "",
            password=data.get("password", data.get("pass")) or "",
        )

    def validate(self) -> str:
        """
        Check the base URL and return the base root (no trailing slash).

        Raises:
            CredentialInvalidError: base URL missing or without http(s) scheme
        """
        url = (self.base_url or "").strip()
        if not url or not BASE_URL_RE.match(url):
            raise error.CredentialInvalidError(reason=INVALID_BASE_URL)
        return base_root(url)


@dataclass(frozen=True)
class RunContext:
    """
    Everything shared by the items of one run.  Built once, after the
    credential has been validated, and passed explicitly to every
    operation.
    """

    credential: Credential
    base_root: str
    io: Any
    host: Any
    protocol: DAVProtocol

    @classmethod
    def create(cls, credential: Credential, io, host) -> "RunContext":
        root = credential.validate()
        return cls(
            credential=credential,
            base_root=root,
            io=io,
            host=host,
            protocol=DAVProtocol(root),
        )


def test_credential(credential: Credential, io=None) -> int:
    """
    Check that the server answers a depth 0 PROPFIND on the base URL
    with the credential.  Returns the HTTP status.

    Raises:
        CredentialInvalidError: the base URL is malformed
        AuthorizationError: the server refused the login
        HttpStatusError: any other non-2xx answer
        TransportError: the server could not be reached
    """
    protocol = DAVProtocol(credential.validate())
    owns_io = io is None
    io = io or SyncIO(credential)
    try:
        request = protocol.check_request()
        response = protocol.check_response(request, io.execute(request))
        log.debug("credential test for %s: %s", credential.base_url, response.status)
        return response.status
    finally:
        if owns_io:
            io.close()


## not a test case
test_credential.__test__ = False
