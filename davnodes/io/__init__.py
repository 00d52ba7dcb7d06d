"""
I/O layer for the DAV protocol.

This module provides the implementation executing DAVRequest objects and
returning DAVResponse objects.

The I/O layer is intentionally thin - it only handles HTTP transport
and authentication.  All protocol logic (XML building/scanning) is in
davnodes.protocol.

Example:
    from davnodes.protocol import DAVProtocol
    from davnodes.io import SyncIO

    protocol = DAVProtocol(base_root="https://dav.example.com")
    with SyncIO(credential) as io:
        request = protocol.propfind_request("/Files/", depth="1")
        response = io.execute(request)
"""

from .base import SyncIOProtocol
from .sync import SyncIO

__all__ = [
    "SyncIOProtocol",
    "SyncIO",
]
