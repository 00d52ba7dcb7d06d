"""
The workflow nodes: FileNode (WebDAV), CalendarNode (CalDAV) and
AddressBookNode (CardDAV).

Example:
    from davnodes import Credential, LocalHost
    from davnodes.nodes import CalendarNode

    host = LocalHost(
        parameters={"operation": "getCalendars"},
        credentials=Credential("https://dav.example.com/remote.php/dav", "alice", "secret"),
    )
    items = CalendarNode().execute(host)
"""
from .base import DAVNode
from .base import Invocation
from .caldav import CalendarNode
from .carddav import AddressBookNode
from .webdav import FileNode

__all__ = [
    "DAVNode",
    "Invocation",
    "FileNode",
    "CalendarNode",
    "AddressBookNode",
]
