#!/usr/bin/env python
import logging

__version__ = "0.3.0"

from .credentials import Credential
from .credentials import RunContext
from .host import BinaryRef
from .host import LocalHost
from .host import WorkItem
from .io import SyncIO
from .nodes import AddressBookNode
from .nodes import CalendarNode
from .nodes import FileNode

# Silence notification of no default logging handler
log = logging.getLogger("davnodes")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "AddressBookNode",
    "BinaryRef",
    "CalendarNode",
    "Credential",
    "FileNode",
    "LocalHost",
    "RunContext",
    "SyncIO",
    "WorkItem",
]
