#!/usr/bin/env python
from typing import Dict
from typing import Optional

## Both CalDAV and CardDAV request bodies use the "C" prefix for their
## protocol namespace, servers and the response scanner expect exactly
## that, so each protocol family gets its own map.
nsmap: Dict[str, str] = {
    "D": "DAV:",
    "C": "urn:ietf:params:xml:ns:caldav",
}

nsmap_carddav: Dict[str, str] = {
    "D": "DAV:",
    "C": "urn:ietf:params:xml:ns:carddav",
}

nsmap_webdav: Dict[str, str] = {
    "D": "DAV:",
}

namespaces: Dict[str, str] = {
    "D": "DAV:",
    "C": "urn:ietf:params:xml:ns:caldav",
    "CR": "urn:ietf:params:xml:ns:carddav",
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % namespaces[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name
