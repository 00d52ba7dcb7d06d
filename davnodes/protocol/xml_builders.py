"""
Pure functions for building DAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.  Text coming from the workflow (search
terms) is set as element text, so lxml escapes it on serialization.
"""
from datetime import datetime
from typing import List
from typing import Optional

from lxml import etree

from davnodes.elements import carddav
from davnodes.elements import cdav
from davnodes.elements import dav
from davnodes.elements.base import BaseElement
from davnodes.lib.namespace import nsmap
from davnodes.lib.namespace import nsmap_carddav
from davnodes.lib.namespace import nsmap_webdav

from .types import ResourceFamily


def _serialize(root: BaseElement, prefixes=None) -> bytes:
    return etree.tostring(
        root.xmlelement(prefixes), encoding="utf-8", xml_declaration=True
    )


def build_collections_propfind_body(family: ResourceFamily) -> bytes:
    """
    Build the PROPFIND body used to list the calendars or address books
    below a home set.

    Args:
        family: ResourceFamily.CALENDAR or ResourceFamily.ADDRESSBOOK

    Returns:
        UTF-8 encoded XML bytes
    """
    props: List[BaseElement] = [dav.ResourceType(), dav.DisplayName()]
    if family == ResourceFamily.CALENDAR:
        props += [cdav.CalendarDescription(), cdav.SupportedCalendarComponentSet()]
        prefixes = nsmap
    else:
        props += [carddav.AddressbookDescription(), carddav.SupportedAddressData()]
        prefixes = nsmap_carddav
    propfind = dav.Propfind() + (dav.Prop() + props)
    return _serialize(propfind, prefixes)


def build_propfind_body(props: Optional[List[BaseElement]] = None) -> bytes:
    """
    Build the PROPFIND body for generic resources.

    Args:
        props: Property elements to request.  Defaults to content type,
               last modification, content length, resource type and etag.

    Returns:
        UTF-8 encoded XML bytes
    """
    if props is None:
        props = [
            dav.GetContentType(),
            dav.GetLastModified(),
            dav.GetContentLength(),
            dav.ResourceType(),
            dav.GetEtag(),
        ]
    propfind = dav.Propfind() + (dav.Prop() + props)
    return _serialize(propfind, nsmap_webdav)


def build_calendar_query_body(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> bytes:
    """
    Build calendar-query REPORT request body for VEVENT components.

    Args:
        start: Start of time range filter
        end: End of time range filter

    Without start and end the filter matches every event.

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [dav.GetEtag(), cdav.CalendarData()]

    vevent = cdav.CompFilter("VEVENT")
    if start or end:
        vevent += cdav.TimeRange(start, end)
    vcalendar = cdav.CompFilter("VCALENDAR") + vevent

    root = cdav.CalendarQuery() + [prop, cdav.Filter() + vcalendar]
    return _serialize(root, nsmap)


def build_addressbook_query_body(
    prop_name: Optional[str] = None,
    search_term: Optional[str] = None,
) -> bytes:
    """
    Build addressbook-query REPORT request body.

    Args:
        prop_name: vCard property to filter on (FN, EMAIL).  Defaults to
                   an FN filter without condition, matching every card.
        search_term: Text to match in prop_name

    Returns:
        UTF-8 encoded XML bytes
    """
    prop = dav.Prop() + [dav.GetEtag(), carddav.AddressData()]

    prop_filter = carddav.PropFilter(prop_name or "FN")
    if prop_name and search_term is not None:
        prop_filter += carddav.TextMatch(search_term)

    root = carddav.AddressbookQuery() + [prop, carddav.Filter() + prop_filter]
    return _serialize(root, nsmap_carddav)
