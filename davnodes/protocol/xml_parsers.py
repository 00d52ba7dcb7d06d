"""
Functions for extracting records from multi-status responses.

This is a text scan, not an XML parse.  The document is cut into one
chunk per <D:response> element and every property is looked up in its
chunk independently, so a server leaving out optional properties, or
sending a document lxml would refuse, still yields whatever could be
found.  The namespace prefixes are matched literally: "D:" for DAV:
and "C:" for the CalDAV/CardDAV namespace.  A server binding DAV: to
another prefix yields no records.

Nothing in here raises on malformed input.
"""

import html
import logging
import re
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from davnodes.lib.url import strict_unquote

from .types import ParsedResource

log = logging.getLogger(__name__)

RESPONSE_RE = re.compile(r"<D:response(?:\s[^>]*)?>(.*?)</D:response>", re.DOTALL)
CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)

DESCRIPTION_TAGS: Dict[Optional[str], tuple] = {
    "calendar": ("C:calendar-description",),
    "addressbook": ("C:addressbook-description",),
    None: ("C:calendar-description", "C:addressbook-description"),
}

DATA_TAGS: Dict[Optional[str], tuple] = {
    "calendar": ("C:calendar-data",),
    "addressbook": ("C:address-data",),
    None: ("C:calendar-data", "C:address-data"),
}

_element_res: Dict[str, "re.Pattern[str]"] = {}


def _element_re(tag: str) -> "re.Pattern[str]":
    if tag not in _element_res:
        _element_res[tag] = re.compile(
            r"<%s(?:\s[^>]*)?>(.*?)</%s>" % (re.escape(tag), re.escape(tag)),
            re.DOTALL,
        )
    return _element_res[tag]


def _decode_text(value: str) -> str:
    """Resolve character references and unwrap CDATA sections."""
    parts = []
    pos = 0
    for match in CDATA_RE.finditer(value):
        parts.append(html.unescape(value[pos : match.start()]))
        parts.append(match.group(1))
        pos = match.end()
    parts.append(html.unescape(value[pos:]))
    return "".join(parts)


def find_element(chunk: str, *tags: str, raw: bool = False) -> Optional[str]:
    """
    Text content of the first of tags found in chunk, or None.  Self
    closing elements count as absent.
    """
    for tag in tags:
        match = _element_re(tag).search(chunk)
        if match:
            return match.group(1) if raw else _decode_text(match.group(1))
    return None


def decode_href(href: str) -> str:
    href = _decode_text(href).strip()
    try:
        return strict_unquote(href)
    except (ValueError, UnicodeDecodeError):
        log.debug("href %r is not valid percent-encoding, keeping it raw", href)
        return href


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def split_responses(text: Union[str, bytes, None]) -> List[str]:
    """The inner text of every <D:response> element, in document order."""
    if not text:
        return []
    ## line endings are kept, CRLF inside calendar-data is part of the object
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return RESPONSE_RE.findall(text)


def extract_resource(chunk: str, kind: Optional[str] = None) -> Optional[ParsedResource]:
    """
    Build a ParsedResource from a single response chunk.  Returns None
    if the chunk carries no href.

    kind selects the description and data properties looked for:
    "calendar", "addressbook" or None for both.
    """
    href = find_element(chunk, "D:href", raw=True)
    if href is None:
        return None
    resourcetype = find_element(chunk, "D:resourcetype", raw=True)
    return ParsedResource(
        href=decode_href(href),
        etag=find_element(chunk, "D:getetag"),
        display_name=find_element(chunk, "D:displayname"),
        description=find_element(chunk, *DESCRIPTION_TAGS.get(kind, DESCRIPTION_TAGS[None])),
        data=find_element(chunk, *DATA_TAGS.get(kind, DATA_TAGS[None])),
        content_type=find_element(chunk, "D:getcontenttype"),
        last_modified=find_element(chunk, "D:getlastmodified"),
        content_length=_parse_int(find_element(chunk, "D:getcontentlength")),
        is_collection=bool(resourcetype and "collection" in resourcetype),
    )


def extract_resources(
    text: Union[str, bytes, None], kind: Optional[str] = None
) -> List[ParsedResource]:
    """
    All resources of a multi-status document, in document order.
    Response chunks without href are dropped, nothing is deduplicated.
    """
    resources = []
    for chunk in split_responses(text):
        resource = extract_resource(chunk, kind)
        if resource is None:
            log.debug("dropping <D:response> without href")
            continue
        resources.append(resource)
    return resources


def parse_collections_response(text, kind: str) -> List[ParsedResource]:
    """Calendars or address books below a home set."""
    return extract_resources(text, kind)


def parse_objects_response(text, kind: str) -> List[ParsedResource]:
    """
    Calendar objects or vCards returned by a query REPORT.  Entries
    without object data (the collection itself, or members the server
    couldn't render) are left out.
    """
    return [r for r in extract_resources(text, kind) if r.data is not None]


def parse_properties_response(text) -> List[ParsedResource]:
    """Generic resources returned by a PROPFIND."""
    return extract_resources(text)
