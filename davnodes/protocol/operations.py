"""
DAV protocol operations combining request building and response checking.

This class provides a high-level interface to WebDAV, CalDAV and CardDAV
operations while remaining completely I/O-free.
"""

from datetime import date, datetime, time
from typing import Dict, Optional, Union

from davnodes.lib import error
from davnodes.lib.url import (
    is_absolute_url,
    join_child,
    normalize_path,
    resolve_destination,
    resolve_url,
    same_origin,
)

from .types import DAVMethod, DAVRequest, DAVResponse, ResourceFamily
from .xml_builders import (
    build_addressbook_query_body,
    build_calendar_query_body,
    build_collections_propfind_body,
    build_propfind_body,
)

XML_CONTENT_TYPE = "application/xml; charset=utf-8"
CALENDAR_CONTENT_TYPE = "text/calendar"
VCARD_CONTENT_TYPE = "text/vcard"

DEPTHS = ("0", "1", "infinity")
TIME_RANGES = ("all", "range", "date")
CONTACT_FILTERS = {"all": None, "name": "FN", "email": "EMAIL"}

## ContentType values servers use for collections when asked to GET them
COLLECTION_CONTENT_TYPES = ("httpd/unix-directory",)

DateLike = Union[str, date, datetime, None]


def parse_datetime(value: DateLike, field: str) -> datetime:
    """
    Accept a datetime, a date or an ISO 8601 string (a trailing "Z" is
    understood).  Naive values are taken as local time later on.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise error.InvalidInputError(
        "%s must be an ISO 8601 date or date-time, got %r" % (field, value),
        field=field,
    )


def day_bounds(value: DateLike, field: str = "date"):
    """First and last instant (millisecond precision) of a calendar day."""
    day = parse_datetime(value, field)
    start = day.replace(hour=0, minute=0, second=0, microsecond=0)
    end = day.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


class DAVProtocol:
    """
    Sans-I/O DAV protocol handler.

    Builds requests without doing any I/O.  All HTTP communication,
    including authentication, is delegated to an external I/O
    implementation.

    Example:
        protocol = DAVProtocol(base_root="https://dav.example.com/remote.php/dav")

        # Build request
        request = protocol.event_put_request("/calendars/alice/work/", "evt-1", ics)

        # Execute with your I/O (not shown)
        response = io.execute(request)
    """

    def __init__(self, base_root: str):
        """
        Args:
            base_root: Base URL of the DAV server, without trailing slash
        """
        self.base_root = base_root.rstrip("/") if base_root else ""

    def _base_headers(self) -> Dict[str, str]:
        """Return base headers for all requests."""
        return {"Accept": "application/xml, text/xml, */*"}

    def _xml_headers(self, depth: Optional[str] = None) -> Dict[str, str]:
        headers = self._base_headers()
        headers["Content-Type"] = XML_CONTENT_TYPE
        if depth is not None:
            headers["Depth"] = depth
        return headers

    def resolve(self, path: Optional[str], field: str = "path") -> str:
        """
        Absolute URL for a path.  An absolute URL (like an href returned
        by the server) is used as-is if it is on the origin of the base
        URL, and refused otherwise.
        """
        if is_absolute_url(path) and not same_origin(path, self.base_root):
            raise error.CrossOriginError(
                "%s %s is on another server than the base URL" % (field, path),
                field=field,
                url=path,
            )
        return resolve_url(self.base_root, path)

    # =========================================================================
    # Collection discovery and queries
    # =========================================================================

    def collections_request(
        self, home_set: str, family: ResourceFamily, field: str = "homeSet"
    ) -> DAVRequest:
        """
        PROPFIND the calendars or address books below a home set.
        Absolute URLs are refused for home sets.
        """
        path = normalize_path(home_set, allow_absolute=False, field=field)
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=self.resolve(path),
            headers=self._xml_headers("1"),
            body=build_collections_propfind_body(family),
        )

    def calendar_query_request(
        self,
        calendar_path: str,
        time_range: str = "all",
        start: DateLike = None,
        end: DateLike = None,
        day: DateLike = None,
        field: str = "calendarPath",
    ) -> DAVRequest:
        """
        calendar-query REPORT for the events of a calendar.

        Args:
            calendar_path: Calendar collection path
            time_range: "all", "range" (start to end) or "date" (the day)
            start: Start of the range
            end: End of the range
            day: The day for "date"
        """
        path = normalize_path(calendar_path, allow_absolute=False, field=field)
        if time_range == "range":
            body = build_calendar_query_body(
                parse_datetime(start, "startDate"), parse_datetime(end, "endDate")
            )
        elif time_range == "date":
            body = build_calendar_query_body(*day_bounds(day, "date"))
        elif time_range == "all":
            body = build_calendar_query_body()
        else:
            raise error.InvalidInputError(
                "timeRange must be one of %s, got %r" % (", ".join(TIME_RANGES), time_range),
                field="timeRange",
            )
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=self.resolve(path),
            headers=self._xml_headers("1"),
            body=body,
        )

    def addressbook_query_request(
        self,
        addressbook_path: str,
        contact_filter: str = "all",
        search_term: Optional[str] = None,
        field: str = "addressBookPath",
    ) -> DAVRequest:
        """
        addressbook-query REPORT for the vCards of an address book,
        optionally filtered on the formatted name or the email address.
        """
        path = normalize_path(addressbook_path, allow_absolute=False, field=field)
        if contact_filter not in CONTACT_FILTERS:
            raise error.InvalidInputError(
                "filter must be one of %s, got %r"
                % (", ".join(CONTACT_FILTERS), contact_filter),
                field="filter",
            )
        prop_name = CONTACT_FILTERS[contact_filter]
        return DAVRequest(
            method=DAVMethod.REPORT,
            url=self.resolve(path),
            headers=self._xml_headers("1"),
            body=build_addressbook_query_body(
                prop_name, search_term if prop_name else None
            ),
        )

    def propfind_request(self, path: str, depth: str = "1") -> DAVRequest:
        """PROPFIND the generic properties of a resource (and its children)."""
        depth = str(depth).lower()
        if depth not in DEPTHS:
            raise error.InvalidInputError(
                "depth must be one of %s, got %r" % (", ".join(DEPTHS), depth),
                field="depth",
            )
        return DAVRequest(
            method=DAVMethod.PROPFIND,
            url=self.resolve(path),
            headers=self._xml_headers(depth),
            body=build_propfind_body(),
        )

    def check_request(self) -> DAVRequest:
        """PROPFIND with depth 0 on the root, used to test a credential."""
        headers = self._base_headers()
        headers["Depth"] = "0"
        return DAVRequest(method=DAVMethod.PROPFIND, url=self.resolve("/"), headers=headers)

    # =========================================================================
    # Resource manipulation
    # =========================================================================

    def get_request(self, path: str) -> DAVRequest:
        return DAVRequest(
            method=DAVMethod.GET,
            url=self.resolve(path),
            headers={"Accept": "*/*"},
        )

    def put_request(
        self,
        path: str,
        body: Union[bytes, str],
        content_type: str,
        if_match: Optional[str] = None,
    ) -> DAVRequest:
        """
        PUT a resource.  if_match is sent as If-Match; "*" overwrites
        whatever representation exists, an etag makes the write
        conditional on it.
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        headers = {"Content-Type": content_type}
        if if_match:
            headers["If-Match"] = if_match
        return DAVRequest(
            method=DAVMethod.PUT,
            url=self.resolve(path),
            headers=headers,
            body=body,
        )

    def delete_request(self, path: str) -> DAVRequest:
        return DAVRequest(method=DAVMethod.DELETE, url=self.resolve(path))

    def mkcol_request(self, path: str) -> DAVRequest:
        return DAVRequest(method=DAVMethod.MKCOL, url=self.resolve(path))

    def move_request(self, path: str, destination: str, overwrite: bool = False) -> DAVRequest:
        return self._transfer_request(DAVMethod.MOVE, path, destination, overwrite)

    def copy_request(self, path: str, destination: str, overwrite: bool = False) -> DAVRequest:
        return self._transfer_request(DAVMethod.COPY, path, destination, overwrite)

    def _transfer_request(
        self, method: DAVMethod, path: str, destination: str, overwrite: bool
    ) -> DAVRequest:
        return DAVRequest(
            method=method,
            url=self.resolve(path),
            headers={
                "Destination": resolve_destination(self.base_root, destination),
                "Overwrite": "T" if overwrite else "F",
            },
        )

    # =========================================================================
    # Calendar objects and vCards
    # =========================================================================

    def event_path(self, calendar_path: str, event_id: str) -> str:
        return join_child(calendar_path, event_id, ".ics", field="calendarPath")

    def contact_path(self, addressbook_path: str, contact_id: str) -> str:
        return join_child(addressbook_path, contact_id, ".vcf", field="addressBookPath")

    def event_put_request(
        self,
        calendar_path: str,
        event_id: str,
        ical: Union[bytes, str],
        if_match: Optional[str] = None,
    ) -> DAVRequest:
        return self.put_request(
            self.event_path(calendar_path, event_id), ical, CALENDAR_CONTENT_TYPE, if_match
        )

    def contact_put_request(
        self,
        addressbook_path: str,
        contact_id: str,
        vcard: Union[bytes, str],
        if_match: Optional[str] = None,
    ) -> DAVRequest:
        return self.put_request(
            self.contact_path(addressbook_path, contact_id),
            vcard,
            VCARD_CONTENT_TYPE,
            if_match,
        )

    # =========================================================================
    # Response checks
    # =========================================================================

    def check_response(self, request: DAVRequest, response: DAVResponse) -> DAVResponse:
        """Raise HttpStatusError (AuthorizationError for 401/403) on non-2xx."""
        if response.ok:
            return response
        cls = error.HttpStatusError
        if response.status in (401, 403):
            cls = error.AuthorizationError
        raise cls(
            url=request.url,
            reason=response.reason,
            status=response.status,
            response=response,
        )

    def check_multistatus(self, request: DAVRequest, response: DAVResponse) -> DAVResponse:
        """
        A PROPFIND or REPORT answered with an HTML page (typically a login
        or error page of a proxy in front of the server) can't be scanned.
        """
        content_type = (response.header("Content-Type") or "").lower()
        if "html" in content_type:
            raise error.UnexpectedContentTypeError(
                url=request.url,
                reason="expected an XML multi-status response, got %s" % content_type,
            )
        return response

    def check_download(self, request: DAVRequest, response: DAVResponse) -> DAVResponse:
        content_type = (response.header("Content-Type") or "").lower()
        if content_type.split(";")[0].strip() in COLLECTION_CONTENT_TYPES:
            raise error.UnexpectedContentTypeError(
                url=request.url,
                reason="the path is a collection, not a file",
            )
        return response
