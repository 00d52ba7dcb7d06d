"""
Unit tests for the Sans-I/O protocol layer.

These tests verify protocol logic without any HTTP mocking required.
All tests are pure - they test data transformations only.
"""
from datetime import datetime
from datetime import timezone

import pytest
from lxml import etree

from davnodes.lib import error
from davnodes.protocol import (
    DAVMethod,
    DAVProtocol,
    DAVRequest,
    DAVResponse,
    ResourceFamily,
    build_addressbook_query_body,
    build_calendar_query_body,
    build_collections_propfind_body,
    build_propfind_body,
    extract_resources,
    parse_collections_response,
    parse_objects_response,
    parse_properties_response,
    split_responses,
)

DAV = "{DAV:}"
CALDAV = "{urn:ietf:params:xml:ns:caldav}"
CARDDAV = "{urn:ietf:params:xml:ns:carddav}"

BASE = "https://dav.example.com/remote.php/dav"


class TestDAVTypes:
    """Test core DAV types."""

    def test_dav_request_immutable(self):
        request = DAVRequest(method=DAVMethod.GET, url="https://example.com/")
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_dav_response_ok(self):
        assert DAVResponse(status=200, headers={}, body=b"").ok
        assert DAVResponse(status=207, headers={}, body=b"").ok
        assert not DAVResponse(status=404, headers={}, body=b"").ok

    def test_dav_response_header_case_insensitive(self):
        response = DAVResponse(status=200, headers={"etag": '"abc"'}, body=b"")
        assert response.header("ETag") == '"abc"'
        assert response.header("Content-Type") is None

    def test_dav_response_reason(self):
        assert DAVResponse(status=404, headers={}, body=b"").reason == "Not Found"
        assert (
            DAVResponse(status=404, headers={}, body=b"", reason_phrase="Gone fishing").reason
            == "Gone fishing"
        )


class TestXMLBuilders:
    """Test XML building functions."""

    def test_propfind_body(self):
        root = etree.fromstring(build_propfind_body())
        assert root.tag == DAV + "propfind"
        props = [child.tag for child in root.find(DAV + "prop")]
        assert props == [
            DAV + "getcontenttype",
            DAV + "getlastmodified",
            DAV + "getcontentlength",
            DAV + "resourcetype",
            DAV + "getetag",
        ]

    def test_calendar_collections_body(self):
        body = build_collections_propfind_body(ResourceFamily.CALENDAR)
        root = etree.fromstring(body)
        props = [child.tag for child in root.find(DAV + "prop")]
        assert CALDAV + "calendar-description" in props
        assert CALDAV + "supported-calendar-component-set" in props
        assert DAV + "displayname" in props
        assert b'xmlns:C="urn:ietf:params:xml:ns:caldav"' in body

    def test_addressbook_collections_body(self):
        body = build_collections_propfind_body(ResourceFamily.ADDRESSBOOK)
        root = etree.fromstring(body)
        props = [child.tag for child in root.find(DAV + "prop")]
        assert CARDDAV + "addressbook-description" in props
        assert CARDDAV + "supported-address-data" in props
        ## the CardDAV namespace is bound to "C" as well
        assert b'xmlns:C="urn:ietf:params:xml:ns:carddav"' in body
        assert b"<C:addressbook-description" in body

    def test_calendar_query_without_range(self):
        root = etree.fromstring(build_calendar_query_body())
        assert root.tag == CALDAV + "calendar-query"
        vcalendar = root.find(CALDAV + "filter").find(CALDAV + "comp-filter")
        assert vcalendar.get("name") == "VCALENDAR"
        vevent = vcalendar.find(CALDAV + "comp-filter")
        assert vevent.get("name") == "VEVENT"
        assert vevent.find(CALDAV + "time-range") is None
        props = [child.tag for child in root.find(DAV + "prop")]
        assert props == [DAV + "getetag", CALDAV + "calendar-data"]

    def test_calendar_query_with_range(self):
        start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        end = datetime(2024, 3, 2, 17, 30, tzinfo=timezone.utc)
        root = etree.fromstring(build_calendar_query_body(start, end))
        time_range = root.find(".//%stime-range" % CALDAV)
        assert time_range.get("start") == "20240301T090000Z"
        assert time_range.get("end") == "20240302T173000Z"

    def test_addressbook_query_escapes_search_term(self):
        term = '</C:text-match><C:prop-filter name="X">&'
        body = build_addressbook_query_body("FN", term)
        root = etree.fromstring(body)
        prop_filters = root.findall(".//%sprop-filter" % CARDDAV)
        assert len(prop_filters) == 1
        assert prop_filters[0].get("name") == "FN"
        text_match = prop_filters[0].find(CARDDAV + "text-match")
        assert text_match.text == term
        assert text_match.get("collation") == "i;unicode-casemap"
        assert text_match.get("match-type") == "contains"

    def test_addressbook_query_unfiltered(self):
        root = etree.fromstring(build_addressbook_query_body())
        prop_filter = root.find(".//%sprop-filter" % CARDDAV)
        assert prop_filter.get("name") == "FN"
        assert prop_filter.find(CARDDAV + "text-match") is None


MULTISTATUS = b"""<?xml version="1.0" encoding="utf-8"?>
<D:multistatus xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:caldav">
  <D:response>
    <D:href>/remote.php/dav/calendars/alice/</D:href>
    <D:propstat><D:prop>
      <D:resourcetype><D:collection/></D:resourcetype>
    </D:prop><D:status>HTTP/1.1 200 OK</D:status></D:propstat>
  </D:response>
  <D:response>
    <D:href>/remote.php/dav/calendars/alice/my%20work/</D:href>
    <D:propstat><D:prop>
      <D:displayname>Work &amp; Play</D:displayname>
      <C:calendar-description>Meetings</C:calendar-description>
      <D:resourcetype><D:collection/><C:calendar/></D:resourcetype>
    </D:prop><D:status>HTTP/1.1 200 OK</D:status></D:propstat>
  </D:response>
  <D:responsedescription>not a response</D:responsedescription>
</D:multistatus>
"""

EVENTS = b"""<?xml version="1.0" encoding="utf-8"?>
<D:multistatus xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:caldav">
  <D:response>
    <D:href>/cal/</D:href>
    <D:propstat><D:prop><D:getetag>"c0"</D:getetag></D:prop></D:propstat>
  </D:response>
  <D:response>
    <D:href>/cal/evt-1.ics</D:href>
    <D:propstat><D:prop>
      <D:getetag>"e1"</D:getetag>
      <C:calendar-data>BEGIN:VCALENDAR
BEGIN:VEVENT
UID:evt-1
SUMMARY:Tom &amp; Jerry
END:VEVENT
END:VCALENDAR
</C:calendar-data>
    </D:prop></D:propstat>
  </D:response>
  <D:response>
    <D:href>/cal/evt-2.ics</D:href>
    <D:propstat><D:prop>
      <C:calendar-data><![CDATA[BEGIN:VCALENDAR
UID:<evt-2>
END:VCALENDAR
]]></C:calendar-data>
    </D:prop></D:propstat>
  </D:response>
</D:multistatus>
"""


class TestResponseExtraction:
    def test_collections_in_document_order(self):
        resources = parse_collections_response(MULTISTATUS, "calendar")
        assert [r.href for r in resources] == [
            "/remote.php/dav/calendars/alice/",
            "/remote.php/dav/calendars/alice/my work/",
        ]
        assert resources[0].display_name is None
        assert resources[1].display_name == "Work & Play"
        assert resources[1].description == "Meetings"
        assert resources[1].is_collection

    def test_objects_without_data_are_dropped(self):
        events = parse_objects_response(EVENTS, "calendar")
        assert [e.href for e in events] == ["/cal/evt-1.ics", "/cal/evt-2.ics"]
        assert events[0].etag == '"e1"'
        assert "SUMMARY:Tom & Jerry" in events[0].data
        assert events[1].etag is None
        assert "UID:<evt-2>" in events[1].data

    def test_object_data_keeps_line_endings(self):
        text = (
            b"<D:response><D:href>/cal/a.ics</D:href>"
            b"<C:calendar-data>BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n</C:calendar-data></D:response>\r\n"
            b"<D:response><D:href>/cal/b.ics</D:href>"
            b"<C:calendar-data><![CDATA[BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n]]></C:calendar-data>"
            b"</D:response>"
        )
        events = parse_objects_response(text, "calendar")
        assert [e.data for e in events] == ["BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"] * 2

    def test_response_without_href_is_dropped(self):
        text = (
            "<D:multistatus><D:response><D:getetag>x</D:getetag></D:response>"
            "<D:response><D:href>/a</D:href></D:response></D:multistatus>"
        )
        assert [r.href for r in extract_resources(text)] == ["/a"]

    def test_duplicates_are_kept(self):
        text = "<D:response><D:href>/a</D:href></D:response>" * 2
        assert len(extract_resources(text)) == 2

    def test_garbage_never_raises(self):
        for text in (None, b"", "not xml at all", "<D:response>", b"\xff\xfe<D:href>"):
            assert extract_resources(text) == []
            assert split_responses(text) == []

    def test_other_prefix_yields_nothing(self):
        text = (
            '<d:multistatus xmlns:d="DAV:"><d:response><d:href>/a</d:href>'
            "</d:response></d:multistatus>"
        )
        assert extract_resources(text) == []

    def test_malformed_href_kept_raw(self):
        text = "<D:response><D:href>/a%zz</D:href></D:response>"
        assert extract_resources(text)[0].href == "/a%zz"

    def test_generic_properties(self):
        text = """<D:multistatus xmlns:D="DAV:">
        <D:response><D:href>/Files/</D:href><D:propstat><D:prop>
          <D:resourcetype><D:collection/></D:resourcetype>
          <D:getlastmodified>Wed, 21 Oct 2015 07:28:00 GMT</D:getlastmodified>
        </D:prop></D:propstat></D:response>
        <D:response><D:href>/Files/a.txt</D:href><D:propstat><D:prop>
          <D:resourcetype/>
          <D:getcontenttype>text/plain</D:getcontenttype>
          <D:getcontentlength>12</D:getcontentlength>
          <D:getetag>"123456"</D:getetag>
        </D:prop></D:propstat></D:response>
        </D:multistatus>"""
        folder, file = parse_properties_response(text)
        assert folder.is_collection
        assert folder.content_length is None
        assert folder.last_modified == "Wed, 21 Oct 2015 07:28:00 GMT"
        assert not file.is_collection
        assert file.content_type == "text/plain"
        assert file.content_length == 12
        assert file.etag == '"123456"'

    def test_non_numeric_content_length(self):
        text = (
            "<D:response><D:href>/a</D:href>"
            "<D:getcontentlength>many</D:getcontentlength></D:response>"
        )
        assert extract_resources(text)[0].content_length is None


class TestDAVProtocol:
    def setup_method(self):
        self.protocol = DAVProtocol(BASE + "/")

    def test_base_root_stripped(self):
        assert self.protocol.base_root == BASE

    def test_resolve_refuses_other_origin(self):
        with pytest.raises(error.CrossOriginError):
            self.protocol.resolve("https://evil.example.org/x")
        assert self.protocol.resolve(BASE + "/x") == BASE + "/x"

    def test_collections_request(self):
        request = self.protocol.collections_request(
            "calendars/alice", ResourceFamily.CALENDAR
        )
        assert request.method == DAVMethod.PROPFIND
        assert request.url == BASE + "/calendars/alice"
        assert request.headers["Depth"] == "1"
        assert request.headers["Content-Type"] == "application/xml; charset=utf-8"
        assert request.headers["Accept"] == "application/xml, text/xml, */*"

    def test_collections_request_refuses_absolute(self):
        with pytest.raises(error.InvalidPathError):
            self.protocol.collections_request(
                BASE + "/calendars/alice/", ResourceFamily.CALENDAR, field="calendarHomeSet"
            )

    def test_calendar_query_range(self):
        request = self.protocol.calendar_query_request(
            "/cal/",
            time_range="range",
            start="2024-03-01T09:00:00Z",
            end="2024-03-01T10:00:00+00:00",
        )
        assert request.method == DAVMethod.REPORT
        assert request.headers["Depth"] == "1"
        time_range = etree.fromstring(request.body).find(".//%stime-range" % CALDAV)
        assert time_range.get("start") == "20240301T090000Z"
        assert time_range.get("end") == "20240301T100000Z"

    def test_calendar_query_date(self):
        request = self.protocol.calendar_query_request(
            "/cal/", time_range="date", day="2024-03-01T15:00:00+00:00"
        )
        time_range = etree.fromstring(request.body).find(".//%stime-range" % CALDAV)
        assert time_range.get("start") == "20240301T000000Z"
        assert time_range.get("end") == "20240301T235959Z"

    def test_calendar_query_bad_input(self):
        with pytest.raises(error.InvalidInputError) as excinfo:
            self.protocol.calendar_query_request("/cal/", time_range="week")
        assert excinfo.value.field == "timeRange"
        with pytest.raises(error.InvalidInputError) as excinfo:
            self.protocol.calendar_query_request(
                "/cal/", time_range="range", start="yesterday", end="2024-01-01"
            )
        assert excinfo.value.field == "startDate"
        with pytest.raises(error.InvalidInputError) as excinfo:
            self.protocol.calendar_query_request("/cal/", time_range="date")
        assert excinfo.value.field == "date"

    def test_addressbook_query_filters(self):
        request = self.protocol.addressbook_query_request(
            "/ab/", contact_filter="email", search_term="@example.com"
        )
        prop_filter = etree.fromstring(request.body).find(".//%sprop-filter" % CARDDAV)
        assert prop_filter.get("name") == "EMAIL"
        assert prop_filter.find(CARDDAV + "text-match").text == "@example.com"

        request = self.protocol.addressbook_query_request(
            "/ab/", contact_filter="all", search_term="ignored"
        )
        assert b"ignored" not in request.body

        with pytest.raises(error.InvalidInputError):
            self.protocol.addressbook_query_request("/ab/", contact_filter="phone")

    def test_propfind_depth(self):
        request = self.protocol.propfind_request("/Files/", depth="Infinity")
        assert request.headers["Depth"] == "infinity"
        with pytest.raises(error.InvalidInputError):
            self.protocol.propfind_request("/Files/", depth="2")

    def test_check_request(self):
        request = self.protocol.check_request()
        assert request.method == DAVMethod.PROPFIND
        assert request.url == BASE + "/"
        assert request.headers["Depth"] == "0"
        assert request.body is None

    def test_put_request(self):
        request = self.protocol.put_request("/Files/a.txt", "héllo", "text/plain")
        assert request.method == DAVMethod.PUT
        assert request.body == "héllo".encode("utf-8")
        assert request.headers == {"Content-Type": "text/plain"}

    def test_event_put_request(self):
        request = self.protocol.event_put_request("/cal/", "evt-1", "BEGIN:VCALENDAR", "*")
        assert request.url == BASE + "/cal/evt-1.ics"
        assert request.headers["Content-Type"] == "text/calendar"
        assert request.headers["If-Match"] == "*"

    def test_contact_put_request(self):
        request = self.protocol.contact_put_request("/ab", "c 1", "BEGIN:VCARD")
        assert request.url == BASE + "/ab/c%201.vcf"
        assert request.headers["Content-Type"] == "text/vcard"
        assert "If-Match" not in request.headers

    def test_move_and_copy(self):
        request = self.protocol.move_request("/a.txt", "/b c.txt", overwrite=True)
        assert request.method == DAVMethod.MOVE
        assert request.headers["Destination"] == BASE + "/b%20c.txt"
        assert request.headers["Overwrite"] == "T"
        request = self.protocol.copy_request("/a.txt", BASE + "/b.txt")
        assert request.method == DAVMethod.COPY
        assert request.headers["Destination"] == BASE + "/b.txt"
        assert request.headers["Overwrite"] == "F"
        with pytest.raises(error.CrossOriginError):
            self.protocol.copy_request("/a.txt", "https://evil.example.org/b.txt")

    def test_check_response(self):
        request = self.protocol.get_request("/a")
        response = DAVResponse(status=200, headers={}, body=b"x")
        assert self.protocol.check_response(request, response) is response
        with pytest.raises(error.AuthorizationError) as excinfo:
            self.protocol.check_response(
                request, DAVResponse(status=401, headers={}, body=b"")
            )
        assert excinfo.value.status == 401
        with pytest.raises(error.HttpStatusError) as excinfo:
            self.protocol.check_response(
                request, DAVResponse(status=404, headers={}, body=b"")
            )
        assert not isinstance(excinfo.value, error.AuthorizationError)
        assert excinfo.value.url == BASE + "/a"

    def test_check_multistatus_refuses_html(self):
        request = self.protocol.propfind_request("/")
        response = DAVResponse(
            status=200, headers={"content-type": "text/html; charset=utf-8"}, body=b"<html>"
        )
        with pytest.raises(error.UnexpectedContentTypeError):
            self.protocol.check_multistatus(request, response)

    def test_check_download_refuses_collections(self):
        request = self.protocol.get_request("/Files/")
        response = DAVResponse(
            status=200, headers={"Content-Type": "httpd/unix-directory"}, body=b""
        )
        with pytest.raises(error.UnexpectedContentTypeError):
            self.protocol.check_download(request, response)
