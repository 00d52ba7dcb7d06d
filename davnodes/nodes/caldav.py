"""
CalDAV calendar and event operations.
"""
import logging

from davnodes.lib import error
from davnodes.lib.vcal import ical_uid
from davnodes.protocol.types import ResourceFamily
from davnodes.protocol.xml_parsers import parse_collections_response
from davnodes.protocol.xml_parsers import parse_objects_response

from .base import DAVNode
from .base import Invocation
from .base import is_success

log = logging.getLogger("davnodes")

DEFAULT_CALENDAR_HOME_SET = "/calendars/user/"


class CalendarNode(DAVNode):
    """List calendars, query events and create, update or delete them."""

    protocol_label = "CalDAV"
    resource = "calendar"
    default_operation = "getCalendars"
    operations = {
        "getCalendars": "get_calendars",
        "getEvents": "get_events",
        "createEvent": "create_event",
        "updateEvent": "update_event",
        "deleteEvent": "delete_event",
    }
    path_parameters = ("calendarPath", "calendarHomeSet")

    def get_calendars(self, call: Invocation) -> None:
        home_set = call.param("calendarHomeSet", DEFAULT_CALENDAR_HOME_SET)
        request = call.protocol.collections_request(
            home_set, ResourceFamily.CALENDAR, field="calendarHomeSet"
        )
        response = call.protocol.check_multistatus(request, call.send(request))
        call.update(
            calendars=[
                {
                    "href": r.href,
                    "displayName": r.display_name,
                    "description": r.description,
                }
                for r in parse_collections_response(response.body, "calendar")
            ],
            statusCode=response.status,
        )

    def get_events(self, call: Invocation) -> None:
        request = call.protocol.calendar_query_request(
            call.param("calendarPath", ""),
            time_range=call.param("timeRange", "all"),
            start=call.param("startDate"),
            end=call.param("endDate"),
            day=call.param("date"),
        )
        response = call.protocol.check_multistatus(request, call.send(request))
        call.update(
            events=[
                {"href": r.href, "etag": r.etag, "calendarData": r.data}
                for r in parse_objects_response(response.body, "calendar")
            ],
            statusCode=response.status,
        )

    def create_event(self, call: Invocation) -> None:
        self._put_event(call, if_match=None)

    def update_event(self, call: Invocation) -> None:
        self._put_event(call, if_match=call.param("etag") or "*")

    def _put_event(self, call: Invocation, if_match) -> None:
        calendar_path = call.param("calendarPath", "")
        event_data = call.param("eventData", "")
        event_id = call.param("eventId", "")
        if not event_id:
            ## same rule as the server side: the object is named after its UID
            event_id = ical_uid(event_data)
            if not event_id:
                raise error.InvalidInputError(
                    "eventId is empty and eventData carries no UID", field="eventId"
                )
            log.debug("eventId taken from UID %s", event_id)

        response = call.send(
            call.protocol.event_put_request(calendar_path, event_id, event_data, if_match)
        )
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            eventId=event_id,
            calendarPath=calendar_path,
            etag=response.header("ETag"),
        )

    def delete_event(self, call: Invocation) -> None:
        calendar_path = call.param("calendarPath", "")
        event_id = call.param("eventId", "")
        if not event_id:
            raise error.InvalidInputError("eventId is empty", field="eventId")
        path = call.protocol.event_path(calendar_path, event_id)
        response = call.send(call.protocol.delete_request(path))
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            eventId=event_id,
            calendarPath=calendar_path,
        )
