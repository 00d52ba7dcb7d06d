#!/usr/bin/env python
"""
Helpers peeking into the iCalendar and vCard payloads of a workflow.
The payloads are sent as given; they are only parsed when the node
needs something from them.
"""
from typing import Optional
from typing import Union

import icalendar
import vobject

from davnodes.lib import error
from davnodes.lib.python_utilities import to_normal_str

CALENDAR_COMPONENTS = ("VEVENT", "VTODO", "VJOURNAL")


def ical_uid(data: Union[str, bytes, None], field: str = "eventData") -> Optional[str]:
    """
    UID of the first event, task or journal in an iCalendar document,
    None if it has none.

    Raises:
        InvalidInputError: data is empty or not iCalendar
    """
    data = to_normal_str(data)
    if not data or not data.strip():
        raise error.InvalidInputError("%s is empty" % field, field=field)
    try:
        calendar = icalendar.Calendar.from_ical(data)
    except ValueError as e:
        raise error.InvalidInputError(
            "%s is not valid iCalendar data: %s" % (field, e), field=field
        ) from e
    for component in calendar.walk():
        if component.name in CALENDAR_COMPONENTS and component.get("UID"):
            return str(component["UID"])
    return None


def vcard_uid(data: Union[str, bytes, None], field: str = "contactData") -> Optional[str]:
    """
    UID of a vCard, None if it has none.

    Raises:
        InvalidInputError: data is empty or not a vCard
    """
    data = to_normal_str(data)
    if not data or not data.strip():
        raise error.InvalidInputError("%s is empty" % field, field=field)
    try:
        card = vobject.readOne(data)
    except (vobject.base.ParseError, StopIteration) as e:
        raise error.InvalidInputError(
            "%s is not a valid vCard: %s" % (field, e), field=field
        ) from e
    if card.name != "VCARD":
        raise error.InvalidInputError(
            "%s holds a %s, not a VCARD" % (field, card.name), field=field
        )
    uid = getattr(card, "uid", None)
    if uid is None or not uid.value:
        return None
    return str(uid.value)
