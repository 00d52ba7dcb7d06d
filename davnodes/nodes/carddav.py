"""
CardDAV address book and contact operations.
"""
import logging

from davnodes.lib import error
from davnodes.lib.vcal import vcard_uid
from davnodes.protocol.types import ResourceFamily
from davnodes.protocol.xml_parsers import parse_collections_response
from davnodes.protocol.xml_parsers import parse_objects_response

from .base import DAVNode
from .base import Invocation
from .base import is_success

log = logging.getLogger("davnodes")

DEFAULT_ADDRESSBOOK_HOME_SET = "/addressbooks/user/"


class AddressBookNode(DAVNode):
    """List address books, search contacts and create, update or delete them."""

    protocol_label = "CardDAV"
    resource = "contact"
    default_operation = "getAddressBooks"
    operations = {
        "getAddressBooks": "get_address_books",
        "getContacts": "get_contacts",
        "createContact": "create_contact",
        "updateContact": "update_contact",
        "deleteContact": "delete_contact",
    }
    path_parameters = ("addressBookPath", "addressBookHomeSet")

    def get_address_books(self, call: Invocation) -> None:
        home_set = call.param("addressBookHomeSet", DEFAULT_ADDRESSBOOK_HOME_SET)
        request = call.protocol.collections_request(
            home_set, ResourceFamily.ADDRESSBOOK, field="addressBookHomeSet"
        )
        response = call.protocol.check_multistatus(request, call.send(request))
        call.update(
            addressBooks=[
                {
                    "href": r.href,
                    "displayName": r.display_name,
                    "description": r.description,
                }
                for r in parse_collections_response(response.body, "addressbook")
            ],
            statusCode=response.status,
        )

    def get_contacts(self, call: Invocation) -> None:
        request = call.protocol.addressbook_query_request(
            call.param("addressBookPath", ""),
            contact_filter=call.param("filter", "all"),
            search_term=call.param("searchTerm", ""),
        )
        response = call.protocol.check_multistatus(request, call.send(request))
        call.update(
            contacts=[
                {"href": r.href, "etag": r.etag, "addressData": r.data}
                for r in parse_objects_response(response.body, "addressbook")
            ],
            statusCode=response.status,
        )

    def create_contact(self, call: Invocation) -> None:
        self._put_contact(call, if_match=None)

    def update_contact(self, call: Invocation) -> None:
        self._put_contact(call, if_match=call.param("etag") or "*")

    def _put_contact(self, call: Invocation, if_match) -> None:
        addressbook_path = call.param("addressBookPath", "")
        contact_data = call.param("contactData", "")
        contact_id = call.param("contactId", "")
        if not contact_id:
            contact_id = vcard_uid(contact_data)
            if not contact_id:
                raise error.InvalidInputError(
                    "contactId is empty and contactData carries no UID",
                    field="contactId",
                )
            log.debug("contactId taken from UID %s", contact_id)

        response = call.send(
            call.protocol.contact_put_request(
                addressbook_path, contact_id, contact_data, if_match
            )
        )
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            contactId=contact_id,
            addressBookPath=addressbook_path,
            etag=response.header("ETag"),
        )

    def delete_contact(self, call: Invocation) -> None:
        addressbook_path = call.param("addressBookPath", "")
        contact_id = call.param("contactId", "")
        if not contact_id:
            raise error.InvalidInputError("contactId is empty", field="contactId")
        path = call.protocol.contact_path(addressbook_path, contact_id)
        response = call.send(call.protocol.delete_request(path))
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            contactId=contact_id,
            addressBookPath=addressbook_path,
        )
