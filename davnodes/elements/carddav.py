#!/usr/bin/env python
"""
CardDAV (RFC 6352) elements.  They are rendered with the CardDAV
namespace bound to the "C" prefix.
"""
from typing import ClassVar

from .base import BaseElement
from .base import NamedBaseElement
from .base import ValuedBaseElement
from davnodes.lib.namespace import ns
from davnodes.lib.namespace import nsmap_carddav


class CardDAVElement(BaseElement):
    nsmap = nsmap_carddav


# Operations
class AddressbookQuery(CardDAVElement):
    tag: ClassVar[str] = ns("CR", "addressbook-query")


# Filters
class Filter(CardDAVElement):
    tag: ClassVar[str] = ns("CR", "filter")


class PropFilter(NamedBaseElement):
    tag: ClassVar[str] = ns("CR", "prop-filter")
    nsmap = nsmap_carddav


# Conditions
class TextMatch(ValuedBaseElement):
    tag: ClassVar[str] = ns("CR", "text-match")
    nsmap = nsmap_carddav

    def __init__(
        self, value, collation: str = "i;unicode-casemap", match_type: str = "contains"
    ) -> None:
        super(TextMatch, self).__init__(value=value)

        if self.attributes is None:
            raise ValueError("Unexpected value None for self.attributes")

        self.attributes["collation"] = collation
        self.attributes["match-type"] = match_type


# Components / Data
class AddressData(CardDAVElement):
    tag: ClassVar[str] = ns("CR", "address-data")


# Properties
class AddressbookDescription(ValuedBaseElement):
    tag: ClassVar[str] = ns("CR", "addressbook-description")
    nsmap = nsmap_carddav


class SupportedAddressData(CardDAVElement):
    tag: ClassVar[str] = ns("CR", "supported-address-data")
