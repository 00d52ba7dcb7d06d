"""
Sans-I/O DAV protocol implementation.

This module provides protocol-level operations without any I/O.
It builds requests and extracts responses as pure data transformations.

The protocol layer is organized into:
- types: Core data structures (DAVRequest, DAVResponse, ParsedResource)
- xml_builders: Pure functions to build XML request bodies
- xml_parsers: Pure functions to scan multi-status response bodies
- operations: High-level DAVProtocol class composing requests

Example usage:

    from davnodes.protocol import DAVProtocol, extract_resources

    protocol = DAVProtocol(base_root="https://dav.example.com")

    # Build a request (no I/O)
    request = protocol.propfind_request("/Files/", depth="1")

    # Execute via your preferred I/O (sync or mock)
    response = your_http_client.execute(request)

    # Extract records (no I/O)
    resources = extract_resources(response.body)
"""

from .types import (
    # Enums
    DAVMethod,
    ResourceFamily,
    # Request/Response
    DAVRequest,
    DAVResponse,
    # Result types
    ParsedResource,
)
from .xml_builders import (
    build_addressbook_query_body,
    build_calendar_query_body,
    build_collections_propfind_body,
    build_propfind_body,
)
from .xml_parsers import (
    extract_resource,
    extract_resources,
    parse_collections_response,
    parse_objects_response,
    parse_properties_response,
    split_responses,
)
from .operations import DAVProtocol

__all__ = [
    # Enums
    "DAVMethod",
    "ResourceFamily",
    # Request/Response
    "DAVRequest",
    "DAVResponse",
    # Result types
    "ParsedResource",
    # XML Builders
    "build_addressbook_query_body",
    "build_calendar_query_body",
    "build_collections_propfind_body",
    "build_propfind_body",
    # XML Parsers
    "extract_resource",
    "extract_resources",
    "parse_collections_response",
    "parse_objects_response",
    "parse_properties_response",
    "split_responses",
    # Protocol
    "DAVProtocol",
]
