#!/usr/bin/env python
from typing import ClassVar

from .base import BaseElement
from .base import ValuedBaseElement
from davnodes.lib.namespace import ns
from davnodes.lib.namespace import nsmap_webdav


# Operations
class Propfind(BaseElement):
    tag: ClassVar[str] = ns("D", "propfind")
    nsmap = nsmap_webdav


# Components / Data
class Prop(BaseElement):
    tag: ClassVar[str] = ns("D", "prop")


# Properties
class ResourceType(BaseElement):
    tag: ClassVar[str] = ns("D", "resourcetype")


class DisplayName(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "displayname")


class GetEtag(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getetag")


class GetContentType(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontenttype")


class GetLastModified(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getlastmodified")


class GetContentLength(ValuedBaseElement):
    tag: ClassVar[str] = ns("D", "getcontentlength")
