"""
The host side of a run: input items, node parameters, the credential
and binary buffers.

Workflow hosts implement HostProtocol.  LocalHost is an in-memory
implementation for scripts and tests.
"""
import mimetypes
import os
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Protocol
from typing import runtime_checkable
from typing import Union

from davnodes.lib import error

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class BinaryRef:
    """A binary payload attached to a work item."""

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE
    file_name: Optional[str] = None
    file_extension: Optional[str] = None
    file_size: int = 0


@dataclass
class WorkItem:
    """
    One input record.  On success the node appends its results to json
    (and binary).  A failed item is replaced in the output by an error
    record: the original json, the error and paired_item pointing back to
    the input position.
    """

    json: Dict[str, Any] = field(default_factory=dict)
    binary: Dict[str, BinaryRef] = field(default_factory=dict)
    error: Optional[BaseException] = None
    paired_item: Optional[int] = None

    @classmethod
    def objectify(cls, item: Union["WorkItem", Mapping[str, Any], None]) -> "WorkItem":
        if isinstance(item, WorkItem):
            return item
        if item is None:
            return cls()
        if "json" in item or "binary" in item:
            return cls(json=dict(item.get("json") or {}), binary=dict(item.get("binary") or {}))
        return cls(json=dict(item))


@runtime_checkable
class HostProtocol(Protocol):
    """What a node needs from the workflow host."""

    def get_input_data(self) -> List[WorkItem]:
        ...

    def get_node_parameter(self, name: str, item_index: int, default: Any = None) -> Any:
        ...

    def get_credentials(self) -> Any:
        ...

    def continue_on_fail(self) -> bool:
        ...

    def read_buffer_for_input_property(self, item_index: int, property_name: str) -> bytes:
        ...

    def wrap_buffer_as_binary_output(
        self, data: bytes, file_name: Optional[str], mime_type: Optional[str]
    ) -> BinaryRef:
        ...


class LocalHost:
    """
    In-memory host.

    Parameters are looked up in a plain dict.  A callable value is
    called with (item_index, item) so that parameters can vary per item,
    the way expressions do in a workflow.

    Example:
        host = LocalHost(
            items=[{"name": "a"}, {"name": "b"}],
            parameters={
                "operation": "delete",
                "path": lambda i, item: "/Files/%s.txt" % item.json["name"],
            },
            credentials=Credential("https://dav.example.com", "alice", "secret"),
        )
    """

    def __init__(
        self,
        items: Optional[List[Union[WorkItem, Mapping[str, Any]]]] = None,
        parameters: Optional[Dict[str, Any]] = None,
        credentials: Any = None,
        continue_on_fail: bool = False,
    ) -> None:
        self.items = [WorkItem.objectify(x) for x in (items or [WorkItem()])]
        self.parameters = parameters or {}
        self.credentials = credentials
        self._continue_on_fail = continue_on_fail

    def get_input_data(self) -> List[WorkItem]:
        return self.items

    def get_node_parameter(self, name: str, item_index: int, default: Any = None) -> Any:
        if name not in self.parameters:
            return default
        value = self.parameters[name]
        if callable(value):
            value = value(item_index, self.items[item_index])
        return value

    def get_credentials(self) -> Any:
        return self.credentials

    def continue_on_fail(self) -> bool:
        return self._continue_on_fail

    def read_buffer_for_input_property(self, item_index: int, property_name: str) -> bytes:
        binary = self.items[item_index].binary.get(property_name)
        if binary is None:
            raise error.MissingBinaryInputError(
                "item has no binary property %r" % property_name,
                field="binaryPropertyName",
            )
        return binary.data

    def wrap_buffer_as_binary_output(
        self, data: bytes, file_name: Optional[str], mime_type: Optional[str]
    ) -> BinaryRef:
        if not mime_type and file_name:
            mime_type = mimetypes.guess_type(file_name)[0]
        extension = os.path.splitext(file_name)[1].lstrip(".") if file_name else ""
        return BinaryRef(
            data=data,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            file_name=file_name,
            file_extension=extension or None,
            file_size=len(data),
        )
