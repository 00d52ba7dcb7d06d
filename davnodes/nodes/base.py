"""
Batch execution shared by the DAV nodes.

A node owns a table of operations.  DAVNode.execute() validates the
credential once, then runs every input item through
compose -> send -> extract, one at a time, in input order.  It is the
only place deciding whether a failing item stops the run or is turned
into an error record.
"""
import copy
import logging
from typing import Any
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from davnodes.credentials import Credential
from davnodes.credentials import RunContext
from davnodes.host import HostProtocol
from davnodes.host import WorkItem
from davnodes.io import SyncIO
from davnodes.lib import error
from davnodes.lib.error import translate_error
from davnodes.protocol.types import DAVRequest
from davnodes.protocol.types import DAVResponse

log = logging.getLogger("davnodes")


def is_success(status: int) -> bool:
    return 200 <= status < 300


class Invocation:
    """
    One item being processed by one operation.  Gives the operation
    access to its parameters and sends requests on its behalf,
    translating transport and HTTP failures into NodeOperationError.
    url is the URL of the last request sent, if any.
    """

    def __init__(
        self,
        node: "DAVNode",
        context: RunContext,
        item_index: int,
        item: WorkItem,
        operation: str,
    ) -> None:
        self.node = node
        self.context = context
        self.item_index = item_index
        self.item = item
        self.operation = operation
        self.resource = context.host.get_node_parameter(
            "resource", item_index, node.resource
        )
        self.url: Optional[str] = None

    @property
    def protocol(self):
        return self.context.protocol

    @property
    def host(self):
        return self.context.host

    def param(self, name: str, default: Any = None) -> Any:
        return self.context.host.get_node_parameter(name, self.item_index, default)

    def send(self, request: DAVRequest) -> DAVResponse:
        """
        Execute request and check its status.

        Raises:
            NodeOperationError: the request failed; the message says which
                operation on which resource failed for which URL, and
                the original error is chained.
        """
        self.url = request.url
        try:
            response = self.context.io.execute(request)
            return self.protocol.check_response(request, response)
        except Exception as e:
            message = translate_error(
                e, request.url, self.operation, self.resource, self.node.protocol_label
            )
            log.debug("request failed: %s", message)
            raise error.NodeOperationError(
                message, item_index=self.item_index, url=request.url
            ) from e

    def update(self, **fields) -> None:
        self.item.json.update(fields)

    def target(self, exc: BaseException) -> Optional[str]:
        """The URL (or, failing that, the raw path) the failed operation was aimed at"""
        if self.url:
            return self.url
        if getattr(exc, "url", None):
            return exc.url
        for name in self.node.path_parameters:
            path = self.param(name)
            if path:
                return path
        return None

    def fail(self, exc: BaseException) -> error.NodeOperationError:
        """Wrap a fault raised outside send() with the same context send() adds"""
        url = self.target(exc)
        message = translate_error(
            exc, url, self.operation, self.resource, self.node.protocol_label
        )
        return error.NodeOperationError(message, item_index=self.item_index, url=url)


class DAVNode:
    """
    Base class of the WebDAV, CalDAV and CardDAV nodes.

    Subclasses set the labels and map every operation name to the name
    of a method taking an Invocation.
    """

    protocol_label: ClassVar[str] = "DAV"
    resource: ClassVar[str] = "resource"
    default_operation: ClassVar[Optional[str]] = None
    operations: ClassVar[Dict[str, str]] = {}
    ## parameters naming the target of an operation, for error messages
    path_parameters: ClassVar[Tuple[str, ...]] = ("path",)

    def __init__(self, io=None) -> None:
        """
        Args:
            io: SyncIOProtocol implementation to use for every run.  If
                None, each run opens (and closes) a SyncIO authenticated
                with the credential of the host.
        """
        self.io = io

    def read_credential(self, host: HostProtocol) -> Credential:
        credential = host.get_credentials()
        if isinstance(credential, Credential):
            return credential
        return Credential.from_mapping(credential or {})

    def execute(self, host: HostProtocol, io=None) -> List[WorkItem]:
        """
        Run the node over the input items of host.

        Returns one output item per input item, in input order.

        Raises:
            CredentialInvalidError: before any item is processed
            DAVError: the first failure, with item_index set, unless the
                host asks to continue on failure
        """
        items = host.get_input_data()
        credential = self.read_credential(host)
        credential.validate()

        io = io or self.io
        owns_io = io is None
        if owns_io:
            io = SyncIO(credential)
        context = RunContext.create(credential, io, host)

        results: List[WorkItem] = []
        try:
            for item_index, item in enumerate(items):
                snapshot = dict(item.json)
                try:
                    snapshot = copy.deepcopy(item.json)
                    results.append(self.dispatch(context, item_index, item))
                except Exception as e:
                    if host.continue_on_fail():
                        log.warning(
                            "%s item %i failed, continuing: %s",
                            self.protocol_label,
                            item_index,
                            e,
                        )
                        results.append(
                            WorkItem(json=snapshot, error=e, paired_item=item_index)
                        )
                        continue
                    if isinstance(e, error.DAVError):
                        e.item_index = item_index
                        raise
                    raise error.NodeOperationError(
                        str(e), item_index=item_index
                    ) from e
        finally:
            if owns_io:
                io.close()
        return results

    def dispatch(self, context: RunContext, item_index: int, item: WorkItem) -> WorkItem:
        """
        Route item to the handler of its operation.  Any fault of the
        handler comes out as a NodeOperationError carrying operation,
        resource and target; an unknown operation is reported as is.
        """
        operation = context.host.get_node_parameter(
            "operation", item_index, self.default_operation
        )
        handler_name = self.operations.get(operation)
        if handler_name is None:
            raise error.UnsupportedOperationError(
                reason="Operation %s not supported" % operation
            )
        call = Invocation(self, context, item_index, item, operation)
        try:
            getattr(self, handler_name)(call)
        except error.NodeOperationError:
            raise
        except Exception as e:
            failure = call.fail(e)
            log.debug("%s %s failed: %s", self.protocol_label, operation, failure)
            raise failure from e
        return item
