"""
WebDAV file operations.
"""
from davnodes.host import DEFAULT_MIME_TYPE
from davnodes.lib import error
from davnodes.lib.url import file_name_from_path
from davnodes.protocol.xml_parsers import parse_properties_response

from .base import DAVNode
from .base import Invocation
from .base import is_success


def _format_properties(resources):
    return [
        {
            "href": r.href,
            "contentType": r.content_type,
            "lastModified": r.last_modified,
            "contentLength": r.content_length,
            "isCollection": r.is_collection,
            "etag": r.etag,
        }
        for r in resources
    ]


class FileNode(DAVNode):
    """Download, upload, inspect and organize files on a WebDAV server."""

    protocol_label = "WebDAV"
    resource = "file"
    default_operation = "get"
    operations = {
        "get": "download",
        "put": "upload",
        "propfind": "get_properties",
        "mkcol": "create_directory",
        "delete": "delete",
        "move": "move",
        "copy": "copy",
    }

    def download(self, call: Invocation) -> None:
        path = call.param("path", "")
        property_name = call.param("binaryPropertyName", "data")

        request = call.protocol.get_request(path)
        response = call.protocol.check_download(request, call.send(request))

        file_name = file_name_from_path(path)
        content_type = response.header("Content-Type")
        call.item.binary[property_name] = call.host.wrap_buffer_as_binary_output(
            response.body, file_name, content_type
        )
        call.update(
            contentType=content_type,
            contentLength=response.header("Content-Length"),
            lastModified=response.header("Last-Modified"),
            etag=response.header("ETag"),
            fileName=file_name,
            statusCode=response.status,
        )

    def upload(self, call: Invocation) -> None:
        path = call.param("path", "")
        if call.param("binaryData", False):
            property_name = call.param("binaryPropertyName", "data")
            binary = call.item.binary.get(property_name)
            if binary is None:
                raise error.MissingBinaryInputError(
                    "No binary data property %r on item %i" % (property_name, call.item_index),
                    field="binaryPropertyName",
                )
            body = call.host.read_buffer_for_input_property(call.item_index, property_name)
            content_type = call.param("contentType", None) or binary.mime_type
        else:
            body = call.param("fileContent", "")
            content_type = call.param("contentType", DEFAULT_MIME_TYPE)
        content_type = content_type or DEFAULT_MIME_TYPE

        response = call.send(call.protocol.put_request(path, body, content_type))
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            path=path,
            contentType=content_type,
        )

    def get_properties(self, call: Invocation) -> None:
        path = call.param("path", "/")
        depth = call.param("depth", "1")

        request = call.protocol.propfind_request(path, depth)
        response = call.protocol.check_multistatus(request, call.send(request))
        call.update(
            properties=_format_properties(parse_properties_response(response.body)),
            statusCode=response.status,
        )

    def create_directory(self, call: Invocation) -> None:
        path = call.param("path", "")
        response = call.send(call.protocol.mkcol_request(path))
        call.update(success=response.status == 201, statusCode=response.status, path=path)

    def delete(self, call: Invocation) -> None:
        path = call.param("path", "")
        response = call.send(call.protocol.delete_request(path))
        call.update(
            success=is_success(response.status), statusCode=response.status, path=path
        )

    def move(self, call: Invocation) -> None:
        self._transfer(call, call.protocol.move_request)

    def copy(self, call: Invocation) -> None:
        self._transfer(call, call.protocol.copy_request)

    def _transfer(self, call: Invocation, compose) -> None:
        path = call.param("path", "")
        destination = call.param("destination", "")
        overwrite = bool(call.param("overwrite", False))

        response = call.send(compose(path, destination, overwrite))
        call.update(
            success=is_success(response.status),
            statusCode=response.status,
            sourcePath=path,
            destinationPath=destination,
        )
