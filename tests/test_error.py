#!/usr/bin/env python
import pytest
import requests

from davnodes.lib import error
from davnodes.lib.error import find_status
from davnodes.lib.error import translate_error
from davnodes.protocol.types import DAVResponse

URL = "https://dav.example.com/remote.php/dav/cal/evt-1.ics"
BASE = 'CalDAV createEvent on calendar: "%s"' % URL


def translate(exc):
    return translate_error(exc, URL, "createEvent", "calendar", "CalDAV")


class TestTranslateError:
    def test_invalid_url(self):
        exc = error.TransportError(url=URL, reason="Invalid URL 'x': No scheme supplied")
        message = translate(exc)
        assert message.startswith("Invalid URL for %s." % BASE)
        assert "auto-encoded" in message

    @pytest.mark.parametrize(
        "code,start",
        [
            ("ENOTFOUND", "Host not found for"),
            ("ECONNREFUSED", "Connection refused for"),
            ("ETIMEDOUT", "Connection timed out for"),
        ],
    )
    def test_transport_codes(self, code, start):
        message = translate(error.TransportError(url=URL, reason="boom", code=code))
        assert message.startswith("%s %s." % (start, BASE))

    def test_http_status(self):
        response = DAVResponse(status=412, headers={}, body=b"")
        exc = error.HttpStatusError(
            url=URL, reason=response.reason, status=412, response=response
        )
        assert translate(exc) == "HTTP 412 Precondition Failed for %s." % BASE

    def test_http_status_on_cause(self):
        inner = requests.exceptions.HTTPError("boom")
        inner.response = requests.Response()
        inner.response.status_code = 503
        try:
            try:
                raise inner
            except requests.exceptions.HTTPError as e:
                raise RuntimeError("wrapped") from e
        except RuntimeError as e:
            outer = e
        assert find_status(outer) == (503, None)
        assert translate(outer) == "HTTP 503 for %s." % BASE

    def test_fallback(self):
        assert translate(ValueError("odd")) == "odd (%s)" % BASE
        assert translate(ValueError()) == "ValueError (%s)" % BASE

    def test_context_always_present(self):
        for exc in (
            ValueError("x"),
            error.TransportError(url=URL, reason="x", code="ENOTFOUND"),
            error.HttpStatusError(url=URL, reason="Nope", status=500),
        ):
            message = translate(exc)
            assert "createEvent" in message
            assert "calendar" in message
            assert URL in message


class TestErrorHierarchy:
    def test_input_errors(self):
        for cls in (
            error.InvalidPathError,
            error.CrossOriginError,
            error.MissingBinaryInputError,
        ):
            assert issubclass(cls, error.InvalidInputError)
        assert issubclass(error.AuthorizationError, error.HttpStatusError)

    def test_every_error_carries_item_index(self):
        exc = error.NodeOperationError("failed", item_index=3, url=URL)
        assert exc.item_index == 3
        assert str(exc) == "failed"
        assert error.InvalidInputError("bad", field="path").item_index is None

    def test_credential_message(self):
        exc = error.CredentialInvalidError(reason="Invalid Base URL in credentials.")
        assert str(exc) == "Invalid Base URL in credentials."
