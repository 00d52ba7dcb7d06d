#!/usr/bin/env python
from unittest import mock

import pytest

from davnodes.credentials import Credential
from davnodes.credentials import RunContext
from davnodes.credentials import test_credential
from davnodes.lib import error
from davnodes.protocol import DAVMethod
from davnodes.protocol import DAVResponse


class TestCredential:
    def test_from_mapping(self):
        credential = Credential.from_mapping(
            {"baseUrl": " https://dav.example.com/dav/ ", "username": "bob", "password": "pw"}
        )
        assert credential.base_url == "https://dav.example.com/dav/"
        assert credential.username == "bob"
        assert credential.password == "pw"

    def test_password_not_in_repr(self):
        assert "hunter2" not in repr(Credential("https://x.example", "u", "hunter2"))

    def test_validate_returns_base_root(self):
        assert Credential("https://dav.example.com/dav/").validate() == (
            "https://dav.example.com/dav"
        )
        assert Credential("HTTP://dav.example.com").validate() == "HTTP://dav.example.com"

    @pytest.mark.parametrize("url", ["", "dav.example.com", "ftp://dav.example.com", None])
    def test_validate_refuses(self, url):
        with pytest.raises(error.CredentialInvalidError) as excinfo:
            Credential(url).validate()
        assert str(excinfo.value).startswith(
            "Invalid Base URL in credentials. Include protocol"
        )


def test_run_context():
    io = mock.MagicMock()
    host = mock.MagicMock()
    context = RunContext.create(Credential("https://dav.example.com/dav/"), io, host)
    assert context.base_root == "https://dav.example.com/dav"
    assert context.protocol.base_root == "https://dav.example.com/dav"
    with pytest.raises(AttributeError):
        context.io = None


class TestCredentialTest:
    def test_check_request_sent(self):
        io = mock.MagicMock()
        io.execute.return_value = DAVResponse(status=207, headers={}, body=b"")
        assert test_credential(Credential("https://dav.example.com/dav", "u", "p"), io) == 207
        request = io.execute.call_args.args[0]
        assert request.method == DAVMethod.PROPFIND
        assert request.url == "https://dav.example.com/dav/"
        assert request.headers["Depth"] == "0"
        io.close.assert_not_called()

    def test_refused_login(self):
        io = mock.MagicMock()
        io.execute.return_value = DAVResponse(status=401, headers={}, body=b"")
        with pytest.raises(error.AuthorizationError):
            test_credential(Credential("https://dav.example.com/dav", "u", "p"), io)

    def test_malformed_base_url_sends_nothing(self):
        io = mock.MagicMock()
        with pytest.raises(error.CredentialInvalidError):
            test_credential(Credential("dav.example.com"), io)
        io.execute.assert_not_called()
