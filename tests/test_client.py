"""Tests for the serverinfo HTTP client."""

from unittest.mock import Mock, PropertyMock

import pytest
import requests

from nextcloud_exporter.client import InfoClient
from nextcloud_exporter.exceptions import (
    AuthorizationError,
    ParseError,
    RateLimitError,
    TransportError,
    UnexpectedStatusError,
)
from nextcloud_exporter.serverinfo import ServerInfo

INFO_URL = "https://cloud.example.com/ocs/v2.php/apps/serverinfo/api/v1/info?format=json"


def make_response(status_code=200, content=b""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    return response


def make_client(response=None, **kwargs):
    session = Mock()
    session.get.return_value = response
    options = {
        "username": "admin",
        "password": "secret",
        "timeout": 3.5,
        "user_agent": "nextcloud-exporter/test",
    }
    options.update(kwargs)
    return InfoClient(INFO_URL, session=session, **options), session


def test_fetch_success(server_info_body):
    """A 200 response is parsed and the connection released."""
    response = make_response(200, server_info_body)
    client, session = make_client(response)

    info = client.fetch()

    assert isinstance(info, ServerInfo)
    assert info.data.nextcloud.storage.users == 120
    session.get.assert_called_once_with(
        INFO_URL,
        headers={"User-Agent": "nextcloud-exporter/test"},
        auth=("admin", "secret"),
        timeout=3.5,
        verify=True,
    )
    response.close.assert_called_once()


def test_client_is_callable(server_info_body):
    client, session = make_client(make_response(200, server_info_body))

    info = client()

    assert info.data.nextcloud.storage.files == 58930
    assert session.get.call_count == 1


def test_token_auth_uses_header(server_info_body):
    client, session = make_client(make_response(200, server_info_body),
                                  username="", password="", auth_token="tok3n")

    client.fetch()

    kwargs = session.get.call_args.kwargs
    assert kwargs["headers"] == {"User-Agent": "nextcloud-exporter/test", "NC-Token": "tok3n"}
    assert "auth" not in kwargs


def test_token_takes_precedence_over_basic_auth(server_info_body):
    client, session = make_client(make_response(200, server_info_body), auth_token="tok3n")

    client.fetch()

    kwargs = session.get.call_args.kwargs
    assert kwargs["headers"]["NC-Token"] == "tok3n"
    assert "auth" not in kwargs


def test_tls_skip_verify(server_info_body):
    client, session = make_client(make_response(200, server_info_body), tls_skip_verify=True)

    client.fetch()

    assert session.get.call_args.kwargs["verify"] is False


def test_unauthorized():
    response = make_response(401, b"")
    client, _ = make_client(response)

    with pytest.raises(AuthorizationError):
        client.fetch()

    response.close.assert_called_once()


def test_rate_limited():
    response = make_response(429, b"")
    client, _ = make_client(response)

    with pytest.raises(RateLimitError):
        client.fetch()

    response.close.assert_called_once()


@pytest.mark.parametrize("status_code", [500, 502, 503, 404, 302])
def test_unexpected_status(status_code):
    response = make_response(status_code, b"<html>error</html>")
    client, _ = make_client(response)

    with pytest.raises(UnexpectedStatusError) as exc_info:
        client.fetch()

    assert exc_info.value.status_code == status_code
    assert str(status_code) in str(exc_info.value)
    response.close.assert_called_once()


def test_malformed_body():
    response = make_response(200, b"<html>maintenance mode</html>")
    client, _ = make_client(response)

    with pytest.raises(ParseError) as exc_info:
        client.fetch()

    assert str(exc_info.value).startswith("can not parse server info")
    response.close.assert_called_once()


@pytest.mark.parametrize("error", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("read timed out"),
    requests.exceptions.SSLError("certificate verify failed"),
])
def test_transport_error(error):
    client, session = make_client()
    session.get.side_effect = error

    with pytest.raises(TransportError) as exc_info:
        client.fetch()

    assert exc_info.value.__cause__ is error


def test_body_read_error_is_transport_error():
    response = Mock()
    response.status_code = 200
    type(response).content = PropertyMock(
        side_effect=requests.exceptions.ChunkedEncodingError("broken"))
    client, _ = make_client(response)

    with pytest.raises(TransportError):
        client.fetch()

    response.close.assert_called_once()


def test_each_fetch_is_one_request(server_info_body):
    client, session = make_client(make_response(200, server_info_body))

    client.fetch()
    client.fetch()

    assert session.get.call_count == 2


@pytest.mark.parametrize("literal", [b"NaN", b"Infinity", b"1e400"])
def test_non_finite_number_is_parse_error(server_info_body, literal):
    body = server_info_body.replace(b'"freespace": 10000000000', b'"freespace": ' + literal)
    response = make_response(200, body)
    client, _ = make_client(response)

    with pytest.raises(ParseError):
        client.fetch()

    response.close.assert_called_once()
