# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportUnknownVariableType=false, reportMissingParameterType=false
# pyright: reportUnknownArgumentType=false
from unittest.mock import Mock

import pytest

from shuttle.networking.client import HttpClient
from shuttle.networking.config import HttpClientConfig
from shuttle.networking.errors import (
    ConfigurationError,
    InvalidRequestError,
    RequestTimeoutError,
    TransportError,
)
from shuttle.networking.options import HttpAuth, TransportOption
from shuttle.networking.put_data import PutData
from shuttle.networking.transport import RawResponse, TransportFailure
from shuttle.networking.types import Err, Ok


def _ok(body: bytes = b"ok", status: int = 200, **kwargs):
    return Ok(
        RawResponse(body=body, status_code=status, **kwargs),
        meta={"status_code": status},
    )


@pytest.fixture
def transport():
    transport = Mock()
    transport.execute.return_value = _ok()
    return transport


@pytest.fixture
def client(transport):
    return HttpClient(
        HttpClientConfig(user_agent="TestAgent/1.0"), transport=transport
    )


def _sent_options(transport):
    transport.execute.assert_called_once()
    return transport.execute.call_args[0][0]


def test_get_resolves_query_and_returns_response(client, transport):
    response = client.get("http://example.com/search", {"q": "abc"})

    options = _sent_options(transport)
    assert options.method == "GET"
    assert options.url == "http://example.com/search?q=abc"
    assert options.post_body is None
    assert options.put_body is None
    assert response.status_code == 200
    assert response.body == "ok"
    assert str(response) == "ok"


def test_get_and_delete_never_attach_a_body(client, transport):
    client.get("http://example.com")
    client.delete("http://example.com/item", "id=4")

    for call in transport.execute.call_args_list:
        options = call[0][0]
        assert options.post_body is None
        assert options.put_body is None
    last = transport.execute.call_args[0][0]
    assert last.url == "http://example.com/item?id=4"
    assert last.get(TransportOption.CUSTOM_REQUEST) == "DELETE"


def test_head_requests_no_body(client, transport):
    client.head("http://example.com")

    options = _sent_options(transport)
    assert options.method == "HEAD"
    assert options.get(TransportOption.NOBODY) is True


@pytest.mark.parametrize("empty", [{}, None, ""])
def test_post_requires_vars(client, transport, empty):
    with pytest.raises(InvalidRequestError, match="POST vars required"):
        client.post("http://example.com", empty)

    transport.execute.assert_not_called()


def test_post_form_encodes_mapping(client, transport):
    client.post("http://example.com", {"a": "1"})

    assert _sent_options(transport).post_body == "a=1"


def test_post_vars_not_allowed_on_get(client, transport):
    with pytest.raises(InvalidRequestError, match="POST vars not allowed"):
        client.request("GET", "http://example.com", post_vars={"a": "1"})

    transport.execute.assert_not_called()


def test_put_requires_data(client, transport):
    with pytest.raises(InvalidRequestError, match="PUT data required"):
        client.put("http://example.com", None)

    transport.execute.assert_not_called()


def test_put_wraps_string_payload_and_releases_it(client, transport):
    seen = {}

    def execute(options):
        seen["size"] = options.put_body.size
        seen["data"] = options.put_body.read()
        seen["body"] = options.put_body
        return _ok()

    transport.execute.side_effect = execute

    client.put("http://example.com/doc", "payload", {"rev": "2"})

    assert seen["size"] == 7
    assert seen["data"] == b"payload"
    assert seen["body"].closed
    assert _sent_options(transport).url == "http://example.com/doc?rev=2"


def test_put_leaves_caller_stream_open(client, transport):
    put_data = PutData.from_string("payload")

    client.put("http://example.com/doc", put_data)

    assert _sent_options(transport).put_body is put_data
    assert not put_data.closed


def test_put_data_not_allowed_on_post(client, transport):
    with pytest.raises(InvalidRequestError, match="PUT data not allowed"):
        client.request("POST", "http://example.com", {"a": "1"}, "payload")


def test_transport_failure_raises_transport_error(client, transport):
    transport.execute.return_value = Err(
        TransportFailure("Could not resolve host", 6),
        meta={"final_error": "ConnectionError"},
    )

    with pytest.raises(TransportError) as excinfo:
        client.get("http://nowhere.invalid")

    assert excinfo.value.message == "Could not resolve host"
    assert excinfo.value.code == 6
    assert client.get_request_info() == {"final_error": "ConnectionError"}


def test_transport_timeout_raises_request_timeout_error(client, transport):
    transport.execute.return_value = Err(
        TransportFailure("Operation timed out", 28)
    )

    with pytest.raises(RequestTimeoutError):
        client.get("http://example.com")


def test_transport_failure_still_releases_put_body(client, transport):
    seen = {}

    def execute(options):
        seen["body"] = options.put_body
        return Err(TransportFailure("Failed to connect", 7))

    transport.execute.side_effect = execute

    with pytest.raises(TransportError):
        client.put("http://example.com", "payload")

    assert seen["body"].closed


def test_set_header_round_trip_keeps_latest_value(client):
    client.set_header("X-Test", "1")
    assert client.get_headers() == {"X-Test": "1"}

    client.set_header("X-Test", "2")
    assert client.get_headers() == {"X-Test": "2"}


def test_headers_are_sent_with_requests(client, transport):
    client.set_headers({"Accept": "application/json"})

    client.get("http://example.com")

    headers = dict(_sent_options(transport).headers)
    assert headers == {"Accept": "application/json"}


def test_raw_option_overrides_default_timeout(client, transport):
    client.set_option("timeout", 5)

    client.get("http://example.com")

    assert _sent_options(transport).get(TransportOption.TIMEOUT) == 5
    assert client.get_options() == {TransportOption.TIMEOUT: 5}


def test_set_option_rejects_unknown_name(client):
    with pytest.raises(ConfigurationError):
        client.set_option("CURLOPT_WARP_DRIVE", True)


def test_set_auth_and_clear(client, transport):
    assert client.set_auth("user", "secret") is client
    client.get("http://example.com")
    options = transport.execute.call_args[0][0]
    assert options.get(TransportOption.HTTP_AUTH) == HttpAuth.BASIC
    assert options.get(TransportOption.USERPWD) == "user:secret"

    client.set_auth("none")
    client.get("http://example.com")
    options = transport.execute.call_args[0][0]
    assert options.get(TransportOption.HTTP_AUTH) == HttpAuth.NONE
    assert TransportOption.USERPWD not in options.transport_options


def test_structured_setters_flow_into_options(client, transport):
    client.set_referer("http://referer.example")
    client.set_follow_redirects(False)
    client.set_cookie_file("/tmp/jar.txt")
    client.set_user_agent("Custom/2.0")

    client.get("http://example.com")

    options = _sent_options(transport)
    assert options.get(TransportOption.REFERER) == "http://referer.example"
    assert options.get(TransportOption.FOLLOW_LOCATION) is False
    assert options.get(TransportOption.COOKIE_FILE) == "/tmp/jar.txt"
    assert options.get(TransportOption.COOKIE_JAR) == "/tmp/jar.txt"
    assert options.get(TransportOption.USER_AGENT) == "Custom/2.0"
    assert client.get_referer() == "http://referer.example"
    assert client.get_follow_redirects() is False
    assert client.get_cookie_file() == "/tmp/jar.txt"
    assert client.get_user_agent() == "Custom/2.0"


def test_validate_ssl_setter(client, transport):
    client.set_validate_ssl(True)

    client.get("https://example.com")

    assert client.get_validate_ssl() is True
    options = _sent_options(transport)
    assert options.get(TransportOption.SSL_VERIFY_PEER) is True


def test_user_agent_is_composed_when_not_configured(monkeypatch, transport):
    monkeypatch.setenv("USER_AGENT", "FromEnv/1.0")

    client = HttpClient(transport=transport)

    assert client.get_user_agent() == "FromEnv/1.0"


def test_debug_client_returns_trace(transport):
    transport.execute.return_value = _ok(verbose="> GET / HTTP/1.1\n")
    client = HttpClient(
        HttpClientConfig(user_agent="UA", debug=True), transport=transport
    )

    response = client.get("http://example.com")

    assert _sent_options(transport).get(TransportOption.VERBOSE) is True
    assert response.debug_trace == "> GET / HTTP/1.1\n"


def test_clients_do_not_share_debug_flags(transport):
    debug_client = HttpClient(
        HttpClientConfig(user_agent="UA", debug=True), transport=transport
    )
    quiet_client = HttpClient(
        HttpClientConfig(user_agent="UA"), transport=transport
    )

    assert debug_client.config.debug is True
    assert quiet_client.config.debug is False


def test_request_info_reflects_last_transaction(client, transport):
    client.get("http://example.com")

    assert client.get_request_info() == {"status_code": 200}


def test_out_of_range_port_raises_transport_error(client, transport):
    with pytest.raises(TransportError) as excinfo:
        client.put("https://example.com:99999/", "payload")

    assert excinfo.value.code == 3
    transport.execute.assert_not_called()


def test_set_auth_with_none_username_clears_credentials(client):
    client.set_auth("user", "secret")
    client.set_auth(None)

    assert client.config.credentials is None
