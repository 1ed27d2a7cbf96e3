import pytest

from shuttle.networking.errors import ConfigurationError
from shuttle.networking.options import (
    HttpAuth,
    RequestOptions,
    TransportOption,
    coerce_option_value,
    normalize_option_name,
    normalize_options,
)


@pytest.mark.parametrize(
    ("name", "option"),
    [
        ("timeout", TransportOption.TIMEOUT),
        ("CURLOPT_TIMEOUT", TransportOption.TIMEOUT),
        ("curlopt_followlocation", TransportOption.FOLLOW_LOCATION),
        ("SSL_VERIFYHOST", TransportOption.SSL_VERIFY_HOST),
        ("CAINFO", TransportOption.CA_INFO),
        ("MAXREDIRS", TransportOption.MAX_REDIRECTS),
        ("user-agent", TransportOption.USER_AGENT),
        (TransportOption.PROXY, TransportOption.PROXY),
    ],
)
def test_normalize_option_name(name, option):
    assert normalize_option_name(name) is option


@pytest.mark.parametrize("name", ["CURLOPT_HTTPHEADER", "nonsense", 42])
def test_normalize_option_name_rejects_unsupported(name):
    with pytest.raises(ConfigurationError):
        normalize_option_name(name)


@pytest.mark.parametrize(
    ("option", "value", "expected"),
    [
        (TransportOption.SSL_VERIFY_HOST, 2, True),
        (TransportOption.SSL_VERIFY_PEER, 0, False),
        (TransportOption.TIMEOUT, 2.5, 2.5),
        (TransportOption.HTTP_AUTH, "BASIC", HttpAuth.BASIC),
        (TransportOption.HTTP_AUTH, False, HttpAuth.NONE),
        (TransportOption.CUSTOM_REQUEST, "purge", "PURGE"),
        (TransportOption.REFERER, None, None),
    ],
)
def test_coerce_option_value(option, value, expected):
    assert coerce_option_value(option, value) == expected


@pytest.mark.parametrize(
    ("option", "value"),
    [
        (TransportOption.TIMEOUT, 0),
        (TransportOption.TIMEOUT, True),
        (TransportOption.VERBOSE, "yes"),
        (TransportOption.PORT, 70000),
        (TransportOption.MAX_REDIRECTS, -1),
        (TransportOption.HTTP_AUTH, "digest"),
        (TransportOption.USERPWD, 12),
    ],
)
def test_coerce_option_value_rejects_malformed(option, value):
    with pytest.raises(ConfigurationError):
        coerce_option_value(option, value)


def test_normalize_options_last_alias_wins():
    assert normalize_options({"timeout": 1, "CURLOPT_TIMEOUT": 2}) == {
        TransportOption.TIMEOUT: 2
    }


def test_request_options_parse_url_parts():
    options = RequestOptions(method="get", url="https://Example.com/a?b=1")

    assert options.method == "GET"
    assert options.scheme == "https"
    assert options.host == "example.com"
    assert options.port == 443


def test_request_options_port_prefers_explicit_then_option():
    explicit = RequestOptions(method="GET", url="http://example.com:8080/")
    from_option = RequestOptions(
        method="GET",
        url="http://example.com/",
        transport_options={TransportOption.PORT: 8081},
    )

    assert explicit.port == 8080
    assert from_option.port == 8081
