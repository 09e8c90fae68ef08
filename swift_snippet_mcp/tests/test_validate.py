from __future__ import annotations

import pytest

from swift_snippet_mcp.codegen.model import BodyMode, KeyValue, Request
from swift_snippet_mcp.codegen.validate import MalformedRequestError, require_request, validate_request


@pytest.mark.parametrize("value", [None, 42, "https://example.com", ["GET"], {"method": "GET"}])
def test_malformed_requests_are_rejected(value):
    check = validate_request(value)
    assert check.ok is False
    assert check.request is None
    assert check.errors
    with pytest.raises(MalformedRequestError) as info:
        require_request(value)
    assert info.value.errors == check.errors


def test_missing_url_is_reported():
    check = validate_request({"method": "GET", "header": []})
    assert check.errors == [{"path": "", "message": "'url' is a required property"}]


def test_wrong_field_types_carry_their_path():
    check = validate_request({"url": "https://example.com", "method": 7})
    assert [error["path"] for error in check.errors] == ["/method"]


def test_request_instance_passes_through():
    request = Request(method="GET", url="https://example.com/")
    assert validate_request(request).request is request


def test_collection_item_wrapper_is_unwrapped():
    check = validate_request({"name": "item", "request": {"url": "https://example.com/get"}})
    assert check.ok
    assert check.request.method == "GET"
    assert check.request.url == "https://example.com/get"


def test_headers_keep_order_and_case_and_disabled_flag():
    request = require_request(
        {
            "method": "post",
            "url": "https://example.com/post",
            "header": [
                {"key": "X-First", "value": "1"},
                {"key": "x-second", "value": 2, "disabled": True},
                {"value": "keyless"},
                "not-a-header",
            ],
        }
    )
    assert request.method == "POST"
    assert request.headers == (
        KeyValue(key="X-First", value="1"),
        KeyValue(key="x-second", value="2", disabled=True),
    )
    assert request.has_header("x-first")
    assert not request.has_header("X-Second")


def test_header_mapping_and_string_forms():
    mapping = require_request({"url": "https://example.com", "headers": {"Accept": "text/plain"}})
    assert mapping.headers == (KeyValue(key="Accept", value="text/plain"),)
    text = require_request({"url": "https://example.com", "header": "Accept: text/plain\nX-Id: 5"})
    assert [header.key for header in text.headers] == ["Accept", "X-Id"]


def test_structured_url_rebuilds_enabled_query():
    request = require_request(
        {
            "url": {
                "raw": "https://postman-echo.com/get?old=1",
                "query": [
                    {"key": "a", "value": "1"},
                    {"key": "b", "value": "2", "disabled": True},
                    {"key": "c", "value": None},
                ],
            }
        }
    )
    assert request.url == "https://postman-echo.com/get?a=1&c"


def test_url_parts_without_raw():
    request = require_request(
        {"url": {"protocol": "https", "host": ["postman-echo", "com"], "path": ["get"]}}
    )
    assert request.url == "https://postman-echo.com/get"


def test_scheme_is_added_and_unsafe_characters_encoded():
    assert require_request({"url": "postman-echo.com/get"}).url == "http://postman-echo.com/get"
    assert require_request({"url": "https://example.com/a b"}).url == "https://example.com/a%20b"


def test_body_modes_are_normalized():
    raw = require_request({"url": "https://e.com", "body": {"mode": "raw", "raw": "x"}})
    assert raw.body.mode is BodyMode.RAW
    assert raw.body.raw == "x"

    unknown = require_request({"url": "https://e.com", "body": {"mode": "binary-magic"}})
    assert unknown.body.mode is BodyMode.UNSUPPORTED
    assert unknown.body.declared_mode == "binary-magic"

    disabled = require_request({"url": "https://e.com", "body": {"mode": "raw", "raw": "x", "disabled": True}})
    assert disabled.body is None

    form = require_request(
        {
            "url": "https://e.com",
            "body": {
                "mode": "formdata",
                "formdata": [
                    {"key": "files", "type": "file", "src": ["/a.txt", "/b.txt"]},
                    {"key": "n", "value": 3, "type": "text", "contentType": "text/plain"},
                ],
            },
        }
    )
    assert [(param.type, param.src, param.value) for param in form.body.form] == [
        ("file", "/a.txt", None),
        ("file", "/b.txt", None),
        ("text", None, "3"),
    ]
    assert form.body.form[2].content_type == "text/plain"


def test_basic_and_bearer_auth_become_headers():
    basic = require_request(
        {
            "url": "https://example.com",
            "auth": {
                "type": "basic",
                "basic": [{"key": "username", "value": "user"}, {"key": "password", "value": "pass"}],
            },
        }
    )
    assert basic.headers == (KeyValue(key="Authorization", value="Basic dXNlcjpwYXNz"),)

    bearer = require_request({"url": "https://example.com", "auth": {"type": "bearer", "bearer": {"token": "t0k"}}})
    assert bearer.headers == (KeyValue(key="Authorization", value="Bearer t0k"),)


def test_explicit_authorization_header_wins_over_auth():
    request = require_request(
        {
            "url": "https://example.com",
            "header": [{"key": "authorization", "value": "Custom abc"}],
            "auth": {"type": "bearer", "bearer": [{"key": "token", "value": "ignored"}]},
        }
    )
    assert request.headers == (KeyValue(key="authorization", value="Custom abc"),)


def test_apikey_in_query_extends_url():
    request = require_request(
        {
            "url": "https://example.com/items",
            "auth": {
                "type": "apikey",
                "apikey": [
                    {"key": "key", "value": "api_key"},
                    {"key": "value", "value": "s3cr3t"},
                    {"key": "in", "value": "query"},
                ],
            },
        }
    )
    assert request.url == "https://example.com/items?api_key=s3cr3t"
    assert request.headers == ()


def test_noauth_is_ignored():
    request = require_request({"url": "https://example.com", "auth": {"type": "noauth"}})
    assert request.auth is None


@pytest.mark.parametrize("url", ["  ", {"raw": ""}, {"host": []}, {"raw": "   ", "host": ""}, "https://"])
def test_empty_url_is_rejected(url):
    check = validate_request({"method": "GET", "url": url})
    assert check.ok is False
    assert check.errors == [{"path": "/url", "message": "url is empty"}]
    with pytest.raises(MalformedRequestError) as info:
        require_request({"url": url})
    assert info.value.errors == [{"path": "/url", "message": "url is empty"}]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("{{baseUrl}}/users", "http://{{baseUrl}}/users"),
        ("https://Example.COM/Path", "https://Example.COM/Path"),
        ("HTTPS://{{Host}}:8443/a b?q=x y#Top", "HTTPS://{{Host}}:8443/a%20b?q=x%20y#Top"),
        ("{{baseUrl}}", "http://{{baseUrl}}"),
        ("{{baseUrl}}?page=2", "http://{{baseUrl}}?page=2"),
    ],
)
def test_scheme_and_host_are_kept_as_written(url, expected):
    assert require_request({"url": url}).url == expected


def test_null_header_falls_back_to_headers():
    request = require_request({"url": "https://example.com", "header": None, "headers": {"Accept": "*/*"}})
    assert request.headers == (KeyValue(key="Accept", value="*/*"),)

    preferred = require_request(
        {"url": "https://example.com", "header": [], "headers": {"Accept": "*/*"}}
    )
    assert preferred.headers == ()
