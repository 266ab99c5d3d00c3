"""Unit tests for ApiRequest and RequestPreparer."""
from __future__ import annotations

import base64
from urllib.parse import parse_qs, urlsplit

import pytest

from apiclient.app.domain.preparer import RequestPreparer, build_url, merge_headers
from apiclient.app.domain.request import ApiRequest
from tests.conftest import CapturingLogger


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("cannot render parameter")


def test_url_without_parameters_is_unchanged():
    assert build_url("https://api.example.com/search?x=1", {}) == "https://api.example.com/search?x=1"


def test_query_parameters_are_form_encoded():
    url = build_url("https://api.example.com/search", {"search": "hello world & test", "page": "1"})

    assert " " not in url
    query = urlsplit(url).query
    assert query.count("&") == 1
    assert "search=hello+world+%26+test" in query
    assert parse_qs(query) == {"search": ["hello world & test"], "page": ["1"]}


def test_parameter_keys_are_encoded_too():
    url = build_url("https://api.example.com/", {"a key": "v"})

    assert url.endswith("?a+key=v")


def test_request_headers_override_common_headers_case_insensitively():
    merged = merge_headers(
        {"authorization": "Bearer A", "X-Common": "1"},
        {"Authorization": "Bearer B"},
    )

    assert merged == [("X-Common", "1"), ("Authorization", "Bearer B")]


def test_prepare_builds_message():
    request = ApiRequest("https://api.example.com/items", method="post")
    request.add_url_params("q", "x y")
    request.add_headers("X-Request", "r1")
    request.build_json_content({"name": "demo"})

    result = RequestPreparer().prepare(request, {"Authorization": "Bearer token+/="})

    assert result.is_success
    message = result.payload
    assert message.method == "POST"
    assert message.url == "https://api.example.com/items?q=x+y"
    assert message.header("authorization") == "Bearer token+/="
    assert message.header("X-Request") == "r1"
    assert message.body is not None
    assert message.body.content == b'{"name": "demo"}'
    assert message.body.content_type == "application/json; charset=utf-8"


def test_prepare_logs_header_count():
    logger = CapturingLogger()
    request = ApiRequest("https://api.example.com/").add_headers("A", "1", "B", "2")

    RequestPreparer(logger).prepare(request, {"C": "3"})

    level, event, fields = logger.records[-1]
    assert (level, event) == ("debug", "request_prepared")
    assert fields["header_count"] == 3


def test_prepare_failure_returns_failed_result():
    request = ApiRequest("https://api.example.com/")
    request.url_parameters["bad"] = _Unprintable()  # type: ignore[assignment]

    result = RequestPreparer().prepare(request)

    assert result.is_failed
    assert isinstance(result.error, RuntimeError)
    assert result.payload is None


def test_request_requires_absolute_url():
    with pytest.raises(ValueError, match="absolute URL"):
        ApiRequest("/relative/path")


def test_request_from_parts():
    request = ApiRequest.from_parts("https", "api.example.com", "v1/items", 8443)

    assert request.url == "https://api.example.com:8443/v1/items"
    assert request.method == "GET"


def test_odd_pairs_are_rejected():
    request = ApiRequest("https://api.example.com/")

    with pytest.raises(ValueError, match="key value pairs"):
        request.add_url_params("only-key")
    with pytest.raises(ValueError, match="key value pairs"):
        request.add_headers("a", "1", "b")


def test_combine_url_trims_slashes():
    assert ApiRequest.combine_url("https://api.example.com/", "/v1/", "items/") == "https://api.example.com/v1/items"


def test_auth_header_helpers():
    headers: dict[str, str] = {}
    ApiRequest.add_bearer_token(headers, "abc")
    assert headers["Authorization"] == "Bearer abc"

    ApiRequest.add_basic_authentication(headers, "user", "pass")
    assert headers["Authorization"] == "Basic " + base64.b64encode(b"user:pass").decode()


def test_form_and_string_builders():
    request = ApiRequest("https://api.example.com/", method="POST")

    request.build_form_content({"a": "1 2", "b": "&"})
    assert request.content.content == b"a=1+2&b=%26"
    assert request.content.content_type == "application/x-www-form-urlencoded"

    request.build_string_content("hi")
    assert request.content.content == b"hi"
    assert request.content.content_type == "text/plain; charset=utf-8"


def test_upload_builder_produces_multipart_body():
    request = ApiRequest("https://api.example.com/upload", method="POST")

    request.build_upload_content(b"file-bytes", "file", "report.txt")

    assert request.content.content_type.startswith("multipart/form-data; boundary=")
    assert b'name="file"; filename="report.txt"' in request.content.content
    assert b"file-bytes" in request.content.content
