"""Tests for status classification and the per-call transport."""

from __future__ import annotations

import pytest
import requests

from jsonbucket import (
    ObjectNotFoundError,
    Outcome,
    RedirectUnsupportedError,
    StoreError,
    classify,
)
from jsonbucket.http import HttpTransport, TransportResponse, check_response
from jsonbucket.signing import SignedRequest
from tests.fakes import FakeHTTPResponse


def _request(method: str = "GET") -> SignedRequest:
    return SignedRequest(method=method, url="http://h/b/Foo/1", path="Foo/1")


@pytest.mark.parametrize(
    "status,outcome",
    [
        (200, Outcome.SUCCESS),
        (204, Outcome.SUCCESS),
        (299, Outcome.SUCCESS),
        (301, Outcome.REDIRECT_UNSUPPORTED),
        (307, Outcome.REDIRECT_UNSUPPORTED),
        (404, Outcome.NOT_FOUND),
        (400, Outcome.STORE_ERROR),
        (403, Outcome.STORE_ERROR),
        (409, Outcome.STORE_ERROR),
        (500, Outcome.STORE_ERROR),
        (100, Outcome.STORE_ERROR),
    ],
)
def test_classify(status, outcome) -> None:
    assert classify(status) is outcome


def test_check_response_passes_on_success() -> None:
    check_response("fetch", _request(), TransportResponse(status=200))


def test_check_response_not_found() -> None:
    with pytest.raises(ObjectNotFoundError) as exc:
        check_response("fetch", _request(), TransportResponse(status=404))
    assert exc.value.url == "http://h/b/Foo/1"
    assert exc.value.operation == "fetch"


def test_check_response_not_found_on_write_is_store_error() -> None:
    with pytest.raises(StoreError) as exc:
        check_response("insert", _request("PUT"), TransportResponse(status=404), not_found=False)
    assert not isinstance(exc.value, ObjectNotFoundError)
    assert exc.value.status == 404


def test_check_response_redirect() -> None:
    with pytest.raises(RedirectUnsupportedError) as exc:
        check_response(
            "fetch", _request(), TransportResponse(status=301, reason="Moved Permanently")
        )
    assert exc.value.status == 301
    assert "Redirect not supported" in str(exc.value)


def test_check_response_store_error_carries_context() -> None:
    response = TransportResponse(status=503, reason="Slow Down", body=b"<Error>busy</Error>")
    with pytest.raises(StoreError) as exc:
        check_response("delete", _request("DELETE"), response)
    err = exc.value
    assert err.verb == "DELETE"
    assert err.url == "http://h/b/Foo/1"
    assert err.status == 503
    assert err.body == "<Error>busy</Error>"
    assert "HTTP Error code: 503 Slow Down" in str(err)


def test_transport_response_content_type_is_case_insensitive() -> None:
    response = TransportResponse(status=200, headers={"content-type": "text/xml"})
    assert response.content_type == "text/xml"
    assert TransportResponse(status=200).content_type == ""


def test_send_opens_a_fresh_session_per_call(cloud_config, backend) -> None:
    transport = HttpTransport(cloud_config, session_factory=backend.session)
    backend.script(FakeHTTPResponse(200, b"one"), FakeHTTPResponse(200, b"two"))

    first = transport.send("fetch", _request())
    second = transport.send("fetch", _request())

    assert (first.body, second.body) == (b"one", b"two")
    assert len(backend.sessions) == 2
    assert backend.sessions[0] is not backend.sessions[1]
    assert all(s.closed for s in backend.sessions)


def test_send_disables_redirects_and_applies_timeouts(cloud_config, backend) -> None:
    transport = HttpTransport(cloud_config, session_factory=backend.session)
    backend.script(FakeHTTPResponse(301, reason="Moved Permanently"))

    response = transport.send("fetch", _request())

    assert response.status == 301
    (call,) = backend.calls
    assert call.allow_redirects is False
    assert call.timeout == (10.0, 10.0)


def test_send_closes_response(cloud_config, backend) -> None:
    transport = HttpTransport(cloud_config, session_factory=backend.session)
    raw = FakeHTTPResponse(200, b"{}")
    backend.script(raw)
    transport.send("fetch", _request())
    assert raw.closed


def test_head_response_body_is_not_read(cloud_config, backend) -> None:
    transport = HttpTransport(cloud_config, session_factory=backend.session)
    backend.script(FakeHTTPResponse(200, b"ignored"))
    assert transport.send("locate", _request("HEAD")).body == b""


def test_transport_failure_becomes_store_error(cloud_config, backend) -> None:
    transport = HttpTransport(cloud_config, session_factory=backend.session)
    backend.error = requests.ConnectTimeout("timed out")

    with pytest.raises(StoreError) as exc:
        transport.send("fetch", _request())

    assert exc.value.status is None
    assert exc.value.verb == "GET"
    assert "timed out" in str(exc.value)
    assert backend.sessions[0].closed
