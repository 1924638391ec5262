"""Unit tests for the HTTP transport.

Covers default headers, gzip decoding, redirect handling, the absence of a
cookie jar and the mapping of transport failures to NetworkError.
"""

import gzip

import httpx
import pytest

from aurtool.api_clients import NetworkError, Transport
from aurtool.api_clients.transport import DEFAULT_USER_AGENT

from conftest import BASE_URL


class TestTransportHeaders:
    """Test headers sent with every request."""

    def test_default_user_agent(self):
        transport = Transport()
        try:
            assert transport.default_headers()["User-Agent"] == DEFAULT_USER_AGENT
            assert DEFAULT_USER_AGENT.startswith("aurtool/")
        finally:
            transport.close()

    def test_sends_user_agent_and_accept_encoding(self, httpx_mock, transport):
        httpx_mock.add_response(url=f"{BASE_URL}/rpc.php", content=b"ok")

        transport.send("GET", f"{BASE_URL}/rpc.php")

        request = httpx_mock.get_request()
        assert request.headers["User-Agent"] == "aurtool-tests/1.0"
        assert request.headers["Accept-Encoding"] == "gzip"

    def test_caller_headers_are_merged(self, httpx_mock, transport):
        httpx_mock.add_response(method="POST", url=f"{BASE_URL}/index.php")

        transport.send(
            "POST",
            f"{BASE_URL}/index.php",
            {"Cookie": "AURSID=abc", "Content-Type": "text/plain"},
            b"body",
        )

        request = httpx_mock.get_request()
        assert request.headers["Cookie"] == "AURSID=abc"
        assert request.headers["Content-Type"] == "text/plain"
        assert request.content == b"body"


class TestTransportResponses:
    """Test response decoding."""

    def test_gzip_body_is_inflated(self, httpx_mock, transport):
        """A gzip-encoded body is returned byte-identical to the plain payload."""
        payload = b'{"type":"search","results":[]}'
        httpx_mock.add_response(
            url=f"{BASE_URL}/rpc.php",
            content=gzip.compress(payload),
            headers={"Content-Encoding": "gzip"},
        )

        response = transport.send("GET", f"{BASE_URL}/rpc.php")

        assert response.content == payload
        assert response.text == payload.decode()

    def test_plain_body_is_passed_through(self, httpx_mock, transport):
        httpx_mock.add_response(url=f"{BASE_URL}/rpc.php", content=b"plain")

        response = transport.send("GET", f"{BASE_URL}/rpc.php")

        assert response.status_code == 200
        assert response.content == b"plain"
        assert not response.is_redirect

    def test_redirect_is_not_followed(self, httpx_mock, transport):
        """A 302 is returned as is so callers can read its Location."""
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/pkgsubmit.php",
            status_code=302,
            headers={"Location": "packages.php?ID=4521"},
        )

        response = transport.send("POST", f"{BASE_URL}/pkgsubmit.php", body=b"x")

        assert response.is_redirect
        assert response.headers["location"] == "packages.php?ID=4521"
        assert len(httpx_mock.get_requests()) == 1

    def test_error_status_is_not_raised(self, httpx_mock, transport):
        httpx_mock.add_response(url=f"{BASE_URL}/missing", status_code=404)

        response = transport.send("GET", f"{BASE_URL}/missing")

        assert response.status_code == 404

    def test_set_cookie_is_not_replayed(self, httpx_mock, transport):
        """Cookies from a response never reach later requests implicitly."""
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/index.php",
            status_code=302,
            headers={"Set-Cookie": "AURSID=abc; path=/"},
        )
        httpx_mock.add_response(method="GET", url=f"{BASE_URL}/rpc.php")

        transport.send("POST", f"{BASE_URL}/index.php", body=b"user=a&passwd=b")
        transport.send("GET", f"{BASE_URL}/rpc.php")

        second = httpx_mock.get_requests()[1]
        assert "Cookie" not in second.headers


class TestTransportErrors:
    """Test mapping of transport failures to NetworkError."""

    def test_connect_error(self, httpx_mock, transport):
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        with pytest.raises(NetworkError, match="Connection failed"):
            transport.send("GET", f"{BASE_URL}/rpc.php")

    def test_timeout(self, httpx_mock, transport):
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        with pytest.raises(NetworkError, match="timed out"):
            transport.send("GET", f"{BASE_URL}/rpc.php")

    def test_corrupt_gzip_body(self, httpx_mock, transport):
        httpx_mock.add_response(
            url=f"{BASE_URL}/rpc.php",
            content=b"definitely not gzip",
            headers={"Content-Encoding": "gzip"},
        )

        with pytest.raises(NetworkError, match="decompress"):
            transport.send("GET", f"{BASE_URL}/rpc.php")

    def test_cause_is_chained(self, httpx_mock, transport):
        httpx_mock.add_exception(httpx.ConnectError("refused"))

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", f"{BASE_URL}/rpc.php")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestTransportLifecycle:
    def test_context_manager_closes_client(self):
        with Transport() as transport:
            pass
        assert transport._client.is_closed
