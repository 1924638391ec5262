"""Unit tests for AUR login and session resolution.

Session resolution order:
1. A supplied cookie (text or file) when no username is given
2. The stored session when no username is given
3. A fresh login, prompting for missing credentials
"""

from unittest.mock import Mock
from urllib.parse import parse_qs

import pytest

from aurtool.api_clients import AuthenticationError, NetworkError, SessionAPIClient
from aurtool.storage import SessionStore

from conftest import BASE_URL, SESSION_COOKIE

LOGIN_URL = f"{BASE_URL}/index.php"


@pytest.fixture
def client(transport):
    return SessionAPIClient(transport, base_url=BASE_URL)


def add_login_success(httpx_mock, cookie=SESSION_COOKIE):
    httpx_mock.add_response(
        method="POST",
        url=LOGIN_URL,
        status_code=302,
        headers={"Set-Cookie": cookie, "Location": "/"},
    )


class TestLogin:
    """Test the login form exchange."""

    def test_successful_login(self, httpx_mock, client):
        add_login_success(httpx_mock)

        session = client.login("tester", "s3cret&more")

        assert session is not None
        assert session.username == "tester"
        assert session.is_usable
        assert client.session is session

    def test_login_form_body(self, httpx_mock, client):
        """Credentials are sent url-encoded in a form post."""
        add_login_success(httpx_mock)

        client.login("tester", "s3cret&more")

        request = httpx_mock.get_request()
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {
            "user": ["tester"],
            "passwd": ["s3cret&more"],
        }

    def test_rejected_login_returns_none(self, httpx_mock, client):
        """A 200 page (login form shown again) means bad credentials."""
        httpx_mock.add_response(method="POST", url=LOGIN_URL, content=b"<form>")

        assert client.login("tester", "wrong") is None
        assert client.session is None

    def test_redirect_without_cookie_returns_none(self, httpx_mock, client):
        httpx_mock.add_response(
            method="POST", url=LOGIN_URL, status_code=302, headers={"Location": "/"}
        )

        assert client.login("tester", "pw") is None

    def test_cookie_without_redirect_returns_none(self, httpx_mock, client):
        httpx_mock.add_response(
            method="POST", url=LOGIN_URL, headers={"Set-Cookie": SESSION_COOKIE}
        )

        assert client.login("tester", "pw") is None


class TestResolveSession:
    """Test which session a write operation runs with."""

    def test_supplied_cookie_text(self, client):
        session = client.resolve_session(supplied_cookie="AURSID=abc")

        assert session.cookie_header == "AURSID=abc"
        assert client.session is session

    def test_supplied_cookie_file(self, client, tmp_path):
        cookie_file = tmp_path / "cookie"
        cookie_file.write_text("AURSID=fromfile; path=/\n")

        session = client.resolve_session(supplied_cookie=str(cookie_file))

        assert session.cookie_header == "AURSID=fromfile"

    def test_supplied_file_without_marker(self, client, tmp_path):
        cookie_file = tmp_path / "cookie"
        cookie_file.write_text("garbage")

        with pytest.raises(AuthenticationError):
            client.resolve_session(supplied_cookie=str(cookie_file))

    def test_supplied_cookie_unusable(self, client, tmp_path):
        with pytest.raises(AuthenticationError):
            client.resolve_session(supplied_cookie=str(tmp_path / "missing"))

    def test_stored_session_is_reused(self, client, tmp_path):
        store = SessionStore(tmp_path / "cookie")
        store.save("AURSID=stored")

        session = client.resolve_session(store=store)

        assert session.cookie_header == "AURSID=stored"

    def test_username_forces_login_over_cookie(self, httpx_mock, client):
        """An explicit username always re-authenticates, even with a cookie."""
        add_login_success(httpx_mock, "AURSID=fresh; path=/")

        session = client.resolve_session(
            supplied_cookie="AURSID=old", username="tester", password="pw"
        )

        assert session.cookie_header == "AURSID=fresh"
        assert len(httpx_mock.get_requests()) == 1

    def test_username_forces_login_over_store(self, httpx_mock, client, tmp_path):
        store = SessionStore(tmp_path / "cookie")
        store.save("AURSID=stored")
        add_login_success(httpx_mock, "AURSID=fresh; path=/")

        session = client.resolve_session(username="tester", password="pw", store=store)

        assert session.cookie_header == "AURSID=fresh"

    def test_prompt_for_missing_password(self, httpx_mock, client):
        add_login_success(httpx_mock)
        prompt = Mock(return_value=("tester", "pw"))

        session = client.resolve_session(username="tester", prompt=prompt)

        prompt.assert_called_once_with("tester")
        assert session.username == "tester"

    def test_prompt_when_nothing_is_stored(self, httpx_mock, client, tmp_path):
        add_login_success(httpx_mock)
        prompt = Mock(return_value=("tester", "pw"))

        client.resolve_session(store=SessionStore(tmp_path / "none"), prompt=prompt)

        prompt.assert_called_once_with(None)

    def test_no_credentials_and_no_prompt(self, client):
        with pytest.raises(AuthenticationError):
            client.resolve_session(username="tester")

    def test_rejected_login_raises(self, httpx_mock, client):
        httpx_mock.add_response(method="POST", url=LOGIN_URL, content=b"<form>")

        with pytest.raises(AuthenticationError, match="tester"):
            client.resolve_session(username="tester", password="wrong")

    def test_network_failure_propagates(self, httpx_mock, client):
        import httpx

        httpx_mock.add_exception(httpx.ConnectError("refused"))

        with pytest.raises(NetworkError):
            client.resolve_session(username="tester", password="pw")
