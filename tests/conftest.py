"""
Shared pytest fixtures for aurtool tests.

HTTP traffic is intercepted with pytest-httpx; every client under test talks
to a fake AUR origin.
"""

import json

import pytest

from aurtool.api_clients import Transport
from aurtool.models import Session

BASE_URL = "https://aur.example.org"

SESSION_COOKIE = "AURSID=0123456789abcdef; path=/; HttpOnly"


def envelope(type_: str, results) -> bytes:
    """Encode an RPC response envelope."""
    return json.dumps({"type": type_, "results": results}).encode("utf-8")


def package_record(**overrides) -> dict:
    """A raw RPC package record as the AUR sends it (all strings)."""
    record = {
        "ID": "1234",
        "Name": "x264-git",
        "Version": "20110101-1",
        "CategoryID": "12",
        "Description": "Free library for encoding H264/AVC video streams",
        "URL": "http://www.videolan.org/developers/x264.html",
        "License": "GPL",
        "NumVotes": "42",
        "OutOfDate": "0",
        "URLPath": "/packages/x264-git/x264-git.tar.gz",
    }
    record.update(overrides)
    return record


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def transport():
    """Transport with a fixed user agent, closed after the test."""
    transport = Transport(user_agent="aurtool-tests/1.0", timeout=5)
    yield transport
    transport.close()


@pytest.fixture
def session():
    return Session(cookie=SESSION_COOKIE, username="tester")
