"""Shared fixtures: canned HTTP responses and sessions that never touch the network."""

import base64
import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict


def make_response(status_code=200, body=None, headers=None, url="https://api.github.com/test"):
    """Build a real requests.Response with a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    response.url = url
    return response


def rate_limit_headers(remaining=4999, limit=5000, reset=1700000000):
    return {
        "X-RateLimit-Limit": str(limit),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset),
    }


def encode_readme(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakeSession:
    """
    Stand-in for requests.Session.

    The handler receives (method, url, kwargs) and returns a response or
    raises. Every call is recorded in order.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.handler(method, url, kwargs)

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)

    def put(self, url, **kwargs):
        return self._request("PUT", url, **kwargs)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock(1000.0)


@pytest.fixture
def sleeps():
    """Records requested retry delays instead of sleeping."""
    return []
