import pytest
import requests

import rates


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _patch(monkeypatch, response=None, exc=None):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        if exc:
            raise exc
        return response

    monkeypatch.setattr(rates.requests, "get", fake_get)
    return calls


def test_fetch_rate(monkeypatch):
    calls = _patch(monkeypatch, FakeResponse({"rates": {"IDR": 2231.4, "USD": 0.14}}))
    assert rates.fetch_rate("cny", "idr") == pytest.approx(2231.4)
    assert calls == ["https://api.exchangerate-api.com/v4/latest/CNY"]


def test_same_currency_needs_no_request(monkeypatch):
    calls = _patch(monkeypatch, exc=AssertionError("should not be called"))
    assert rates.fetch_rate("EUR", "EUR") == 1.0
    assert calls == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"exc": requests.exceptions.ConnectionError("offline")},
        {"response": FakeResponse({}, status=503)},
        {"response": FakeResponse({"rates": {"USD": 0.14}})},
        {"response": FakeResponse(ValueError("not json"))},
        {"response": FakeResponse({"rates": {"IDR": 0}})},
    ],
)
def test_fetch_rate_failures_return_none(monkeypatch, kwargs):
    _patch(monkeypatch, **kwargs)
    assert rates.fetch_rate("CNY", "IDR") is None
