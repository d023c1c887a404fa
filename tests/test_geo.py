from __future__ import annotations

import pytest
import requests

from cellfix.errors import GeolocationHttpError, GeolocationParseError, ReverseGeocodeError
from cellfix.geo import GeolocationClient, ReverseGeocoder
from cellfix.models import CellIdentity, LocationFix

CELL = CellIdentity(mcc=222, mnc=10, lac=1173, cid=10169)


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def fake_request(response, calls=None):
    def _request(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        return response

    return _request


def test_locate_posts_single_tower_and_parses_fix(monkeypatch):
    client = GeolocationClient("KEY")
    calls = []
    body = {"location": {"lat": 40.0, "lng": -73.0}, "accuracy": 15.0}
    monkeypatch.setattr(client.session, "request", fake_request(FakeResponse(200, body), calls))

    fix = client.locate(CELL)

    assert fix == LocationFix(40.0, -73.0, 15.0)
    assert calls[0]["method"] == "POST"
    assert calls[0]["params"] == {"key": "KEY"}
    assert calls[0]["json"] == {
        "cellTowers": [
            {"cellId": 10169, "locationAreaCode": 1173, "mobileCountryCode": 222, "mobileNetworkCode": 10}
        ]
    }


def test_locate_non_200_is_http_error(monkeypatch):
    client = GeolocationClient("KEY")
    monkeypatch.setattr(client.session, "request", fake_request(FakeResponse(403, {"error": {}})))

    with pytest.raises(GeolocationHttpError) as excinfo:
        client.locate(CELL)
    assert excinfo.value.status_code == 403


def test_locate_transport_failure_is_http_error(monkeypatch):
    client = GeolocationClient("KEY")

    def boom(**_kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(client.session, "request", boom)
    with pytest.raises(GeolocationHttpError):
        client.locate(CELL)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, raises_json=True),
        FakeResponse(200, {"accuracy": 10.0}),
        FakeResponse(200, {"location": {"lat": "north", "lng": 1.0}, "accuracy": 10.0}),
        FakeResponse(200, {"location": {"lat": 1.0, "lng": 1.0}}),
        FakeResponse(200, None),
    ],
)
def test_locate_malformed_body_is_parse_error(monkeypatch, response):
    client = GeolocationClient("KEY")
    monkeypatch.setattr(client.session, "request", fake_request(response))

    with pytest.raises(GeolocationParseError):
        client.locate(CELL)


def test_reverse_geocode_returns_first_address(monkeypatch):
    geocoder = ReverseGeocoder("KEY")
    calls = []
    body = {"results": [{"formatted_address": "1 Main St"}, {"formatted_address": "Town"}], "status": "OK"}
    monkeypatch.setattr(geocoder.session, "request", fake_request(FakeResponse(200, body), calls))

    address = geocoder.reverse_geocode(LocationFix(40.0, -73.0, 15.0))

    assert address.formatted_address == "1 Main St"
    assert calls[0]["method"] == "GET"
    assert calls[0]["params"] == {"key": "KEY", "latlng": "40.0,-73.0"}


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(500, {}),
        FakeResponse(200, {"results": [], "status": "ZERO_RESULTS"}),
        FakeResponse(200, raises_json=True),
    ],
)
def test_reverse_geocode_failures(monkeypatch, response):
    geocoder = ReverseGeocoder("KEY")
    monkeypatch.setattr(geocoder.session, "request", fake_request(response))

    with pytest.raises(ReverseGeocodeError):
        geocoder.reverse_geocode(LocationFix(40.0, -73.0, 15.0))
