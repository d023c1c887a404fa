"""
Cloud Lookup Module

Thin request/response wrappers over the Google Geolocation and
Geocoding APIs: cell identity to coordinate, coordinate to address.
Nothing here retries; a failed lookup ends the run.
"""

import logging
from dataclasses import dataclass

import requests

from .errors import GeolocationHttpError, GeolocationParseError, ReverseGeocodeError
from .models import AddressRecord, LocationFix

# Get logger
logger = logging.getLogger('CellLocator')

GEOLOCATION_URL = 'https://www.googleapis.com/geolocation/v1/geolocate'
GEOCODE_URL = 'https://maps.googleapis.com/maps/api/geocode/json'
USER_AGENT = 'cell-locator/1.0'


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 20.0


class GoogleApiClient:
    """Shared session, key and timeouts for the Google endpoints."""

    def __init__(self, api_key, url, timeout=None, session=None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout or TimeoutConfig()
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def _request(self, method, params=None, json=None):
        query = {'key': self.api_key}
        if params:
            query.update(params)
        return self.session.request(
            method=method,
            url=self.url,
            params=query,
            json=json,
            headers={'User-Agent': USER_AGENT, 'Accept': 'application/json'},
            timeout=(self.timeout.connect, self.timeout.read),
        )


class GeolocationClient(GoogleApiClient):
    def __init__(self, api_key, url=GEOLOCATION_URL, timeout=None, session=None):
        super().__init__(api_key, url, timeout, session)

    def locate(self, cell):
        """
        Resolve a serving cell to a coordinate.

        Args:
            cell: CellIdentity of the serving cell

        Returns:
            LocationFix: Latitude, longitude and accuracy radius

        Raises:
            GeolocationHttpError: Transport failure or non-200 status
            GeolocationParseError: Body is not JSON or lacks a field
        """
        payload = {'cellTowers': [cell.as_tower()]}
        logger.debug(f"Geolocation request: {payload}")

        try:
            response = self._request('POST', json=payload)
        except requests.RequestException as e:
            raise GeolocationHttpError(f"Geolocation request failed: {e}") from e

        if response.status_code != 200:
            raise GeolocationHttpError(
                f"Geolocation HTTP status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
            fix = LocationFix(
                latitude=float(body['location']['lat']),
                longitude=float(body['location']['lng']),
                accuracy_m=float(body['accuracy']),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise GeolocationParseError(f"Malformed geolocation response: {e}") from e

        return fix


class ReverseGeocoder(GoogleApiClient):
    def __init__(self, api_key, url=GEOCODE_URL, timeout=None, session=None):
        super().__init__(api_key, url, timeout, session)

    def reverse_geocode(self, fix):
        """
        Resolve a coordinate to the first formatted address.

        Raises:
            ReverseGeocodeError: Transport failure, non-200 status,
                malformed body or no results
        """
        latlng = f"{fix.latitude},{fix.longitude}"

        try:
            response = self._request('GET', params={'latlng': latlng})
        except requests.RequestException as e:
            raise ReverseGeocodeError(f"Geocode request failed: {e}") from e

        if response.status_code != 200:
            raise ReverseGeocodeError(f"Geocode HTTP status: {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ReverseGeocodeError("Invalid JSON in geocode response") from e

        try:
            address = body['results'][0]['formatted_address']
        except (KeyError, IndexError, TypeError) as e:
            status = body.get('status') if isinstance(body, dict) else None
            raise ReverseGeocodeError(f"No address in geocode response (status={status})") from e

        return AddressRecord(formatted_address=str(address))
