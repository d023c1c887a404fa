"""
Error Taxonomy

Every failure a locate run can end with. Library code raises these;
the orchestrator catches them and marks the run as failed.
"""


class LocatorError(Exception):
    """Base class for all locate-run failures."""

    error_code = 'LOCATOR_ERROR'


class ConnectivityError(LocatorError):
    """Neither Wi-Fi nor the cellular packet-data fallback came up."""

    error_code = 'CONNECTIVITY_ERROR'


class ModemUnresponsive(LocatorError):
    """The modem did not answer an AT command with OK."""

    error_code = 'MODEM_UNRESPONSIVE'


class SimNotReady(LocatorError):
    """SIM status query did not report READY."""

    error_code = 'SIM_NOT_READY'


class CellInfoIncomplete(LocatorError):
    """Cell survey never produced a complete serving-cell record."""

    error_code = 'CELL_INFO_INCOMPLETE'

    def __init__(self, message, attempts=0):
        super().__init__(message)
        self.attempts = attempts


class GeolocationHttpError(LocatorError):
    """Geolocation request failed in transport or returned a non-200 status."""

    error_code = 'GEOLOCATION_HTTP_ERROR'

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class GeolocationParseError(LocatorError):
    """Geolocation reply was not JSON or lacked location or accuracy."""

    error_code = 'GEOLOCATION_PARSE_ERROR'


class ReverseGeocodeError(LocatorError):
    """Address lookup failed or returned no results."""

    error_code = 'REVERSE_GEOCODE_ERROR'


class EmailError(LocatorError):
    """The email collaborator could not deliver the report."""

    error_code = 'EMAIL_ERROR'
