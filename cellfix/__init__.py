"""
Cell Locator Library
Locate a device from its serving cell and report the result by SMS and email
"""

from .errors import (
    LocatorError, ConnectivityError, ModemUnresponsive, SimNotReady, CellInfoIncomplete,
    GeolocationHttpError, GeolocationParseError, ReverseGeocodeError, EmailError,
)
from .session import ModemSession, sanitize
from .cellinfo import CellInfoAcquirer, estimate_distance, is_complete
from .connectivity import ConnectivityManager, WifiLink
from .geo import GeolocationClient, ReverseGeocoder
from .alerts import AlertDispatcher, NullEmailSender, SmtpEmailSender, compose_report
from .orchestrator import NetworkSettings, ProcessOrchestrator, RunResult, RunState
from .trigger import TriggerGate

__all__ = [
    'LocatorError',
    'ConnectivityError',
    'ModemUnresponsive',
    'SimNotReady',
    'CellInfoIncomplete',
    'GeolocationHttpError',
    'GeolocationParseError',
    'ReverseGeocodeError',
    'EmailError',
    'ModemSession',
    'sanitize',
    'CellInfoAcquirer',
    'estimate_distance',
    'is_complete',
    'ConnectivityManager',
    'WifiLink',
    'GeolocationClient',
    'ReverseGeocoder',
    'AlertDispatcher',
    'NullEmailSender',
    'SmtpEmailSender',
    'compose_report',
    'NetworkSettings',
    'ProcessOrchestrator',
    'RunResult',
    'RunState',
    'TriggerGate',
]
