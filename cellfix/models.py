"""
Data Model

Immutable values passed between the stages of one locate run.
Nothing here outlives the run that created it.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ModemResponse:
    """Sanitized text collected for a single command exchange."""

    text: str
    lines: Tuple[str, ...] = ()

    def contains(self, sentinel):
        return sentinel in self.text


@dataclass(frozen=True)
class CellIdentity:
    mcc: int
    mnc: int
    lac: int
    cid: int

    def as_tower(self):
        """Return the single-tower dict the geolocation API expects."""
        return {
            'cellId': self.cid,
            'locationAreaCode': self.lac,
            'mobileCountryCode': self.mcc,
            'mobileNetworkCode': self.mnc,
        }


@dataclass(frozen=True)
class SignalReading:
    """Signal quality code 0..31, or 99 when the modem does not know."""

    rssi_code: int
    estimated_distance_m: Optional[float] = None

    @property
    def is_known(self):
        return 0 <= self.rssi_code <= 31


@dataclass(frozen=True)
class OperatorInfo:
    numeric_code: str = ''
    name: str = ''


@dataclass(frozen=True)
class CellSurvey:
    """Everything the acquirer learned about the serving cell."""

    cell: CellIdentity
    signal: SignalReading
    operator: OperatorInfo
    warnings: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LocationFix:
    latitude: float
    longitude: float
    accuracy_m: float


@dataclass(frozen=True)
class AddressRecord:
    formatted_address: str


@dataclass(frozen=True)
class Report:
    text: str
    map_link: str
