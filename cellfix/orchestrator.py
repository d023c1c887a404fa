"""
Process Orchestrator

Sequences one locate run: connect, read the serving cell, geolocate,
reverse geocode, dispatch. The first failing stage ends the run; the
remaining stages are skipped and nothing is sent.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .alerts import compose_report
from .errors import LocatorError
from .models import AddressRecord, CellSurvey, LocationFix, Report

# Get logger
logger = logging.getLogger('CellLocator')


class RunState(enum.Enum):
    IDLE = 'Idle'
    CONNECTING = 'Connecting'
    ACQUIRING_CELL_INFO = 'AcquiringCellInfo'
    GEOLOCATING = 'Geolocating'
    REVERSE_GEOCODING = 'ReverseGeocoding'
    DISPATCHING = 'Dispatching'
    DONE = 'Done'
    FAILED = 'Failed'


@dataclass(frozen=True)
class NetworkSettings:
    ssid: str = ''
    password: str = ''
    max_wait: float = 10.0
    apn: str = ''
    apn_user: str = ''
    apn_password: str = ''


@dataclass
class RunResult:
    state: RunState
    failed_stage: Optional[RunState] = None
    error: Optional[LocatorError] = None
    network: Optional[str] = None
    survey: Optional[CellSurvey] = None
    fix: Optional[LocationFix] = None
    address: Optional[AddressRecord] = None
    report: Optional[Report] = None
    trail: List[str] = field(default_factory=list)

    @property
    def ok(self):
        return self.state is RunState.DONE


class ProcessOrchestrator:
    """Runs the locate pipeline once per trigger."""

    def __init__(self, connectivity, acquirer, geolocator, geocoder, dispatcher, network=None):
        self.connectivity = connectivity
        self.acquirer = acquirer
        self.geolocator = geolocator
        self.geocoder = geocoder
        self.dispatcher = dispatcher
        self.network = network or NetworkSettings()
        self.state = RunState.IDLE
        # Last dispatched report; cleared at the start of every run
        self.current_report = None

    def _status(self, result, message, level=logging.INFO):
        logger.log(level, message)
        result.trail.append(message)

    def _enter(self, result, state, message):
        self.state = state
        self._status(result, message)

    def run(self):
        """
        Execute one run to completion or first failure.

        Returns:
            RunResult: Final state, intermediate values and status trail
        """
        self.current_report = None
        self.state = RunState.IDLE
        result = RunResult(state=RunState.IDLE)
        self._status(result, "=== Process started ===")

        try:
            self._enter(result, RunState.CONNECTING, "Connecting...")
            net = self.network
            result.network = self.connectivity.connect(
                net.ssid, net.password, net.max_wait, net.apn, net.apn_user, net.apn_password
            )

            self._enter(result, RunState.ACQUIRING_CELL_INFO, "Getting cell info...")
            result.survey = self.acquirer.acquire()
            cell = result.survey.cell
            self._status(result, f"Cell info retrieved: MCC={cell.mcc} MNC={cell.mnc} LAC={cell.lac} CID={cell.cid}")

            self._enter(result, RunState.GEOLOCATING, "Getting location from Google...")
            result.fix = self.geolocator.locate(cell)
            self._status(
                result,
                f"Location info retrieved: {result.fix.latitude},{result.fix.longitude} "
                f"(Accuracy: {result.fix.accuracy_m}m)",
            )

            self._enter(result, RunState.REVERSE_GEOCODING, "Getting address from Google...")
            result.address = self.geocoder.reverse_geocode(result.fix)
            self._status(result, f"Address info retrieved: {result.address.formatted_address}")

            self._enter(result, RunState.DISPATCHING, "Dispatching report...")
            result.report = compose_report(result.survey, result.fix, result.address)
            self.current_report = result.report
            logger.debug(f"Report:\n{result.report.text}")

            self._status(result, "Sending email...")
            self.dispatcher.send_email(result.report)
            self._status(result, "Sending SMS...")
            self.dispatcher.send_sms(result.report)

        except LocatorError as e:
            result.failed_stage = self.state
            result.error = e
            self.state = RunState.FAILED
            result.state = RunState.FAILED
            self._status(
                result,
                f"{result.failed_stage.value} failed [{e.error_code}]: {e}",
                level=logging.ERROR,
            )
            return result

        self.state = RunState.DONE
        result.state = RunState.DONE
        self._status(result, "=== Process finished ===")
        return result
