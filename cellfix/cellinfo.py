"""
Cell Information Module

Runs the fixed AT sequence that identifies the serving cell:
liveness, SIM status, a retried registration survey, then best-effort
signal quality and operator name. The survey is retried until the
record is semantically complete, not just until the modem answers.
"""

import math
import logging

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import CellInfoIncomplete, ModemUnresponsive, SimNotReady
from .models import CellIdentity, CellSurvey, OperatorInfo, SignalReading
from .parsing import (
    is_sentinel,
    parse_int,
    parse_operator,
    parse_registration,
    parse_signal_quality,
    split_plmn,
)

# Get logger
logger = logging.getLogger('CellLocator')

RSSI_UNKNOWN = 99
DEFAULT_CARRIER_MHZ = 900.0

# Per-command collection windows in seconds
AT_TIMEOUT = 1.0
CPIN_TIMEOUT = 1.0
CREG_TIMEOUT = 1.5
CSQ_TIMEOUT = 1.0
COPS_TIMEOUT = 2.0


class _IncompleteSurvey(Exception):
    """One survey attempt came back without a usable serving-cell record."""


def is_complete(mcc, mnc, lac, cid):
    """
    Completeness predicate for a serving-cell record.

    All four fields must be present and none may be a sentinel
    such as '0000' or 'ffff' in any case.
    """
    for value in (mcc, mnc, lac, cid):
        if not value or not value.strip() or is_sentinel(value):
            return False
    return True


def rssi_to_dbm(rssi_code):
    """Map a 0..31 signal quality code to dBm (-113 dBm at 0, 2 dB per step)."""
    if not 0 <= rssi_code <= 31:
        return None
    return -113 + 2 * rssi_code


def estimate_distance(signal, freq_mhz=DEFAULT_CARRIER_MHZ):
    """
    Free-space path-loss distance estimate in metres.

    Low confidence and diagnostic only.

    Args:
        signal: Received level in dBm, or a raw code; only its magnitude is used
        freq_mhz: Assumed carrier frequency

    Returns:
        float: Distance in metres
    """
    exponent = (27.55 - 20 * math.log10(freq_mhz) + abs(signal)) / 20
    return 10 ** exponent


def signal_reading(rssi_code, freq_mhz=DEFAULT_CARRIER_MHZ):
    """Build a SignalReading; distance stays None when the level is unknown."""
    dbm = rssi_to_dbm(rssi_code)
    if dbm is None:
        return SignalReading(rssi_code=RSSI_UNKNOWN)
    return SignalReading(rssi_code=rssi_code, estimated_distance_m=estimate_distance(dbm, freq_mhz))


class CellInfoAcquirer:
    """Obtains CellIdentity, SignalReading and OperatorInfo from the modem."""

    def __init__(self, session, attempts=5, delay=2.0, freq_mhz=DEFAULT_CARRIER_MHZ):
        """
        Args:
            session: ModemSession owning the serial link
            attempts: Survey attempt budget
            delay: Seconds between survey attempts
            freq_mhz: Assumed carrier frequency for the distance estimate
        """
        self.session = session
        self.attempts = attempts
        self.delay = delay
        self.freq_mhz = freq_mhz

    def acquire(self):
        """
        Run the full acquisition sequence.

        Returns:
            CellSurvey: Serving cell, signal and operator

        Raises:
            ModemUnresponsive: AT did not return OK
            SimNotReady: SIM status is not READY
            CellInfoIncomplete: No complete record within the attempt budget
        """
        warnings = []

        self.check_alive()
        self.check_sim()
        cell, plmn = self.survey(warnings)
        signal = self.read_signal(warnings)
        operator = self.read_operator(plmn)

        if signal.estimated_distance_m is not None:
            logger.info(f"Approx. distance to cell tower: {signal.estimated_distance_m:.0f} m (rough estimate)")

        return CellSurvey(cell=cell, signal=signal, operator=operator, warnings=tuple(warnings))

    def check_alive(self):
        response = self.session.exchange('AT', AT_TIMEOUT)
        if not response.contains('OK'):
            raise ModemUnresponsive(f"No OK in response to AT: {response.text!r}")

    def check_sim(self):
        response = self.session.exchange('AT+CPIN?', CPIN_TIMEOUT)
        if not response.contains('READY'):
            raise SimNotReady(f"SIM not ready: {response.text!r}")

    def survey(self, warnings=None):
        """
        Repeat the registration survey until the serving cell is complete.

        Makes exactly `attempts` tries at most, waiting `delay` seconds
        between them.

        Returns:
            tuple: (CellIdentity with decimal identifiers, numeric operator
                code exactly as the modem reported it)
        """
        if warnings is None:
            warnings = []

        # Location info in +CREG, numeric operator format for MCC/MNC
        self.session.exchange('AT+CREG=2', AT_TIMEOUT)
        self.session.exchange('AT+COPS=3,2', AT_TIMEOUT)

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(_IncompleteSurvey),
            sleep=self.session.sleep,
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    fields = self._survey_once(attempt.retry_state.attempt_number)
        except _IncompleteSurvey:
            raise CellInfoIncomplete(
                f"Cell info incomplete after {self.attempts} attempts", attempts=self.attempts
            ) from None

        mcc, mnc, lac, cid, plmn = fields
        cell = CellIdentity(
            mcc=parse_int(mcc, 10, warnings, 'MCC'),
            mnc=parse_int(mnc, 10, warnings, 'MNC'),
            lac=parse_int(lac, 16, warnings, 'LAC'),
            cid=parse_int(cid, 16, warnings, 'CID'),
        )
        logger.info(f"Serving cell: MCC={cell.mcc} MNC={cell.mnc} LAC={cell.lac} CID={cell.cid}")
        return cell, plmn

    def _survey_once(self, attempt_number):
        creg = self.session.exchange('AT+CREG?', CREG_TIMEOUT)
        _stat, lac, cid = parse_registration(creg.lines)

        cops = self.session.exchange('AT+COPS?', COPS_TIMEOUT)
        _fmt, numeric = parse_operator(cops.lines)
        mcc, mnc = split_plmn(numeric)

        if not is_complete(mcc, mnc, lac, cid):
            logger.debug(
                f"Survey attempt {attempt_number}/{self.attempts} incomplete: "
                f"mcc={mcc!r} mnc={mnc!r} lac={lac!r} cid={cid!r}"
            )
            raise _IncompleteSurvey()
        return mcc, mnc, lac, cid, numeric.strip()

    def read_signal(self, warnings=None):
        """Best-effort signal quality; unknown readings never raise."""
        response = self.session.exchange('AT+CSQ', CSQ_TIMEOUT)
        rssi = parse_signal_quality(response.lines)

        if rssi is None or rssi_to_dbm(rssi) is None:
            message = f"Signal quality unknown ({rssi})"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
            return SignalReading(rssi_code=RSSI_UNKNOWN)

        reading = signal_reading(rssi, self.freq_mhz)
        logger.info(f"Signal quality: {rssi} ({rssi_to_dbm(rssi)} dBm)")
        return reading

    def read_operator(self, plmn=''):
        """Best-effort operator name; an empty name is not an error."""
        self.session.exchange('AT+COPS=3,0', AT_TIMEOUT)
        response = self.session.exchange('AT+COPS?', COPS_TIMEOUT)
        _fmt, name = parse_operator(response.lines)
        if name:
            logger.info(f"Operator: {name}")
        return OperatorInfo(numeric_code=plmn, name=name)
