"""
Modem Session Module

Framed command/response driver over the serial link to the modem.
The link delivers an unstructured byte stream: a response is whatever
arrives during a bounded collection window, filtered down to printable
ASCII plus line breaks, then split into lines. Interpreting sentinels
such as OK, ERROR or READY is left to the caller.
"""

import time
import logging

import serial

from .errors import ModemUnresponsive
from .models import ModemResponse

# Get logger
logger = logging.getLogger('CellLocator')

LINE_ENDING = '\r\n'
CTRL_Z = b'\x1A'

_ALLOWED_CONTROL = (0x0A, 0x0D)


def sanitize(raw):
    """
    Drop every byte outside printable ASCII except CR and LF.

    Args:
        raw: Bytes read from the serial link

    Returns:
        str: Filtered text, safe to log and parse
    """
    kept = bytes(b for b in raw if 32 <= b <= 126 or b in _ALLOWED_CONTROL)
    return kept.decode('ascii')


def split_lines(text):
    """Split sanitized text into trimmed, non-empty lines in receipt order."""
    return tuple(line.strip() for line in text.replace('\r', '\n').split('\n') if line.strip())


class ModemSession:
    """
    Single owner of the serial channel.

    Commands go out with send(), responses come back with receive().
    Only one stage may hold the session at a time; the orchestrator
    runs stages strictly one after another so this holds by construction.
    """

    def __init__(self, ser, poll_interval=0.1, sleep=time.sleep, clock=time.monotonic):
        """
        Args:
            ser: Open serial connection (pyserial Serial or compatible)
            poll_interval: Seconds between checks of the input buffer
            sleep: Blocking sleep function
            clock: Monotonic clock function
        """
        self.ser = ser
        self.poll_interval = poll_interval
        self.sleep = sleep
        self.clock = clock

    def send(self, command):
        """Write a command line and return immediately."""
        logger.debug(f"AT >> {command}")
        self._write((command + LINE_ENDING).encode('ascii', errors='replace'))

    def write(self, data):
        """Write raw payload bytes (or text) with no line ending."""
        if isinstance(data, str):
            data = data.encode('ascii', errors='replace')
        self._write(data)

    def _write(self, data):
        try:
            self.ser.write(data)
        except (serial.SerialException, OSError) as e:
            raise ModemUnresponsive(f"Serial write failed: {e}") from e

    def receive(self, timeout):
        """
        Collect everything the modem sends during the timeout window.

        Returns whatever arrived even if no sentinel was seen; silence is
        not an error at this layer.

        Args:
            timeout: Length of the collection window in seconds

        Returns:
            ModemResponse: Sanitized text and its lines
        """
        chunks = []
        deadline = self.clock() + timeout

        while self.clock() < deadline:
            try:
                waiting = self.ser.in_waiting
                chunk = self.ser.read(waiting) if waiting > 0 else b''
            except (serial.SerialException, OSError) as e:
                raise ModemUnresponsive(f"Serial read failed: {e}") from e
            if chunk:
                chunks.append(chunk)
                logger.debug(f"Modem chunk received: {chunk!r}")
            else:
                self.sleep(min(self.poll_interval, max(deadline - self.clock(), 0)))

        text = sanitize(b''.join(chunks))
        response = ModemResponse(text=text, lines=split_lines(text))
        logger.debug(f"AT << {list(response.lines)}")
        return response

    def exchange(self, command, timeout=1.0):
        """Send a command and collect its response window."""
        self.send(command)
        return self.receive(timeout)

    def settle(self, seconds):
        """Block for a fixed settle period while the modem works."""
        self.sleep(seconds)
