"""
Connectivity Module

Brings up a network path for the cloud lookups: Wi-Fi first with a
bounded wait, then a cellular packet-data session over the modem
using explicit APN credentials.
"""

import time
import logging
import subprocess

from .errors import ConnectivityError
from .parsing import REGISTERED_STATES, find_ip_address, parse_registration

# Get logger
logger = logging.getLogger('CellLocator')


class WifiLink:
    """Wi-Fi control through NetworkManager's command line client."""

    def __init__(self, interface=None, nmcli='nmcli', timeout=15):
        self.interface = interface
        self.nmcli = nmcli
        self.timeout = timeout

    def _run(self, *args):
        return subprocess.run(
            [self.nmcli, *args],
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )

    def begin(self, ssid, password):
        """Ask NetworkManager to join the network; does not wait for it."""
        args = ['device', 'wifi', 'connect', ssid]
        if password:
            args += ['password', password]
        if self.interface:
            args += ['ifname', self.interface]
        try:
            result = self._run(*args)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"nmcli connect failed: {e}")
            return False
        if result.returncode != 0:
            logger.debug(f"nmcli connect returned {result.returncode}: {result.stderr.strip()}")
        return result.returncode == 0

    def is_connected(self):
        try:
            result = self._run('-t', '-f', 'STATE', 'general')
        except (OSError, subprocess.TimeoutExpired):
            return False
        return result.stdout.strip().startswith('connected')


class ConnectivityManager:
    """Primary Wi-Fi with cellular packet-data fallback."""

    def __init__(self, session, wifi=None, poll_interval=0.5, registration_timeout=60.0,
                 sleep=time.sleep, clock=time.monotonic):
        """
        Args:
            session: ModemSession used for the fallback path
            wifi: WifiLink (or compatible), None to skip the primary path
            poll_interval: Seconds between status polls
            registration_timeout: Max seconds to wait for network registration
        """
        self.session = session
        self.wifi = wifi
        self.poll_interval = poll_interval
        self.registration_timeout = registration_timeout
        self.sleep = sleep
        self.clock = clock

    def connect_primary(self, ssid, password, max_wait=10.0):
        """
        Join Wi-Fi and poll until connected or max_wait elapses.

        Returns:
            bool: True once the link reports connected
        """
        if self.wifi is None or not ssid:
            logger.info("No Wi-Fi configured")
            return False

        self.wifi.begin(ssid, password)
        deadline = self.clock() + max_wait
        while True:
            if self.wifi.is_connected():
                return True
            if self.clock() >= deadline:
                return False
            self.sleep(self.poll_interval)

    def connect_fallback(self, apn, user='', password=''):
        """
        Reset the data context, wait for registration, open a GPRS session.

        Returns:
            bool: True when the modem reports a local IP address
        """
        # Deactivate any stale PDP context
        self.session.exchange('AT+CIPSHUT', 2.0)

        if not self.wait_for_network():
            logger.warning("Modem did not register on the network")
            return False

        steps = [
            ('AT+CGATT=1', 'OK', 5.0),
            (f'AT+CSTT="{apn}","{user}","{password}"', 'OK', 2.0),
            ('AT+CIICR', 'OK', 10.0),
        ]
        for command, sentinel, timeout in steps:
            response = self.session.exchange(command, timeout)
            if not response.contains(sentinel):
                logger.warning(f"{command.split('=')[0]} failed: {response.text.strip()!r}")
                return False

        response = self.session.exchange('AT+CIFSR', 2.0)
        address = find_ip_address(response.lines)
        if address is None:
            logger.warning("No IP address assigned")
            return False
        logger.info(f"GPRS local address: {address}")
        return True

    def wait_for_network(self):
        """Poll +CREG until registered (home or roaming) or the timeout elapses."""
        deadline = self.clock() + self.registration_timeout
        while True:
            response = self.session.exchange('AT+CREG?', 1.0)
            stat, _lac, _cid = parse_registration(response.lines)
            if stat in REGISTERED_STATES:
                logger.info(f"Registered on network ({REGISTERED_STATES[stat]})")
                return True
            if self.clock() >= deadline:
                return False
            self.sleep(self.poll_interval)

    def connect(self, ssid, password, max_wait, apn, user='', apn_password=''):
        """
        Try Wi-Fi, then GPRS.

        Returns:
            str: 'wifi' or 'gprs'

        Raises:
            ConnectivityError: Both paths failed
        """
        logger.info("Connecting to WiFi...")
        if self.connect_primary(ssid, password, max_wait):
            logger.info("WiFi connected.")
            return 'wifi'

        logger.info("WiFi not available, trying GPRS...")
        if self.connect_fallback(apn, user, apn_password):
            logger.info("GPRS connected.")
            return 'gprs'

        raise ConnectivityError("GPRS connection failed")
