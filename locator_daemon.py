#!/usr/bin/env python3
"""
Cell Locator Daemon - Main Module

Waits for a trigger, then estimates the device location from the
serving cell reported by the GSM modem, resolves it to an address with
the Google APIs and sends the report by SMS (and optionally email).
"""

import os
import sys
import logging
from logging.handlers import RotatingFileHandler

import serial

# Import configuration
from config import (
    SERIAL_PORT, SERIAL_BAUD,
    WIFI_SSID, WIFI_PASSWORD, WIFI_INTERFACE, WIFI_MAX_WAIT, WIFI_POLL_INTERVAL,
    APN, APN_USER, APN_PASSWORD, NETWORK_REGISTRATION_TIMEOUT,
    SURVEY_ATTEMPTS, SURVEY_DELAY, ASSUMED_CARRIER_MHZ,
    GOOGLE_API_KEY, GEOLOCATION_URL, GEOCODE_URL, HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT,
    PHONE_NUMBER, EMAIL_ENABLED, EMAIL_TO, EMAIL_FROM, EMAIL_PASSWORD, SMTP_SERVER, SMTP_PORT,
    TRIGGER_DEBOUNCE,
    LOG_LEVEL, LOG_TO_CONSOLE, LOG_MAX_BYTES, LOG_BACKUP_COUNT
)

# Import library modules
from cellfix.session import ModemSession
from cellfix.cellinfo import CellInfoAcquirer
from cellfix.connectivity import ConnectivityManager, WifiLink
from cellfix.geo import GeolocationClient, ReverseGeocoder, TimeoutConfig
from cellfix.alerts import AlertDispatcher, NullEmailSender, SmtpEmailSender
from cellfix.orchestrator import NetworkSettings, ProcessOrchestrator
from cellfix.trigger import TriggerGate


def setup_logging():
    """Setup rotating file logging with UTF-8 support."""
    logger = logging.getLogger('CellLocator')
    logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    log_dir = 'logs'
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'locator.log'),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if LOG_TO_CONSOLE:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def build_orchestrator(ser):
    """Wire every stage around a single modem session."""
    session = ModemSession(ser)
    timeout = TimeoutConfig(connect=HTTP_CONNECT_TIMEOUT, read=HTTP_READ_TIMEOUT)

    if EMAIL_ENABLED:
        email_sender = SmtpEmailSender(SMTP_SERVER, SMTP_PORT, EMAIL_FROM, EMAIL_PASSWORD, EMAIL_TO)
    else:
        email_sender = NullEmailSender()

    return ProcessOrchestrator(
        connectivity=ConnectivityManager(
            session,
            wifi=WifiLink(interface=WIFI_INTERFACE),
            poll_interval=WIFI_POLL_INTERVAL,
            registration_timeout=NETWORK_REGISTRATION_TIMEOUT,
        ),
        acquirer=CellInfoAcquirer(
            session,
            attempts=SURVEY_ATTEMPTS,
            delay=SURVEY_DELAY,
            freq_mhz=ASSUMED_CARRIER_MHZ,
        ),
        geolocator=GeolocationClient(GOOGLE_API_KEY, url=GEOLOCATION_URL, timeout=timeout),
        geocoder=ReverseGeocoder(GOOGLE_API_KEY, url=GEOCODE_URL, timeout=timeout),
        dispatcher=AlertDispatcher(session, PHONE_NUMBER, email_sender=email_sender),
        network=NetworkSettings(
            ssid=WIFI_SSID,
            password=WIFI_PASSWORD,
            max_wait=WIFI_MAX_WAIT,
            apn=APN,
            apn_user=APN_USER,
            apn_password=APN_PASSWORD,
        ),
    )


def main():
    """Main daemon loop."""
    logger = setup_logging()

    logger.info("=" * 60)
    logger.info("Cell Locator Starting v1.0.0")
    logger.info("=" * 60)

    try:
        ser = serial.Serial(SERIAL_PORT, SERIAL_BAUD, timeout=0)
    except serial.SerialException as e:
        logger.critical(f"Cannot open modem port {SERIAL_PORT}: {e}")
        sys.exit(1)

    logger.info(f"Modem port: {SERIAL_PORT} at {SERIAL_BAUD} baud")

    orchestrator = build_orchestrator(ser)

    def run_once():
        try:
            return orchestrator.run()
        except Exception as e:
            logger.error(f"Run error: {e}", exc_info=True)
            return None

    gate = TriggerGate(run_once, debounce=TRIGGER_DEBOUNCE)

    try:
        while True:
            logger.info("Ready. Press Enter to start process.")
            line = sys.stdin.readline()
            if not line:
                break
            gate.fire()

    except KeyboardInterrupt:
        logger.info("Daemon stopped by user (Ctrl+C)")
    finally:
        logger.info("Closing connections...")
        orchestrator.geolocator.close()
        orchestrator.geocoder.close()
        ser.close()
        logger.info("Cell Locator stopped")


if __name__ == "__main__":
    main()
