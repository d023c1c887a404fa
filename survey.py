#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cell Survey Tool
Runs the cell-information sequence once and prints what the modem reports.
Run this before starting the daemon to verify the modem, SIM and network.

Usage: python survey.py
"""

import sys
import time

import serial

from config import SERIAL_PORT, SERIAL_BAUD, SURVEY_ATTEMPTS, SURVEY_DELAY, ASSUMED_CARRIER_MHZ
from cellfix.cellinfo import CellInfoAcquirer, rssi_to_dbm
from cellfix.errors import LocatorError, ModemUnresponsive, SimNotReady
from cellfix.parsing import REGISTRATION_TEXT, find_payload, parse_registration
from cellfix.session import ModemSession


def describe_signal(rssi):
    """Human description of a +CSQ signal quality code."""
    if rssi == 99:
        return "No signal"
    if rssi >= 20:
        return f"Excellent ({rssi}, {rssi_to_dbm(rssi)} dBm)"
    if rssi >= 15:
        return f"Good ({rssi}, {rssi_to_dbm(rssi)} dBm)"
    if rssi >= 10:
        return f"Fair ({rssi}, {rssi_to_dbm(rssi)} dBm)"
    if rssi >= 5:
        return f"Poor ({rssi}, {rssi_to_dbm(rssi)} dBm)"
    return f"Very poor ({rssi}, {rssi_to_dbm(rssi)} dBm)"


def run_survey():
    """Survey the serving cell and print the result."""
    print("=" * 70)
    print("CELL SURVEY TOOL")
    print("=" * 70)
    print()

    print(f"Connecting to {SERIAL_PORT} at {SERIAL_BAUD} baud...")
    try:
        ser = serial.Serial(SERIAL_PORT, SERIAL_BAUD, timeout=0)
        time.sleep(0.5)
        print("[OK] Connected successfully!")
        print()
    except serial.SerialException as e:
        print(f"[X] Error: Cannot open serial port {SERIAL_PORT}")
        print(f"  {e}")
        print()
        print("Troubleshooting:")
        print("  - Check if the modem is connected and powered")
        print("  - Verify SERIAL_PORT in config.py")
        print("  - Close any other programs using the modem")
        sys.exit(1)

    session = ModemSession(ser)
    acquirer = CellInfoAcquirer(session, attempts=SURVEY_ATTEMPTS, delay=SURVEY_DELAY,
                                freq_mhz=ASSUMED_CARRIER_MHZ)
    issues = []
    warnings = []

    try:
        print("-" * 70)
        print("MODEM AND SIM")
        print("-" * 70)
        acquirer.check_alive()
        print("[OK] Modem responding to AT commands")
        acquirer.check_sim()
        print("[OK] SIM ready")

        print()
        print("-" * 70)
        print("NETWORK REGISTRATION")
        print("-" * 70)
        response = session.exchange('AT+CREG?', 1.5)
        stat, _lac, _cid = parse_registration(response.lines)
        print(f"Registration         : {REGISTRATION_TEXT.get(stat, find_payload(response.lines, '+CREG:') or 'Unknown')}")
        if stat not in (1, 5):
            warnings.append("Not registered to network")

        print(f"Surveying serving cell (up to {SURVEY_ATTEMPTS} attempts)...")
        cell, plmn = acquirer.survey(warnings)
        print(f"MCC / MNC            : {cell.mcc} / {cell.mnc}")
        print(f"LAC                  : {cell.lac} (0x{cell.lac:04X})")
        print(f"Cell ID              : {cell.cid} (0x{cell.cid:04X})")

        signal = acquirer.read_signal(warnings)
        print(f"Signal Strength      : {describe_signal(signal.rssi_code)}")
        if signal.estimated_distance_m is not None:
            print(f"Distance to tower    : ~{signal.estimated_distance_m:.0f} m (rough estimate)")

        operator = acquirer.read_operator(plmn)
        print(f"Network Operator     : {operator.name or 'Unknown'}")
    except ModemUnresponsive:
        issues.append("Cannot communicate with modem")
    except SimNotReady as e:
        issues.append(f"SIM card not ready ({e})")
    except LocatorError as e:
        issues.append(str(e))
    finally:
        ser.close()

    print()
    print("=" * 70)
    print("CONFIGURATION STATUS")
    print("=" * 70)
    print()

    if issues:
        print("[X] ISSUES FOUND:")
        for issue in issues:
            print(f"  • {issue}")
        print()
        print("Please fix these issues before running the locator daemon.")
    elif warnings:
        print("[!] WARNINGS:")
        for warning in warnings:
            print(f"  • {warning}")
        print()
        print("The daemon may not locate reliably until these are resolved.")
    else:
        print("[OK] ALL CHECKS PASSED!")
        print()
        print("You can now run: python locator_daemon.py")

    print()
    print("=" * 70)
    return not issues


def main():
    try:
        sys.exit(0 if run_survey() else 1)
    except KeyboardInterrupt:
        print("\n\nSurvey cancelled by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
