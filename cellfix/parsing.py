"""
AT Response Parsing Module

Small tokenizers, one per response shape the modem produces:
prefix-plus-payload lines (+CREG: ..., +CSQ: ...) and the quoted,
comma-separated field lists inside them. Field lists are padded or
truncated to a fixed arity so missing trailing fields never raise.
"""

import csv
import logging
import re

# Get logger
logger = logging.getLogger('CellLocator')

IPV4_RE = re.compile(r'^\d{1,3}(?:\.\d{1,3}){3}$')

# +CREG: n,stat[,"lac","ci"]  (reply to AT+CREG?)
CREG_QUERY_RE = re.compile(r'^(\d+)\s*,\s*(\d+)(?:\s*,\s*"([^"]*)"(?:\s*,\s*"([^"]*)")?)?\s*$')
# +CREG: stat[,"lac","ci"]  (unsolicited)
CREG_URC_RE = re.compile(r'^(\d+)(?:\s*,\s*"([^"]*)"\s*,\s*"([^"]*)")?\s*$')

# Placeholders the modem reports for LAC/CI when it has no cell
SENTINELS = ('0000', 'ffff')

# +CREG stat values that mean the modem is registered
REGISTERED_STATES = {1: 'home network', 5: 'roaming'}

REGISTRATION_TEXT = {
    0: 'Not registered, not searching',
    1: 'Registered, home network',
    2: 'Not registered, searching',
    3: 'Registration denied',
    4: 'Unknown',
    5: 'Registered, roaming',
}


def find_payload(lines, prefix):
    """
    Return the text after prefix on the first line that starts with it.

    Args:
        lines: Response lines in receipt order
        prefix: Response prefix such as '+CREG:'

    Returns:
        str or None: Stripped payload, None when no line matches
    """
    for line in lines:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def split_fields(payload, arity=None):
    """
    Tokenize a comma-separated field list, unquoting quoted fields.

    Args:
        payload: Text such as '2,5,"0495","27B9"'
        arity: When given, pad with '' or truncate to this many fields

    Returns:
        list: Field strings
    """
    rows = list(csv.reader([payload], skipinitialspace=True))
    fields = [f.strip() for f in rows[0]] if rows else []
    if arity is not None:
        fields = (fields + [''] * arity)[:arity]
    return fields


def parse_int(value, base=10, warnings=None, label='value'):
    """
    Parse an integer field, treating malformed input as zero.

    A malformed value is recorded as a soft warning instead of raising,
    so a single garbled field never aborts a survey.
    """
    try:
        return int(value, base)
    except (TypeError, ValueError):
        message = f"Malformed {label} {value!r}, using 0"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return 0


def is_sentinel(value):
    """True for the placeholder values the modem reports when it has no data."""
    return value.strip().lower() in SENTINELS


def parse_registration(lines):
    """
    Parse a +CREG response into (stat, lac_hex, cid_hex).

    The query reply '+CREG: n,stat[,"lac","ci"]' is preferred over any
    unsolicited '+CREG: stat[,"lac","ci"]' line in the same window. The
    two shapes are told apart by quoting, so a truncated query reply is
    padded rather than misread. Missing parts come back as None or ''.
    """
    payloads = [line[len('+CREG:'):].strip() for line in lines if line.startswith('+CREG:')]

    for payload in payloads:
        match = CREG_QUERY_RE.match(payload)
        if match:
            _mode, stat, lac, cid = match.groups()
            return int(stat), lac or '', cid or ''

    for payload in payloads:
        match = CREG_URC_RE.match(payload)
        if match:
            stat, lac, cid = match.groups()
            return int(stat), lac or '', cid or ''

    return None, '', ''


def parse_signal_quality(lines):
    """
    Parse '+CSQ: <rssi>,<ber>' into the rssi code.

    Returns:
        int or None: 0..31, 99 for unknown, None when no usable line
    """
    payload = find_payload(lines, '+CSQ:')
    if payload is None:
        return None
    rssi, _ber = split_fields(payload, arity=2)
    try:
        return int(rssi)
    except ValueError:
        return None


def parse_operator(lines):
    """
    Parse '+COPS: <mode>[,<format>,"<oper>"]' into (format, oper).

    Returns:
        tuple: (format as int or None, operator string, '' when absent)
    """
    payload = find_payload(lines, '+COPS:')
    if payload is None:
        return None, ''
    _mode, fmt, oper = split_fields(payload, arity=3)
    try:
        fmt = int(fmt)
    except ValueError:
        fmt = None
    return fmt, oper


def split_plmn(numeric):
    """Split a numeric operator code such as '22210' into (mcc, mnc) strings."""
    numeric = numeric.strip()
    if len(numeric) < 5 or not numeric.isdigit():
        return '', ''
    return numeric[:3], numeric[3:]


def find_ip_address(lines):
    """Return the first line that looks like an IPv4 address, or None."""
    for line in lines:
        if IPV4_RE.match(line):
            return line
    return None
