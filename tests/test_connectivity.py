from __future__ import annotations

import subprocess

import pytest

from cellfix.connectivity import ConnectivityManager, WifiLink
from cellfix.errors import ConnectivityError

from conftest import OK


class FakeWifi:
    def __init__(self, connected_after=None, clock=None):
        self.connected_after = connected_after
        self.clock = clock
        self.joined = []

    def begin(self, ssid, password):
        self.joined.append((ssid, password))
        return True

    def is_connected(self):
        if self.connected_after is None:
            return False
        return self.clock() >= self.connected_after


def gprs_responses(creg=b"\r\n+CREG: 0,1\r\n" + OK):
    return {
        "AT+CIPSHUT": b"\r\nSHUT OK\r\n",
        "AT+CREG?": creg,
        "AT+CGATT=1": OK,
        'AT+CSTT="internet","user","secret"': OK,
        "AT+CIICR": OK,
        "AT+CIFSR": b"\r\n10.42.7.19\r\n",
    }


def make_manager(session, clock, wifi=None, registration_timeout=60.0):
    return ConnectivityManager(
        session,
        wifi=wifi,
        poll_interval=0.5,
        registration_timeout=registration_timeout,
        sleep=clock.sleep,
        clock=clock,
    )


def test_primary_connects_within_wait(make_session, clock):
    session, ser = make_session()
    wifi = FakeWifi(connected_after=2.0, clock=clock)
    manager = make_manager(session, clock, wifi)

    assert manager.connect_primary("home", "pw", max_wait=10)
    assert wifi.joined == [("home", "pw")]
    assert clock.now == pytest.approx(2.0)


def test_primary_gives_up_after_max_wait(make_session, clock):
    session, _ser = make_session()
    manager = make_manager(session, clock, FakeWifi(clock=clock))

    assert not manager.connect_primary("home", "pw", max_wait=10)
    assert clock.now == pytest.approx(10.0)


def test_primary_skipped_without_ssid(make_session, clock):
    session, _ser = make_session()
    manager = make_manager(session, clock, FakeWifi(clock=clock))
    assert not manager.connect_primary("", "", max_wait=10)
    assert clock.now == 0


def test_fallback_opens_gprs_session(make_session, clock):
    session, ser = make_session(gprs_responses())
    manager = make_manager(session, clock)

    assert manager.connect_fallback("internet", "user", "secret")
    assert ser.commands == [
        "AT+CIPSHUT",
        "AT+CREG?",
        "AT+CGATT=1",
        'AT+CSTT="internet","user","secret"',
        "AT+CIICR",
        "AT+CIFSR",
    ]


def test_fallback_waits_for_registration(make_session, clock):
    creg = [b"\r\n+CREG: 0,2\r\n" + OK, b"\r\n+CREG: 0,2\r\n" + OK, b"\r\n+CREG: 0,5\r\n" + OK]
    session, ser = make_session(gprs_responses(creg))
    manager = make_manager(session, clock)

    assert manager.connect_fallback("internet", "user", "secret")
    assert ser.count("AT+CREG?") == 3


def test_fallback_fails_when_never_registered(make_session, clock):
    session, ser = make_session(gprs_responses(b"\r\n+CREG: 0,3\r\n" + OK))
    manager = make_manager(session, clock, registration_timeout=5.0)

    assert not manager.connect_fallback("internet", "user", "secret")
    assert "AT+CGATT=1" not in ser.commands


def test_fallback_fails_without_ip(make_session, clock):
    responses = gprs_responses()
    responses["AT+CIFSR"] = b"\r\nERROR\r\n"
    session, _ser = make_session(responses)

    assert not make_manager(session, clock).connect_fallback("internet", "user", "secret")


def test_connect_prefers_wifi(make_session, clock):
    session, ser = make_session(gprs_responses())
    manager = make_manager(session, clock, FakeWifi(connected_after=0.0, clock=clock))

    assert manager.connect("home", "pw", 10, "internet", "user", "secret") == "wifi"
    assert ser.commands == []


def test_connect_falls_back_to_gprs(make_session, clock):
    session, _ser = make_session(gprs_responses())
    manager = make_manager(session, clock, FakeWifi(clock=clock))

    assert manager.connect("home", "pw", 10, "internet", "user", "secret") == "gprs"


def test_connect_raises_when_both_fail(make_session, clock):
    responses = gprs_responses()
    responses["AT+CIICR"] = b"\r\nERROR\r\n"
    session, _ser = make_session(responses)
    manager = make_manager(session, clock, FakeWifi(clock=clock))

    with pytest.raises(ConnectivityError):
        manager.connect("home", "pw", 10, "internet", "user", "secret")


def test_wifi_link_uses_nmcli(monkeypatch):
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        stdout = "connected\n" if "general" in args else ""
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    link = WifiLink(interface="wlan0")

    assert link.begin("home", "pw")
    assert link.is_connected()
    assert calls[0] == ["nmcli", "device", "wifi", "connect", "home", "password", "pw", "ifname", "wlan0"]
    assert calls[1] == ["nmcli", "-t", "-f", "STATE", "general"]


def test_wifi_link_missing_nmcli(monkeypatch):
    def fake_run(args, **kwargs):
        raise FileNotFoundError("nmcli")

    monkeypatch.setattr(subprocess, "run", fake_run)
    link = WifiLink()

    assert not link.begin("home", "pw")
    assert not link.is_connected()


def test_unsolicited_registration_line_does_not_hide_status(make_session, clock):
    creg = b"\r\n+CREG: 2\r\n\r\n+CREG: 0,1\r\n" + OK
    session, ser = make_session(gprs_responses(creg))

    assert make_manager(session, clock).wait_for_network()
    assert ser.count("AT+CREG?") == 1
