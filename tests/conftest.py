from __future__ import annotations

import pytest

from cellfix.session import ModemSession

OK = b"\r\nOK\r\n"


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSerial:
    """
    Scripted modem on the other end of a serial link.

    `responses` maps a command line to the bytes the modem answers with:
    plain bytes, a list consumed in order (last one repeats), or a
    callable taking the FakeSerial.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.commands = []
        self.raw_writes = []
        self.buffer = b""
        self.closed = False

    def write(self, data):
        self.raw_writes.append(data)
        if not data.endswith(b"\r\n"):
            return len(data)
        command = data.decode("ascii").strip()
        self.commands.append(command)
        reply = self.responses.get(command, b"\r\nERROR\r\n")
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if callable(reply):
            reply = reply(self)
        self.buffer += reply
        return len(data)

    @property
    def in_waiting(self):
        return len(self.buffer)

    def read(self, size=1):
        chunk, self.buffer = self.buffer[:size], self.buffer[size:]
        return chunk

    def close(self):
        self.closed = True

    def count(self, command):
        return self.commands.count(command)


def healthy_modem_responses():
    """A registered SIM800 on 222-10, serving LAC 0x0495 CID 0x27B9."""
    state = {"cops_format": 0}

    def set_numeric(_ser):
        state["cops_format"] = 2
        return OK

    def set_alpha(_ser):
        state["cops_format"] = 0
        return OK

    def cops(_ser):
        if state["cops_format"] == 2:
            return b'\r\n+COPS: 0,2,"22210"\r\n' + OK
        return b'\r\n+COPS: 0,0,"vodafone IT"\r\n' + OK

    return {
        "AT": b"AT\r\r\nOK\r\n",
        "AT+CPIN?": b"\r\n+CPIN: READY\r\n" + OK,
        "AT+CREG=2": OK,
        "AT+COPS=3,2": set_numeric,
        "AT+COPS=3,0": set_alpha,
        "AT+CREG?": b'\r\n+CREG: 2,5,"0495","27B9"\r\n' + OK,
        "AT+COPS?": cops,
        "AT+CSQ": b"\r\n+CSQ: 18,0\r\n" + OK,
        "AT+CMGF=1": OK,
        'AT+CMGS="+1234567890"': b"\r\n> ",
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session(clock):
    def _make(responses=None):
        ser = FakeSerial(responses)
        return ModemSession(ser, sleep=clock.sleep, clock=clock), ser

    return _make


@pytest.fixture
def healthy_session(make_session):
    return make_session(healthy_modem_responses())
