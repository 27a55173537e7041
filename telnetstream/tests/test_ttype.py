"""Test TTYPE, rfc-1091_."""
# 3rd party
import pytest

# local
from telnetstream.options import handle_sb_ttype
from telnetstream.stream_writer import TelnetWriter
from telnetstream.telopt import DO, IAC, IS, SB, SE, SEND, TTYPE, WILL
from telnetstream.tests.accessories import MockTransport


def new_writer(environ):
    t = MockTransport()
    w = TelnetWriter(t, environ=environ)
    w.add_option(TTYPE, True, True, handle_sb_ttype)
    return w, t


def test_send_answered_with_term():
    w, t = new_writer({'TERM': 'xterm-256color'})
    w.handle_command(IAC + DO + TTYPE)
    w.handle_command(IAC + SB + TTYPE + SEND + IAC + SE)
    assert t.writes == [
        IAC + WILL + TTYPE,
        IAC + SB + TTYPE + IS + b'xterm-256color' + IAC + SE,
    ]


def test_send_not_answered_without_term():
    w, t = new_writer({})
    w.handle_command(IAC + SB + TTYPE + SEND + IAC + SE)
    assert t.writes == []


@pytest.mark.parametrize("given", [
    IAC + SB + TTYPE + IS + b'vt100' + IAC + SE,
    IAC + SB + TTYPE + IAC + SE,
    IAC + SB + TTYPE + b'\x07' + IAC + SE,
])
def test_other_requests_ignored(given):
    w, t = new_writer({'TERM': 'vt220'})
    handle_sb_ttype(w, given)
    assert t.writes == []


def test_environ_defaults_to_os_environ(monkeypatch):
    monkeypatch.setenv('TERM', 'ansi')
    t = MockTransport()
    w = TelnetWriter(t)
    w.add_option(TTYPE, True, True, handle_sb_ttype)
    w.handle_command(IAC + SB + TTYPE + SEND + IAC + SE)
    assert t.writes == [IAC + SB + TTYPE + IS + b'ansi' + IAC + SE]
