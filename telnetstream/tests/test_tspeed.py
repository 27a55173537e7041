"""Test TSPEED, rfc-1079_."""
# local
from telnetstream.options import handle_sb_tspeed
from telnetstream.stream_writer import TelnetWriter
from telnetstream.telopt import IAC, IS, SB, SE, SEND, TSPEED
from telnetstream.tests.accessories import MockTransport


def new_writer(**kwargs):
    t = MockTransport()
    w = TelnetWriter(t, **kwargs)
    w.add_option(TSPEED, True, True, handle_sb_tspeed)
    return w, t


def test_send_answered_with_default_speed():
    w, t = new_writer()
    w.handle_command(IAC + SB + TSPEED + SEND + IAC + SE)
    assert t.writes == [IAC + SB + TSPEED + IS + b'115200,115200' + IAC + SE]


def test_send_answered_with_given_speed():
    w, t = new_writer(tspeed=(1337, 1919))
    w.handle_command(IAC + SB + TSPEED + SEND + IAC + SE)
    assert t.writes == [IAC + SB + TSPEED + IS + b'1337,1919' + IAC + SE]


def test_is_ignored():
    w, t = new_writer()
    w.handle_command(IAC + SB + TSPEED + IS + b'9600,9600' + IAC + SE)
    w.handle_command(IAC + SB + TSPEED + IAC + SE)
    assert t.writes == []
