"""Test accessory functions and telnet command naming."""
# std imports
import logging
import os

# 3rd party
import pytest

# local
from telnetstream.accessories import (
    function_lookup,
    get_winsize,
    make_logger,
    name_unicode,
    repr_mapping,
)
from telnetstream.telopt import (
    DO, IAC, NAWS, SB, SE, TSPEED, name_command, name_commands)


def test_name_command():
    assert name_command(IAC) == 'IAC'
    assert name_command(NAWS) == 'NAWS'
    assert name_command(TSPEED) == 'TSPEED'
    assert name_command(bytes([88])) == repr(b'X')


def test_name_commands():
    assert name_commands(IAC + DO + NAWS) == 'IAC DO NAWS'
    assert name_commands(IAC + SB + NAWS + IAC + SE, sep=',') == (
        'IAC,SB,NAWS,IAC,SE')
    assert name_commands(b'') == ''


def test_repr_mapping():
    assert repr_mapping({'host': 'localhost', 'port': 23}) == (
        'host=localhost port=23')


def test_function_lookup():
    assert function_lookup('os.path.join') is os.path.join
    with pytest.raises(AttributeError):
        function_lookup('os.path.does_not_exist')


@pytest.mark.parametrize("given,expected", [
    ('a', 'a'),
    ('\x1d', '^]'),
    ('\x00', '^@'),
    ('\x7f', '^?'),
    ('\x9b', r'\x9b'),
])
def test_name_unicode(given, expected):
    assert name_unicode(given) == expected


def test_make_logger():
    root = logging.getLogger()
    level = root.level
    try:
        log = make_logger('telnetstream.test', loglevel='warning')
        assert log.name == 'telnetstream.test'
        assert root.level == logging.WARNING
    finally:
        root.setLevel(level)


def test_get_winsize_fallback_environ(monkeypatch):
    monkeypatch.setenv('LINES', '43')
    monkeypatch.setenv('COLUMNS', '132')
    rfd, wfd = os.pipe()
    try:
        assert get_winsize(rfd) == (43, 132)
    finally:
        os.close(rfd)
        os.close(wfd)


def test_get_winsize_fallback_default(monkeypatch):
    monkeypatch.delenv('LINES', raising=False)
    monkeypatch.delenv('COLUMNS', raising=False)
    rfd, wfd = os.pipe()
    try:
        assert get_winsize(rfd) == (25, 80)
    finally:
        os.close(rfd)
        os.close(wfd)
