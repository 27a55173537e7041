"""Tests for telnetstream.client_shell, Terminal mode handling."""
# std imports
import io
import sys
import types

# 3rd party
import pytest

if sys.platform == "win32":
    pytest.skip("POSIX-only tests", allow_module_level=True)

# std imports
import termios  # noqa: E402

# local
from telnetstream.client_shell import Terminal, _copy_stdin  # noqa: E402


@pytest.fixture
def terminal(monkeypatch, tmp_path):
    with open(tmp_path / 'stdin', 'w+b') as stdin:
        monkeypatch.setattr(sys, 'stdin', stdin)
        yield Terminal(types.SimpleNamespace(will_echo=False))


def _cooked_mode():
    return Terminal.ModeDef(
        iflag=termios.BRKINT | termios.ICRNL | termios.IXON,
        oflag=termios.OPOST | termios.ONLCR,
        cflag=termios.CS7 | termios.PARENB,
        lflag=termios.ICANON | termios.ECHO | termios.ISIG | termios.IEXTEN,
        ispeed=38400,
        ospeed=38400,
        cc=[0] * 32,
    )


def test_determine_mode_raw(terminal):
    mode = terminal.determine_mode(_cooked_mode())
    assert not mode.iflag & (termios.BRKINT | termios.ICRNL | termios.IXON)
    assert not mode.iflag & (termios.INPCK | termios.ISTRIP)
    assert not mode.oflag & (termios.OPOST | termios.ONLCR)
    assert mode.cflag & termios.CS8
    assert not mode.cflag & termios.PARENB
    assert not mode.lflag & (termios.ICANON | termios.ECHO | termios.ISIG)
    assert mode.cc[termios.VMIN] == 1
    assert mode.cc[termios.VTIME] == 0
    assert (mode.ispeed, mode.ospeed) == (38400, 38400)


def test_not_a_tty_is_left_alone(terminal):
    terminal._istty = False
    with terminal as term:
        terminal.connection.will_echo = True
        term.update_mode()
        assert term.linesep == '\n'
        assert not term._raw


class _Connection:
    def __init__(self):
        self.written = []
        self.closed = False

    def write(self, data):
        self.written.append(data)

    def close(self):
        self.closed = True


def _stdin_fd(tmp_path, data):
    path = tmp_path / 'input'
    path.write_bytes(data)
    return io.open(path, 'rb')


def test_copy_stdin_until_eof(tmp_path):
    conn = _Connection()
    with _stdin_fd(tmp_path, b'ls -l\n') as stdin:
        _copy_stdin(conn, stdin.fileno(), b'\x1d')
    assert conn.written == [b'ls -l\n']
    assert not conn.closed


def test_copy_stdin_escape_closes(tmp_path):
    conn = _Connection()
    with _stdin_fd(tmp_path, b'quit\x1d') as stdin:
        _copy_stdin(conn, stdin.fileno(), b'\x1d')
    assert conn.written == []
    assert conn.closed
