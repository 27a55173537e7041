# std imports
import collections
import contextlib
import logging
import os
import sys
import threading

# local
from . import accessories
from .stream_reader import NotReadyError
from .telopt import NAWS

__all__ = ("telnet_client_shell",)

log = logging.getLogger(__name__)


if sys.platform == "win32":

    def telnet_client_shell(connection):
        raise NotImplementedError(
            "win32 not yet supported as telnet client. Please contribute!"
        )

else:
    import termios
    import signal

    class Terminal(object):
        """
        Context manager for the POSIX terminal attached to sys.stdin.

        When sys.stdin is attached to a terminal, it is configured for the
        telnet modes negotiated by the connection: "raw" while the server
        echoes our input, as-is otherwise.  The original mode is restored on
        exit.
        """

        ModeDef = collections.namedtuple(
            "mode", ["iflag", "oflag", "cflag", "lflag", "ispeed", "ospeed", "cc"]
        )

        def __init__(self, connection):
            self.connection = connection
            self._fileno = sys.stdin.fileno()
            self._istty = os.path.sameopenfile(0, 1) and os.isatty(0)
            self._save_mode = None
            self._raw = False

        def __enter__(self):
            self._save_mode = self.get_mode()
            self.update_mode()
            return self

        def __exit__(self, *_):
            if self._istty:
                termios.tcsetattr(
                    self._fileno, termios.TCSAFLUSH, list(self._save_mode)
                )

        @property
        def linesep(self):
            if self._istty and self._raw:
                return "\r\n"
            return "\n"

        def get_mode(self):
            if self._istty:
                return self.ModeDef(*termios.tcgetattr(self._fileno))

        def set_mode(self, mode):
            termios.tcsetattr(self._fileno, termios.TCSAFLUSH, list(mode))

        def update_mode(self):
            """Switch terminal mode when server echo has been (re)negotiated."""
            will_echo = self.connection.will_echo
            if not self._istty or will_echo == self._raw:
                return
            self._raw = will_echo
            if will_echo:
                log.debug("server echo, kludge mode")
                self.set_mode(self.determine_mode(self._save_mode))
            else:
                log.debug("local echo, linemode")
                self.set_mode(self._save_mode)

        def determine_mode(self, mode):
            """
            Return copy of 'mode' with changes suggested for telnet connection.
            """
            # "Raw mode", see tty.py function setraw.  This allows sending
            # of ^J, ^C, ^S, ^\, and others, which might otherwise
            # interrupt with signals or map to another character.  We also
            # trust the remote server to manage CR/LF without mapping.
            #
            iflag = mode.iflag & ~(
                termios.BRKINT  # Do not send INTR signal on break
                | termios.ICRNL  # Do not map CR to NL on input
                | termios.INPCK  # Disable input parity checking
                | termios.ISTRIP  # Do not strip input characters to 7 bits
                | termios.IXON  # Disable START/STOP output control
            )

            # Disable parity generation and detection,
            # Select eight bits per byte character size.
            cflag = mode.cflag & ~(termios.CSIZE | termios.PARENB)
            cflag = cflag | termios.CS8

            # Disable canonical input (^H and ^C processing),
            # disable any other special control characters,
            # disable checking for INTR, QUIT, and SUSP input.
            lflag = mode.lflag & ~(
                termios.ICANON | termios.IEXTEN | termios.ISIG | termios.ECHO
            )

            # Disable post-output processing,
            # such as mapping LF('\n') to CRLF('\r\n') in output.
            oflag = mode.oflag & ~(termios.OPOST | termios.ONLCR)

            cc = list(mode.cc)
            cc[termios.VMIN] = 1
            cc[termios.VTIME] = 0

            return self.ModeDef(
                iflag=iflag,
                oflag=oflag,
                cflag=cflag,
                lflag=lflag,
                ispeed=mode.ispeed,
                ospeed=mode.ospeed,
                cc=cc,
            )

    @contextlib.contextmanager
    def _winch_handler(connection):
        """
        Send NAWS on terminal resize (SIGWINCH) while in context.

        We debounce to avoid flooding on continuous resizes.  The report is
        written from a timer thread, never from the signal handler, which
        may interrupt the main thread while it holds the transport.
        """
        pending = {"timer": None}

        def _send_naws():
            if not (connection.ready and
                    connection.writer.local_option.enabled(NAWS)):
                return
            rows, cols = accessories.get_winsize()
            try:
                connection.set_window_size(cols, rows)
            except (OSError, NotReadyError) as err:
                log.debug("NAWS not sent: {!r}".format(err))

        def _on_winch(signum, frame):
            timer = pending["timer"]
            if timer is not None:
                timer.cancel()
            pending["timer"] = threading.Timer(0.05, _send_naws)
            pending["timer"].daemon = True
            pending["timer"].start()

        previous = signal.signal(signal.SIGWINCH, _on_winch)
        try:
            yield
        finally:
            signal.signal(signal.SIGWINCH, previous)
            if pending["timer"] is not None:
                pending["timer"].cancel()

    def _copy_stdin(connection, fileno, keyboard_escape):
        """Copy keyboard input to ``connection`` until EOF or escape."""
        while True:
            try:
                inp = os.read(fileno, 1024)
            except OSError as err:
                log.debug("stdin: {!r}".format(err))
                return
            if not inp:
                log.debug("EOF from client stdin")
                return
            if keyboard_escape in inp:
                # on ^], close connection to remote host
                connection.close()
                return
            try:
                connection.write(inp)
            except (OSError, NotReadyError) as err:
                log.debug("write: {!r}".format(err))
                return

    def telnet_client_shell(connection):
        """
        Minimal telnet client shell for POSIX terminals.

        This shell performs minimal tty mode handling when a terminal is
        attached to standard in (keyboard), notably raw mode is often set
        and this shell may exit only by disconnect from server, or the
        escape character, ^].

        stdin or stdout may also be a pipe or file, behaving much like nc(1).
        """
        keyboard_escape = b"\x1d"
        stdout = sys.stdout.buffer

        with Terminal(connection) as term:
            stdout.write(
                "Escape character is '{escape}'.{linesep}".format(
                    escape=accessories.name_unicode(keyboard_escape.decode()),
                    linesep=term.linesep,
                ).encode()
            )
            stdout.flush()

            stdin_thread = threading.Thread(
                target=_copy_stdin,
                args=(connection, sys.stdin.fileno(), keyboard_escape),
                daemon=True,
            )

            with contextlib.ExitStack() as stack:
                if term._istty and threading.current_thread() is threading.main_thread():
                    stack.enter_context(_winch_handler(connection))
                stdin_thread.start()

                while True:
                    try:
                        out = connection.read()
                    except NotReadyError:
                        msg = "Connection closed."
                        break
                    except OSError as err:
                        msg = "Connection error: {}".format(err)
                        break
                    if not out:
                        msg = ("Connection closed by foreign host."
                               if connection.ready else "Connection closed.")
                        break
                    term.update_mode()
                    stdout.write(out)
                    stdout.flush()

            stdout.write(
                "\033[m{linesep}{msg}{linesep}".format(
                    linesep=term.linesep, msg=msg
                ).encode()
            )
            stdout.flush()
