#!/usr/bin/env python3
"""
Telnet Client API for the 'telnetstream' python package.
"""
# std imports
import argparse
import logging
import os
import sys
import traceback

# local imports
from telnetstream import accessories
from telnetstream.options import DEFAULT_OPTIONS
from telnetstream.stream_reader import NotReadyError, TelnetStreamReader
from telnetstream.stream_writer import TelnetWriter
from telnetstream.telopt import DONT, ECHO
from telnetstream.transport import open_transport

__all__ = ("TelnetConnection", "open_connection")


class TelnetConnection:
    """
    Telnet client session over one transport.

    Bytes read from the transport are demultiplexed by a
    :class:`~.TelnetStreamReader`: plain data is buffered for :meth:`read`,
    and each command is answered by the :class:`~.TelnetWriter`
    negotiation engine, inline, before :meth:`read` returns.

    :param transport: bidirectional byte stream with blocking
        ``read(size)``, ``write(data)`` and ``close()`` methods, such as
        :class:`~.SocketTransport`.  Closing the connection closes it.
    :param options: additional ``(opt, will, do, sb_handler, do_handler)``
        registrations, applied after (and so, replacing) the defaults.
    :param dict environ: mapping providing ``TERM`` value for TTYPE,
        :rfc:`1091`, ``os.environ`` by default.
    :param tuple tspeed: ``(rx, tx)`` reported by TSPEED, :rfc:`1079`.
    :param int cols: window width reported by NAWS, :rfc:`1073`.
    :param int rows: window height reported by NAWS.
    :param bool escape_iac: whether application writes double ``IAC``.
    :param int bufsize: size of each transport read.
    :param logging.Logger log: target logger, if None is given, one is
        created using the namespace ``'telnetstream.client'``.
    """

    def __init__(self, transport, *, options=(), environ=None,
                 tspeed=(115200, 115200), cols=80, rows=24,
                 escape_iac=False, bufsize=1024, log=None):
        self.log = log or logging.getLogger(__name__)
        self._transport = transport
        self._closed = False
        self.bufsize = bufsize

        #: Plain data received, not yet returned by :meth:`read`.
        self._buffer = bytearray()

        #: Exception deferred until buffered data is read.
        self._exception = None

        self.writer = TelnetWriter(transport, environ=environ, tspeed=tspeed,
                                   cols=cols, rows=rows,
                                   escape_iac=escape_iac, log=self.log)
        self.reader = TelnetStreamReader(self._dispatch, log=self.log)

        for args in DEFAULT_OPTIONS + tuple(options):
            self.writer.add_option(*args)
        self.reader.start()

    def __repr__(self):
        return '<TelnetConnection state:{0} rx:{1} {2!r}>'.format(
            self.state, self.reader.byte_count, self.writer)

    def __enter__(self):
        return self

    def __exit__(self, *_):
        self.close()

    @property
    def state(self):
        """Current state of the stream demultiplexer."""
        return self.reader.state

    @property
    def ready(self):
        """Whether the connection may be read or written."""
        return self.reader.ready

    @property
    def options(self):
        """Dictionary of :class:`~.TelnetOption` keyed by option byte."""
        return self.writer.options

    @property
    def will_echo(self):
        """Whether the server has agreed to echo our input."""
        return self.writer.will_echo

    def read(self, size=-1):
        """
        Read up to ``size`` bytes of plain data, all available when -1.

        Blocks, reading from the transport and answering any telnet
        commands received, until at least one byte of data is available.

        :returns: data with telnet commands removed, or ``b''`` at end of
            stream.
        :raises NotReadyError: connection is closed, also when closed by
            another thread while this call is blocked.
        :raises OSError: transport failed.  When the failure occurs while
            answering a command, data received before it is returned
            first, and the exception is raised by the following call.
        """
        if not self.ready:
            raise NotReadyError()
        if self._exception is not None and not self._buffer:
            exc, self._exception = self._exception, None
            raise exc

        if size == 0:
            return b''

        while not self._buffer:
            try:
                data = self._transport.read(self.bufsize)
            except OSError:
                if not self.ready:
                    # closed by another thread while blocked
                    raise NotReadyError() from None
                raise
            if not data:
                if not self.ready:
                    raise NotReadyError()
                self.log.debug('end of stream')
                return b''
            try:
                self.reader.feed(data, self._buffer)
            except Exception as err:
                if not self._buffer:
                    raise
                self.log.debug('deferred until data is read: {!r}'
                               .format(err))
                self._exception = err

        if size < 0 or size >= len(self._buffer):
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
        return data

    def write(self, data):
        """
        Write ``data`` to the transport, as-is.

        :raises NotReadyError: connection is closed.
        """
        if not self.ready:
            raise NotReadyError()
        self.writer.write(data)

    def close(self):
        """Close connection and its transport; further use is refused."""
        self.reader.stop()
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._exception = None
        self.log.debug('close {!r}'.format(self._transport))
        self._transport.close()

    def add_option(self, opt, will, do, sb_handler=None, do_handler=None):
        """Register negotiation policy for ``opt``, replacing any prior."""
        self.writer.add_option(opt, will, do, sb_handler, do_handler)

    def set_window_size(self, cols, rows):
        """
        Update window size, sending it to the server by NAWS.

        :raises NotReadyError: connection is closed.
        :raises ValueError: dimension outside range of 0-65535.
        """
        if not self.ready:
            raise NotReadyError()
        self.writer.set_window_size(cols, rows)

    def disable_remote_echo(self):
        """Request that the server does not echo our input."""
        if not self.ready:
            raise NotReadyError()
        self.writer.iac(DONT, ECHO)
        self.writer.remote_option[ECHO] = False

    def _dispatch(self, cmd):
        try:
            self.writer.handle_command(cmd)
        except ValueError:
            # negotiation never fails the connection, only transport errors.
            self._log_exception(self.log.warning, *sys.exc_info())

    @staticmethod
    def _log_exception(logger, e_type, e_value, e_tb):
        rows_tbk = [
            line for line in "\n".join(traceback.format_tb(e_tb)).split("\n")
            if line
        ]
        rows_exc = [
            line.rstrip()
            for line in traceback.format_exception_only(e_type, e_value)
        ]

        for line in rows_tbk + rows_exc:
            logger(line)


def open_connection(host, port=23, *, timeout=None, **kwargs):
    """
    Connect to a TCP Telnet server as a Telnet client.

    :param str host: Remote Internet TCP Server host.
    :param int port: Remote Internet host TCP port.
    :param float timeout: seconds to wait for the connection to establish.
    :param kwargs: keyword arguments of :class:`TelnetConnection`.
    :rtype: TelnetConnection
    """
    transport = open_transport(host, port, timeout=timeout)
    return TelnetConnection(transport, **kwargs)


def run_client():
    """Command-line 'telnetstream-client' entry point, via setuptools."""
    kwargs = _transform_args(_get_argument_parser().parse_args())
    config_msg = "Client configuration: {key_values}".format(
        key_values=accessories.repr_mapping(kwargs)
    )
    host = kwargs.pop("host")
    port = kwargs.pop("port")
    shell = kwargs.pop("shell")
    term = kwargs.pop("term")

    log = accessories.make_logger(
        name=__name__,
        loglevel=kwargs.pop("loglevel"),
        logfile=kwargs.pop("logfile"),
        logfmt=kwargs.pop("logfmt"),
    )
    log.debug(config_msg)

    environ = os.environ
    if term:
        environ = dict(os.environ, TERM=term)
    rows, cols = accessories.get_winsize()
    with open_connection(host, port, environ=environ, cols=cols, rows=rows,
                         **kwargs) as connection:
        shell(connection)


def _get_argument_parser():
    parser = argparse.ArgumentParser(
        description="Telnet protocol client",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("host", action="store", help="hostname")
    parser.add_argument("port", nargs="?", default=23, type=int,
                        help="port number")
    parser.add_argument(
        "--term", default=os.environ.get("TERM"),
        help="terminal type, not sent when unset"
    )
    parser.add_argument("--loglevel", default="warn", help="log level")
    parser.add_argument(
        "--logfmt", default=accessories._DEFAULT_LOGFMT, help="log format"
    )
    parser.add_argument("--logfile", help="filepath")
    parser.add_argument(
        "--shell", default="telnetstream.client_shell.telnet_client_shell",
        help="module.function_name"
    )
    parser.add_argument("--speed", default=115200, type=int,
                        help="connection speed")
    parser.add_argument("--timeout", default=None, type=float,
                        help="seconds to wait for connection")
    parser.add_argument(
        "--escape-iac", action="store_true", default=False,
        help="escape IAC (0xff) bytes of input sent"
    )
    return parser


def _transform_args(args):
    return {
        "host": args.host,
        "port": args.port,
        "loglevel": args.loglevel,
        "logfile": args.logfile,
        "logfmt": args.logfmt,
        "shell": accessories.function_lookup(args.shell),
        "term": args.term,
        "tspeed": (args.speed, args.speed),
        "timeout": args.timeout,
        "escape_iac": args.escape_iac,
    }


def main():
    run_client()


if __name__ == "__main__":
    main()
