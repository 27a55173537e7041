"""Module provides :class:`TelnetWriter`, the option negotiation engine."""
# std imports
import collections
import logging
import os
import struct
import threading

# local imports
from .telopt import (DO, DONT, ECHO, IAC, NAWS, NONE, SB, SE, VERBS, WILL,
                     WONT, name_command, name_commands)

__all__ = ('TelnetWriter', 'TelnetOption', 'OptionTable', 'Option', )

#: Configured policy and handlers for one telnet option.
#:
#: ``will``: whether we answer ``DO <opt>`` with ``WILL``.
#: ``do``: whether we answer ``WILL <opt>`` with ``DO``.
#: ``sb_handler``: ``func(writer, buf)`` called with each complete
#: ``IAC SB <opt> ... IAC SE`` buffer received.
#: ``do_handler``: ``func(writer, buf)`` called after replying to
#: ``IAC DO <opt>``, with the received command.
TelnetOption = collections.namedtuple(
    'TelnetOption', ['will', 'do', 'sb_handler', 'do_handler'],
    defaults=(None, None))


class TelnetWriter:
    """
    Write side of a telnet connection, and its negotiation engine.

    Every complete command demultiplexed from the input stream is given to
    :meth:`handle_command`, which answers peer requests according to the
    :class:`TelnetOption` registered for each option byte in
    :attr:`options`.  Replies are written synchronously, inline with the
    call that received the command.

    :param transport: object with ``write(data)`` and ``close()`` methods.
    :param dict environ: mapping where the value of ``TERM`` is found when
        the server requests our terminal type, ``os.environ`` by default.
    :param tuple tspeed: ``(rx, tx)`` line speed reported for TSPEED.
    :param int cols: initial window width reported by NAWS.
    :param int rows: initial window height reported by NAWS.
    :param bool escape_iac: whether :meth:`write` doubles ``IAC`` bytes of
        application data.
    :param logging.Logger log: target logger, if None is given, one is
        created using the namespace ``'telnetstream.stream_writer'``.
    """

    def __init__(self, transport, *, environ=None, tspeed=(115200, 115200),
                 cols=80, rows=24, escape_iac=False, log=None):
        self._transport = transport
        self.log = log or logging.getLogger(__name__)
        self.environ = os.environ if environ is None else environ
        self.tspeed = tspeed
        self.escape_iac = escape_iac

        #: Dictionary of :class:`TelnetOption` keyed by option byte.
        self.options = OptionTable('options', self.log)

        #: Dictionary of telnet option byte(s) that follow an IAC-WILL or
        #: IAC-WONT command sent by our end, indicating state of local
        #: capabilities.
        self.local_option = Option('local_option', self.log)

        #: Dictionary of telnet option byte(s) that follow an IAC-DO or
        #: IAC-DONT command sent by our end, indicating state of remote
        #: capabilities.
        self.remote_option = Option('remote_option', self.log)

        #: NAWS buffer, (cols, rows) as big-endian unsigned shorts.
        self.window_size = bytearray(struct.pack('!HH', cols, rows))

        # negotiation replies and application writes share the transport
        self._write_lock = threading.Lock()

    def __repr__(self):
        info = ['TelnetWriter']
        _local = sorted([name_commands(opt) for opt in self.local_option
                         if self.local_option.enabled(opt)])
        if _local:
            info.append('client-will:{0}'.format(','.join(_local)))
        _remote = sorted([name_commands(opt) for opt in self.remote_option
                          if self.remote_option.enabled(opt)])
        if _remote:
            info.append('server-will:{0}'.format(','.join(_remote)))
        return '<{0}>'.format(' '.join(info))

    @property
    def will_echo(self):
        """
        Whether the server echoes our input.

        When False, we should duplicate our input to standard out ourselves.
        """
        return self.remote_option.enabled(ECHO)

    def add_option(self, opt, will, do, sb_handler=None, do_handler=None):
        """
        Register negotiation policy for option ``opt``.

        :param bytes opt: option byte, an int 0-255 is also accepted.
        :param bool will: whether to answer ``DO opt`` with ``WILL opt``.
        :param bool do: whether to answer ``WILL opt`` with ``DO opt``.
        :param sb_handler: ``func(writer, buf)`` receiving sub-negotiations.
        :param do_handler: ``func(writer, buf)`` called after we reply to
            ``DO opt``.

        A later registration of the same option replaces the former.
        """
        if isinstance(opt, int):
            opt = bytes([opt])
        if not isinstance(opt, bytes) or len(opt) != 1:
            raise ValueError('option must be a single byte, got {!r}'
                             .format(opt))
        for func in (sb_handler, do_handler):
            if func is not None and not callable(func):
                raise TypeError('handler {!r} is not callable'.format(func))
        self.options[opt] = TelnetOption(bool(will), bool(do),
                                         sb_handler, do_handler)

    # Transmission

    def write(self, data):
        """
        Write application bytes ``data`` to the transport.

        ``IAC`` bytes are written as-is, unless :attr:`escape_iac` is set.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("data expected bytes, got {0}".format(type(data)))
        data = bytes(data)
        if self.escape_iac:
            data = self._escape_iac(data)
        with self._write_lock:
            self._transport.write(data)

    def send_iac(self, buf):
        """
        Send a command starting with IAC (base 10 byte value 255).

        No transformations of bytes are performed.
        """
        assert isinstance(buf, (bytes, bytearray)), buf
        assert buf and buf.startswith(IAC), buf
        with self._write_lock:
            self._transport.write(bytes(buf))

    def iac(self, cmd, opt):
        """Send Is-A-Command 3-byte negotiation command."""
        if cmd not in VERBS:
            raise ValueError("Expected DO, DONT, WILL, WONT, got {0}."
                             .format(name_command(cmd)))
        self.log.debug('send IAC {} {}'.format(
            name_command(cmd), name_command(opt)))
        self.send_iac(IAC + cmd + opt)

    def send_sb(self, opt, operation, data=b''):
        """
        Send sub-negotiation ``IAC SB opt [operation] data IAC SE``.

        The operation byte is omitted when ``operation`` is ``NONE``.
        ``IAC`` bytes in ``data`` are escaped.
        """
        response = [IAC, SB, opt]
        if operation != NONE:
            response.append(operation)
        response.extend([self._escape_iac(bytes(data)), IAC, SE])
        buf = b''.join(response)
        self.log.debug('send {}'.format(name_commands(buf)))
        self.send_iac(buf)

    def set_window_size(self, cols, rows):
        """
        Store window size, and report it by NAWS when so configured.

        The report is sent only when a ``do_handler`` is registered for
        NAWS, that is, when the option may be offered at all.
        """
        for name, value in (('cols', cols), ('rows', rows)):
            if not 0 <= value <= 0xffff:
                raise ValueError('{} must be in range 0-65535, got {!r}'
                                 .format(name, value))
        self.window_size[:] = struct.pack('!HH', cols, rows)
        option = self.options.get(NAWS)
        if option is not None and option.do_handler is not None:
            option.do_handler(self, None)

    # Negotiation

    def handle_command(self, buf):
        """
        Answer one complete command demultiplexed from the input stream.

        :param bytes buf: a 2-byte ``IAC <cmd>`` command, a 3-byte
            negotiation ``IAC <verb> <opt>``, or a sub-negotiation
            ``IAC SB <opt> ... IAC SE``.
        :raises ValueError: ``buf`` is not a complete command.
        """
        buf = bytes(buf)
        if len(buf) < 2 or buf[:1] != IAC:
            raise ValueError('not a telnet command: {!r}'.format(buf))
        cmd = buf[1:2]

        if cmd == SB:
            if len(buf) < 5 or buf[-2:] != IAC + SE:
                raise ValueError('incomplete sub-negotiation: {}'
                                 .format(name_commands(buf)))
            self.handle_subnegotiation(buf)

        elif cmd in VERBS:
            if len(buf) != 3:
                raise ValueError('IAC {}: expected 1 option byte, got {!r}'
                                 .format(name_command(cmd), buf[2:]))
            opt = buf[2:3]
            self.log.debug('recv IAC {} {}'.format(
                name_command(cmd), name_command(opt)))
            {DO: self.handle_do,
             DONT: self.handle_dont,
             WILL: self.handle_will,
             WONT: self.handle_wont}[cmd](opt)

        else:
            # NOP, GA, DM, AYT, ... carry no meaning for this client.
            self.log.debug('recv IAC {} (ignored)'.format(name_command(cmd)))

    def handle_do(self, opt):
        """
        Process byte 3 of series (IAC, DO, opt) received by remote end.

        Replies ``WILL`` when the option is configured willing, ``WONT``
        otherwise, then calls the option's ``do_handler``, if any.
        """
        option = self.options.get(opt)
        if option is None:
            self.log.debug('DO {0} not supported.'.format(name_command(opt)))
            self.iac(WONT, opt)
            self.local_option[opt] = False
            return
        self.iac(WILL if option.will else WONT, opt)
        self.local_option[opt] = option.will
        if option.do_handler is not None:
            option.do_handler(self, IAC + DO + opt)

    def handle_will(self, opt):
        """
        Process byte 3 of series (IAC, WILL, opt) received by remote end.

        Replies ``DO`` when the peer is permitted to perform the option,
        ``DONT`` otherwise.
        """
        option = self.options.get(opt)
        if option is None:
            self.log.debug('WILL {0} not supported.'.format(
                name_command(opt)))
            self.iac(DONT, opt)
            self.remote_option[opt] = False
            return
        self.iac(DO if option.do else DONT, opt)
        self.remote_option[opt] = option.do

    def handle_dont(self, opt):
        """
        Process byte 3 of series (IAC, DONT, opt) received by remote end.

        A DONT can not be declined, so there is no need to affirm in the
        negative; only ``local_option[opt]`` is set ``False``.
        """
        self.local_option[opt] = False

    def handle_wont(self, opt):
        """
        Process byte 3 of series (IAC, WONT, opt) received by remote end.

        Nothing is sent in reply; ``remote_option[opt]`` is set ``False``.
        """
        self.remote_option[opt] = False

    def handle_subnegotiation(self, buf):
        """
        Dispatch ``IAC SB <opt> ... IAC SE`` buffer to its option handler.

        Sub-negotiation of an option without a handler is ignored.
        """
        opt = buf[2:3]
        option = self.options.get(opt)
        if option is None or option.sb_handler is None:
            self.log.debug('SB unhandled: cmd={}, buf={!r}'
                           .format(name_command(opt), buf))
            return
        option.sb_handler(self, buf)

    # Our Private API methods

    @staticmethod
    def _escape_iac(buf):
        r"""Replace bytes in buf ``IAC`` (``b'\xff'``) by ``IAC IAC``."""
        return buf.replace(IAC, IAC + IAC)


class OptionTable(dict):
    """Dictionary of :class:`TelnetOption` that logs each registration."""

    def __init__(self, name, log):
        self.name, self.log = name, log
        dict.__init__(self)

    def __setitem__(self, key, value):
        if not isinstance(value, TelnetOption):
            raise TypeError('expected TelnetOption, got {!r}'.format(value))
        self.log.debug('{}[{}] = will:{} do:{} sb:{} do_handler:{}'.format(
            self.name, name_command(key), value.will, value.do,
            getattr(value.sb_handler, '__name__', None),
            getattr(value.do_handler, '__name__', None)))
        dict.__setitem__(self, key, value)


class Option(dict):
    """
    Telnet option state negotiation helper class.

    This class simply acts as a logging decorator for state changes of
    a dictionary describing telnet option negotiation.
    """

    def __init__(self, name, log):
        """
        Class initializer.

        :param str name: decorated name representing option class, such as
            'local_option' or 'remote_option'.
        :param logging.Logger log: logging instance where debug information
            of state changes is recorded (as DEBUG).
        """
        self.name, self.log = name, log
        dict.__init__(self)

    def enabled(self, key):
        """
        Return True if option is enabled.

        :param bytes key: telnet option
        :rtype: bool
        """
        return bool(self.get(key, None) is True)

    def __setitem__(self, key, value):
        # the real purpose of this class, tracking state negotiation.
        if value != dict.get(self, key, None):
            self.log.debug('{}[{}] = {}'.format(
                self.name, name_commands(key), value))
        dict.__setitem__(self, key, value)
