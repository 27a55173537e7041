"""Module provides :class:`TelnetStreamReader`, the Telnet IAC demultiplexer."""
# std imports
import logging

# local imports
from .telopt import IAC, SB, SE, VERBS, name_command

__all__ = ('TelnetStreamReader', 'NotReadyError',
           'STATE_DATA', 'STATE_IN_IAC', 'STATE_IN_SB', 'STATE_IN_SB_IAC',
           'STATE_NOT_READY')

(STATE_DATA, STATE_IN_IAC, STATE_IN_SB, STATE_IN_SB_IAC, STATE_NOT_READY) = (
    'data', 'in-iac', 'in-sb', 'in-sb-iac', 'not-ready')


class NotReadyError(RuntimeError):
    """Operation attempted before a connection is set up, or after close."""

    def __init__(self, msg='telnet connection is not ready'):
        super().__init__(msg)


class TelnetStreamReader:
    """
    Split a raw Telnet byte stream into plain data and IAC commands.

    Bytes are given to :meth:`feed`.  In-band bytes are appended to the
    caller's output buffer, while each complete command, one of::

        IAC <cmd>
        IAC (DO | DONT | WILL | WONT) <opt>
        IAC SB <opt> ... IAC SE

    is passed as ``bytes`` to the ``dispatch`` callable given at
    construction.  An escaped ``IAC IAC`` in the data stream is received
    as a single ``IAC`` byte; inside a sub-negotiation it is kept doubled,
    the dispatched buffer is byte-for-byte what the peer sent.

    The reader begins in state ``STATE_NOT_READY``, where any input raises
    :class:`NotReadyError`; the owning connection calls :meth:`start` once
    its options are registered.
    """

    #: Largest sub-negotiation buffer accepted before it is discarded.
    max_sb_size = 1 << 15

    def __init__(self, dispatch, log=None):
        self._dispatch = dispatch
        self.log = log or logging.getLogger(__name__)
        self.state = STATE_NOT_READY

        #: Total bytes received by :meth:`feed_byte`.
        self.byte_count = 0

        #: Pending command buffer
        self._cmd = bytearray()

        #: Count of sub-negotiation bytes dropped past ``max_sb_size``.
        self._sb_overflow = 0

    def __repr__(self):
        return '<TelnetStreamReader state:{0} pending:{1}>'.format(
            self.state, len(self._cmd))

    @property
    def ready(self):
        """Whether input may be fed to the reader."""
        return self.state != STATE_NOT_READY

    def start(self):
        """Begin accepting input in state ``STATE_DATA``."""
        self._cmd.clear()
        self._sb_overflow = 0
        self.state = STATE_DATA

    def stop(self):
        """Discard any pending command and refuse further input."""
        self._cmd.clear()
        self._sb_overflow = 0
        self.state = STATE_NOT_READY

    def feed(self, data, output):
        """
        Process chunk ``data``, appending in-band bytes to ``output``.

        :param bytes data: raw bytes received from the transport, any
            bytes-like object.
        :param bytearray output: buffer receiving plain data.
        :raises NotReadyError: when the reader is not ready, before any
            byte is consumed.

        Any exception raised by the ``dispatch`` callable aborts processing
        of the remaining bytes of ``data``; bytes already appended to
        ``output`` are kept.
        """
        if self.state == STATE_NOT_READY:
            raise NotReadyError()
        data = bytes(data)
        idx, length = 0, len(data)
        while idx < length:
            if self.state == STATE_DATA:
                # forward runs of plain data up to the next IAC
                end = data.find(IAC, idx)
                if end == -1:
                    end = length
                if end > idx:
                    output += data[idx:end]
                    self.byte_count += end - idx
                    idx = end
                    continue
            self.feed_byte(data[idx:idx + 1], output)
            idx += 1

    def feed_byte(self, byte, output):
        """
        Feed a single byte into the demultiplexer state machine.

        :param bytes byte: a bytes array of length 1.
        :param bytearray output: buffer receiving ``byte`` when in-band.
        """
        if self.state == STATE_NOT_READY:
            raise NotReadyError()
        self.byte_count += 1

        if self.state == STATE_DATA:
            if byte == IAC:
                self._cmd = bytearray(IAC)
                self.state = STATE_IN_IAC
            else:
                output += byte

        elif self.state == STATE_IN_IAC:
            if len(self._cmd) == 2:
                # 3rd and final byte of IAC DO, DONT, WILL, WONT is the
                # option, whatever its value.
                self._cmd += byte
                self._complete()
            elif byte in VERBS:
                self._cmd += byte
            elif byte == IAC:
                # escaped IAC, a literal 0xff data byte
                output += IAC
                self._cmd.clear()
                self.state = STATE_DATA
            elif byte == SB:
                self._cmd += byte
                self.state = STATE_IN_SB
            else:
                # 2-byte command, such as IAC NOP or IAC GA.
                self._cmd += byte
                self._complete()

        elif self.state == STATE_IN_SB:
            self._append_sb(byte)
            if byte == IAC:
                self.state = STATE_IN_SB_IAC

        elif self.state == STATE_IN_SB_IAC:
            self._append_sb(byte)
            if byte == IAC:
                self.state = STATE_IN_SB
            elif byte == SE:
                if self._sb_overflow:
                    self.log.warning('sub-negotiation of {} bytes discarded'
                                     .format(self._sb_overflow))
                    self._sb_overflow = 0
                    self._cmd.clear()
                    self.state = STATE_DATA
                    return
                self.log.debug('sub-negotiation cmd {} SE completion byte'
                               .format(name_command(bytes(self._cmd[2:3]))))
                self._complete()
            else:
                self.log.debug('sub-negotiation buffer interrupted by IAC {}'
                               .format(name_command(bytes(byte))))
                self.state = STATE_IN_SB

    def _append_sb(self, byte):
        if self._sb_overflow:
            self._sb_overflow += 1
        elif len(self._cmd) >= self.max_sb_size:
            self._sb_overflow = len(self._cmd) + 1
            self._cmd.clear()
        else:
            self._cmd += byte

    def _complete(self):
        cmd, self._cmd = bytes(self._cmd), bytearray()
        self.state = STATE_DATA
        self._dispatch(cmd)
