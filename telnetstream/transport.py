"""Blocking TCP transport for :class:`~.TelnetConnection`."""
# std imports
import logging
import socket

__all__ = ('SocketTransport', 'open_transport')


class SocketTransport:
    """
    Bidirectional byte stream over a connected socket.

    Any object providing the same ``read``, ``write`` and ``close`` methods
    may be given to :class:`~.TelnetConnection` in its place.
    """

    def __init__(self, sock, log=None):
        self._sock = sock
        self._closed = False
        self.log = log or logging.getLogger(__name__)

    def __repr__(self):
        return '<SocketTransport {0}>'.format(
            'closed' if self._closed else self._sock.getpeername())

    @property
    def closed(self):
        return self._closed

    def read(self, size):
        """Return up to ``size`` bytes, ``b''`` at end of stream."""
        return self._sock.recv(size)

    def write(self, data):
        """Send all of ``data``."""
        self._sock.sendall(data)

    def close(self):
        """
        Close the socket.

        The socket is first shut down, so that a read blocked in another
        thread returns promptly.  Calling close again does nothing.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as err:
            # peer already disconnected
            self.log.debug('shutdown: {}'.format(err))
        self._sock.close()


def open_transport(host, port=23, timeout=None):
    """
    Connect to TCP ``host`` and ``port``, returning a SocketTransport.

    ``timeout`` limits only the time to connect, reads and writes block.
    """
    sock = socket.create_connection((host, port), timeout=timeout)
    sock.settimeout(None)
    return SocketTransport(sock)
