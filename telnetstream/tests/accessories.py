"""Test accessories for telnetstream project."""
# std imports
import collections
import contextlib
import socket
import threading

# 3rd-party
import pytest


@pytest.fixture(scope="module", params=['127.0.0.1'])
def bind_host(request):
    """ Localhost bind address. """
    return request.param


@pytest.fixture
def unused_tcp_port():
    """Return a TCP port number not in use."""
    with contextlib.closing(socket.socket()) as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


class MockTransport:
    """
    In-memory transport.

    Each call to :meth:`read` returns the next of ``chunks`` given, raising
    it when it is an exception, and ``b''`` once all are consumed.
    """

    def __init__(self, chunks=()):
        self.chunks = collections.deque(chunks)
        self.writes = []
        self.read_count = 0
        self.close_count = 0
        self.write_error = None

    @property
    def closed(self):
        return bool(self.close_count)

    def read(self, size):
        self.read_count += 1
        if not self.chunks:
            return b''
        chunk = self.chunks.popleft()
        if isinstance(chunk, Exception):
            raise chunk
        if len(chunk) > size:
            self.chunks.appendleft(chunk[size:])
            chunk = chunk[:size]
        return chunk

    def write(self, data):
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))

    def close(self):
        self.close_count += 1


def recv_exactly(sock, size):
    """Receive ``size`` bytes from ``sock``, fewer only at end of stream."""
    buf = b''
    while len(buf) < size:
        data = sock.recv(size - len(buf))
        if not data:
            break
        buf += data
    return buf


@contextlib.contextmanager
def serve_once(host, port, handler):
    """
    Listen on ``host`` and ``port``, calling ``handler(sock)`` for one client.

    The client socket is closed when ``handler`` returns.  On exit, the
    server thread is joined and any exception it raised is re-raised.
    """
    server = socket.create_server((host, port))
    errors = []

    def _serve():
        try:
            client, _ = server.accept()
            with client:
                handler(client)
        except Exception as err:
            errors.append(err)

    thread = threading.Thread(target=_serve, daemon=True)
    thread.start()
    try:
        yield
    finally:
        thread.join(timeout=5)
        server.close()
    assert not thread.is_alive(), 'server thread did not complete'
    if errors:
        raise errors[0]


__all__ = ('bind_host', 'unused_tcp_port', 'MockTransport', 'recv_exactly',
           'serve_once',)
