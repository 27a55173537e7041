"""Accessory functions."""
# std imports
import importlib
import importlib.metadata
import logging
import os
import struct
import sys

__all__ = ('make_logger', 'repr_mapping', 'function_lookup', 'name_unicode',
           'get_winsize')


def get_version():
    return importlib.metadata.version("telnetstream")


_DEFAULT_LOGFMT = ' '.join(('%(asctime)s',
                            '%(levelname)s',
                            '%(filename)s:%(lineno)d',
                            '%(message)s'))


def make_logger(name, loglevel='info', logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {'format': logfmt}
    if logfile:
        _cfg['filename'] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return ' '.join('='.join(map(str, kv)) for kv in mapping.items())


def function_lookup(pymod_path):
    """Return callable function target from standard module.function path."""
    module_name, func_name = pymod_path.rsplit('.', 1)
    module = importlib.import_module(module_name)
    shell_function = getattr(module, func_name)
    assert callable(shell_function), shell_function
    return shell_function


def name_unicode(ucs):
    """Return 7-bit ascii printable of any string. """
    # more or less the same as curses.ascii.unctrl -- but curses
    # module is conditionally excluded from many python distributions!
    bits = ord(ucs)
    if 32 <= bits <= 126:
        # ascii printable as one cell, as-is
        rep = chr(bits)
    elif bits == 127:
        rep = "^?"
    elif bits < 32:
        rep = "^" + chr(((bits & 0x7f) | 0x20) + 0x20)
    else:
        rep = r'\x{:02x}'.format(bits)
    return rep


def get_winsize(fileno=None):
    """
    Return terminal window size as (rows, cols).

    The size of the terminal attached to ``fileno`` (default, standard
    input) is used, otherwise environment values ``LINES`` and ``COLUMNS``,
    otherwise 25x80.
    """
    try:
        import fcntl
        import termios

        fmt = 'hhhh'
        buf = b'\x00' * struct.calcsize(fmt)
        if fileno is None:
            fileno = sys.stdin.fileno()
        val = fcntl.ioctl(fileno, termios.TIOCGWINSZ, buf)
        rows, cols, _, _ = struct.unpack(fmt, val)
        if rows and cols:
            return rows, cols
    except (ImportError, OSError, ValueError):
        pass
    return (int(os.environ.get('LINES', 25)),
            int(os.environ.get('COLUMNS', 80)))
