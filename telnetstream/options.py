"""Built-in sub-negotiation handlers, and the options a client offers."""

# local imports
from .telopt import (BINARY, ECHO, IS, LFLOW, NAWS, NONE, SEND, SGA, STATUS,
                     TSPEED, TTYPE, name_command)

__all__ = ('handle_sb_ttype', 'handle_sb_tspeed', 'handle_do_naws',
           'DEFAULT_OPTIONS')


def _operation(writer, buf):
    """Return operation byte following ``IAC SB <opt>``, or None."""
    # IAC SB <opt> <operation> ... IAC SE
    if len(buf) < 6:
        writer.log.debug('SB {}: no operation byte: {!r}'
                         .format(name_command(buf[2:3]), buf))
        return None
    return buf[3:4]


def handle_sb_ttype(writer, buf):
    """
    Callback handles IAC-SB-TTYPE-<buf>-SE, :rfc:`1091`.

    SEND is answered with IS and the value of ``TERM`` found in the
    writer's environment.  When ``TERM`` is unset, no answer is made.
    """
    opt = _operation(writer, buf)
    if opt == SEND:
        ttype_str = writer.environ.get('TERM')
        if ttype_str is None:
            writer.log.debug('Terminal type requested, TERM is unset.')
            return
        writer.log.debug('send IAC SB TTYPE IS {0!r} IAC SE'
                         .format(ttype_str))
        writer.send_sb(TTYPE, IS, ttype_str.encode('ascii'))
    elif opt == IS:
        writer.log.debug('recv IAC SB TTYPE IS {!r}'.format(buf[4:-2]))


def handle_sb_tspeed(writer, buf):
    """
    Callback handles IAC-SB-TSPEED-<buf>-SE, :rfc:`1079`.

    SEND is answered with IS and the writer's ``tspeed`` as ``rx,tx``.
    """
    opt = _operation(writer, buf)
    if opt == SEND:
        rx, tx = writer.tspeed
        value = '{},{}'.format(rx, tx).encode('ascii')
        writer.log.debug('send: IAC SB TSPEED IS {0!r} IAC SE'.format(value))
        writer.send_sb(TSPEED, IS, value)
    elif opt == IS:
        writer.log.debug('recv IAC SB TSPEED IS {!r}'.format(buf[4:-2]))


def handle_do_naws(writer, buf):
    """
    Send window size after replying to IAC-DO-NAWS, :rfc:`1073`.

    NAWS is sent in (col, row) order, without an operation byte::

        IAC SB NAWS WIDTH[1] WIDTH[0] HEIGHT[1] HEIGHT[0] IAC SE
    """
    writer.send_sb(NAWS, NONE, writer.window_size)


#: Options registered by every connection at setup, as arguments to
#: :meth:`~.TelnetWriter.add_option`.
DEFAULT_OPTIONS = (
    (BINARY, False, False, None, None),
    (ECHO, False, True, None, None),
    (SGA, True, True, None, None),
    (STATUS, False, False, None, None),
    (TTYPE, True, True, handle_sb_ttype, None),
    (NAWS, True, True, None, handle_do_naws),
    (TSPEED, True, True, handle_sb_tspeed, None),
    (LFLOW, False, False, None, None),
)
