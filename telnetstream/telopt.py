"""Telnet command, option and operation byte values."""

__all__ = (
    "AO",
    "AYT",
    "BINARY",
    "BRK",
    "CMD_EOR",
    "DM",
    "DO",
    "DONT",
    "EC",
    "ECHO",
    "EL",
    "EOR",
    "GA",
    "IAC",
    "IP",
    "IS",
    "LFLOW",
    "NAWS",
    "NONE",
    "NOP",
    "SB",
    "SE",
    "SEND",
    "SGA",
    "STATUS",
    "TM",
    "TSPEED",
    "TTYPE",
    "WILL",
    "WONT",
    "name_command",
    "name_commands",
)

# commands, rfc-854
IAC = b"\xff"
DONT = b"\xfe"
DO = b"\xfd"
WONT = b"\xfc"
WILL = b"\xfb"
SB = b"\xfa"
GA = b"\xf9"
EL = b"\xf8"
EC = b"\xf7"
AYT = b"\xf6"
AO = b"\xf5"
IP = b"\xf4"
BRK = b"\xf3"
DM = b"\xf2"
NOP = b"\xf1"
SE = b"\xf0"
CMD_EOR = b"\xef"

# options
BINARY = b"\x00"
ECHO = b"\x01"
SGA = b"\x03"
STATUS = b"\x05"
TM = b"\x06"
TTYPE = b"\x18"
EOR = b"\x19"
NAWS = b"\x1f"
TSPEED = b" "
LFLOW = b"!"

# sub-negotiation operations.  NONE marks a reply carrying no operation
# byte, such as NAWS; it never appears on the wire in that position.
(IS, SEND) = (bytes([const]) for const in range(2))
NONE = b"\xff"

#: Negotiation verbs followed by a single option byte.
VERBS = (DO, DONT, WILL, WONT)

#: List of globals that may match an iac command option bytes
_DEBUG_OPTS = dict(
    [
        (value, key)
        for key, value in globals().items()
        if key
        in (
            "IAC",
            "DONT",
            "DO",
            "WONT",
            "WILL",
            "SB",
            "GA",
            "EL",
            "EC",
            "AYT",
            "AO",
            "IP",
            "BRK",
            "DM",
            "NOP",
            "SE",
            "CMD_EOR",
            "BINARY",
            "ECHO",
            "SGA",
            "STATUS",
            "TM",
            "TTYPE",
            "EOR",
            "NAWS",
            "TSPEED",
            "LFLOW",
        )
    ]
)


def name_command(byte):
    """Return string description for (maybe) telnet command byte."""
    return _DEBUG_OPTS.get(byte, repr(byte))


def name_commands(cmds, sep=" "):
    """Return string description for array of (maybe) telnet command bytes."""
    return sep.join([name_command(bytes([byte])) for byte in cmds])
