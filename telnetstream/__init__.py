"""telnetstream: a blocking Telnet client protocol implemented in python."""
# pylint: disable=wildcard-import,undefined-variable
from .stream_reader import *    # noqa
from .stream_writer import *    # noqa
from .options import *          # noqa
from .transport import *        # noqa
from .client import *           # noqa
from .client_shell import *     # noqa
from .telopt import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    stream_reader.__all__ +
    stream_writer.__all__ +
    options.__all__ +
    transport.__all__ +
    client.__all__ +
    client_shell.__all__ +
    telopt.__all__
)  # noqa

__author__ = "Jeff Quast"
__copyright__ = "Copyright 2013"
__license__ = 'ISC'
__version__ = __get_version()
