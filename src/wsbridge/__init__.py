""" Python implementation of a websocket bridge: a thin multiplexing layer
    that lets any number of named streams share one persistent,
    automatically reconnecting websocket connection.
"""

# Utility components.

from . import config
from . import json
from . import weakref

# The transport layer, and the connection handle built on top of it.

from . import transport
from .socket import Event, Socket, URLError, resolve

# Primary public-facing interfaces.

from .bridge import Bridge, connect
from .stream import Stream

from .transport import (
    TransportError,
    TransportTimeout,
    TransportConnectionError,
)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
