"""Transport layer implementations."""

from .. import config

from .base import (
    TransportError,
    TransportTimeout,
    TransportConnectionError,
)

_BACKEND = config.transport

if _BACKEND == "websockets":
    from . import websocket
    default = websocket.ReconnectingWebSocket
else:
    raise ImportError(f"unknown WSBRIDGE_TRANSPORT backend: {_BACKEND!r}")
