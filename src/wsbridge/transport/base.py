"""Transport interface.

This is the (small) contract that transport implementations should follow.
A transport is built, has its listeners registered, and is then started;
nothing is emitted before :meth:`Transport.start` is called.
It lives apart from :mod:`wsbridge.bridge` so the multiplexing layer remains
transport-agnostic: anything constructible as ``Transport(url, protocols,
options)`` that can send text and report inbound frames will do.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence, Union

from .. import weakref


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A connection attempt did not complete in time."""


class TransportConnectionError(TransportError):
    """The transport is not connected, or has been closed."""


events = ('open', 'message', 'close', 'error')


class Transport(ABC):
    """Minimal contract for a reconnecting, bidirectional message transport.

    Listeners are held by weak reference; see :class:`wsbridge.weakref.Callbacks`.
    ``message`` listeners receive each inbound frame as it arrived on the
    wire (str or bytes); the other events receive a single detail argument.
    """

    def __init__(
        self,
        url: str,
        protocols: Union[str, Sequence[str], None] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.url = url
        self.protocols = protocols
        self.options = options
        self.callbacks = dict((event, weakref.Callbacks()) for event in events)

    def register(self, callback: Callable, event: str = 'message') -> None:
        """Invoke *callback* every time *event* occurs."""
        self._callbacks(event).append(callback)

    def unregister(self, callback: Callable, event: str = 'message') -> None:
        """Stop invoking *callback* for *event*."""
        self._callbacks(event).remove(callback)

    def _callbacks(self, event: str) -> weakref.Callbacks:
        try:
            return self.callbacks[event]
        except KeyError:
            raise ValueError('unknown event: ' + repr(event)) from None

    def _emit(self, event: str, detail: Any = None) -> None:
        self.callbacks[event](detail)

    @abstractmethod
    def start(self) -> 'Transport':
        """Begin connecting. Construction alone never emits events, so that
        listeners can be registered in between; returns the transport."""

    @abstractmethod
    def send(self, text: str) -> None:
        """Send one frame."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the connection and stop reconnecting."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False
