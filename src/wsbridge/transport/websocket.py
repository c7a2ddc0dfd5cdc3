"""Reconnecting websocket transport."""

from __future__ import annotations

import collections
import logging
import threading
from typing import Any, Dict, Optional, Sequence, Union

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect

from .. import config
from .base import Transport, TransportConnectionError

logger = logging.getLogger(__name__)


class ReconnectingWebSocket(Transport):
    """A websocket client that keeps itself connected.

    A background thread, started by :meth:`start`, owns the connection: it
    connects, delivers every inbound frame to the ``message`` listeners in
    arrival order, and when the connection is lost it reconnects with an
    exponential backoff. All listeners are invoked on that thread.

    Once the thread gives up, or once :meth:`close` is called, :meth:`send`
    raises :class:`TransportConnectionError`.

    Frames sent while disconnected are queued and flushed, in order, on the
    next successful connection.
    """

    def __init__(
        self,
        url: str,
        protocols: Union[str, Sequence[str], None] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(url, protocols, config.options(options))

        if protocols is None:
            self.subprotocols = None
        elif isinstance(protocols, str):
            self.subprotocols = [protocols]
        else:
            self.subprotocols = list(protocols)

        self.retry_count = 0
        self.connection = None
        self.queue: collections.deque = collections.deque()

        # The lock covers both the connection reference and the act of
        # sending on it, so that queued frames are flushed before any new
        # frame goes out.

        self.lock = threading.Lock()
        self.shutdown = threading.Event()
        self.thread = threading.Thread(target=self.run, daemon=True)

    @property
    def is_open(self) -> bool:
        return self.connection is not None

    @property
    def stopped(self) -> bool:
        """True once the transport will make no further connection attempts,
        either because it was closed or because it gave up retrying."""

        if self.shutdown.is_set():
            return True

        return self.thread.ident is not None and not self.thread.is_alive()

    def delay(self) -> float:
        """Seconds to wait before the next connection attempt."""

        if self.retry_count == 0:
            return 0

        minimum = self.options['min_reconnection_delay']
        maximum = self.options['max_reconnection_delay']
        factor = self.options['reconnection_delay_grow_factor']

        delay = minimum * factor ** (self.retry_count - 1)
        return min(delay, maximum)

    def start(self) -> 'ReconnectingWebSocket':
        if self.shutdown.is_set():
            raise TransportConnectionError('transport is closed: ' + self.url)

        self.thread.start()
        return self

    def send(self, text: str) -> None:
        if self.stopped:
            raise TransportConnectionError('transport is closed: ' + self.url)

        with self.lock:
            if self.connection is None:
                self._enqueue(text)
                return

            try:
                self.connection.send(text)
            except ConnectionClosed:
                # The receive thread has not noticed yet; hold on to the
                # frame for the next connection.
                self._enqueue(text)

    def close(self) -> None:
        self.shutdown.set()

        with self.lock:
            connection = self.connection
            self.queue.clear()

        if connection is not None:
            connection.close()

        if self.thread.is_alive() and threading.current_thread() is not self.thread:
            self.thread.join(self.options['connection_timeout'])

    def run(self) -> None:

        while not self.shutdown.is_set():
            delay = self.delay()
            if delay > 0:
                logger.debug('reconnecting to %s in %.3f sec', self.url, delay)
                if self.shutdown.wait(delay):
                    break

            logger.debug('connecting to %s', self.url)
            connected = False

            try:
                with connect(
                    self.url,
                    subprotocols=self.subprotocols,
                    open_timeout=self.options['connection_timeout'],
                    proxy=self.options['proxy'],
                ) as connection:
                    connected = True

                    if self.shutdown.is_set():
                        # Closed while the handshake was under way.
                        connection.close()
                        self._closed(connection)
                        break

                    self._receive(connection)

            except (OSError, WebSocketException) as e:
                if connected:
                    raise

                self.retry_count += 1
                logger.debug('connection to %s failed: %s', self.url, e)
                self._emit('error', e)

                maximum = self.options['max_retries']
                if maximum is not None and self.retry_count > maximum:
                    logger.warning('giving up on %s after %d attempts', self.url, self.retry_count)
                    with self.lock:
                        self.queue.clear()
                    break

                continue

            # The first reconnection after a lost connection waits out the
            # minimum delay.

            self.retry_count = 1

    def _closed(self, connection) -> None:
        protocol = connection.protocol
        detail = dict(code=protocol.close_code, reason=protocol.close_reason)

        logger.info('connection to %s closed: %r', self.url, detail)
        self._emit('close', detail)

    def _enqueue(self, text: str) -> None:
        maximum = self.options['max_enqueued_messages']

        if maximum is not None and len(self.queue) >= maximum:
            logger.warning('send queue for %s is full, dropping frame', self.url)
            return

        self.queue.append(text)

    def _receive(self, connection) -> None:
        """Deliver frames from *connection* until it closes."""

        self.retry_count = 0

        with self.lock:
            self.connection = connection
            try:
                while self.queue:
                    connection.send(self.queue[0])
                    self.queue.popleft()
            except ConnectionClosed:
                # Whatever is left stays queued; the loop below will see
                # the closure.
                pass

        logger.info('connected to %s', self.url)
        self._emit('open')

        try:
            for frame in connection:
                self._emit('message', frame)
        except ConnectionClosed as e:
            self._emit('error', e)

        with self.lock:
            self.connection = None

        self._closed(connection)
