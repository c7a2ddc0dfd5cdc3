import json
import queue
import socket
import threading

import pytest

from websockets.exceptions import ConnectionClosed
from websockets.sync.server import serve

import wsbridge
from wsbridge.transport.base import Transport


# Reconnection settings fast enough to keep the test suite snappy.

fast = dict()
fast['min_reconnection_delay'] = 0.05
fast['max_reconnection_delay'] = 0.25
fast['reconnection_delay_grow_factor'] = 1
fast['connection_timeout'] = 2
fast['proxy'] = None


class FakeTransport(Transport):
    """ In-memory stand-in for the websocket transport. Every instance is
        recorded in :attr:`instances`; the test drives inbound traffic by
        calling :func:`receive` and friends.
    """

    instances = list()

    def __init__(self, url, protocols=None, options=None):
        super().__init__(url, protocols, options)
        self.sent = list()
        self.closed = False
        self.opened = False
        self.started = False
        FakeTransport.instances.append(self)

    @property
    def is_open(self):
        return self.opened and not self.closed

    def start(self):
        self.started = True
        return self

    def send(self, text):
        if self.closed:
            raise wsbridge.TransportConnectionError('closed')
        self.sent.append(text)

    def close(self):
        self.closed = True

    def open(self):
        self.opened = True
        self._emit('open')

    def receive(self, frame):
        """ Deliver *frame*; anything other than str or bytes is encoded as
            JSON first.
        """

        if isinstance(frame, (str, bytes)):
            pass
        else:
            frame = json.dumps(frame)

        self._emit('message', frame)

    def drop(self, code=1006, reason=''):
        self.opened = False
        self._emit('close', dict(code=code, reason=reason))

    def fail(self, exception):
        self._emit('error', exception)


@pytest.fixture
def fake():
    FakeTransport.instances.clear()
    yield FakeTransport
    FakeTransport.instances.clear()


@pytest.fixture
def bridge(fake):
    """ A connected :class:`wsbridge.Bridge` backed by a :class:`FakeTransport`.
        The transport itself is available as ``bridge.socket.transport``.
    """

    instance = wsbridge.Bridge(transport=fake)
    instance.connect('ws://localhost/')
    return instance



class Server:
    """ A real websocket server, running in a background thread. Every
        decoded inbound message is put on :attr:`messages`; every accepted
        connection is put on :attr:`accepted`.
    """

    def __init__(self):
        self.accepted = queue.Queue()
        self.messages = queue.Queue()
        self.connections = list()
        self.paths = list()
        self.connected = threading.Event()

        self.server = serve(self.handler, '127.0.0.1', 0)
        self.port = self.server.socket.getsockname()[1]
        self.origin = 'http://127.0.0.1:%d' % (self.port)
        self.url = 'ws://127.0.0.1:%d' % (self.port)

        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def handler(self, connection):
        self.connections.append(connection)
        self.paths.append(connection.request.path)
        self.accepted.put(connection)
        self.connected.set()

        try:
            for message in connection:
                self.messages.put(json.loads(message))
        except ConnectionClosed:
            pass

    def send(self, message):
        text = json.dumps(message)

        for connection in list(self.connections):
            try:
                connection.send(text)
            except ConnectionClosed:
                pass

    def send_raw(self, text):
        for connection in list(self.connections):
            connection.send(text)

    def shutdown(self):
        for connection in self.connections:
            connection.close()

        self.server.shutdown()
        self.thread.join(2)


@pytest.fixture
def server():
    instance = Server()
    yield instance
    instance.shutdown()


@pytest.fixture
def live(server):
    """ A :class:`wsbridge.Bridge` that resolves relative URLs against the
        test server. It is not connected; the test does that, after setting
        up any listeners it needs.
    """

    instance = wsbridge.Bridge(origin=server.origin)
    yield instance
    instance.close()


@pytest.fixture
def options():
    return dict(fast)


@pytest.fixture
def unused_port():
    """ A TCP port on the loopback interface with nothing listening on it.
    """

    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(('127.0.0.1', 0))
    port = listener.getsockname()[1]
    listener.close()
    return port


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
