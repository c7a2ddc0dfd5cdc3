import logging
import pytest
import wsbridge

from wsbridge.socket import Socket, resolve


class Recorder:
    """ Collects every :class:`wsbridge.Event` it is invoked with. Listeners
        are weakly referenced, so tests keep a Recorder in a local variable
        for as long as it needs to receive events.
    """

    def __init__(self):
        self.events = list()

    def __call__(self, event):
        self.events.append(event)


def test_resolve_default_origin():

    assert resolve(origin='http://example.com') == 'ws://example.com'
    assert resolve(origin='https://example.com:8443') == 'wss://example.com:8443'


def test_resolve_configured_origin(monkeypatch):

    monkeypatch.setattr(wsbridge.config, 'origin', 'https://page.example')
    assert resolve() == 'wss://page.example'
    assert resolve('/ws/') == 'wss://page.example/ws/'


def test_resolve_relative():

    resolved = resolve('/somepath/', origin='http://localhost:8000')
    assert resolved == 'ws://localhost:8000/somepath/'

    resolved = resolve('/somepath/?query=1', origin='https://localhost')
    assert resolved == 'wss://localhost/somepath/?query=1'


def test_resolve_absolute():

    # Absolute URLs ignore the origin entirely.

    assert resolve('ws://other.example/x', origin='https://page') == 'ws://other.example/x'
    assert resolve('wss://other.example:9/x?y=1') == 'wss://other.example:9/x?y=1'


@pytest.mark.parametrize('url', [5, b'/bytes/', 'http://example.com', 'ws://', 'relative/path', ''])
def test_resolve_bad_url(url):

    with pytest.raises(wsbridge.URLError):
        resolve(url, origin='http://localhost')


@pytest.mark.parametrize('origin', ['ftp://example.com', 'localhost', 'http://', 'ws://example.com'])
def test_resolve_bad_origin(origin):

    with pytest.raises(ValueError):
        resolve('/path/', origin=origin)


def test_send_unconnected(fake):

    socket = Socket(fake)

    with pytest.raises(wsbridge.TransportConnectionError):
        socket.send('{}')

    assert socket.is_open == False


def test_connect(fake):

    socket = Socket(fake, origin='https://example.com')
    options = {'anything': 'goes'}
    returned = socket.connect('/ws/', ['proto1', 'proto2'], options)

    assert returned is socket
    assert len(fake.instances) == 1

    transport = fake.instances[0]
    assert transport is socket.transport
    assert transport.url == 'wss://example.com/ws/'
    assert transport.protocols == ['proto1', 'proto2']
    assert transport.options is options
    assert transport.started == True

    socket.send('{"a":1}')
    assert transport.sent == ['{"a":1}']


def test_connect_bad_url(fake):

    socket = Socket(fake)

    with pytest.raises(wsbridge.URLError):
        socket.connect('http://example.com')

    assert fake.instances == []
    assert socket.transport is None


def test_decode_once(fake):

    first = Recorder()
    second = Recorder()

    socket = Socket(fake)
    socket.register(first)
    socket.register(second, 'message')
    socket.connect('ws://localhost/')

    socket.transport.receive({'type': 'test', 'payload': 'message 1'})

    assert len(first.events) == 1
    assert len(second.events) == 1

    event = first.events[0]
    assert event is second.events[0]
    assert event.type == 'message'
    assert event.data == {'type': 'test', 'payload': 'message 1'}
    assert event.origin == ''


def test_malformed_frame(fake, caplog):

    listener = Recorder()

    socket = Socket(fake)
    socket.register(listener)
    socket.connect('ws://localhost/')

    with caplog.at_level(logging.WARNING, logger='wsbridge.socket'):
        socket.transport.receive('{"stream": "stream1", ')

    assert listener.events == []
    assert 'malformed' in caplog.text

    # The socket carries on as usual afterwards.

    socket.transport.receive('[1, 2]')
    assert len(listener.events) == 1
    assert listener.events[0].data == [1, 2]


def test_reconnect_keeps_listeners(fake):

    listener = Recorder()

    socket = Socket(fake)
    socket.register(listener)
    socket.connect('ws://localhost/one')
    socket.connect('ws://localhost/two')

    assert len(fake.instances) == 2

    old, new = fake.instances
    assert old.closed == True
    assert new.closed == False
    assert socket.transport is new
    assert socket.url == 'ws://localhost/two'

    new.receive({'a': 1})
    assert len(listener.events) == 1


def test_lifecycle_events(fake):

    opened = Recorder()
    closed = Recorder()
    errors = Recorder()

    socket = Socket(fake)
    socket.register(opened, 'open')
    socket.register(closed, 'close')
    socket.register(errors, 'error')
    socket.connect('ws://localhost/')

    transport = socket.transport
    transport.open()
    assert socket.is_open == True

    failure = ConnectionResetError('reset')
    transport.fail(failure)
    transport.drop(1006, 'gone')
    assert socket.is_open == False

    assert [event.type for event in opened.events] == ['open']
    assert [event.type for event in errors.events] == ['error']
    assert [event.type for event in closed.events] == ['close']

    assert errors.events[0].data is failure
    assert closed.events[0].data == {'code': 1006, 'reason': 'gone'}


def test_register_errors(fake):

    socket = Socket(fake)

    with pytest.raises(ValueError):
        socket.register(Recorder(), 'bogus')

    with pytest.raises(TypeError):
        socket.register('not callable')


def test_unregister(fake):

    listener = Recorder()

    socket = Socket(fake)
    socket.register(listener)
    socket.connect('ws://localhost/')
    socket.unregister(listener)

    socket.transport.receive({'a': 1})
    assert listener.events == []


def test_close(fake):

    socket = Socket(fake)
    socket.connect('ws://localhost/')
    transport = socket.transport

    socket.close()
    assert transport.closed == True

    with pytest.raises(wsbridge.TransportConnectionError):
        socket.send('{}')

    # Closing twice is harmless.
    socket.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
