""" The connection handle: a thin owner of one underlying transport instance.
    A :class:`Socket` resolves where to connect, decodes every inbound frame
    exactly once, and fans the decoded frame out to any number of listeners.
"""

import logging
import urllib.parse

from . import config
from . import json
from . import transport
from . import weakref

logger = logging.getLogger(__name__)


class URLError(ValueError):
    """ Raised when a connection URL (or the origin used to resolve one)
        cannot be used.
    """



class Event:
    """ The object handed to every listener. The *type* is one of 'open',
        'message', 'close', or 'error'; *data* is the decoded frame for a
        message, and whatever detail the transport provides otherwise. The
        *origin* is the stream name for a demultiplexed message, and the
        empty string for anything arriving on the socket itself.
    """

    def __init__(self, type, data=None, origin=''):

        self.type = type
        self.data = data
        self.origin = origin


    def __repr__(self):
        return 'Event(%r, %r, origin=%r)' % (self.type, self.data, self.origin)


# end of class Event



def base(origin=None):
    """ Return the websocket equivalent of *origin*, which is expected to
        be an http:// or https:// URL. A secure origin results in a secure
        websocket scheme.
    """

    if origin is None:
        origin = config.origin

    parsed = urllib.parse.urlsplit(origin)

    if parsed.scheme == 'https':
        scheme = 'wss'
    elif parsed.scheme == 'http':
        scheme = 'ws'
    else:
        raise URLError('origin must be an http or https URL: ' + repr(origin))

    if parsed.netloc == '':
        raise URLError('origin has no host: ' + repr(origin))

    return scheme + '://' + parsed.netloc



def resolve(url=None, origin=None):
    """ Return the absolute websocket URL for *url*. No URL at all resolves
        to the bare origin; a URL starting with '/' is relative to the origin;
        anything else must already be an absolute ws:// or wss:// URL, and
        is returned unchanged.
    """

    if url is None:
        return base(origin)

    if isinstance(url, str):
        pass
    else:
        raise URLError('URL must be a string, not ' + type(url).__name__)

    if url.startswith('/'):
        return base(origin) + url

    parsed = urllib.parse.urlsplit(url)

    if parsed.scheme not in ('ws', 'wss'):
        raise URLError('not a websocket URL: ' + repr(url))

    if parsed.netloc == '':
        raise URLError('URL has no host: ' + repr(url))

    return url



class Socket:
    """ Own one underlying transport, as created by the *transport* factory.
        The factory is called as ``transport(url, protocols, options)``; the
        default is the configured backend in :mod:`wsbridge.transport`.

        Listeners attached with :func:`register` belong to the
        :class:`Socket`, not to the transport, and survive a second call to
        :func:`connect`.
    """

    def __init__(self, transport=None, origin=None):

        if transport is None:
            transport = _default_transport()

        self.factory = transport
        self.origin = origin
        self.transport = None
        self.url = None
        self.callbacks = dict()

        for event in ('open', 'message', 'close', 'error'):
            self.callbacks[event] = weakref.Callbacks()


    def connect(self, url=None, protocols=None, options=None):
        """ Resolve *url* and construct a new transport for it. The
            *protocols* and *options* are handed to the transport unchanged.
            Any previous transport owned by this socket is closed first. The
            transport is only started once this socket is listening to it,
            so not even the first event is missed.
        """

        url = resolve(url, self.origin)

        if self.transport is not None:
            self.transport.close()
            self.transport = None

        logger.debug('connecting socket to %s', url)

        instance = self.factory(url, protocols, options)
        instance.register(self._open, 'open')
        instance.register(self._message, 'message')
        instance.register(self._close, 'close')
        instance.register(self._error, 'error')

        self.url = url
        self.transport = instance
        instance.start()
        return self


    def close(self):
        """ Close the underlying transport. The socket cannot send until
            :func:`connect` is called again.
        """

        instance = self.transport
        self.transport = None

        if instance is not None:
            instance.close()


    @property
    def is_open(self):
        if self.transport is None:
            return False

        return self.transport.is_open


    def register(self, callback, event='message'):
        """ Register a *callback* to be invoked with an :class:`Event` every
            time *event* occurs. Only a weak reference to the callback is
            retained; the caller is responsible for keeping it alive. A
            lambda or locally defined function that nothing else refers to
            is discarded straight away, and will never be invoked.
        """

        self._callbacks(event).append(callback)


    def unregister(self, callback, event='message'):
        self._callbacks(event).remove(callback)


    def send(self, text):
        """ Transmit one already-serialized frame.
        """

        if self.transport is None:
            raise transport.TransportConnectionError('socket is not connected')

        self.transport.send(text)


    def _callbacks(self, event):

        try:
            return self.callbacks[event]
        except KeyError:
            raise ValueError('unknown event: ' + repr(event))


    def _message(self, frame):
        """ The one and only place inbound frames are decoded.
        """

        try:
            data = json.loads(frame)
        except json.DecodeError as e:
            logger.warning('dropping malformed frame from %s: %s', self.url, e)
            return

        self.callbacks['message'](Event('message', data))


    def _open(self, detail):
        self.callbacks['open'](Event('open', detail))


    def _close(self, detail):
        self.callbacks['close'](Event('close', detail))


    def _error(self, detail):
        self.callbacks['error'](Event('error', detail))


# end of class Socket



def _default_transport():
    return transport.default


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
