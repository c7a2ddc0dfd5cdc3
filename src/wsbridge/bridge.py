""" The :class:`Bridge` multiplexes any number of named streams over a single
    persistent connection. Outbound messages for a stream are wrapped in an
    envelope of the form::

        {"stream": "<name>", "payload": <any JSON value>}

    and inbound messages carrying such an envelope are routed to the stream
    with the matching name. Anything else is treated as unscoped traffic and
    handed, whole, to the default callback established with :func:`listen`.
"""

import logging

from . import json
from . import transport
from . import weakref
from .socket import Socket
from .stream import Stream

logger = logging.getLogger(__name__)


class Bridge:
    """ Bridge between a websocket and any number of :class:`Stream`
        instances. The bridge is created without a connection; call
        :func:`connect` to establish one. The stream registry, the default
        callback, and any listeners registered on the bridge belong to the
        bridge itself, and persist across calls to :func:`connect`.

        The *transport* and *origin* arguments are passed through to each
        :class:`wsbridge.socket.Socket` created by :func:`connect`.

        Example::

            bridge = wsbridge.Bridge()
            bridge.connect('/ws/')
            bridge.listen(print)
            bridge.demultiplex('mystream', print)
            bridge.stream('mystream').send({'prop1': 'value1'})
    """

    def __init__(self, transport=None, origin=None):

        self.factory = transport
        self.origin = origin
        self.socket = None
        self.default_callback = None
        self.streams = dict()
        self.callbacks = dict()

        for event in ('open', 'message', 'close', 'error'):
            self.callbacks[event] = weakref.Callbacks()


    def connect(self, url=None, protocols=None, options=None):
        """ Connect to the websocket server at *url*, which defaults to the
            configured origin; a relative URL (one starting with '/') is
            resolved against that origin. The optional *protocols* are the
            websocket subprotocols to request, and *options* are handed to
            the transport; see :mod:`wsbridge.config` for the options
            understood by the default transport.

            Calling :func:`connect` again replaces the existing connection.
        """

        # Listeners must be in place before the transport starts delivering
        # frames.

        socket = Socket(self.factory, self.origin)
        self._attach(socket)
        socket.connect(url, protocols, options)

        previous = self.socket
        self.socket = socket

        # Nothing from the replaced socket, not even its closure, reaches
        # the bridge's listeners.

        if previous is not None:
            self._detach(previous)
            previous.close()

        return self


    def close(self):
        """ Close the connection, if any. Streams and callbacks are retained,
            and will be used again if :func:`connect` is called.
        """

        socket = self.socket
        self.socket = None

        if socket is not None:
            socket.close()


    def demultiplex(self, name, callback):
        """ Establish *callback* as the handler for all messages arriving on
            the stream *name*; the callback will receive the ``action`` and
            ``stream`` arguments. This is shorthand for setting the
            :attr:`Stream.callback` attribute of :func:`stream`.
        """

        stream = self.stream(name)
        stream.callback = callback
        return stream


    def listen(self, callback=None):
        """ Establish *callback* as the default handler, invoked for every
            message that does not arrive on a stream. The callback receives
            the whole decoded message as the ``action`` argument, and None as
            the ``stream`` argument. Passing None clears the default handler.
        """

        if callback is None or callable(callback):
            pass
        else:
            raise TypeError('the default callback must be callable')

        self.default_callback = callback


    def register(self, callback, event='message'):
        """ Register a *callback* to be invoked with a
            :class:`wsbridge.socket.Event` every time *event* occurs on the
            connection. Valid events are 'open', 'message', 'close', and
            'error'. A 'message' callback is only invoked for unscoped
            messages, never for messages arriving on a stream.

            Only a weak reference to the callback is retained, so the caller
            must keep it alive. In particular, ``bridge.register(lambda e:
            ...)`` registers a callback that is garbage collected at once
            and never invoked; use :func:`listen` or
            :func:`demultiplex` for a callback the bridge should own.
        """

        self._callbacks(event).append(callback)


    def unregister(self, callback, event='message'):
        self._callbacks(event).remove(callback)


    def send(self, payload):
        """ Send *payload* as-is, without a stream envelope.
        """

        if self.socket is None:
            raise transport.TransportConnectionError('bridge is not connected')

        self.socket.send(json.dumps(payload))


    def stream(self, name):
        """ Return the :class:`Stream` for *name*, creating it if this is the
            first reference to that name. Subsequent calls with the same name
            return the same instance.
        """

        if isinstance(name, str):
            pass
        else:
            raise TypeError('stream name must be a string, not ' + type(name).__name__)

        try:
            stream = self.streams[name]
        except KeyError:
            stream = Stream(name, self)
            self.streams[name] = stream

        return stream


    def _attach(self, socket):
        socket.register(self._dispatch, 'message')
        socket.register(self._open, 'open')
        socket.register(self._close, 'close')
        socket.register(self._error, 'error')


    def _detach(self, socket):
        socket.unregister(self._dispatch, 'message')
        socket.unregister(self._open, 'open')
        socket.unregister(self._close, 'close')
        socket.unregister(self._error, 'error')


    def _callbacks(self, event):

        try:
            return self.callbacks[event]
        except KeyError:
            raise ValueError('unknown event: ' + repr(event))


    def _dispatch(self, event):
        """ Route one decoded inbound message to at most one destination:
            either the stream named in its envelope, or the default handler.
        """

        message = event.data

        try:
            name = message['stream']
        except (KeyError, TypeError):
            name = None

        # Only a JSON object can be an envelope; indexing any other decoded
        # value by name raises TypeError.

        if name is None:
            callback = self.default_callback
            if callback is not None:
                weakref.invoke(callback, message, None)

            self.callbacks['message'](event)
            return

        if isinstance(name, str):
            stream = self.streams.get(name)
        else:
            stream = None

        if stream is None:
            logger.debug('dropping message for unknown stream %r', name)
            return

        stream._deliver(message.get('payload'))


    def _open(self, event):
        self.callbacks['open'](event)


    def _close(self, event):
        self.callbacks['close'](event)


    def _error(self, event):
        self.callbacks['error'](event)


# end of class Bridge



def connect(url=None, protocols=None, options=None, transport=None, origin=None):
    """ Convenience function: create a :class:`Bridge` and :func:`connect` it.
    """

    bridge = Bridge(transport, origin)
    return bridge.connect(url, protocols, options)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
