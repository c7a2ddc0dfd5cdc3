
from . import json
from . import transport
from . import weakref
from .socket import Event


class Stream:
    """ A named, logical channel multiplexed over the single connection of
        a :class:`wsbridge.bridge.Bridge`. A :class:`Stream` has no connection
        of its own; every :func:`send` goes out on the bridge's socket, and
        inbound messages arrive only by way of the bridge's dispatcher.

        Streams are not instantiated directly; use
        :func:`wsbridge.bridge.Bridge.stream`, which guarantees there is only
        one :class:`Stream` per name.

        :ivar name: The stream name, used as the routing key on the wire.
        :ivar callback: Invoked as ``callback(action, name)`` for every
            message addressed to this stream. There is exactly one such
            slot; assigning a new callback replaces the old one, and
            assigning None stops delivery.
    """

    def __init__(self, name, bridge):

        self.name = name
        self.bridge = bridge
        self.callback = None
        self.callbacks = weakref.Callbacks()


    def __repr__(self):
        return 'Stream(%r)' % (self.name,)


    def register(self, callback):
        """ Register an additional *callback* to be invoked with an
            :class:`wsbridge.socket.Event` for every message addressed to this
            stream; the event's *data* is the payload, and its *origin* is
            the stream name. As with :func:`wsbridge.socket.Socket.register`,
            only a weak reference to the callback is retained: a lambda
            passed straight in is collected immediately and never invoked.
            Assign :attr:`callback` instead when the stream should hold on
            to it.
        """

        self.callbacks.append(callback)


    def unregister(self, callback):
        self.callbacks.remove(callback)


    def send(self, action):
        """ Send *action* to the remote end of this stream, wrapped in the
            multiplexing envelope.
        """

        socket = self.bridge.socket

        if socket is None:
            raise transport.TransportConnectionError("stream '%s' is not connected" % (self.name))

        message = dict()
        message['stream'] = self.name
        message['payload'] = action

        socket.send(json.dumps(message))


    def _deliver(self, action):
        """ Invoked by the bridge dispatcher with the inner payload of an
            inbound message addressed to this stream.
        """

        callback = self.callback
        if callback is not None:
            weakref.invoke(callback, action, self.name)

        self.callbacks(Event('message', action, self.name))


# end of class Stream


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
