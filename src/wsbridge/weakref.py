
import logging
import weakref

logger = logging.getLogger(__name__)


def ref(thing):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a simple object or a bound method.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)



def invoke(callback, *args):
    """ Invoke *callback* with *args*. Any exception raised by the callback is
        logged, along with its traceback, and goes no further.
    """

    try:
        callback(*args)
    except Exception:
        logger.exception('exception in callback %r', callback)



class Callbacks:
    """ An ordered collection of weakly referenced callables. Registering
        a listener does not keep it alive; once the original callable goes
        out of scope it is quietly discarded the next time the collection
        is invoked.
    """

    def __init__(self):
        self.references = list()


    def __bool__(self):
        return len(self.references) > 0


    def __len__(self):
        return len(self.references)


    def append(self, callback):
        """ Add *callback* to the collection. Adding the same callable twice
            is a no-op.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        if callback in self:
            return

        self.references.append(ref(callback))


    def remove(self, callback):
        """ Remove *callback* from the collection, if it is present.
        """

        for reference in list(self.references):
            if reference() == callback:
                self.references.remove(reference)


    def __contains__(self, callback):

        for reference in self.references:
            if reference() == callback:
                return True

        return False


    def __call__(self, *args):
        """ Invoke every live callback with *args*, in registration order.
            An exception raised by one callback is logged and does not
            prevent the remaining callbacks from being invoked.
        """

        if self.references:
            pass
        else:
            return

        invalid = list()

        # Iterate over a copy; a callback is allowed to register or remove
        # other callbacks while being invoked.

        for reference in tuple(self.references):
            callback = reference()

            if callback is None:
                invalid.append(reference)
                continue

            invoke(callback, *args)

        for reference in invalid:
            try:
                self.references.remove(reference)
            except ValueError:
                pass


# end of class Callbacks


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
