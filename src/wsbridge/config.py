""" Default settings for wsbridge. Every value here is read once from the
    environment at import time; anything set here can also be overridden
    per call.
"""

import os


def _float(name, default):

    value = os.environ.get(name)

    if value is None or value == '':
        return default

    try:
        return float(value)
    except ValueError:
        raise ValueError("%s must be a number, not %r" % (name, value))


def _integer(name, default):
    """ An empty value means 'unlimited', which is represented as None.
    """

    try:
        value = os.environ[name]
    except KeyError:
        return default

    if value == '':
        return None

    try:
        return int(value)
    except ValueError:
        raise ValueError("%s must be an integer, not %r" % (name, value))


# There is no browser page to inherit an origin from; relative URLs are
# resolved against this origin instead.

origin = os.environ.get('WSBRIDGE_ORIGIN', 'http://localhost')

transport = os.environ.get('WSBRIDGE_TRANSPORT', 'websockets')


# Reconnection behavior for the default transport. The names and defaults
# follow the reconnecting-websocket conventions, with times in seconds
# instead of milliseconds.

defaults = dict()
defaults['min_reconnection_delay'] = _float('WSBRIDGE_MIN_RECONNECTION_DELAY', 1.0)
defaults['max_reconnection_delay'] = _float('WSBRIDGE_MAX_RECONNECTION_DELAY', 10.0)
defaults['reconnection_delay_grow_factor'] = _float('WSBRIDGE_RECONNECTION_DELAY_GROW_FACTOR', 1.3)
defaults['connection_timeout'] = _float('WSBRIDGE_CONNECTION_TIMEOUT', 4.0)
defaults['max_retries'] = _integer('WSBRIDGE_MAX_RETRIES', None)
defaults['max_enqueued_messages'] = _integer('WSBRIDGE_MAX_ENQUEUED_MESSAGES', None)

# Handed to websockets as-is: True honors the usual proxy environment
# variables, None connects directly, and a string names the proxy URL.

defaults['proxy'] = True


def options(overrides=None):
    """ Return a new dictionary of transport options: the module defaults,
        updated with any *overrides*. Unknown option names are rejected
        with a ValueError.
    """

    merged = dict(defaults)

    if overrides is None:
        return merged

    for key, value in overrides.items():
        if key in defaults:
            merged[key] = value
        else:
            raise ValueError('unknown transport option: ' + repr(key))

    return merged


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
