''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps` for frames
    on the wire.
'''

# The business about conditionally importing the libraries is intended to
# avoid importing less efficient libraries if they are not available. msgspec
# is the declared dependency; the others are only reached in stripped-down
# environments.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


class DecodeError(ValueError):
    """ Raised by :func:`loads` for a frame that is not valid JSON,
        regardless of which library did the decoding.
    """


# Frames are sent as websocket text frames, so unlike the underlying
# libraries (msgspec and orjson both produce bytes) every 'dumps' variant
# here returns str. The stdlib variant is forced into the same compact
# form the others produce.

if msgspec is not None:
    _encoder = msgspec.json.Encoder()
    _decoder = msgspec.json.Decoder()
    _decode_errors = (msgspec.DecodeError,)

    def dumps(value):
        return _encoder.encode(value).decode()

    _loads = _decoder.decode

elif orjson is not None:
    _decode_errors = (orjson.JSONDecodeError,)

    def dumps(value):
        return orjson.dumps(value).decode()

    _loads = orjson.loads

else:
    _decode_errors = (json.JSONDecodeError,)

    def dumps(value):
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False)

    _loads = json.loads


def loads(frame):
    """ Decode a single *frame*, which may be str or bytes. Any failure to
        decode is raised as a :class:`DecodeError`.
    """

    try:
        return _loads(frame)
    except _decode_errors as e:
        raise DecodeError(str(e)) from e
    except UnicodeDecodeError as e:
        raise DecodeError(str(e)) from e


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
