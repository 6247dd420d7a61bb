"""
The environment envelope.

Each entry is written as KEY=VALUE followed by a zero byte, in order. A lone zero byte follows
the last entry, so an empty environment is a single zero byte and the reader can tell where the
environment ends and the forwarded payload begins.
"""
import os

from serfrelay.conduit.base import ByteSink
from serfrelay.errors import RelayError

TERMINATOR = b'\0'


class SendError(RelayError):
    """ the environment could not be written to the connection. """


def snapshot_environment(environ=None, prefixes=()):
    """
    Takes a point-in-time copy of the environment as a list of KEY=VALUE byte strings.
    :param environ: the mapping to copy. Defaults to the process environment.
    :param prefixes: when given, only names starting with one of these prefixes are kept.
    """
    if environ is None:
        environ = os.environb if os.supports_bytes_environ else os.environ
    prefixes = tuple(os.fsencode(p) for p in prefixes)
    entries = []
    for name, value in list(environ.items()):
        entry = os.fsencode(name) + b'=' + os.fsencode(value)
        if prefixes and not entry.startswith(prefixes):
            continue
        entries.append(entry)
    return entries


def encode_entry(entry):
    """
    >>> encode_entry('A=1')
    b'A=1\\x00'
    """
    data = os.fsencode(entry)
    if TERMINATOR in data:
        raise ValueError("environment entry contains a zero byte: %r" % (data,))
    return data + TERMINATOR


def encode_environment(entries):
    """
    Encodes the entries into the envelope.

    >>> encode_environment(['A=1', 'B=2'])
    b'A=1\\x00B=2\\x00\\x00'
    >>> encode_environment([])
    b'\\x00'
    """
    return b''.join(encode_entry(e) for e in entries) + TERMINATOR


def write_environment(sink: ByteSink, entries):
    """ writes the whole envelope to the sink. Nothing is read back. """
    try:
        data = encode_environment(entries)
    except ValueError as e:
        raise SendError("send environment: %s" % e) from e
    try:
        sink.write(data)
    except OSError as e:
        raise SendError("send environment: %s" % e) from e
