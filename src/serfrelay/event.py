"""
Decoding of a relay connection on the listener side.

The listener reads the connection to its end and hands the bytes to parse_event(), which splits
the environment block from the forwarded payload and exposes the serf variables as an Event.
"""
import re
from collections import namedtuple

from serfrelay.errors import RelayError
from serfrelay.protocol.envelope import TERMINATOR

MEMBER_EVENTS = ('member-join', 'member-leave', 'member-failed', 'member-update', 'member-reap')

TAG_PREFIX = 'SERF_TAG_'

Member = namedtuple('Member', ['name', 'address', 'tags'])


class EnvelopeError(RelayError):
    """ the data does not contain a complete environment block. """


def decode_environment(data: bytes):
    """
    Splits the envelope into its entries and the remainder that follows the sentinel.

    >>> decode_environment(b'A=1\\0B=2\\0\\0payload')
    ([b'A=1', b'B=2'], b'payload')
    >>> decode_environment(b'\\0')
    ([], b'')
    """
    entries = []
    position = 0
    while True:
        end = data.find(TERMINATOR, position)
        if end < 0:
            raise EnvelopeError("environment block is not terminated")
        if end == position:
            return entries, data[end + 1:]
        entries.append(data[position:end])
        position = end + 1


def parse_tags(text):
    """
    Parses a member's tag list. Tags are name=value pairs separated by commas, but values may
    themselves hold commas: a segment without '=' continues the previous value, and a doubled
    comma is a literal comma.

    >>> parse_tags('role=web,dc=east') == {'role': 'web', 'dc': 'east'}
    True
    >>> parse_tags('aa=b=,,c=d,e=f,g,h,i=j') == {'aa': 'b=,', 'c': 'd', 'e': 'f,g,h', 'i': 'j'}
    True
    """
    if not text:
        return {}
    tokens = [t for pair in re.findall(r'(.+?)([,=]|\Z)', text) for t in pair]

    groups = []
    pending = []
    for i, token in enumerate(tokens):
        pending.append(token)
        if token == ',' and len(pending) >= 2:
            following = tokens[i + 1] if i + 1 < len(tokens) else None
            if following != ',':
                groups.append(pending)
                pending = []
    if pending:
        groups.append(pending)

    merged = []
    for group in groups:
        if '=' not in group and merged:
            merged[-1].extend(group)
        else:
            merged.append(group)

    tags = {}
    for group in merged:
        name, _, value = ''.join(group[:-1]).partition('=')
        tags[name] = value
    return tags


class Event:
    """
    A serf event as seen by the listener: the serf variables from the environment block and
    the payload that was forwarded from the handler's stdin.
    """

    def __init__(self, env=None, payload=None):
        env = env or {}
        self.env = env
        self.type = env.get('SERF_EVENT')
        self.self_name = env.get('SERF_SELF_NAME')
        self.self_tags = {k[len(TAG_PREFIX):]: v for k, v in env.items() if k.startswith(TAG_PREFIX)}
        self.user_event = env.get('SERF_USER_EVENT')
        self.query_name = env.get('SERF_QUERY_NAME')
        self.user_ltime = env.get('SERF_USER_LTIME')
        self.query_ltime = env.get('SERF_QUERY_LTIME')
        self.payload = payload
        self._members = None

    def __repr__(self):
        return '<Event type=%r name=%r>' % (self.type, self.user_event or self.query_name)

    @property
    def ltime(self):
        return self.user_ltime or self.query_ltime

    @property
    def is_query(self):
        return self.type == 'query'

    @property
    def members(self):
        """ the members listed in the payload of a member-* event, or None for other events. """
        if self.type not in MEMBER_EVENTS:
            return None
        if self._members is None:
            members = []
            for line in (self.payload or '').splitlines():
                fields = line.split('\t')
                fields += [''] * (4 - len(fields))
                members.append(Member(fields[0], fields[1], parse_tags(fields[3])))
            self._members = members
        return self._members


def parse_event(data: bytes, encoding='utf-8'):
    """
    Builds an Event from everything received on a relay connection.
    Returns None when the environment block is incomplete.
    """
    try:
        entries, payload = decode_environment(data)
    except EnvelopeError:
        return None
    env = {}
    for entry in entries:
        name, _, value = entry.decode(encoding, 'surrogateescape').partition('=')
        env[name] = value
    return Event(env, payload=payload.decode(encoding, 'surrogateescape'))
