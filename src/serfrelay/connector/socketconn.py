import logging
import socket
from collections import namedtuple

from serfrelay.conduit.base import Conduit
from serfrelay.conduit.socket_conduit import SocketConduit
from serfrelay.connector.base import AbstractConnector, ConnectError, ResolutionError

logger = logging.getLogger(__name__)


class Target(namedtuple('Target', ['hostname', 'port'])):
    """
    The listener to connect to. The port may be a number or a service name, and is kept as given.
    """
    __slots__ = ()

    def key(self):
        """
        >>> Target('localhost', '7373').key()
        'localhost:7373'
        >>> Target('::1', 'http').key()
        '[::1]:http'
        """
        host = self.hostname
        if ':' in host:
            host = '[' + host + ']'
        return host + ':' + str(self.port)


CandidateEndpoint = namedtuple('CandidateEndpoint', ['family', 'type', 'proto', 'sockaddr'])


def resolve(target: Target, resolver=socket.getaddrinfo):
    """
    Resolves the target into the ordered list of stream endpoints to try, any address family.
    The order is the resolver's order.
    :raises ResolutionError: the resolver could not map the name or service.
    """
    try:
        infos = resolver(target.hostname, target.port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError("%s %s -- getaddrinfo error: %s" % (target.hostname, target.port, e)) from e
    return [CandidateEndpoint(family, type_, proto, sockaddr)
            for family, type_, proto, _canonname, sockaddr in infos]


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a stream socket to the first candidate address
    of the target that accepts a connection.
    """
    def __init__(self, target: Target, report_errors=False, resolver=socket.getaddrinfo,
                 socket_factory=socket.socket):
        """
        :param target: the host and port to connect to
        :param report_errors: log failed candidates as warnings rather than debug messages
        :param resolver: getaddrinfo compatible callable
        :param socket_factory: called with family, type and protocol to create each socket
        """
        super().__init__()
        self.target = target
        self._report_errors = report_errors
        self._resolver = resolver
        self._socket_factory = socket_factory
        self._candidates = None

    @property
    def endpoint(self):
        return self.target.key()

    @property
    def candidates(self):
        return self._candidates

    def resolve(self):
        """ resolves the candidates, once. Subsequent calls return the held candidates. """
        if self._candidates is None:
            self._candidates = resolve(self.target, self._resolver)
            logger.debug("%s resolved to %d candidate(s)", self.endpoint, len(self._candidates))
        return self._candidates

    def _connect(self) -> Conduit:
        method = logger.warning if self._report_errors else logger.debug
        last_error = None
        for candidate in self.resolve():
            try:
                sock = self._socket_factory(candidate.family, candidate.type, candidate.proto)
            except OSError as e:
                method("cannot create socket for %s: %s", candidate.sockaddr, e)
                last_error = e
                continue
            try:
                sock.connect(candidate.sockaddr)
            except OSError as e:
                method("error opening socket to %s: %s", candidate.sockaddr, e)
                sock.close()
                last_error = e
                continue
            logger.info("opened socket to %s", candidate.sockaddr)
            return SocketConduit(sock)
        message = "failed to connect to %s" % self.endpoint
        if last_error is not None:
            message += ": %s" % last_error
        raise ConnectError(message) from last_error

    def _disconnect(self):
        if self._candidates is not None:
            logger.debug("releasing %d candidate(s) for %s", len(self._candidates), self.endpoint)
            self._candidates = None
