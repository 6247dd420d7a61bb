import logging
import socket

from serfrelay.conduit import base

logger = logging.getLogger(__name__)


class SocketSource(base.ByteSource):
    """ reads from a connected stream socket. """

    def __init__(self, sock: socket.socket):
        self.sock = sock

    def fileno(self):
        return self.sock.fileno()

    def set_nonblocking(self):
        self.sock.setblocking(False)

    def read(self, size):
        return self.sock.recv(size)


class SocketSink(base.ByteSink):
    """ writes to a connected stream socket. """

    def __init__(self, sock: socket.socket):
        self.sock = sock

    def write(self, data):
        self.sock.sendall(data)


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self._input = SocketSource(sock)
        self._output = SocketSink(sock)
        self._closed = False

    @property
    def open(self) -> bool:
        return not self._closed and self.sock.fileno() != -1

    @property
    def input(self):
        return self._input

    @property
    def output(self):
        return self._output

    def close_write(self):
        self.sock.shutdown(socket.SHUT_WR)

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # the peer may have closed the socket already
            logger.debug("shutdown on close: %s", e)
        finally:
            self.sock.close()
