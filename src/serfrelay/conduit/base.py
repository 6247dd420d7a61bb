import os
import select
from abc import abstractmethod


class ByteSource:
    """
    A readable byte stream backed by a descriptor that can be monitored for readiness.
    """

    @abstractmethod
    def fileno(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def set_nonblocking(self):
        """ puts the underlying descriptor in non-blocking mode. The change persists. """
        raise NotImplementedError

    @abstractmethod
    def read(self, size) -> bytes:
        """ reads at most size bytes.
            Returns an empty bytes object at end of stream.
            Raises BlockingIOError when the descriptor is non-blocking and no data is available yet. """
        raise NotImplementedError


class ByteSink:
    """
    A writable byte stream.
    """

    @abstractmethod
    def write(self, data):
        """ writes all of data, or raises OSError. """
        raise NotImplementedError


class FileSource(ByteSource):
    """ reads from a plain file descriptor, such as standard input. """

    def __init__(self, fd: int):
        self.fd = fd

    def fileno(self):
        return self.fd

    def set_nonblocking(self):
        os.set_blocking(self.fd, False)

    def read(self, size):
        return os.read(self.fd, size)


class FileSink(ByteSink):
    """ writes to a plain file descriptor, such as standard output.
        The descriptor may share its file description with a source that was made non-blocking
        (a terminal on both stdin and stdout), so a full buffer waits for the descriptor to drain. """

    def __init__(self, fd: int):
        self.fd = fd

    def fileno(self):
        return self.fd

    def write(self, data):
        view = memoryview(data)
        while view:
            try:
                written = os.write(self.fd, view)
            except BlockingIOError:
                select.select([], [self.fd], [])
                continue
            view = view[written:]


class Conduit:
    """
    A conduit allows two-way communication. It provides a readable source and a writable sink.
    The write direction can be closed on its own, which the peer observes as end of stream, while
    the read direction stays usable.
    """

    @property
    @abstractmethod
    def input(self) -> ByteSource:
        """ the source that provides the bytes received from the peer. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> ByteSink:
        """ the sink that sends bytes to the peer. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, input and output can be used,
            subject to close_write() having been called. """
        raise NotImplementedError

    @abstractmethod
    def close_write(self):
        """
        Closes the write direction only.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both directions and releases the underlying resource.
        """
        raise NotImplementedError
