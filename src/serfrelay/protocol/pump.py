import errno
import logging
import selectors

from serfrelay.conduit.base import ByteSource, ByteSink
from serfrelay.errors import RelayError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 2048


class ReadinessError(RelayError):
    """ waiting for the source to become readable failed. """


class PumpError(RelayError):
    """ reading from the source, or writing to the sink, failed. """


def wait_readable(fileno):
    """ blocks until the descriptor is readable. There is no timeout. """
    with selectors.DefaultSelector() as selector:
        selector.register(fileno, selectors.EVENT_READ)
        while not selector.select():
            pass


class StreamPump:
    """
    Copies bytes from a source to a sink until the source reaches end of stream.

    The source is put in non-blocking mode once, then each iteration waits for readiness and reads
    whatever is available, up to the buffer size. A read that would block after readiness was
    signalled goes back to waiting.
    """

    def __init__(self, source: ByteSource, sink: ByteSink, buffer_size=DEFAULT_BUFFER_SIZE, wait=wait_readable,
                 name=None):
        if buffer_size < 1:
            raise ValueError("buffer_size must be positive, not %r" % buffer_size)
        self.source = source
        self.sink = sink
        self.buffer_size = buffer_size
        self.wait = wait
        self.name = name or "source"
        self.transferred = 0

    def run(self):
        """
        :return: the number of bytes copied
        :raises ReadinessError: the readiness wait failed
        :raises PumpError: a read failed with anything other than would-block, or a write failed
        """
        try:
            self.source.set_nonblocking()
            fileno = self.source.fileno()
        except (OSError, ValueError) as e:
            raise ReadinessError("%s select: %s" % (self.name, e)) from e
        while True:
            try:
                self.wait(fileno)
            except (OSError, ValueError) as e:
                raise ReadinessError("%s select: %s" % (self.name, e)) from e
            try:
                data = self.source.read(self.buffer_size)
            except BlockingIOError:
                continue
            except OSError as e:
                if e.errno in (errno.EAGAIN, errno.EWOULDBLOCK):
                    continue
                raise PumpError("read %s: %s" % (self.name, e)) from e
            if not data:
                logger.debug("%s reached end of stream after %d bytes", self.name, self.transferred)
                return self.transferred
            try:
                self.sink.write(data)
            except OSError as e:
                raise PumpError("write from %s: %s" % (self.name, e)) from e
            self.transferred += len(data)
