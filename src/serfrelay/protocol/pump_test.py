import errno
import os
import socket
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, is_, raises, calling

from serfrelay.conduit.base import FileSource, FileSink
from serfrelay.conduit.socket_conduit import SocketSource, SocketSink
from serfrelay.protocol.pump import StreamPump, PumpError, ReadinessError, wait_readable


class ScriptedSource:
    """ a source that replays a list of read results; exceptions are raised. """

    def __init__(self, *results):
        self.results = list(results)
        self.nonblocking_calls = 0
        self.sizes = []

    def fileno(self):
        return 99

    def set_nonblocking(self):
        self.nonblocking_calls += 1

    def read(self, size):
        self.sizes.append(size)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class CollectingSink:
    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(bytes(data))


def no_wait(fileno):
    pass


class StreamPumpTest(unittest.TestCase):

    def test_copies_until_end_of_stream(self):
        source = ScriptedSource(b"abc", b"de", b"")
        sink = CollectingSink()
        sut = StreamPump(source, sink, wait=no_wait)
        assert_that(sut.run(), is_(5))
        assert_that(sink.writes, is_([b"abc", b"de"]))

    def test_nonblocking_set_once(self):
        source = ScriptedSource(b"a", b"b", b"")
        StreamPump(source, CollectingSink(), wait=no_wait).run()
        assert_that(source.nonblocking_calls, is_(1))

    def test_reads_up_to_buffer_size(self):
        source = ScriptedSource(b"a", b"")
        StreamPump(source, CollectingSink(), buffer_size=16, wait=no_wait).run()
        assert_that(source.sizes, is_([16, 16]))

    def test_would_block_waits_again(self):
        wait = Mock()
        source = ScriptedSource(BlockingIOError(errno.EAGAIN, "try again"), b"x", b"")
        sink = CollectingSink()
        StreamPump(source, sink, wait=wait).run()
        assert_that(wait.call_count, is_(3))
        assert_that(sink.writes, is_([b"x"]))

    def test_eagain_oserror_waits_again(self):
        source = ScriptedSource(OSError(errno.EAGAIN, "try again"), b"")
        assert_that(StreamPump(source, CollectingSink(), wait=no_wait).run(), is_(0))

    def test_empty_read_is_not_an_error(self):
        sink = CollectingSink()
        assert_that(StreamPump(ScriptedSource(b""), sink, wait=no_wait).run(), is_(0))
        assert_that(sink.writes, is_([]))

    def test_read_error(self):
        source = ScriptedSource(OSError(errno.EIO, "i/o error"))
        sut = StreamPump(source, CollectingSink(), wait=no_wait, name="stdin")
        assert_that(calling(sut.run), raises(PumpError, "read stdin: .*i/o error"))

    def test_write_error(self):
        sink = Mock()
        sink.write.side_effect = BrokenPipeError(errno.EPIPE, "broken pipe")
        sut = StreamPump(ScriptedSource(b"x"), sink, wait=no_wait)
        assert_that(calling(sut.run), raises(PumpError, "broken pipe"))

    def test_readiness_error(self):
        wait = Mock(side_effect=OSError(errno.EBADF, "bad file descriptor"))
        sut = StreamPump(ScriptedSource(), CollectingSink(), wait=wait, name="sock")
        assert_that(calling(sut.run), raises(ReadinessError, "sock select"))

    def test_buffer_size_must_be_positive(self):
        assert_that(calling(StreamPump).with_args(ScriptedSource(), CollectingSink(), buffer_size=0),
                    raises(ValueError))


class StreamPumpDescriptorTest(unittest.TestCase):
    """ pumps over real pipes and sockets. """

    def test_pipe_to_socket(self):
        r, w = os.pipe()
        local, peer = socket.socketpair()
        try:
            os.write(w, b"payload " * 1000)
            os.close(w)
            w = None
            transferred = StreamPump(FileSource(r), SocketSink(local), buffer_size=2048).run()
            local.shutdown(socket.SHUT_WR)
            received = b""
            while True:
                chunk = peer.recv(65536)
                if not chunk:
                    break
                received += chunk
            assert_that(transferred, is_(8000))
            assert_that(received, is_(b"payload " * 1000))
        finally:
            os.close(r)
            if w is not None:
                os.close(w)
            local.close()
            peer.close()

    def test_socket_to_pipe(self):
        r, w = os.pipe()
        local, peer = socket.socketpair()
        try:
            peer.sendall(b"answer")
            peer.shutdown(socket.SHUT_WR)
            StreamPump(SocketSource(local), FileSink(w)).run()
            assert_that(os.read(r, 100), is_(b"answer"))
            assert_that(local.getblocking(), is_(False))
        finally:
            for fd in (r, w):
                os.close(fd)
            local.close()
            peer.close()

    def test_wait_readable(self):
        local, peer = socket.socketpair()
        try:
            peer.sendall(b"x")
            assert_that(wait_readable(local.fileno()), is_(None))
        finally:
            local.close()
            peer.close()

    def test_wait_readable_bad_descriptor(self):
        assert_that(calling(wait_readable).with_args(-1), raises(ValueError))

    def test_pump_names_readiness_failure(self):
        source = ScriptedSource()
        source.fileno = lambda: -1
        sut = StreamPump(source, CollectingSink())
        assert_that(calling(sut.run), raises(ReadinessError))

    def test_closed_stdin_is_readiness_failure(self):
        r, w = os.pipe()
        os.close(r)
        os.close(w)
        sut = StreamPump(FileSource(r), CollectingSink(), name="stdin")
        assert_that(calling(sut.run), raises(ReadinessError, "stdin select"))

    def test_set_nonblocking_failure_is_readiness_failure(self):
        source = ScriptedSource(b"never read")
        source.set_nonblocking = Mock(side_effect=OSError(errno.EBADF, "Bad file descriptor"))
        sut = StreamPump(source, CollectingSink(), name="stdin")
        assert_that(calling(sut.run), raises(ReadinessError, "stdin select"))
        assert_that(source.sizes, is_([]))
