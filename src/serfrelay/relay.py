"""
Runs one relay: connect, send the environment, forward stdin, close the write direction and,
for response-bearing events, copy the listener's answer to stdout.
"""
import logging
import os

from serfrelay.conduit.base import ByteSource, ByteSink
from serfrelay.connector.socketconn import SocketConnector, Target
from serfrelay.errors import RelayError
from serfrelay.protocol.envelope import write_environment
from serfrelay.protocol.pump import StreamPump, wait_readable, DEFAULT_BUFFER_SIZE
from serfrelay.support.events import EventSource

logger = logging.getLogger(__name__)

# module settings, applied from serfrelay.cfg by configure_module()
buffer_size = 2048
mode_variable = 'SERF_EVENT'
response_mode = 'query'
log_level = 'WARNING'

EXIT_OK = 0
EXIT_FAILURE = 1


class RelayState:
    INIT = 'init'
    RESOLVED = 'resolved'
    CONNECTED = 'connected'
    ENV_SENT = 'env-sent'
    STDIN_PUMPED = 'stdin-pumped'
    WRITE_HALF_CLOSED = 'write-half-closed'
    RESPONSE_PUMPED = 'response-pumped'
    CLOSED = 'closed'


class StateChangedEvent:
    def __init__(self, relay, state):
        self.relay = relay
        self.state = state

    def __repr__(self):
        return '<StateChangedEvent %s>' % self.state


def response_requested(environ=None):
    """
    Determines if the listener's answer should be copied to stdout, which is the case when the
    mode variable holds the response mode value.
    """
    if environ is None:
        environ = os.environ
    return environ.get(mode_variable) == response_mode


class Mission:
    """
    What a relay works on: the target, and the connector that owns the resolved candidates
    and the connection. teardown() releases both, and only the first call has any effect.
    """

    def __init__(self, target: Target, connector: SocketConnector=None):
        self.target = target
        self.connector = connector if connector is not None else SocketConnector(target)
        self.torn_down = False

    @property
    def candidates(self):
        return self.connector.candidates

    @property
    def conduit(self):
        return self.connector.conduit

    def teardown(self):
        if self.torn_down:
            return
        self.torn_down = True
        self.connector.disconnect()


class Relay:
    """
    Runs the relay stages in order. Each stage either completes or raises a RelayError, which
    ends the run. The mission is torn down on every path.
    """

    def __init__(self, mission: Mission, environment, stdin: ByteSource, stdout: ByteSink,
                 respond=False, buffer_size=DEFAULT_BUFFER_SIZE, wait=wait_readable):
        """
        :param environment: the KEY=VALUE entries to send, in order
        :param respond: copy what the listener sends back to stdout after the write direction is closed
        :param wait: the readiness wait used by both pumps
        """
        self.mission = mission
        self.environment = environment
        self.stdin = stdin
        self.stdout = stdout
        self.respond = respond
        self.buffer_size = buffer_size
        self.wait = wait
        self.state = RelayState.INIT
        self.events = EventSource()

    def _enter(self, state):
        logger.debug("%s: %s -> %s", self.mission.target.key(), self.state, state)
        self.state = state
        self.events.fire(StateChangedEvent(self, state))

    def _pump(self, source, sink, name):
        return StreamPump(source, sink, buffer_size=self.buffer_size, wait=self.wait, name=name).run()

    def relay(self):
        """
        Runs the stages up to, but not including, teardown.
        :raises RelayError: a stage failed
        """
        connector = self.mission.connector
        connector.resolve()
        self._enter(RelayState.RESOLVED)

        connector.connect()
        self._enter(RelayState.CONNECTED)
        conduit = self.mission.conduit

        write_environment(conduit.output, self.environment)
        self._enter(RelayState.ENV_SENT)

        self._pump(self.stdin, conduit.output, "stdin")
        self._enter(RelayState.STDIN_PUMPED)

        try:
            conduit.close_write()
        except OSError as e:
            raise RelayError("shutdown %s: %s" % (self.mission.target.key(), e)) from e
        self._enter(RelayState.WRITE_HALF_CLOSED)

        if self.respond:
            self._pump(conduit.input, self.stdout, "sock")
            self._enter(RelayState.RESPONSE_PUMPED)

    def close(self):
        if self.state == RelayState.CLOSED:
            return
        self.mission.teardown()
        self._enter(RelayState.CLOSED)

    def run(self):
        """
        Runs the relay and tears it down.
        :return: the process exit status - EXIT_OK, or EXIT_FAILURE after logging the failure
        """
        try:
            self.relay()
        except RelayError as e:
            logger.error("%s", e)
            return EXIT_FAILURE
        finally:
            self.close()
        return EXIT_OK
