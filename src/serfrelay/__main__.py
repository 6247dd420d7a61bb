"""Entry point for the serf event relay.

Usage:
    serf-relay [-v] [--prefix PREFIX] host port
    python -m serfrelay host port

Configured as a serf event handler, for example:
    serf agent -event-handler "serf-relay 127.0.0.1 7000"
"""

import argparse
import logging
import sys

from configobj import ConfigObjError

from serfrelay import relay
from serfrelay.conduit.base import FileSource, FileSink
from serfrelay.config.config import configure_module
from serfrelay.connector.socketconn import SocketConnector, Target
from serfrelay.protocol.envelope import snapshot_environment

logger = logging.getLogger('serfrelay')

LOG_FORMAT = 'serf-relay: %(message)s'


def build_parser():
    parser = argparse.ArgumentParser(
        prog="serf-relay",
        description="Forward a serf event to a listener over TCP",
    )
    parser.add_argument("host", help="listener host name or address")
    parser.add_argument("port", help="listener port number or service name")
    parser.add_argument(
        "--prefix",
        action="append",
        default=[],
        help="only forward environment variables starting with PREFIX (repeatable)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log more detail to stderr (repeat for debug output)",
    )
    return parser


def setup_logging(level_name, verbosity):
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    level = max(logging.DEBUG, level - 10 * verbosity)
    logging.basicConfig(format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger().setLevel(level)


def main(argv=None, environ=None, stdin_fd=0, stdout_fd=1) -> int:
    """
    Runs the relay with the process's stdio.
    Exits with status 2 from argument parsing when host and port are not both given.
    :return: the exit status
    """
    args = build_parser().parse_args(argv)
    setup_logging(relay.log_level, args.verbose)

    try:
        configure_module(relay, 'serfrelay')
    except (ConfigObjError, OSError) as e:
        logger.error("configuration: %s", e)
        return relay.EXIT_FAILURE
    setup_logging(relay.log_level, args.verbose)

    target = Target(args.host, args.port)
    mission = relay.Mission(target, SocketConnector(target, report_errors=args.verbose > 0))
    forwarder = relay.Relay(
        mission,
        snapshot_environment(environ, prefixes=args.prefix),
        FileSource(stdin_fd),
        FileSink(stdout_fd),
        respond=relay.response_requested(environ),
        buffer_size=relay.buffer_size,
    )
    return forwarder.run()


if __name__ == "__main__":
    sys.exit(main())
