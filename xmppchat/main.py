#
# (C) Copyright 2011 Jacek Konieczny <jajcus@jajcus.net>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License Version
# 2.1 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program; if not, write to the Free Software
# Foundation, Inc., 675 Mass Ave, Cambridge, MA 02139, USA.
#

"""Command-line entry point.

Usage: ``xmppchat [-h] [-v] [-quic] <JID Target>``
"""

__docformat__ = "restructuredtext en"

import os
import sys
import logging
import argparse

from .client import ChatClient
from .session import SessionNegotiator, TrafficTap
from .settings import ChatSettings, RunConfig
from .exceptions import ChatClientError, UsageError

logger = logging.getLogger("xmppchat.main")

DATE_FORMAT = "%Y/%m/%d %H:%M:%S"
LOG_FORMAT = "%(asctime)s %(message)s"

TRAFFIC_LOGGERS = (("xmppchat.OUT", "SENT"), ("xmppchat.IN", "RECV"))

class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting errors with `UsageError`."""
    def error(self, message):
        raise UsageError("Error parsing flags: {0}".format(message))

def make_parser(prog):
    """Build the command-line parser."""
    parser = _ArgumentParser(prog = prog, add_help = False,
                                    allow_abbrev = False,
                                    description = "Interactive XMPP chat.")
    parser.add_argument("-h", dest = "help", action = "store_true",
                                    help = "Show this help message.")
    parser.add_argument("-v", dest = "verbose", action = "store_true",
                                    help = "Show verbose logging.")
    parser.add_argument("-quic", dest = "quic", action = "store_true",
                                    help = "Use quic to connect to server.")
    parser.add_argument("targets", metavar = "JID", nargs = "*",
                                    help = "The JID to chat with.")
    return parser

def print_help(parser, stdout = None, stderr = None):
    """Print the usage text."""
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    parser.print_help(stderr)
    stdout.write("Running: {0} <flags> <JID Target>\n".format(parser.prog))
    stdout.flush()

def setup_logging(stream = None):
    """Set up the diagnostic logging to the standard error."""
    logging.basicConfig(level = logging.INFO, format = LOG_FORMAT,
                            datefmt = DATE_FORMAT,
                            stream = stream if stream is not None else sys.stderr)
    logging.getLogger("slixmpp").setLevel(logging.WARNING)

def setup_traffic_logging(verbose, stream = None):
    """Configure the raw traffic loggers.

    Traffic is printed, prefixed with 'SENT' or 'RECV', only in the
    verbose mode.

    :returntype: `xmppchat.session.TrafficTap`
    """
    stream = stream if stream is not None else sys.stderr
    loggers = []
    for name, prefix in TRAFFIC_LOGGERS:
        trace = logging.getLogger(name)
        trace.propagate = False
        for handler in list(trace.handlers):
            trace.removeHandler(handler)
        if verbose:
            handler = logging.StreamHandler(stream)
            handler.setFormatter(logging.Formatter(prefix + " " + LOG_FORMAT,
                                                                DATE_FORMAT))
            trace.addHandler(handler)
            trace.setLevel(logging.DEBUG)
        else:
            trace.addHandler(logging.NullHandler())
            trace.setLevel(logging.WARNING)
        loggers.append(trace)
    return TrafficTap(*loggers)

def main(argv = None, stdin = None, stdout = None, stderr = None,
                                            dialer = None, negotiator = None):
    """Parse the command line and run the client.

    :return: the process exit status
    """
    # pylint: disable=R0913
    if argv is None:
        argv = sys.argv
    prog = os.path.basename(argv[0]) if argv else "xmppchat"
    setup_logging(stderr)
    parser = make_parser(prog)
    try:
        args = parser.parse_args(argv[1:])
    except UsageError as err:
        logger.error(str(err))
        return 1
    if args.help:
        print_help(parser, stdout, stderr)
        return 0
    if len(args.targets) != 1:
        print_help(parser, stdout, stderr)
        return 1

    config = RunConfig(verbose = args.verbose, use_quic = args.quic,
                                                    target = args.targets[0])
    settings = ChatSettings()
    tap = setup_traffic_logging(config.verbose, stderr)
    if negotiator is None:
        negotiator = SessionNegotiator(settings, tap)
    client = ChatClient(config, settings, dialer = dialer,
                            negotiator = negotiator, stdin = stdin,
                            stdout = stdout)
    try:
        client.run()
    except ChatClientError as err:
        logger.error(str(err))
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 1
    return 0

def run():
    """Console script entry point."""
    sys.exit(main())

# vi: sts=4 et sw=4
