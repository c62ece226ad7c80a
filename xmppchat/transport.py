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

"""Transport dialer.

Opens the plain TCP connection to the account's server. TLS is negotiated
later, within the XMPP stream, by the session negotiator.
"""

__docformat__ = "restructuredtext en"

import time
import socket
import logging
import threading

from .settings import ChatSettings
from .resolver import SRVResolver, is_ip_literal
from .exceptions import TransportError, TransportNotImplementedError

logger = logging.getLogger("xmppchat.transport")

class Connection(object):
    """Connected stream socket.

    Once a session is established on it, the connection is owned by the
    session and nothing else may read or write the socket.

    :Ivariables:
        - `sock`: the socket
        - `peer`: remote address and port
    :Types:
        - `sock`: :std:`socket.socket`
        - `peer`: (`str`, `int`)
    """
    def __init__(self, sock, peer):
        self.sock = sock
        self.peer = peer
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self):
        """`True` when `close` was called."""
        return self._closed

    def close(self):
        """Close the socket.

        :raise TransportError: when the socket cannot be closed
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.debug("Closing connection to {0!r}".format(self.peer))
        try:
            self.sock.close()
        except OSError as err:
            raise TransportError("Error ending connection: {0}".format(err))

    def __repr__(self):
        return "<Connection to {0!r}{1}>".format(self.peer,
                                        " (closed)" if self._closed else "")

class Dialer(object):
    """Connection factory.

    :Ivariables:
        - `settings`: the settings used (`connect_timeout`, `server`,
          `c2s_port`, `c2s_service`)
        - `resolver`: SRV resolver
    """
    def __init__(self, settings = None, resolver = None, logger = logger):
        # pylint: disable=W0621
        self.settings = settings if settings is not None else ChatSettings()
        if resolver is None:
            resolver = SRVResolver(min(10.0, self.settings["connect_timeout"]))
        self.resolver = resolver
        self.logger = logger

    def endpoints(self, domain):
        """Return the (host, port) pairs to try for `domain`, in order.

        :raise TransportError: if the service is not available
        """
        port = self.settings["c2s_port"]
        server = self.settings["server"]
        if server:
            return [(server, port)]
        if is_ip_literal(domain):
            return [(domain.strip(u"[]"), port)]
        result = self.resolver.resolve_srv(domain, self.settings["c2s_service"])
        if result is None:
            return [(domain, port)]
        if not result:
            raise TransportError("Error dialing connection: XMPP service"
                                    " not available at {0!r}".format(domain))
        return result

    def dial(self, jid, transport = u"tcp"):
        """Connect to the server of `jid`.

        All the connection attempts share the single `connect_timeout`.

        :Parameters:
            - `jid`: the account address
            - `transport`: "tcp" or "quic"
        :Types:
            - `jid`: `xmppchat.jid.JID`

        :raise TransportNotImplementedError: for the QUIC transport
        :raise TransportError: on connection failure or timeout

        :returntype: `Connection`
        """
        if transport == u"quic":
            raise TransportNotImplementedError(
                                        "QUIC transport is not implemented")
        if transport != u"tcp":
            raise TransportError("Unknown transport: {0!r}".format(transport))
        deadline = time.monotonic() + self.settings["connect_timeout"]
        last_error = None
        for host, port in self.endpoints(jid.domain):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                last_error = socket.timeout("timed out")
                break
            self.logger.debug("Connecting to {0}:{1}...".format(host, port))
            try:
                sock = socket.create_connection((host, port),
                                                        timeout = remaining)
            except OSError as err:
                self.logger.debug("Connection to {0}:{1} failed: {2}"
                                                .format(host, port, err))
                last_error = err
                continue
            sock.settimeout(None)
            peer = sock.getpeername()[:2]
            self.logger.debug("Connected to {0}:{1}".format(*peer))
            return Connection(sock, peer)
        raise TransportError("Error dialing connection: {0}".format(
                                        last_error or "no address to connect"))

ChatSettings.add_setting(u"connect_timeout", type = float, default = 30.0,
    validator = ChatSettings.validate_positive_float,
    doc = u"""Time in seconds allowed for connecting and for the stream
negotiation."""
    )
ChatSettings.add_setting(u"c2s_port", type = int, default = 5222,
    validator = ChatSettings.get_int_range_validator(1, 65536),
    doc = u"""Port number for client to server connections, when there is
no SRV record."""
    )
ChatSettings.add_setting(u"c2s_service", default = u"xmpp-client",
    doc = u"""SRV service name for client to server connections."""
    )
ChatSettings.add_setting(u"server",
    doc = u"""Server address to connect to. By default a DNS SRV record
look-up is done for the account domain and if that fails the domain itself
is used."""
    )

# vi: sts=4 et sw=4
