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

"""Session establishment and the established session.

The XMPP stream negotiation itself (STARTTLS, SASL, resource binding) is
done by `slixmpp`. `SessionNegotiator` runs the slixmpp protocol object on
the connection opened by `xmppchat.transport.Dialer`, in its own event loop
thread, and hands back a blocking `Session` object.
"""

__docformat__ = "restructuredtext en"

import queue
import asyncio
import logging

from slixmpp import ClientXMPP

from .jid import JID
from .mainloop import ThreadedEventLoop
from .settings import ChatSettings
from .xmppserializer import XMPPSerializer
from .exceptions import NegotiationError, SessionError

logger = logging.getLogger("xmppchat.session")

class TrafficTap(object):
    """Receives copies of the raw data sent and received on a stream.

    The data is logged on the `sent_logger` and `received_logger` at the
    DEBUG level; nothing is changed in the stream.
    """
    def __init__(self, sent_logger = None, received_logger = None):
        self.sent_logger = sent_logger or logging.getLogger("xmppchat.OUT")
        self.received_logger = (received_logger
                                    or logging.getLogger("xmppchat.IN"))

    def sent(self, data):
        """Tap for the outgoing data."""
        self._log(self.sent_logger, data)

    def received(self, data):
        """Tap for the incoming data."""
        self._log(self.received_logger, data)

    @staticmethod
    def _log(tap_logger, data):
        """Log `data` (`bytes` or `str`) on `tap_logger`."""
        if not tap_logger.isEnabledFor(logging.DEBUG):
            return
        if isinstance(data, bytes):
            data = data.decode("utf-8", "replace")
        tap_logger.debug(data)

class _ChatXMPP(ClientXMPP):
    """slixmpp client attached to an already dialed connection.

    Among the offered mechanisms allowed by the policy slixmpp chooses the
    strongest one, by its own ranking.

    :Ivariables:
        - `incoming`: top-level elements received after the session start,
          `None` marks the end of the stream
        - `established`: `True` after the 'session_start' event
    :Types:
        - `incoming`: :std:`queue.Queue`
    """
    def __init__(self, jid, password, policy, tap):
        ClientXMPP.__init__(self, str(jid), password, plugin_config = {
                    "feature_mechanisms": {
                        "use_mechs": set(policy.mechanisms),
                        "unencrypted_plain": bool(policy.insecure_auth),
                        },
                    })
        self.tap = tap
        self.incoming = queue.Queue()
        self.established = False
        self.default_domain = policy.server_name
        # set by XMLStream.connect(), which is not used here; the name the
        # certificate is verified against on STARTTLS
        self._expected_server_name = policy.server_name
        self._service_name = policy.server_name
        self.use_ssl = False
        self.force_starttls = policy.starttls
        self.disable_starttls = not policy.starttls
        self.get_ssl_context().minimum_version = policy.tls_min_version
        self.add_filter("in", self._chat_queue_incoming)
        self.add_event_handler("session_start", self._chat_session_started)
        self.add_event_handler("disconnected", self._chat_stream_ended)

    def start_send_queue(self):
        """Start writing the queued outgoing stanzas.

        `XMLStream.connect()` does that for the connections slixmpp opens
        itself; must be called from the event loop thread.
        """
        task = getattr(self, "_run_out_filters", None)
        if task is None or task.done():
            self._run_out_filters = asyncio.ensure_future(self.run_filters())
        self.disconnect_reason = None

    def data_received(self, data):
        self.tap.received(data)
        ClientXMPP.data_received(self, data)

    def send_raw(self, data):
        self.tap.sent(data)
        ClientXMPP.send_raw(self, data)

    # the '_chat_' prefix keeps these apart from the slixmpp attributes
    def _chat_session_started(self, event):
        """Start queueing the incoming stanzas."""
        # pylint: disable=W0613
        self.established = True

    def _chat_stream_ended(self, event):
        """Wake up the readers."""
        # pylint: disable=W0613
        self.incoming.put(None)

    def _chat_queue_incoming(self, stanza):
        """Incoming filter: pass every established-session element to the
        `incoming` queue, unchanged."""
        if self.established:
            self.incoming.put(stanza.xml)
        return stanza

class Session(object):
    """Established XMPP session.

    The session owns the connection and the event loop thread. Reading
    (`read_element`) and writing (`send`) may be done from different
    threads.

    :Ivariables:
        - `jid`: the JID bound to the session
        - `connection`: the underlying connection
    :Types:
        - `jid`: `JID`
        - `connection`: `xmppchat.transport.Connection`
    """
    def __init__(self, client, connection, loop_thread, settings = None,
                                                            logger = logger):
        # pylint: disable=W0621,R0913
        self.client = client
        self.connection = connection
        self.loop_thread = loop_thread
        self.settings = settings if settings is not None else ChatSettings()
        self.logger = logger
        self.jid = JID(str(client.boundjid))
        self._serializer = XMPPSerializer()
        self._serializer.emit_head(None, self.jid.domain)
        self._closed = False

    @property
    def closed(self):
        """`True` once `close` was called."""
        return self._closed

    def send(self, stanza):
        """Send a stanza and wait until it is passed to the transport.

        :Parameters:
            - `stanza`: the stanza to send
        :Types:
            - `stanza`: `xmppchat.stanza.Stanza`

        :raise SessionError: when the session is closed or the data cannot
            be written
        """
        if self._closed:
            raise SessionError("Session closed")
        data = self._serializer.emit_stanza(stanza.as_xml())
        try:
            self.loop_thread.call(self._send_raw(data))
        except (RuntimeError, OSError) as err:
            raise SessionError(str(err))

    async def _send_raw(self, data):
        """Write `data` on the stream, from the loop thread."""
        transport = self.client.transport
        if transport is None or transport.is_closing():
            raise SessionError("Not connected")
        self.client.send_raw(data)

    def read_element(self, timeout = None):
        """Wait for the next element received on the stream.

        :Parameters:
            - `timeout`: maximum time to wait, in seconds

        :raise TimeoutError: when nothing arrived within `timeout`
        :return: the element or `None` when the stream has ended
        :returntype: :etree:`ElementTree.Element`
        """
        try:
            element = self.client.incoming.get(timeout = timeout)
        except queue.Empty:
            raise TimeoutError("No data received")
        if element is None:
            # keep the marker for the next reader
            self.client.incoming.put(None)
        return element

    def close(self):
        """Close the XML stream and stop the event loop.

        The connection is left open, `connection.close()` should be called
        afterwards.

        :raise SessionError: when the stream cannot be closed cleanly
        """
        if self._closed:
            return
        self._closed = True
        wait = self.settings["disconnect_wait"]
        try:
            self.loop_thread.call(self._disconnect(wait), timeout = wait + 1)
        except (RuntimeError, OSError, TimeoutError) as err:
            raise SessionError("Error ending session: {0}".format(err))
        finally:
            self.loop_thread.stop()
            self.client.incoming.put(None)

    async def _disconnect(self, wait):
        """Send the stream end tag and wait for the peer's one."""
        if self.client.transport is None:
            return
        self.logger.debug("Closing the stream")
        result = self.client.disconnect(wait = wait)
        if result is not None:
            await result

class SessionNegotiator(object):
    """Establishes `Session` objects on dialed connections.

    :Ivariables:
        - `settings`: settings (`connect_timeout`, `disconnect_wait`)
        - `tap`: receiver of the raw negotiation traffic
    """
    def __init__(self, settings = None, tap = None, logger = logger):
        # pylint: disable=W0621
        self.settings = settings if settings is not None else ChatSettings()
        self.tap = tap if tap is not None else TrafficTap()
        self.logger = logger

    def negotiate(self, connection, jid, password, policy):
        """Negotiate the XMPP stream on `connection`.

        :Parameters:
            - `connection`: the dialed connection
            - `jid`: the account address
            - `password`: the account password
            - `policy`: what to negotiate
        :Types:
            - `connection`: `xmppchat.transport.Connection`
            - `jid`: `JID`
            - `password`: `str`
            - `policy`: `xmppchat.settings.NegotiationPolicy`

        :raise NegotiationError: on any negotiation failure, the connection
            is closed then
        :returntype: `Session`
        """
        if not policy.bind_resource:
            raise NegotiationError("Error logging in: sessions without"
                                            " resource binding are not supported")
        loop_thread = ThreadedEventLoop()
        loop_thread.start()
        try:
            client = loop_thread.call(
                        self._establish(connection, jid, password, policy),
                        timeout = self.settings["connect_timeout"])
        except TimeoutError:
            self._cleanup(loop_thread, connection)
            raise NegotiationError("Error logging in: timed out")
        except Exception as err:
            # e.g. slixmpp rejecting the account address
            self._cleanup(loop_thread, connection)
            if isinstance(err, NegotiationError):
                raise
            raise NegotiationError("Error logging in: {0}".format(err))
        self.logger.debug("Session established as {0}".format(
                                                            client.boundjid))
        return Session(client, connection, loop_thread, self.settings,
                                                                self.logger)

    @staticmethod
    def _cleanup(loop_thread, connection):
        """Release the resources of a failed negotiation."""
        loop_thread.stop()
        connection.close()

    async def _establish(self, connection, jid, password, policy):
        """Run the negotiation, from the loop thread."""
        loop = asyncio.get_running_loop()
        client = _ChatXMPP(jid, password, policy, self.tap)
        client.address = connection.peer
        outcome = loop.create_future()

        def finish(error = None):
            """Set the negotiation outcome, only the first call counts."""
            if outcome.done():
                return
            if error:
                outcome.set_exception(NegotiationError(
                                        "Error logging in: {0}".format(error)))
            else:
                outcome.set_result(client)

        def session_started(event):
            """Check the TLS requirement was met and finish."""
            # pylint: disable=W0613
            if policy.starttls and "starttls" not in client.features:
                finish("STARTTLS was not negotiated")
            else:
                finish()

        client.add_event_handler("session_start", session_started)
        client.add_event_handler("failed_all_auth",
                            lambda event: finish("authentication failed"))
        client.add_event_handler("stream_error",
                            lambda error: finish("stream error: {0}".format(
                                                        error["condition"])))
        client.add_event_handler("disconnected",
                            lambda reason: finish("disconnected{0}".format(
                                    ": {0}".format(reason) if reason else "")))
        try:
            client.start_send_queue()
            await loop.create_connection(lambda: client, sock = connection.sock)
            return await outcome
        except (Exception, asyncio.CancelledError):
            if client.transport is not None:
                client.transport.abort()
            raise

ChatSettings.add_setting(u"disconnect_wait", type = float, default = 2.0,
    validator = ChatSettings.validate_positive_float,
    doc = u"""Time in seconds to wait for the server's stream end tag when
closing the session."""
    )

# vi: sts=4 et sw=4
