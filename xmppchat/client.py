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

"""Interactive chat client.

Joins the dialer, the session negotiator and the message loops together:
collect the credentials, connect, log in, announce presence, exchange
messages until "exit", close the session and then the connection.
"""

__docformat__ = "restructuredtext en"

import sys
import logging

from slixmpp.jid import JID as SlixmppJID, InvalidJID

from .jid import parse_address
from .stanza import Presence
from .settings import ChatSettings, NegotiationPolicy
from .transport import Dialer
from .session import SessionNegotiator
from .receiver import MessageReceiver
from .sender import TokenReader, MessageSender
from .exceptions import JIDError, ChatClientError, AddressError, InputError
from .exceptions import TransportNotImplementedError
from .exceptions import SessionError, PresenceError

logger = logging.getLogger("xmppchat.client")

class ChatClient(object):
    """Single-conversation XMPP chat client.

    :Ivariables:
        - `config`: the run configuration
        - `settings`: tunable parameters
        - `dialer`: connection factory
        - `negotiator`: session factory
        - `reader`: standard input token reader
        - `output`: standard output
        - `jid`: the account address, after `collect`
        - `target`: the conversation target, after `collect`
        - `session`: the session, after `login`
        - `receiver`: the incoming message receiver, while conversing
    :Types:
        - `config`: `xmppchat.settings.RunConfig`
        - `settings`: `xmppchat.settings.ChatSettings`
        - `dialer`: `xmppchat.transport.Dialer`
        - `negotiator`: `xmppchat.session.SessionNegotiator`
        - `jid`: `xmppchat.jid.JID`
        - `target`: `xmppchat.jid.JID`
        - `session`: `xmppchat.session.Session`
        - `receiver`: `xmppchat.receiver.MessageReceiver`
    """
    # pylint: disable=R0902
    def __init__(self, config, settings = None, dialer = None,
                    negotiator = None, stdin = None, stdout = None,
                    logger = logger):
        # pylint: disable=R0913,W0621
        self.config = config
        self.settings = settings if settings is not None else ChatSettings()
        self.dialer = dialer if dialer is not None else Dialer(self.settings)
        if negotiator is None:
            negotiator = SessionNegotiator(self.settings)
        self.negotiator = negotiator
        self.reader = TokenReader(stdin)
        self.output = stdout if stdout is not None else sys.stdout
        self.logger = logger
        self.jid = None
        self.target = None
        self.session = None
        self.receiver = None
        self._password = None

    def say(self, text, newline = True):
        """Write a status line (or a prompt) to the output."""
        self.output.write(text + (u"\n" if newline else u""))
        self.output.flush()

    def prompt(self, text):
        """Show `text` and read a single token from the input.

        :raise InputError: when the input cannot be read
        """
        self.say(text, newline = False)
        try:
            return self.reader.read_token()
        except InputError as err:
            raise InputError("Error reading from stdin: {0}".format(err))

    @staticmethod
    def parse(text):
        """Parse an address typed by the user.

        :raise AddressError: when `text` is not a valid JID"""
        try:
            jid = parse_address(text)
            # slixmpp gets the address too, it must accept it as well
            SlixmppJID(str(jid))
        except (JIDError, InvalidJID) as err:
            raise AddressError("Error parsing {0!r} as a JID: {1}"
                                                        .format(text, err))
        return jid

    def check_transport(self):
        """Fail early if the selected transport cannot be used.

        :raise TransportNotImplementedError: for QUIC"""
        if self.config.use_quic:
            raise TransportNotImplementedError(
                                        "QUIC transport is not implemented")

    def collect(self):
        """Ask for the account credentials and parse the addresses."""
        address = self.prompt(u"Input your JID: ")
        self._password = self.prompt(u"Password: ")
        self.jid = self.parse(address)
        self.target = self.parse(self.config.target)

    def login(self):
        """Connect and negotiate the session.

        :returntype: `xmppchat.session.Session`
        """
        self.say(u"Logging in...")
        policy = NegotiationPolicy.for_transport(self.config.transport,
                                                    self.jid, self.settings)
        connection = self.dialer.dial(self.jid, self.config.transport)
        self.session = self.negotiator.negotiate(connection, self.jid,
                                                    self._password, policy)
        return self.session

    def announce_presence(self):
        """Send the initial 'available' presence.

        :raise PresenceError: when it cannot be sent"""
        try:
            self.session.send(Presence())
        except SessionError as err:
            raise PresenceError("Error sending initial presence: {0}"
                                                                .format(err))

    def converse(self):
        """Announce presence, start the receiver and send the input until
        "exit"."""
        self.announce_presence()
        self.receiver = MessageReceiver(self.session, self.target,
                                                                self.output)
        self.receiver.start()
        self.say(u"Start messaging (type 'exit' to exit)")
        sender = MessageSender(self.session, self.reader, self.jid,
                                                                self.target)
        sender.run()

    def shutdown(self):
        """Close the session, wait for the receiver and close the connection.

        :raise SessionError: when the session cannot be closed, the
            connection is not touched then
        :raise TransportError: when the connection cannot be closed
        """
        if self.session is None:
            return
        session = self.session
        self.say(u"Closing session...")
        try:
            session.close()
        finally:
            self._join_receiver()
        self.session = None
        session.connection.close()

    def _join_receiver(self):
        """Wait for the receiver thread to finish."""
        if self.receiver is None:
            return
        if not self.receiver.join(self.settings["disconnect_wait"]):
            self.logger.warning("Message receiver did not stop")
        self.receiver = None

    def abort(self):
        """`shutdown` for the error paths: failures are only logged."""
        try:
            self.shutdown()
        except ChatClientError as err:
            self.logger.error(str(err))

    def run(self):
        """Run the whole client session.

        :raise ChatClientError: on any fatal error
        """
        self.check_transport()
        self.collect()
        self.login()
        try:
            self.converse()
        except BaseException:
            self.abort()
            raise
        self.shutdown()

# vi: sts=4 et sw=4
