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

"""Standard input reading and outgoing chat messages."""

__docformat__ = "restructuredtext en"

import sys
import logging
import collections

from .stanza import Message
from .exceptions import InputError, SessionError

logger = logging.getLogger("xmppchat.sender")

EXIT_TOKEN = u"exit"

class TokenReader(object):
    """Reads whitespace-delimited tokens from a text stream.

    Lines are read one at a time and split, so a line with several words
    gives several tokens.

    :Ivariables:
        - `stream`: the input stream
    """
    def __init__(self, stream = None):
        self.stream = stream if stream is not None else sys.stdin
        self._pending = collections.deque()

    def read_token(self):
        """Return the next token.

        :raise InputError: at the end of the input or on read error
        """
        while not self._pending:
            try:
                line = self.stream.readline()
            except (OSError, UnicodeDecodeError) as err:
                raise InputError(str(err))
            if not line:
                raise InputError("EOF")
            self._pending.extend(line.split())
        return self._pending.popleft()

class MessageSender(object):
    """Sends every token read from the input as a chat message.

    :Ivariables:
        - `session`: the session to send the messages on
        - `reader`: source of the message bodies
        - `from_jid`: the account address
        - `to_jid`: the conversation target
    :Types:
        - `session`: `xmppchat.session.Session`
        - `reader`: `TokenReader`
        - `from_jid`: `xmppchat.jid.JID`
        - `to_jid`: `xmppchat.jid.JID`
    """
    def __init__(self, session, reader, from_jid, to_jid, logger = logger):
        # pylint: disable=W0621,R0913
        self.session = session
        self.reader = reader
        self.from_jid = from_jid
        self.to_jid = to_jid
        self.logger = logger

    def run(self):
        """Read and send until the "exit" token.

        :raise InputError: when the input cannot be read
        :raise SessionError: when a message cannot be sent

        :return: number of messages sent
        """
        count = 0
        while True:
            try:
                token = self.reader.read_token()
            except InputError as err:
                raise InputError("Error reading input: {0}".format(err))
            if token == EXIT_TOKEN:
                break
            if not token:
                continue
            self.send(token)
            count += 1
        return count

    def send(self, body):
        """Send `body` as a chat message to the target."""
        message = Message(from_jid = self.from_jid, to_jid = self.to_jid,
                                        stanza_type = u"chat", body = body)
        try:
            self.session.send(message)
        except SessionError as err:
            raise SessionError("Error sending message: {0}".format(err))
        self.logger.debug("Sent {0!r}".format(message))

# vi: sts=4 et sw=4
