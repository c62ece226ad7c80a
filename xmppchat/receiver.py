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

"""Incoming message display."""

__docformat__ = "restructuredtext en"

import sys
import logging
import threading

from .stanza import Message, split_tag
from .exceptions import StanzaDecodeError

logger = logging.getLogger("xmppchat.receiver")

class MessageReceiver(object):
    """Prints chat messages received on a session.

    Runs in its own thread until the session reports the end of the stream.
    Every message is labelled with the conversation target, whatever its
    'from' address is.

    :Ivariables:
        - `session`: the session to read from
        - `target`: the conversation target
        - `output`: where the messages are printed
        - `thread`: the receiving thread, `None` before `start`
    :Types:
        - `session`: `xmppchat.session.Session`
        - `target`: `xmppchat.jid.JID`
    """
    def __init__(self, session, target, output = None, logger = logger):
        # pylint: disable=W0621
        self.session = session
        self.target = target
        self.output = output if output is not None else sys.stdout
        self.logger = logger
        self.thread = None

    def start(self):
        """Start the receiving thread."""
        self.thread = threading.Thread(target = self.run,
                                                    name = u"MessageReceiver")
        self.thread.daemon = True
        self.thread.start()

    def join(self, timeout = None):
        """Wait for the receiving thread to finish.

        :return: `True` if the thread is not running any more."""
        if self.thread is None:
            return True
        self.thread.join(timeout)
        return not self.thread.is_alive()

    def run(self):
        """Handle the incoming elements until the end of the stream."""
        while True:
            element = self.session.read_element()
            if element is None:
                self.logger.debug("End of stream")
                break
            self.handle_element(element)

    def handle_element(self, element):
        """Handle a single top-level element.

        :return: the line printed or `None`"""
        if split_tag(element.tag)[1] != u"message":
            return None
        try:
            message = Message.from_xml(element)
        except StanzaDecodeError as err:
            self.logger.error("Error decoding message: {0}".format(err))
            return None
        if not message.body or message.stanza_type != u"chat":
            return None
        line = u"{0}: {1}".format(self.target, message.body)
        print(line, file = self.output)
        self.output.flush()
        return line

# vi: sts=4 et sw=4
