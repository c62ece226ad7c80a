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

"""Message and presence stanzas.

Normative reference:
  - :RFC:`6120`
  - :RFC:`6121`
"""

__docformat__ = "restructuredtext en"

from xml.etree import ElementTree

from .constants import STANZA_CLIENT_NS, STANZA_CLIENT_QNP
from .constants import STANZA_NAMESPACES
from .exceptions import JIDError, StanzaDecodeError
from .jid import JID

def split_tag(tag):
    """Split an ElementTree tag into namespace and local name.

    :Returntype: (`str`, `str`); the namespace is `None` for unqualified
        tags."""
    if tag.startswith(u"{"):
        namespace, local = tag[1:].split(u"}", 1)
        return namespace, local
    return None, tag

class Stanza(object):
    """Base class for the stanzas handled by the client.

    :Ivariables:
        - `from_jid`: sender JID
        - `to_jid`: recipient JID
        - `stanza_type`: value of the 'type' attribute
        - `stanza_id`: value of the 'id' attribute
    :Types:
        - `from_jid`: `JID`
        - `to_jid`: `JID`
        - `stanza_type`: `str`
        - `stanza_id`: `str`
    """
    element_name = None
    def __init__(self, element = None, from_jid = None, to_jid = None,
                                        stanza_type = None, stanza_id = None):
        """Initialize a stanza from an XML element or from the arguments.

        :Parameters:
            - `element`: XML element to decode, when given the other
              arguments are ignored
        :Types:
            - `element`: :etree:`ElementTree.Element`

        :raise StanzaDecodeError: when `element` is not a valid stanza.
        """
        # pylint: disable=R0913
        if element is not None:
            self._decode_attributes(element)
        else:
            self.from_jid = JID(from_jid) if from_jid is not None else None
            self.to_jid = JID(to_jid) if to_jid is not None else None
            self.stanza_type = stanza_type
            self.stanza_id = stanza_id

    def _decode_attributes(self, element):
        """Decode the common stanza attributes of `element`."""
        namespace, local = split_tag(element.tag)
        if local != self.element_name:
            raise StanzaDecodeError(u"Unexpected element: {0!r}"
                                                        .format(element.tag))
        if namespace not in STANZA_NAMESPACES:
            raise StanzaDecodeError(u"Bad stanza namespace: {0!r}"
                                                        .format(namespace))
        self._namespace = namespace
        self.from_jid = self._decode_jid(element, u"from")
        self.to_jid = self._decode_jid(element, u"to")
        self.stanza_type = element.get(u"type")
        self.stanza_id = element.get(u"id")

    @staticmethod
    def _decode_jid(element, attribute):
        """Return the JID from `attribute` of `element` or `None`."""
        value = element.get(attribute)
        if value is None:
            return None
        try:
            return JID(value)
        except JIDError as err:
            raise StanzaDecodeError(u"Bad '{0}' address {1!r}: {2}"
                                            .format(attribute, value, err))

    def _child_text(self, element, name):
        """Return text of the `name` child of `element` or `None`."""
        namespace = getattr(self, "_namespace", STANZA_CLIENT_NS)
        child = element.find(u"{{{0}}}{1}".format(namespace, name))
        if child is None:
            return None
        return child.text or u""

    def as_xml(self):
        """Return the XML stanza representation.

        :returntype: :etree:`ElementTree.Element`"""
        element = ElementTree.Element(STANZA_CLIENT_QNP + self.element_name)
        if self.from_jid is not None:
            element.set(u"from", str(self.from_jid))
        if self.to_jid is not None:
            element.set(u"to", str(self.to_jid))
        if self.stanza_type:
            element.set(u"type", self.stanza_type)
        if self.stanza_id:
            element.set(u"id", self.stanza_id)
        return element

    @staticmethod
    def _add_child(element, name, text):
        """Add `name` child with `text` to `element`, unless `text` is
        `None`."""
        if text is None:
            return
        child = ElementTree.SubElement(element, STANZA_CLIENT_QNP + name)
        child.text = text

    def __repr__(self):
        return "<{0} from={1!r} to={2!r} type={3!r} id={4!r}>".format(
                    self.__class__.__name__, self.from_jid, self.to_jid,
                    self.stanza_type, self.stanza_id)

class Message(Stanza):
    """<message /> stanza.

    :Ivariables:
        - `subject`: message subject
        - `body`: message body
        - `thread`: message thread id
    """
    element_name = u"message"
    def __init__(self, element = None, from_jid = None, to_jid = None,
                        stanza_type = None, stanza_id = None, subject = None,
                        body = None, thread = None):
        """Initialize a `Message` object.

        :Parameters:
            - `element`: XML element of this stanza.
            - `from_jid`: sender JID.
            - `to_jid`: recipient JID.
            - `stanza_type`: stanza type: one of: "normal", "chat",
              "headline", "error", "groupchat"
            - `stanza_id`: stanza id -- value of stanza's "id" attribute.
            - `subject`: message subject,
            - `body`: message body.
            - `thread`: message thread id.
        """
        # pylint: disable=R0913
        Stanza.__init__(self, element, from_jid, to_jid, stanza_type,
                                                                    stanza_id)
        if element is not None:
            self.subject = self._child_text(element, u"subject")
            self.body = self._child_text(element, u"body")
            self.thread = self._child_text(element, u"thread")
        else:
            self.subject = subject
            self.body = body
            self.thread = thread

    @classmethod
    def from_xml(cls, element):
        """Decode a received <message/> element.

        :raise StanzaDecodeError: on invalid stanza."""
        return cls(element)

    def as_xml(self):
        element = Stanza.as_xml(self)
        self._add_child(element, u"subject", self.subject)
        self._add_child(element, u"body", self.body)
        self._add_child(element, u"thread", self.thread)
        return element

class Presence(Stanza):
    """<presence /> stanza.

    Available presence is the one without the 'type' attribute.
    """
    element_name = u"presence"

    @property
    def available(self):
        """`True` for an 'available' presence."""
        return self.stanza_type is None

# vi: sts=4 et sw=4
