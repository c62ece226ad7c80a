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

"""Stanza serializer for ElementTree data.

XMPP has specific requirements for XML serialization: the stanza namespace
('jabber:client' on client streams) is the default namespace declared on the
stream root, so stanzas are written without any prefix or namespace
declaration. Chat stanzas carry no payloads: only the namespaces declared on
the stream root may be used."""

__docformat__ = "restructuredtext en"

import re
from xml.sax.saxutils import escape, quoteattr

from .constants import STANZA_CLIENT_NS, STANZA_NAMESPACES, STREAM_NS, XML_NS

STANDARD_PREFIXES = {
        STREAM_NS: u'stream',
        XML_NS: u'xml',
    }

EVIL_CHARACTERS_RE = re.compile(r"[\000-\010\013\014\016-\037]")

def remove_evil_characters(data):
    """Remove control characters (not allowed in XML) from a string."""
    return EVIL_CHARACTERS_RE.sub(u"\ufffd", data)

class XMPPSerializer(object):
    """Serializer of a single XMPP stream.

    The stream root is written by the protocol engine; `emit_head` only
    records which prefixes are declared there, so the stanzas emitted later
    match it.

    :Ivariables:
        - `stanza_namespace`: the default namespace of the stream
        - `_root_prefixes`: namespace -> prefix mapping declared on the root
          element
    """
    def __init__(self, stanza_namespace = STANZA_CLIENT_NS):
        self.stanza_namespace = stanza_namespace
        self._root_prefixes = None

    def emit_head(self, stream_from, stream_to, version = u'1.0'):
        """Return the opening tag of the stream root element.

        :Parameters:
            - `stream_from`: the 'from' attribute of the stream. May be `None`.
            - `stream_to`: the 'to' attribute of the stream. May be `None`.
            - `version`: the 'version' of the stream.
        """
        self._root_prefixes = dict(STANDARD_PREFIXES)
        self._root_prefixes[self.stanza_namespace] = None
        tag = u"<stream:stream version={0}".format(quoteattr(version))
        if stream_from:
            tag += u" from={0}".format(quoteattr(stream_from))
        if stream_to:
            tag += u" to={0}".format(quoteattr(stream_to))
        tag += u" xmlns={0} xmlns:stream={1}>".format(
                        quoteattr(self.stanza_namespace), quoteattr(STREAM_NS))
        return tag

    def _make_prefixed(self, name, is_element):
        """Return namespace-prefixed tag or attribute name.

        :raise ValueError: for a namespace not declared on the stream root
        """
        if name.startswith(u"{"):
            namespace, name = name[1:].split(u"}", 1)
            if namespace in STANZA_NAMESPACES:
                namespace = self.stanza_namespace
        elif is_element:
            raise ValueError(u"Element with no namespace: {0!r}".format(name))
        else:
            return name
        if namespace not in self._root_prefixes:
            raise ValueError(u"Namespace not declared on the stream: {0!r}"
                                                        .format(namespace))
        prefix = self._root_prefixes[namespace]
        if prefix:
            return prefix + u":" + name
        else:
            return name

    def _emit_element(self, element, level):
        """Recursive XML element serializer.

        :Parameters:
            - `element`: the element to serialize
            - `level`: nest level (1 - stanzas, 2 - stanza children, etc.)
        """
        prefixed = self._make_prefixed(element.tag, True)
        start_tag = u"<{0}".format(prefixed)
        end_tag = u"</{0}>".format(prefixed)
        for name, value in element.items():
            name = self._make_prefixed(name, False)
            start_tag += u' {0}={1}'.format(name, quoteattr(value))
        children = [self._emit_element(child, level + 1)
                                                        for child in element]
        if not children and not element.text:
            return start_tag + u"/>" + self._tail(element, level)
        text = escape(element.text) if element.text else u""
        return (start_tag + u">" + text + u"".join(children) + end_tag
                                                + self._tail(element, level))

    @staticmethod
    def _tail(element, level):
        """Return escaped tail text of a stanza descendant."""
        if level > 1 and element.tail:
            return escape(element.tail)
        return u""

    def emit_stanza(self, element):
        """Serialize a stanza.

        Must be called after `emit_head`.

        :Parameters:
            - `element`: the element to serialize
        :Types:
            - `element`: :etree:`ElementTree.Element`

        :Returntype: `str`
        """
        if self._root_prefixes is None:
            raise RuntimeError(".emit_head() must be called first.")
        string = self._emit_element(element, level = 1)
        return remove_evil_characters(string)

# vi: sts=4 et sw=4
