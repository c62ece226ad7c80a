#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest

from xml.etree import ElementTree

from xmppchat.stanza import Stanza, Message, Presence, split_tag
from xmppchat.jid import JID
from xmppchat.exceptions import StanzaDecodeError
from xmppchat.xmppserializer import XMPPSerializer

def serialize(element):
    serializer = XMPPSerializer()
    serializer.emit_head(None, None)
    return serializer.emit_stanza(element)

MESSAGE1 = """
<message xmlns="jabber:client" from='source@example.com/res'
                                to='dest@example.com' type='chat' id='1'>
<subject>Subject</subject>
<body>The body</body>
<thread>thread-id</thread>
<payload xmlns="http://example.org/xmlns/test"><abc/></payload>
</message>"""

MESSAGE2 = """<message xmlns="jabber:client"/>"""

MESSAGE3 = """<message xmlns="jabber:server" type="chat"><body/></message>"""

BAD_MESSAGES = [
    """<message xmlns="urn:example:other"><body>x</body></message>""",
    """<message><body>x</body></message>""",
    """<iq xmlns="jabber:client" type="get" id="1"/>""",
    """<message xmlns="jabber:client" from="@@@"><body>x</body></message>""",
    """<message xmlns="jabber:client" to=""><body>x</body></message>""",
]

class TestSplitTag(unittest.TestCase):
    def test_qualified(self):
        self.assertEqual(split_tag("{jabber:client}message"),
                                                ("jabber:client", "message"))
    def test_unqualified(self):
        self.assertEqual(split_tag("message"), (None, "message"))

class TestMessage(unittest.TestCase):
    def check_message_full(self, msg):
        self.assertEqual(msg.from_jid, JID("source@example.com/res"))
        self.assertEqual(msg.to_jid, JID("dest@example.com"))
        self.assertEqual(msg.stanza_type, "chat")
        self.assertEqual(msg.stanza_id, "1")
        self.assertEqual(msg.subject, u"Subject")
        self.assertEqual(msg.body, u"The body")
        self.assertEqual(msg.thread, u"thread-id")

    def check_message_empty(self, msg):
        self.assertEqual(msg.from_jid, None)
        self.assertEqual(msg.to_jid, None)
        self.assertEqual(msg.stanza_type, None)
        self.assertIsNone(msg.stanza_id)
        self.assertEqual(msg.subject, None)
        self.assertEqual(msg.body, None)
        self.assertEqual(msg.thread, None)

    def test_message_full_from_xml(self):
        msg = Message.from_xml(ElementTree.XML(MESSAGE1))
        self.check_message_full(msg)

    def test_message_empty_from_xml(self):
        msg = Message(ElementTree.XML(MESSAGE2))
        self.check_message_empty(msg)

    def test_message_server_namespace(self):
        msg = Message(ElementTree.XML(MESSAGE3))
        self.assertEqual(msg.stanza_type, "chat")
        self.assertEqual(msg.body, u"")

    def test_message_empty(self):
        msg = Message()
        self.check_message_empty(msg)
        xml = msg.as_xml()
        self.check_message_empty(Message(xml))

    def test_message_full(self):
        msg = Message(
                from_jid = JID("source@example.com/res"),
                to_jid = JID("dest@example.com"),
                stanza_type = "chat",
                stanza_id = u"1",
                subject = u"Subject",
                body = u"The body",
                thread = u"thread-id")
        self.check_message_full(msg)
        xml = msg.as_xml()
        self.assertEqual(xml.tag, "{jabber:client}message")
        self.check_message_full(Message(xml))

    def test_message_string_addresses(self):
        msg = Message(from_jid = "source@example.com/res",
                        to_jid = "Dest@Example.com", stanza_type = "chat",
                        body = u"hi")
        self.assertEqual(msg.to_jid, JID("dest@example.com"))
        self.assertIsInstance(msg.from_jid, JID)

    def test_message_serialized(self):
        msg = Message(to_jid = JID("dest@example.com"), stanza_type = "chat",
                                                        body = u"Hello & bye")
        output = serialize(msg.as_xml())
        self.assertTrue(output.startswith("<message "))
        self.assertTrue("<body>Hello &amp; bye</body>" in output)
        self.assertFalse("subject" in output)
        self.assertFalse("xmlns" in output)

    def test_bad_messages(self):
        for xml in BAD_MESSAGES:
            with self.assertRaises(StanzaDecodeError):
                Message.from_xml(ElementTree.XML(xml))

    def test_decode_error_is_value_error(self):
        with self.assertRaises(ValueError):
            Message(ElementTree.XML(BAD_MESSAGES[0]))

    def test_repr(self):
        msg = Message(to_jid = JID("dest@example.com"), stanza_type = "chat")
        self.assertEqual(repr(msg), "<Message from=None"
                        " to=JID('dest@example.com') type='chat' id=None>")

class TestPresence(unittest.TestCase):
    def test_available(self):
        presence = Presence()
        self.assertTrue(presence.available)
        self.assertEqual(serialize(presence.as_xml()), "<presence/>")

    def test_unavailable(self):
        presence = Presence(stanza_type = "unavailable")
        self.assertFalse(presence.available)

    def test_presence_from_xml(self):
        presence = Presence(ElementTree.XML(
                    "<presence xmlns='jabber:client' from='a@b.c/d'/>"))
        self.assertTrue(presence.available)
        self.assertEqual(presence.from_jid, JID("a@b.c/d"))

    def test_message_is_not_presence(self):
        with self.assertRaises(StanzaDecodeError):
            Presence(ElementTree.XML(MESSAGE2))

class TestStanzaBase(unittest.TestCase):
    def test_no_element_name(self):
        stanza = Stanza(stanza_id = "x")
        self.assertEqual(stanza.stanza_id, "x")
        with self.assertRaises(StanzaDecodeError):
            Stanza(ElementTree.XML(MESSAGE2))

# pylint: disable=W0611
from xmppchat.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
