#!/usr/bin/python
# -*- coding: UTF-8 -*-
# pylint: disable=C0111

import unittest
import logging

import dns.name
import dns.resolver

from xmppchat.resolver import SRVResolver, reorder_srv, shuffle_srv
from xmppchat.resolver import is_ip_literal

logger = logging.getLogger("xmppchat.test.resolver")

class _SRV(object):
    # pylint: disable=R0903
    def __init__(self, priority, weight, port, target):
        self.priority = priority
        self.weight = weight
        self.port = port
        self.target = dns.name.from_text(target)
    def __repr__(self):
        return "<SRV {0} {1} {2} {3}>".format(self.priority, self.weight,
                                                    self.port, self.target)

class _FakeResolver(SRVResolver):
    def __init__(self, answers):
        SRVResolver.__init__(self)
        self.answers = answers
        self.queries = []
    def query(self, name):
        self.queries.append(name)
        answer = self.answers.get(name)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            raise dns.resolver.NXDOMAIN()
        return answer

class TestIPLiteral(unittest.TestCase):
    def test_ip_literals(self):
        for host in ("127.0.0.1", "192.168.1.1", "::1", "2001:db8::1",
                                                            "[2001:db8::1]"):
            self.assertTrue(is_ip_literal(host), host)
    def test_domain_names(self):
        for host in ("example.com", "localhost", "1.example.com",
                                                    u"dżabber.example.com"):
            self.assertFalse(is_ip_literal(host), host)

class TestReorder(unittest.TestCase):
    def test_priorities(self):
        records = [_SRV(20, 0, 1, "c.example.com."),
                    _SRV(10, 5, 2, "a.example.com."),
                    _SRV(30, 0, 3, "d.example.com."),
                    _SRV(10, 5, 4, "b.example.com.")]
        for dummy in range(20):
            result = reorder_srv(records)
            self.assertEqual(len(result), 4)
            self.assertEqual(set(r.port for r in result[:2]), set([2, 4]))
            self.assertEqual([r.port for r in result[2:]], [1, 3])
        # the input is not modified
        self.assertEqual([r.port for r in records], [1, 2, 3, 4])

    def test_weights(self):
        records = [_SRV(10, 0, 1, "a.example.com."),
                    _SRV(10, 65535, 2, "b.example.com.")]
        firsts = [shuffle_srv(records)[0].port for dummy in range(50)]
        self.assertTrue(firsts.count(2) > 40)

    def test_empty(self):
        self.assertEqual(shuffle_srv([]), [])
        self.assertEqual(reorder_srv([]), [])

class TestSRVResolver(unittest.TestCase):
    def test_resolve(self):
        resolver = _FakeResolver({
            "_xmpp-client._tcp.example.com": [
                    _SRV(10, 0, 5222, "xmpp1.example.com."),
                    _SRV(20, 0, 5223, "xmpp2.example.com."),
                    ]})
        result = resolver.resolve_srv("example.com", "xmpp-client")
        self.assertEqual(result, [("xmpp1.example.com", 5222),
                                                ("xmpp2.example.com", 5223)])
        self.assertEqual(resolver.queries, ["_xmpp-client._tcp.example.com"])

    def test_idna(self):
        resolver = _FakeResolver({})
        result = resolver.resolve_srv(u"dżabber.example.com", "xmpp-client")
        self.assertIsNone(result)
        self.assertEqual(len(resolver.queries), 1)
        name = resolver.queries[0]
        self.assertTrue(name.startswith("_xmpp-client._tcp.xn--"))
        self.assertTrue(name.endswith(".example.com"))

    def test_no_records(self):
        resolver = _FakeResolver({})
        self.assertIsNone(resolver.resolve_srv("example.com", "xmpp-client"))

    def test_no_answer(self):
        resolver = _FakeResolver({
            "_xmpp-client._tcp.example.com": dns.resolver.NoAnswer()})
        self.assertIsNone(resolver.resolve_srv("example.com", "xmpp-client"))

    def test_empty_answer(self):
        resolver = _FakeResolver({"_xmpp-client._tcp.example.com": []})
        self.assertIsNone(resolver.resolve_srv("example.com", "xmpp-client"))

    def test_service_not_available(self):
        resolver = _FakeResolver({
            "_xmpp-client._tcp.example.com": [_SRV(0, 0, 0, ".")]})
        self.assertEqual(resolver.resolve_srv("example.com", "xmpp-client"),
                                                                        [])

    def test_bad_domain(self):
        resolver = _FakeResolver({})
        self.assertIsNone(resolver.resolve_srv(u"a..b", "xmpp-client"))
        self.assertEqual(resolver.queries, [])

# pylint: disable=W0611
from xmppchat.test._support import load_tests, setup_logging

def setUpModule():
    setup_logging()

if __name__ == "__main__":
    unittest.main()
