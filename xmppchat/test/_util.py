#!/usr/bin/python

"""Utilities for xmppchat unit tests."""

import re
import base64
import socket
import logging
import threading

logger = logging.getLogger("xmppchat.test._util")

TIMEOUT = 10.0 # seconds

STREAM_HEAD = (u"<?xml version='1.0'?><stream:stream xmlns='jabber:client'"
                u" xmlns:stream='http://etherx.jabber.org/streams'"
                u" id='{0}' from='example.com' version='1.0'>")
SASL_FEATURES = (u"<stream:features>"
                u"<mechanisms xmlns='urn:ietf:params:xml:ns:xmpp-sasl'>"
                u"<mechanism>SCRAM-SHA-1</mechanism>"
                u"<mechanism>PLAIN</mechanism>"
                u"</mechanisms></stream:features>")
SASL_SUCCESS = u"<success xmlns='urn:ietf:params:xml:ns:xmpp-sasl'/>"
BIND_FEATURES = (u"<stream:features>"
                u"<bind xmlns='urn:ietf:params:xml:ns:xmpp-bind'/>"
                u"</stream:features>")
BIND_RESULT = (u"<iq type='result' id='{0}'>"
                u"<bind xmlns='urn:ietf:params:xml:ns:xmpp-bind'>"
                u"<jid>{1}</jid></bind></iq>")
STREAM_TAIL = u"</stream:stream>"

class FakeServer(object):
    """Minimal XMPP c2s server for the loopback tests.

    Accepts a single connection and runs a script function on it in a
    separate thread. The script uses `expect` and `send` to talk to the
    client; `login` does the SASL PLAIN authentication and the resource
    binding.

    :Ivariables:
        - `port`: the listening port on 127.0.0.1
        - `data`: all data received
        - `eof`: set when the client closed the connection
        - `error`: exception raised by the script
        - `auth_payload`: decoded SASL PLAIN message received by `login`
    """
    # pylint: disable=R0902
    def __init__(self):
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(1)
        self.port = self.listener.getsockname()[1]
        self.sock = None
        self.data = b""
        self.eof = False
        self.error = None
        self.auth_payload = None
        self._pos = 0
        self._thread = None

    def start(self, script):
        """Accept the connection and run `script(self)` on it."""
        self._thread = threading.Thread(target = self._run, args = (script,),
                                                            name = "FakeServer")
        self._thread.daemon = True
        self._thread.start()

    def _run(self, script):
        """The server thread function."""
        try:
            self.listener.settimeout(TIMEOUT)
            self.sock = self.listener.accept()[0]
            self.sock.settimeout(TIMEOUT)
            script(self)
        except Exception as err: # pylint: disable=W0703
            logger.debug("tst: script failed: {0!r}".format(err))
            self.error = err
        finally:
            if self.sock is not None:
                self.sock.close()
            self.listener.close()

    def join(self, timeout = TIMEOUT):
        """Wait for the script to finish, re-raise its exception."""
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise AssertionError("Fake server still running")
        if self.error is not None:
            raise self.error

    def send(self, data):
        """Send a string to the client."""
        logger.debug(u"tst OUT: " + data)
        self.sock.sendall(data.encode("utf-8"))

    def expect(self, pattern):
        """Read until `pattern` (a `bytes` regular expression) matches the
        data after the previous match.

        :raise EOFError: when the client closes the connection first
        :returntype: regular expression match object
        """
        regexp = re.compile(pattern, re.S)
        while True:
            match = regexp.search(self.data, self._pos)
            if match:
                self._pos = match.end()
                return match
            if self.eof:
                raise EOFError("Connection closed while waiting for"
                                                    " {0!r}".format(pattern))
            chunk = self.sock.recv(4096)
            logger.debug(u"tst IN: {0!r}".format(chunk))
            if chunk:
                self.data += chunk
            else:
                self.eof = True

    def login(self, jid = u"alice@example.com/res"):
        """Authenticate the client with PLAIN and bind `jid` to it."""
        self.expect(br"<stream:stream\b[^>]*>")
        self.send(STREAM_HEAD.format("s1") + SASL_FEATURES)
        match = self.expect(br"<auth\b[^>]*mechanism=['\"]PLAIN['\"][^>]*>"
                                                        br"([^<]*)</auth>")
        self.auth_payload = base64.b64decode(match.group(1))
        self.send(SASL_SUCCESS)
        self.expect(br"<stream:stream\b[^>]*>")
        self.send(STREAM_HEAD.format("s2") + BIND_FEATURES)
        match = self.expect(br"<iq\b[^>]*>.*?</iq>")
        stanza_id = re.search(br"\bid=['\"]([^'\"]+)['\"]",
                                            match.group(0)).group(1)
        self.send(BIND_RESULT.format(stanza_id.decode("utf-8"), jid))

    def finish(self):
        """Wait for the client's stream end tag and answer it."""
        self.expect(br"</stream:stream>")
        self.send(STREAM_TAIL)
