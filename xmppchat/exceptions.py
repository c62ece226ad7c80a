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

"""Exception classes used by xmppchat.

Every operation of the client reports failures by raising one of the
`ChatClientError` subclasses below. Only the command-line entry point
turns them into a diagnostic and a non-zero exit status.
"""

__docformat__ = "restructuredtext en"

class Error(Exception):
    """Base class for all xmppchat exceptions."""
    pass

class JIDError(Error, ValueError):
    "Exception raised when invalid JID is used"
    pass

class StringprepError(Error):
    """Exception raised when string preparation results in error."""
    pass

class StanzaDecodeError(Error, ValueError):
    """Raised when an incoming stanza cannot be decoded.

    Handled per stanza: the stanza is skipped and the session goes on."""
    pass

class ChatClientError(Error):
    """Base class for errors which terminate the client run."""
    pass

class UsageError(ChatClientError):
    """Invalid command-line arguments."""
    pass

class AddressError(ChatClientError):
    """Account or target address could not be parsed."""
    pass

class InputError(ChatClientError):
    """Reading from the standard input failed (including end of input)."""
    pass

class TransportError(ChatClientError):
    """Connection could not be established or closed."""
    pass

class TransportNotImplementedError(TransportError):
    """Requested transport is not available."""
    pass

class NegotiationError(ChatClientError):
    """Stream negotiation (TLS, authentication, binding) failed."""
    pass

class SessionError(ChatClientError):
    """Sending on an established session or closing it failed."""
    pass

class PresenceError(SessionError):
    """The initial presence could not be sent."""
    pass

# vi: sts=4 et sw=4
