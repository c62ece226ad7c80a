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

"""Settings containers.

Two kinds of configuration are used by the client:

  - `ChatSettings`, a mapping with registered defaults, used to pass the
    tunable parameters (timeouts, ports, authentication preferences) from
    one component to another,
  - `RunConfig` and `NegotiationPolicy`, immutable objects built once at
    startup from the command line and the settings.
"""

__docformat__ = "restructuredtext en"

import ssl

from collections.abc import MutableMapping

class _SettingDefinition(object):
    """Definition of a known setting."""
    # pylint: disable=R0903
    def __init__(self, name, type = str, default = None, factory = None,
                            doc = None, validator = None):
        # pylint: disable=W0622,R0913
        self.name = name
        self.type = type
        self.default = default
        self.factory = factory
        self.doc = doc
        self.validator = validator

class ChatSettings(MutableMapping):
    """Container for the parameters used all over xmppchat.

    It can be used like a regular dictionary, but will provide reasonable
    defaults for parameters which are not explicitely set.

    :CVariables:
        - `_defs`: definitions of the registered parameters.
    :Ivariables:
        - `_settings`: current values of the parameters explicitely set.
    """
    _defs = {}
    def __init__(self, data = None):
        """Create settings, optionally initialized with `data`.

        :Parameters:
            - `data`: initial data
        :Types:
            - `data`: any mapping, including `ChatSettings`
        """
        self._settings = {}
        if data is not None:
            for key, value in dict(data).items():
                self[key] = value
    def __len__(self):
        return len(self._settings)
    def __iter__(self):
        return iter(self._settings)
    def __contains__(self, key):
        return key in self._settings
    def __getitem__(self, key):
        return self.get(key, required = True)
    def __setitem__(self, key, value):
        """Set a parameter value, running it through the registered
        validator, if any.

        :raise ValueError: when the value is not valid for the setting
        """
        setting_def = self._defs.get(key)
        if setting_def is not None and setting_def.validator is not None:
            value = setting_def.validator(value)
        self._settings[key] = value
    def __delitem__(self, key):
        del self._settings[key]
    def get(self, key, local_default = None, required = False):
        """Get a parameter value.

        If parameter is not set, return `local_default` if it is not `None`
        or the global default otherwise.

        :Raise `KeyError`: if parameter has no value and no global default
            and `required` is set.

        :Return: parameter value
        """
        # pylint: disable=W0221
        if key in self._settings:
            return self._settings[key]
        if local_default is not None:
            return local_default
        if key in self._defs:
            setting_def = self._defs[key]
            if setting_def.default is not None:
                return setting_def.default
            if setting_def.factory is not None:
                return setting_def.factory(self)
            return None
        if required:
            raise KeyError(key)
        return local_default

    @classmethod
    def add_setting(cls, name, **kwargs):
        """Register a known setting.

        :Parameters:
            - `name`: name of the setting
            - `kwargs`: `_SettingDefinition` fields: `type`, `default`,
              `factory`, `doc`, `validator`
        """
        setting_def = _SettingDefinition(name, **kwargs)
        if name not in cls._defs:
            cls._defs[name] = setting_def
            return
        duplicate = cls._defs[name]
        if duplicate.type != setting_def.type:
            raise ValueError("Setting duplicate, with a different type")
        if duplicate.default != setting_def.default:
            raise ValueError("Setting duplicate, with a different default")

    @staticmethod
    def validate_string_list(value):
        """Accept a list of strings or a comma-separated string."""
        if isinstance(value, (list, tuple)):
            return [str(x).strip() for x in value]
        try:
            return [x.strip() for x in value.split(u",")]
        except (AttributeError, TypeError):
            raise ValueError("Bad string list")

    @staticmethod
    def validate_positive_float(value):
        """Accept a positive number."""
        value = float(value)
        if value <= 0:
            raise ValueError("Positive number required")
        return value

    @staticmethod
    def get_int_range_validator(start, stop):
        """Return a validator accepting integers in the <start, stop)
        range."""
        def validate_int_range(value):
            """Accept an integer in the range."""
            value = int(value)
            if value >= start and value < stop:
                return value
            raise ValueError("Not in <{0},{1}) range".format(start, stop))
        return validate_int_range

TLS_VERSIONS = {
        u"1.2": ssl.TLSVersion.TLSv1_2,
        u"1.3": ssl.TLSVersion.TLSv1_3,
    }

def validate_tls_version(value):
    """Accept a known TLS version name ("1.2" or "1.3")."""
    value = str(value)
    if value not in TLS_VERSIONS:
        raise ValueError("Unsupported TLS version: {0!r}".format(value))
    return value

class _Frozen(object):
    """Base for the immutable configuration objects."""
    __slots__ = ()
    def __init__(self, **kwargs):
        for name in self.__slots__:
            object.__setattr__(self, name, kwargs.get(name))
    def __setattr__(self, name, value):
        raise AttributeError("{0} objects are immutable"
                                        .format(self.__class__.__name__))
    def __repr__(self):
        args = u", ".join(u"{0}={1!r}".format(name, getattr(self, name))
                                                for name in self.__slots__)
        return u"{0}({1})".format(self.__class__.__name__, args)

class RunConfig(_Frozen):
    """Run configuration built from the command line.

    :Ivariables:
        - `verbose`: echo raw protocol traffic to the standard error
        - `use_quic`: QUIC transport selected
        - `target`: the conversation target address as given
    """
    __slots__ = ("verbose", "use_quic", "target")

    @property
    def transport(self):
        """Name of the selected transport: "quic" or "tcp"."""
        return u"quic" if self.use_quic else u"tcp"

class NegotiationPolicy(_Frozen):
    """What the session negotiator must do on a stream.

    :Ivariables:
        - `starttls`: `True` if STARTTLS must be negotiated before SASL
        - `tls_min_version`: minimum TLS protocol version accepted
        - `server_name`: name to verify the server certificate against
        - `mechanisms`: acceptable SASL mechanisms; slixmpp picks the
          strongest of those offered, so their order is informational
        - `insecure_auth`: `True` if PLAIN may be used without TLS
        - `bind_resource`: `True` if a resource must be bound
    :Types:
        - `tls_min_version`: `ssl.TLSVersion`
        - `mechanisms`: `tuple` of `str`
    """
    __slots__ = ("starttls", "tls_min_version", "server_name", "mechanisms",
                                            "insecure_auth", "bind_resource")

    @classmethod
    def for_transport(cls, transport, jid, settings = None):
        """Build the policy for `transport` and the account `jid`.

        QUIC carries its own transport security, so no STARTTLS step is
        included for it. On TCP STARTTLS is required unless the `starttls`
        setting is turned off.

        :Parameters:
            - `transport`: "tcp" or "quic"
            - `jid`: the account address
            - `settings`: settings to take the SASL and TLS preferences from
        :Types:
            - `jid`: `xmppchat.jid.JID`
            - `settings`: `ChatSettings`
        """
        if settings is None:
            settings = ChatSettings()
        if transport not in (u"tcp", u"quic"):
            raise ValueError("Unknown transport: {0!r}".format(transport))
        return cls(starttls = transport == u"tcp" and settings["starttls"],
                    tls_min_version = TLS_VERSIONS[settings["tls_min_version"]],
                    server_name = jid.domain,
                    mechanisms = tuple(settings["sasl_mechanisms"]),
                    insecure_auth = settings["insecure_auth"],
                    bind_resource = True)

ChatSettings.add_setting(u"sasl_mechanisms", type = list,
    default = [u"SCRAM-SHA-256-PLUS", u"SCRAM-SHA-1-PLUS", u"SCRAM-SHA-256",
                                                u"SCRAM-SHA-1", u"PLAIN"],
    validator = ChatSettings.validate_string_list,
    doc = u"""SASL mechanisms acceptable for the authentication. The
strongest one offered by the server is used."""
    )
ChatSettings.add_setting(u"tls_min_version", default = u"1.2",
    validator = validate_tls_version,
    doc = u"""Minimum TLS version accepted on the STARTTLS upgrade."""
    )
ChatSettings.add_setting(u"starttls", type = bool, default = True,
    doc = u"""Negotiate STARTTLS on TCP connections. Turning it off is only
meant for local test servers."""
    )
ChatSettings.add_setting(u"insecure_auth", type = bool, default = False,
    doc = u"""Allow the PLAIN mechanism over unencrypted streams."""
    )

# vi: sts=4 et sw=4
