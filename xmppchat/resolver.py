#
# (C) Copyright 2003-2011 Jacek Konieczny <jajcus@jajcus.net>
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

"""DNS SRV resolution of the XMPP service.

Normative reference:
  - `RFC 2782 <http://www.ietf.org/rfc/rfc2782.txt>`__
  - :RFC:`6120` section 3.2
"""

__docformat__ = "restructuredtext en"

import re
import random
import logging

import dns.name
import dns.resolver
import dns.exception

logger = logging.getLogger("xmppchat.resolver")

# should match all valid IP addresses, but can pass some false-positives,
# which are not valid domain names
IPV4_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")
IPV6_RE = re.compile(r"^\[?[0-9a-fA-F]{0,4}:[0-9a-fA-F:.]*\]?$")

def is_ip_literal(host):
    """Check if `host` is an IP address rather than a domain name."""
    return bool(IPV4_RE.match(host) or IPV6_RE.match(host))

def shuffle_srv(records):
    """Randomly reorder SRV records using their weights.

    :Parameters:
        - `records`: SRV records to shuffle.
    :Types:
        - `records`: sequence of :dns:`dns.rdtypes.IN.SRV`

    :return: reordered records.
    :returntype: `list` of :dns:`dns.rdtypes.IN.SRV`"""
    if not records:
        return []
    records = list(records)
    ret = []
    while len(records) > 1:
        weight_sum = 0
        for rrecord in records:
            weight_sum += rrecord.weight + 0.1
        thres = random.random() * weight_sum
        weight_sum = 0
        for rrecord in records:
            weight_sum += rrecord.weight + 0.1
            if thres < weight_sum:
                records.remove(rrecord)
                ret.append(rrecord)
                break
    ret.append(records[0])
    return ret

def reorder_srv(records):
    """Reorder SRV records using their priorities and weights.

    :Parameters:
        - `records`: SRV records to shuffle.
    :Types:
        - `records`: `list` of :dns:`dns.rdtypes.IN.SRV`

    :return: reordered records.
    :returntype: `list` of :dns:`dns.rdtypes.IN.SRV`"""
    records = sorted(records, key = lambda rrecord: rrecord.priority)
    ret = []
    tmp = []
    for rrecord in records:
        if not tmp or rrecord.priority == tmp[0].priority:
            tmp.append(rrecord)
            continue
        ret += shuffle_srv(tmp)
        tmp = [rrecord]
    if tmp:
        ret += shuffle_srv(tmp)
    return ret

class SRVResolver(object):
    """Blocking SRV resolver using dnspython.

    :Ivariables:
        - `lifetime`: maximum time (in seconds) a single lookup may take
    """
    def __init__(self, lifetime = 10.0):
        self.lifetime = lifetime

    def query(self, name):
        """Return SRV records for `name`, as returned by dnspython."""
        return dns.resolver.resolve(name, "SRV", lifetime = self.lifetime)

    def resolve_srv(self, domain, service, proto = "tcp"):
        """Resolve service domain to server name and port number using SRV
        records.

        :Parameters:
            - `domain`: domain name.
            - `service`: service name.
            - `proto`: protocol name.

        :return: host names and port numbers for the service, in the order to
            try them, empty list if the service is decidedly not available
            on the domain or `None` when there are no SRV records for it.
        :returntype: `list` of (`str`, `int`)"""
        try:
            name = u"_{0}._{1}.{2}".format(service, proto,
                                        domain.encode("idna").decode("ascii"))
            answer = self.query(name)
        except UnicodeError as err:
            logger.debug("Cannot encode {0!r}: {1}".format(domain, err))
            return None
        except dns.exception.DNSException as err:
            logger.debug("SRV lookup of {0!r} failed: {1}".format(name, err))
            return None
        records = list(answer)
        if not records:
            return None
        if len(records) == 1 and records[0].target == dns.name.root:
            logger.debug("Service {0!r} not available at {1!r}"
                                                    .format(service, domain))
            return []
        return [(rrecord.target.to_text(omit_final_dot = True), rrecord.port)
                                            for rrecord in reorder_srv(records)]

# vi: sts=4 et sw=4
