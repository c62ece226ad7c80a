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

"""Nodeprep and resourceprep stringprep profiles.

Normative reference:
  - `RFC 6122 <http://xmpp.org/rfcs/rfc6122.html>`__
  - `RFC 3454 <http://tools.ietf.org/html/rfc3454>`__
"""

__docformat__ = "restructuredtext en"

import stringprep
import unicodedata

from .exceptions import StringprepError

class LookupFunction(object):
    """Class for looking up RFC 3454 tables using function.

    :Ivariables:
        - `lookup`: the lookup function."""
    # pylint: disable=R0903
    def __init__(self, function):
        self.lookup = function

class LookupTable(object):
    """Class for looking up RFC 3454 tables using a dictionary and/or list of
    ranges."""
    # pylint: disable=R0903
    def __init__(self, singles, ranges):
        self.singles = singles
        self.ranges = ranges
    def lookup(self, code):
        """Lookup a character in the table.

        :Return: the value for the character or `None` if not found."""
        if code in self.singles:
            return self.singles[code]
        code = ord(code)
        for (start, stop), value in self.ranges:
            if code < start:
                return None
            if code <= stop:
                return value
        return None

A_1 = LookupFunction(stringprep.in_table_a1)

def b1_mapping(char):
    """Do RFC 3454 B.1 table mapping.

    :Return: empty string if `char` is in the table or `None` otherwise."""
    if stringprep.in_table_b1(char):
        return u""
    else:
        return None

B_1 = LookupFunction(b1_mapping)
B_2 = LookupFunction(stringprep.map_table_b2)
B_3 = LookupFunction(stringprep.map_table_b3)
C_1_1 = LookupFunction(stringprep.in_table_c11)
C_1_2 = LookupFunction(stringprep.in_table_c12)
C_2_1 = LookupFunction(stringprep.in_table_c21)
C_2_2 = LookupFunction(stringprep.in_table_c22)
C_3 = LookupFunction(stringprep.in_table_c3)
C_4 = LookupFunction(stringprep.in_table_c4)
C_5 = LookupFunction(stringprep.in_table_c5)
C_6 = LookupFunction(stringprep.in_table_c6)
C_7 = LookupFunction(stringprep.in_table_c7)
C_8 = LookupFunction(stringprep.in_table_c8)
C_9 = LookupFunction(stringprep.in_table_c9)
D_1 = LookupFunction(stringprep.in_table_d1)
D_2 = LookupFunction(stringprep.in_table_d2)

def nfkc(data):
    """Do NFKC normalization of Unicode data.

    :Parameters:
        - `data`: list of Unicode characters or Unicode string.

    :return: normalized Unicode string."""
    if isinstance(data, list):
        data = u"".join(data)
    return unicodedata.normalize("NFKC", data)

class Profile(object):
    """Base class for stringprep profiles.
    """
    cache_items = []
    def __init__(self, unassigned, mapping, normalization, prohibited,
                                                                bidi = True):
        """Initialize Profile object.

        :Parameters:
            - `unassigned`: the lookup table with unassigned codes
            - `mapping`: the lookup table with character mappings
            - `normalization`: the normalization function
            - `prohibited`: the lookup table with prohibited characters
            - `bidi`: if True then bidirectional checks should be done
        """
        # pylint: disable=R0913
        self.unassigned = unassigned
        self.mapping = mapping
        self.normalization = normalization
        self.prohibited = prohibited
        self.bidi = bidi
        self.cache = {}

    def prepare(self, data):
        """Complete string preparation procedure for 'stored' strings.
        (includes checks for unassigned codes)

        :Parameters:
            - `data`: Unicode string to prepare.

        :return: prepared string

        :raise StringprepError: if the preparation fails
        """
        ret = self.cache.get(data)
        if ret is not None:
            return ret
        result = self.map(data)
        if self.normalization:
            result = self.normalization(result)
        result = self.prohibit(result)
        result = self.check_unassigned(result)
        if self.bidi:
            result = self.check_bidi(result)
        if isinstance(result, list):
            result = u"".join(result)
        if _stringprep_cache_size:
            if len(self.cache_items) >= _stringprep_cache_size:
                remove = self.cache_items[: -_stringprep_cache_size // 2]
                for profile, key in remove:
                    profile.cache.pop(key, None)
                Profile.cache_items = self.cache_items[
                                                -_stringprep_cache_size // 2:]
            self.cache_items.append((self, data))
            self.cache[data] = result
        return result

    def map(self, data):
        """Mapping part of string preparation."""
        result = []
        for char in data:
            ret = None
            for lookup in self.mapping:
                ret = lookup.lookup(char)
                if ret is not None:
                    break
            if ret is not None:
                result.append(ret)
            else:
                result.append(char)
        return result

    def prohibit(self, data):
        """Checks for prohibited characters."""
        for char in data:
            for lookup in self.prohibited:
                if lookup.lookup(char):
                    raise StringprepError("Prohibited character: {0!r}"
                                                                .format(char))
        return data

    def check_unassigned(self, data):
        """Checks for unassigned character codes."""
        for char in data:
            for lookup in self.unassigned:
                if lookup.lookup(char):
                    raise StringprepError("Unassigned character: {0!r}"
                                                                .format(char))
        return data

    @staticmethod
    def check_bidi(data):
        """Checks if sting is valid for bidirectional printing."""
        has_l = False
        has_ral = False
        for char in data:
            if stringprep.in_table_d1(char):
                has_ral = True
            elif stringprep.in_table_d2(char):
                has_l = True
        if has_l and has_ral:
            raise StringprepError("Both RandALCat and LCat characters present")
        if has_ral and (not stringprep.in_table_d1(data[0])
                                    or not stringprep.in_table_d1(data[-1])):
            raise StringprepError("The first and the last character must"
                                                            " be RandALCat")
        return data

NODEPREP = Profile(
    unassigned = (A_1,),
    mapping = (B_1, B_2),
    normalization = nfkc,
    prohibited = (C_1_1, C_1_2, C_2_1, C_2_2, C_3, C_4, C_5, C_6, C_7, C_8,
                                C_9, LookupTable({u'"': True, u'&': True,
                                    u"'": True, u"/": True, u":": True,
                                    u"<": True, u">": True, u"@": True}, ()) ),
    bidi = True)

RESOURCEPREP = Profile(
    unassigned = (A_1,),
    mapping = (B_1,),
    normalization = nfkc,
    prohibited = (C_1_2, C_2_1, C_2_2, C_3, C_4, C_5, C_6, C_7, C_8, C_9),
    bidi = True)

_stringprep_cache_size = 1000 # pylint: disable=C0103
def set_stringprep_cache_size(size):
    """Modify stringprep cache size.

    :Parameters:
        - `size`: new cache size
    """
    # pylint: disable=W0603
    global _stringprep_cache_size
    _stringprep_cache_size = size
    if len(Profile.cache_items) > size:
        remove = Profile.cache_items[:-size] if size else Profile.cache_items
        for profile, key in remove:
            profile.cache.pop(key, None)
        Profile.cache_items = Profile.cache_items[-size:] if size else []

# vi: sts=4 et sw=4
