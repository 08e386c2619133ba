"""RFC 2696 Simple Paged Results Manipulation

The request control is built by ldap3 from the ``paged_size``, ``paged_criticality`` and ``paged_cookie`` search
arguments. This module reads the value the server returns with the final result of each page. The cookie is opaque and
must be sent back unmodified to obtain the next page; an empty cookie from the server means there are no more pages.
"""

from pyasn1.codec.ber.decoder import decode as ber_decode
from pyasn1.type.univ import Integer, OctetString, Sequence
from pyasn1.type.namedtype import NamedTypes, NamedType
from pyasn1.type.constraint import ValueRangeConstraint
from pyasn1.error import PyAsn1Error

from .exceptions import LDAPError

PAGED_RESULTS_OID = '1.2.840.113556.1.4.319'

MAX_INT = 2147483647


class Size(Integer):
    subtypeSpec = Integer.subtypeSpec + ValueRangeConstraint(0, MAX_INT)


class Cookie(OctetString):
    pass


class RealSearchControlValue(Sequence):
    # realSearchControlValue ::= SEQUENCE {
    #         size            INTEGER (0..maxInt),
    #                                 -- requested page size from client
    #                                 -- result set size estimate from server
    #         cookie          OCTET STRING
    # }
    componentType = NamedTypes(NamedType('size', Size()),
                               NamedType('cookie', Cookie()))


def to_cookie(cookie):
    """Normalize a paging cookie to bytes, None being the empty cookie"""
    if cookie is None:
        return b''
    if isinstance(cookie, str):
        return cookie.encode('utf-8')
    return bytes(cookie)


def decode_paged_results_value(ctrl_value):
    """Decode a paged results response control value

    ldap3 already decodes this control for known OIDs and gives a dict; raw BER bytes are decoded here.

    :param ctrl_value: The control value from the server
    :type ctrl_value: dict or bytes
    :return: A ``(cookie, estimated)`` tuple
    :rtype: tuple
    :raises LDAPError: if the raw value cannot be decoded completely
    """
    if isinstance(ctrl_value, dict):
        return to_cookie(ctrl_value.get('cookie')), ctrl_value.get('size')
    try:
        value, rest = ber_decode(ctrl_value, asn1Spec=RealSearchControlValue())
    except PyAsn1Error as e:
        raise LDAPError('Could not decode paged results control value ({0})'.format(e))
    if rest:
        raise LDAPError('Unexpected leftover bits in response control value')
    return value.getComponentByName('cookie').asOctets(), int(value.getComponentByName('size'))
