"""Normalized outcome of an executed operation

The raw outcome of a lookup is in the shape the server sent it: counted mappings, numeric duplicate keys, and
attributes too large for a single response split over several ``attr;range=a-b`` keys. :class:`Response` turns that
into a plain list of entries mapping attribute names to lists of values, and derives a success verdict from the
result code.
"""

import logging
import re
import weakref

from .exceptions import LDAPError
from .link import ResultHandle
from .resultcodes import ResultCode, VENDOR_INVALID_CREDENTIALS, describe, is_success

logger = logging.getLogger(__name__)

_range_re = re.compile(r'(?:^|;)range=(\d+)-(?:\d+|\*)(?:;|$)', re.IGNORECASE)
_hex_re = re.compile(r'^[0-9a-fA-F]+$')


def _is_index(key):
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and key.isdigit()


def _indexed_items(mapping):
    keys = sorted((k for k in mapping if _is_index(k)), key=int)
    return [mapping[k] for k in keys]


def _value_list(values):
    if isinstance(values, dict):
        return _indexed_items(values)
    if isinstance(values, (list, tuple)):
        return list(values)
    return [values]


def merge_split_attributes(entry):
    """Merge attribute values split over ``;``-suffixed keys into a single key

    The canonical name is the part before the first ``;``. Values under the plain name come first. Suffixed
    fragments follow ordered by their range start if every fragment has one, else in the order they were found.
    Attribute order follows the first appearance of each canonical name.

    :param dict entry: Mapping of attribute name to list of values
    :return: A new mapping with no suffixed keys
    :rtype: dict
    """
    if not any(isinstance(key, str) and ';' in key for key in entry):
        return dict(entry)

    order = []
    plain = {}
    fragments = {}
    for key, values in entry.items():
        if isinstance(key, str) and ';' in key:
            name, suffix = key.split(';', 1)
            m = _range_re.search(suffix)
            start = int(m.group(1)) if m else None
            fragments.setdefault(name, []).append((start, values))
        else:
            name = key
            plain[name] = values
        if name not in order:
            order.append(name)

    merged = {}
    for name in order:
        if name not in fragments:
            merged[name] = plain[name]
            continue
        values = list(plain.get(name, []))
        parts = fragments[name]
        if all(start is not None for start, _ in parts):
            parts = sorted(parts, key=lambda part: part[0])
        for start, part in parts:
            values.extend(part)
        merged[name] = values
    return merged


def clean_entries(entries):
    """Strip count fields and numeric duplicate keys from raw entries and merge split attributes

    Accepts either a list of entries or a counted mapping of them. Every attribute value becomes a list; ``dn``
    stays a string.

    :param entries: The raw entries
    :type entries: list or dict
    :rtype: list[dict]
    """
    if isinstance(entries, dict):
        entries = _indexed_items(entries)
    cleaned = []
    for entry in entries or []:
        clean = {}
        for key, value in entry.items():
            if key == 'count' or _is_index(key):
                continue
            if key == 'dn':
                clean['dn'] = str(value)
            else:
                clean[key] = _value_list(value)
        cleaned.append(merge_split_attributes(clean))
    return cleaned


def extract_vendor_code(message):
    """Find a vendor sub-code embedded in a diagnostic message

    Active Directory reports e.g. ``80090308: LdapErr: DSID-0C09042F, comment: AcceptSecurityContext error,
    data 52e, v2580``. The code is the second word of the second-to-last comma-separated segment. The alias for
    invalid credentials is normalized back to 49; other codes are read as written.

    :param str message: The diagnostic message
    :return: The vendor code, or None if the message does not have the expected shape
    :rtype: int or None
    """
    if not message:
        return None
    segments = message.split(',')
    if len(segments) < 2:
        logger.debug('No vendor code in diagnostic message {0!r}'.format(message))
        return None
    words = segments[-2].strip().split(' ')
    if len(words) < 2:
        logger.debug('No vendor code in diagnostic message {0!r}'.format(message))
        return None
    token = words[1].strip()
    if token.lower() == VENDOR_INVALID_CREDENTIALS:
        return ResultCode.INVALID_CREDENTIALS
    # a vendor code never turns a failed bind into a success
    if token.isdigit() and not is_success(int(token)):
        return int(token)
    if _hex_re.match(token):
        logger.debug('Ignoring unknown vendor code {0}'.format(token))
    else:
        logger.debug('No vendor code in diagnostic message {0!r}'.format(message))
    return None


class Response(object):
    """The normalized outcome of one operation

    Constructed by :meth:`.Directory.execute` right after the link call returns, since the link's last-error state
    belongs to the most recent operation only.

    :param telperion.ldap.link.Link link: The link the operation ran on
    :param result: What the link operation returned, a :class:`.ResultHandle` for lookups
    :param request: The request that was executed, if any; the paging cookie is written back to it
    """

    def __init__(self, link, result, request=None):
        self._request = weakref.ref(request) if request is not None else None
        self._result = result
        self._data = None
        self._referrals = None
        self._cookie = None
        self._estimated = None

        if isinstance(result, ResultHandle):
            code, matched_dn, diagnostic, referrals = link.parse_result(result)
            self._data = clean_entries(link.get_entries(result))
            if referrals:
                self._referrals = referrals
            try:
                self._cookie, self._estimated = link.paged_result_response(result)
            except LDAPError as e:
                logger.debug('Could not read paging control: {0}'.format(e))
            if request is not None and hasattr(request, 'cookie'):
                request.cookie(self._cookie if self._cookie is not None else b'')
        else:
            code = link.errno()
            matched_dn = link.matched_dn()
            diagnostic = link.diagnostic_message()

        if code == ResultCode.INVALID_CREDENTIALS:
            vendor_code = extract_vendor_code(diagnostic)
            if vendor_code is not None:
                code = vendor_code

        self._code = code
        self._message = describe(code)
        self._matched_dn = matched_dn
        self._diagnostic = diagnostic

    def __repr__(self):
        return '<Response code={0} message={1!r}>'.format(self._code, self._message)

    def __enter__(self):
        return self

    def __exit__(self, etype, e, trace):
        self.release()

    def __del__(self):
        self.release()

    @property
    def request(self):
        """The originating request, or None if it no longer exists"""
        if self._request is None:
            return None
        return self._request()

    @property
    def result(self):
        return self._result

    @property
    def code(self):
        return self._code

    @property
    def message(self):
        return self._message

    @property
    def diagnostic_message(self):
        """The server's own diagnostic text, as opposed to :attr:`message`"""
        return self._diagnostic

    @property
    def data(self):
        """List of entries for lookups, None for any other operation"""
        return self._data

    @property
    def referrals(self):
        return self._referrals

    @property
    def matched_dn(self):
        return self._matched_dn

    @property
    def cookie(self):
        return self._cookie

    @property
    def estimated(self):
        return self._estimated

    def ok(self):
        """True if the code is one of success, size limit exceeded, compare false or compare true"""
        return is_success(self._code)

    def release(self):
        """Free the raw lookup result. The normalized attributes remain available."""
        result = getattr(self, '_result', None)
        if isinstance(result, ResultHandle) and not result.freed:
            result.free()
