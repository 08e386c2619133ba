"""Request builders describing a single directory operation

A request is built with fluent accessors, handed to :meth:`.Directory.execute`, and may be executed again to fetch
the next page of a paged lookup: the :class:`.Response` writes the server's paging cookie back into the request it
came from.

Example usage::

    from telperion.ldap import Directory, SearchRequest

    with Directory('dir01.example.org') as ldap:
        request = SearchRequest().start_at('ou=people,dc=example,dc=org') \\
                                 .where('(objectClass=person)') \\
                                 .get(['cn', 'mail']) \\
                                 .limit_to(500) \\
                                 .per_page()
        while True:
            response = ldap.execute(request)
            for entry in response.data:
                print(entry['dn'])
            if not request.cookie():
                break

Every accessor reads the current value when called without an argument and sets it, returning the request, when
called with one.
"""

import logging

from .exceptions import InvalidState

logger = logging.getLogger(__name__)


class Request(object):
    """Base class for all requests"""

    ACTION = None

    def action(self):
        """The canonical name of the link operation fulfilling this request"""
        return self.ACTION

    def action_parameters(self):
        """The ordered arguments for the link operation

        :rtype: tuple
        """
        raise NotImplementedError()

    def prepare_for_execution(self, link):
        """Prepare the link in any way needed right before the operation runs

        :param telperion.ldap.link.Link link: The link that will run the operation
        :rtype: None
        """
        raise NotImplementedError()


class LookupRequest(Request):
    """Base class for search-style requests

    :param str base: DN of the object to start at
    :param str filter: Search filter
    :param attributes: Attribute name or list of attribute names to return
    :type attributes: str or list
    """

    DEFAULT_FILTER = '(objectClass=*)'
    DEFAULT_ATTRIBUTES = '*'
    DEFAULT_PAGE_SIZE = 1000

    def __init__(self, base=None, filter=None, attributes=None):
        if filter is None:
            filter = LookupRequest.DEFAULT_FILTER
        if attributes is None:
            attributes = LookupRequest.DEFAULT_ATTRIBUTES
        self._base = base
        self._filter = str(filter)
        self._attributes = self._attribute_list(attributes)
        self._attributes_only = False
        self._size_limit = None
        self._time_limit = None
        self._deref = None  # use the link default
        self._page_size = LookupRequest.DEFAULT_PAGE_SIZE
        self._paged_search = False
        self._cookie = b''

    def __repr__(self):
        return '{0}(base={1!r}, filter={2!r}, attributes={3!r})'.format(
            self.__class__.__name__, self._base, self._filter, self._attributes)

    @staticmethod
    def _attribute_list(attributes):
        if isinstance(attributes, (str, bytes)):
            return [attributes]
        return list(attributes)

    def prepare_for_execution(self, link):
        # the paging control must be sent with every page, including the first one with an empty cookie
        if self._paged_search:
            link.paged_result(self._page_size, True, self._cookie)

    def action_parameters(self):
        return (
            self._base,
            self._filter,
            self._attributes,
            self._attributes_only,
            self._size_limit,
            self._time_limit,
            self._deref,
        )

    ## accessors

    def base(self, base=None):
        if base is None:
            return self._base
        self._base = str(base)
        return self

    def filter(self, filter=None):
        if filter is None:
            return self._filter
        self._filter = str(filter)
        return self

    def attributes(self, attributes=None):
        if attributes is None:
            return self._attributes
        self._attributes = self._attribute_list(attributes)
        return self

    def attributes_only(self, attributes_only=None):
        if attributes_only is None:
            return self._attributes_only
        self._attributes_only = bool(attributes_only)
        return self

    def size_limit(self, size_limit=None):
        if size_limit is None:
            return self._size_limit
        self._size_limit = int(size_limit)
        return self

    def time_limit(self, time_limit=None):
        if time_limit is None:
            return self._time_limit
        self._time_limit = int(time_limit)
        return self

    def deref(self, deref=None):
        if deref is None:
            return self._deref
        self._deref = deref
        return self

    def page_size(self, page_size=None):
        if page_size is None:
            return self._page_size
        self._page_size = int(page_size)
        return self

    def paged_search(self, paged_search=None):
        if paged_search is None:
            return self._paged_search
        self._paged_search = bool(paged_search)
        return self

    def cookie(self, cookie=None):
        if cookie is None:
            return self._cookie
        self._cookie = cookie
        return self

    ## semantic aliases

    def start_at(self, base):
        """Setter-only alias for :meth:`base`"""
        return self.base(base)

    the = start_at
    this = start_at

    def where(self, filter):
        """Setter-only alias for :meth:`filter`"""
        return self.filter(filter)

    def get(self, attributes):
        """Setter-only alias for :meth:`attributes`"""
        return self.attributes(attributes)

    and_get = get

    def limit_to(self, size_limit):
        """Setter-only alias for :meth:`size_limit`"""
        return self.size_limit(size_limit)

    def per_page(self):
        """Enable paged searching, using the size limit as the number of objects per page

        The size limit is cleared since the server must not stop after the first page.

        :raises InvalidState: if the size limit is not set or zero
        """
        if not self._size_limit:
            raise InvalidState('Paged search requested but size limit is either not set or zero')
        self._page_size = self._size_limit
        self._size_limit = None
        logger.debug('Enabled paged search with {0} objects per page'.format(self._page_size))
        return self.paged_search(True)

    enable_paged_mode = per_page

    def within(self, time_limit):
        """Setter-only alias for :meth:`time_limit`"""
        return self.time_limit(time_limit)

    def secs(self):
        """Reads well after :meth:`within`, does nothing"""
        return self


class SearchRequest(LookupRequest):
    """Search the whole subtree below and including the base"""
    ACTION = 'ldap_search'


class ReadRequest(LookupRequest):
    """Read only the base object"""
    ACTION = 'ldap_read'


class ListRequest(LookupRequest):
    """List the immediate children of the base"""
    ACTION = 'ldap_list'
