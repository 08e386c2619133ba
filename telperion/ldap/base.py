"""Contains the Directory class which executes requests on a link and reports outcomes to modules"""

import logging

from .constants import DerefAliases, Event, Option
from .events import EventEmitter
from .exceptions import InvalidState
from .link import Link, ResultHandle
from .registry import registry as default_registry
from .request import SearchRequest, ReadRequest, ListRequest
from .response import Response

logger = logging.getLogger('telperion.ldap')
logger.addHandler(logging.NullHandler())
logger.setLevel(logging.DEBUG)  # set to DEBUG to allow handler levels full discretion


class Directory(object):
    """Provides the connection to a directory server

    :param str server: Hostname or IP address of the server
    :param int port: Port to connect to
    :param int connect_timeout: Number of seconds to wait for the connection to be accepted
    :param bool use_ssl: Connect with LDAPS
    :param ModuleRegistry modules: The registry whose modules observe this directory's events. The process-wide
                                   :data:`.registry` is used if not given.
    :param Link link: An existing link to use instead of creating one
    """

    # global defaults
    DEFAULT_SERVER = 'localhost'
    DEFAULT_PORT = 389
    DEFAULT_CONNECT_TIMEOUT = 5
    DEFAULT_USE_SSL = False
    DEFAULT_FILTER = '(objectClass=*)'
    DEFAULT_DEREF_ALIASES = DerefAliases.NEVER

    # logging config
    LOG_FORMAT = '[%(asctime)s] %(name)s %(levelname)s : %(message)s'

    ## logging controls

    @staticmethod
    def enable_logging(level=logging.DEBUG):
        """Enable logging output to stderr"""
        stderr_handler = logging.StreamHandler()
        stderr_handler.setFormatter(logging.Formatter(Directory.LOG_FORMAT))
        stderr_handler.setLevel(level)
        logger.addHandler(stderr_handler)
        return stderr_handler

    ## basic methods

    def __enter__(self):
        return self

    def __exit__(self, etype, e, trace):
        self.close()

    def __init__(self, server=None, port=None, connect_timeout=None, use_ssl=None, modules=None, link=None):
        if server is None:
            server = Directory.DEFAULT_SERVER
        if port is None:
            port = Directory.DEFAULT_PORT
        if connect_timeout is None:
            connect_timeout = Directory.DEFAULT_CONNECT_TIMEOUT
        if use_ssl is None:
            use_ssl = Directory.DEFAULT_USE_SSL
        if modules is None:
            modules = default_registry

        self.server = server
        self.port = port

        if link is None:
            link = Link(server, port, connect_timeout, use_ssl)
        self._link = link
        if Directory.DEFAULT_DEREF_ALIASES != DerefAliases.NEVER:
            self._link.set_option(Option.DEREF, Directory.DEFAULT_DEREF_ALIASES)
        logger.info('Connected to {0}:{1}'.format(server, port))

        self.events = EventEmitter()
        for module in modules.modules():
            for event, handler in module.subscriptions().items():
                self.events.on(event, handler)
        self.events.emit(Event.NEW, self)

    def __repr__(self):
        return '<Directory {0}:{1}>'.format(self.server, self.port)

    @property
    def link(self):
        return self._link

    def on(self, event, handler):
        """Subscribe a handler to one of this directory's events, after any module handlers"""
        self.events.on(event, handler)

    def close(self):
        """Release the connection handle"""
        self._link.close()

    def unbind(self):
        """Alias of :meth:`close`"""
        self.close()

    ## execution

    def execute(self, request):
        """Execute a request and return its normalized outcome

        :param Request request: The request to run. For paged lookups, execute the same instance again to get the
                                next page.
        :rtype: Response
        :raises UnsupportedOperation: if the request names an operation the link does not allow
        """
        self.events.emit(Event.REQUEST, self, request)
        request.prepare_for_execution(self._link)
        result = self._link.invoke(request.action(), *request.action_parameters())
        response = Response(self._link, result, request)
        self._report(response)
        return response

    def _run(self, operation, *args):
        result = self._link.invoke(operation, *args)
        response = Response(self._link, result)
        self._report(response)
        return response

    def _report(self, response):
        if response.ok():
            self.events.emit(Event.RESPONSE, self, response)
        else:
            logger.debug('Server reported error {0} ({1})'.format(response.code, response.message))
            self.events.emit(Event.SERVER_ERROR, self, response)

    ## lookup conveniences

    def search(self, base, filter=None, attributes=None):
        """Search the subtree below and including base

        :rtype: Response
        """
        return self.execute(SearchRequest(base, filter or Directory.DEFAULT_FILTER, attributes))

    def read(self, base, filter=None, attributes=None):
        """Read only the base object"""
        return self.execute(ReadRequest(base, filter or Directory.DEFAULT_FILTER, attributes))

    def list_children(self, base, filter=None, attributes=None):
        """List the immediate children of base"""
        return self.execute(ListRequest(base, filter or Directory.DEFAULT_FILTER, attributes))

    def root_dse(self):
        """Read the RootDSE with all user and operational attributes"""
        return self.read('', attributes=['*', '+'])

    ## pass-through operations

    def bind(self, dn=None, password=None):
        """Simple bind. Binds anonymously if dn is not given."""
        return self._run('bind', dn, password)

    def sasl_bind(self, mechanism, credentials=None):
        return self._run('sasl_bind', mechanism, credentials)

    def start_tls(self):
        return self._run('start_tls')

    def compare(self, dn, attribute, value):
        """Compare an attribute value. Check ``code`` for compare true (6) or compare false (5)."""
        return self._run('compare', dn, attribute, value)

    def add(self, dn, entry):
        return self._run('add', dn, entry)

    def delete(self, dn):
        return self._run('delete', dn)

    def modify(self, dn, entry):
        return self._run('modify', dn, entry)

    def mod_add(self, dn, entry):
        return self._run('mod_add', dn, entry)

    def mod_del(self, dn, entry):
        return self._run('mod_del', dn, entry)

    def mod_replace(self, dn, entry):
        return self._run('mod_replace', dn, entry)

    def rename(self, dn, new_rdn, new_parent=None, delete_old_rdn=True):
        return self._run('rename', dn, new_rdn, new_parent, delete_old_rdn)

    def set_option(self, option, value):
        return self._run('set_option', option, value)

    def get_option(self, option):
        """Get a link option. The value is the ``result`` of the returned response."""
        return self._run('get_option', option)

    def sort(self, response, attribute):
        """Order the entries of a lookup response by the first value of an attribute

        :param Response response: A lookup response whose result has not been released
        :param str attribute: The attribute to sort by
        :return: A new response over the sorted result. It is not tied to a request, so the paging cookie of the
                 request that fetched the page is left alone.
        :rtype: Response
        :raises InvalidState: if the response is not from a lookup or was released
        """
        result = response.result
        if not isinstance(result, ResultHandle) or result.freed:
            raise InvalidState('Only unreleased lookup responses can be sorted')
        self._link.invoke('sort', result, attribute)
        sorted_response = Response(self._link, result)
        self._report(sorted_response)
        return sorted_response
