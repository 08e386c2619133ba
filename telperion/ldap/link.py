"""Holds the single connection handle to a directory server and exposes the permitted low-level operations"""

import logging

from ldap3 import (
    Server,
    Connection,
    NONE,
    SYNC,
    AUTO_BIND_NONE,
    BASE,
    LEVEL,
    SUBTREE,
    SIMPLE,
    SASL,
    ANONYMOUS,
    MODIFY_ADD,
    MODIFY_DELETE,
    MODIFY_REPLACE,
)
from ldap3.core.exceptions import LDAPException, LDAPCommunicationError, LDAPInvalidFilterError

from .constants import DerefAliases, Option
from .controls import PAGED_RESULTS_OID, decode_paged_results_value, to_cookie
from .exceptions import UnsupportedOperation, ConnectionUnbound, LDAPConnectionError
from .resultcodes import ResultCode, describe

logger = logging.getLogger(__name__)

# prefix shared by all canonical operation names
OPERATION_PREFIX = 'ldap_'

# result codes for which a lookup still yields a result handle
LOOKUP_RESULT_CODES = frozenset([
    ResultCode.SUCCESS,
    ResultCode.TIMELIMIT_EXCEEDED,
    ResultCode.SIZELIMIT_EXCEEDED,
    ResultCode.REFERRAL,
])


def canonical_operation(name):
    """Prefix an operation name with the operation family marker if it is missing

    :param str name: An operation name, e.g. "search" or "ldap_search"
    :return: The canonical name, e.g. "ldap_search"
    :rtype: str
    """
    if name.lower().startswith(OPERATION_PREFIX):
        return OPERATION_PREFIX + name[len(OPERATION_PREFIX):]
    return OPERATION_PREFIX + name


class ResultHandle(object):
    """Opaque outcome of a lookup operation

    Holds a snapshot of the connection state the lookup left behind: the result entries, any search result
    references, the status of the final result message and its response controls.
    """

    def __init__(self, operation, result, response):
        result = result or {}
        self.operation = operation
        self.code = result.get('result', ResultCode.OTHER)
        self.matched_dn = result.get('dn') or ''
        self.message = result.get('message') or ''
        self.referrals = list(result.get('referrals') or [])
        self.controls = dict(result.get('controls') or {})
        self.entries = []
        self.references = []
        for item in response or []:
            item_type = item.get('type')
            if item_type == 'searchResEntry':
                self.entries.append(item)
            elif item_type == 'searchResRef':
                self.references.extend(item.get('uri') or [])
        self.freed = False

    def free(self):
        self.entries = []
        self.references = []
        self.controls = {}
        self.freed = True

    def __repr__(self):
        return '<ResultHandle {0} code={1} entries={2}>'.format(self.operation, self.code, len(self.entries))


class Link(object):
    """Owns exactly one connection handle to a directory server.

    Only the operations listed in :attr:`OPERATIONS` can be run through :meth:`invoke`; each of them is also a regular
    method with a fixed signature. Operations never raise for protocol outcomes: they return ``False`` (or a
    :class:`ResultHandle` / ``True`` on success) and leave the status in the last-error state read by
    :meth:`errno`, :meth:`error` and :meth:`diagnostic_message`.

    :param str server: Hostname or IP address of the server
    :param int port: Port to connect to
    :param int connect_timeout: Number of seconds to wait for the connection to be accepted
    :param bool use_ssl: Connect with LDAPS
    :param connection: An already constructed ldap3-compatible connection to use instead of creating one
    """

    OPERATIONS = (
        'add',
        'bind',
        'compare',
        'delete',
        'errno',
        'error',
        'get_entries',
        'get_option',
        'list',
        'mod_add',
        'mod_del',
        'mod_replace',
        'modify',
        'paged_result',
        'read',
        'rename',
        'sasl_bind',
        'search',
        'set_option',
        'sort',
        'start_tls',
        'unbind',
    )

    def __init__(self, server, port=389, connect_timeout=5, use_ssl=False, connection=None):
        if connection is None:
            try:
                ldap_server = Server(server, port=port, use_ssl=use_ssl, get_info=NONE,
                                     connect_timeout=connect_timeout)
            except LDAPException as e:
                raise LDAPConnectionError('Invalid server {0}:{1} ({2})'.format(server, port, e))
            connection = Connection(ldap_server, auto_bind=AUTO_BIND_NONE, client_strategy=SYNC,
                                    raise_exceptions=False, auto_range=False)
            logger.debug('Created connection handle for {0}:{1}'.format(server, port))
        self._connection = connection
        self._released = False
        self._last = {'result': ResultCode.SUCCESS, 'message': '', 'dn': ''}
        self._pending_paging = None
        self._options = {
            Option.DEREF: DerefAliases.NEVER,
            Option.SIZELIMIT: 0,
            Option.TIMELIMIT: 0,
            Option.REFERRALS: True,
            Option.RESTART: False,
            Option.PROTOCOL_VERSION: getattr(connection, 'version', 3),
            Option.SERVER_CONTROLS: [],
            Option.CLIENT_CONTROLS: [],
            Option.NETWORK_TIMEOUT: connect_timeout,
        }

    @property
    def connection(self):
        """The underlying connection handle"""
        return self._connection

    @property
    def released(self):
        return self._released

    def __enter__(self):
        return self

    def __exit__(self, etype, e, trace):
        self.close()

    def invoke(self, operation, *args):
        """Run an allowed operation by name

        :param str operation: The operation name, with or without the ``ldap_`` prefix
        :param args: Positional arguments in the order the operation method expects them
        :return: Whatever the operation returns
        :raises UnsupportedOperation: if the operation is not in the allow-list
        """
        canonical = canonical_operation(operation)
        name = canonical[len(OPERATION_PREFIX):]
        if name not in self.OPERATIONS:
            raise UnsupportedOperation(operation)
        return getattr(self, name)(*args)

    ## handle lifecycle

    def close(self):
        """Release the connection handle. Safe to call more than once; the handle is only released the first time."""
        if self._released:
            return
        self._released = True
        if not getattr(self._connection, 'closed', True):
            try:
                self._connection.unbind()
            except LDAPException as e:
                logger.warning('Error unbinding connection handle: {0}'.format(e))
        logger.info('Released connection handle')

    def unbind(self):
        """Unbind and release the connection handle"""
        self._check_released()
        self.close()
        return True

    def _check_released(self):
        if self._released:
            raise ConnectionUnbound()

    ## last operation state

    def errno(self):
        """The result code of the last operation"""
        return self._last.get('result', ResultCode.SUCCESS)

    def error(self):
        """The canonical description of the last result code"""
        return describe(self.errno())

    def diagnostic_message(self):
        """The server's diagnostic message for the last operation, empty if there was none"""
        return self._last.get('message') or ''

    def matched_dn(self):
        return self._last.get('dn') or ''

    def _record_result(self):
        result = getattr(self._connection, 'result', None)
        if result:
            self._last = dict(result)
        else:
            self._last = {'result': ResultCode.SUCCESS, 'message': '', 'dn': ''}

    def _record_status(self, code, message=''):
        self._last = {'result': code, 'message': message, 'dn': ''}

    def _record_failure(self, operation, exc):
        if isinstance(exc, LDAPInvalidFilterError):
            code = ResultCode.FILTER_ERROR
        elif isinstance(exc, LDAPCommunicationError):
            code = ResultCode.SERVER_DOWN
        else:
            code = ResultCode.LOCAL_ERROR
        logger.warning('{0} failed on the client side: {1}'.format(operation, exc))
        self._last = {'result': code, 'message': str(exc), 'dn': ''}

    def _call(self, operation, func, *args, **kwds):
        """Run a connection method, recording its outcome in the last operation state"""
        self._check_released()
        try:
            if getattr(self._connection, 'closed', False) and operation not in ('ldap_bind', 'ldap_sasl_bind'):
                self._connection.open()
            ret = func(*args, **kwds)
        except LDAPException as e:
            self._record_failure(operation, e)
            return False
        self._record_result()
        logger.debug('{0} finished with result {1} ({2})'.format(operation, self.errno(), self.error()))
        return ret

    ## controls and options

    def _server_controls(self):
        return list(self._options[Option.SERVER_CONTROLS]) or None

    def _take_paging(self):
        paging = self._pending_paging or {}
        self._pending_paging = None
        return paging

    def paged_result(self, page_size, critical=False, cookie=b''):
        """Request a paged results control for the next lookup operation

        Installing it again before that lookup replaces the pending request. ldap3 builds the control itself from the
        search's ``paged_*`` arguments.

        :param int page_size: Number of entries per page
        :param bool critical: Mark the control critical
        :param cookie: The cookie returned with the previous page, empty for the first page
        :type cookie: bytes or str
        :rtype: bool
        """
        self._check_released()
        self._pending_paging = {
            'paged_size': int(page_size),
            'paged_criticality': bool(critical),
            'paged_cookie': to_cookie(cookie),
        }
        logger.debug('Installed paged results control size={0} cookie={1!r}'.format(page_size, cookie))
        return True

    def set_option(self, option, value):
        """Set a link option

        ``RESTART`` and ``CLIENT_CONTROLS`` are only recorded and read back by :meth:`get_option`. ldap3 selects
        restarting through its client strategy (``RESTARTABLE``) and has no client-side controls, so neither changes
        any operation.
        ``SERVER_CONTROLS`` are sent with every operation.

        :param int option: One of the :class:`.Option` constants
        :param value: The new value
        :return: True if the option was set, False if it is unknown or read-only
        :rtype: bool
        """
        self._check_released()
        if option in Option.READ_ONLY or option not in self._options:
            logger.debug('Refusing to set option {0}'.format(option))
            self._record_status(ResultCode.LOCAL_ERROR, 'Unknown or read-only option {0}'.format(option))
            return False
        if option == Option.DEREF:
            DerefAliases.transport(value)
        elif option == Option.REFERRALS:
            self._connection.auto_referrals = bool(value)
        elif option == Option.PROTOCOL_VERSION:
            self._connection.version = int(value)
        elif option == Option.NETWORK_TIMEOUT:
            server = getattr(self._connection, 'server', None)
            if server is not None:
                server.connect_timeout = value
        elif option in (Option.SERVER_CONTROLS, Option.CLIENT_CONTROLS):
            value = list(value or [])
        self._options[option] = value
        self._record_status(ResultCode.SUCCESS)
        return True

    def get_option(self, option):
        """Get a link option

        :param int option: One of the :class:`.Option` constants
        :return: The option value, or None if the option is unknown
        """
        self._check_released()
        if option == Option.ERROR_NUMBER:
            value = self.errno()
        elif option == Option.DIAGNOSTIC_MESSAGE:
            value = self.diagnostic_message()
        elif option == Option.MATCHED_DN:
            value = self.matched_dn()
        elif option == Option.HOST_NAME:
            server = getattr(self._connection, 'server', None)
            value = None if server is None else '{0}:{1}'.format(server.host, server.port)
        elif option in self._options:
            value = self._options[option]
        else:
            self._record_status(ResultCode.LOCAL_ERROR, 'Unknown option {0}'.format(option))
            return None
        # reading the last operation state counts as an operation of its own
        self._record_status(ResultCode.SUCCESS)
        return value

    ## authentication

    def bind(self, dn=None, password=None):
        """Simple bind, or anonymous bind when no DN is given"""
        self._check_released()
        self._connection.user = dn
        self._connection.password = password
        self._connection.authentication = SIMPLE if dn else ANONYMOUS
        logger.info('Sending bind as {0}'.format(dn or '<anonymous>'))
        return self._call('ldap_bind', self._connection.bind, controls=self._server_controls())

    def sasl_bind(self, mechanism, credentials=None):
        """Bind using a SASL mechanism supported by ldap3, e.g. EXTERNAL, DIGEST-MD5 or GSSAPI"""
        self._check_released()
        self._connection.authentication = SASL
        self._connection.sasl_mechanism = mechanism
        self._connection.sasl_credentials = credentials
        logger.info('Sending SASL bind with mechanism {0}'.format(mechanism))
        return self._call('ldap_sasl_bind', self._connection.bind, controls=self._server_controls())

    def start_tls(self):
        logger.info('Sending StartTLS')
        return self._call('ldap_start_tls', self._connection.start_tls)

    ## lookups

    def search(self, base, filter='(objectClass=*)', attributes=None, attributes_only=False, size_limit=None,
               time_limit=None, deref=None):
        """Search the whole subtree below and including base"""
        return self._lookup('ldap_search', SUBTREE, base, filter, attributes, attributes_only, size_limit,
                            time_limit, deref)

    def read(self, base, filter='(objectClass=*)', attributes=None, attributes_only=False, size_limit=None,
             time_limit=None, deref=None):
        """Read the base object only"""
        return self._lookup('ldap_read', BASE, base, filter, attributes, attributes_only, size_limit,
                            time_limit, deref)

    def list(self, base, filter='(objectClass=*)', attributes=None, attributes_only=False, size_limit=None,
             time_limit=None, deref=None):
        """Search the immediate children of base"""
        return self._lookup('ldap_list', LEVEL, base, filter, attributes, attributes_only, size_limit,
                            time_limit, deref)

    def _lookup(self, operation, scope, base, filter, attributes, attributes_only, size_limit, time_limit, deref):
        if not attributes:
            attributes = ['*']
        elif isinstance(attributes, str):
            attributes = [attributes]
        if size_limit is None:
            size_limit = self._options[Option.SIZELIMIT]
        if time_limit is None:
            time_limit = self._options[Option.TIMELIMIT]
        if deref is None:
            deref = self._options[Option.DEREF]
        if filter is None:
            filter = '(objectClass=*)'
        self._check_released()
        controls = self._server_controls()
        paging = self._take_paging()
        logger.info('Sending {0}: base={1}, filter={2}'.format(operation, base, filter))
        self._call(operation, self._connection.search, base or '', filter,
                   search_scope=scope,
                   dereference_aliases=DerefAliases.transport(deref),
                   attributes=list(attributes),
                   size_limit=size_limit or 0,
                   time_limit=time_limit or 0,
                   types_only=bool(attributes_only),
                   controls=controls,
                   **paging)
        if self.errno() not in LOOKUP_RESULT_CODES:
            return False
        return ResultHandle(operation, getattr(self._connection, 'result', None),
                            getattr(self._connection, 'response', None))

    ## result handle inspection

    def get_entries(self, result):
        """Get the entries of a lookup result in transport shape

        :param ResultHandle result: A lookup result
        :return: A list of dicts holding ``dn`` and the attributes as the transport returned them
        :rtype: list
        """
        entries = []
        for item in result.entries:
            attrs = item.get('attributes')
            if attrs is None:
                attrs = item.get('raw_attributes') or {}
            entry = {'dn': item.get('dn', '')}
            for attr in attrs:
                entry[attr] = attrs[attr]
            entries.append(entry)
        return entries

    def parse_result(self, result):
        """Get the status of a lookup result

        :return: A ``(code, matched_dn, message, referrals)`` tuple
        :rtype: tuple
        """
        return result.code, result.matched_dn, result.message, list(result.referrals)

    def parse_reference(self, result):
        """Get the URIs of all search result references in a lookup result"""
        return list(result.references)

    def paged_result_response(self, result):
        """Get the paging cookie and the server's estimate of the total result set size

        :return: A ``(cookie, estimated)`` tuple; both None if the result carries no paged results control
        :rtype: tuple
        :raises LDAPError: if the control value is malformed
        """
        control = result.controls.get(PAGED_RESULTS_OID)
        if not control:
            return None, None
        return decode_paged_results_value(control.get('value'))

    def sort(self, result, attribute):
        """Order the entries of a lookup result by the first value of an attribute, in place"""
        attribute = attribute.lower()

        def sort_key(item):
            attrs = item.get('attributes') or item.get('raw_attributes') or {}
            for attr in attrs:
                if attr.lower() == attribute:
                    values = attrs[attr]
                    if isinstance(values, (list, tuple)):
                        values = values[0] if values else ''
                    return str(values)
            return ''

        result.entries.sort(key=sort_key)
        return True

    def free_result(self, result):
        if isinstance(result, ResultHandle) and not result.freed:
            result.free()

    ## updates

    def compare(self, dn, attribute, value):
        """Compare an attribute value. Returns True/False for compareTrue/compareFalse, False on error too."""
        logger.info('Sending compare for {0} ({1} = {2})'.format(dn, attribute, value))
        return self._call('ldap_compare', self._connection.compare, dn, attribute, value,
                          controls=self._server_controls())

    def add(self, dn, entry):
        """Add an entry. entry maps attribute names to lists of values and must include objectClass."""
        logger.info('Sending add for {0}'.format(dn))
        return self._call('ldap_add', self._connection.add, dn, attributes=entry, controls=self._server_controls())

    def delete(self, dn):
        logger.info('Sending delete for {0}'.format(dn))
        return self._call('ldap_delete', self._connection.delete, dn, controls=self._server_controls())

    def modify(self, dn, entry):
        """Replace the values of all attributes in entry"""
        return self._modify('ldap_modify', MODIFY_REPLACE, dn, entry)

    def mod_add(self, dn, entry):
        """Add the given values to existing attributes"""
        return self._modify('ldap_mod_add', MODIFY_ADD, dn, entry)

    def mod_del(self, dn, entry):
        """Delete the given values, or the whole attribute when its value list is empty"""
        return self._modify('ldap_mod_del', MODIFY_DELETE, dn, entry)

    def mod_replace(self, dn, entry):
        return self._modify('ldap_mod_replace', MODIFY_REPLACE, dn, entry)

    def _modify(self, operation, mod_op, dn, entry):
        changes = {}
        for attr, values in entry.items():
            if not isinstance(values, (list, tuple)):
                values = [values]
            changes[attr] = [(mod_op, list(values))]
        logger.info('Sending {0} for {1}'.format(operation, dn))
        return self._call(operation, self._connection.modify, dn, changes, controls=self._server_controls())

    def rename(self, dn, new_rdn, new_parent=None, delete_old_rdn=True):
        logger.info('Sending rename for {0} newRDN="{1}" newParent="{2}"'.format(dn, new_rdn, new_parent))
        return self._call('ldap_rename', self._connection.modify_dn, dn, new_rdn, delete_old_dn=delete_old_rdn,
                          new_superior=new_parent, controls=self._server_controls())
