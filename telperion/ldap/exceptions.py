class LDAPError(Exception):
    """Base class for all exceptions raised by telperion"""
    pass


class UnsupportedOperation(LDAPError):
    """An operation outside the link's allow-list was requested"""
    def __init__(self, operation):
        self.operation = operation
        LDAPError.__init__(self, 'Operation {0} is not supported by the link'.format(operation))


class InvalidState(LDAPError):
    """An object was used in a way its current state does not allow"""
    pass


class InvalidModule(LDAPError):
    """A module does not satisfy the module capability contract"""
    pass


class LDAPConnectionError(LDAPError):
    """Error occurred creating connection to the LDAP server"""
    pass


class ConnectionUnbound(LDAPError):
    """Raised when any server operation is attempted after a link is released"""
    def __init__(self):
        LDAPError.__init__(self, 'The link has been released')
