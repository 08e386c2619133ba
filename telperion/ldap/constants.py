"""Global constant classes."""

from ldap3 import (
    DEREF_NEVER,
    DEREF_SEARCH,
    DEREF_BASE,
    DEREF_ALWAYS,
)


class DerefAliases:
    """DerefAliases constants. These instruct the server when to automatically resolve an alias object, rather than
       return the alias object itself
    """

    NEVER = 0
    """always return the alias object"""

    SEARCH = 1
    """dereferences search results, but not the base object itself"""

    BASE = 2
    """dereferences the search base object, but not search results"""

    ALWAYS = 3
    """dereferences both the search base object and results"""

    _transport = {
        NEVER: DEREF_NEVER,
        SEARCH: DEREF_SEARCH,
        BASE: DEREF_BASE,
        ALWAYS: DEREF_ALWAYS,
    }

    @staticmethod
    def string(str):
        """Convert a deref string (e.g. "always") to constant"""
        return getattr(DerefAliases, str.upper())

    @staticmethod
    def transport(value):
        """Translate a constant to the value ldap3 expects. ``False``/``None`` mean never."""
        if not value:
            value = DerefAliases.NEVER
        try:
            return DerefAliases._transport[int(value)]
        except (KeyError, ValueError, TypeError):
            raise ValueError('Unknown deref aliases value {0!r}'.format(value))


class Option:
    """Link option constants, numbered as in the C client API"""

    DEREF = 2
    SIZELIMIT = 3
    TIMELIMIT = 4
    REFERRALS = 8
    RESTART = 9
    PROTOCOL_VERSION = 17
    SERVER_CONTROLS = 18
    CLIENT_CONTROLS = 19
    HOST_NAME = 48
    ERROR_NUMBER = 49
    ERROR_STRING = 50
    DIAGNOSTIC_MESSAGE = 50
    MATCHED_DN = 51
    NETWORK_TIMEOUT = 20485

    # answered from the last operation state, not settable
    READ_ONLY = (HOST_NAME, ERROR_NUMBER, ERROR_STRING, MATCHED_DN)

    @staticmethod
    def string(str):
        """Convert an option name (e.g. "network_timeout") to constant"""
        try:
            return getattr(Option, str.upper())
        except AttributeError:
            raise ValueError('Unknown option {0}'.format(str))


class Event:
    """Lifecycle events emitted by a :class:`.Directory`. This is a closed set."""

    NEW = 'new'
    """a Directory was constructed; handlers get ``(directory)``"""

    REQUEST = 'request'
    """a request is about to be executed; handlers get ``(directory, request)``"""

    RESPONSE = 'response'
    """an operation succeeded; handlers get ``(directory, response)``"""

    SERVER_ERROR = 'serverError'
    """an operation failed; handlers get ``(directory, response)``"""

    ALL = (NEW, REQUEST, RESPONSE, SERVER_ERROR)

    @staticmethod
    def validate(name):
        """Ensure an event name is one of the known events

        :param str name: The event name
        :return: The event name
        :rtype: str
        :raises ValueError: if the event is unknown
        """
        if name not in Event.ALL:
            raise ValueError('Unknown event {0!r}, must be one of {1}'.format(name, ', '.join(Event.ALL)))
        return name
