"""Logs the lifecycle of every directory through the ``logging`` package

Example usage::

    from telperion.ldap import Directory
    from telperion.modules.logger import LoggingModule

    LoggingModule().enable()
    Directory.enable_logging()

    with Directory('dir01.example.org') as ldap:
        ldap.bind('cn=reader,dc=example,dc=org', 'secret')
"""

import logging

from telperion.ldap import BaseModule, Event


class LoggingModule(BaseModule):
    """Log new directories, executed requests, responses and server errors

    :param logger: The logger to write to, ``telperion.modules.logger`` by default
    :type logger: logging.Logger or None
    :param int level: The level for successful events. Server errors are logged at warning.
    """

    EVENTS = {
        Event.NEW: 'on_new',
        Event.REQUEST: 'on_request',
        Event.RESPONSE: 'on_response',
        Event.SERVER_ERROR: 'on_server_error',
    }

    def __init__(self, logger=None, level=logging.INFO):
        if logger is None:
            logger = logging.getLogger(__name__)
        self.logger = logger
        self.level = level

    def on_new(self, directory):
        self.logger.log(self.level, 'New directory {0!r}'.format(directory))

    def on_request(self, directory, request):
        self.logger.log(self.level, '{0!r} executing {1} {2!r}'.format(directory, request.action(), request))

    def on_response(self, directory, response):
        if response.data is None:
            self.logger.log(self.level, '{0!r} got {1} ({2})'.format(directory, response.code, response.message))
        else:
            self.logger.log(self.level, '{0!r} got {1} ({2}) with {3} entries'.format(
                directory, response.code, response.message, len(response.data)))

    def on_server_error(self, directory, response):
        msg = '{0!r} got error {1} ({2})'.format(directory, response.code, response.message)
        if response.diagnostic_message:
            msg += ': {0}'.format(response.diagnostic_message)
        self.logger.warning(msg)
