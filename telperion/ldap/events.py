"""Synchronous dispatch of :class:`.Event` notifications to subscribed handlers"""

import logging

from .constants import Event
from .exceptions import InvalidState

logger = logging.getLogger(__name__)


class EventEmitter(object):
    """Holds the handlers subscribed to each event and calls them in subscription order

    Handlers run synchronously in the emitting thread. A handler must not subscribe new handlers while an event is
    being dispatched; doing so raises :exc:`.InvalidState`.
    """

    def __init__(self):
        self._handlers = dict((event, []) for event in Event.ALL)
        self._dispatching = 0

    def on(self, event, handler):
        """Subscribe a handler to an event

        :param str event: One of the :class:`.Event` constants
        :param callable handler: Called with the event arguments
        :rtype: None
        :raises ValueError: if the event is unknown
        :raises InvalidState: if called while an event is being dispatched
        """
        Event.validate(event)
        if not callable(handler):
            raise TypeError('Event handler for {0} must be callable'.format(event))
        if self._dispatching:
            raise InvalidState('Cannot subscribe to {0} while an event is being dispatched'.format(event))
        self._handlers[event].append(handler)

    def listeners(self, event):
        """Get the handlers subscribed to an event, in dispatch order"""
        Event.validate(event)
        return list(self._handlers[event])

    def emit(self, event, *args):
        """Call every handler subscribed to an event with the given arguments

        Exceptions raised by a handler propagate to the caller and stop the dispatch.
        """
        Event.validate(event)
        handlers = self._handlers[event]
        if not handlers:
            return
        logger.debug('Dispatching {0} to {1} handler(s)'.format(event, len(handlers)))
        self._dispatching += 1
        try:
            for handler in handlers:
                handler(*args)
        finally:
            self._dispatching -= 1
