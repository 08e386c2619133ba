"""Registry of optional behavior modules and the base class for writing them

Modules observe the events of every :class:`.Directory` constructed while they are enabled. A module is any object
with ``enable()``, ``disable()`` and ``subscriptions()`` methods, the latter returning a dict mapping
:class:`.Event` names to handler callables. Subclassing :class:`BaseModule` is the simplest way to get there::

    from telperion.ldap import BaseModule, Event

    class AuditModule(BaseModule):
        EVENTS = {
            Event.REQUEST: 'on_request',
        }

        def on_request(self, directory, request):
            audit_log.write(repr(request))

    AuditModule().enable()

Enabling or disabling a module only affects directories constructed afterwards.
"""

import logging

from .constants import Event
from .exceptions import InvalidModule

logger = logging.getLogger(__name__)

# methods every module must provide
MODULE_CONTRACT = ('enable', 'disable', 'subscriptions')


def check_module(module):
    """Ensure an object satisfies the module capability contract

    :raises InvalidModule: if any required method is missing or not callable
    """
    for method in MODULE_CONTRACT:
        if not callable(getattr(module, method, None)):
            raise InvalidModule('{0} does not implement {1}()'.format(module.__class__.__name__, method))


class ModuleRegistry(object):
    """Ordered set of enabled modules

    Pass an instance to :class:`.Directory` with the ``modules`` keyword to isolate a group of directories from the
    process-wide :data:`registry`.
    """

    def __init__(self):
        self._modules = []

    def __len__(self):
        return len(self._modules)

    def __contains__(self, module):
        return self.is_enabled(module)

    def enable(self, module):
        """Add a module to the end of the registry. Does nothing if it is already enabled.

        :raises InvalidModule: if the module does not satisfy the module capability contract
        """
        check_module(module)
        if self.is_enabled(module):
            logger.debug('Module {0} is already enabled'.format(module.__class__.__name__))
            return
        self._modules.append(module)
        logger.info('Enabled module {0}'.format(module.__class__.__name__))

    def disable(self, module):
        """Remove a module. Directories that already subscribed it keep their subscriptions."""
        if self.is_enabled(module):
            self._modules = [m for m in self._modules if m is not module]
            logger.info('Disabled module {0}'.format(module.__class__.__name__))

    def is_enabled(self, module):
        return any(m is module for m in self._modules)

    def modules(self):
        """Get the enabled modules in registration order"""
        return list(self._modules)

    def clear(self):
        self._modules = []


registry = ModuleRegistry()
"""The process-wide default registry"""


class BaseModule(object):
    """Convenient base for modules

    Declare handled events in ``EVENTS`` as a mapping of :class:`.Event` names to method names. Handlers are called
    with the directory first, followed by the event arguments.
    """

    EVENTS = {}

    def enable(self, registry=None):
        """Enable this module in the given registry, or the process-wide one"""
        if registry is None:
            registry = _default_registry()
        registry.enable(self)

    def disable(self, registry=None):
        if registry is None:
            registry = _default_registry()
        registry.disable(self)

    def subscriptions(self):
        """Get the mapping of event names to bound handler methods

        :rtype: dict
        :raises InvalidModule: if ``EVENTS`` names an unknown event or a missing method
        """
        subscriptions = {}
        for event, method_name in self.EVENTS.items():
            try:
                Event.validate(event)
            except ValueError as e:
                raise InvalidModule('{0}: {1}'.format(self.__class__.__name__, e))
            handler = getattr(self, method_name, None)
            if not callable(handler):
                raise InvalidModule('{0} has no handler method {1} for event {2}'.format(
                    self.__class__.__name__, method_name, event))
            subscriptions[event] = handler
        return subscriptions

    def attach_events(self, emitter):
        """Subscribe this module's handlers to an :class:`.EventEmitter`"""
        for event, handler in self.subscriptions().items():
            emitter.on(event, handler)


def _default_registry():
    return registry
