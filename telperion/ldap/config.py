"""Provides support for establishing a directory connection and environment via config files and dicts"""

from .base import Directory
from .constants import DerefAliases, Option
from .exceptions import LDAPError
from .registry import registry as default_registry
from .request import LookupRequest
import json
import logging
import yaml
from importlib import import_module

logger = logging.getLogger(__name__)


def _default_mapper(val):
    return val


def _deref_mapper(val):
    if isinstance(val, str):
        return DerefAliases.string(val)
    return val


# classes holding the DEFAULT_ attributes
_global_targets = (Directory, LookupRequest)

_global_mappers = {
    'DEFAULT_DEREF_ALIASES': _deref_mapper,
}


def normalize_global_config_param(key):
    """Normalize a global config key. Does not check validity of the key.

    :param str key: User-supplied global config key
    :return: The normalized key formatted as an attribute of :class:`.Directory`
    :rtype: str
    """
    key = key.upper()
    if not key.startswith('DEFAULT_'):
        key = 'DEFAULT_'+key
    return key


def set_global_config(global_config_dict):
    """Set the global defaults. The dict must be formatted as follows::

        {'global': {
            <config param>: <config value>,
         }
        }

    ``<config param>`` must match one of the ``DEFAULT_`` attributes on :class:`.Directory` or :class:`.LookupRequest`.
    The ``DEFAULT_`` prefix is optional and dict keys are case-insensitive. Any parameters not specified will keep the
    hard-coded default.

    :param dict global_config_dict: See above.
    :rtype: None
    :raises KeyError: if the dict is incorrectly formatted or contains unknown config parameters
    """
    bad = []
    for key, val in global_config_dict['global'].items():
        orig_key = key
        key = normalize_global_config_param(key)
        targets = [cls for cls in _global_targets if hasattr(cls, key)]
        if targets:
            val = _global_mappers.get(key, _default_mapper)(val)
            for cls in targets:
                setattr(cls, key, val)
        else:
            bad.append(orig_key)
    if bad:
        raise KeyError('Unknown global config keys: {0}'.format(', '.join(bad)))


def _import_module_class(path):
    modname, clsname = path.rsplit('.', 1)
    mod = import_module(modname)
    return getattr(mod, clsname)


def enable_modules(config_dict, registry=None):
    """Enable the specified modules. The dict must be formatted as follows::

        {'modules': [
            <module class path>,
         ]
        }

    Each entry is the full import path of a module class, e.g. ``telperion.modules.logger.LoggingModule``, which is
    instantiated without arguments and enabled.

    :param dict config_dict: See above.
    :param ModuleRegistry registry: The registry to enable the modules in, the process-wide one if not given
    :return: The enabled module instances
    :rtype: list
    """
    if registry is None:
        registry = default_registry
    modules = []
    for path in config_dict['modules']:
        module = _import_module_class(path)()
        registry.enable(module)
        modules.append(module)
    return modules


def _option_key(name):
    if isinstance(name, int):
        return name
    return Option.string(name)


def create_connection(config_dict, registry=None):
    """Create a new connection from a config dict formatted as follows::

        {'connection': {
            'start_tls': <bool>,  # optional, default False
            'bind': {  # optional, default no bind
                'dn': <bind dn>,
                'password': <string password>
            },
            'options': {  # optional
                <option name>: <option value>,
            },
            <constructor param>: <constructor value>,
         }
        }

    ``<constructor param>`` must be one of the :class:`.Directory` constructor keyword arguments. Option names are
    the :class:`.Option` constant names, case-insensitive.

    :param config_dict: See above.
    :param ModuleRegistry registry: The module registry for the new directory
    :return: The new Directory instance
    :raises LDAPError: if StartTLS, the bind, or setting an option fails
    """
    conn_config_dict = dict(config_dict['connection'])
    start_tls = conn_config_dict.pop('start_tls', False)
    bind = conn_config_dict.pop('bind', None)
    options = conn_config_dict.pop('options', None) or {}
    if registry is not None:
        conn_config_dict['modules'] = registry
    directory = Directory(**conn_config_dict)
    for name, value in options.items():
        response = directory.set_option(_option_key(name), value)
        if not response.ok():
            raise LDAPError('Could not set option {0}: {1}'.format(name, response.message))
    if start_tls:
        response = directory.start_tls()
        if not response.ok():
            raise LDAPError('StartTLS failed: {0}'.format(response.message))
    if bind:
        response = directory.bind(bind.get('dn'), bind.get('password'))
        if not response.ok():
            raise LDAPError('Bind failed: {0}'.format(response.message))
    return directory


def load_file(path, file_decoder=None):
    """Load a config file. Must decode to dict with all components described on other methods as optional
    sections/keys. A YAML example::

        modules:
          - telperion.modules.logger.LoggingModule
        global:
          PAGE_SIZE: 500
          DEREF_ALIASES: search
        connection:
          server: dir01.example.org
          port: 389
          connect_timeout: 30
          start_tls: true
          bind:
            dn: cn=reader,dc=example,dc=org
            password: testpassword
          options:
            network_timeout: 10
            sizelimit: 5000

    :param path: A path to a config file. Provides support for YAML and JSON format, or you can specify your own
                 decoder that returns a dict.
    :param file_decoder: A callable returning a dict when passed a file-like object
    :return: The Directory if a connection was defined, None otherwise
    :rtype: Directory or None
    :raises RuntimeError: if an unsupported file extension was given without the ``file_decoder`` argument.
    """
    if file_decoder is None:
        if path.endswith('.yml') or path.endswith('.yaml'):
            file_decoder = yaml.safe_load
        elif path.endswith('.json'):
            file_decoder = json.load
        else:
            raise RuntimeError('Unsupported file type, must be YAML or JSON, or specify file_decoder argument')
    with open(path) as f:
        config_dict = file_decoder(f)
    logger.debug('Loaded config file {0}'.format(path))
    return load_config_dict(config_dict)


def load_config_dict(config_dict):
    """Load config parameters from a dictionary. Must be formatted in the same was as ``load_file``

    :param dict config_dict: The config dictionary. See format in ``load_file``.
    :return: The Directory if a connection was defined, None otherwise
    :rtype: Directory or None
    """
    if 'global' in config_dict:
        set_global_config(config_dict)
    if 'modules' in config_dict:
        enable_modules(config_dict)
    if 'connection' in config_dict:
        return create_connection(config_dict)
