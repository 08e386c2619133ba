"""Imports and defines the core of the public API"""

from .base import Directory
from .constants import DerefAliases, Event, Option
from .events import EventEmitter
from .exceptions import (
    LDAPError,
    UnsupportedOperation,
    InvalidState,
    InvalidModule,
    LDAPConnectionError,
    ConnectionUnbound,
)
from .link import Link, ResultHandle
from .registry import ModuleRegistry, BaseModule, registry
from .request import Request, LookupRequest, SearchRequest, ReadRequest, ListRequest
from .response import Response, clean_entries, merge_split_attributes, extract_vendor_code
from .resultcodes import ResultCode, describe


def dc(domain):
    """Convert a DNS dotted domain name to a DN with domain components"""
    return ','.join(['dc={0}'.format(dc) for dc in domain.split('.')])


def domain(dc):
    """Convert a DN with domain components to a DNS dotted domain name"""
    return '.'.join([i.split('=')[1] for i in dc.split(',')])


__all__ = [
    'Directory',
    'DerefAliases',
    'Event',
    'Option',
    'EventEmitter',
    'LDAPError',
    'UnsupportedOperation',
    'InvalidState',
    'InvalidModule',
    'LDAPConnectionError',
    'ConnectionUnbound',
    'Link',
    'ResultHandle',
    'ModuleRegistry',
    'BaseModule',
    'registry',
    'Request',
    'LookupRequest',
    'SearchRequest',
    'ReadRequest',
    'ListRequest',
    'Response',
    'clean_entries',
    'merge_split_attributes',
    'extract_vendor_code',
    'ResultCode',
    'describe',
    'dc',
    'domain',
]
