from telperion.ldap import Directory, Link, ModuleRegistry
from telperion.ldap.controls import RealSearchControlValue, Size, Cookie
from pyasn1.codec.ber.encoder import encode as ber_encode
from .mock_connection import MockConnection


def make_link(conn=None):
    """Create a link over a mock connection, returning both"""
    if conn is None:
        conn = MockConnection()
    return Link(conn.server.host, conn.server.port, connection=conn), conn


def make_directory(conn=None, modules=None):
    """Create a directory over a mock connection with its own empty module registry unless one is given"""
    link, conn = make_link(conn)
    if modules is None:
        modules = ModuleRegistry()
    return Directory(conn.server.host, conn.server.port, modules=modules, link=link), conn


def encode_paged_value(size, cookie):
    """BER-encode a paged results control value as a server sends it"""
    value = RealSearchControlValue()
    value.setComponentByName('size', Size(size))
    value.setComponentByName('cookie', Cookie(cookie))
    return ber_encode(value)
