from telperion.ldap import SearchRequest, ReadRequest, ListRequest, LookupRequest, DerefAliases
from telperion.ldap.exceptions import InvalidState
from telperion.ldap.request import Request
import unittest
from unittest import mock


class TestLookupRequest(unittest.TestCase):
    def test_defaults(self):
        """Ensure a new request has the documented defaults"""
        req = SearchRequest()
        self.assertIsNone(req.base())
        self.assertEqual(req.filter(), '(objectClass=*)')
        self.assertEqual(req.attributes(), ['*'])
        self.assertFalse(req.attributes_only())
        self.assertIsNone(req.size_limit())
        self.assertIsNone(req.time_limit())
        self.assertIsNone(req.deref())
        self.assertEqual(req.page_size(), 1000)
        self.assertFalse(req.paged_search())
        self.assertEqual(req.cookie(), b'')

    def test_accessor_symmetry(self):
        """Ensure reading an attribute returns exactly what was set"""
        tests = [
            ('base', 'ou=people,o=testing'),
            ('filter', '(uid=foo)'),
            ('attributes', ['cn', 'mail']),
            ('attributes_only', True),
            ('size_limit', 100),
            ('time_limit', 30),
            ('deref', DerefAliases.ALWAYS),
            ('page_size', 250),
            ('paged_search', True),
            ('cookie', b'\x00\x01cookie'),
        ]
        for accessor, value in tests:
            req = SearchRequest()
            ret = getattr(req, accessor)(value)
            self.assertIs(ret, req, accessor)
            self.assertEqual(getattr(req, accessor)(), value, accessor)

    def test_attributes_string(self):
        """Ensure a single attribute name is stored as a list"""
        req = SearchRequest(attributes='cn')
        self.assertEqual(req.attributes(), ['cn'])
        req.attributes(('sn', 'mail'))
        self.assertEqual(req.attributes(), ['sn', 'mail'])

    def test_fluent_aliases(self):
        """Ensure the semantic aliases set the same state as the accessors"""
        req = SearchRequest().start_at('o=testing').where('(cn=foo)').get('cn').limit_to(10).within(5).secs()
        self.assertEqual(req.base(), 'o=testing')
        self.assertEqual(req.filter(), '(cn=foo)')
        self.assertEqual(req.attributes(), ['cn'])
        self.assertEqual(req.size_limit(), 10)
        self.assertEqual(req.time_limit(), 5)

        req = ReadRequest().the('cn=foo,o=testing').and_get(['mail'])
        self.assertEqual(req.base(), 'cn=foo,o=testing')
        self.assertEqual(req.attributes(), ['mail'])
        self.assertEqual(ReadRequest().this('o=testing').base(), 'o=testing')

    def test_per_page(self):
        """Ensure paged mode moves the size limit into the page size"""
        req = SearchRequest().limit_to(100)
        self.assertIs(req.per_page(), req)
        self.assertEqual(req.page_size(), 100)
        self.assertIsNone(req.size_limit())
        self.assertTrue(req.paged_search())

    def test_per_page_without_limit(self):
        """Ensure paged mode requires a non-zero size limit"""
        with self.assertRaises(InvalidState):
            SearchRequest().per_page()
        with self.assertRaises(InvalidState):
            SearchRequest().limit_to(0).enable_paged_mode()

    def test_action_parameters(self):
        """Ensure the parameters come out in the order lookups expect"""
        req = ListRequest('o=testing', '(cn=*)', ['cn']).attributes_only(True).size_limit(5).time_limit(6) \
                                                          .deref(DerefAliases.SEARCH)
        self.assertEqual(req.action_parameters(),
                         ('o=testing', '(cn=*)', ['cn'], True, 5, 6, DerefAliases.SEARCH))

    def test_actions(self):
        self.assertEqual(SearchRequest().action(), 'ldap_search')
        self.assertEqual(ReadRequest().action(), 'ldap_read')
        self.assertEqual(ListRequest().action(), 'ldap_list')

    def test_prepare_for_execution(self):
        """Ensure the paging control is only installed in paged mode, with the current cookie"""
        link = mock.Mock()
        req = SearchRequest('o=testing')
        req.prepare_for_execution(link)
        link.paged_result.assert_not_called()

        req.limit_to(50).per_page()
        req.prepare_for_execution(link)
        link.paged_result.assert_called_once_with(50, True, b'')

        req.cookie(b'next')
        req.prepare_for_execution(link)
        link.paged_result.assert_called_with(50, True, b'next')

    def test_global_defaults(self):
        """Ensure class defaults apply to new requests"""
        try:
            LookupRequest.DEFAULT_PAGE_SIZE = 10
            LookupRequest.DEFAULT_FILTER = '(objectClass=person)'
            req = SearchRequest()
            self.assertEqual(req.page_size(), 10)
            self.assertEqual(req.filter(), '(objectClass=person)')
        finally:
            LookupRequest.DEFAULT_PAGE_SIZE = 1000
            LookupRequest.DEFAULT_FILTER = '(objectClass=*)'


class TestRequest(unittest.TestCase):
    def test_abstract(self):
        req = Request()
        self.assertIsNone(req.action())
        with self.assertRaises(NotImplementedError):
            req.action_parameters()
        with self.assertRaises(NotImplementedError):
            req.prepare_for_execution(None)
