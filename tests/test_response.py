from telperion.ldap import Response, ResultCode, SearchRequest
from telperion.ldap.controls import PAGED_RESULTS_OID
from telperion.ldap.response import clean_entries, merge_split_attributes, extract_vendor_code
import gc
import unittest
from .utils import make_link

AD_DIAGNOSTIC = '80090308: LdapErr: DSID-0C09042F, comment: AcceptSecurityContext error, data {0}, v2580'


class TestMergeSplitAttributes(unittest.TestCase):
    def test_ranged_fragments(self):
        """Ensure ranged fragments merge into the canonical attribute"""
        raw = {'member;range=0-1': ['a', 'b'], 'member;range=2-2': ['c']}
        self.assertEqual(merge_split_attributes(raw), {'member': ['a', 'b', 'c']})

    def test_fragment_order(self):
        """Ensure ranged fragments are ordered by range start regardless of arrival order"""
        raw = {'member;range=2-*': ['c'], 'member;range=0-1': ['a', 'b']}
        self.assertEqual(merge_split_attributes(raw), {'member': ['a', 'b', 'c']})

    def test_encounter_order(self):
        """Ensure fragments without ranges keep their order of discovery"""
        raw = {'cert;binary': ['x'], 'cert;lang-en': ['y']}
        self.assertEqual(merge_split_attributes(raw), {'cert': ['x', 'y']})

    def test_plain_values_first(self):
        raw = {'cn': ['foo'], 'member;range=1-1': ['b'], 'member': ['a'], 'member;range=2-*': ['c']}
        merged = merge_split_attributes(raw)
        self.assertEqual(merged, {'cn': ['foo'], 'member': ['a', 'b', 'c']})
        self.assertEqual(list(merged), ['cn', 'member'])

    def test_many_fragments(self):
        raw = {}
        for i in reversed(range(50)):
            raw['member;range={0}-{0}'.format(i)] = ['m{0}'.format(i)]
        self.assertEqual(merge_split_attributes(raw), {'member': ['m{0}'.format(i) for i in range(50)]})

    def test_idempotent(self):
        """Ensure clean input comes back unchanged"""
        clean = {'dn': 'cn=foo,o=testing', 'cn': ['foo'], 'member': ['a', 'b']}
        self.assertEqual(merge_split_attributes(clean), clean)
        merged = merge_split_attributes({'member;range=0-0': ['a'], 'member;range=1-*': ['b']})
        self.assertEqual(merge_split_attributes(merged), merged)


class TestCleanEntries(unittest.TestCase):
    def test_counted_structure(self):
        """Ensure count fields and numeric duplicate keys are dropped"""
        raw = {
            'count': 1,
            0: {
                'dn': 'cn=foo,o=testing',
                'count': 2,
                0: 'cn',
                1: 'member;range=0-1',
                'cn': {'count': 1, 0: 'foo'},
                'member;range=0-1': {'count': 2, 0: 'a', 1: 'b'},
                '2': 'ignored',
            },
        }
        self.assertEqual(clean_entries(raw), [
            {'dn': 'cn=foo,o=testing', 'cn': ['foo'], 'member': ['a', 'b']},
        ])

    def test_list_of_entries(self):
        raw = [
            {'dn': 'cn=a,o=testing', 'cn': ['a'], 'uidNumber': 1000},
            {'dn': 'cn=b,o=testing', 'cn': ('b',)},
        ]
        self.assertEqual(clean_entries(raw), [
            {'dn': 'cn=a,o=testing', 'cn': ['a'], 'uidNumber': [1000]},
            {'dn': 'cn=b,o=testing', 'cn': ['b']},
        ])

    def test_empty(self):
        self.assertEqual(clean_entries([]), [])
        self.assertEqual(clean_entries({'count': 0}), [])


class TestExtractVendorCode(unittest.TestCase):
    def test_vendor_codes(self):
        tests = [
            (AD_DIAGNOSTIC.format('52e'), ResultCode.INVALID_CREDENTIALS),
            (AD_DIAGNOSTIC.format('52E'), ResultCode.INVALID_CREDENTIALS),
            (AD_DIAGNOSTIC.format('525'), ResultCode.USER_NOT_FOUND),
            (AD_DIAGNOSTIC.format('532'), ResultCode.PASSWORD_EXPIRED),
            (AD_DIAGNOSTIC.format('773'), ResultCode.USER_MUST_RESET_PASSWORD),
        ]
        for message, expected in tests:
            self.assertEqual(extract_vendor_code(message), expected, message)

    def test_no_vendor_code(self):
        """Ensure messages of another shape yield no code instead of failing"""
        tests = [
            None,
            '',
            'Invalid credentials',
            'a, b',
            'one,two words here,three',
            AD_DIAGNOSTIC.format('zzz'),
            AD_DIAGNOSTIC.format('0'),
        ]
        for message in tests:
            self.assertIsNone(extract_vendor_code(message), message)


class TestResponse(unittest.TestCase):
    def test_lookup_response(self):
        """Ensure a lookup outcome is normalized"""
        link, conn = make_link()
        conn.add_result(ResultCode.SUCCESS, message='server text')
        conn.add_search_res_entry('cn=foo,o=testing', {
            'cn': ['foo'],
            'member;range=0-1': ['a', 'b'],
            'member;range=2-*': ['c'],
        })
        result = link.search('o=testing')
        resp = Response(link, result)
        self.assertEqual(resp.code, ResultCode.SUCCESS)
        self.assertEqual(resp.message, 'Success')
        self.assertEqual(resp.diagnostic_message, 'server text')
        self.assertEqual(resp.data, [{'dn': 'cn=foo,o=testing', 'cn': ['foo'], 'member': ['a', 'b', 'c']}])
        self.assertIsNone(resp.referrals)
        self.assertIsNone(resp.cookie)
        self.assertIsNone(resp.estimated)
        self.assertIs(resp.result, result)
        self.assertTrue(resp.ok())

    def test_size_limit_is_ok(self):
        link, conn = make_link()
        conn.add_result(ResultCode.SIZELIMIT_EXCEEDED)
        conn.add_search_res_entry('cn=foo,o=testing', {'cn': ['foo']})
        resp = Response(link, link.search('o=testing'))
        self.assertEqual(resp.message, 'Size limit exceeded')
        self.assertEqual(len(resp.data), 1)
        self.assertTrue(resp.ok())

    def test_referrals(self):
        link, conn = make_link()
        conn.add_result(ResultCode.REFERRAL, referrals=['ldap://other.example.org/o=testing'])
        resp = Response(link, link.search('o=testing'))
        self.assertEqual(resp.referrals, ['ldap://other.example.org/o=testing'])
        self.assertFalse(resp.ok())

    def test_non_lookup_response(self):
        """Ensure non-lookup outcomes take the code from the last-error state and have no data"""
        link, conn = make_link()
        conn.add_result(ResultCode.NO_SUCH_OBJECT, message='entry does not exist', dn='o=testing')
        resp = Response(link, link.delete('cn=missing,o=testing'))
        self.assertIs(resp.result, False)
        self.assertEqual(resp.code, ResultCode.NO_SUCH_OBJECT)
        self.assertEqual(resp.message, 'No such object')
        self.assertEqual(resp.matched_dn, 'o=testing')
        self.assertIsNone(resp.data)
        self.assertFalse(resp.ok())

    def test_compare(self):
        link, conn = make_link()
        conn.add_result(ResultCode.COMPARE_FALSE)
        resp = Response(link, link.compare('cn=foo,o=testing', 'cn', 'bar'))
        self.assertEqual(resp.message, 'Compare False')
        self.assertTrue(resp.ok())

    def test_ok(self):
        """Ensure the verdict is success only for the success codes"""
        link, conn = make_link()
        success = (ResultCode.SUCCESS, ResultCode.SIZELIMIT_EXCEEDED, ResultCode.COMPARE_FALSE,
                   ResultCode.COMPARE_TRUE)
        codes = [value for name, value in vars(ResultCode).items() if name.isupper()]
        for code in codes:
            conn.add_result(code)
            resp = Response(link, link.delete('cn=foo,o=testing'))
            self.assertEqual(resp.ok(), code in success, code)

    def test_vendor_code(self):
        """Ensure invalid credentials are refined by the embedded vendor code"""
        link, conn = make_link()
        conn.add_result(ResultCode.INVALID_CREDENTIALS, message=AD_DIAGNOSTIC.format('533'))
        resp = Response(link, link.bind('cn=foo,o=testing', 'secret'))
        self.assertEqual(resp.code, ResultCode.ACCOUNT_DISABLED)
        self.assertEqual(resp.message, 'Account disabled')

        conn.add_result(ResultCode.INVALID_CREDENTIALS, message=AD_DIAGNOSTIC.format('52e'))
        resp = Response(link, link.bind('cn=foo,o=testing', 'secret'))
        self.assertEqual(resp.code, ResultCode.INVALID_CREDENTIALS)
        self.assertEqual(resp.message, 'Invalid credentials')

        conn.add_result(ResultCode.INVALID_CREDENTIALS, message='bad password')
        resp = Response(link, link.bind('cn=foo,o=testing', 'secret'))
        self.assertEqual(resp.code, ResultCode.INVALID_CREDENTIALS)

    def test_vendor_code_only_for_invalid_credentials(self):
        link, conn = make_link()
        conn.add_result(ResultCode.INSUFFICIENT_ACCESS, message=AD_DIAGNOSTIC.format('533'))
        resp = Response(link, link.delete('cn=foo,o=testing'))
        self.assertEqual(resp.code, ResultCode.INSUFFICIENT_ACCESS)

    def test_cookie_written_back(self):
        """Ensure the paging cookie is written into the originating request"""
        link, conn = make_link()
        req = SearchRequest('o=testing').limit_to(2).per_page()
        conn.add_result()
        conn.add_paged_control(b'X', 10)
        resp = Response(link, link.search('o=testing'), req)
        self.assertEqual(resp.cookie, b'X')
        self.assertEqual(resp.estimated, 10)
        self.assertEqual(req.cookie(), b'X')
        self.assertIs(resp.request, req)

        conn.add_result()
        conn.add_paged_control(b'')
        Response(link, link.search('o=testing'), req)
        self.assertEqual(req.cookie(), b'')

    def test_malformed_paging_control(self):
        """Ensure a bad paging control does not fail normalization"""
        link, conn = make_link()
        conn.add_result(controls={PAGED_RESULTS_OID: {'value': b'\x04\x01'}})
        conn.add_search_res_entry('cn=foo,o=testing', {'cn': ['foo']})
        resp = Response(link, link.search('o=testing'))
        self.assertIsNone(resp.cookie)
        self.assertEqual(len(resp.data), 1)

    def test_weak_request(self):
        """Ensure the response does not keep its request alive"""
        link, conn = make_link()
        req = SearchRequest('o=testing')
        resp = Response(link, link.search('o=testing'), req)
        del req
        gc.collect()
        self.assertIsNone(resp.request)

    def test_release(self):
        link, conn = make_link()
        conn.add_search_res_entry('cn=foo,o=testing', {'cn': ['foo']})
        result = link.search('o=testing')
        with Response(link, result) as resp:
            self.assertFalse(result.freed)
        self.assertTrue(result.freed)
        self.assertEqual(len(resp.data), 1)
        resp.release()
