from django.test import SimpleTestCase

from students.degrees import InvalidTerm
from students.reconcile import (
    BulkReconciler, EmptyFile, MissingCodeColumn, ReconciliationTransportError, normalize_code,
)
from .fakes import InMemoryRecordStore


class DegreeReconciliationTests(SimpleTestCase):
    def test_matched_and_unmatched_rows(self):
        store = InMemoryRecordStore({'100': {'fullName': 'Mina'}})
        rows = [
            {'Code': '100', 'Hymns': 5, 'Agbya': 3, 'Taks': 2, 'Coptic': 4, 'Attendance': 1},
            {'Code': '999', 'Hymns': 1},
        ]

        result = BulkReconciler(store).reconcile_degrees(rows, 'firstTerm')

        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.failed_codes, ['999'])
        self.assertEqual(result.to_dict(), {'successCount': 1, 'failedCodes': ['999']})
        first = store.records['100']['degree']['firstTerm']
        self.assertEqual(first['total'], 15)
        self.assertEqual(first['attencance'], 1)

    def test_other_terms_untouched(self):
        store = InMemoryRecordStore({'100': {'degree': {'secondTerm': {'agbya': 7, 'total': 7}}}})
        BulkReconciler(store).reconcile_degrees([{'Code': 100, 'Agbya': 2}], 'thirdTerm')
        degree = store.records['100']['degree']
        self.assertEqual(degree['secondTerm']['agbya'], 7)
        self.assertEqual(degree['thirdTerm']['total'], 2)

    def test_partition_counts(self):
        store = InMemoryRecordStore({'1': {}, '2': {}, '3': {}})
        rows = [{'Code': c} for c in ['1', '4', '', None, '2', '5']] + [{'Hymns': 3}]
        result = BulkReconciler(store).reconcile_degrees(rows, 'secondTerm')

        self.assertEqual(result.matched, ['1', '2'])
        self.assertEqual(result.unmatched, ['4', '5'])
        self.assertEqual(len(result.matched) + len(result.unmatched), 4)
        self.assertEqual(result.failed_codes, ['4', '5'])

    def test_vanished_code_reported_after_unmatched(self):
        store = InMemoryRecordStore({'1': {}, '2': {}}, vanish=['2'])
        rows = [{'Code': '2'}, {'Code': '7'}, {'Code': '1'}]
        result = BulkReconciler(store).reconcile_degrees(rows, 'firstTerm')

        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.failed_codes, ['7', '2'])
        self.assertIn('2', result.failures)

    def test_non_numeric_score_fails_that_row_only(self):
        store = InMemoryRecordStore({'1': {}, '2': {}})
        rows = [{'Code': '1', 'Hymns': 'ten'}, {'Code': '2', 'Hymns': 10}, {'Code': '3'}]
        result = BulkReconciler(store).reconcile_degrees(rows, 'firstTerm')

        self.assertEqual(result.success_count, 1)
        self.assertEqual(result.failed_codes, ['3', '1'])
        self.assertEqual(len(store.bulk_calls[0]), 1)

    def test_unknown_term(self):
        with self.assertRaises(InvalidTerm):
            BulkReconciler(InMemoryRecordStore()).reconcile_degrees([{'Code': '1'}], 'summer')


class ProfileReconciliationTests(SimpleTestCase):
    def test_absent_fields_are_not_sent(self):
        store = InMemoryRecordStore({'1': {'fullName': 'Old', 'church': 'St Mark', 'level': 'حضانة'}})
        rows = [{'Code': '1', 'Full Name': 'New Name', 'Church': '', 'Level': None}]
        result = BulkReconciler(store).reconcile_profiles(rows)

        self.assertEqual(result.success_count, 1)
        self.assertEqual(store.bulk_calls[0], [{'code': '1', 'fullName': 'New Name'}])
        self.assertEqual(store.records['1']['church'], 'St Mark')
        self.assertEqual(store.records['1']['fullName'], 'New Name')

    def test_camel_case_and_phone_as_text(self):
        store = InMemoryRecordStore({'5': {}})
        BulkReconciler(store).reconcile_profiles([{'code': 5.0, 'phoneNumber': 1234567, 'level': 'اعدادى'}])
        self.assertEqual(store.records['5']['phoneNumber'], '1234567')
        self.assertEqual(store.records['5']['level'], 'اعدادى')

    def test_nothing_matched_makes_no_bulk_call(self):
        store = InMemoryRecordStore({'1': {}})
        result = BulkReconciler(store).reconcile_profiles([{'Code': '8'}, {'Code': '9'}])
        self.assertEqual(store.bulk_calls, [])
        self.assertEqual(result.to_dict(), {'successCount': 0, 'failedCodes': ['8', '9']})


class ReconciliationErrorTests(SimpleTestCase):
    def test_empty_file(self):
        with self.assertRaises(EmptyFile):
            BulkReconciler(InMemoryRecordStore()).reconcile_profiles([])

    def test_missing_code_column(self):
        with self.assertRaises(MissingCodeColumn):
            BulkReconciler(InMemoryRecordStore()).reconcile_profiles([{'Name': 'x'}, {'Level': 'y'}])

    def test_bulk_failure_is_wrapped(self):
        store = InMemoryRecordStore({'1': {}}, fail_bulk=True)
        with self.assertRaises(ReconciliationTransportError):
            BulkReconciler(store).reconcile_profiles([{'Code': '1', 'Full Name': 'x'}])

    def test_fetch_failure_is_wrapped(self):
        store = InMemoryRecordStore(fail_fetch=True)
        with self.assertRaises(ReconciliationTransportError):
            BulkReconciler(store).reconcile_profiles([{'Code': '1'}])
        self.assertEqual(store.bulk_calls, [])


class NormalizeCodeTests(SimpleTestCase):
    def test_normalize_code(self):
        self.assertEqual(normalize_code(100.0), '100')
        self.assertEqual(normalize_code(' 20240101 '), '20240101')
        self.assertEqual(normalize_code(None), '')
        self.assertEqual(normalize_code('  '), '')
