import io

from django.test import SimpleTestCase
from openpyxl import Workbook

from students.spreadsheets import SpreadsheetError, build_workbook, read_rows


def workbook_bytes(*rows):
    wb = Workbook()
    for row in rows:
        wb.active.append(list(row))
    bio = io.BytesIO()
    wb.save(bio)
    bio.seek(0)
    return bio


class ReadRowsTests(SimpleTestCase):
    def test_header_row_becomes_keys(self):
        rows = read_rows(workbook_bytes(['Code', ' Full Name '], [100, ' Mina '], [None, None], [101]))
        self.assertEqual(rows, [
            {'Code': 100, 'Full Name': 'Mina'},
            {'Code': 101, 'Full Name': None},
        ])

    def test_empty_sheet(self):
        self.assertEqual(read_rows(workbook_bytes()), [])

    def test_not_a_workbook(self):
        with self.assertRaises(SpreadsheetError):
            read_rows(io.BytesIO(b'code,name\n1,Mina\n'))


class BuildWorkbookTests(SimpleTestCase):
    def test_headers_from_rows_in_first_seen_order(self):
        bio = build_workbook([{'b': 1}, {'a': 2, 'b': 3}], sheet_title='Data')
        self.assertEqual(read_rows(bio), [{'b': 1, 'a': None}, {'b': 3, 'a': 2}])
