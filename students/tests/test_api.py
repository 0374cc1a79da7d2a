import io
import zipfile
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from openpyxl import load_workbook
from rest_framework.test import APIClient

from students.exceptions import RecordStoreError
from students.models import Student
from students.spreadsheets import build_workbook
from students.store import DatabaseRecordStore

User = get_user_model()


def xlsx_upload(rows, headers, name='upload.xlsx'):
    bio = build_workbook(rows, headers=headers)
    return SimpleUploadedFile(name, bio.getvalue(),
                              content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')


def read_xlsx(response):
    wb = load_workbook(io.BytesIO(response.content))
    return wb, list(wb.active.iter_rows(values_only=True))


class StudentAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_superuser('admin', 'admin@example.com', 'pass')
        self.client.force_authenticate(self.admin)
        self.store = DatabaseRecordStore()

    def create_students(self, n, **extra):
        for i in range(1, n + 1):
            self.store.create(dict({'code': f"{i:03d}", 'fullName': f"Student {i}"}, **extra))


class StudentListTests(StudentAPITestCase):
    def test_pagination(self):
        self.create_students(25)
        res = self.client.get('/api/students/', {'page': 2})
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual((data['count'], data['page'], data['total_pages']), (25, 2, 2))
        self.assertEqual((data['start'], data['end']), (21, 25))
        self.assertEqual(data['pages'], [1, 2])
        self.assertEqual(len(data['results']), 5)

    def test_search_level_and_ordering(self):
        self.store.create({'code': '1', 'fullName': 'Mina', 'level': 'اعدادى'})
        self.store.create({'code': '2', 'fullName': 'Mariam', 'level': 'اعدادى'})
        self.store.create({'code': '3', 'fullName': 'Marco', 'level': 'حضانة'})

        res = self.client.get('/api/students/', {'search': 'ma', 'ordering': 'fullName', 'direction': 'descending'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['2', '3'])

        res = self.client.get('/api/students/', {'level': ['اعدادى', 'حضانة'], 'ordering': 'code'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['1', '2', '3'])

        res = self.client.get('/api/students/', {'level': 'حضانة'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['3'])
        self.assertIn('جامعة أو خريج', res.json()['levels'])

    def test_pending_list_is_separate(self):
        self.create_students(2)
        DatabaseRecordStore(pending=True).create({'code': '900', 'fullName': 'Waiting'})
        res = self.client.get('/api/students/', {'type': 'pending'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['900'])

    def test_store_failure_is_502(self):
        broken = mock.Mock()
        broken.get_all.side_effect = RecordStoreError("unreachable")
        with mock.patch('students.views.get_record_store', return_value=broken):
            res = self.client.get('/api/students/')
        self.assertEqual(res.status_code, 502)
        self.assertIn('unreachable', res.json()['detail'])


class StudentCrudTests(StudentAPITestCase):
    def test_create_assigns_code_and_defaults(self):
        res = self.client.post('/api/students/', {'fullName': 'Abanoub', 'birthdate': '2015-03-02'}, format='json')
        self.assertEqual(res.status_code, 201)
        data = res.json()
        self.assertEqual(len(data['code']), 14)
        self.assertEqual(data['level'], 'حضانة')
        self.assertEqual(data['gender'], 'Male')
        self.assertEqual(data['birthdate'], '2015-03-02')
        self.assertEqual(data['degree']['firstTerm']['total'], 0)

    def test_create_requires_full_name(self):
        res = self.client.post('/api/students/', {'level': 'حضانة'}, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertIn('fullName', res.json())

    def test_retrieve_update_delete(self):
        self.create_students(1)
        res = self.client.patch('/api/students/001/', {'phoneNumber': '0100'}, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['phoneNumber'], '0100')
        self.assertEqual(res.json()['fullName'], 'Student 1')

        res = self.client.delete('/api/students/001/')
        self.assertEqual(res.status_code, 204)
        self.assertEqual(self.client.get('/api/students/001/').status_code, 404)

    def test_unknown_code(self):
        res = self.client.get('/api/students/404/')
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()['detail'], 'Student with code 404 not found')

    def test_promote(self):
        DatabaseRecordStore(pending=True).create({'code': '900', 'fullName': 'Waiting'})
        self.assertEqual(self.client.post('/api/students/900/promote/').status_code, 400)
        res = self.client.post('/api/students/900/promote/?type=pending')
        self.assertEqual(res.status_code, 200)
        self.assertFalse(Student.objects.get(code='900').pending)


class DegreeTests(StudentAPITestCase):
    def setUp(self):
        super().setUp()
        self.create_students(1)

    def test_edit_single_leaf(self):
        self.client.patch('/api/students/001/degrees/', {'edits': {'degree.secondTerm.agbya': 6}}, format='json')
        res = self.client.patch('/api/students/001/degrees/', {'edits': {'degree.secondTerm.taks': '4'}},
                                format='json')
        self.assertEqual(res.status_code, 200)
        second = res.json()['degree']['secondTerm']
        self.assertEqual((second['agbya'], second['taks'], second['total']), (6, 4, 10))

    def test_invalid_path_and_score(self):
        res = self.client.patch('/api/students/001/degrees/', {'edits': {'degree.summer.agbya': 1}}, format='json')
        self.assertEqual(res.status_code, 400)
        res = self.client.patch('/api/students/001/degrees/', {'edits': {'degree.firstTerm.agbya': 'x'}},
                                format='json')
        self.assertEqual(res.status_code, 400)

    def test_template(self):
        res = self.client.get('/api/students/degree_template/')
        self.assertEqual(res.status_code, 200)
        self.assertIn('Degrees_Template.xlsx', res['Content-Disposition'])
        wb, rows = read_xlsx(res)
        self.assertEqual(wb.active.title, 'Template')
        self.assertEqual(list(rows[0]), ['Code', 'Hymns', 'Agbya', 'Taks', 'Coptic', 'Attendance'])


class BulkUploadTests(StudentAPITestCase):
    def test_bulk_degrees(self):
        self.store.create({'code': '100', 'fullName': 'Mina'})
        headers = ['Code', 'Hymns', 'Agbya', 'Taks', 'Coptic', 'Attendance']
        upload = xlsx_upload([
            {'Code': '100', 'Hymns': 5, 'Agbya': 3, 'Taks': 2, 'Coptic': 4, 'Attendance': 1},
            {'Code': '999', 'Hymns': 1},
        ], headers)

        res = self.client.post('/api/students/bulk_degrees/', {'file': upload, 'term': 'firstTerm'},
                               format='multipart')

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {'successCount': 1, 'failedCodes': ['999']})
        self.assertEqual(self.store.get_by_code('100')['degree']['firstTerm']['total'], 15)

    def test_bulk_degrees_requires_term(self):
        upload = xlsx_upload([{'Code': '1'}], ['Code'])
        res = self.client.post('/api/students/bulk_degrees/', {'file': upload, 'term': 'summer'}, format='multipart')
        self.assertEqual(res.status_code, 400)

    def test_bulk_profiles(self):
        self.store.create({'code': '100', 'fullName': 'Mina', 'church': 'St Mark'})
        upload = xlsx_upload([{'Code': 100, 'Full Name': 'Mina Samir', 'Level': 'اعدادى'}],
                             ['Code', 'Full Name', 'Level', 'Church'])

        res = self.client.post('/api/students/bulk_update/', {'file': upload}, format='multipart')

        self.assertEqual(res.json(), {'successCount': 1, 'failedCodes': []})
        record = self.store.get_by_code('100')
        self.assertEqual((record['fullName'], record['level'], record['church']),
                         ('Mina Samir', 'اعدادى', 'St Mark'))

    def test_headers_only_file_is_empty(self):
        upload = xlsx_upload([], ['Code', 'Full Name'])
        res = self.client.post('/api/students/bulk_update/', {'file': upload}, format='multipart')
        self.assertEqual(res.status_code, 400)
        self.assertIn('no rows', res.json()['detail'])

    def test_missing_code_column(self):
        upload = xlsx_upload([{'Name': 'x'}], ['Name'])
        res = self.client.post('/api/students/bulk_update/', {'file': upload}, format='multipart')
        self.assertEqual(res.status_code, 400)

    def test_not_a_workbook(self):
        upload = SimpleUploadedFile('notes.xlsx', b'plain text', content_type='text/plain')
        res = self.client.post('/api/students/bulk_update/', {'file': upload}, format='multipart')
        self.assertEqual(res.status_code, 400)


class ExportTests(StudentAPITestCase):
    def test_export_excel(self):
        self.store.create({'code': '2', 'fullName': 'Mariam', 'phoneNumber': '0122'})
        self.store.create({'code': '1', 'fullName': 'Mina', 'level': '', 'church': ''})

        res = self.client.get('/api/students/export_excel/', {'ordering': 'code'})

        self.assertEqual(res.status_code, 200)
        self.assertRegex(res['Content-Disposition'], r'users_export_\d{4}-\d{2}-\d{2}\.xlsx')
        wb, rows = read_xlsx(res)
        self.assertEqual(wb.active.title, 'Users')
        self.assertEqual(list(rows[0]), ['Code', 'Full Name', 'Address', 'Level', 'Phone Number', 'Church'])
        self.assertEqual(rows[1][0], '1')
        self.assertEqual(rows[1][3], 'N/A')
        self.assertEqual(rows[1][5], 'N/A')
        self.assertEqual(rows[2][4], '0122')

    def test_id_card(self):
        self.store.create({'code': '100', 'fullName': 'Mina', 'level': 'حضانة'})
        res = self.client.get('/api/students/100/id_card/', {'saint': 'St Mark'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res['Content-Type'], 'image/png')
        self.assertIn('ID_100.png', res['Content-Disposition'])
        self.assertTrue(res.content.startswith(b'\x89PNG'))

    def test_id_cards_zip(self):
        self.store.create({'code': '100', 'fullName': 'Mina'})
        self.store.create({'code': '101', 'fullName': 'Mariam'})
        res = self.client.post('/api/students/id_cards/', {'codes': ['100', '101', '404'], 'location': 'Hall 2'},
                               format='json')
        self.assertEqual(res.status_code, 200)
        self.assertIn('Student_IDs.zip', res['Content-Disposition'])
        names = zipfile.ZipFile(io.BytesIO(res.content)).namelist()
        self.assertEqual(names, ['Mina_100.png', 'Mariam_101.png'])

    def test_id_cards_nothing_found(self):
        res = self.client.post('/api/students/id_cards/', {'codes': ['404']}, format='json')
        self.assertEqual(res.status_code, 404)


class PermissionTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.viewer = User.objects.create_user('viewer', password='pass')
        self.editor = User.objects.create_user('editor', password='pass')
        self.editor.profile.role = 'editor'
        self.editor.profile.save()
        DatabaseRecordStore().create({'code': '1', 'fullName': 'Mina'})

    def test_anonymous_rejected(self):
        self.assertEqual(self.client.get('/api/students/').status_code, 401)

    def test_viewer_reads_only(self):
        self.client.force_authenticate(self.viewer)
        self.assertEqual(self.client.get('/api/students/').status_code, 200)
        res = self.client.patch('/api/students/1/', {'fullName': 'x'}, format='json')
        self.assertEqual(res.status_code, 403)

    def test_editor_edits_degrees_not_profiles(self):
        self.client.force_authenticate(self.editor)
        res = self.client.patch('/api/students/1/degrees/', {'edits': {'degree.firstTerm.agbya': 2}}, format='json')
        self.assertEqual(res.status_code, 200)
        res = self.client.patch('/api/students/1/', {'fullName': 'x'}, format='json')
        self.assertEqual(res.status_code, 403)
