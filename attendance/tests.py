import io
from datetime import datetime

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework.test import APIClient

from students.store import DatabaseRecordStore
from .models import AttendanceEntry
from .report import attendance_stats, export_rows, report_row, report_rows

User = get_user_model()


def at(*args):
    return timezone.make_aware(datetime(*args))


class AttendanceReportTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user('viewer', password='pass')
        self.client.force_authenticate(self.user)

        store = DatabaseRecordStore()
        store.create({'code': '1', 'fullName': 'Mina', 'level': 'حضانة', 'church': 'St Mark'})
        store.create({'code': '2', 'fullName': 'Mariam', 'level': 'إعدادى', 'church': 'St George'})
        store.create({'code': '3', 'fullName': 'Kirollos', 'level': 'إعدادى', 'church': 'St Mark'})

        AttendanceEntry.objects.create(code='1', date_time=at(2024, 3, 1, 17, 5), status=AttendanceEntry.PRESENT)
        AttendanceEntry.objects.create(code='1', date_time=at(2024, 3, 8, 17, 30), status=AttendanceEntry.LATE)
        AttendanceEntry.objects.create(code='2', date_time=at(2024, 3, 8, 17, 0), status=AttendanceEntry.ABSENT)

    def test_report_rows_carry_history_newest_first(self):
        res = self.client.get('/api/attendance/report/')
        self.assertEqual(res.status_code, 200)
        rows = {r['code']: r for r in res.json()['results']}
        self.assertEqual([e['dateTime'] for e in rows['1']['attendance']],
                         ['2024-03-08 17:30:00', '2024-03-01 17:05:00'])
        self.assertEqual(rows['1']['stats'], {'total': 2, 'present': 1, 'late': 1, 'absent': 0})
        self.assertEqual(rows['3']['attendance'], [])
        self.assertEqual(rows['3']['lastAttendance'], '')

    def test_level_search_and_default_sort(self):
        res = self.client.get('/api/attendance/report/', {'level': 'إعدادى'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['2', '3'])
        self.assertEqual((res.json()['count'], res.json()['total_pages']), (2, 1))

        res = self.client.get('/api/attendance/report/', {'search': 'st mark'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['1', '3'])

        res = self.client.get('/api/attendance/report/', {'level': 'all', 'ordering': 'attendanceCount',
                                                          'direction': 'descending'})
        self.assertEqual([r['code'] for r in res.json()['results']], ['1', '2', '3'])

    def test_single_student(self):
        res = self.client.get('/api/attendance/report/2/')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()['stats']['absent'], 1)
        self.assertEqual(self.client.get('/api/attendance/report/404/').status_code, 404)

    def test_raw_entries_filter(self):
        res = self.client.get('/api/attendance/records/', {'code': '1'})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()), 2)

    def test_entries_are_read_only(self):
        self.client.force_authenticate(User.objects.create_superuser('root', 'root@example.com', 'pass'))
        res = self.client.post('/api/attendance/records/', {'code': '1'}, format='json')
        self.assertEqual(res.status_code, 405)

    def test_export_excel(self):
        res = self.client.get('/api/attendance/export_excel/', {'ordering': 'code'})
        self.assertEqual(res.status_code, 200)
        self.assertRegex(res['Content-Disposition'], r'attendance_report_\d{4}-\d{2}-\d{2}\.xlsx')
        wb = load_workbook(io.BytesIO(res.content))
        self.assertEqual(wb.active.title, 'Attendance Report')
        rows = list(wb.active.iter_rows(values_only=True))
        self.assertEqual(list(rows[0]), ['كود الطالب', 'اسم الطالب', 'المستوى', 'الكنيسة',
                                         'عدد مرات الحضور', 'آخر حضور'])
        self.assertEqual(list(rows[1]), ['1', 'Mina', 'حضانة', 'St Mark', 2, '2024-03-08'])
        self.assertEqual(rows[3][5], 'لا يوجد')


class ReportHelperTests(TestCase):
    def test_embedded_history_is_used_when_no_entries(self):
        record = {'code': '5', 'fullName': 'X', 'attendance': [
            {'dateTime': '2024-01-01 10:00:00', 'status': 'تم الحضور'},
        ]}
        row = report_rows([record])[0]
        self.assertEqual(row['attendanceCount'], 1)
        self.assertEqual(row['stats']['present'], 1)

    def test_export_row_defaults(self):
        row = report_row({'code': '9'}, [])
        self.assertEqual(export_rows([row])[0]['المستوى'], 'N/A')
        self.assertEqual(attendance_stats([]), {'total': 0, 'present': 0, 'late': 0, 'absent': 0})
