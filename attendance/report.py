"""
Attendance report rows: each student record joined with its attendance
history (newest first) and per-status counts.
"""
from collections import defaultdict

from .models import AttendanceEntry
from .serializers import AttendanceEntrySerializer

NO_ATTENDANCE = 'لا يوجد'

EXPORT_HEADERS = [
    'كود الطالب',
    'اسم الطالب',
    'المستوى',
    'الكنيسة',
    'عدد مرات الحضور',
    'آخر حضور',
]


def attendance_by_code(codes):
    """Serialized entries grouped per code, newest first."""
    grouped = defaultdict(list)
    entries = AttendanceEntry.objects.filter(code__in=list(codes)).order_by('-date_time', '-id')
    for item in AttendanceEntrySerializer(entries, many=True).data:
        grouped[item['code']].append({'dateTime': item['dateTime'], 'status': item['status']})
    return grouped


def attendance_stats(history):
    stats = {'total': len(history), 'present': 0, 'late': 0, 'absent': 0}
    keys = {
        AttendanceEntry.PRESENT: 'present',
        AttendanceEntry.LATE: 'late',
        AttendanceEntry.ABSENT: 'absent',
    }
    for entry in history:
        key = keys.get(entry.get('status'))
        if key:
            stats[key] += 1
    return stats


def _history(record, grouped):
    history = grouped.get(record.get('code'))
    if history:
        return history
    # records that carry their own history (document store shape)
    embedded = record.get('attendance') or []
    if isinstance(embedded, dict):
        embedded = list(embedded.values())
    return sorted(embedded, key=lambda e: e.get('dateTime') or '', reverse=True)


def report_row(record, history):
    return {
        'code': record.get('code') or '',
        'fullName': record.get('fullName') or '',
        'level': record.get('level') or '',
        'church': record.get('church') or '',
        'attendance': history,
        'attendanceCount': len(history),
        'lastAttendance': history[0]['dateTime'] if history else '',
        'stats': attendance_stats(history),
    }


def report_rows(records):
    records = list(records)
    grouped = attendance_by_code(r.get('code') for r in records)
    return [report_row(record, _history(record, grouped)) for record in records]


def export_rows(rows):
    """Report rows in the shape of the downloadable sheet."""
    exported = []
    for row in rows:
        last = row['lastAttendance']
        exported.append({
            'كود الطالب': row['code'],
            'اسم الطالب': row['fullName'],
            'المستوى': row['level'] or 'N/A',
            'الكنيسة': row['church'] or 'N/A',
            'عدد مرات الحضور': row['attendanceCount'],
            'آخر حضور': last.split(' ')[0] if last else NO_ATTENDANCE,
        })
    return exported
