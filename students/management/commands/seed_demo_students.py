from datetime import timedelta
from random import choice, randint, random

from django.core.management.base import BaseCommand
from django.utils import timezone

from attendance.models import AttendanceEntry
from content.models import ContentDocument
from students.degrees import SUBJECTS, Term, term_payload
from students.listing import ALL_LEVELS
from students.models import DEFAULT_CHURCH
from students.store import DatabaseRecordStore, generate_code


class Command(BaseCommand):
    help = "Seed demo data: students with degrees, pending students, attendance entries and content documents"

    def add_arguments(self, parser):
        parser.add_argument('--students', type=int, default=40, help='Number of students to create')
        parser.add_argument('--pending', type=int, default=5, help='Number of pending students to create')
        parser.add_argument('--attendance-days', type=int, default=8, help='Number of past meetings to create attendance for')
        parser.add_argument('--content', type=int, default=3, help='Number of documents per content collection')

    def handle(self, *args, **options):
        num_students = options.get('students')
        num_pending = options.get('pending')
        attendance_days = options.get('attendance_days')
        num_content = options.get('content')

        base = timezone.now().replace(microsecond=0)

        # Create students with random degrees
        store = DatabaseRecordStore()
        codes = []
        for i in range(1, num_students + 1):
            code = generate_code(base + timedelta(seconds=i))
            if store.code_taken(code):
                continue
            store.create({
                'code': code,
                'fullName': f"Student {i}",
                'gender': choice(['Male', 'Female']),
                'phoneNumber': f"010{randint(10000000, 99999999)}",
                'church': DEFAULT_CHURCH,
                'level': choice(ALL_LEVELS),
            })
            patch = {}
            for term in Term:
                patch.update(term_payload(term, {subject: randint(0, 10) for subject in SUBJECTS}))
            store.update(code, patch)
            codes.append(code)
        self.stdout.write(self.style.SUCCESS(f"Students: {len(codes)}"))

        # Pending students
        pending_store = DatabaseRecordStore(pending=True)
        created_pending = 0
        for i in range(1, num_pending + 1):
            code = generate_code(base + timedelta(seconds=num_students + i))
            if pending_store.code_taken(code):
                continue
            pending_store.create({'code': code, 'fullName': f"Pending Student {i}", 'level': choice(ALL_LEVELS)})
            created_pending += 1
        self.stdout.write(self.style.SUCCESS(f"Pending students: {created_pending}"))

        # Weekly attendance for the past meetings
        entries = []
        for week in range(attendance_days):
            meeting = base - timedelta(days=7 * week)
            for code in codes:
                r = random()
                if r < 0.7:
                    status, minutes = AttendanceEntry.PRESENT, randint(0, 10)
                elif r < 0.85:
                    status, minutes = AttendanceEntry.LATE, randint(15, 45)
                else:
                    status, minutes = AttendanceEntry.ABSENT, 0
                entries.append(AttendanceEntry(code=code, date_time=meeting + timedelta(minutes=minutes), status=status))
        AttendanceEntry.objects.bulk_create(entries)
        self.stdout.write(self.style.SUCCESS(f"Attendance entries: {len(entries)}"))

        # Content documents
        created_docs = 0
        for collection, label in ContentDocument.COLLECTION_CHOICES:
            for i in range(1, num_content + 1):
                _, created = ContentDocument.objects.get_or_create(
                    collection=collection,
                    title=f"{label} {i}",
                    defaults={
                        'content': f"Demo {label.lower()} text {i}",
                        'coptic_content': f"Coptic text {i}" if collection == ContentDocument.HYMNS else '',
                        'coptic_arabic_content': f"Coptic (Arabic letters) {i}" if collection == ContentDocument.HYMNS else '',
                        'term': randint(1, 3),
                        'year_number': randint(1, 4),
                        'age_levels': sorted({randint(4, 8), randint(9, 14)}),
                    }
                )
                created_docs += int(created)
        self.stdout.write(self.style.SUCCESS(f"Content documents: {created_docs}"))

        self.stdout.write(self.style.SUCCESS("Demo data seeded."))
