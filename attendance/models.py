from django.db import models


class AttendanceEntry(models.Model):
    """
    One check-in of a student, recorded by the attendance scanner. Entries are
    keyed by student code so they work with any record store backend.
    """
    PRESENT = 'تم الحضور'
    LATE = 'متأخر'
    ABSENT = 'غائب'
    STATUS_CHOICES = [
        (PRESENT, 'Present'),
        (LATE, 'Late'),
        (ABSENT, 'Absent'),
    ]

    code = models.CharField(max_length=32, db_index=True)
    date_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PRESENT)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date_time']
        verbose_name_plural = 'Attendance entries'
        indexes = [
            models.Index(fields=['code', 'date_time'], name='attendance_code_dt_idx'),
        ]

    def __str__(self):
        return f"{self.code} - {self.date_time:%Y-%m-%d %H:%M} - {self.status}"
