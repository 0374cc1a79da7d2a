from django.db import models

from .degrees import empty_degree, normalize_degree

DEFAULT_CHURCH = 'العذراء مريم و الشهيد أبانوب'
DEFAULT_LEVEL = 'حضانة'

# Record keys (as the dashboard and the document store name them) -> model fields
RECORD_FIELDS = {
    'fullName': 'full_name',
    'gender': 'gender',
    'birthdate': 'birthdate',
    'phoneNumber': 'phone_number',
    'church': 'church',
    'level': 'level',
    'address': 'address',
    'active': 'active',
    'admin': 'admin',
}


class Student(models.Model):
    GENDER_CHOICES = [
        ('Male', 'Male'),
        ('Female', 'Female'),
    ]

    code = models.CharField(max_length=32, primary_key=True)
    full_name = models.CharField(max_length=255)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default='Male')
    birthdate = models.DateField(null=True, blank=True)
    phone_number = models.CharField(max_length=30, blank=True, default='')
    church = models.CharField(max_length=255, blank=True, default=DEFAULT_CHURCH)
    level = models.CharField(max_length=100, blank=True, default=DEFAULT_LEVEL)
    address = models.CharField(max_length=255, blank=True, default='')
    active = models.BooleanField(default=False)
    admin = models.BooleanField(default=False)
    pending = models.BooleanField(default=False, help_text='Awaiting promotion into the main student list')
    degree = models.JSONField(default=empty_degree)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']
        indexes = [
            models.Index(fields=['pending'], name='students_pending_idx'),
            models.Index(fields=['level'], name='students_level_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.code})"

    def to_record(self):
        record = {'code': self.code}
        for key, field in RECORD_FIELDS.items():
            record[key] = getattr(self, field)
        birthdate = self.birthdate
        record['birthdate'] = birthdate.isoformat() if hasattr(birthdate, 'isoformat') else (birthdate or '')
        record['degree'] = normalize_degree(self.degree)
        return record

    def apply_record(self, values):
        """Copy flat record keys onto the model; unknown keys are ignored."""
        for key, field in RECORD_FIELDS.items():
            if key in values:
                value = values[key]
                if field == 'birthdate' and not value:
                    value = None
                setattr(self, field, value)
