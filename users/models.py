from django.conf import settings
from django.db import models


class Profile(models.Model):
    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('editor', 'Editor'),
        ('viewer', 'Viewer'),
    ]
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='viewer')
    church = models.CharField(max_length=255, blank=True, default='')

    def __str__(self):
        return f"{self.user.username} - {self.role}"

    class Meta:
        indexes = [
            models.Index(fields=['role'], name='users_profile_role_idx'),
        ]
