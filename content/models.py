from django.db import models


class ContentDocument(models.Model):
    """A document in one of the reference collections (Agbya, Taks, Coptic, Hymns)."""
    AGBYA = 'agbya'
    TAKS = 'taks'
    COPTIC = 'coptic'
    HYMNS = 'hymns'
    COLLECTION_CHOICES = [
        (AGBYA, 'Agbya'),
        (TAKS, 'Taks'),
        (COPTIC, 'Coptic'),
        (HYMNS, 'Hymns'),
    ]

    collection = models.CharField(max_length=20, choices=COLLECTION_CHOICES)
    title = models.CharField(max_length=255, blank=True, default='')
    content = models.TextField(blank=True, default='')
    arabic_content = models.TextField(blank=True, default='')
    coptic_content = models.TextField(blank=True, default='')
    coptic_arabic_content = models.TextField(blank=True, default='')
    term = models.PositiveSmallIntegerField(null=True, blank=True)
    year_number = models.PositiveSmallIntegerField(null=True, blank=True)
    age_levels = models.JSONField(default=list, blank=True, help_text='Ages the document is meant for')
    audio = models.CharField(max_length=500, blank=True, default='', help_text='Audio file URL')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['collection', 'year_number', 'term', 'title']
        indexes = [
            models.Index(fields=['collection'], name='content_collection_idx'),
        ]

    def __str__(self):
        return f"{self.get_collection_display()}: {self.title or self.pk}"
