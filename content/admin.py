from django.contrib import admin
from .models import ContentDocument


@admin.register(ContentDocument)
class ContentDocumentAdmin(admin.ModelAdmin):
    list_display = ['id', 'collection', 'title', 'term', 'year_number', 'age_levels']
    list_filter = ['collection', 'term', 'year_number']
    search_fields = ['title', 'content', 'arabic_content']
