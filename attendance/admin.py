from django.contrib import admin
from .models import AttendanceEntry

@admin.register(AttendanceEntry)
class AttendanceEntryAdmin(admin.ModelAdmin):
    list_display = ['id', 'code', 'date_time', 'status']
    list_filter = ['status', 'date_time']
    search_fields = ['code']
    date_hierarchy = 'date_time'
