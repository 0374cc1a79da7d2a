from django.contrib import admin, messages
from .degrees import Term, TOTAL
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['code', 'full_name', 'level', 'church', 'phone_number', 'pending', 'term_totals']
    list_filter = ['pending', 'level', 'church', 'gender']
    search_fields = ['code', 'full_name', 'phone_number']
    readonly_fields = ['code', 'created_at', 'updated_at']
    actions = ['promote_selected']

    def term_totals(self, obj):
        degree = obj.degree or {}
        return ' / '.join(str((degree.get(term.value) or {}).get(TOTAL, 0)) for term in Term)
    term_totals.short_description = 'Totals'

    def promote_selected(self, request, queryset):
        updated = queryset.filter(pending=True).update(pending=False)
        messages.success(request, f"Promoted {updated} pending student(s)")
    promote_selected.short_description = 'Promote selected pending students'
