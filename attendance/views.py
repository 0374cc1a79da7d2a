import logging

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from students.exceptions import RecordNotFound, RecordStoreError
from students.listing import ATTENDANCE_SEARCH_FIELDS, ListState, ASCENDING, DESCENDING
from students.spreadsheets import build_workbook
from students.store import StudentCollection, get_record_store
from students.views import XLSX_CONTENT_TYPE, page_payload, store_unavailable
from users.permissions import ResourcePermission
from .models import AttendanceEntry
from .report import EXPORT_HEADERS, export_rows, report_rows
from .serializers import AttendanceEntrySerializer

logger = logging.getLogger(__name__)

LEVELS = [
    'all',
    'حضانة',
    'أولى ابتدائى',
    'ثانية ابتدائى',
    'ثالثة ابتدائى',
    'رابعة ابتدائى',
    'خامسة ابتدائى',
    'سادسة ابتدائى',
    'إعدادى',
    'ثانوى',
    'جامعيين و خريجين',
]


def report_state(params):
    level = params.get('level') or 'all'
    direction = params.get('direction', ASCENDING)
    if direction not in (ASCENDING, DESCENDING):
        direction = ASCENDING
    return ListState(
        search=params.get('search', ''),
        levels=[] if level == 'all' else [level],
        sort_key=params.get('ordering') or 'code',
        direction=direction,
        page=params.get('page', 1),
        search_fields=ATTENDANCE_SEARCH_FIELDS,
        page_size=getattr(settings, 'STUDENTS_PAGE_SIZE', 20),
    )


class AttendanceEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """Raw attendance entries, newest first"""
    queryset = AttendanceEntry.objects.all()
    serializer_class = AttendanceEntrySerializer
    permission_classes = [ResourcePermission]
    permission_resource = 'attendance'
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['code', 'status']


class AttendanceReportViewSet(viewsets.ViewSet):
    """Students with their attendance history and counts"""
    permission_classes = [ResourcePermission]
    permission_resource = 'attendance'
    lookup_field = 'code'
    lookup_value_regex = '[^/]+'

    def list(self, request):
        try:
            records = StudentCollection(get_record_store()).values()
        except RecordStoreError as e:
            return store_unavailable(e)

        state = report_state(request.query_params)
        page = state.page_of(report_rows(records))
        data = page_payload(page)
        data['levels'] = LEVELS
        data['results'] = page.items
        return Response(data)

    def retrieve(self, request, code=None):
        try:
            record = get_record_store().get_by_code(code)
        except RecordNotFound as e:
            return Response({"detail": str(e)}, status=status.HTTP_404_NOT_FOUND)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(report_rows([record])[0])


class AttendanceExportView(APIView):
    """The filtered report as an Arabic-headed ``.xlsx``"""
    permission_classes = [ResourcePermission]
    permission_resource = 'attendance'

    def get(self, request):
        try:
            records = StudentCollection(get_record_store()).values()
        except RecordStoreError as e:
            return store_unavailable(e)

        rows = export_rows(report_state(request.query_params).apply(report_rows(records)))
        logger.info("Exporting attendance report for %d students", len(rows))
        bio = build_workbook(rows, sheet_title='Attendance Report', headers=EXPORT_HEADERS)
        response = HttpResponse(bio.getvalue(), content_type=XLSX_CONTENT_TYPE)
        filename = f"attendance_report_{timezone.localdate().isoformat()}.xlsx"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response
