import logging

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from users.permissions import ResourcePermission
from .degrees import DegreeError
from .exceptions import RecordNotFound, RecordRejected, RecordStoreError
from .idcards import archive_entry_name, build_archive, card_filename, render_card
from .listing import (
    ASCENDING, DESCENDING, STUDENT_SEARCH_FIELDS, ListState, available_levels,
)
from .reconcile import (
    DEGREE_TEMPLATE_HEADERS, BulkReconciler, ReconciliationError, ReconciliationTransportError,
)
from .serializers import (
    BulkUploadSerializer, DegreeEditSerializer, DegreeUploadSerializer, IdCardsSerializer,
    StudentRecordSerializer,
)
from .spreadsheets import SpreadsheetError, build_workbook, read_rows
from .store import StudentCollection, get_record_store

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

EXPORT_HEADERS = ['Code', 'Full Name', 'Address', 'Level', 'Phone Number', 'Church']


def store_unavailable(e):
    logger.exception("Record store failure: %s", e)
    return Response({"detail": f"Record store unavailable: {e}"}, status=status.HTTP_502_BAD_GATEWAY)


def not_found(e):
    return Response({"detail": str(e)}, status=status.HTTP_404_NOT_FOUND)


def rejected(e):
    return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)


def list_state_from(params):
    direction = params.get('direction', ASCENDING)
    if direction not in (ASCENDING, DESCENDING):
        direction = ASCENDING
    return ListState(
        search=params.get('search', ''),
        levels=params.getlist('level'),
        sort_key=params.get('ordering') or None,
        direction=direction,
        page=params.get('page', 1),
        search_fields=STUDENT_SEARCH_FIELDS,
        page_size=getattr(settings, 'STUDENTS_PAGE_SIZE', 20),
    )


def page_payload(page):
    return {
        'count': page.count,
        'page': page.number,
        'total_pages': page.total_pages,
        'pages': page.pages,
        'start': page.start,
        'end': page.end,
    }


def xlsx_response(bio, filename):
    response = HttpResponse(bio.getvalue(), content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


class StudentViewSet(viewsets.ViewSet):
    """
    Student records keyed by ``code``. ``?type=pending`` switches every
    endpoint to the holding area for records awaiting promotion.
    """
    permission_classes = [ResourcePermission]
    permission_resource = 'users'
    action_resources = {
        'degrees': 'degrees',
        'bulk_degrees': 'degrees',
        'degree_template': 'degrees',
    }
    lookup_field = 'code'
    lookup_value_regex = '[^/]+'
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def is_pending(self):
        return self.request.query_params.get('type') == 'pending'

    def get_store(self):
        return get_record_store(pending=self.is_pending())

    def list(self, request):
        try:
            records = StudentCollection(self.get_store()).values()
        except RecordStoreError as e:
            return store_unavailable(e)

        state = list_state_from(request.query_params)
        page = state.page_of(records)
        data = page_payload(page)
        data['levels'] = available_levels(records)
        data['results'] = page.items
        return Response(data)

    def create(self, request):
        serializer = StudentRecordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        store = self.get_store()
        try:
            code = store.create(dict(serializer.validated_data))
            record = store.get_by_code(code)
        except RecordRejected as e:
            return rejected(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(record, status=status.HTTP_201_CREATED)

    def retrieve(self, request, code=None):
        try:
            record = self.get_store().get_by_code(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(record)

    def _update(self, request, code, partial):
        serializer = StudentRecordSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        store = self.get_store()
        try:
            store.update(code, dict(serializer.validated_data))
            record = store.get_by_code(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordRejected as e:
            return rejected(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(record)

    def update(self, request, code=None):
        return self._update(request, code, partial=False)

    def partial_update(self, request, code=None):
        return self._update(request, code, partial=True)

    def destroy(self, request, code=None):
        try:
            self.get_store().delete(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get', 'patch'])
    def degrees(self, request, code=None):
        """Read the degree structure, or change single leaves with ``{"edits": {path: value}}``"""
        store = self.get_store()
        if request.method == 'PATCH':
            serializer = DegreeEditSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            try:
                store.update(code, serializer.validated_data['edits'])
            except DegreeError as e:
                return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
            except RecordRejected as e:
                return rejected(e)
            except RecordNotFound as e:
                return not_found(e)
            except RecordStoreError as e:
                return store_unavailable(e)
        try:
            record = store.get_by_code(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response({'code': record['code'], 'fullName': record.get('fullName', ''), 'degree': record['degree']})

    @action(detail=True, methods=['post'])
    def promote(self, request, code=None):
        """Move a pending record into the main student list"""
        if not self.is_pending():
            return Response({"detail": "Only pending records can be promoted. Use ?type=pending."},
                            status=status.HTTP_400_BAD_REQUEST)
        try:
            self.get_store().promote(code)
            record = get_record_store().get_by_code(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordStoreError as e:
            return store_unavailable(e)
        return Response(record)

    def _reconcile(self, request, serializer_class, run):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            rows = read_rows(serializer.validated_data['file'])
            result = run(BulkReconciler(self.get_store()), rows, serializer.validated_data)
        except ReconciliationTransportError as e:
            return store_unavailable(e)
        except (SpreadsheetError, ReconciliationError, DegreeError) as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result.to_dict())

    @action(detail=False, methods=['post'])
    def bulk_update(self, request):
        """Update profile fields of existing students from an uploaded ``.xlsx``"""
        return self._reconcile(
            request, BulkUploadSerializer,
            lambda reconciler, rows, data: reconciler.reconcile_profiles(rows),
        )

    @action(detail=False, methods=['post'])
    def bulk_degrees(self, request):
        """Replace one term's scores for existing students from an uploaded ``.xlsx``"""
        return self._reconcile(
            request, DegreeUploadSerializer,
            lambda reconciler, rows, data: reconciler.reconcile_degrees(rows, data['term']),
        )

    @action(detail=False, methods=['get'])
    def degree_template(self, request):
        bio = build_workbook([], sheet_title='Template', headers=DEGREE_TEMPLATE_HEADERS)
        return xlsx_response(bio, 'Degrees_Template.xlsx')

    @action(detail=False, methods=['get'])
    def export_excel(self, request):
        """Export the filtered and sorted list as ``.xlsx``"""
        try:
            records = StudentCollection(self.get_store()).values()
        except RecordStoreError as e:
            return store_unavailable(e)

        rows = [{
            'Code': r.get('code') or '',
            'Full Name': r.get('fullName') or '',
            'Address': r.get('address') or '',
            'Level': r.get('level') or 'N/A',
            'Phone Number': r.get('phoneNumber') or 'N/A',
            'Church': r.get('church') or 'N/A',
        } for r in list_state_from(request.query_params).apply(records)]

        logger.info("Exporting %d students", len(rows))
        bio = build_workbook(rows, sheet_title='Users', headers=EXPORT_HEADERS)
        return xlsx_response(bio, f"users_export_{timezone.localdate().isoformat()}.xlsx")

    @action(detail=True, methods=['get'])
    def id_card(self, request, code=None):
        try:
            record = self.get_store().get_by_code(code)
        except RecordNotFound as e:
            return not_found(e)
        except RecordStoreError as e:
            return store_unavailable(e)

        params = request.query_params
        png = render_card(record, time=params.get('time'), saint=params.get('saint', ''),
                          location=params.get('location', ''))
        response = HttpResponse(png, content_type='image/png')
        response['Content-Disposition'] = f'attachment; filename="{card_filename(record)}"'
        return response

    @action(detail=False, methods=['post'])
    def id_cards(self, request):
        """Zip of ID cards for the selected codes"""
        serializer = IdCardsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        store = self.get_store()

        cards = []
        missing = []
        for code in data['codes']:
            try:
                record = store.get_by_code(code)
            except RecordNotFound:
                missing.append(code)
                continue
            except RecordStoreError as e:
                return store_unavailable(e)
            png = render_card(record, time=data.get('time') or None, saint=data['saint'],
                              location=data['location'])
            cards.append((archive_entry_name(record), png))

        if not cards:
            return Response({"detail": "No students found for the given codes", "missing": missing},
                            status=status.HTTP_404_NOT_FOUND)
        if missing:
            logger.warning("ID cards skipped for unknown codes: %s", ', '.join(missing))

        response = HttpResponse(build_archive(cards).getvalue(), content_type='application/zip')
        response['Content-Disposition'] = 'attachment; filename="Student_IDs.zip"'
        return response
