import logging

from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from students.listing import matches_any_value
from users.permissions import ResourcePermission
from .documents import build_document
from .filters import ContentDocumentFilter
from .models import ContentDocument
from .serializers import ContentDocumentSerializer

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'


class ContentDocumentViewSet(viewsets.ModelViewSet):
    """
    One reference collection, selected by the ``collection`` URL segment.
    ``?search=`` matches against every field of a document.
    """
    serializer_class = ContentDocumentSerializer
    permission_classes = [ResourcePermission]
    permission_resource = 'content'
    filter_backends = [DjangoFilterBackend]
    filterset_class = ContentDocumentFilter

    @property
    def collection(self):
        return self.kwargs['collection']

    @property
    def collection_label(self):
        return dict(ContentDocument.COLLECTION_CHOICES)[self.collection]

    def get_queryset(self):
        return ContentDocument.objects.filter(collection=self.collection)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['collection'] = self.collection
        return context

    def perform_create(self, serializer):
        serializer.save(collection=self.collection)

    def perform_destroy(self, instance):
        logger.info("Deleting %s document %s", self.collection, instance.pk)
        instance.delete()

    def searched(self):
        queryset = self.filter_queryset(self.get_queryset())
        data = self.get_serializer(queryset, many=True).data
        term = self.request.query_params.get('search', '')
        return [doc for doc in data if matches_any_value(doc, term)]

    def list(self, request, *args, **kwargs):
        return Response(self.searched())

    @action(detail=False, methods=['get'])
    def export_word(self, request, *args, **kwargs):
        """Export the searched documents (optionally one age level) as ``.docx``"""
        documents = self.searched()
        search = request.query_params.get('search', '')
        age_level = request.query_params.get('ageLevel')
        label = self.collection_label

        if not documents:
            return Response({"detail": "No documents match the current filter"}, status=status.HTTP_404_NOT_FOUND)

        title = f"{label} Documents for Age Level: {age_level}" if age_level else f"All Filtered {label} Documents"
        sections = [
            {'title': doc.get('title'), 'body': doc.get('content') or doc.get('arabicContent')}
            for doc in documents
        ]
        bio = build_document(title, sections, subtitle=f"Filter: {search or 'None'}")

        filename = f"{label}_Documents"
        if age_level:
            filename += f"_AgeLevel_{age_level}"
        if search:
            filename += f"_Search_{search[:10]}"
        logger.info("Exporting %d %s documents", len(documents), self.collection)

        response = HttpResponse(bio.getvalue(), content_type=DOCX_CONTENT_TYPE)
        response['Content-Disposition'] = f'attachment; filename="{filename}.docx"'
        return response
