from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AttendanceEntryViewSet, AttendanceExportView, AttendanceReportViewSet

router = SimpleRouter()
router.register('records', AttendanceEntryViewSet)
router.register('report', AttendanceReportViewSet, basename='attendance-report')

urlpatterns = [
    path('export_excel/', AttendanceExportView.as_view(), name='attendance-export'),
    path('', include(router.urls)),
]
