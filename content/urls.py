from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import ContentDocumentViewSet

router = SimpleRouter()
router.register(r'(?P<collection>agbya|taks|coptic|hymns)', ContentDocumentViewSet, basename='content')

urlpatterns = [
    path('', include(router.urls)),
]
