from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import StudentViewSet

router = SimpleRouter()
router.register(r'', StudentViewSet, basename='students')

urlpatterns = [
    path('', include(router.urls)),
]
