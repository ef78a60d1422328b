# products/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import MedicineViewSet

router = DefaultRouter()
router.register(r"medicines", MedicineViewSet, basename="medicines")

urlpatterns = [
    path("", include(router.urls)),
]
