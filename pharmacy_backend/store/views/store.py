# store/views/store.py

"""
BRANCH VIEWSET

- Any authenticated staff member can list the branches of their pharmacy.
- Creating / editing branches requires inventory edit rights.
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from permissions.roles import CAP_INVENTORY_EDIT, HasCapability
from store.models import Store
from store.serializers import StoreSerializer


class StoreViewSet(viewsets.ModelViewSet):
    serializer_class = StoreSerializer
    required_capability = CAP_INVENTORY_EDIT

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [IsAuthenticated()]
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        return Store.objects.filter(pharmacy=self.request.user.pharmacy_account).order_by("name")

    def perform_create(self, serializer):
        serializer.save(pharmacy=self.request.user.pharmacy_account)
