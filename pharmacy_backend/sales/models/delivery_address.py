# sales/models/delivery_address.py

import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class DeliveryAddress(models.Model):
    """Saved delivery destination of a pharmacy's customer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="delivery_addresses",
    )

    label = models.CharField(max_length=50, blank=True, help_text="e.g. Home, Clinic")
    recipient_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=30, blank=True)

    line1 = models.CharField(max_length=255)
    line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100)
    region = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "delivery addresses"

    def as_text(self) -> str:
        parts = [self.line1, self.line2, self.city, self.region, self.postal_code]
        return ", ".join(p for p in parts if p)

    def __str__(self):
        return f"{self.recipient_name}: {self.as_text()}"
