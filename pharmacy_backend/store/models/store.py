# store/models/store.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q


class Store(models.Model):
    """
    A physical branch of a pharmacy.

    Transactions may reference the branch they were rung up at; the sales
    report endpoints take `?branch=<id>` to narrow to one.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="branches",
    )

    name = models.CharField(max_length=255)

    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        db_index=True,
        help_text="Branch code (optional). If set, must be unique.",
    )

    address = models.TextField(blank=True)
    phone = models.CharField(max_length=50, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_store_code_when_present",
            ),
        ]

    def __str__(self):
        c = (self.code or "").strip()
        return f"{self.name} ({c})" if c else self.name
