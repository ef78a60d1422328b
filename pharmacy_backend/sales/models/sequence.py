# sales/models/sequence.py

from django.db import models


class Sequence(models.Model):
    """
    Durable per-category counter (e.g. "sale_number").

    Only sales.services.identifiers.next_sequence() writes to it, always with a
    single UPDATE ... SET value = value + 1.
    """

    name = models.CharField(max_length=100, unique=True)
    value = models.PositiveBigIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name}={self.value}"
