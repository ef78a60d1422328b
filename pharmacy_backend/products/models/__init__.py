"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .medicine import Medicine
from .line_item import MedicineLineItem

__all__ = [
    "Medicine",
    "MedicineLineItem",
]
