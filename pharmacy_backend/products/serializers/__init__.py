from .medicine import MedicineSerializer, StockAdjustSerializer

__all__ = ["MedicineSerializer", "StockAdjustSerializer"]
