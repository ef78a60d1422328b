from .cart import (
    AddCartItemInputSerializer,
    CartDetailsInputSerializer,
    CartDiscountInputSerializer,
    CartSerializer,
    CartTaxInputSerializer,
    UpdateCartItemInputSerializer,
)
from .cart_item import CartItemSerializer

__all__ = [
    "AddCartItemInputSerializer",
    "CartDetailsInputSerializer",
    "CartDiscountInputSerializer",
    "CartItemSerializer",
    "CartSerializer",
    "CartTaxInputSerializer",
    "UpdateCartItemInputSerializer",
]
