# pos/views/api.py

"""
POS CART API VIEWS

Purpose:
- The authenticated staff member's active cart (one per transaction type,
  `?transaction_type=sale|purchase|return|adjustment`, default sale)
- Add / update / remove / clear lines (server-owned pricing)
- Discount, tax, customer details, abandon

Hard rules:
- Every mutation goes through pos.services.cart_service.
- Money is server-owned: unit_price defaults to the catalog snapshot.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from permissions.roles import CAP_POS_SELL, HasCapability
from pos.models import Cart
from pos.serializers import (
    AddCartItemInputSerializer,
    CartDetailsInputSerializer,
    CartDiscountInputSerializer,
    CartSerializer,
    CartTaxInputSerializer,
    UpdateCartItemInputSerializer,
)
from pos.services import cart_service
from sales.api.responses import handles_domain_errors, success_response


class CartAPIView(APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_POS_SELL
    serializer_class = CartSerializer

    def active_cart(self, request):
        """Cart of `?transaction_type=` (or the body field), defaulting to a sale cart."""
        transaction_type = request.query_params.get("transaction_type")
        if not transaction_type and hasattr(request.data, "get"):
            transaction_type = request.data.get("transaction_type")
        return cart_service.get_active_cart(
            user=request.user,
            transaction_type=(transaction_type or Cart.TYPE_SALE).strip(),
        )

    def respond(self, cart, message: str = ""):
        cart.refresh_from_db()
        return success_response(CartSerializer(cart).data, message=message)


class ActiveCartView(CartAPIView):
    @extend_schema(responses={200: CartSerializer}, description="Get or create the active cart")
    @handles_domain_errors
    def get(self, request):
        return self.respond(self.active_cart(request))


class AddCartItemView(CartAPIView):
    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Add a medicine to the active cart (merges quantity if already present)",
    )
    @handles_domain_errors
    def post(self, request):
        ser = AddCartItemInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        cart = cart_service.add_item(
            self.active_cart(request).pk,
            medicine_id=data["medicine_id"],
            quantity=data["quantity"],
            unit_price=data.get("unit_price"),
            batch_number=data.get("batch_number"),
            expiry_date=data.get("expiry_date"),
        )
        return self.respond(cart, "Item added to cart")


class UpdateCartItemView(CartAPIView):
    @extend_schema(request=UpdateCartItemInputSerializer, responses={200: CartSerializer})
    @handles_domain_errors
    def patch(self, request, item_id):
        ser = UpdateCartItemInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        cart = cart_service.update_item_quantity(
            self.active_cart(request).pk, item_id, ser.validated_data["quantity"]
        )
        return self.respond(cart, "Cart item updated")


class RemoveCartItemView(CartAPIView):
    @extend_schema(responses={200: CartSerializer})
    @handles_domain_errors
    def delete(self, request, item_id):
        cart = cart_service.remove_item(self.active_cart(request).pk, item_id)
        return self.respond(cart, "Item removed from cart")


class ClearCartView(CartAPIView):
    @extend_schema(responses={200: CartSerializer}, description="Empty and close the active cart")
    @handles_domain_errors
    def delete(self, request):
        cart = cart_service.clear_cart(self.active_cart(request).pk)
        return self.respond(cart, "Cart cleared")


class CartDiscountView(CartAPIView):
    @extend_schema(request=CartDiscountInputSerializer, responses={200: CartSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = CartDiscountInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        cart = cart_service.apply_discount(
            self.active_cart(request).pk, data["amount"], data["type"], data.get("reason", "")
        )
        return self.respond(cart, "Discount applied")


class CartTaxView(CartAPIView):
    @extend_schema(request=CartTaxInputSerializer, responses={200: CartSerializer})
    @handles_domain_errors
    def post(self, request):
        ser = CartTaxInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        cart = cart_service.set_tax(self.active_cart(request).pk, ser.validated_data["amount"])
        return self.respond(cart, "Tax updated")


class CartDetailsView(CartAPIView):
    @extend_schema(request=CartDetailsInputSerializer, responses={200: CartSerializer})
    @handles_domain_errors
    def patch(self, request):
        ser = CartDetailsInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        cart = cart_service.update_details(self.active_cart(request).pk, **ser.validated_data)
        return self.respond(cart)


class AbandonCartView(CartAPIView):
    @extend_schema(responses={200: CartSerializer})
    @handles_domain_errors
    def post(self, request):
        cart = cart_service.abandon_cart(self.active_cart(request).pk)
        return self.respond(cart, "Cart abandoned")
