# permissions/roles.py

from __future__ import annotations

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_PHARMACIST = "pharmacist"
ROLE_CASHIER = "cashier"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_PHARMACIST,
    ROLE_CASHIER,
}


# =========================================================
# CAPABILITIES
# =========================================================
# Views protect capabilities, not raw roles.
CAP_POS_SELL = "pos.sell"
CAP_POS_REFUND = "pos.refund"
CAP_POS_CANCEL = "pos.cancel"
CAP_DELIVERY_MANAGE = "delivery.manage"

CAP_REPORTS_VIEW_POS = "reports.view_pos"

CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"
CAP_INVENTORY_ADJUST = "inventory.adjust"

ALL_CAPABILITIES = {
    CAP_POS_SELL,
    CAP_POS_REFUND,
    CAP_POS_CANCEL,
    CAP_DELIVERY_MANAGE,
    CAP_REPORTS_VIEW_POS,
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_ADJUST,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_POS_SELL,
        CAP_POS_REFUND,
        CAP_POS_CANCEL,
        CAP_DELIVERY_MANAGE,
        CAP_REPORTS_VIEW_POS,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
    },
    ROLE_PHARMACIST: {
        CAP_POS_SELL,
        CAP_DELIVERY_MANAGE,
        CAP_REPORTS_VIEW_POS,
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_ADJUST,
    },
    ROLE_CASHIER: {
        CAP_POS_SELL,
        CAP_INVENTORY_VIEW,
        # deliberately NOT refund/cancel
    },
}


def get_user_role(user) -> str | None:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    return capability in capabilities_for(user)


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_POS_REFUND
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return user_has_capability(user, required)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_POS_SELL, CAP_REPORTS_VIEW_POS}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = capabilities_for(user)
        return any(cap in caps for cap in set(required))
