"""
Checkout: turning a cart and the checkout form into an order draft.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from storefront.config.logging_config import get_logger
from storefront.data.models import CartLine
from storefront.domain.pricing import CheckoutTotals, PricingEngine, ShippingTier, Zone
from storefront.utils.error_handling import CheckoutValidationError

logger = get_logger(__name__)

REQUIRED_FIELDS = ("email", "first_name", "last_name", "address", "city", "zip_code", "phone")


class PaymentMethod(Enum):
    CARD = "card"
    PAYPAL = "paypal"
    APPLEPAY = "applepay"
    COD = "cod"


class CheckoutForm(BaseModel):
    """Customer input collected on the checkout page."""

    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    apartment: str = ""
    city: str = ""
    zip_code: str = ""
    phone: str = ""
    shipping_tier: ShippingTier = ShippingTier.STANDARD
    payment_method: PaymentMethod = PaymentMethod.COD
    save_info: bool = False

    @field_validator("email", "first_name", "last_name", "address", "apartment", "city", "zip_code", "phone")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip()

    @field_validator("shipping_tier", mode="before")
    @classmethod
    def parse_tier(cls, v):
        if isinstance(v, str):
            return ShippingTier.from_string(v)
        return v

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


@dataclass(frozen=True)
class OrderDraft:
    """An order ready to be submitted to the orders endpoint."""

    form: CheckoutForm
    lines: List[CartLine]
    totals: CheckoutTotals
    user_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        form = self.form
        totals = self.totals
        return {
            "email": form.email,
            "firstName": form.first_name,
            "lastName": form.last_name,
            "address": form.address,
            "apartment": form.apartment,
            "city": form.city,
            "zipCode": form.zip_code,
            "phone": form.phone,
            "shippingMethod": form.shipping_tier.value,
            "paymentMethod": form.payment_method.value,
            "items": [
                {
                    "productId": line.product_id,
                    "name": line.name,
                    "price": str(line.unit_price),
                    "quantity": line.quantity,
                    "images": list(line.image_refs),
                }
                for line in self.lines
            ],
            "subtotal": str(totals.subtotal),
            "shippingCost": str(totals.shipping_cost),
            "tax": str(totals.tax),
            "total": str(totals.total),
            "userId": self.user_id,
            "saveInfo": form.save_info and self.user_id is not None,
            "isLocalZone": totals.shipping.zone is Zone.LOCAL,
            "freeShippingApplied": totals.shipping.free_shipping_applied,
        }


def cart_subtotal(lines: List[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0"))


def build_order_draft(
    form: CheckoutForm,
    lines: List[CartLine],
    engine: PricingEngine,
    user_id: Optional[str] = None,
) -> OrderDraft:
    """
    Validate the checkout input and price the order.

    Raises:
        CheckoutValidationError: If required fields are blank or the cart is empty
    """
    missing = form.missing_fields()
    if missing:
        raise CheckoutValidationError("Please fill in all required fields", fields=missing)
    if not lines:
        raise CheckoutValidationError("Cart is empty")

    totals = engine.checkout_totals(cart_subtotal(lines), form.city, form.shipping_tier)
    logger.info(
        f"Order draft: {len(lines)} line(s), subtotal {totals.subtotal}, "
        f"shipping {totals.shipping_cost}, total {totals.total}"
    )
    return OrderDraft(form=form, lines=list(lines), totals=totals, user_id=user_id)
