"""
Checkout pricing: shipping cost, tax and order total.

Everything here is pure. The engine is recomputed on every change of the
subtotal, the destination city or the shipping tier, and its results are
never persisted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Union

from storefront.config.settings import PricingSettings

Amount = Union[Decimal, int, str]

HUNDRED = Decimal("100")


class ShippingTier(Enum):
    """Shipping speed chosen by the customer."""

    STANDARD = "standard"
    EXPRESS = "express"
    PRIORITY = "priority"

    @classmethod
    def from_string(cls, value: str) -> 'ShippingTier':
        """Parse a tier name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown shipping tier {value!r}; expected one of: {valid}")


class Zone(Enum):
    LOCAL = "local"
    REMOTE = "remote"


# Delivery estimates shown next to each shipping option
DELIVERY_ESTIMATES = {
    (Zone.LOCAL, ShippingTier.STANDARD): "1-2 business days",
    (Zone.LOCAL, ShippingTier.EXPRESS): "Same day delivery",
    (Zone.LOCAL, ShippingTier.PRIORITY): "Within 4 hours",
    (Zone.REMOTE, ShippingTier.STANDARD): "3-5 business days",
    (Zone.REMOTE, ShippingTier.EXPRESS): "1-2 business days",
    (Zone.REMOTE, ShippingTier.PRIORITY): "Next business day",
}


class ZoneClassifier(ABC):
    """Decides whether a destination city is in the local shipping zone."""

    @abstractmethod
    def classify(self, destination_city: str) -> Zone:
        pass


class SubstringZoneClassifier(ZoneClassifier):
    """Local zone whenever the lowercased city text contains ``marker``.

    Any text containing the marker matches, so "New Dhakapur" is local for
    the marker "dhaka".
    """

    def __init__(self, marker: str):
        self.marker = marker.strip().lower()

    def classify(self, destination_city: str) -> Zone:
        if self.marker and self.marker in (destination_city or "").lower():
            return Zone.LOCAL
        return Zone.REMOTE


class ExactCityZoneClassifier(ZoneClassifier):
    """Local zone only for an exact (case-insensitive, trimmed) city name."""

    def __init__(self, local_cities: Iterable[str]):
        self.local_cities = {c.strip().lower() for c in local_cities if c and c.strip()}

    def classify(self, destination_city: str) -> Zone:
        if (destination_city or "").strip().lower() in self.local_cities:
            return Zone.LOCAL
        return Zone.REMOTE


@dataclass(frozen=True)
class ShippingQuote:
    """Shipping cost for one subtotal/city/tier combination."""

    tier: ShippingTier
    zone: Zone
    base_cost: Decimal
    tier_surcharge: Decimal
    total_shipping_cost: Decimal
    free_shipping_applied: bool


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: Decimal
    shipping: ShippingQuote
    tax: Decimal
    total: Decimal

    @property
    def shipping_cost(self) -> Decimal:
        return self.shipping.total_shipping_cost


@dataclass(frozen=True)
class ShippingOption:
    """A selectable tier with its price and delivery estimate."""

    quote: ShippingQuote
    delivery_estimate: str

    @property
    def tier(self) -> ShippingTier:
        return self.quote.tier


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("Use Decimal, int or str amounts, not float")
    return Decimal(str(value))


class PricingEngine:
    """
    Computes shipping, tax and totals from configured constants.

    Args:
        config: Pricing constants
        classifier: Zone lookup; defaults to substring matching on the
            configured local zone marker
    """

    def __init__(self, config: Optional[PricingSettings] = None, classifier: Optional[ZoneClassifier] = None):
        self.config = config or PricingSettings()
        self.classifier = classifier or SubstringZoneClassifier(self.config.local_zone_marker)

    def classify(self, destination_city: str) -> Zone:
        return self.classifier.classify(destination_city)

    def surcharge(self, tier: ShippingTier) -> Decimal:
        if tier is ShippingTier.EXPRESS:
            return self.config.express_surcharge
        if tier is ShippingTier.PRIORITY:
            return self.config.priority_surcharge
        return Decimal("0")

    def quote(self, subtotal: Amount, destination_city: str, tier: ShippingTier) -> ShippingQuote:
        """
        Quote shipping for an order.

        The free shipping threshold waives only the zone base rate; the
        express and priority surcharges are always charged.
        """
        subtotal = _to_decimal(subtotal)
        zone = self.classify(destination_city)

        free_shipping = subtotal >= self.config.free_shipping_threshold
        if free_shipping:
            base_cost = Decimal("0")
        elif zone is Zone.LOCAL:
            base_cost = self.config.local_zone_base_rate
        else:
            base_cost = self.config.remote_zone_base_rate

        tier_surcharge = self.surcharge(tier)

        return ShippingQuote(
            tier=tier,
            zone=zone,
            base_cost=base_cost,
            tier_surcharge=tier_surcharge,
            total_shipping_cost=base_cost + tier_surcharge,
            free_shipping_applied=free_shipping,
        )

    def tax(self, subtotal: Amount) -> Decimal:
        return _to_decimal(subtotal) * self.config.tax_rate

    def checkout_totals(self, subtotal: Amount, destination_city: str, tier: ShippingTier) -> CheckoutTotals:
        subtotal = _to_decimal(subtotal)
        shipping = self.quote(subtotal, destination_city, tier)
        tax = self.tax(subtotal)
        return CheckoutTotals(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            total=subtotal + shipping.total_shipping_cost + tax,
        )

    def shipping_options(self, subtotal: Amount, destination_city: str) -> List[ShippingOption]:
        """Quote every tier, in tier order, with its delivery estimate."""
        options = []
        for tier in ShippingTier:
            quote = self.quote(subtotal, destination_city, tier)
            options.append(ShippingOption(quote=quote, delivery_estimate=DELIVERY_ESTIMATES[(quote.zone, tier)]))
        return options

    def free_shipping_remaining(self, subtotal: Amount) -> Decimal:
        """Amount still to add before the standard base rate is waived."""
        remaining = self.config.free_shipping_threshold - _to_decimal(subtotal)
        return max(remaining, Decimal("0"))

    def free_shipping_progress(self, subtotal: Amount) -> Decimal:
        """Progress toward free shipping as a percentage in [0, 100]."""
        threshold = self.config.free_shipping_threshold
        if threshold <= 0:
            return HUNDRED
        progress = _to_decimal(subtotal) / threshold * HUNDRED
        return min(max(progress, Decimal("0")), HUNDRED)
