"""
Cart and order pricing.

`calculate_total` is pure: it takes line subtotals, a shipping cost, an
explicit discount and an optional coupon code and returns the breakdown.
Coupons come from an injectable mapping of code -> effect; an effect receives
the subtotal and the explicit discount and returns the discount to apply.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Mapping, Optional

CouponEffect = Callable[[int, int], int]


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal_cents: int
    shipping_cents: int
    discount_cents: int
    total_cents: int

    def as_dict(self) -> dict:
        return {
            "subtotalCents": self.subtotal_cents,
            "shippingCostCents": self.shipping_cents,
            "discountCents": self.discount_cents,
            "totalCents": self.total_cents,
        }


def percent_off(percent: int) -> CouponEffect:
    """Replace the discount with `percent` % of the subtotal, rounded to the cent."""

    def effect(subtotal_cents: int, discount_cents: int) -> int:
        amount = Decimal(subtotal_cents) * Decimal(percent) / Decimal(100)
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return effect


def no_discount(subtotal_cents: int, discount_cents: int) -> int:
    # free-shipping intent: zeroes the discount, shipping itself is left alone
    return 0


DEFAULT_COUPONS: Mapping[str, CouponEffect] = {
    "DESCUENTO10": percent_off(10),
    "ENVIOGRATIS": no_discount,
}


def _subtotal_of(item: Any) -> int:
    if isinstance(item, Mapping):
        return int(item["subtotal_cents"])
    return int(item.subtotal_cents)


def calculate_total(
    items: Iterable[Any],
    shipping_cents: int = 0,
    discount_cents: int = 0,
    coupon_code: Optional[str] = None,
    coupons: Mapping[str, CouponEffect] = DEFAULT_COUPONS,
) -> PriceBreakdown:
    subtotal = sum(_subtotal_of(it) for it in items)
    discount = discount_cents
    if coupon_code:
        effect = coupons.get(coupon_code)
        if effect is not None:
            discount = effect(subtotal, discount_cents)
    total = max(0, subtotal + shipping_cents - discount)
    return PriceBreakdown(
        subtotal_cents=subtotal,
        shipping_cents=shipping_cents,
        discount_cents=discount,
        total_cents=total,
    )
