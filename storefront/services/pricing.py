# storefront/services/pricing.py
from decimal import Decimal, ROUND_HALF_UP

from storefront.utils import settings

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


def shipping_for(subtotal, free_shipping: bool = False) -> Decimal:
    #stala stawka, bez adresu i wagi
    if free_shipping or money(subtotal) == 0:
        return money(0)
    return money(settings.SHIPPING_FLAT_RATE)


def tax_for(subtotal) -> Decimal:
    return money(money(subtotal) * settings.TAX_RATE)
