from decimal import Decimal, ROUND_HALF_UP

from storefront.config import settings

CENT = Decimal("0.01")


def money(value: Decimal, symbol: str = None) -> str:
    symbol = settings.pricing.currency_symbol if symbol is None else symbol
    return f"{symbol}{Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP):,}"
