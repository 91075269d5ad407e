from decimal import Decimal
from typing import Iterable, NamedTuple

from fulfillment.core.exceptions import ValidationError


class LinePrice(NamedTuple):
    unit_price: Decimal
    line_total: Decimal


def price_line(unit_price: Decimal, quantity: int) -> LinePrice:
    if quantity <= 0:
        raise ValidationError(f"Quantity must be positive, got {quantity}")
    unit_price = Decimal(str(unit_price))
    return LinePrice(unit_price=unit_price, line_total=unit_price * quantity)


def order_total(lines: Iterable[LinePrice]) -> Decimal:
    return sum((line.line_total for line in lines), Decimal("0.00"))
