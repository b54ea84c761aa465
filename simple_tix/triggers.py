"""Trigger table deciding when a resting order fires against a quote."""

import operator
from decimal import Decimal
from typing import Callable, Dict, Tuple

from .errors import UnsupportedOrderClass
from .order import Order, OrderType, PositionType

# (order type, position) -> comparison applied as op(quote, trigger_price).
# Limit orders fire at a favorable price, stop orders at an adverse one.
# Short positions invert the direction of both.
TRIGGER_TABLE: Dict[Tuple[OrderType, PositionType], Callable[[Decimal, Decimal], bool]] = {
    (OrderType.LIMIT_BUY, PositionType.LONG): operator.le,
    (OrderType.LIMIT_BUY, PositionType.SHORT): operator.ge,
    (OrderType.LIMIT_SELL, PositionType.LONG): operator.ge,
    (OrderType.LIMIT_SELL, PositionType.SHORT): operator.le,
    (OrderType.STOP_BUY, PositionType.LONG): operator.ge,
    (OrderType.STOP_BUY, PositionType.SHORT): operator.le,
    (OrderType.STOP_SELL, PositionType.LONG): operator.le,
    (OrderType.STOP_SELL, PositionType.SHORT): operator.ge,
}


def should_trigger(
    order_type: OrderType,
    position: PositionType,
    quote: Decimal,
    trigger_price: Decimal,
) -> bool:
    """
    Check whether an order of the given class fires at a quote.

    Raises:
        UnsupportedOrderClass: If (order_type, position) is not in the table
    """
    compare = TRIGGER_TABLE.get((order_type, position))
    if compare is None:
        raise UnsupportedOrderClass(order_type, position)
    return compare(quote, trigger_price)


def order_triggers(order: Order, quote: Decimal) -> bool:
    """Check whether a resting order fires at a quote."""
    return should_trigger(order.order_type, order.position, quote, order.price)
