"""Order data model for resting Limit and Stop orders."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4


class OrderType(Enum):
    """Order type: limit or stop, buy or sell."""
    LIMIT_BUY = "Limit Buy Order"
    LIMIT_SELL = "Limit Sell Order"
    STOP_BUY = "Stop Buy Order"
    STOP_SELL = "Stop Sell Order"

    @property
    def is_buy(self) -> bool:
        """True for the buy bucket (opens long or covers short)."""
        return self in (OrderType.LIMIT_BUY, OrderType.STOP_BUY)


class PositionType(Enum):
    """Position side the order acts on."""
    LONG = "Long"
    SHORT = "Short"


@dataclass(frozen=True, eq=False)
class Order:
    """
    A pending Limit or Stop order resting in the order book.

    Orders are immutable and compared by identity: two orders with identical
    fields are still different orders.

    Attributes:
        stock_symbol: Symbol of the stock the order is for
        shares: Number of shares to trade (always filled in full)
        price: Trigger price, also the price reported on fill
        order_type: LIMIT_BUY, LIMIT_SELL, STOP_BUY or STOP_SELL
        position: LONG or SHORT
        order_id: Unique identifier (auto-generated)
        timestamp: Order creation time (auto-generated)
    """
    stock_symbol: str
    shares: int
    price: Decimal
    order_type: OrderType
    position: PositionType = PositionType.LONG
    order_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.stock_symbol:
            raise ValueError("Orders must have a stock symbol")

        if not isinstance(self.order_type, OrderType):
            raise ValueError(f"Invalid order type: {self.order_type!r}")

        if not isinstance(self.position, PositionType):
            raise ValueError(f"Invalid position type: {self.position!r}")

        if isinstance(self.shares, bool) or not isinstance(self.shares, int):
            raise ValueError("Shares must be a whole number")

        if self.shares <= 0:
            raise ValueError("Shares must be positive")

        if self.price is None or self.price <= 0:
            raise ValueError("Price must be positive")

    @property
    def is_buy(self) -> bool:
        """True if the order buys (opens long or covers short)."""
        return self.order_type.is_buy

    def __repr__(self) -> str:
        return (
            f"Order({self.order_type.value} {self.stock_symbol} "
            f"{self.shares} @ {self.price} ({self.position.value}), "
            f"id={str(self.order_id)[:8]})"
        )
