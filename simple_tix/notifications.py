"""Fill and failure events sent to the player."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Union

from .order import Order, OrderType, PositionType

FAILURE_REASON = (
    "you do not have enough money or the order would exceed "
    "the stock's maximum number of shares"
)


def format_money(amount: Decimal) -> str:
    """Format an amount as dollars, e.g. $1,234.50."""
    return f"${amount:,.2f}"


@dataclass(frozen=True)
class FillEvent:
    """
    A resting order was executed.

    Attributes:
        order_type: Type of the filled order
        symbol: Stock symbol
        price: The order's trigger price (not the quote at execution)
        position: LONG or SHORT
        shares: Number of shares filled
        timestamp: Event time (auto-generated)
    """
    order_type: OrderType
    symbol: str
    price: Decimal
    position: PositionType
    shares: int
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_order(cls, order: Order) -> "FillEvent":
        """Build the fill event for an executed order."""
        return cls(
            order_type=order.order_type,
            symbol=order.stock_symbol,
            price=order.price,
            position=order.position,
            shares=order.shares,
        )

    @property
    def message(self) -> str:
        """Human-readable fill message."""
        return (
            f"{self.order_type.value} for {self.symbol} @ {format_money(self.price)} "
            f"({self.position.value}) was filled ({self.shares:,} shares)"
        )


@dataclass(frozen=True)
class FailureEvent:
    """A triggered buy order could not be executed and is still resting."""
    order_type: OrderType
    symbol: str
    price: Decimal
    position: PositionType
    shares: int
    reason: str = FAILURE_REASON
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_order(cls, order: Order, reason: str = FAILURE_REASON) -> "FailureEvent":
        """Build the failure event for an order that could not be executed."""
        return cls(
            order_type=order.order_type,
            symbol=order.stock_symbol,
            price=order.price,
            position=order.position,
            shares=order.shares,
            reason=reason,
        )

    @property
    def message(self) -> str:
        """Human-readable failure message."""
        return (
            f"Failed to execute {self.order_type.value} for {self.symbol} @ "
            f"{format_money(self.price)} ({self.position.value}). This is most "
            f"likely because {self.reason}"
        )


OrderEvent = Union[FillEvent, FailureEvent]


class NotificationSink(Protocol):
    """Receives order events for display to the player."""

    def notify(self, event: OrderEvent) -> None:
        """Deliver one event."""
        ...


class RecordingSink:
    """Sink that keeps every event in arrival order."""

    def __init__(self):
        self.events: List[OrderEvent] = []

    def notify(self, event: OrderEvent) -> None:
        """Record an event."""
        self.events.append(event)

    @property
    def fills(self) -> List[FillEvent]:
        """Recorded fill events."""
        return [e for e in self.events if isinstance(e, FillEvent)]

    @property
    def failures(self) -> List[FailureEvent]:
        """Recorded failure events."""
        return [e for e in self.events if isinstance(e, FailureEvent)]

    def clear(self) -> None:
        """Forget every recorded event."""
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


class LoggingSink:
    """Sink that writes event messages to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("simple_tix.events")

    def notify(self, event: OrderEvent) -> None:
        """Log failures as warnings and fills as info."""
        if isinstance(event, FailureEvent):
            self._logger.warning(event.message)
        else:
            self._logger.info(event.message)
