"""Resting order book: one ordered list of pending orders per stock symbol."""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from sortedcontainers import SortedDict

from .errors import InvalidBookState, OrderNotFound
from .order import Order, OrderType, PositionType

logger = logging.getLogger(__name__)

TriggerLevel = Tuple[OrderType, PositionType, Decimal, int]


class OrderBook:
    """
    Pending Limit and Stop orders keyed by stock symbol.

    Each symbol maps to a list of orders in insertion order. Insertion order
    does not affect triggering; it only matters for removal, which is always
    by identity rather than by index.

    Not thread-safe. The book is owned by a single simulation loop.
    """

    def __init__(self):
        # Symbol -> list of resting orders
        self._orders: SortedDict[str, List[Order]] = SortedDict()

    @classmethod
    def for_symbols(cls, symbols: Iterable[str]) -> "OrderBook":
        """Create a book with an empty order list for every symbol."""
        book = cls()
        for symbol in symbols:
            book.add_symbol(symbol)
        return book

    def add_symbol(self, symbol: str) -> None:
        """Make sure a symbol has an order list."""
        if symbol not in self._orders:
            self._orders[symbol] = []

    def symbols(self) -> List[str]:
        """Symbols that have an order list, in sorted order."""
        return list(self._orders.keys())

    def orders_for(self, symbol: str) -> List[Order]:
        """
        Return a snapshot of the orders resting for a symbol.

        The snapshot is safe to iterate while orders are removed from the book.

        Raises:
            InvalidBookState: If the symbol has no valid order list
        """
        orders = self._orders.get(symbol)
        if orders is None:
            raise InvalidBookState(symbol)
        if not isinstance(orders, list):
            raise InvalidBookState(symbol, f"expected a list, got {orders!r}")
        return list(orders)

    def add_order(self, order: Order) -> None:
        """
        Append an order to its symbol's list.

        Raises:
            InvalidBookState: If the order's symbol is not in the book
            ValueError: If this exact order is already resting
        """
        orders = self._orders.get(order.stock_symbol)
        if orders is None:
            raise InvalidBookState(order.stock_symbol)
        if any(o is order for o in orders):
            raise ValueError(f"Order {order.order_id} already exists")
        orders.append(order)

    def remove_order(self, symbol: str, order: Order) -> Order:
        """
        Remove an order from a symbol's list by identity.

        Raises:
            OrderNotFound: If the order is not resting under that symbol
        """
        orders = self._orders.get(symbol)
        if orders:
            for i, resting in enumerate(orders):
                if resting is order:
                    del orders[i]
                    return order
        raise OrderNotFound(order)

    def get_order(self, order_id: UUID) -> Optional[Order]:
        """Look up a resting order by ID."""
        for order in self.iter_orders():
            if order.order_id == order_id:
                return order
        return None

    def cancel_order(self, order_id: UUID) -> Optional[Order]:
        """
        Cancel a resting order.

        Returns:
            The cancelled order, or None if not found
        """
        order = self.get_order(order_id)
        if order is None:
            return None
        return self.remove_order(order.stock_symbol, order)

    def iter_orders(self) -> Iterator[Order]:
        """Iterate a snapshot of every resting order, by symbol."""
        snapshot = [o for orders in self._orders.values() for o in orders]
        return iter(snapshot)

    def get_trigger_levels(self, symbol: str) -> List[TriggerLevel]:
        """
        Aggregate a symbol's orders by (type, position, price).

        Returns:
            List of (order_type, position, price, total_shares), lowest
            price first
        """
        levels: SortedDict[Decimal, Dict[Tuple[OrderType, PositionType], int]] = SortedDict()
        for order in self.orders_for(symbol):
            level = levels.setdefault(order.price, defaultdict(int))
            level[(order.order_type, order.position)] += order.shares

        result = []
        for price, level in levels.items():
            for (order_type, position), shares in sorted(
                level.items(), key=lambda kv: (kv[0][0].value, kv[0][1].value)
            ):
                result.append((order_type, position, price, shares))
        return result

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """Serialize the book to JSON-compatible data."""
        return {
            symbol: [
                {
                    "order_id": str(o.order_id),
                    "shares": o.shares,
                    "price": str(o.price),
                    "order_type": o.order_type.value,
                    "position": o.position.value,
                    "timestamp": o.timestamp.isoformat(),
                }
                for o in orders
            ]
            for symbol, orders in self._orders.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderBook":
        """
        Rebuild a book saved with to_dict().

        Raises:
            InvalidBookState: If a symbol's entry is not a list
            ValueError: If an order entry is invalid
        """
        book = cls()
        for symbol, entries in data.items():
            if not isinstance(entries, list):
                raise InvalidBookState(symbol, f"expected a list, got {entries!r}")
            book.add_symbol(symbol)
            for entry in entries:
                try:
                    order = Order(
                        stock_symbol=symbol,
                        shares=entry["shares"],
                        price=Decimal(entry["price"]),
                        order_type=OrderType(entry["order_type"]),
                        position=PositionType(entry["position"]),
                        order_id=UUID(entry["order_id"]),
                        timestamp=datetime.fromisoformat(entry["timestamp"]),
                    )
                except (KeyError, TypeError, InvalidOperation) as e:
                    raise ValueError(f"Invalid order entry for {symbol}: {entry!r}") from e
                book.add_order(order)
        return book

    def reset(self) -> None:
        """Clear all orders, keeping every symbol's (now empty) list."""
        for orders in self._orders.values():
            orders.clear()

    def __len__(self) -> int:
        """Return total number of resting orders."""
        return sum(len(orders) for orders in self._orders.values())

    def __contains__(self, order: object) -> bool:
        return any(o is order for o in self.iter_orders())

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{symbol}={len(orders)}" for symbol, orders in self._orders.items() if orders
        )
        return f"OrderBook({counts or 'empty'})"


def ensure_initialized(market) -> bool:
    """
    Create the market's order book if it does not exist yet.

    Returns:
        True if the book was just created (there is nothing to process yet),
        False if it already existed
    """
    if market.order_book is not None:
        return False
    market.order_book = OrderBook.for_symbols(market.symbols())
    logger.debug("Created order book for %d symbols", len(market))
    return True
