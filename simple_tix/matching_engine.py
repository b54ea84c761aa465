"""Matching engine: triggers resting orders against the current quote."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from .account import TradeGateway
from .config import Settings, get_settings
from .errors import InvalidBookState, OrderNotFound, UnknownInstrument, UnsupportedOrderClass
from .notifications import FailureEvent, FillEvent, LoggingSink, NotificationSink
from .order import Order, OrderType, PositionType
from .orderbook import OrderBook, ensure_initialized
from .stock import Stock, StockMarket
from .triggers import TRIGGER_TABLE, order_triggers

logger = logging.getLogger(__name__)

# (is buy, position) -> trade primitive name on the gateway
_PRIMITIVES = {
    (True, PositionType.LONG): "buy_stock",
    (True, PositionType.SHORT): "short_stock",
    (False, PositionType.LONG): "sell_stock",
    (False, PositionType.SHORT): "sell_short",
}


class ExecutionOutcome(Enum):
    """Result of trying to execute a triggered order."""
    FILLED = "FILLED"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class ExecutionResult:
    """A triggered order and what happened when it was executed."""
    order: Order
    outcome: ExecutionOutcome


class MatchingEngine:
    """
    Evaluates resting Limit and Stop orders against the house quote.

    There is no matching between orders. An order fires when the quote of its
    stock crosses its trigger price, and is then executed in full through the
    trade gateway at the current quote:
    - Filled orders are removed from the book and reported to the sink
    - Orders that cannot be traded stay in the book for the next tick;
      only failed buys are reported to the player
    """

    def __init__(
        self,
        market: StockMarket,
        gateway: TradeGateway,
        sink: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the matching engine.

        Args:
            market: Stocks and the order book to process
            gateway: Trade primitives used to execute orders
            sink: Receives fill and failure events (defaults to logging them)
            settings: Engine settings (defaults to get_settings())
        """
        self.market = market
        self.gateway = gateway
        self.sink = sink if sink is not None else LoggingSink()
        self.settings = settings if settings is not None else get_settings()

    @property
    def order_book(self) -> OrderBook:
        """The market's order book, created on first access."""
        ensure_initialized(self.market)
        return self.market.order_book

    def place_order(self, order: Order) -> Order:
        """Add a new order to the book. It is evaluated on the next tick."""
        self.market.require_stock(order.stock_symbol)
        self.order_book.add_order(order)
        logger.info("Placed %r", order)
        return order

    def cancel_order(self, order_id: UUID) -> Optional[Order]:
        """Cancel a resting order by ID. Returns None if it is not resting."""
        order = self.order_book.cancel_order(order_id)
        if order is not None:
            logger.info("Cancelled %r", order)
        return order

    def clear_orders(self) -> int:
        """Cancel every resting order. Returns how many were cancelled."""
        count = len(self.order_book)
        self.order_book.reset()
        logger.info("Cleared %d resting orders", count)
        return count

    def save_orders(self) -> Dict[str, List[Dict[str, Any]]]:
        """Export the resting orders as JSON-compatible data."""
        return self.order_book.to_dict()

    def load_orders(self, data: Dict[str, Any]) -> int:
        """
        Replace the order book with orders saved by save_orders().

        Every listed stock keeps an order list, even if the saved data has none.

        Raises:
            UnknownInstrument: If the data has orders for an unlisted stock
            InvalidBookState: If a symbol's entry is not a list
            ValueError: If an order entry is invalid
        """
        book = OrderBook.from_dict(data)
        for symbol in book.symbols():
            if book.orders_for(symbol):
                self.market.require_stock(symbol)
        for symbol in self.market.symbols():
            book.add_symbol(symbol)
        self.market.order_book = book
        logger.info("Loaded %d resting orders", len(book))
        return len(book)

    def process_tick(self) -> List[ExecutionResult]:
        """Process every order class for every stock, in symbol order."""
        results: List[ExecutionResult] = []
        for stock in self.market:
            results.extend(self.process_stock(stock))
        return results

    def process_stock(self, stock: Stock) -> List[ExecutionResult]:
        """Process every order class for one stock."""
        results: List[ExecutionResult] = []
        for order_type in OrderType:
            for position in PositionType:
                results.extend(self.process_orders(stock, order_type, position))
        return results

    def process_orders(
        self,
        stock: Stock,
        order_type: OrderType,
        position: PositionType,
    ) -> List[ExecutionResult]:
        """
        Execute every order of one class for a stock whose trigger is hit.

        If the market has no order book yet, one is created and nothing is
        processed.

        Args:
            stock: Stock whose current quote is checked
            order_type: Only orders of this type are considered
            position: Only orders on this position side are considered

        Returns:
            One result per triggered order

        Raises:
            UnsupportedOrderClass: If (order_type, position) has no trigger rule
        """
        if (order_type, position) not in TRIGGER_TABLE:
            raise UnsupportedOrderClass(order_type, position)

        if ensure_initialized(self.market):
            return []

        try:
            orders = self.market.order_book.orders_for(stock.symbol)
        except InvalidBookState as e:
            logger.error("%s in process_orders()", e)
            return []

        results: List[ExecutionResult] = []
        for order in orders:
            if order.order_type != order_type or order.position != position:
                continue
            if order_triggers(order, stock.price):
                results.append(ExecutionResult(order, self.execute_order(order)))
        return results

    def execute_order(self, order: Order) -> ExecutionOutcome:
        """
        Execute a triggered order in full.

        Args:
            order: A resting order whose trigger was hit

        Returns:
            FILLED if traded, REJECTED if the trade failed (order stays
            resting), SKIPPED if the order's stock is not listed
        """
        try:
            stock = self.market.require_stock(order.stock_symbol)
        except UnknownInstrument as e:
            logger.error("%s; order %r left resting", e, order)
            return ExecutionOutcome.SKIPPED

        name = _PRIMITIVES.get((order.is_buy, order.position))
        if name is None:
            raise UnsupportedOrderClass(order.order_type, order.position)
        trade = getattr(self.gateway, name)

        # Trades are executed at the current quote without player dialogs
        if not trade(stock, order.shares, None, suppress_dialog=True):
            if order.is_buy:
                self.sink.notify(FailureEvent.from_order(order))
            else:
                logger.debug("Failed to execute %r", order)
            return ExecutionOutcome.REJECTED

        try:
            self.order_book.remove_order(stock.symbol, order)
        except OrderNotFound:
            logger.error("Could not find the following order in the order book: %r", order)
            return ExecutionOutcome.FILLED

        event = FillEvent.from_order(order)
        logger.info(event.message)
        if not self.settings.suppress_fill_notifications:
            self.sink.notify(event)
        return ExecutionOutcome.FILLED
