"""Resting Limit/Stop order engine for a simulated stock market"""

from .order import Order, OrderType, PositionType
from .stock import Stock, StockMarket
from .orderbook import OrderBook, ensure_initialized
from .triggers import should_trigger
from .matching_engine import ExecutionOutcome, ExecutionResult, MatchingEngine
from .account import Account, TradeGateway
from .notifications import FailureEvent, FillEvent, RecordingSink

__all__ = [
    "Order", "OrderType", "PositionType", "Stock", "StockMarket", "OrderBook",
    "ensure_initialized", "should_trigger", "ExecutionOutcome", "ExecutionResult",
    "MatchingEngine", "Account", "TradeGateway", "FailureEvent", "FillEvent",
    "RecordingSink",
]
