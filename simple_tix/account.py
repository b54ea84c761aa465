"""Paper trading account implementing the buy/sell/short/cover primitives."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol

from .stock import Stock

logger = logging.getLogger(__name__)


class TradeGateway(Protocol):
    """
    The four trade primitives used to execute orders.

    Each returns True if the full quantity was traded, False if nothing was.
    With suppress_dialog set, implementations must not notify the player.
    """

    def buy_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                  *, suppress_dialog: bool = False) -> bool:
        """Open or increase a long position."""
        ...

    def short_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                    *, suppress_dialog: bool = False) -> bool:
        """Open or increase a short position."""
        ...

    def sell_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                   *, suppress_dialog: bool = False) -> bool:
        """Close or reduce a long position."""
        ...

    def sell_short(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                   *, suppress_dialog: bool = False) -> bool:
        """Close or reduce a short position."""
        ...


@dataclass
class Position:
    """Shares held in one stock, with the average price paid per side."""
    shares_long: int = 0
    avg_long: Decimal = Decimal("0")
    shares_short: int = 0
    avg_short: Decimal = Decimal("0")

    @property
    def total_shares(self) -> int:
        """Long plus short shares."""
        return self.shares_long + self.shares_short


class Account:
    """
    Player cash and positions.

    Trades execute at the stock's current quote unless a price is given.
    A flat commission is charged on every transaction.
    """

    def __init__(self, cash: Decimal, commission: Decimal = Decimal("0")):
        if cash < 0:
            raise ValueError("Cash must not be negative")
        self.cash = cash
        self.commission = commission
        self._positions: Dict[str, Position] = {}

    def position(self, symbol: str) -> Position:
        """Get the position for a symbol (empty if never traded)."""
        return self._positions.setdefault(symbol, Position())

    def positions(self) -> Dict[str, Position]:
        """Get every position that still holds shares, by symbol."""
        return {s: p for s, p in self._positions.items() if p.total_shares}

    def buy_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                  *, suppress_dialog: bool = False) -> bool:
        """Open or increase a long position."""
        pos = self.position(stock.symbol)
        px = stock.price if price is None else price
        if not self._can_open(stock, pos, shares, px, "buy", suppress_dialog):
            return False

        total = shares * px + self.commission
        pos.avg_long = (pos.shares_long * pos.avg_long + shares * px) / (pos.shares_long + shares)
        pos.shares_long += shares
        self.cash -= total
        self._report(suppress_dialog, "Bought %d shares of %s at %s", shares, stock.symbol, px)
        return True

    def short_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                    *, suppress_dialog: bool = False) -> bool:
        """Open or increase a short position."""
        pos = self.position(stock.symbol)
        px = stock.price if price is None else price
        if not self._can_open(stock, pos, shares, px, "short", suppress_dialog):
            return False

        total = shares * px + self.commission
        pos.avg_short = (pos.shares_short * pos.avg_short + shares * px) / (pos.shares_short + shares)
        pos.shares_short += shares
        self.cash -= total
        self._report(suppress_dialog, "Shorted %d shares of %s at %s", shares, stock.symbol, px)
        return True

    def sell_stock(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                   *, suppress_dialog: bool = False) -> bool:
        """Close or reduce a long position. Fails unless every share is held."""
        pos = self.position(stock.symbol)
        px = stock.price if price is None else price
        if shares <= 0 or shares > pos.shares_long:
            self._reject(suppress_dialog, "You do not own %d long shares of %s", shares, stock.symbol)
            return False

        self.cash += shares * px - self.commission
        pos.shares_long -= shares
        if pos.shares_long == 0:
            pos.avg_long = Decimal("0")
        self._report(suppress_dialog, "Sold %d shares of %s at %s", shares, stock.symbol, px)
        return True

    def sell_short(self, stock: Stock, shares: int, price: Optional[Decimal] = None,
                   *, suppress_dialog: bool = False) -> bool:
        """
        Close or reduce a short position. Fails unless every share is shorted.

        The player gets back the original short value plus the profit
        (or minus the loss) from the price moving.
        """
        pos = self.position(stock.symbol)
        px = stock.price if price is None else price
        if shares <= 0 or shares > pos.shares_short:
            self._reject(suppress_dialog, "You do not have %d short shares of %s", shares, stock.symbol)
            return False

        proceeds = shares * (2 * pos.avg_short - px) - self.commission
        if self.cash + proceeds < 0:
            self._reject(suppress_dialog, "Not enough money to cover %d shares of %s",
                         shares, stock.symbol)
            return False

        self.cash += proceeds
        pos.shares_short -= shares
        if pos.shares_short == 0:
            pos.avg_short = Decimal("0")
        self._report(suppress_dialog, "Covered %d shares of %s at %s", shares, stock.symbol, px)
        return True

    def _can_open(self, stock: Stock, pos: Position, shares: int, px: Decimal,
                  action: str, suppress_dialog: bool) -> bool:
        if shares <= 0:
            self._reject(suppress_dialog, "Cannot %s %d shares of %s", action, shares, stock.symbol)
            return False

        if pos.total_shares + shares > stock.max_shares:
            self._reject(suppress_dialog, "Cannot %s %d shares of %s: exceeds maximum of %d",
                         action, shares, stock.symbol, stock.max_shares)
            return False

        if self.cash < shares * px + self.commission:
            self._reject(suppress_dialog, "Not enough money to %s %d shares of %s",
                         action, shares, stock.symbol)
            return False

        return True

    @staticmethod
    def _reject(suppress_dialog: bool, msg: str, *args) -> None:
        logger.log(logging.DEBUG if suppress_dialog else logging.WARNING, msg, *args)

    @staticmethod
    def _report(suppress_dialog: bool, msg: str, *args) -> None:
        logger.log(logging.DEBUG if suppress_dialog else logging.INFO, msg, *args)

    def __repr__(self) -> str:
        return f"Account(cash={self.cash}, positions={len(self.positions())})"
