"""Stock and market registry data model."""

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Iterator, List, Optional

from sortedcontainers import SortedDict

from .errors import UnknownInstrument

if TYPE_CHECKING:
    from .orderbook import OrderBook


@dataclass(eq=False)
class Stock:
    """
    A tradeable stock quoted by the house.

    Attributes:
        symbol: Ticker symbol
        price: Current quote, updated by the market's price generator
        name: Company name
        max_shares: Maximum shares a player may hold (long + short combined)
    """
    symbol: str
    price: Decimal
    name: str = ""
    max_shares: int = 10_000_000

    def __post_init__(self):
        if not self.symbol:
            raise ValueError("Stocks must have a symbol")

        if self.price <= 0:
            raise ValueError("Price must be positive")

        if self.max_shares <= 0:
            raise ValueError("Max shares must be positive")

    def update_price(self, price: Decimal) -> None:
        """Set a new quote."""
        if price <= 0:
            raise ValueError("Price must be positive")
        self.price = price

    def __repr__(self) -> str:
        return f"Stock({self.symbol} @ {self.price})"


class StockMarket:
    """
    The market aggregate: stocks by symbol plus the resting order book.

    The order book starts out as None and is created by
    orderbook.ensure_initialized() the first time orders are processed.
    """

    def __init__(self, stocks: Optional[List[Stock]] = None):
        self._stocks: SortedDict[str, Stock] = SortedDict()
        self.order_book: Optional["OrderBook"] = None
        for stock in stocks or []:
            self.add_stock(stock)

    def add_stock(self, stock: Stock) -> None:
        """
        Register a stock.

        If the order book already exists, the new symbol gets an empty
        order list.
        """
        if stock.symbol in self._stocks:
            raise ValueError(f"Stock {stock.symbol} already exists")
        self._stocks[stock.symbol] = stock
        if self.order_book is not None:
            self.order_book.add_symbol(stock.symbol)

    def remove_stock(self, symbol: str) -> Stock:
        """Unregister a stock. Its resting orders are left in the book."""
        try:
            return self._stocks.pop(symbol)
        except KeyError:
            raise UnknownInstrument(symbol) from None

    def get_stock(self, symbol: str) -> Optional[Stock]:
        """Look up a stock, or None if it is not listed."""
        return self._stocks.get(symbol)

    def require_stock(self, symbol: str) -> Stock:
        """Look up a stock, raising UnknownInstrument if it is not listed."""
        stock = self._stocks.get(symbol)
        if stock is None:
            raise UnknownInstrument(symbol)
        return stock

    def symbols(self) -> List[str]:
        """Listed symbols in sorted order."""
        return list(self._stocks.keys())

    def __iter__(self) -> Iterator[Stock]:
        return iter(list(self._stocks.values()))

    def __len__(self) -> int:
        return len(self._stocks)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._stocks

    def __repr__(self) -> str:
        return f"StockMarket({', '.join(self._stocks.keys()) or 'empty'})"
