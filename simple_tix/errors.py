"""Exceptions raised by the order book and order processor."""


class OrderBookError(Exception):
    """Base class for order engine errors."""


class InvalidBookState(OrderBookError):
    """The book has no valid order sequence for a symbol."""

    def __init__(self, symbol: str, detail: str = "no order list"):
        self.symbol = symbol
        super().__init__(f"Invalid order book for {symbol}: {detail}")


class OrderNotFound(OrderBookError):
    """An order expected to be resident in the book was not found."""

    def __init__(self, order):
        self.order = order
        super().__init__(f"Could not find order in order book: {order!r}")


class UnknownInstrument(OrderBookError):
    """No stock with the given symbol exists in the market."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Could not find stock for symbol: {symbol}")


class UnsupportedOrderClass(OrderBookError):
    """An order's (type, position) has no entry in the trigger table."""

    def __init__(self, order_type, position):
        self.order_type = order_type
        self.position = position
        super().__init__(
            f"Unsupported order class: {order_type!r} / {position!r}"
        )
