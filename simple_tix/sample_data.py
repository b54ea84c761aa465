"""Sample market for trying out the order engine."""

from decimal import Decimal
from typing import Optional

from .account import Account
from .config import Settings, get_settings
from .matching_engine import MatchingEngine
from .notifications import NotificationSink
from .order import Order, OrderType, PositionType
from .stock import Stock, StockMarket


def create_sample_market(
    settings: Optional[Settings] = None,
    sink: Optional[NotificationSink] = None,
) -> tuple[StockMarket, Account, MatchingEngine]:
    """
    Create a market with sample stocks, a funded account and a few resting orders.

    Returns:
        Tuple of (StockMarket, Account, MatchingEngine)
    """
    settings = settings or get_settings()
    market = StockMarket([
        Stock("ECP", Decimal("52.40"), name="ECorp", max_shares=100_000),
        Stock("MGCP", Decimal("31.75"), name="MegaCorp", max_shares=150_000),
        Stock("BLD", Decimal("12.10"), name="Blade Industries", max_shares=200_000),
        Stock("OMTK", Decimal("88.00"), name="Omnitek Incorporated", max_shares=80_000),
    ])
    account = Account(settings.starting_cash, commission=settings.commission)
    engine = MatchingEngine(market, account, sink=sink, settings=settings)

    resting_orders = [
        ("ECP", 1_000, "50.00", OrderType.LIMIT_BUY, PositionType.LONG),
        ("ECP", 500, "55.00", OrderType.STOP_BUY, PositionType.LONG),
        ("MGCP", 2_000, "33.00", OrderType.LIMIT_BUY, PositionType.SHORT),
        ("BLD", 5_000, "11.50", OrderType.LIMIT_BUY, PositionType.LONG),
        ("OMTK", 300, "85.00", OrderType.STOP_BUY, PositionType.SHORT),
    ]
    for symbol, shares, price, order_type, position in resting_orders:
        engine.place_order(Order(
            stock_symbol=symbol,
            shares=shares,
            price=Decimal(price),
            order_type=order_type,
            position=position,
        ))

    return market, account, engine
