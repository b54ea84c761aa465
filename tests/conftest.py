"""Shared fixtures for engine tests."""

from decimal import Decimal

import pytest

from simple_tix.config import Settings
from simple_tix.matching_engine import MatchingEngine
from simple_tix.notifications import RecordingSink
from simple_tix.stock import Stock, StockMarket


class FakeGateway:
    """Trade gateway that records calls and returns a scripted result."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls = []

    def _trade(self, name, stock, shares, price, suppress_dialog):
        self.calls.append((name, stock.symbol, shares, price, suppress_dialog))
        return self.result

    def buy_stock(self, stock, shares, price=None, *, suppress_dialog=False):
        return self._trade("buy_stock", stock, shares, price, suppress_dialog)

    def short_stock(self, stock, shares, price=None, *, suppress_dialog=False):
        return self._trade("short_stock", stock, shares, price, suppress_dialog)

    def sell_stock(self, stock, shares, price=None, *, suppress_dialog=False):
        return self._trade("sell_stock", stock, shares, price, suppress_dialog)

    def sell_short(self, stock, shares, price=None, *, suppress_dialog=False):
        return self._trade("sell_short", stock, shares, price, suppress_dialog)


@pytest.fixture
def settings():
    return Settings(suppress_fill_notifications=False, commission=Decimal("0"))


@pytest.fixture
def market():
    return StockMarket([
        Stock("A", Decimal("100")),
        Stock("B", Decimal("50")),
        Stock("C", Decimal("10")),
    ])


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def engine(market, gateway, sink, settings):
    return MatchingEngine(market, gateway, sink=sink, settings=settings)
