"""Tests for MatchingEngine."""

import logging

import pytest
from decimal import Decimal

from simple_tix.account import Account
from simple_tix.errors import UnsupportedOrderClass
from simple_tix.matching_engine import ExecutionOutcome, MatchingEngine
from simple_tix.notifications import FailureEvent, FillEvent, RecordingSink
from simple_tix.order import Order, OrderType, PositionType
from simple_tix.config import Settings
from simple_tix.stock import Stock, StockMarket

from conftest import FakeGateway

L, S = PositionType.LONG, PositionType.SHORT

# (order type, position, quote that fires, quote that does not, primitive)
TRIGGER_CASES = [
    (OrderType.LIMIT_BUY, L, "45", "55", "buy_stock"),
    (OrderType.LIMIT_BUY, S, "55", "45", "short_stock"),
    (OrderType.LIMIT_SELL, L, "55", "45", "sell_stock"),
    (OrderType.LIMIT_SELL, S, "45", "55", "sell_short"),
    (OrderType.STOP_BUY, L, "55", "45", "buy_stock"),
    (OrderType.STOP_BUY, S, "45", "55", "short_stock"),
    (OrderType.STOP_SELL, L, "45", "55", "sell_stock"),
    (OrderType.STOP_SELL, S, "55", "45", "sell_short"),
]


def place(engine, symbol="A", shares=100, price="50", order_type=OrderType.LIMIT_BUY,
          position=PositionType.LONG):
    return engine.place_order(Order(
        stock_symbol=symbol, shares=shares, price=Decimal(price),
        order_type=order_type, position=position,
    ))


class TestBootstrap:
    def test_first_call_creates_book_and_processes_nothing(self, engine, market, gateway, sink):
        stock = market.require_stock("A")
        assert market.order_book is None

        results = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert results == []
        assert market.order_book.symbols() == ["A", "B", "C"]
        assert all(market.order_book.orders_for(s) == [] for s in "ABC")
        assert gateway.calls == []
        assert len(sink) == 0


class TestTriggering:
    @pytest.mark.parametrize("order_type,position,fire,hold,primitive", TRIGGER_CASES)
    def test_fires_once_when_condition_met(self, engine, market, gateway,
                                           order_type, position, fire, hold, primitive):
        order = place(engine, order_type=order_type, position=position)
        stock = market.require_stock("A")
        stock.update_price(Decimal(fire))

        results = engine.process_orders(stock, order_type, position)

        assert len(results) == 1
        assert results[0].order is order
        assert results[0].outcome == ExecutionOutcome.FILLED
        assert gateway.calls == [(primitive, "A", 100, None, True)]
        assert order not in market.order_book

    @pytest.mark.parametrize("order_type,position,fire,hold,primitive", TRIGGER_CASES)
    def test_rests_when_condition_not_met(self, engine, market, gateway, sink,
                                          order_type, position, fire, hold, primitive):
        order = place(engine, order_type=order_type, position=position)
        stock = market.require_stock("A")
        stock.update_price(Decimal(hold))

        results = engine.process_orders(stock, order_type, position)

        assert results == []
        assert gateway.calls == []
        assert market.order_book.orders_for("A") == [order]
        assert len(sink) == 0

    def test_no_matching_orders_changes_nothing(self, engine, market, gateway, sink):
        other = place(engine, order_type=OrderType.STOP_SELL, position=L, price="200")
        stock = market.require_stock("A")

        results = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert results == []
        assert market.order_book.orders_for("A") == [other]
        assert gateway.calls == []
        assert len(sink) == 0

    def test_only_requested_class_is_processed(self, engine, market, gateway):
        # Both would fire at a quote of 100, only the long one is evaluated
        long_order = place(engine, order_type=OrderType.STOP_SELL, position=L, price="150")
        short_order = place(engine, order_type=OrderType.STOP_SELL, position=S, price="90")
        stock = market.require_stock("A")

        results = engine.process_orders(stock, OrderType.STOP_SELL, L)

        assert [r.order for r in results] == [long_order]
        assert market.order_book.orders_for("A") == [short_order]

    def test_all_triggered_orders_removed_in_one_pass(self, engine, market, gateway):
        orders = [place(engine, price="50") for _ in range(3)]
        resting = place(engine, price="40")
        stock = market.require_stock("A")
        stock.update_price(Decimal("45"))

        results = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert [r.order for r in results] == orders
        assert len(gateway.calls) == 3
        assert market.order_book.orders_for("A") == [resting]

    def test_unsupported_class_is_fatal(self, engine, market):
        stock = market.require_stock("A")
        with pytest.raises(UnsupportedOrderClass):
            engine.process_orders(stock, "Market Order", L)

    def test_process_stock_covers_every_class(self, engine, market, gateway):
        place(engine, order_type=OrderType.LIMIT_BUY, position=L, price="150")
        place(engine, order_type=OrderType.STOP_SELL, position=S, price="90")
        stock = market.require_stock("A")

        results = engine.process_stock(stock)

        assert len(results) == 2
        assert [c[0] for c in gateway.calls] == ["buy_stock", "sell_short"]

    def test_process_tick_covers_every_stock(self, engine, market, gateway):
        place(engine, symbol="C", price="20")
        place(engine, symbol="A", price="200")

        results = engine.process_tick()

        assert [r.order.stock_symbol for r in results] == ["A", "C"]
        assert len(market.order_book) == 0


class TestExecution:
    def test_limit_buy_long_fills_at_trigger_price(self, engine, market, sink):
        # Scenario: LimitBuy Long, trigger 50, quote 45
        order = place(engine, price="50")
        stock = market.require_stock("A")
        stock.update_price(Decimal("45"))

        engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert order not in market.order_book
        [event] = sink.events
        assert isinstance(event, FillEvent)
        assert event.price == Decimal("50")
        assert event.symbol == "A"
        assert event.shares == 100
        assert event.order_type == OrderType.LIMIT_BUY
        assert event.position == L
        assert event.message == "Limit Buy Order for A @ $50.00 (Long) was filled (100 shares)"

    def test_stop_sell_short(self, engine, market, sink):
        order = place(engine, price="30", order_type=OrderType.STOP_SELL, position=S)
        stock = market.require_stock("A")

        stock.update_price(Decimal("29"))
        assert engine.process_orders(stock, OrderType.STOP_SELL, S) == []
        assert order in market.order_book
        assert len(sink) == 0

        stock.update_price(Decimal("31"))
        [result] = engine.process_orders(stock, OrderType.STOP_SELL, S)
        assert result.outcome == ExecutionOutcome.FILLED
        assert order not in market.order_book
        assert len(sink.fills) == 1

    def test_failed_buy_rests_and_notifies(self, engine, market, gateway, sink):
        gateway.result = False
        order = place(engine, price="50")
        stock = market.require_stock("A")
        stock.update_price(Decimal("45"))

        [result] = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert result.outcome == ExecutionOutcome.REJECTED
        assert market.order_book.orders_for("A") == [order]
        assert order.shares == 100
        assert order.price == Decimal("50")
        [event] = sink.events
        assert isinstance(event, FailureEvent)
        assert event.price == Decimal("50")
        assert "not have enough money" in event.message

    def test_failed_sell_rests_without_notification(self, engine, market, gateway, sink):
        # Failed sells are intentionally not reported to the player
        gateway.result = False
        order = place(engine, price="50", order_type=OrderType.LIMIT_SELL)
        stock = market.require_stock("A")
        stock.update_price(Decimal("55"))

        [result] = engine.process_orders(stock, OrderType.LIMIT_SELL, L)

        assert result.outcome == ExecutionOutcome.REJECTED
        assert market.order_book.orders_for("A") == [order]
        assert len(sink) == 0

    def test_failed_order_retried_next_tick(self, engine, market, gateway, sink):
        gateway.result = False
        order = place(engine, price="50")
        stock = market.require_stock("A")
        stock.update_price(Decimal("45"))
        engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        gateway.result = True
        engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert order not in market.order_book
        assert len(gateway.calls) == 2
        assert [type(e) for e in sink.events] == [FailureEvent, FillEvent]

    def test_unknown_stock_is_skipped(self, engine, market, gateway, caplog):
        order = place(engine, price="200")
        stock = market.remove_stock("A")

        with caplog.at_level(logging.ERROR, logger="simple_tix.matching_engine"):
            [result] = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert result.outcome == ExecutionOutcome.SKIPPED
        assert gateway.calls == []
        assert order in market.order_book
        assert "Could not find stock" in caplog.text

    def test_invalid_book_for_stock_is_logged(self, engine, market, gateway, caplog):
        engine.order_book  # create the book
        stranger = Stock("Z", Decimal("10"))

        with caplog.at_level(logging.ERROR, logger="simple_tix.matching_engine"):
            results = engine.process_orders(stranger, OrderType.LIMIT_BUY, L)

        assert results == []
        assert "Invalid order book for Z" in caplog.text

    def test_missing_order_after_trade_is_logged(self, market, sink, settings, caplog):
        class CancellingGateway(FakeGateway):
            def buy_stock(self, stock, shares, price=None, *, suppress_dialog=False):
                engine.order_book.cancel_order(order.order_id)
                return super().buy_stock(stock, shares, price, suppress_dialog=suppress_dialog)

        engine = MatchingEngine(market, CancellingGateway(), sink=sink, settings=settings)
        order = place(engine, price="200")
        stock = market.require_stock("A")

        with caplog.at_level(logging.ERROR, logger="simple_tix.matching_engine"):
            [result] = engine.process_orders(stock, OrderType.LIMIT_BUY, L)

        assert result.outcome == ExecutionOutcome.FILLED
        assert "Could not find the following order" in caplog.text
        assert len(sink) == 0

    def test_suppressed_fill_notifications(self, market, gateway, sink):
        settings = Settings(suppress_fill_notifications=True)
        engine = MatchingEngine(market, gateway, sink=sink, settings=settings)
        order = place(engine, price="200")
        stock = market.require_stock("A")

        engine.process_orders(stock, OrderType.LIMIT_BUY, L)
        assert order not in market.order_book
        assert len(sink) == 0

        gateway.result = False
        place(engine, price="200")
        engine.process_orders(stock, OrderType.LIMIT_BUY, L)
        assert len(sink.failures) == 1

    def test_place_order_for_unknown_stock_raises(self, engine):
        from simple_tix.errors import UnknownInstrument

        with pytest.raises(UnknownInstrument):
            place(engine, symbol="Z")

    def test_cancel_order(self, engine, market):
        order = place(engine)
        assert engine.cancel_order(order.order_id) is order
        assert len(market.order_book) == 0


class TestExecutionWithAccount:
    def setup_method(self):
        self.stock = Stock("A", Decimal("10"))
        self.market = StockMarket([self.stock])
        self.account = Account(Decimal("10000"))
        self.sink = RecordingSink()
        self.engine = MatchingEngine(self.market, self.account, sink=self.sink,
                                     settings=Settings(suppress_fill_notifications=False))

    def test_sell_larger_than_position_stays_resting(self):
        assert self.account.buy_stock(self.stock, 100)
        order = place(self.engine, shares=1000, price="12", order_type=OrderType.LIMIT_SELL)
        self.stock.update_price(Decimal("12"))

        [result] = self.engine.process_orders(self.stock, OrderType.LIMIT_SELL, L)

        assert result.outcome == ExecutionOutcome.REJECTED
        assert order in self.market.order_book
        assert self.account.position("A").shares_long == 100
        assert len(self.sink) == 0

    def test_cover_larger_than_position_stays_resting(self):
        assert self.account.short_stock(self.stock, 100)
        order = place(self.engine, shares=150, price="8", order_type=OrderType.LIMIT_SELL,
                      position=S)
        self.stock.update_price(Decimal("8"))

        [result] = self.engine.process_orders(self.stock, OrderType.LIMIT_SELL, S)

        assert result.outcome == ExecutionOutcome.REJECTED
        assert order in self.market.order_book
        assert self.account.position("A").shares_short == 100

    def test_sell_of_full_position_fills(self):
        assert self.account.buy_stock(self.stock, 100)
        order = place(self.engine, shares=100, price="12", order_type=OrderType.LIMIT_SELL)
        self.stock.update_price(Decimal("12"))

        [result] = self.engine.process_orders(self.stock, OrderType.LIMIT_SELL, L)

        assert result.outcome == ExecutionOutcome.FILLED
        assert order not in self.market.order_book
        assert self.account.position("A").shares_long == 0
        assert self.sink.fills[0].shares == 100


class TestOrderManagement:
    def test_clear_orders(self, engine, market):
        place(engine, symbol="A")
        place(engine, symbol="B")

        assert engine.clear_orders() == 2
        assert len(market.order_book) == 0
        assert market.order_book.symbols() == ["A", "B", "C"]

    def test_save_and_load_orders(self, engine, market):
        order = place(engine, symbol="B", price="45", order_type=OrderType.STOP_SELL)
        saved = engine.save_orders()
        engine.clear_orders()

        assert engine.load_orders(saved) == 1

        [loaded] = market.order_book.orders_for("B")
        assert loaded.order_id == order.order_id
        assert loaded.order_type == OrderType.STOP_SELL

    def test_load_keeps_every_listed_symbol(self, engine, market):
        place(engine, symbol="A")

        engine.load_orders({"A": engine.save_orders()["A"]})

        assert market.order_book.symbols() == ["A", "B", "C"]
        assert len(market.order_book.orders_for("A")) == 1

    def test_load_rejects_orders_for_unlisted_stock(self, engine, market):
        from simple_tix.errors import UnknownInstrument

        order = place(engine, symbol="A")
        saved = engine.save_orders()
        saved["Z"] = saved.pop("A")

        with pytest.raises(UnknownInstrument):
            engine.load_orders(saved)
        assert market.order_book.orders_for("A") == [order]
