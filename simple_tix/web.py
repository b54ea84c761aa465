"""FastAPI JSON interface for the order engine."""

import threading
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .account import Account
from .config import configure_logging, get_settings
from .errors import OrderBookError, UnknownInstrument
from .matching_engine import MatchingEngine
from .notifications import FailureEvent, OrderEvent, RecordingSink
from .order import Order, OrderType, PositionType
from .sample_data import create_sample_market
from .stock import StockMarket

app = FastAPI(title="TIX Order Engine")

# Lock for replacing global state (reset endpoint)
_state_lock = threading.Lock()
market: StockMarket
account: Account
engine: MatchingEngine
sink: RecordingSink


class OrderRequest(BaseModel):
    """Body for placing a resting order."""
    symbol: str
    shares: int = Field(gt=0)
    price: Decimal = Field(gt=0)
    order_type: OrderType
    position: PositionType = PositionType.LONG


class QuoteRequest(BaseModel):
    """Body for setting a stock's price."""
    price: Decimal = Field(gt=0)


def _install_sample_state() -> None:
    global market, account, engine, sink
    with _state_lock:
        new_sink = RecordingSink()
        new_market, new_account, new_engine = create_sample_market(get_settings(), sink=new_sink)
        market, account, engine, sink = new_market, new_account, new_engine, new_sink


def _order_json(order: Order) -> Dict[str, Any]:
    return {
        "order_id": str(order.order_id),
        "symbol": order.stock_symbol,
        "shares": order.shares,
        "price": str(order.price),
        "order_type": order.order_type.value,
        "position": order.position.value,
        "timestamp": order.timestamp.isoformat(),
    }


def _event_json(event: OrderEvent) -> Dict[str, Any]:
    return {
        "kind": "failure" if isinstance(event, FailureEvent) else "fill",
        "symbol": event.symbol,
        "price": str(event.price),
        "shares": event.shares,
        "order_type": event.order_type.value,
        "position": event.position.value,
        "message": event.message,
    }


def _require_stock(symbol: str):
    try:
        return market.require_stock(symbol.upper())
    except UnknownInstrument as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/stocks")
async def list_stocks():
    """List every stock with its current quote."""
    return [
        {"symbol": s.symbol, "name": s.name, "price": str(s.price), "max_shares": s.max_shares}
        for s in market
    ]


@app.get("/book/{symbol}")
async def get_book(symbol: str):
    """Return the resting orders and aggregated trigger levels for a stock."""
    stock = _require_stock(symbol)
    book = engine.order_book
    return {
        "symbol": stock.symbol,
        "price": str(stock.price),
        "orders": [_order_json(o) for o in book.orders_for(stock.symbol)],
        "levels": [
            {
                "order_type": order_type.value,
                "position": position.value,
                "price": str(price),
                "shares": shares,
            }
            for order_type, position, price, shares in book.get_trigger_levels(stock.symbol)
        ],
    }


@app.post("/orders", status_code=201)
async def submit_order(request: OrderRequest):
    """Place a new resting order."""
    _require_stock(request.symbol)
    try:
        order = engine.place_order(Order(
            stock_symbol=request.symbol.upper(),
            shares=request.shares,
            price=request.price,
            order_type=request.order_type,
            position=request.position,
        ))
    except (ValueError, OrderBookError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _order_json(order)


@app.get("/orders/export")
async def export_orders():
    """Return every resting order, keyed by symbol, in the saved-book format."""
    return engine.save_orders()


@app.post("/orders/import")
async def import_orders(data: Dict[str, Any]):
    """Replace the resting orders with a saved book."""
    try:
        count = engine.load_orders(data)
    except (ValueError, OrderBookError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"orders": count}


@app.delete("/orders")
async def clear_orders():
    """Cancel every resting order."""
    return {"cancelled": engine.clear_orders()}


@app.delete("/orders/{order_id}")
async def cancel_order(order_id: UUID):
    """Cancel a resting order."""
    order = engine.cancel_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return _order_json(order)


@app.post("/stocks/{symbol}/quote")
async def set_quote(symbol: str, request: QuoteRequest):
    """Move a stock's price, then process its resting orders."""
    stock = _require_stock(symbol)
    stock.update_price(request.price)
    results = engine.process_stock(stock)
    events = [_event_json(e) for e in sink.events]
    sink.clear()
    return {
        "symbol": stock.symbol,
        "price": str(stock.price),
        "results": [
            {"order": _order_json(r.order), "outcome": r.outcome.value} for r in results
        ],
        "events": events,
    }


@app.get("/account")
async def get_account():
    """Return cash and open positions."""
    return {
        "cash": str(account.cash),
        "positions": {
            symbol: {
                "shares_long": pos.shares_long,
                "avg_long": str(pos.avg_long),
                "shares_short": pos.shares_short,
                "avg_short": str(pos.avg_short),
            }
            for symbol, pos in account.positions().items()
        },
    }


@app.post("/reset")
async def reset_market():
    """Reset the market, account and orders to the sample data."""
    _install_sample_state()
    return {"stocks": len(market), "orders": len(engine.order_book)}


_install_sample_state()


def run():
    """Run the web server."""
    import uvicorn
    configure_logging(get_settings())
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
