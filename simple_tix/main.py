"""CLI demo interface for the order engine."""

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional
from uuid import UUID

from .account import Account
from .config import configure_logging, get_settings
from .errors import OrderBookError
from .matching_engine import ExecutionResult, MatchingEngine
from .notifications import RecordingSink
from .order import Order, OrderType, PositionType
from .sample_data import create_sample_market
from .stock import StockMarket

ORDER_TYPES = {
    "limitbuy": OrderType.LIMIT_BUY,
    "limitsell": OrderType.LIMIT_SELL,
    "stopbuy": OrderType.STOP_BUY,
    "stopsell": OrderType.STOP_SELL,
}

POSITIONS = {
    "long": PositionType.LONG,
    "short": PositionType.SHORT,
}


def print_book(market: StockMarket, symbol: Optional[str] = None) -> None:
    """Print the resting orders for one stock, or for all of them."""
    book = market.order_book
    symbols = [symbol.upper()] if symbol else market.symbols()

    print("\n" + "=" * 60)
    print("ORDER BOOK")
    print("=" * 60)

    for sym in symbols:
        stock = market.require_stock(sym)
        print(f"{stock.symbol} ({stock.name}) quote {stock.price}")
        orders = book.orders_for(stock.symbol) if book is not None else []
        if orders:
            for order in orders:
                print(
                    f"  {str(order.order_id)[:8]}  {order.order_type.value:<17} "
                    f"{order.position.value:<5} {order.shares:>8} @ {order.price}"
                )
        else:
            print("  (empty)")

    print("=" * 60 + "\n")


def print_account(account: Account) -> None:
    """Print cash and open positions."""
    print(f"\nCash: {account.cash:,.2f}")
    positions = account.positions()
    if not positions:
        print("(No positions)")
    for symbol, pos in positions.items():
        print(
            f"  {symbol:<5} long {pos.shares_long:>8} @ {pos.avg_long:.2f}  "
            f"short {pos.shares_short:>8} @ {pos.avg_short:.2f}"
        )
    print()


def print_results(results: List[ExecutionResult], sink: RecordingSink) -> None:
    """Print the orders executed by a tick and any messages for the player."""
    if results:
        print("\nORDERS TRIGGERED:")
        for result in results:
            print(f"  {result.outcome.value:<8} {result.order}")
    else:
        print("\n(No orders triggered)")

    for event in sink.events:
        print(f"  >> {event.message}")
    sink.clear()


def print_help() -> None:
    """Print help message."""
    print("""
TIX Order Demo - Commands:
  quote <sym> <price>                          - Set a stock's price and process its orders
  order <type> <pos> <sym> <shares> <price>    - Place a resting order
  cancel <id>                                  - Cancel an order (id prefix is enough)
  clear                                        - Cancel every order
  save <file>                                  - Save resting orders to a JSON file
  load <file>                                  - Replace resting orders from a JSON file
  book [sym]                                   - Show resting orders
  account                                      - Show cash and positions
  help                                         - Show this help
  quit                                         - Exit

Order types: limitbuy, limitsell, stopbuy, stopsell
Positions:   long, short

Examples:
  order limitbuy long ECP 100 50      - Buy 100 ECP when the price falls to $50
  order stopsell long ECP 100 45      - Sell 100 ECP if the price falls to $45
  quote ECP 49.5                      - Move ECP to $49.50
""")


def find_order_id(engine: MatchingEngine, prefix: str) -> Optional[UUID]:
    """Resolve an order ID from a unique prefix."""
    matches = [
        o.order_id for o in engine.order_book.iter_orders()
        if str(o.order_id).startswith(prefix.lower())
    ]
    if len(matches) > 1:
        raise ValueError(f"Order id prefix {prefix} is ambiguous")
    return matches[0] if matches else None


def run_demo() -> None:
    """Run the interactive demo."""
    settings = get_settings()
    configure_logging(settings)
    sink = RecordingSink()
    market, account, engine = create_sample_market(settings, sink=sink)

    print("\nTIX Limit/Stop Order Demo")
    print("Type 'help' for commands\n")

    while True:
        try:
            user_input = input("> ").strip()

            if not user_input:
                continue

            parts = user_input.split()
            command = parts[0].lower()

            if command == "quit":
                print("Goodbye!")
                break

            elif command == "help":
                print_help()

            elif command == "book" and len(parts) <= 2:
                print_book(market, parts[1] if len(parts) == 2 else None)

            elif command == "account":
                print_account(account)

            elif command == "quote" and len(parts) == 3:
                stock = market.require_stock(parts[1].upper())
                stock.update_price(Decimal(parts[2]))
                results = engine.process_stock(stock)
                print_results(results, sink)

            elif command == "order" and len(parts) == 6:
                order_type = ORDER_TYPES.get(parts[1].lower())
                position = POSITIONS.get(parts[2].lower())
                if order_type is None or position is None:
                    raise ValueError("Unknown order type or position")
                order = Order(
                    stock_symbol=parts[3].upper(),
                    shares=int(parts[4]),
                    price=Decimal(parts[5]),
                    order_type=order_type,
                    position=position,
                )
                engine.place_order(order)
                print(f"Placed: {order}")

            elif command == "cancel" and len(parts) == 2:
                order_id = find_order_id(engine, parts[1])
                order = engine.cancel_order(order_id) if order_id else None
                if order is None:
                    print("No such order")
                else:
                    print(f"Cancelled: {order}")

            elif command == "clear":
                print(f"Cancelled {engine.clear_orders()} orders")

            elif command == "save" and len(parts) == 2:
                Path(parts[1]).write_text(json.dumps(engine.save_orders(), indent=2))
                print(f"Saved {len(engine.order_book)} orders to {parts[1]}")

            elif command == "load" and len(parts) == 2:
                count = engine.load_orders(json.loads(Path(parts[1]).read_text()))
                print(f"Loaded {count} orders from {parts[1]}")

            else:
                print("Invalid command. Type 'help' for usage.")

        except (ValueError, InvalidOperation, OrderBookError, OSError) as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            print("\nGoodbye!")
            break
        except EOFError:
            print("\nGoodbye!")
            break


if __name__ == "__main__":
    run_demo()
