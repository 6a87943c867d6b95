"""
Orderbook level ordering.

The matching engine does not guarantee level order, so both sides are sorted
best-first before display: bids by descending price, asks by ascending price.
Sorting is stable, so equal-priced levels keep their relative order.
"""

from typing import Iterable, List

from polymarket_cli.types import OrderBook, OrderBookLevel


def sort_bids(levels: Iterable[OrderBookLevel]) -> List[OrderBookLevel]:
    """Sort bids highest price first."""
    return sorted(levels, key=lambda level: level.price, reverse=True)


def sort_asks(levels: Iterable[OrderBookLevel]) -> List[OrderBookLevel]:
    """Sort asks lowest price first."""
    return sorted(levels, key=lambda level: level.price)


def normalize_book(book: OrderBook) -> OrderBook:
    """Return a copy of the book with both sides sorted best-first."""
    return OrderBook(
        token_id=book.token_id,
        bids=sort_bids(book.bids),
        asks=sort_asks(book.asks),
    )
