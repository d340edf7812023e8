# arbsim/orderbook.py
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from .models import BookLevel, OrderbookSnapshot
from .store import OrderbookStore

Book = Tuple[Optional[BookLevel], Optional[BookLevel]]

# Toman-quoted venues are scaled to Rial
TOMAN_TO_RIAL = 10

def _level(price: Any, amount: Any, scale: float = 1) -> BookLevel:
    return BookLevel(price=float(price) * scale, amount=float(amount))

def _first(side: Optional[list]) -> Optional[Any]:
    return side[0] if side else None

def _nobitex(data: dict) -> Book:
    # {"asks": [["price", "amount"]], "bids": [...]}
    ask, bid = _first(data.get('asks')), _first(data.get('bids'))
    return (_level(ask[0], ask[1]) if ask else None,
            _level(bid[0], bid[1]) if bid else None)

def _ompfinex(data: dict) -> Book:
    # Sides are published the other way round: 'bids' holds the sell orders.
    ask, bid = _first(data.get('bids')), _first(data.get('asks'))
    return (_level(ask['price'], ask['amount']) if ask else None,
            _level(bid['price'], bid['amount']) if bid else None)

def _raastin(data: dict) -> Book:
    ask, bid = _first(data.get('asks')), _first(data.get('bids'))
    return (_level(ask['price'], ask['amount'], TOMAN_TO_RIAL) if ask else None,
            _level(bid['price'], bid['amount'], TOMAN_TO_RIAL) if bid else None)

def _ramzinex(data: dict) -> Book:
    # {"data": {"sells": [[price, amount, ...]], "buys": [...]}}
    inner = data.get('data') or {}
    ask, bid = _first(inner.get('sells')), _first(inner.get('buys'))
    return (_level(ask[0], ask[1]) if ask else None,
            _level(bid[0], bid[1]) if bid else None)

def _exir(data: dict) -> Book:
    ask, bid = _first(data.get('asks')), _first(data.get('bids'))
    return (_level(ask[0], ask[1], TOMAN_TO_RIAL) if ask else None,
            _level(bid[0], bid[1], TOMAN_TO_RIAL) if bid else None)

def _wallex(data: dict) -> Book:
    # {"result": {"ask": [{"price", "quantity"}], "bid": [...]}}
    inner = data.get('result') or {}
    ask, bid = _first(inner.get('ask')), _first(inner.get('bid'))
    return (_level(ask['price'], ask['quantity'], TOMAN_TO_RIAL) if ask else None,
            _level(bid['price'], bid['quantity'], TOMAN_TO_RIAL) if bid else None)

PARSERS = {
    'nobitex': _nobitex,
    'ompfinex': _ompfinex,
    'raastin': _raastin,
    'ramzinex': _ramzinex,
    'exir': _exir,
    'wallex': _wallex,
}

def normalize_orderbook(name: str, data: dict, logger: Optional[logging.Logger] = None) -> Book:
    """
    Top-of-book (ask, bid) for a venue's raw payload, prices in Rial.
    Unknown venues yield (None, None).
    """
    parser = PARSERS.get(name)
    if parser is None:
        (logger or logging.getLogger(__name__)).warning(f"Unknown exchange: {name}")
        return None, None
    return parser(data)

def validate_orderbook(book: OrderbookSnapshot) -> Tuple[bool, Optional[str]]:
    if not book.ask or not book.bid:
        return False, "Missing ask or bid data"
    if book.ask.price <= book.bid.price:
        return False, f"Ask price ({book.ask.price}) should be higher than bid price ({book.bid.price})"
    return True, None

def load_snapshots(store: OrderbookStore, logger: logging.Logger) -> Dict[str, List[OrderbookSnapshot]]:
    """
    Stored rows normalized and grouped by collection date, oldest date first.
    Unparsable and invalid rows are skipped with a warning.
    """
    grouped: Dict[str, List[OrderbookSnapshot]] = {}
    for date, name, raw in store.rows():
        try:
            ask, bid = normalize_orderbook(name, json.loads(raw), logger)
        except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            logger.error(f"Error parsing data for {name} at {date}: {e}")
            continue

        if not ask and not bid:
            continue

        snapshot = OrderbookSnapshot(name=name, date=date, ask=ask, bid=bid)
        is_valid, reason = validate_orderbook(snapshot)
        if not is_valid:
            logger.warning(f"⚠️ Invalid data for {name} at {date}: {reason}")
            continue

        grouped.setdefault(date, []).append(snapshot)
    return grouped

def aligned_series(snapshots: Dict[str, List[OrderbookSnapshot]], venue_a: str, venue_b: str) -> Tuple[List[float], List[float]]:
    """
    Mid prices for the dates where both venues have a valid book, in date order.
    """
    prices_a: List[float] = []
    prices_b: List[float] = []
    for date in sorted(snapshots):
        by_name = {s.name: s for s in snapshots[date]}
        if venue_a in by_name and venue_b in by_name:
            prices_a.append(by_name[venue_a].mid_price)
            prices_b.append(by_name[venue_b].mid_price)
    return prices_a, prices_b
