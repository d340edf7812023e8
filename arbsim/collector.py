# arbsim/collector.py
import asyncio
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import aiohttp

from .errors import ConfigurationError
from .store import OrderbookStore

# Payloads that arrive wrapped in a venue-specific envelope
ENVELOPES = {
    'ompfinex': lambda res: res['data']['BTCIRR'],
    'exir': lambda res: res['btc-irt'],
}

def unwrap(name: str, payload: Any) -> Any:
    extract = ENVELOPES.get(name)
    return extract(payload) if extract else payload

async def fetch_orderbook(session: aiohttp.ClientSession, venue: Dict[str, str]) -> Any:
    async with session.get(venue['url']) as resp:
        resp.raise_for_status()
        payload = await resp.json(content_type=None)
    return unwrap(venue['name'], payload)

async def collect_once(session: aiohttp.ClientSession, venues: List[Dict[str, str]],
                       store: OrderbookStore, date: str, logger: logging.Logger) -> int:
    """
    Fetches every venue once and stores the raw payloads under `date`.
    A failing venue is logged and skipped; the rest of the cycle continues.

    Returns:
        Number of rows written.
    """
    saved = 0
    for venue in venues:
        try:
            payload = await fetch_orderbook(session, venue)
            # sqlite commits off the event loop
            row_id = await asyncio.to_thread(store.insert, date, venue['name'], payload)
            saved += 1
            logger.info(f"   ✅ {venue['name'].upper():<10} | Saved #{row_id}")
        except sqlite3.Error as e:
            logger.error(f"   ❌ {venue['name'].upper():<10} | Error saving data: {e}")
        except (aiohttp.ClientError, asyncio.TimeoutError, KeyError, TypeError, ValueError) as e:
            logger.error(f"   ❌ {venue['name'].upper():<10} | Error fetching data: {e}")
    return saved

def collection_date(tz_name: str) -> str:
    return datetime.now(ZoneInfo(tz_name)).strftime('%Y-%m-%d %H:%M:%S')

async def run_collector(config: dict, logger: logging.Logger, cycles: Optional[int] = None):
    """
    Polls all configured venues every `interval_seconds`.
    Runs forever unless `cycles` is given.
    """
    cfg = config.get('collector') or {}
    if not cfg.get('venues'):
        raise ConfigurationError("'collector.venues' must list at least one venue")
    timeout = aiohttp.ClientTimeout(total=cfg.get('timeout_seconds', 10))
    interval = cfg.get('interval_seconds', 5)
    tz_name = cfg.get('timezone', 'Asia/Tehran')

    with OrderbookStore(cfg.get('database', './arbitrage.db')) as store:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            done = 0
            while cycles is None or done < cycles:
                date = collection_date(tz_name)
                logger.info(f"📡 COLLECTING ORDERBOOKS @ {date}")
                await collect_once(session, cfg['venues'], store, date, logger)
                done += 1
                if cycles is None or done < cycles:
                    await asyncio.sleep(interval)
