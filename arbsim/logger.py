# arbsim/logger.py
import asyncio
import aiofiles
from aiocsv import AsyncWriter
import logging
import sys
import os
from typing import List, Any, Optional, TextIO

from .models import TradeRecord

TRADE_LOG_HEADER = [
    "run_id", "index", "direction", "price_a", "price_b",
    "buy_price", "sell_price", "amount_x", "amount_y", "profit", "profit_pct",
]

def trade_row(run_id: str, trade: TradeRecord) -> List[Any]:
    return [
        run_id,
        trade.index,
        trade.direction.value,
        f"{trade.price_a:.2f}",
        f"{trade.price_b:.2f}",
        f"{trade.buy_price:.4f}",
        f"{trade.sell_price:.4f}",
        f"{trade.amount_x:.6f}",
        f"{trade.amount_y:.8f}",
        f"{trade.profit:.6f}",
        f"{trade.profit_percent:.4f}",
    ]

class AsyncAuditLogger:
    """
    Non-blocking CSV writer for the trade log.
    Rows are queued by the caller and written by a single background worker.
    """
    def __init__(self, filepath: str, header: Optional[List[str]] = None):
        self.filepath = filepath
        self.header = header
        self._queue = asyncio.Queue()
        self._worker_task = None

    async def start(self):
        """
        Creates the directory and file if missing, writes the header on a new
        file and starts the background writer.
        """
        directory = os.path.dirname(self.filepath)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)

        is_new = not os.path.exists(self.filepath) or os.path.getsize(self.filepath) == 0
        async with aiofiles.open(self.filepath, mode='a', newline='') as f:
            if is_new and self.header:
                writer = AsyncWriter(f, dialect='unix')
                await writer.writerow(self.header)
        self._worker_task = asyncio.create_task(self._writer_worker())

    async def log_trade(self, data: List[Any]):
        await self._queue.put(data)

    async def stop(self):
        """Waits for queued rows to hit disk, then stops the worker."""
        await self._queue.join()
        if self._worker_task:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None

    async def _writer_worker(self):
        while True:
            row = await self._queue.get()
            try:
                async with aiofiles.open(self.filepath, mode='a', newline='') as f:
                    writer = AsyncWriter(f, dialect='unix')
                    await writer.writerow(row)
            except OSError as e:
                # Disk trouble must not take the run down with it
                print(f"LOGGING FAILURE: {e}", file=sys.stderr)
            finally:
                self._queue.task_done()

CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(module)s | %(message)s'

def setup_console_logger(name: str, level: str, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Console logger for the simulator and the collector. Calling it again for
    the same name only changes the level; the stream handler is attached once.
    Trade lines are only visible at INFO and below.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not logger.handlers:
        console = logging.StreamHandler(stream or sys.stdout)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)

    return logger
