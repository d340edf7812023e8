"""
Boundaries: config file, audit CSV, price chart, orderbook collector, console report.
"""

import asyncio
import csv
import io
import logging
import sqlite3
import threading
from pathlib import Path

import aiohttp
import pytest

from arbsim.chart import draw_price_chart
from arbsim.collector import collect_once, run_collector, unwrap
from arbsim.config import load_config
from arbsim.errors import ConfigurationError
from arbsim.logger import AsyncAuditLogger, TRADE_LOG_HEADER, setup_console_logger, trade_row
from arbsim.market_engine import MarketEngine
from arbsim.orderbook import load_snapshots
from rich.console import Console
from arbsim.simulation import SimulationRun
from arbsim.store import OrderbookStore
from main import ArbitrageSimulator, SOURCE_SIMULATED, generate_orderbook_analysis, generate_report


class TestLoadConfig:

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("trading:\n  fee_a: 0.001\nwallets:\n  a: {base: 10, quote: 1}\n")
        config = load_config(str(path))
        assert config['trading']['fee_a'] == 0.001
        assert config['wallets']['a'] == {'base': 10, 'quote': 1}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("trading: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == {}

    def test_shipped_config_builds_a_run(self):
        config = load_config(str(Path(__file__).resolve().parent.parent / "config.yaml"))
        sim = SimulationRun.from_config(config)
        assert sim.risk.params.trade_percent == 0.3
        assert sim.risk.params.min_trade_amount_b == 30


class TestAuditLogger:

    def test_header_then_trade_rows(self, tmp_path):
        sim = SimulationRun()
        sim.run([100.0, 110.0], [110.0, 100.0])
        path = tmp_path / "logs" / "trades.csv"

        async def write():
            audit = AsyncAuditLogger(str(path), header=TRADE_LOG_HEADER)
            await audit.start()
            for trade in sim.trades:
                await audit.log_trade(trade_row("run1", trade))
            await audit.stop()

        asyncio.run(write())

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == TRADE_LOG_HEADER
        assert [r[2] for r in rows[1:]] == ["A->B", "B->A"]
        assert rows[1][0] == "run1"
        assert float(rows[1][9]) == pytest.approx(sim.trades[0].profit, abs=1e-6)

    def test_header_written_once(self, tmp_path):
        path = tmp_path / "trades.csv"

        async def session():
            audit = AsyncAuditLogger(str(path), header=TRADE_LOG_HEADER)
            await audit.start()
            await audit.log_trade(["x"])
            await audit.stop()

        asyncio.run(session())
        asyncio.run(session())

        with open(path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows == [TRADE_LOG_HEADER, ["x"], ["x"]]

    def test_console_logger_single_handler(self):
        first = setup_console_logger("arbsim-handler-test", "INFO")
        second = setup_console_logger("arbsim-handler-test", "DEBUG")
        assert first is second
        assert len(second.handlers) == 1

    def test_console_logger_format_and_stream(self):
        stream = io.StringIO()
        log = setup_console_logger("arbsim-stream-test", "info", stream=stream)
        log.info("A->B @ idx 3")

        line = stream.getvalue().strip()
        assert log.level == logging.INFO
        assert line.endswith("| INFO | test_io | A->B @ idx 3")


class TestPriceChart:

    def test_writes_png(self, tmp_path):
        out = tmp_path / "charts" / "price_chart.png"
        assert draw_price_chart([100, 101, 99], [100, 100.5, 101], str(out)) == str(out)
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_empty_series_skipped(self, tmp_path):
        out = tmp_path / "price_chart.png"
        assert draw_price_chart([], [], str(out)) is None
        assert not out.exists()


class FakeResponse:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.error:
            raise self.error

    async def json(self, content_type=None):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.requested = []

    def get(self, url):
        self.requested.append(url)
        return self.responses[url]


VENUES = [
    {'name': 'nobitex', 'url': 'https://n/ob'},
    {'name': 'ompfinex', 'url': 'https://o/ob'},
    {'name': 'exir', 'url': 'https://e/ob'},
]


class TestCollector:

    def test_unwrap_envelopes(self):
        assert unwrap('ompfinex', {'data': {'BTCIRR': {'asks': []}}}) == {'asks': []}
        assert unwrap('exir', {'btc-irt': {'bids': []}}) == {'bids': []}
        assert unwrap('nobitex', {'asks': []}) == {'asks': []}

    def test_collect_once_stores_and_skips_failures(self, tmp_path, logger):
        session = FakeSession({
            'https://n/ob': FakeResponse({'asks': [["101", "1"]], 'bids': [["100", "1"]]}),
            'https://o/ob': FakeResponse({'data': {'BTCIRR': {'asks': [], 'bids': []}}}),
            'https://e/ob': FakeResponse(error=aiohttp.ClientError("503")),
        })
        with OrderbookStore(str(tmp_path / "books.db")) as store:
            saved = asyncio.run(collect_once(session, VENUES, store, '2025-01-01 10:00:00', logger))
            rows = store.rows()

        assert saved == 2
        assert session.requested == ['https://n/ob', 'https://o/ob', 'https://e/ob']
        assert [name for _, name, _ in rows] == ['nobitex', 'ompfinex']

    def test_missing_envelope_is_skipped(self, tmp_path, logger):
        session = FakeSession({'https://o/ob': FakeResponse({'unexpected': True})})
        with OrderbookStore(str(tmp_path / "books.db")) as store:
            saved = asyncio.run(collect_once(session, VENUES[1:2], store, 'd', logger))
            assert saved == 0
            assert store.rows() == []

    def test_run_collector_requires_venues(self, logger):
        with pytest.raises(ConfigurationError):
            asyncio.run(run_collector({'collector': {'venues': []}}, logger, cycles=1))


class TestSimulatorCli:

    def test_simulated_run_end_to_end(self, tmp_path):
        config = {
            'system': {'log_level': 'WARNING', 'verbose_ticks': True},
            'simulation': {'num_prices': 30, 'seed': 1},
            'audit': {'trade_log': str(tmp_path / "trades.csv")},
            'chart': {'path': str(tmp_path / "price_chart.png")},
        }
        report = asyncio.run(ArbitrageSimulator(config).run(SOURCE_SIMULATED, []))

        assert report.ticks_processed == 30
        assert (tmp_path / "price_chart.png").exists()
        with open(tmp_path / "trades.csv", newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == TRADE_LOG_HEADER
        assert len(rows) - 1 == report.trade_count

    def test_report_layout_has_both_panels(self):
        report = SimulationRun().run([100.0], [110.0])
        layout = generate_report(report)
        assert layout["top"].children
        assert layout["bottom"].size == 3


class LockedStore(OrderbookStore):
    """Fails the insert for one venue the way a busy sqlite file does."""

    def __init__(self, db_path, locked_venue):
        super().__init__(db_path)
        self.locked_venue = locked_venue
        self.insert_threads = []

    def insert(self, date, name, payload):
        self.insert_threads.append(threading.get_ident())
        if name == self.locked_venue:
            raise sqlite3.OperationalError("database is locked")
        return super().insert(date, name, payload)


class TestCollectorStorage:

    SESSION = {
        'https://n/ob': {'asks': [["101", "1"]], 'bids': [["100", "1"]]},
        'https://w/ob': {'result': {'ask': [{'price': 11, 'quantity': 1}], 'bid': [{'price': 10, 'quantity': 1}]}},
    }
    VENUES = [
        {'name': 'nobitex', 'url': 'https://n/ob'},
        {'name': 'wallex', 'url': 'https://w/ob'},
    ]

    def session(self):
        return FakeSession({url: FakeResponse(payload) for url, payload in self.SESSION.items()})

    def test_database_error_skips_only_that_venue(self, tmp_path, logger, caplog):
        store = LockedStore(str(tmp_path / "books.db"), locked_venue='nobitex')
        try:
            with caplog.at_level(logging.ERROR):
                saved = asyncio.run(collect_once(self.session(), self.VENUES, store, 'd', logger))
            rows = store.rows()
        finally:
            store.close()

        assert saved == 1
        assert [name for _, name, _ in rows] == ['wallex']
        assert "database is locked" in caplog.text

    def test_inserts_run_off_the_event_loop_thread(self, tmp_path, logger):
        store = LockedStore(str(tmp_path / "books.db"), locked_venue=None)
        try:
            saved = asyncio.run(collect_once(self.session(), self.VENUES, store, 'd', logger))
        finally:
            store.close()

        assert saved == 2
        assert len(store.insert_threads) == 2
        assert threading.get_ident() not in store.insert_threads


class TestTradeLogging:

    def test_run_logs_each_trade_at_info(self, caplog):
        sim = SimulationRun(logger=logging.getLogger("arbsim-run-log-test"))
        with caplog.at_level(logging.INFO, logger="arbsim-run-log-test"):
            sim.run([100.0, 110.0], [110.0, 100.0])

        lines = [r.getMessage() for r in caplog.records if r.name == "arbsim-run-log-test"]
        assert len(lines) == 2
        assert lines[0].startswith("A->B @ idx 0")
        assert lines[1].startswith("B->A @ idx 1")

    def test_cli_run_logs_each_trade(self, tmp_path, caplog):
        config = {
            'system': {'verbose_ticks': False},
            'simulation': {'num_prices': 60, 'seed': 8},
            'audit': {'trade_log': str(tmp_path / "trades.csv")},
            'chart': {'path': str(tmp_path / "price_chart.png")},
        }
        bot = ArbitrageSimulator(config)
        bot.logger = logging.getLogger("arbsim-cli-log-test")
        with caplog.at_level(logging.INFO, logger="arbsim-cli-log-test"):
            report = asyncio.run(bot.run(SOURCE_SIMULATED, []))

        trade_lines = [r for r in caplog.records
                       if r.name == "arbsim-cli-log-test" and " @ idx " in r.getMessage()]
        assert len(trade_lines) == report.trade_count


class TestOrderbookAnalysis:

    def render(self, renderable):
        console = Console(file=io.StringIO(), width=120, record=True)
        console.print(renderable)
        return console.export_text()

    def test_table_per_date_with_spread(self, tmp_path, logger):
        db_path = str(tmp_path / "books.db")
        with OrderbookStore(db_path) as store:
            store.insert('2025-01-01 10:00:00', 'nobitex', {"asks": [["102", "1"]], "bids": [["100", "2"]]})
            store.insert('2025-01-01 10:00:00', 'exir', {"asks": [[11, 1]], "bids": [[10, 1]]})
            store.insert('2025-01-01 10:00:05', 'nobitex', {"asks": [["104", "1"]], "bids": [["100", "1"]]})

        snapshots = MarketEngine({'collector': {'database': db_path}}, logger).stored_snapshots()
        text = self.render(generate_orderbook_analysis(snapshots))

        assert "Available dates: 2" in text
        assert "2025-01-01 10:00:00" in text
        assert "2025-01-01 10:00:05" in text
        assert "NOBITEX" in text and "EXIR" in text
        assert "2.0000%" in text
        assert "10.0000%" in text
        assert "4.0000%" in text

    def test_empty_store(self, tmp_path, logger):
        with OrderbookStore(str(tmp_path / "empty.db")) as store:
            snapshots = load_snapshots(store, logger)
        assert "No valid stored orderbooks." in self.render(generate_orderbook_analysis(snapshots))
