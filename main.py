# main.py
import asyncio
import sys
import uuid
from typing import Dict, List
import questionary
from rich.table import Table
from rich.layout import Layout
from rich.console import Console, Group
from rich.panel import Panel

from arbsim.config import load_config
from arbsim.logger import setup_console_logger, AsyncAuditLogger, TRADE_LOG_HEADER, trade_row
from arbsim.market_engine import MarketEngine
from arbsim.simulation import SimulationRun
from arbsim.collector import run_collector
from arbsim.chart import draw_price_chart
from arbsim.errors import ArbitrageError
from arbsim.metrics import RunReport
from arbsim.models import Direction, OrderbookSnapshot, TickResult

SOURCE_SIMULATED = "Simulated random walk"
SOURCE_STORED = "Replay stored orderbooks"
SOURCE_COLLECT = "Collect orderbooks (runs until stopped)"
SOURCE_ANALYZE = "Analyze stored orderbooks"

# --- UI HELPER FUNCTIONS ---

def startup_selection(market: MarketEngine):
    """Interactive CLI to pick the price source (and venues for a replay)."""
    print("\n🚀 ARBITRAGE SIMULATOR \n")
    source = questionary.select("Price source:", choices=[SOURCE_SIMULATED, SOURCE_STORED, SOURCE_COLLECT, SOURCE_ANALYZE]).ask()
    if not source:
        print("No source selected. Exiting.")
        sys.exit()

    venues = []
    if source == SOURCE_STORED:
        avail = market.stored_venues()
        venues = questionary.checkbox("Select exactly 2 venues (A, B):", choices=avail).ask() or []
        if len(venues) != 2:
            print("Need exactly 2 venues for a replay. Exiting.")
            sys.exit()
    return source, venues

def render_tick(console: Console, result: TickResult, wallets: dict):
    tick = result.tick
    for trade in result.trades:
        if trade.direction is Direction.A_TO_B:
            console.print(
                f"[green]Arbitrage Opportunity (A->B): Buy from A at {tick.price_a:.2f}, Sell at B at {tick.price_b:.2f}"
                f" - Profit: ${trade.profit:.2f} ({trade.profit_percent:.2f}%) - Trade Amount: ${trade.amount_x:.2f}[/green]"
            )
        else:
            console.print(
                f"[cyan]Arbitrage Opportunity (B->A): Buy from B at {tick.price_b:.2f}, Sell at A at {tick.price_a:.2f}"
                f" - Profit: ${trade.profit:.2f} ({trade.profit_percent:.2f}%) - Trade Amount: ${trade.amount_x:.2f}[/cyan]"
            )
    if result.missed:
        console.print(f"[yellow]No Arbitrage Opportunity: PriceA = {tick.price_a:.2f}, PriceB = {tick.price_b:.2f}[/yellow]")
    console.print(f"[dim]A: X={wallets['A']['base']:.2f} Y={wallets['A']['quote']:.4f} | "
                  f"B: X={wallets['B']['base']:.2f} Y={wallets['B']['quote']:.4f}[/dim]")

def generate_report(report: RunReport) -> Layout:
    """
    Final wallets and run statistics as a Rich layout.
    """
    inv_table = Table(title="💰 Final Wallets")
    inv_table.add_column("Venue", style="magenta")
    inv_table.add_column("Base (X)", justify="right", style="green")
    inv_table.add_column("Quote (Y)", justify="right")
    for venue, balances in report.wallets.items():
        inv_table.add_row(venue, f"{balances['base']:,.2f}", f"{balances['quote']:,.4f}")

    stats_table = Table(title="📊 Run Statistics")
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Value", justify="right")
    stats_table.add_row("Ticks", str(report.ticks_processed))
    stats_table.add_row("Trades", str(report.trade_count))
    stats_table.add_row("Buy (A->B)", str(report.buy_count))
    stats_table.add_row("Sell (B->A)", str(report.sell_count))
    stats_table.add_row("Missed", str(report.missed_count))
    stats_table.add_row("Final base total", f"{report.final_base_total:,.2f}")

    layout = Layout()
    layout.split_column(
        Layout(name="top"),
        Layout(name="bottom")
    )
    layout["top"].split_row(
        Layout(Panel(inv_table)),
        Layout(Panel(stats_table))
    )
    footer = Panel(
        f"[bold gold1]TOTAL PROFIT: ${report.total_profit:,.2f} ({report.total_profit_percent:.2f}%)[/bold gold1]",
        style="white on blue",
    )
    layout["bottom"].update(footer)
    layout["bottom"].size = 3
    layout["top"].size = 14
    return layout

def generate_orderbook_analysis(snapshots: Dict[str, List[OrderbookSnapshot]]) -> Group:
    """
    One table per collection date: top-of-book ask/bid per venue and its spread.
    """
    tables = []
    for date, books in snapshots.items():
        table = Table(title=f"📒 {date}")
        table.add_column("Exchange", style="magenta")
        table.add_column("Ask", justify="right", style="red")
        table.add_column("Bid", justify="right", style="green")
        table.add_column("Spread", justify="right")
        for book in books:
            table.add_row(
                book.name.upper(),
                f"{book.ask.price:,.0f} ({book.ask.amount})",
                f"{book.bid.price:,.0f} ({book.bid.amount})",
                f"{book.spread_percent:.4f}%",
            )
        tables.append(table)

    if not tables:
        return Group("[yellow]No valid stored orderbooks.[/yellow]")
    return Group(f"[bold]Available dates: {len(tables)}[/bold]", *tables)

# --- MAIN CONTROLLER ---

class ArbitrageSimulator:
    def __init__(self, config: dict):
        self.config = config
        system = self.config.get('system') or {}
        self.logger = setup_console_logger("ArbSim", system.get('log_level', 'WARNING'))
        self.verbose = system.get('verbose_ticks', True)
        self.market = MarketEngine(self.config, self.logger)
        audit_path = (self.config.get('audit') or {}).get('trade_log', 'logs/trades.csv')
        self.audit_log = AsyncAuditLogger(audit_path, header=TRADE_LOG_HEADER)
        self.console = Console()

    def load_series(self, source: str, venues: list):
        if source == SOURCE_STORED:
            return self.market.stored_series(venues[0], venues[1])
        return self.market.simulated_series()

    async def run(self, source: str, venues: list) -> RunReport:
        series_a, series_b = self.load_series(source, venues)
        sim = SimulationRun.from_config(self.config, self.logger)
        run_id = uuid.uuid4().hex[:8]

        await self.audit_log.start()
        try:
            for result in sim.iter_ticks(series_a, series_b):
                if self.verbose:
                    render_tick(self.console, result, sim.inventory.state)
                for trade in result.trades:
                    sim.log_trade(trade)
                    await self.audit_log.log_trade(trade_row(run_id, trade))
        finally:
            await self.audit_log.stop()

        report = sim.report()
        self.console.print(generate_report(report), height=17)

        chart_path = (self.config.get('chart') or {}).get('path', 'price_chart.png')
        if draw_price_chart(sim.series_a, sim.series_b, chart_path):
            self.console.print(f"[blue]Price chart saved as {chart_path}[/blue]")
        return report

if __name__ == "__main__":
    try:
        raw_conf = load_config("config.yaml")
        bot = ArbitrageSimulator(raw_conf)
        source, venues = startup_selection(bot.market)
        if source == SOURCE_ANALYZE:
            bot.console.print(generate_orderbook_analysis(bot.market.stored_snapshots()))
        elif source == SOURCE_COLLECT:
            asyncio.run(run_collector(raw_conf, setup_console_logger("Collector", "INFO")))
        else:
            asyncio.run(bot.run(source, venues))
    except ArbitrageError as e:
        print(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n🛑 Stopped by User.")
        sys.exit()
