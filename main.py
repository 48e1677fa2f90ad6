"""
main.py
Author: Yang
Description: Command-line entry point — analyse a chart screenshot, log trade
             outcomes, and inspect / back up per-setup statistics.

Run modes:
    python main.py analyze chart.png --asset BTC/USD --timeframe 1H
    python main.py log "Bull Flag" loss --note "entered too early"
    python main.py stats
    python main.py export [stats.json]      — print or write a JSON backup
    python main.py import stats.json        — replace all stats from a backup
    python main.py clear --yes
    python main.py config --provider anthropic --api-key sk-ant-...
"""

import argparse
import logging
import sys

from config import DEFAULT_ASSET, DEFAULT_TIMEFRAME, LOG_FILE
from ai.base import VisionAPIError
from graph.nodes import run_graph
from memory.errors import SetupMemoryError
from memory.stats_store import TradingMemory
from pipeline.step3_record_trade import record_trade
from tools.kv_store import get_store
from tools.settings_store import SettingsStore

# ── Logging setup ──────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    handlers=[
        logging.FileHandler(LOG_FILE),
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger("main")


# ── Output helpers ─────────────────────────────────────────────────────────────

def format_analysis(analysis: dict) -> str:
    lines = [f"SETUP: {analysis['setupType']}", ""]
    if analysis.get("warning"):
        lines += [f"⚠️  {analysis['warning']}", ""]
    lines.append(analysis["fullAnalysis"])
    return "\n".join(lines)


def format_stats(summary: dict) -> str:
    if not summary["setupBreakdown"]:
        return "No trades logged yet."
    lines = [
        f"Total trades: {summary['totalTrades']} | "
        f"{summary['totalWins']}W / {summary['totalLosses']}L / {summary['totalBE']}BE | "
        f"Win rate: {summary['overallWinRate']:.1f}%",
        "",
    ]
    for s in summary["setupBreakdown"]:
        lines.append(f"  {s['setupType']:<28} {s['wins']:>3}W {s['losses']:>3}L "
                     f"{s['breakEven']:>3}BE  {s['winRate']:>5.1f}%")
    return "\n".join(lines)


# ── Commands ───────────────────────────────────────────────────────────────────

def cmd_analyze(args, memory: TradingMemory, settings: SettingsStore) -> int:
    final = run_graph(memory, settings, args.image, args.asset, args.timeframe)
    if final.get("abort_reason"):
        print(f"Analysis failed: {final['abort_reason']}", file=sys.stderr)
        return 1
    print(format_analysis(final["analysis"]))
    return 0


def cmd_log(args, memory: TradingMemory, settings: SettingsStore) -> int:
    record = record_trade(memory, args.setup, args.outcome, args.note or "")
    print(f"Logged {args.outcome} — {record['wins']}W / {record['losses']}L / "
          f"{record['breakEven']}BE")
    if record["commonMistakes"]:
        print(f"Common mistakes: {', '.join(record['commonMistakes'])}")
    return 0


def cmd_stats(args, memory: TradingMemory, settings: SettingsStore) -> int:
    print(format_stats(memory.get_display_summary()))
    return 0


def cmd_export(args, memory: TradingMemory, settings: SettingsStore) -> int:
    payload = memory.export_stats()
    if args.file:
        with open(args.file, "w", encoding="utf-8") as f:
            f.write(payload)
        print(f"Stats exported to {args.file}")
    else:
        print(payload)
    return 0


def cmd_import(args, memory: TradingMemory, settings: SettingsStore) -> int:
    with open(args.file, encoding="utf-8") as f:
        memory.import_stats(f.read())
    print(f"Stats imported from {args.file}")
    return 0


def cmd_clear(args, memory: TradingMemory, settings: SettingsStore) -> int:
    if not args.yes:
        print("Refusing to clear stats without --yes", file=sys.stderr)
        return 1
    memory.clear_all()
    print("All trading stats cleared")
    return 0


def cmd_config(args, memory: TradingMemory, settings: SettingsStore) -> int:
    if args.reset:
        settings.reset_to_defaults()
    if args.provider:
        settings.set_provider(args.provider)
    if args.model:
        settings.set_model(args.model)
    if args.api_key:
        settings.set_api_key(args.api_key)
    if args.max_tokens is not None:
        settings.set_max_tokens(args.max_tokens)
    if args.clear_key:
        settings.clear_api_key()

    cfg    = settings.get_config()
    status = settings.validate()
    print(f"Provider:   {cfg['provider']}")
    print(f"Model:      {cfg['model']}")
    print(f"API key:    {settings.get_masked_api_key()}")
    print(f"Max tokens: {cfg['maxTokens']}")
    for issue in status["issues"]:
        print(f"  ! {issue}")
    return 0


# ── CLI entry points ───────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="setup-memory",
                                     description="Chart setup memory agent")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="classify a chart screenshot")
    p.add_argument("image")
    p.add_argument("--asset", default=DEFAULT_ASSET)
    p.add_argument("--timeframe", default=DEFAULT_TIMEFRAME)
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("log", help="log a trade outcome")
    p.add_argument("setup")
    p.add_argument("outcome", help="win | loss | be")
    p.add_argument("--note", default="")
    p.set_defaults(func=cmd_log)

    p = sub.add_parser("stats", help="show per-setup statistics")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("export", help="export stats as JSON")
    p.add_argument("file", nargs="?")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="replace stats from a JSON backup")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("clear", help="delete all stats")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=cmd_clear)

    p = sub.add_parser("config", help="show or change provider settings")
    p.add_argument("--provider")
    p.add_argument("--model")
    p.add_argument("--api-key")
    p.add_argument("--max-tokens", type=int)
    p.add_argument("--clear-key", action="store_true")
    p.add_argument("--reset", action="store_true")
    p.set_defaults(func=cmd_config)
    return parser


def main(argv=None, store=None) -> int:
    args     = build_parser().parse_args(argv)
    store    = store if store is not None else get_store()
    memory   = TradingMemory(store)
    settings = SettingsStore(store)
    memory.init()

    try:
        return args.func(args, memory, settings)
    except (SetupMemoryError, VisionAPIError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
