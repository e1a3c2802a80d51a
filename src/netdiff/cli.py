"""
CLI entry point for netdiff.

Given executed transaction hashes and/or Tenderly simulation files, computes
the net state diff across all of them. For example, if transaction A has:

    address1: key1 from value0 to value1, key2 from value2 to value3
    address2: key3 from value4 to value5

and transaction B has:

    address1: key1 from value1 to value6

the net state diff is:

    address1: key1 from value0 to value6, key2 from value2 to value3
    address2: key3 from value4 to value5

Usage:
    netdiff compute txs.txt
    netdiff compute txs.txt --out-dir out --show
    netdiff check txs.txt
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from netdiff.core.runner import NetDiffRunner, RunConfig, load_env
from netdiff.errors import MissingInputError

console = Console()


def require_input(args: argparse.Namespace) -> None:
    """Fail before any I/O when no input list was given."""
    if not args.input:
        raise MissingInputError("Please provide a file path as an argument.")


def build_config(args: argparse.Namespace) -> RunConfig:
    """Environment defaults, overridden by CLI flags."""
    load_env()
    overrides = {
        "out_dir": args.out_dir,
        "api_url": args.api_url,
        "chain_id": args.chain_id,
        "timeout": args.timeout,
        "concurrency": args.concurrency,
    }
    return replace(RunConfig.from_env(), **{k: v for k, v in overrides.items() if v is not None})


def print_net_diff_table(result) -> None:
    table = Table(title="Net State Diff")
    table.add_column("Address", style="cyan")
    table.add_column("Key")
    table.add_column("Original")
    table.add_column("Dirty")

    for diff in result.net_state_diff:
        for raw in diff.raw:
            dirty_style = "dim" if raw.original == raw.dirty else "yellow"
            table.add_row(
                raw.address,
                raw.key,
                raw.original,
                f"[{dirty_style}]{raw.dirty}[/{dirty_style}]",
            )

    console.print(table)


def report_error(e: Exception) -> int:
    console.print(f"[red]Error: {escape(str(e))}[/red]")
    return 1


def run_compute(args: argparse.Namespace) -> int:
    """Compute the net state diff and write it to disk."""
    try:
        require_input(args)
        config = build_config(args)
    except Exception as e:
        return report_error(e)

    console.print()
    console.print(Panel(
        f"[bold cyan]{args.input}[/bold cyan]\n\n"
        f"[dim]Output dir: {config.out_dir}[/dim]\n"
        f"[dim]Chain ID: {config.chain_id}[/dim]",
        title="[bold]Net State Diff[/bold]",
    ))
    console.print()

    runner = NetDiffRunner(config=config, console=console)

    try:
        result = asyncio.run(runner.run(args.input))
    except Exception as e:
        return report_error(e)

    console.print(
        f"[dim]{len(result.tx_data)} transactions | "
        f"{result.total_slot_writes} slot writes | "
        f"{len(result.net_state_diff)} net slots[/dim]"
    )

    if args.show:
        console.print()
        print_net_diff_table(result)

    return 0


def run_check(args: argparse.Namespace) -> int:
    """Resolve all entries and check block ordering (no output written)."""
    try:
        require_input(args)
        runner = NetDiffRunner(config=build_config(args), console=console)
        tx_data = asyncio.run(runner.check(args.input))
    except Exception as e:
        return report_error(e)

    table = Table(title="Transactions")
    table.add_column("#", justify="right")
    table.add_column("Entry", style="cyan")
    table.add_column("Block", justify="right")
    table.add_column("Slot writes", justify="right")

    for i, data in enumerate(tx_data):
        table.add_row(str(i + 1), data.source or "", str(data.block_number), str(data.slot_count))

    console.print()
    console.print(table)
    console.print("[green]✓ State diffs are ordered by block number[/green]")
    return 0


def add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input",
        type=str,
        nargs="?",
        help="File with one transaction hash or simulation file path per line"
    )
    parser.add_argument(
        "--out-dir", "-o",
        type=str,
        help="Output directory (default: out, or NETDIFF_OUT_DIR)"
    )
    parser.add_argument(
        "--api-url",
        type=str,
        help="Tenderly API base URL"
    )
    parser.add_argument(
        "--chain-id", "-c",
        type=int,
        help="Chain ID for transaction hash lookups (default: 1)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="HTTP timeout in seconds (default: 30)"
    )
    parser.add_argument(
        "--concurrency", "-j",
        type=int,
        help="Entries resolved in parallel (default: 4)"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="netdiff",
        description="Net storage state diff across a sequence of transactions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  netdiff compute txs.txt
  netdiff compute txs.txt --out-dir out --show
  netdiff check txs.txt
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    compute_parser = subparsers.add_parser("compute", help="Compute and write the net state diff")
    add_run_arguments(compute_parser)
    compute_parser.add_argument(
        "--show",
        action="store_true",
        help="Print the net state diff as a table"
    )

    check_parser = subparsers.add_parser("check", help="Resolve entries and check block ordering")
    add_run_arguments(check_parser)

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "compute":
        return run_compute(args)
    elif args.command == "check":
        return run_check(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
