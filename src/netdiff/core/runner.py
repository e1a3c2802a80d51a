"""
Net diff runner.

Resolves every input entry, checks block ordering, merges the state diffs
and writes the net state diff as JSON. Output is all-or-nothing: any failure
raises before the output file is touched.
"""

import asyncio
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import httpx
from rich.console import Console
from rich.markup import escape

from ..errors import MissingInputError, SourceResolutionError
from ..sources.base import DiffSource, resolve_source
from ..sources.simulation_file import SimulationFileSource
from ..sources.tenderly import TenderlyTraceSource, TENDERLY_API_URL, MAINNET_CHAIN_ID
from ..state.models import StateDiff, TxData, state_diffs_to_json
from ..state.net_diff import compute_net_state_diff, flatten_state_diffs, validate_ordering
from .input_list import InputEntry, read_input_list


OUTPUT_PREFIX = "net-state-diff-"


def load_env():
    """Load .env file from the current or parent directories."""
    current = Path.cwd()
    for _ in range(5):  # Check up to 5 parent dirs
        env_file = current / ".env"
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        os.environ.setdefault(key.strip(), value.strip())
            break
        current = current.parent


@dataclass
class RunConfig:
    """Configuration for a net diff run."""
    out_dir: Path = field(default_factory=lambda: Path("out"))
    api_url: str = TENDERLY_API_URL
    chain_id: int = MAINNET_CHAIN_ID
    access_key: Optional[str] = None
    # Seconds, HTTP only
    timeout: float = 30.0
    # Max entries resolved at once
    concurrency: int = 4
    # Relative simulation file paths resolve against this (cwd if None)
    base_dir: Optional[Path] = None

    def __post_init__(self):
        self.out_dir = Path(self.out_dir)
        if self.base_dir is not None:
            self.base_dir = Path(self.base_dir)
        self.concurrency = max(1, int(self.concurrency))

    @classmethod
    def from_env(cls) -> "RunConfig":
        """Build a config from NETDIFF_* / TENDERLY_* environment variables."""
        return cls(
            out_dir=Path(os.environ.get("NETDIFF_OUT_DIR", "out")),
            api_url=os.environ.get("TENDERLY_API_URL", TENDERLY_API_URL),
            chain_id=int(os.environ.get("NETDIFF_CHAIN_ID", MAINNET_CHAIN_ID)),
            access_key=os.environ.get("TENDERLY_ACCESS_KEY") or None,
            timeout=float(os.environ.get("NETDIFF_TIMEOUT", 30.0)),
            concurrency=int(os.environ.get("NETDIFF_CONCURRENCY", 4)),
        )


@dataclass
class RunResult:
    """Result of a completed run."""
    input_path: Path
    tx_data: List[TxData]
    net_state_diff: List[StateDiff]
    output_path: Optional[Path] = None

    @property
    def total_slot_writes(self) -> int:
        return sum(data.slot_count for data in self.tx_data)


def output_path_for(input_path: Union[str, Path], out_dir: Path) -> Path:
    """Output file for an input list: <out_dir>/net-state-diff-<stem>.json."""
    return Path(out_dir) / f"{OUTPUT_PREFIX}{Path(input_path).stem}.json"


def write_net_state_diff(diffs: List[StateDiff], path: Path) -> Path:
    """Write the net state diff, replacing any previous file in one step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state_diffs_to_json(diffs), f, indent=2)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return path


class NetDiffRunner:
    """
    Computes the net state diff for an input list.

    Entries are resolved concurrently, but validation and merging always
    see them in input-list order.
    """

    def __init__(
        self,
        config: Optional[RunConfig] = None,
        console: Optional[Console] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize runner.

        Args:
            config: Run configuration (uses defaults if not provided)
            console: Console for progress output
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config or RunConfig()
        self.console = console or Console()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    def build_sources(self, client: httpx.AsyncClient) -> List[DiffSource]:
        return [
            TenderlyTraceSource(
                client,
                api_url=self.config.api_url,
                chain_id=self.config.chain_id,
                access_key=self.config.access_key,
            ),
            SimulationFileSource(base_dir=self.config.base_dir),
        ]

    async def resolve_all(self, entries: List[InputEntry]) -> List[TxData]:
        """Resolve entries concurrently. Results are in input order."""
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async with self._client() as client:
            sources = self.build_sources(client)

            async def _resolve(entry: InputEntry) -> TxData:
                source = resolve_source(entry, sources)
                async with semaphore:
                    self.console.print(f"[dim]{escape(source.describe(entry))}[/dim]")
                    return await source.fetch(entry)

            # gather keeps argument order regardless of completion order
            return list(await asyncio.gather(*(_resolve(e) for e in entries)))

    def load_entries(self, input_path: Optional[Union[str, Path]]) -> List[InputEntry]:
        if not input_path:
            raise MissingInputError("Please provide a file path as an argument.")
        try:
            return read_input_list(input_path)
        except (OSError, UnicodeDecodeError) as e:
            raise SourceResolutionError(str(input_path), f"Cannot read input list {input_path}: {e}") from e

    async def check(self, input_path: Optional[Union[str, Path]]) -> List[TxData]:
        """Resolve all entries and validate ordering without merging or writing."""
        entries = self.load_entries(input_path)
        tx_data = await self.resolve_all(entries)
        validate_ordering(tx_data)
        return tx_data

    async def compute(self, input_path: Optional[Union[str, Path]]) -> RunResult:
        """Resolve, validate and merge, without writing anything."""
        tx_data = await self.check(input_path)
        net_state_diff = compute_net_state_diff(flatten_state_diffs(tx_data))
        return RunResult(
            input_path=Path(input_path),
            tx_data=tx_data,
            net_state_diff=net_state_diff,
        )

    async def run(self, input_path: Optional[Union[str, Path]]) -> RunResult:
        """Full run: compute the net state diff and write it to the output directory."""
        result = await self.compute(input_path)
        outfile = output_path_for(result.input_path, self.config.out_dir)
        result.output_path = write_net_state_diff(result.net_state_diff, outfile)
        self.console.print(f"[green]✓ Net state diff written to {outfile}[/green]")
        return result
