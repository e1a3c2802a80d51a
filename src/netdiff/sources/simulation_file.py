"""Simulation file source for pre-fetched Tenderly simulations."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.input_list import InputEntry
from ..errors import SourceResolutionError
from ..state.models import TxData, state_diffs_from_json
from .base import DiffSource


# Where the state diff lives in a simulation export, tried in order.
STATE_DIFF_PATHS = [
    ("transaction", "transaction_info", "state_diff"),
    ("simulation", "info", "state_diff"),
]
BLOCK_NUMBER_PATHS = [
    ("block_number",),
    ("transaction", "block_number"),
    ("simulation", "block_number"),
]

_MISSING = object()


def _lookup(data: Dict[str, Any], path: tuple) -> Any:
    node: Any = data
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _first_present(data: Dict[str, Any], paths: List[tuple]) -> Any:
    for path in paths:
        value = _lookup(data, path)
        if value is not _MISSING:
            return value
    return _MISSING


def parse_simulation_document(data: Dict[str, Any], entry: str) -> TxData:
    """Build TxData from a simulation document."""
    if not isinstance(data, dict):
        raise SourceResolutionError(entry, f"Simulation file {entry} is not a JSON object")

    state_diff = _first_present(data, STATE_DIFF_PATHS)
    if state_diff is _MISSING:
        raise SourceResolutionError(entry, f"No state diff found in simulation file {entry}")

    block_number = _first_present(data, BLOCK_NUMBER_PATHS)
    if block_number is _MISSING:
        raise SourceResolutionError(entry, f"No block number found in simulation file {entry}")

    try:
        return TxData(
            state_diff=state_diffs_from_json(state_diff),
            block_number=int(block_number),
            source=entry,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SourceResolutionError(entry, f"Malformed simulation file {entry}: {e!r}") from e


class SimulationFileSource(DiffSource):
    """Reads state diffs from simulation JSON files on disk."""

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Args:
            base_dir: Directory relative paths are resolved against (cwd if None)
        """
        self.base_dir = base_dir

    @property
    def name(self) -> str:
        return "simulation-file"

    def accepts(self, entry: InputEntry) -> bool:
        return not entry.is_transaction_hash

    def describe(self, entry: InputEntry) -> str:
        return f"Reading state diff from file: {entry.value}"

    def resolve_path(self, value: str) -> Path:
        path = Path(value).expanduser()
        if self.base_dir is not None and not path.is_absolute():
            path = Path(self.base_dir) / path
        return path

    def read(self, entry: InputEntry) -> TxData:
        """Blocking read and parse of one simulation file."""
        path = self.resolve_path(entry.value)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise SourceResolutionError(entry.value, f"Cannot read simulation file {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise SourceResolutionError(entry.value, f"Simulation file {path} is not UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise SourceResolutionError(entry.value, f"Invalid JSON in simulation file {path}: {e}") from e

        return parse_simulation_document(data, entry.value)

    async def fetch(self, entry: InputEntry) -> TxData:
        # Off the event loop so HTTP fetches keep running
        return await asyncio.to_thread(self.read, entry)
