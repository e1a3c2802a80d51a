"""
Input list parsing.

One transaction hash or simulation file path per line, e.g.:

    0x3f7c36a1d636cdb23bf4f9171c27ebe58b73f4c0e6a33dbaac2c2f3c142faf50 # Comments allowed.
    0x29bb617fac8f49f5c934cc776b22d47e187ab482e86f21e4502a23ba1c9ad0da
    ./data/sim-upgrade6.json
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Union

COMMENT_PREFIXES = ("#", "//")


class EntryKind(Enum):
    """How an input entry is resolved."""
    TRANSACTION_HASH = "transaction_hash"
    SIMULATION_FILE = "simulation_file"


@dataclass
class InputEntry:
    """A single entry of the input list."""
    value: str
    kind: EntryKind
    line_number: int

    @property
    def is_transaction_hash(self) -> bool:
        return self.kind == EntryKind.TRANSACTION_HASH


def classify_entry(value: str) -> EntryKind:
    if value.startswith("0x"):
        return EntryKind.TRANSACTION_HASH
    return EntryKind.SIMULATION_FILE


def parse_input_list(text: str) -> List[InputEntry]:
    """
    Parse input list text into entries, in file order.

    Blank lines and lines starting with `#` or `//` are skipped. Anything
    after the first whitespace-delimited token is treated as a comment.
    """
    entries = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIXES):
            continue
        value = line.split()[0]
        entries.append(InputEntry(
            value=value,
            kind=classify_entry(value),
            line_number=line_number,
        ))
    return entries


def read_input_list(path: Union[str, Path]) -> List[InputEntry]:
    """Read and parse an input list file (UTF-8)."""
    with open(path, encoding="utf-8") as f:
        return parse_input_list(f.read())
