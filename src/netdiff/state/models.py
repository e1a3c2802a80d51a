"""
Data models for storage state diffs.

The shapes mirror the Tenderly trace format so a net diff can be consumed
anywhere a single transaction's state diff is expected.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any


# Both are 0x-prefixed hex strings. Never normalised or parsed.
Address = str
Slot = str  # Slot key or value.


@dataclass
class Raw:
    """One storage write: `key` at `address` went from `original` to `dirty`."""
    address: Address
    key: Slot
    original: Slot
    dirty: Slot

    def to_dict(self) -> Dict[str, str]:
        return {
            "address": self.address,
            "key": self.key,
            "original": self.original,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Raw":
        return cls(
            address=data["address"],
            key=data["key"],
            original=data["original"],
            dirty=data["dirty"],
        )


@dataclass
class StateDiff:
    """
    A state diff entry for one address.

    Upstream always reports exactly one raw diff per entry. The decoded
    fields (soltype, original, dirty) are not populated for proxies, so they
    are kept as null placeholders purely for format compatibility.
    """
    address: Address
    raw: List[Raw] = field(default_factory=list)
    soltype: None = None
    original: None = None
    dirty: None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "raw": [r.to_dict() for r in self.raw],
            "soltype": None,
            "original": None,
            "dirty": None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateDiff":
        # Raw count is checked by the merger, keep whatever we were given.
        return cls(
            address=data["address"],
            raw=[Raw.from_dict(r) for r in data.get("raw") or []],
        )


@dataclass
class StorageValues:
    """Accumulated values for one slot while merging."""
    original: Slot
    dirty: Slot


@dataclass
class TxData:
    """The resolved state diff of one input entry."""
    state_diff: List[StateDiff]
    block_number: int
    source: Optional[str] = None  # Input entry this came from

    @property
    def slot_count(self) -> int:
        return sum(len(d.raw) for d in self.state_diff)


def state_diffs_from_json(items: Optional[List[Dict[str, Any]]]) -> List[StateDiff]:
    """Parse a JSON state diff array. A null array means no storage was touched."""
    return [StateDiff.from_dict(item) for item in items or []]


def state_diffs_to_json(diffs: List[StateDiff]) -> List[Dict[str, Any]]:
    return [d.to_dict() for d in diffs]
