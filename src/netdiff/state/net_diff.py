"""Net State Diff Calculator."""

import json
from typing import Dict, List, Sequence

from ..errors import BlockOrderError, RawDiffCountError
from .models import Address, Raw, Slot, StateDiff, StorageValues, TxData


def validate_ordering(tx_data: Sequence[TxData]) -> None:
    """
    Assert that transactions are ordered by block number.

    Several transactions may share a block, so only a decrease fails.

    Raises:
        BlockOrderError: If a block number is lower than the one before it.
    """
    for i in range(1, len(tx_data)):
        previous, current = tx_data[i - 1], tx_data[i]
        if current.block_number < previous.block_number:
            msg = (
                f"State diffs are not ordered by block number: "
                f"{previous.block_number} > {current.block_number}"
            )
            if previous.source and current.source:
                msg += f" ({previous.source} before {current.source})"
            raise BlockOrderError(previous.block_number, current.block_number, msg)


def flatten_state_diffs(tx_data: Sequence[TxData]) -> List[StateDiff]:
    """Concatenate all transactions' state diffs, preserving order."""
    return [diff for data in tx_data for diff in data.state_diff]


def compute_net_state_diff(state_diffs: Sequence[StateDiff]) -> List[StateDiff]:
    """
    Collapse an ordered sequence of state diffs into one net state diff.

    For every (address, key) the first `original` seen is kept and the last
    `dirty` seen wins. Slots written back to their original value are still
    reported. Output is grouped by address in first-seen order, with keys
    in first-seen order within each address.

    Args:
        state_diffs: State diffs of all transactions, in execution order

    Returns:
        One StateDiff per distinct (address, key)

    Raises:
        RawDiffCountError: If any entry does not wrap exactly one raw diff.
    """
    # address -> storage key -> storage values. Dicts keep first-seen order.
    net: Dict[Address, Dict[Slot, StorageValues]] = {}

    for state_diff in state_diffs:
        if len(state_diff.raw) != 1:
            # Undefined upstream, so stop rather than guess.
            raise RawDiffCountError(
                len(state_diff.raw),
                f"Unexpected number of raw state diffs ({len(state_diff.raw)}): "
                f"{json.dumps(state_diff.to_dict())}",
            )
        for raw in state_diff.raw:
            slots = net.setdefault(raw.address, {})
            if raw.key not in slots:
                slots[raw.key] = StorageValues(original=raw.original, dirty=raw.dirty)
            slots[raw.key].dirty = raw.dirty

    result = []
    for address, slots in net.items():
        for key, values in slots.items():
            result.append(StateDiff(
                address=address,
                raw=[Raw(
                    address=address,
                    key=key,
                    original=values.original,
                    dirty=values.dirty,
                )],
            ))
    return result
