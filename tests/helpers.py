"""Shared builders for state diff test data."""

import json

from netdiff.state import Raw, StateDiff

ADDR1 = "0x1111111111111111111111111111111111111111"
ADDR2 = "0x2222222222222222222222222222222222222222"

TX_A = "0x3f7c36a1d636cdb23bf4f9171c27ebe58b73f4c0e6a33dbaac2c2f3c142faf50"
TX_B = "0x29bb617fac8f49f5c934cc776b22d47e187ab482e86f21e4502a23ba1c9ad0da"


def slot(n: int) -> str:
    return "0x" + format(n, "064x")


def make_diff(address: str, key: str, original: str, dirty: str) -> StateDiff:
    return StateDiff(address=address, raw=[Raw(address=address, key=key, original=original, dirty=dirty)])


def diff_json(address: str, key: str, original: str, dirty: str) -> dict:
    return make_diff(address, key, original, dirty).to_dict()


def write_simulation(path, diffs, block_number):
    """Write a Tenderly simulation export with the given state diff entries."""
    path.write_text(json.dumps({
        "block_number": block_number,
        "transaction": {"transaction_info": {"state_diff": diffs}},
    }))
    return path
