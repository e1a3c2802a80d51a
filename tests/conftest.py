import pytest
from rich.console import Console

from netdiff.state import TxData


@pytest.fixture
def quiet_console():
    return Console(quiet=True)


@pytest.fixture
def tx():
    def _tx(block_number, *diffs, source=None):
        return TxData(state_diff=list(diffs), block_number=block_number, source=source)
    return _tx
