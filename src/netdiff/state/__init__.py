"""State diff models and net diff calculation."""

from .models import (
    Address,
    Slot,
    Raw,
    StateDiff,
    StorageValues,
    TxData,
    state_diffs_from_json,
    state_diffs_to_json,
)
from .net_diff import (
    compute_net_state_diff,
    flatten_state_diffs,
    validate_ordering,
)
