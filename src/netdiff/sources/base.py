"""Base state diff source interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..core.input_list import InputEntry
from ..errors import SourceResolutionError
from ..state.models import TxData


class DiffSource(ABC):
    """Resolves an input entry into the state diff of one transaction."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def accepts(self, entry: InputEntry) -> bool:
        pass

    @abstractmethod
    async def fetch(self, entry: InputEntry) -> TxData:
        pass

    def describe(self, entry: InputEntry) -> str:
        """Progress message shown before fetching."""
        return f"Resolving {entry.value} via {self.name}"


def resolve_source(entry: InputEntry, sources: Sequence[DiffSource]) -> DiffSource:
    """Pick the first source that accepts the entry."""
    source: Optional[DiffSource] = next((s for s in sources if s.accepts(entry)), None)
    if source is None:
        raise SourceResolutionError(
            entry.value,
            f"No state diff source for line {entry.line_number}: {entry.value}",
        )
    return source
