"""Errors raised while computing a net state diff."""


class NetDiffError(Exception):
    """Base class for all netdiff failures."""


class MissingInputError(NetDiffError):
    """No input list file was supplied."""


class SourceResolutionError(NetDiffError):
    """An input entry could not be resolved into a state diff."""

    def __init__(self, entry: str, message: str):
        self.entry = entry
        super().__init__(message)


class BlockOrderError(NetDiffError):
    """Transactions were supplied out of execution order."""

    def __init__(self, previous_block: int, block: int, message: str):
        self.previous_block = previous_block
        self.block = block
        super().__init__(message)


class RawDiffCountError(NetDiffError):
    """A state diff entry did not wrap exactly one raw diff."""

    def __init__(self, count: int, message: str):
        self.count = count
        super().__init__(message)
