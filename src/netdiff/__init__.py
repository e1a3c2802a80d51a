"""Net storage state diff across an ordered sequence of transactions."""

__version__ = "0.1.0"
