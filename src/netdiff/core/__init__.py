"""Input list handling and run orchestration."""

from .input_list import EntryKind, InputEntry, parse_input_list, read_input_list
