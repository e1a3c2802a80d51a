"""State diff sources: Tenderly traces and simulation files."""

from .base import DiffSource, resolve_source
from .tenderly import TenderlyTraceSource, parse_trace_document, TENDERLY_API_URL
from .simulation_file import SimulationFileSource, parse_simulation_document
