"""Tenderly trace source for executed transactions."""

from typing import Any, Dict, Optional

import httpx

from ..core.input_list import InputEntry
from ..errors import SourceResolutionError
from ..state.models import TxData, state_diffs_from_json
from .base import DiffSource


TENDERLY_API_URL = "https://api.tenderly.co"
MAINNET_CHAIN_ID = 1


def parse_trace_document(data: Dict[str, Any], entry: str) -> TxData:
    """Build TxData from a trace document with `state_diff` at the top level."""
    try:
        return TxData(
            state_diff=state_diffs_from_json(data.get("state_diff")),
            block_number=int(data["block_number"]),
            source=entry,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SourceResolutionError(entry, f"Malformed trace for {entry}: {e!r}") from e


class TenderlyTraceSource(DiffSource):
    """
    Fetches state diffs of executed transactions from Tenderly's public trace API.

    The client is owned by the caller so one connection pool can be shared
    by all fetches of a run.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str = TENDERLY_API_URL,
        chain_id: int = MAINNET_CHAIN_ID,
        access_key: Optional[str] = None
    ):
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.chain_id = chain_id
        self.access_key = access_key

    @property
    def name(self) -> str:
        return "tenderly"

    def accepts(self, entry: InputEntry) -> bool:
        return entry.is_transaction_hash

    def describe(self, entry: InputEntry) -> str:
        return f"Fetching state diff for transaction hash: {entry.value}"

    def trace_url(self, tx_hash: str) -> str:
        return f"{self.api_url}/api/v1/public-contract/{self.chain_id}/trace/{tx_hash}"

    async def fetch(self, entry: InputEntry) -> TxData:
        tx_hash = entry.value
        headers = {"X-Access-Key": self.access_key} if self.access_key else {}

        try:
            response = await self.client.get(self.trace_url(tx_hash), headers=headers)
        except httpx.HTTPError as e:
            raise SourceResolutionError(tx_hash, f"Failed to simulate {tx_hash}: {e!r}") from e

        if not response.is_success:
            raise SourceResolutionError(
                tx_hash,
                f"Failed to simulate {tx_hash}: {response.status_code} {response.reason_phrase}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceResolutionError(tx_hash, f"Invalid JSON for {tx_hash}: {e}") from e

        return parse_trace_document(data, tx_hash)
