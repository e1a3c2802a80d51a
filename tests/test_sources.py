import asyncio
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from netdiff.core.input_list import EntryKind, InputEntry
from netdiff.errors import SourceResolutionError
from netdiff.sources import (
    SimulationFileSource,
    TenderlyTraceSource,
    parse_simulation_document,
    resolve_source,
)

from tests.helpers import ADDR1, TX_A, diff_json, slot, write_simulation


def hash_entry(value=TX_A):
    return InputEntry(value=value, kind=EntryKind.TRANSACTION_HASH, line_number=1)


def file_entry(value):
    return InputEntry(value=str(value), kind=EntryKind.SIMULATION_FILE, line_number=1)


def fetch_with(handler, entry, **kwargs):
    async def _fetch():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await TenderlyTraceSource(client, **kwargs).fetch(entry)
    return asyncio.run(_fetch())


def test_tenderly_fetch_parses_trace():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, json={
            "block_number": 19000000,
            "state_diff": [diff_json(ADDR1, slot(1), slot(0), slot(1))],
        })

    data = fetch_with(handler, hash_entry())

    assert seen["url"] == f"https://api.tenderly.co/api/v1/public-contract/1/trace/{TX_A}"
    assert "x-access-key" not in seen["headers"]
    assert data.block_number == 19000000
    assert data.source == TX_A
    assert data.state_diff[0].raw[0].dirty == slot(1)


def test_tenderly_uses_chain_id_and_access_key():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-access-key")
        return httpx.Response(200, json={"block_number": 1, "state_diff": []})

    fetch_with(handler, hash_entry(), api_url="http://tenderly.local/", chain_id=10, access_key="secret")

    assert seen["url"] == f"http://tenderly.local/api/v1/public-contract/10/trace/{TX_A}"
    assert seen["key"] == "secret"


def test_tenderly_null_state_diff_is_empty():
    data = fetch_with(
        lambda request: httpx.Response(200, json={"block_number": 7, "state_diff": None}),
        hash_entry(),
    )
    assert data.state_diff == []


def test_tenderly_error_status():
    with pytest.raises(SourceResolutionError) as exc_info:
        fetch_with(lambda request: httpx.Response(404), hash_entry())

    message = str(exc_info.value)
    assert TX_A in message
    assert "404 Not Found" in message
    assert exc_info.value.entry == TX_A


def test_tenderly_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SourceResolutionError, match="Failed to simulate"):
        fetch_with(handler, hash_entry())


def test_tenderly_invalid_json():
    with pytest.raises(SourceResolutionError, match="Invalid JSON"):
        fetch_with(lambda request: httpx.Response(200, text="<html>"), hash_entry())


def test_tenderly_missing_block_number():
    with pytest.raises(SourceResolutionError, match="Malformed trace"):
        fetch_with(lambda request: httpx.Response(200, json={"state_diff": []}), hash_entry())


def test_simulation_file_tenderly_layout(tmp_path):
    path = write_simulation(tmp_path / "sim.json", [diff_json(ADDR1, slot(1), slot(2), slot(3))], 42)

    data = asyncio.run(SimulationFileSource().fetch(file_entry(path)))

    assert data.block_number == 42
    assert data.state_diff[0].raw[0].original == slot(2)
    assert data.source == str(path)


def test_simulation_info_layout():
    doc = {
        "block_number": "43",
        "simulation": {"info": {"state_diff": [diff_json(ADDR1, slot(1), slot(2), slot(3))]}},
    }
    data = parse_simulation_document(doc, "sim.json")
    assert data.block_number == 43
    assert len(data.state_diff) == 1


def test_simulation_nested_block_number():
    doc = {"transaction": {"block_number": 44, "transaction_info": {"state_diff": []}}}
    assert parse_simulation_document(doc, "sim.json").block_number == 44


def test_simulation_file_relative_to_base_dir(tmp_path):
    write_simulation(tmp_path / "sim.json", [], 1)
    data = asyncio.run(SimulationFileSource(base_dir=tmp_path).fetch(file_entry("sim.json")))
    assert data.block_number == 1


def test_simulation_file_missing(tmp_path):
    with pytest.raises(SourceResolutionError, match="Cannot read simulation file"):
        asyncio.run(SimulationFileSource().fetch(file_entry(tmp_path / "nope.json")))


def test_simulation_file_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(SourceResolutionError, match="Invalid JSON"):
        asyncio.run(SimulationFileSource().fetch(file_entry(path)))


def test_simulation_file_without_state_diff(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"block_number": 1}))
    with pytest.raises(SourceResolutionError, match="No state diff"):
        asyncio.run(SimulationFileSource().fetch(file_entry(path)))


def test_resolve_source_picks_by_kind():
    tenderly = TenderlyTraceSource(MagicMock())
    files = SimulationFileSource()

    assert resolve_source(hash_entry(), [tenderly, files]) is tenderly
    assert resolve_source(file_entry("sim.json"), [tenderly, files]) is files

    with pytest.raises(SourceResolutionError, match="No state diff source"):
        resolve_source(hash_entry(), [files])


def test_simulation_file_not_utf8(tmp_path):
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe{}")
    with pytest.raises(SourceResolutionError, match="not UTF-8") as exc_info:
        asyncio.run(SimulationFileSource().fetch(file_entry(path)))
    assert str(path) in str(exc_info.value)
    assert exc_info.value.entry == str(path)


def test_simulation_file_read_runs_in_thread(tmp_path):
    path = write_simulation(tmp_path / "sim.json", [], 3)
    source = SimulationFileSource()

    with patch("netdiff.sources.simulation_file.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
        data = asyncio.run(source.fetch(file_entry(path)))

    to_thread.assert_called_once_with(source.read, file_entry(path))
    assert data.block_number == 3
