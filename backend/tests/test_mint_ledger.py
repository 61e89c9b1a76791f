import asyncio
import json
import time

import pytest

from factories import random_address
from mintscan.utils.common import Utils
from mintscan.utils.mint_ledger import MintLedger
from mintscan.utils.models import MintInitRecord
from mintscan.utils.solana_error import PersistenceError


def test_load_missing_file_starts_empty(mints_file):
    ledger = MintLedger(mints_file)
    assert ledger.load() == 0
    assert len(ledger) == 0
    assert not mints_file.exists()


@pytest.mark.asyncio
async def test_insert_is_idempotent(mints_file, monkeypatch):
    writes = []
    original = Utils.write_json_atomic
    monkeypatch.setattr(Utils, "write_json_atomic", lambda path, data: writes.append(list(data)) or original(path, data))

    ledger = MintLedger(mints_file)
    ledger.load()
    mint = random_address()

    assert await ledger.insert_if_absent(MintInitRecord(mint_address=mint, decimals=6))
    assert not await ledger.insert_if_absent(MintInitRecord(mint_address=mint, decimals=9))
    assert not await ledger.insert_if_absent(mint)

    assert len(ledger) == 1
    assert writes == [[mint]]
    assert json.loads(mints_file.read_text()) == [mint]
    # First sighting wins
    assert ledger.snapshot()[0].decimals == 6


@pytest.mark.asyncio
async def test_persisted_file_round_trips_in_discovery_order(mints_file):
    mints = [random_address() for _ in range(5)]
    ledger = MintLedger(mints_file)
    for mint in mints:
        await ledger.insert_if_absent(mint)

    reloaded = MintLedger(mints_file)
    assert reloaded.load() == 5
    assert reloaded.addresses() == mints
    assert all(mint in reloaded for mint in mints)


def test_load_collapses_duplicates_and_skips_invalid_entries(mints_file):
    a, b = random_address(), random_address()
    mints_file.write_text(json.dumps([a, b, a, 42, "", None]))

    ledger = MintLedger(mints_file)

    assert ledger.load() == 2
    assert ledger.addresses() == [a, b]


@pytest.mark.parametrize("content", ["[\"abc\", ", "{\"mints\": []}", ""])
def test_corrupt_file_starts_empty(mints_file, content):
    mints_file.write_text(content)
    ledger = MintLedger(mints_file)
    assert ledger.load() == 0
    assert len(ledger) == 0


@pytest.mark.asyncio
async def test_write_failure_keeps_memory_authoritative(mints_file, monkeypatch):
    def failing_write(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(Utils, "write_json_atomic", failing_write)
    ledger = MintLedger(mints_file)
    mint = random_address()

    assert await ledger.insert_if_absent(mint)
    assert mint in ledger
    assert ledger.write_failures == 1
    assert "disk full" in ledger.last_write_error

    with pytest.raises(PersistenceError):
        await ledger.persist()

    monkeypatch.undo()
    await ledger.insert_if_absent(random_address())
    assert ledger.last_write_error is None
    assert json.loads(mints_file.read_text())[0] == mint


@pytest.mark.asyncio
async def test_snapshot_and_addresses_limits(mints_file):
    ledger = MintLedger(mints_file)
    mints = [random_address() for _ in range(4)]
    for mint in mints:
        await ledger.insert_if_absent(mint)

    assert ledger.addresses(limit=2) == mints[-2:]
    assert ledger.addresses(limit=0) == []
    assert [r.mint_address for r in ledger.snapshot(limit=3)] == list(reversed(mints))[:3]
    assert [r.mint_address for r in ledger.snapshot(newest_first=False)] == mints


@pytest.mark.asyncio
async def test_snapshot_is_a_copy(mints_file):
    ledger = MintLedger(mints_file)
    await ledger.insert_if_absent(random_address())
    snapshot = ledger.snapshot()
    await ledger.insert_if_absent(random_address())
    assert len(snapshot) == 1
    assert len(ledger) == 2


@pytest.mark.asyncio
async def test_in_memory_ledger_without_path():
    ledger = MintLedger()
    assert ledger.load() == 0
    assert await ledger.insert_if_absent(random_address())
    assert ledger.write_failures == 0


@pytest.mark.asyncio
async def test_persisting_a_large_ledger_does_not_stall_readers(mints_file):
    mints_file.write_text(json.dumps([f"Mint{i:040d}" for i in range(200_000)]))
    ledger = MintLedger(mints_file)
    assert ledger.load() == 200_000

    gaps = []
    done = asyncio.Event()

    async def reader():
        last = time.perf_counter()
        while not done.is_set():
            await asyncio.sleep(0.001)
            ledger.addresses(limit=10)
            now = time.perf_counter()
            gaps.append(now - last)
            last = now

    reader_task = asyncio.create_task(reader())
    await asyncio.sleep(0.01)
    for _ in range(3):
        assert await ledger.insert_if_absent(random_address())
    done.set()
    await reader_task

    assert len(json.loads(mints_file.read_text())) == 200_003
    assert max(gaps) < 0.1
