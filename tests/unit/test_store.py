"""Unit tests for holdings persistence."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from portfolio_tracker.errors import PersistenceParseError
from portfolio_tracker.models import Holding
from portfolio_tracker.store import (
    HoldingsStore,
    JsonFileBackend,
    MemoryBackend,
    decode_holdings,
    encode_holdings,
)


class TestEncodeDecode:
    def test_encode_camel_case_keys(self, house: Holding) -> None:
        data = json.loads(encode_holdings([house]))
        assert data == [
            {
                "id": "asset-real_estate-1",
                "kind": "real_estate",
                "displayName": "House",
                "tickerLabel": "HOME",
                "quantity": 1.0,
                "purchaseValue": 300000.0,
                "manualValue": 450000.0,
            }
        ]

    def test_optional_values_omitted(self, bitcoin: Holding) -> None:
        data = json.loads(encode_holdings([bitcoin]))
        assert "purchaseValue" not in data[0]
        assert "manualValue" not in data[0]

    def test_decode_preserves_order(self, sample_holdings: tuple[Holding, ...]) -> None:
        assert decode_holdings(encode_holdings(sample_holdings)) == sample_holdings

    def test_missing_quantity_defaults_to_zero(self) -> None:
        payload = json.dumps([{"id": "x", "kind": "other"}])
        assert decode_holdings(payload)[0].quantity == 0.0

    def test_duplicate_ids_dropped(self) -> None:
        payload = json.dumps(
            [
                {"id": "bitcoin", "kind": "crypto", "quantity": 1},
                {"id": "bitcoin", "kind": "crypto", "quantity": 2},
            ]
        )
        holdings = decode_holdings(payload)
        assert len(holdings) == 1
        assert holdings[0].quantity == 1.0

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            '{"id": "x"}',
            "[1, 2]",
            '[{"kind": "crypto"}]',
            '[{"id": "x", "kind": "bond"}]',
            '[{"id": "x", "kind": "other", "quantity": "lots"}]',
            '[{"id": "x", "kind": "other", "quantity": true}]',
            '[{"id": "x", "kind": "crypto", "quantity": -2}]',
        ],
    )
    def test_malformed_payload_raises(self, payload: str) -> None:
        with pytest.raises(PersistenceParseError):
            decode_holdings(payload)


class TestHoldingsStore:
    def test_empty_backend_loads_empty(self) -> None:
        assert HoldingsStore(MemoryBackend()).load() == ()

    def test_malformed_payload_loads_empty(self) -> None:
        assert HoldingsStore(MemoryBackend("[{broken")).load() == ()

    def test_save_then_load(self, sample_holdings: tuple[Holding, ...]) -> None:
        store = HoldingsStore(MemoryBackend())
        store.save(sample_holdings)
        assert store.load() == sample_holdings

    def test_save_is_idempotent(self, sample_holdings: tuple[Holding, ...]) -> None:
        backend = MemoryBackend()
        store = HoldingsStore(backend)
        store.save(sample_holdings)
        first = backend.payload
        store.save(store.load())
        assert backend.payload == first


class TestJsonFileBackend:
    def test_missing_file_reads_none(self, tmp_path: Path) -> None:
        assert JsonFileBackend(tmp_path / "absent.json").read() is None

    def test_write_replaces_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "holdings.json"
        backend = JsonFileBackend(path)
        backend.write("[1, 2, 3]")
        backend.write("[]")
        assert path.read_text(encoding="utf-8") == "[]"
        assert [p.name for p in path.parent.iterdir()] == ["holdings.json"]

    def test_store_round_trip_on_disk(
        self, tmp_path: Path, sample_holdings: tuple[Holding, ...]
    ) -> None:
        path = tmp_path / "holdings.json"
        HoldingsStore(JsonFileBackend(path)).save(sample_holdings)
        assert HoldingsStore(JsonFileBackend(path)).load() == sample_holdings
