"""Tests for raw block normalization."""

from types import SimpleNamespace

import pytest

from staking_indexer.data.blocks.models import PhaseKind
from staking_indexer.data.blocks.parsers import (
    parse_block,
    parse_event,
    parse_extrinsic,
    parse_phase,
)


class TestParsePhase:
    """Tests for parse_phase."""

    def test_extrinsic_idx(self) -> None:
        """Test py-substrate-interface records with extrinsic_idx."""
        phase = parse_phase({"extrinsic_idx": 2, "phase": "ApplyExtrinsic"})

        assert phase.is_apply_extrinsic
        assert phase.extrinsic_index == 2

    def test_phase_dict(self) -> None:
        """Test polkadot.js style phase dicts."""
        assert parse_phase({"phase": {"applyExtrinsic": 4}}).extrinsic_index == 4
        assert parse_phase({"phase": {"ApplyExtrinsic": 1}}).extrinsic_index == 1

    def test_initialization_and_finalization(self) -> None:
        """Test events emitted outside extrinsic application."""
        assert parse_phase({"phase": "Initialization"}).kind is PhaseKind.INITIALIZATION
        assert parse_phase({"phase": {"finalization": None}}).kind is PhaseKind.FINALIZATION
        assert parse_phase({}).kind is PhaseKind.FINALIZATION


class TestParseEvent:
    """Tests for parse_event."""

    def test_substrate_interface_shape(self) -> None:
        """Test module_id / event_id / attributes records."""
        record = parse_event(
            3,
            {
                "extrinsic_idx": 1,
                "phase": "ApplyExtrinsic",
                "event": {
                    "module_id": "Staking",
                    "event_id": "Rewarded",
                    "attributes": {"stash": "A1", "dest": "Staked", "amount": 10},
                },
            },
        )

        assert record.index == 3
        assert record.phase.extrinsic_index == 1
        assert (record.event.section, record.event.method) == ("Staking", "Rewarded")
        assert record.event.data == ("A1", "Staked", 10)

    def test_polkadot_js_shape(self) -> None:
        """Test section / method / data records."""
        record = parse_event(
            0,
            {
                "phase": {"applyExtrinsic": 2},
                "event": {"section": "staking", "method": "PayoutStarted", "data": [50, "V2"]},
            },
        )

        assert record.phase.extrinsic_index == 2
        assert record.event.method == "PayoutStarted"
        assert record.event.data == (50, "V2")

    def test_named_parameter_list(self) -> None:
        """Test attributes given as {name, type, value} dicts."""
        record = parse_event(
            0,
            {
                "event": {
                    "module_id": "Balances",
                    "event_id": "Slashed",
                    "attributes": [
                        {"name": "who", "type": "AccountId", "value": "N1"},
                        {"name": "amount", "type": "Balance", "value": 5},
                    ],
                },
            },
        )

        assert record.event.data == ("N1", 5)

    def test_object_names(self) -> None:
        """Test names given as objects with a name attribute."""
        record = parse_event(
            0,
            {
                "event": {
                    "module_id": SimpleNamespace(name="Staking"),
                    "event_id": b"Slashed",
                    "attributes": ["V1", 1],
                },
            },
        )

        assert (record.event.section, record.event.method) == ("Staking", "Slashed")

    def test_missing_names(self) -> None:
        """Test that a record without a method is rejected."""
        with pytest.raises(ValueError, match="has no section/method"):
            parse_event(5, {"event": {"module_id": "Staking"}})

    def test_not_a_mapping(self) -> None:
        """Test that scalars are rejected."""
        with pytest.raises(ValueError, match="Expected a mapping"):
            parse_event(0, 42)


class TestParseExtrinsic:
    """Tests for parse_extrinsic."""

    def test_call_dict(self) -> None:
        """Test py-substrate-interface extrinsics."""
        extrinsic = parse_extrinsic(
            3,
            {
                "address": "SIGNER",
                "call": {
                    "call_module": "Staking",
                    "call_function": "payout_stakers",
                    "call_args": [
                        {"name": "validator_stash", "type": "AccountId", "value": "V1"},
                        {"name": "era", "type": "EraIndex", "value": 100},
                    ],
                },
            },
        )

        assert extrinsic.index == 3
        assert (extrinsic.section, extrinsic.method) == ("Staking", "payout_stakers")
        assert extrinsic.args == ("V1", 100)

    def test_polkadot_js_method_dict(self) -> None:
        """Test extrinsics with a method dict."""
        extrinsic = parse_extrinsic(
            1,
            {"method": {"section": "utility", "method": "batchAll", "args": {"calls": []}}},
        )

        assert (extrinsic.section, extrinsic.method) == ("utility", "batchAll")
        assert extrinsic.args == ([],)

    def test_flat_extrinsic(self) -> None:
        """Test extrinsics given as a flat dict."""
        extrinsic = parse_extrinsic(0, {"section": "timestamp", "method": "set", "args": [1]})

        assert extrinsic.args == (1,)

    def test_missing_call(self) -> None:
        """Test that an extrinsic without call is rejected."""
        with pytest.raises(ValueError, match="has no call module/function"):
            parse_extrinsic(0, {"signature": "0x00"})


class TestParseBlock:
    """Tests for parse_block."""

    def test_indices_follow_list_positions(self) -> None:
        """Test that events and extrinsics are indexed by their position."""
        block = parse_block(
            block_number=1000,
            timestamp=1709294400000,
            active_era=101,
            raw_events=[
                {"phase": {"applyExtrinsic": 1}, "event": {"section": "system", "method": "ExtrinsicSuccess", "data": []}},
                {"phase": {"applyExtrinsic": 1}, "event": {"section": "staking", "method": "Rewarded", "data": ["A1", "1"]}},
            ],
            raw_extrinsics=[
                {"method": {"section": "timestamp", "method": "set", "args": [1709294400000]}},
                {"method": {"section": "staking", "method": "payoutStakers", "args": ["V1", 100]}},
            ],
        )

        assert block.block_number == 1000
        assert block.active_era == 101
        assert [e.index for e in block.extrinsics] == [0, 1]
        assert [e.index for e in block.events] == [0, 1]
        assert block.event_at(1).event.method == "Rewarded"

    def test_invalid_event_fails_block(self) -> None:
        """Test that one unreadable event fails the whole block."""
        with pytest.raises(ValueError):
            parse_block(1, 0, 1, raw_events=[{"event": {}}], raw_extrinsics=[])
