"""
Contract Tests
Verifies immutability of outputs and rejection of invalid configuration.
"""

import pytest
from dataclasses import FrozenInstanceError

from clinical_analytics.contracts.base import (
    Error, ErrorCode, Result, Stage, parse_timestamp, truncate_label
)
from clinical_analytics.contracts.records import CategoryTagRecord, SequenceTuple, as_dataset
from clinical_analytics.core.frequency import FrequencyConfig, aggregate_categories
from clinical_analytics.core.percentages import ResponseConfig
from clinical_analytics.core.sequence_graph import SequenceGraphConfig, build_sequence_graph
from clinical_analytics.core.triggers import TriggerConfig
from clinical_analytics.visualization.flow_layout import FlowLayoutConfig, compute_flow_layout


# =============================================================================
# IMMUTABILITY
# =============================================================================

def test_aggregated_category_is_frozen():
    result = aggregate_categories([{"distortion_type": "labeling"}])

    with pytest.raises(FrozenInstanceError):
        result[0].count = 10


def test_graph_and_layout_are_frozen():
    graph = build_sequence_graph([SequenceTuple(circumstance="stress", trigger="photo")])
    layout = compute_flow_layout(graph)

    with pytest.raises(FrozenInstanceError):
        graph.nodes[0].label = "x"
    with pytest.raises(FrozenInstanceError):
        graph.edges[0].weight = 99
    with pytest.raises(FrozenInstanceError):
        layout.height = 0
    assert isinstance(graph.nodes, tuple)
    assert isinstance(layout.edges, tuple)


def test_error_context_is_immutable():
    error = Error(code=ErrorCode.MALFORMED_RECORD, message="bad")

    extended = error.with_context("position", "1")

    assert error.context == ()
    assert extended.context == (("position", "1"),)


def test_result_is_exclusive():
    ok = Result.success(1)
    failed = Result.failure(Error(code=ErrorCode.MALFORMED_RECORD, message="bad"))

    assert ok.is_success and not ok.is_failure
    assert failed.is_failure and failed.value is None


# =============================================================================
# CONFIG VALIDATION
# =============================================================================

@pytest.mark.parametrize("factory", [
    lambda: FrequencyConfig(palette_size=0),
    lambda: FrequencyConfig(label_max_length=5, label_keep=6),
    lambda: ResponseConfig(target_total=0),
    lambda: SequenceGraphConfig(top_k=0),
    lambda: SequenceGraphConfig(label_keep=-1),
    lambda: TriggerConfig(top_n=0),
    lambda: TriggerConfig(decimals=-1),
    lambda: FlowLayoutConfig(node_inset=160),
    lambda: FlowLayoutConfig(min_thickness=40),
])
def test_invalid_config_rejected(factory):
    with pytest.raises(ValueError):
        factory()


# =============================================================================
# WIRE PARSING
# =============================================================================

class TestWireParsing:

    def test_record_accepts_instance_or_mapping(self):
        record = CategoryTagRecord(category="labeling", timestamp=None)

        assert CategoryTagRecord.from_wire(record).value is record
        assert CategoryTagRecord.from_wire({"distortion_type": "labeling"}).value.category == "labeling"

    def test_non_mapping_record_fails(self):
        result = SequenceTuple.from_wire(42)

        assert result.is_failure
        assert result.error.code == ErrorCode.MALFORMED_RECORD

    def test_sequence_stage_values_in_order(self):
        sequence = SequenceTuple("a", "b", "c", "d", "e")

        assert sequence.stage_values() == (
            (Stage.CIRCUMSTANCE, "a"), (Stage.TRIGGER, "b"), (Stage.EMOTION, "c"),
            (Stage.THOUGHT, "d"), (Stage.BEHAVIOR, "e"),
        )

    @pytest.mark.parametrize("value", [None, "abc", b"abc", {"a": 1}, 3])
    def test_as_dataset_rejects_non_collections(self, value):
        assert as_dataset(value) is None

    def test_as_dataset_accepts_sequences(self):
        assert as_dataset(({"a": 1},)) == [{"a": 1}]

    def test_timestamps_normalised_to_utc(self):
        naive = parse_timestamp("2024-01-01T10:00:00")
        zulu = parse_timestamp("2024-01-01T10:00:00Z")

        assert naive == zulu
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None

    @pytest.mark.parametrize("label,expected", [
        ("short", "short"),
        ("exactly twenty chars", "exactly twenty chars"),
        ("all-or-nothing thinking", "all-or-nothing th..."),
    ])
    def test_truncate_label(self, label, expected):
        assert truncate_label(label, 20, 17) == expected
