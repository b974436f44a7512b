"""
Property Tests for Analytics Invariants
Verifies ordering, exact-total, pruning and graph-shape rules on generated data.
"""

import sys

from hypothesis import given, strategies as st
from hypothesis.strategies import composite

from clinical_analytics.contracts.base import Stage, is_absent_stage_value
from clinical_analytics.contracts.records import RESPONSE_CHANNELS
from clinical_analytics.core.frequency import aggregate_categories
from clinical_analytics.core.percentages import normalize_responses, normalize_shares
from clinical_analytics.core.sequence_graph import build_sequence_graph
from clinical_analytics.visualization.flow_layout import compute_flow_layout


# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

CATEGORIES = ["labeling", "catastrophizing", "mind reading", "should statements", "all-or-nothing"]
STAGE_VALUES = ["stress", "photo", "shame", "i am weak", "binge", "alone", "mirror", "restrict"]
ABSENT_VALUES = [None, "", "  ", "null", "NULL"]


@composite
def tag_records(draw):
    """Tagged events; some without a category."""
    category = draw(st.one_of(st.sampled_from(CATEGORIES), st.none()))
    record = {
        "created_at": draw(st.one_of(
            st.none(),
            st.dates().map(lambda d: d.isoformat())
        )),
        "voice_note_excerpt": draw(st.text(max_size=10)),
    }
    if category is not None:
        record["distortion_type"] = category
    return record


@composite
def response_tallies(draw):
    values = draw(st.lists(st.integers(min_value=0, max_value=500), min_size=8, max_size=8))
    tally = dict(zip(RESPONSE_CHANNELS, values))
    tally["category"] = draw(st.sampled_from(CATEGORIES))
    return tally


@composite
def sequences(draw):
    """Relapse sequences mixing present and absent stage values."""
    return {
        stage.value: draw(st.one_of(
            st.sampled_from(STAGE_VALUES),
            st.sampled_from(ABSENT_VALUES)
        ))
        for stage in Stage
    }


# =============================================================================
# FREQUENCY
# =============================================================================

@given(st.lists(tag_records(), max_size=40))
def test_frequency_sorted_with_stable_ties(records):
    result = aggregate_categories(records)

    counts = [c.count for c in result]
    assert counts == sorted(counts, reverse=True)

    first_seen = []
    for record in records:
        category = record.get("distortion_type")
        if category is not None and category not in first_seen:
            first_seen.append(category)
    for a, b in zip(result, result[1:]):
        if a.count == b.count:
            assert first_seen.index(a.full_category) < first_seen.index(b.full_category)

    assert sum(counts) == sum(1 for r in records if "distortion_type" in r)
    assert [c.color_index for c in result] == [i % 8 for i in range(len(result))]


@given(st.lists(tag_records(), max_size=40))
def test_frequency_idempotent(records):
    assert aggregate_categories(records) == aggregate_categories(records)


# =============================================================================
# PERCENTAGES
# =============================================================================

@given(st.lists(st.integers(min_value=0, max_value=10_000), min_size=8, max_size=8))
def test_shares_sum_to_exactly_100(totals):
    shares = normalize_shares(totals)

    assert all(share >= 0 for share in shares)
    if sum(totals) == 0:
        assert shares == (0,) * 8
    else:
        assert sum(shares) == 100


@given(st.lists(
    st.floats(min_value=0.0, max_value=sys.float_info.max, allow_nan=False, allow_infinity=False),
    min_size=8, max_size=8
))
def test_shares_exact_for_any_finite_floats(totals):
    shares = normalize_shares(totals)

    assert all(share >= 0 for share in shares)
    assert sum(shares) in (0, 100)
    if max(totals) > 0:
        assert sum(shares) == 100


@given(st.lists(
    st.floats(min_value=sys.float_info.max / 4, max_value=sys.float_info.max),
    min_size=8, max_size=8
))
def test_shares_exact_near_float_max(totals):
    shares = normalize_shares(totals)

    assert sum(shares) == 100
    assert all(share >= 0 for share in shares)


@given(st.lists(response_tallies(), max_size=20))
def test_rows_unique_and_sorted(tallies):
    rows = normalize_responses(tallies)

    categories = [r.category for r in rows]
    assert categories == sorted(set(categories))
    for row in rows:
        assert row.total in (0, 100)


# =============================================================================
# SEQUENCE GRAPH + LAYOUT
# =============================================================================

@given(st.lists(sequences(), max_size=30))
def test_graph_shape(batch):
    graph = build_sequence_graph(batch)
    by_id = {n.node_id: n for n in graph.nodes}

    assert [n.node_id for n in graph.nodes] == list(range(len(graph.nodes)))
    for stage in Stage:
        assert len(graph.nodes_for_stage(stage)) <= 4
    for node in graph.nodes:
        assert not is_absent_stage_value(node.full_label)

    pairs = [(e.source_node_id, e.target_node_id) for e in graph.edges]
    assert len(pairs) == len(set(pairs))
    for edge in graph.edges:
        assert edge.weight >= 1
        assert edge.source_node_id in by_id and edge.target_node_id in by_id
        assert by_id[edge.source_node_id].stage.index < by_id[edge.target_node_id].stage.index


@given(st.lists(sequences(), max_size=30))
def test_graph_and_layout_deterministic(batch):
    first = build_sequence_graph(batch)
    second = build_sequence_graph(list(batch))

    assert first == second
    assert compute_flow_layout(first) == compute_flow_layout(second)


@given(st.lists(sequences(), max_size=30))
def test_layout_canvas_bounds(batch):
    layout = compute_flow_layout(build_sequence_graph(batch))

    assert layout.width == 880
    assert layout.height >= 450
    for placed in layout.nodes:
        assert placed.y >= 100
        assert placed.y + placed.height + 80 <= layout.height
    for edge in layout.edges:
        assert 4 <= edge.thickness <= 30
