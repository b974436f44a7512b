"""
Sequence Graph Builder
======================

Builds the pruned, weighted, stage-ordered flow graph from relapse
sequences (circumstance -> trigger -> emotion -> thought -> behavior).

PIPELINE:
=========
1. Filter absent stage values per sequence (shared predicate)
2. Count every (stage, value) pair
3. Keep the top-K pairs per stage (ties: first seen)
4. Assign ids stage-major, then frequency descending
5. Accumulate edges between consecutive surviving entries

An absent stage does not break the chain: its neighbours are linked
directly. A transition whose endpoint was pruned is dropped.

EDGE ORDER:
===========
Edges come out in order of first occurrence of the transition in the
source sequences. Renderers paint them in that order.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

from ..contracts.base import Error, ErrorCode, Stage, is_absent_stage_value, truncate_label
from ..contracts.records import SequenceTuple, as_dataset
from ..contracts.views import FlowGraph, GraphEdge, GraphNode
from ..observability import LogCollector


NodeKey = Tuple[Stage, str]


@dataclass(frozen=True)
class SequenceGraphConfig:
    """Pruning and label constants for the flow graph."""
    top_k: int = 4
    label_max_length: int = 12
    label_keep: int = 9

    def __post_init__(self):
        if self.top_k < 1:
            raise ValueError("top_k must be at least 1")
        if not 0 <= self.label_keep <= self.label_max_length:
            raise ValueError("label_keep must be between 0 and label_max_length")


def present_stages(sequence: SequenceTuple) -> Tuple[NodeKey, ...]:
    """Stage 1: (stage, value) pairs that are present, in canonical order."""
    return tuple(
        (stage, value)
        for stage, value in sequence.stage_values()
        if not is_absent_stage_value(value)
    )


def count_stage_values(filtered: List[Tuple[NodeKey, ...]]) -> Dict[NodeKey, int]:
    """Stage 2: occurrence count per (stage, value), insertion ordered."""
    counts: Dict[NodeKey, int] = {}
    for pairs in filtered:
        for key in pairs:
            counts[key] = counts.get(key, 0) + 1
    return counts


def select_top_k(counts: Dict[NodeKey, int], top_k: int) -> Dict[Stage, List[Tuple[str, int]]]:
    """Stage 3: per stage, the top_k values by count (stable on ties)."""
    by_stage: Dict[Stage, List[Tuple[str, int]]] = {stage: [] for stage in Stage.ordered()}
    for (stage, value), count in counts.items():
        by_stage[stage].append((value, count))

    return {
        stage: sorted(values, key=lambda item: item[1], reverse=True)[:top_k]
        for stage, values in by_stage.items()
    }


def build_sequence_graph(
    sequences: Any,
    config: Optional[SequenceGraphConfig] = None,
    collector: Optional[LogCollector] = None
) -> FlowGraph:
    """Build the flow graph; never raises, empty input gives an empty graph."""
    config = config or SequenceGraphConfig()
    items = as_dataset(sequences)
    if items is None:
        if sequences is not None and collector:
            collector.skipped("build_sequence_graph", Error(
                code=ErrorCode.MALFORMED_DATASET,
                message=f"Dataset is not a collection: {type(sequences).__name__}"
            ))
        return FlowGraph.empty()

    filtered: List[Tuple[NodeKey, ...]] = []
    for position, item in enumerate(items):
        parsed = SequenceTuple.from_wire(item)
        if parsed.is_failure:
            if collector:
                collector.skipped(
                    "build_sequence_graph",
                    parsed.error.with_context("position", str(position))
                )
            continue
        filtered.append(present_stages(parsed.value))

    counts = count_stage_values(filtered)
    survivors = select_top_k(counts, config.top_k)

    # Stage 4: materialize nodes
    node_ids: Dict[NodeKey, int] = {}
    nodes: List[GraphNode] = []
    for stage in Stage.ordered():
        for value, count in survivors[stage]:
            node_id = len(nodes)
            node_ids[(stage, value)] = node_id
            nodes.append(GraphNode(
                node_id=node_id,
                stage=stage,
                label=truncate_label(value, config.label_max_length, config.label_keep),
                full_label=value,
                count=count
            ))

    # Stage 5: accumulate edges
    graph = nx.DiGraph()
    graph.add_nodes_from(range(len(nodes)))
    first_seen: List[Tuple[int, int]] = []
    dropped = 0
    for pairs in filtered:
        for source_key, target_key in zip(pairs, pairs[1:]):
            source_id = node_ids.get(source_key)
            target_id = node_ids.get(target_key)
            if source_id is None or target_id is None:
                dropped += 1
                continue
            if graph.has_edge(source_id, target_id):
                graph[source_id][target_id]['weight'] += 1
            else:
                graph.add_edge(source_id, target_id, weight=1)
                first_seen.append((source_id, target_id))

    if dropped and collector:
        collector.dropped("build_sequence_graph", Error(
            code=ErrorCode.PRUNED_ENDPOINT,
            message="Transitions touching pruned values were dropped",
            context=(("count", str(dropped)),)
        ))

    # First-occurrence order
    edges = tuple(
        GraphEdge(source_node_id=source, target_node_id=target, weight=graph[source][target]['weight'])
        for source, target in first_seen
    )

    return FlowGraph(nodes=tuple(nodes), edges=edges)
