#!/usr/bin/env python3
"""
Tests for lineage tier classification and graph parsing.
"""

from src.visualization.lineage import (
    LineageEdge,
    LineageNode,
    classify,
    node_kind,
    parse_lineage_graph,
)


def ids(nodes):
    return [node.id for node in nodes]


def test_linear_chain():
    nodes = [LineageNode("a"), LineageNode("b"), LineageNode("c")]
    edges = [LineageEdge("a", "b"), LineageEdge("b", "c")]

    groups = classify(nodes, edges)

    assert ids(groups.sources) == ["a"]
    assert ids(groups.processors) == ["b"]
    assert ids(groups.outputs) == ["c"]
    assert not groups.standalone


def test_single_node_is_standalone():
    node = LineageNode("qri:app:1", label="Sales")

    groups = classify([node], [])

    assert groups.standalone
    assert groups.standalone_node == node
    assert groups.sources == [] and groups.processors == [] and groups.outputs == []


def test_isolated_node_counts_as_source():
    nodes = [LineageNode("a"), LineageNode("b"), LineageNode("lonely")]
    edges = [LineageEdge("a", "b")]

    groups = classify(nodes, edges)

    assert ids(groups.sources) == ["a", "lonely"]
    assert ids(groups.outputs) == ["b"]


def test_disconnected_nodes_without_edges_are_sources():
    groups = classify([LineageNode("a"), LineageNode("b")], [])

    assert ids(groups.sources) == ["a", "b"]
    assert groups.processors == [] and groups.outputs == []
    assert not groups.standalone
    assert groups.standalone_node is None


def test_cycle_folds_into_processors():
    nodes = [LineageNode("x"), LineageNode("y"), LineageNode("z")]
    edges = [LineageEdge("x", "y"), LineageEdge("y", "x"), LineageEdge("y", "z")]

    groups = classify(nodes, edges)

    assert ids(groups.sources) == []
    assert ids(groups.processors) == ["x", "y"]
    assert ids(groups.outputs) == ["z"]


def test_every_node_in_exactly_one_group():
    nodes = [LineageNode(n) for n in "abcdef"]
    edges = [LineageEdge("a", "c"), LineageEdge("b", "c"), LineageEdge("c", "d"), LineageEdge("c", "e")]

    groups = classify(nodes, edges)
    grouped = ids(groups.sources) + ids(groups.processors) + ids(groups.outputs)

    assert sorted(grouped) == list("abcdef")
    assert ids(groups.sources) == ["a", "b", "f"]


def test_empty_graph():
    groups = classify([], [])

    assert not groups.standalone
    assert groups.to_dict()["sources"] == []


def test_parse_graph_response():
    response = {
        "graph": {
            "nodes": {
                "qri:db:1": {"label": "orders.qvd", "metadata": {"type": "DATASET", "subtype": "FILE", "fields": ["a", "b"]}},
                "qri:app:2": {"label": "Sales", "metadata": {"type": "APP", "tables": 4}},
            },
            "edges": [
                {"source": "qri:db:1", "target": "qri:app:2"},
                {"source": "qri:db:1"},
            ],
        }
    }

    nodes, edges = parse_lineage_graph(response)

    assert [n.id for n in nodes] == ["qri:db:1", "qri:app:2"]
    assert nodes[0].field_count == 2
    assert nodes[1].table_count == 4
    assert edges == [LineageEdge("qri:db:1", "qri:app:2")]

    groups = classify(nodes, edges).to_dict()
    assert groups["sources"][0]["kind"] == "QVD"
    assert groups["outputs"][0]["resourceType"] == "app"


def test_parse_graph_without_wrapper():
    nodes, edges = parse_lineage_graph({"nodes": {"n1": {}}, "edges": []})

    assert nodes == [LineageNode("n1", label="n1")]
    assert edges == []


def test_node_kind():
    assert node_kind("APP", None) == ("App", "app")
    assert node_kind("DATASET", "TABLE") == ("Table", "dataset")
    assert node_kind("DATASET", None) == ("Dataset", "dataset")
    assert node_kind("DB_TABLE", "table") == ("Table", "resource")
    assert node_kind(None, None) == ("Source", "resource")
