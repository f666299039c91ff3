"""
Lineage graph tier classification.

Partitions a lineage graph into source, processor and output tiers by edge
direction alone. This is degree based, not a topological sort: members of a
cycle have both incoming and outgoing edges and fold into the processor tier.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from src.logging import get_logger

logger = get_logger('LINEAGE')


@dataclass(frozen=True)
class LineageNode:
    id: str
    label: str = ""
    type: str = "UNKNOWN"
    subtype: Optional[str] = None
    field_count: Optional[int] = None
    table_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        kind, resource_type = node_kind(self.type, self.subtype)
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "subtype": self.subtype,
            "fields": self.field_count,
            "tables": self.table_count,
            "kind": kind,
            "resourceType": resource_type,
        }


@dataclass(frozen=True)
class LineageEdge:
    """Directed edge; ``source`` produces data consumed by ``target``."""

    source: str
    target: str


@dataclass
class LineageGroups:
    sources: List[LineageNode] = field(default_factory=list)
    processors: List[LineageNode] = field(default_factory=list)
    outputs: List[LineageNode] = field(default_factory=list)
    standalone: bool = False
    standalone_node: Optional[LineageNode] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sources": [n.to_dict() for n in self.sources],
            "processors": [n.to_dict() for n in self.processors],
            "outputs": [n.to_dict() for n in self.outputs],
            "standalone": self.standalone,
            "standaloneNode": self.standalone_node.to_dict() if self.standalone_node else None,
        }


def classify(nodes: Iterable[LineageNode], edges: Iterable[LineageEdge]) -> LineageGroups:
    """
    Group lineage nodes into tiers.

    - sources: no incoming edges (isolated nodes count as sources only)
    - outputs: no outgoing edges but at least one incoming
    - processors: both incoming and outgoing edges

    A graph of exactly one node and no edges is reported as standalone with
    all tiers empty. Group order follows the input node order.
    """
    nodes = list(nodes)
    edges = list(edges)

    incoming: Dict[str, Set[str]] = {}
    outgoing: Dict[str, Set[str]] = {}
    for edge in edges:
        outgoing.setdefault(edge.source, set()).add(edge.target)
        incoming.setdefault(edge.target, set()).add(edge.source)

    if len(nodes) == 1 and not edges:
        return LineageGroups(standalone=True, standalone_node=nodes[0])

    groups = LineageGroups()
    for node in nodes:
        is_root = not incoming.get(node.id)
        is_leaf = not outgoing.get(node.id)
        if is_root:
            groups.sources.append(node)
        elif is_leaf:
            groups.outputs.append(node)
        else:
            groups.processors.append(node)

    logger.debug(
        f"graph classified | nodes:{len(nodes)} | edges:{len(edges)} | "
        f"sources:{len(groups.sources)} | processors:{len(groups.processors)} | outputs:{len(groups.outputs)}"
    )
    return groups


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (list, tuple)):
        return len(value)
    return None


def parse_lineage_graph(response: Dict[str, Any]) -> Tuple[List[LineageNode], List[LineageEdge]]:
    """
    Read nodes and edges from a lineage-graphs API response.

    Nodes arrive as a mapping keyed by node id; edges missing either end are
    skipped.
    """
    graph = (response or {}).get("graph") or response or {}

    nodes = []
    for node_id, raw in (graph.get("nodes") or {}).items():
        raw = raw or {}
        metadata = raw.get("metadata") or {}
        nodes.append(LineageNode(
            id=node_id,
            label=raw.get("label") or node_id,
            type=metadata.get("type") or "UNKNOWN",
            subtype=metadata.get("subtype"),
            field_count=_int_or_none(metadata.get("fields")),
            table_count=_int_or_none(metadata.get("tables")),
        ))

    edges = [
        LineageEdge(source=edge["source"], target=edge["target"])
        for edge in graph.get("edges") or []
        if isinstance(edge, dict) and edge.get("source") and edge.get("target")
    ]
    return nodes, edges


def node_kind(node_type: Optional[str], subtype: Optional[str]) -> Tuple[str, str]:
    """
    Display kind and follow-up resource type of a lineage node.

    Returns:
        (kind, resource_type), e.g. ("QVD", "dataset")
    """
    t = (node_type or "").upper()
    s = (subtype or "").upper()

    if "APP" in t:
        kind = "App"
    elif t == "DATASET" and s == "FILE":
        kind = "QVD"
    elif s == "TABLE":
        kind = "Table"
    elif t == "DATASET":
        kind = "Dataset"
    else:
        kind = "Source"

    if "APP" in t:
        resource_type = "app"
    elif t == "DATASET":
        resource_type = "dataset"
    else:
        resource_type = "resource"
    return kind, resource_type
