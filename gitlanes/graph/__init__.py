"""Git graph layout and rendering components."""

from gitlanes.graph.layout import GraphLayoutEngine
from gitlanes.graph.renderer import GraphRenderer
from gitlanes.graph.types import (
    Commit,
    GraphEdge,
    GraphNode,
    LayoutResult,
    commits_from_records,
    get_lane_color,
)
from gitlanes.graph.widget import CommitGraphWidget

__all__ = [
    "Commit",
    "CommitGraphWidget",
    "GraphEdge",
    "GraphLayoutEngine",
    "GraphNode",
    "GraphRenderer",
    "LayoutResult",
    "commits_from_records",
    "get_lane_color",
]
