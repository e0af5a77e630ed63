"""Types and constants for git graph layout."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, NamedTuple

from gitlanes.exceptions import InvalidCommitError

# Layout constants
ROW_HEIGHT = 50
COLUMN_WIDTH = 30
NODE_RADIUS = 5

# Extra distance around a node that still counts as a hit
HIT_MARGIN = 5

# Colors for different lanes
LANE_COLORS: tuple[str, ...] = (
    "#4285F4",  # Blue
    "#EA4335",  # Red
    "#FBBC04",  # Yellow
    "#34A853",  # Green
    "#FF6D00",  # Orange
    "#9C27B0",  # Purple
    "#00BCD4",  # Cyan
    "#E91E63",  # Pink
)


def get_lane_color(lane: int) -> str:
    """Get color for a lane/column."""
    return LANE_COLORS[lane % len(LANE_COLORS)]


@dataclass(frozen=True)
class Commit:
    """A commit as produced by the history layer. Read-only to the graph."""

    hash: str
    parents: tuple[str, ...] = ()
    refs: tuple[str, ...] = ()
    message: str = ""
    author: str = ""
    date: str = ""
    is_head: bool = False


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class GraphNode:
    """A commit with its layout position."""

    commit: Commit
    x: float
    y: float
    color: str
    lane: int


@dataclass(frozen=True)
class GraphEdge:
    """A parent link between two laid-out commits, child first."""

    from_hash: str
    to_hash: str
    path: tuple[Point, ...]
    color: str


@dataclass(frozen=True)
class LayoutResult:
    """
    Complete layout for one commit sequence.

    Results are shared by reference while cached, so nodes are exposed as a
    read-only mapping (in input order) and edges as a tuple.
    """

    nodes: Mapping[str, GraphNode] = field(default_factory=lambda: MappingProxyType({}))
    edges: tuple[GraphEdge, ...] = ()
    lanes: int = 0
    height: float = 0


@dataclass(frozen=True)
class LayoutConfig:
    """Fixed geometry shared by the layout engine and the renderer."""

    row_height: int = ROW_HEIGHT
    column_width: int = COLUMN_WIDTH
    node_radius: int = NODE_RADIUS
    colors: tuple[str, ...] = LANE_COLORS


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    hit_rate: float


def commits_from_records(records: Iterable[Mapping[str, Any]]) -> list[Commit]:
    """
    Convert loosely typed commit payloads into Commit records.

    Accepts both the camelCase keys sent by the data layer (``isHead``) and
    snake_case keys. Raises InvalidCommitError for a missing hash, a parent or
    ref list that is not made of strings, or a hash seen twice.
    """
    commits: list[Commit] = []
    seen: set[str] = set()

    for index, record in enumerate(records):
        commit_hash = record.get("hash")
        if not isinstance(commit_hash, str) or not commit_hash:
            raise InvalidCommitError(
                f"Commit record {index} has no hash", context={"index": index}
            )
        if commit_hash in seen:
            raise InvalidCommitError(
                f"Duplicate commit hash: {commit_hash}",
                context={"index": index, "hash": commit_hash},
            )
        seen.add(commit_hash)

        parents = _string_tuple(record.get("parents", ()), "parents", index, commit_hash)
        refs = _string_tuple(record.get("refs", ()), "refs", index, commit_hash)
        is_head = record.get("isHead", record.get("is_head", False))

        commits.append(
            Commit(
                hash=commit_hash,
                parents=parents,
                refs=refs,
                message=str(record.get("message", "")),
                author=str(record.get("author", "")),
                date=str(record.get("date", "")),
                is_head=bool(is_head),
            )
        )

    return commits


def _string_tuple(value: Any, name: str, index: int, commit_hash: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InvalidCommitError(
            f"Commit {commit_hash}: {name} must be a list of strings",
            context={"index": index, "hash": commit_hash, "field": name},
        )
    items = tuple(value)
    if not all(isinstance(item, str) for item in items):
        raise InvalidCommitError(
            f"Commit {commit_hash}: {name} must be a list of strings",
            context={"index": index, "hash": commit_hash, "field": name},
        )
    return items
