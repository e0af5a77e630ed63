"""Git graph layout engine - lane assignment and node/edge geometry."""

import time
from collections.abc import Callable, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING

from loguru import logger

from gitlanes.exceptions import ConfigError
from gitlanes.graph.cache import (
    DEFAULT_MAX_SIZE,
    DEFAULT_TTL_SECONDS,
    FINGERPRINTS,
    LayoutCache,
    TTLExpiry,
    sampled_fingerprint,
)
from gitlanes.graph.edges import build_edge_path
from gitlanes.graph.types import (
    COLUMN_WIDTH,
    LANE_COLORS,
    NODE_RADIUS,
    ROW_HEIGHT,
    CacheStats,
    Commit,
    GraphEdge,
    GraphNode,
    LayoutConfig,
    LayoutResult,
    get_lane_color,
)

if TYPE_CHECKING:
    from gitlanes.config.settings import Settings


def build_children_map(commits: Sequence[Commit]) -> dict[str, list[str]]:
    """Map each parent hash to the hashes of its children, in input order."""
    children_of: dict[str, list[str]] = {}
    for commit in commits:
        for parent_hash in commit.parents:
            children_of.setdefault(parent_hash, []).append(commit.hash)
    return children_of


def assign_lanes(
    commits: Sequence[Commit], children_of: dict[str, list[str]]
) -> dict[str, int]:
    """
    Assign a lane to every commit in one pass.

    Commits are expected newest first. A commit takes over its first parent's
    lane when that parent already has one and nobody currently holds it;
    otherwise it takes the lowest free lane. A lane is released as soon as
    every child of its holder has been placed. Secondary parents of merges get
    no special treatment and are placed when their own turn comes.
    """
    lane_of: dict[str, int] = {}
    active: dict[int, str] = {}  # lane -> hash of the commit holding it

    for commit in commits:
        lane: int | None = None

        if commit.parents:
            parent_lane = lane_of.get(commit.parents[0])
            if parent_lane is not None and parent_lane not in active:
                lane = parent_lane

        if lane is None:
            lane = 0
            while lane in active:
                lane += 1

        lane_of[commit.hash] = lane
        active[lane] = commit.hash

        children = children_of.get(commit.hash, ())
        if all(child in lane_of for child in children) and active.get(lane) == commit.hash:
            del active[lane]

    return lane_of


class GraphLayoutEngine:
    """
    Computes lane layouts for commit sequences and caches the results.

    One engine is owned by each presentation component; it is not shared
    between threads.
    """

    def __init__(
        self,
        cache: LayoutCache[str, LayoutResult] | None = None,
        fingerprint: Callable[[Sequence[Commit]], str] = sampled_fingerprint,
    ) -> None:
        self._cache: LayoutCache[str, LayoutResult] = cache or LayoutCache()
        self._fingerprint = fingerprint
        self._config = LayoutConfig(
            row_height=ROW_HEIGHT,
            column_width=COLUMN_WIDTH,
            node_radius=NODE_RADIUS,
            colors=LANE_COLORS,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GraphLayoutEngine":
        """Build an engine whose cache follows the ``cache.*`` settings."""
        ttl = settings.get("cache.ttl_seconds", DEFAULT_TTL_SECONDS)
        max_size = settings.get("cache.max_size", DEFAULT_MAX_SIZE)
        strategy = settings.get("cache.fingerprint", "sampled")

        if strategy not in FINGERPRINTS:
            raise ConfigError(
                f"Unknown fingerprint strategy: {strategy}",
                context={"choices": sorted(FINGERPRINTS)},
            )
        try:
            cache: LayoutCache[str, LayoutResult] = LayoutCache(
                max_size=int(max_size), expiry=TTLExpiry(float(ttl))
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid cache settings: {e}") from e

        return cls(cache=cache, fingerprint=FINGERPRINTS[strategy])

    def calculate_layout(self, commits: Sequence[Commit]) -> LayoutResult:
        """
        Lay out a newest-first commit sequence.

        Identical input within the cache TTL returns the very same result
        object. Parents outside the sequence produce no edge.
        """
        if not commits:
            return LayoutResult()

        key = self._fingerprint(commits)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Layout cache hit for {} commits", len(commits))
            return cached

        start = time.perf_counter()
        result = self._compute(commits)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "Laid out {} commits in {} lanes ({:.1f} ms)", len(commits), result.lanes, elapsed_ms
        )

        self._cache.put(key, result)
        return result

    def _compute(self, commits: Sequence[Commit]) -> LayoutResult:
        children_of = build_children_map(commits)
        lane_of = assign_lanes(commits, children_of)
        nodes = self._calculate_node_positions(commits, lane_of)
        edges = self._calculate_edges(commits, nodes)

        return LayoutResult(
            nodes=MappingProxyType(nodes),
            edges=tuple(edges),
            lanes=max(lane_of.values()) + 1,
            height=len(commits) * self._config.row_height,
        )

    def _calculate_node_positions(
        self, commits: Sequence[Commit], lane_of: dict[str, int]
    ) -> dict[str, GraphNode]:
        column_width = self._config.column_width
        row_height = self._config.row_height
        nodes: dict[str, GraphNode] = {}

        for index, commit in enumerate(commits):
            lane = lane_of[commit.hash]
            nodes[commit.hash] = GraphNode(
                commit=commit,
                x=lane * column_width + column_width / 2,
                y=index * row_height + row_height / 2,
                color=self.get_color(lane),
                lane=lane,
            )

        return nodes

    def _calculate_edges(
        self, commits: Sequence[Commit], nodes: dict[str, GraphNode]
    ) -> list[GraphEdge]:
        edges: list[GraphEdge] = []

        for commit in commits:
            child = nodes[commit.hash]
            for parent_hash in commit.parents:
                parent = nodes.get(parent_hash)
                if parent is None:
                    # Parent is outside the loaded window
                    continue
                edges.append(
                    GraphEdge(
                        from_hash=commit.hash,
                        to_hash=parent_hash,
                        path=build_edge_path(child, parent),
                        color=child.color,
                    )
                )

        return edges

    def clear_cache(self) -> None:
        """Drop every cached layout, e.g. after history was rewritten."""
        self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    def get_config(self) -> LayoutConfig:
        return self._config

    def get_color(self, lane: int) -> str:
        """Get the palette color for a lane; the palette cycles."""
        return get_lane_color(lane)
