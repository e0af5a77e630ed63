"""Git graph renderer - paints a layout onto a raster buffer and hit-tests it."""

import math
from collections.abc import Collection, Iterable, Mapping
from enum import Enum
from typing import Protocol

from loguru import logger
from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen

from gitlanes.exceptions import RenderSurfaceError
from gitlanes.graph.edges import edge_painter_path
from gitlanes.graph.types import HIT_MARGIN, NODE_RADIUS, GraphEdge, GraphNode


class Surface(Protocol):
    """Anything with a logical size and a device pixel ratio (QWidget, QWindow)."""

    def size(self) -> QSize: ...

    def devicePixelRatioF(self) -> float: ...  # noqa: N802


class OffscreenSurface:
    """A fixed-size surface for headless rendering (exports, tests)."""

    def __init__(self, width: int, height: int, pixel_ratio: float = 1.0) -> None:
        self._size = QSize(width, height)
        self._pixel_ratio = pixel_ratio

    def size(self) -> QSize:
        return QSize(self._size)

    def devicePixelRatioF(self) -> float:  # noqa: N802
        return self._pixel_ratio

    def set_size(self, width: int, height: int) -> None:
        self._size = QSize(width, height)

    def set_pixel_ratio(self, pixel_ratio: float) -> None:
        self._pixel_ratio = pixel_ratio


class RendererState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DESTROYED = "destroyed"


# Decoration rings around a node
HEAD_RING_OFFSET = 3
SELECTED_RING_OFFSET = 5
HOVER_RING_OFFSET = 7
SELECTED_COLOR = QColor("#FFD700")  # Gold
HOVER_COLOR = QColor(255, 255, 255, 128)

EDGE_WIDTH = 2
RING_WIDTH = 2

# Ref chips
REF_OFFSET_X = 15
REF_PADDING = 4
REF_HEIGHT = 16
REF_SPACING = 5
REF_FONT_PIXEL_SIZE = 11
TAG_PREFIX = "tag: "

REF_COLOR_HEAD = QColor("#4285F4")
REF_COLOR_TAG = QColor("#FBBC04")
REF_COLOR_REMOTE = QColor("#EA4335")
REF_COLOR_DEFAULT = QColor("#666666")
REF_TEXT_LIGHT = QColor("#FFFFFF")
REF_TEXT_DARK = QColor("#000000")


def ref_colors(ref: str) -> tuple[QColor, QColor]:
    """Background and text color for a ref chip."""
    if "HEAD" in ref:
        return REF_COLOR_HEAD, REF_TEXT_LIGHT
    if ref.startswith("tag:"):
        return REF_COLOR_TAG, REF_TEXT_DARK
    if "origin/" in ref:
        return REF_COLOR_REMOTE, REF_TEXT_LIGHT
    return REF_COLOR_DEFAULT, REF_TEXT_LIGHT


class GraphRenderer:
    """
    Paints nodes and edges into an offscreen image sized for a surface.

    The backing image has ``logical size * device pixel ratio`` pixels and
    every paint pass is scaled by the ratio, so all drawing is in logical
    units. Pan and zoom are applied on top: screen = graph * scale + offset.
    """

    MIN_SCALE = 0.5
    MAX_SCALE = 2.0

    def __init__(self, surface: Surface, node_radius: float = NODE_RADIUS) -> None:
        self._surface = surface
        self.node_radius = node_radius
        self.state = RendererState.UNINITIALIZED

        self._scale = 1.0
        self._offset_x = 0.0
        self._offset_y = 0.0

        self._image: QImage | None = None
        self._logical_size = QSize()
        self._pixel_ratio = 1.0

        self._font = QFont("sans-serif")
        self._font.setPixelSize(REF_FONT_PIXEL_SIZE)

        self._setup_surface()
        self.state = RendererState.READY

    # --- Surface management ---

    def _setup_surface(self) -> None:
        """(Re)allocate the backing image from the surface's size and pixel ratio."""
        logical = self._surface.size()
        ratio = self._surface.devicePixelRatioF() or 1.0

        width = math.ceil(logical.width() * ratio)
        height = math.ceil(logical.height() * ratio)
        image = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
        if image.isNull():
            raise RenderSurfaceError(
                "Failed to get 2D context: surface has no drawable area",
                context={"width": logical.width(), "height": logical.height(), "ratio": ratio},
            )

        image.fill(Qt.GlobalColor.transparent)
        probe = QPainter()
        if not probe.begin(image):
            raise RenderSurfaceError(
                "Failed to get 2D context",
                context={"width": logical.width(), "height": logical.height(), "ratio": ratio},
            )
        probe.end()

        self._image = image
        self._logical_size = QSize(logical)
        self._pixel_ratio = ratio
        logger.debug(
            "Render surface {}x{} @{}x -> {}x{} px",
            logical.width(),
            logical.height(),
            ratio,
            width,
            height,
        )

    def _begin(self) -> QPainter | None:
        """Open a painter in logical units, or None once destroyed."""
        if self.state is not RendererState.READY or self._image is None:
            return None
        painter = QPainter()
        if not painter.begin(self._image):
            raise RenderSurfaceError("Failed to get 2D context")
        painter.scale(self._pixel_ratio, self._pixel_ratio)
        return painter

    def resize(self) -> None:
        """Follow a change of the surface's size or pixel ratio."""
        if self.state is not RendererState.READY:
            return
        self._setup_surface()

    @property
    def image(self) -> QImage | None:
        """The backing image; None after destroy()."""
        return self._image

    @property
    def logical_size(self) -> QSize:
        return QSize(self._logical_size)

    @property
    def pixel_ratio(self) -> float:
        return self._pixel_ratio

    # --- Pan / zoom ---

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def offset(self) -> tuple[float, float]:
        return (self._offset_x, self._offset_y)

    def set_scale(self, scale: float) -> None:
        """Set zoom, clamped to [MIN_SCALE, MAX_SCALE]."""
        self._scale = max(self.MIN_SCALE, min(self.MAX_SCALE, scale))

    def set_offset(self, x: float, y: float) -> None:
        self._offset_x = x
        self._offset_y = y

    # --- Painting ---

    def clear(self) -> None:
        if self._image is None or self.state is not RendererState.READY:
            return
        self._image.fill(Qt.GlobalColor.transparent)

    def render(
        self,
        nodes: Mapping[str, GraphNode],
        edges: Iterable[GraphEdge],
        selected_hashes: Collection[str] = frozenset(),
        hovered_hash: str | None = None,
    ) -> None:
        """Repaint the whole graph: edges first, nodes on top."""
        self.clear()
        painter = self._begin()
        if painter is None:
            return

        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
            painter.translate(self._offset_x, self._offset_y)
            painter.scale(self._scale, self._scale)

            for edge in edges:
                self._draw_edge(painter, edge)

            for node in nodes.values():
                commit_hash = node.commit.hash
                self._draw_node(
                    painter,
                    node,
                    is_selected=commit_hash in selected_hashes,
                    is_hovered=commit_hash == hovered_hash,
                )
        finally:
            painter.end()

    def _draw_edge(self, painter: QPainter, edge: GraphEdge) -> None:
        if len(edge.path) < 2:
            return

        pen = QPen(QColor(edge.color), EDGE_WIDTH)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(edge_painter_path(edge.path))

    def _draw_node(
        self, painter: QPainter, node: GraphNode, is_selected: bool, is_hovered: bool
    ) -> None:
        center = QPointF(node.x, node.y)
        color = QColor(node.color)
        radius = self.node_radius

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawEllipse(center, radius, radius)

        painter.setBrush(Qt.BrushStyle.NoBrush)

        if node.commit.is_head:
            self._draw_ring(painter, center, radius + HEAD_RING_OFFSET, color)

        if is_selected:
            self._draw_ring(painter, center, radius + SELECTED_RING_OFFSET, SELECTED_COLOR)

        if is_hovered:
            self._draw_ring(painter, center, radius + HOVER_RING_OFFSET, HOVER_COLOR)

        if node.commit.refs:
            self._draw_refs(painter, node)

    def _draw_ring(self, painter: QPainter, center: QPointF, radius: float, color: QColor) -> None:
        painter.setPen(QPen(color, RING_WIDTH))
        painter.drawEllipse(center, radius, radius)

    def _draw_refs(self, painter: QPainter, node: GraphNode) -> None:
        """Draw ref chips in a row to the right of the node."""
        painter.setFont(self._font)
        metrics = QFontMetricsF(self._font)
        x = node.x + REF_OFFSET_X

        for ref in node.commit.refs:
            bg_color, text_color = ref_colors(ref)
            text = ref.replace(TAG_PREFIX, "")
            width = metrics.horizontalAdvance(text) + REF_PADDING * 2
            chip = QRectF(x, node.y - REF_HEIGHT / 2, width, REF_HEIGHT)

            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(bg_color)
            painter.drawRect(chip)

            painter.setPen(text_color)
            painter.drawText(
                chip.adjusted(REF_PADDING, 0, 0, 0),
                Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                text,
            )

            x += width + REF_SPACING

    # --- Hit testing ---

    def to_graph_coords(self, screen_x: float, screen_y: float) -> tuple[float, float]:
        """Map a surface point (logical units) into graph coordinates."""
        return (
            (screen_x - self._offset_x) / self._scale,
            (screen_y - self._offset_y) / self._scale,
        )

    def get_node_at_position(
        self, screen_x: float, screen_y: float, nodes: Mapping[str, GraphNode]
    ) -> GraphNode | None:
        """Return the first node within ``radius + HIT_MARGIN`` of the point, if any."""
        x, y = self.to_graph_coords(screen_x, screen_y)
        reach = self.node_radius + HIT_MARGIN

        for node in nodes.values():
            if math.hypot(x - node.x, y - node.y) <= reach:
                return node

        return None

    # --- Teardown ---

    def destroy(self) -> None:
        """Release the backing image. Safe to call more than once."""
        if self.state is RendererState.DESTROYED:
            return
        self.clear()
        self._image = None
        self.state = RendererState.DESTROYED
