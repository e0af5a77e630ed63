"""Commit graph widget - presentation shell around the layout engine and renderer."""

from collections.abc import Iterable, Sequence

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import (
    QCloseEvent,
    QMouseEvent,
    QPainter,
    QPaintEvent,
    QResizeEvent,
    QWheelEvent,
)
from PySide6.QtWidgets import QWidget

from gitlanes.graph.layout import GraphLayoutEngine
from gitlanes.graph.renderer import GraphRenderer
from gitlanes.graph.types import Commit, LayoutResult


class CommitGraphWidget(QWidget):
    """
    Pannable and zoomable commit graph.

    Owns one GraphRenderer painting into this widget's size, and uses the
    injected GraphLayoutEngine (whose cache lives as long as this widget).
    Pointer events are reduced to a screen point and resolved through the
    renderer's hit test.
    """

    commit_clicked = Signal(str, bool)  # hash, multi-select modifier held
    commit_double_clicked = Signal(str)  # hash
    hover_changed = Signal(str)  # hash, "" when nothing is hovered

    DEFAULT_ZOOM_STEP = 1.1
    WHEEL_NOTCH = 120

    def __init__(
        self,
        engine: GraphLayoutEngine | None = None,
        zoom_step: float = DEFAULT_ZOOM_STEP,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.engine = engine or GraphLayoutEngine()
        self.zoom_step = zoom_step

        self._renderer: GraphRenderer | None = None
        self._layout: LayoutResult | None = None
        self._selected: set[str] = set()
        self._hovered: str | None = None

        # Pan drag state
        self._panning = False
        self._pan_start = QPointF()
        self._pan_start_offset = (0.0, 0.0)

        self.setMouseTracking(True)

    # --- Data ---

    @property
    def layout_result(self) -> LayoutResult | None:
        return self._layout

    @property
    def renderer(self) -> GraphRenderer | None:
        return self._renderer

    def set_commits(self, commits: Sequence[Commit]) -> None:
        """Lay out a newest-first commit sequence and repaint."""
        self._layout = self.engine.calculate_layout(commits) if commits else None

        if self._layout is not None:
            column_width = self.engine.get_config().column_width
            self.setMinimumWidth((self._layout.lanes + 1) * column_width)
            if self._hovered is not None and self._hovered not in self._layout.nodes:
                self._set_hovered(None)
        else:
            self._set_hovered(None)

        self._repaint()

    def set_selected(self, hashes: Iterable[str]) -> None:
        self._selected = set(hashes)
        self._repaint()

    def selected_hashes(self) -> set[str]:
        return set(self._selected)

    def hovered_hash(self) -> str | None:
        return self._hovered

    # --- Rendering ---

    def _ensure_renderer(self) -> GraphRenderer | None:
        """Create the renderer once the widget has an area, and follow resizes."""
        if self.width() <= 0 or self.height() <= 0:
            return self._renderer

        if self._renderer is None:
            self._renderer = GraphRenderer(self, node_radius=self.engine.get_config().node_radius)
        elif self._surface_changed(self._renderer):
            self._renderer.resize()

        return self._renderer

    def _surface_changed(self, renderer: GraphRenderer) -> bool:
        return (
            renderer.logical_size != self.size()
            or renderer.pixel_ratio != (self.devicePixelRatioF() or 1.0)
        )

    def _render_frame(self) -> bool:
        renderer = self._ensure_renderer()
        if renderer is None:
            return False

        if self._layout is None:
            renderer.clear()
        else:
            renderer.render(self._layout.nodes, self._layout.edges, self._selected, self._hovered)
        return True

    def _repaint(self) -> None:
        if self._render_frame():
            self.update()

    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802
        """Blit the renderer's buffer onto the widget."""
        if self._renderer is not None and self._surface_changed(self._renderer):
            # Pixel ratio changes (screen moves) arrive without a resize
            self._render_frame()
        if self._renderer is None or self._renderer.image is None:
            return
        painter = QPainter(self)
        painter.drawImage(QRectF(self.rect()), self._renderer.image)
        painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:  # noqa: N802
        super().resizeEvent(event)
        self._repaint()

    # --- View ---

    def zoom_by(self, factor: float, anchor: QPointF | None = None) -> None:
        """Zoom keeping the graph point under anchor (default: top-left) fixed."""
        renderer = self._ensure_renderer()
        if renderer is None:
            return

        anchor = anchor or QPointF(0, 0)
        graph_x, graph_y = renderer.to_graph_coords(anchor.x(), anchor.y())
        renderer.set_scale(renderer.scale * factor)
        renderer.set_offset(
            anchor.x() - graph_x * renderer.scale,
            anchor.y() - graph_y * renderer.scale,
        )
        self._repaint()

    def pan_by(self, dx: float, dy: float) -> None:
        renderer = self._ensure_renderer()
        if renderer is None:
            return
        offset_x, offset_y = renderer.offset
        renderer.set_offset(offset_x + dx, offset_y + dy)
        self._repaint()

    def reset_view(self) -> None:
        renderer = self._ensure_renderer()
        if renderer is None:
            return
        renderer.set_scale(1.0)
        renderer.set_offset(0, 0)
        self._repaint()

    # --- Hit testing ---

    def hash_at(self, x: float, y: float) -> str | None:
        """Hash of the commit under a widget-local point, if any."""
        renderer = self._ensure_renderer()
        if renderer is None or self._layout is None:
            return None
        node = renderer.get_node_at_position(x, y, self._layout.nodes)
        return node.commit.hash if node else None

    def _set_hovered(self, commit_hash: str | None) -> None:
        if commit_hash == self._hovered:
            return
        self._hovered = commit_hash
        self.setCursor(
            Qt.CursorShape.PointingHandCursor if commit_hash else Qt.CursorShape.ArrowCursor
        )
        self.hover_changed.emit(commit_hash or "")
        self._repaint()

    # --- Pointer events ---

    @staticmethod
    def _is_multi_select(event: QMouseEvent) -> bool:
        modifiers = event.modifiers()
        return bool(
            modifiers
            & (Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.MetaModifier)
        )

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        """Left click selects a commit; on empty space it starts a pan."""
        if event.button() != Qt.MouseButton.LeftButton or self._renderer is None:
            super().mousePressEvent(event)
            return

        pos = event.position()
        commit_hash = self.hash_at(pos.x(), pos.y())
        if commit_hash:
            self.commit_clicked.emit(commit_hash, self._is_multi_select(event))
        else:
            self._panning = True
            self._pan_start = QPointF(pos)
            self._pan_start_offset = self._renderer.offset
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        """Pan while dragging, otherwise track the hovered commit."""
        pos = event.position()

        if self._panning and self._renderer is not None:
            start_x, start_y = self._pan_start_offset
            self._renderer.set_offset(
                start_x + pos.x() - self._pan_start.x(),
                start_y + pos.y() - self._pan_start.y(),
            )
            self._repaint()
            event.accept()
            return

        self._set_hovered(self.hash_at(pos.x(), pos.y()))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._panning and event.button() == Qt.MouseButton.LeftButton:
            self._panning = False
            self.setCursor(Qt.CursorShape.ArrowCursor)
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        pos = event.position()
        commit_hash = self.hash_at(pos.x(), pos.y())
        if commit_hash and event.button() == Qt.MouseButton.LeftButton:
            self.commit_double_clicked.emit(commit_hash)
            event.accept()
            return
        super().mouseDoubleClickEvent(event)

    def leaveEvent(self, event: object) -> None:  # noqa: N802
        self._set_hovered(None)
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        """Ctrl+wheel zooms around the cursor, plain wheel scrolls."""
        delta = event.angleDelta().y()
        if delta == 0:
            super().wheelEvent(event)
            return

        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            factor = self.zoom_step if delta > 0 else 1 / self.zoom_step
            self.zoom_by(factor, event.position())
        else:
            row_height = self.engine.get_config().row_height
            self.pan_by(0, delta / self.WHEEL_NOTCH * row_height)
        event.accept()

    # --- Teardown ---

    def teardown(self) -> None:
        """Destroy the renderer and drop cached layouts."""
        if self._renderer is not None:
            self._renderer.destroy()
        self.engine.clear_cache()
        self._layout = None

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        self.teardown()
        super().closeEvent(event)
