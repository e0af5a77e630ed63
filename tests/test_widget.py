"""
Tests for CommitGraphWidget - layout wiring, view changes and pointer signals.
"""

import pytest
from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QMouseEvent

from gitlanes.graph.layout import GraphLayoutEngine
from gitlanes.graph.renderer import RendererState
from gitlanes.graph.widget import CommitGraphWidget


def mouse_event(kind, x, y, button=Qt.MouseButton.LeftButton, modifiers=Qt.KeyboardModifier.NoModifier):
    buttons = button if kind != QEvent.Type.MouseButtonRelease else Qt.MouseButton.NoButton
    pos = QPointF(x, y)
    return QMouseEvent(kind, pos, pos, button, buttons, modifiers)


@pytest.fixture
def widget(qapp, chain):
    w = CommitGraphWidget()
    w.resize(200, 300)
    w.set_commits(chain(3))
    yield w
    w.teardown()
    w.deleteLater()


class TestData:
    """Test feeding commits to the widget"""

    def test_set_commits_lays_out(self, widget):
        assert widget.layout_result is not None
        assert list(widget.layout_result.nodes) == ["c2", "c1", "c0"]

    def test_minimum_width_follows_lanes(self, widget):
        assert widget.minimumWidth() == 2 * widget.engine.get_config().column_width

    def test_renderer_matches_widget_size(self, widget):
        assert widget.renderer is not None
        assert widget.renderer.logical_size == widget.size()

    def test_renderer_follows_resize(self, widget):
        widget.resize(250, 320)
        widget.set_selected([])
        assert widget.renderer.logical_size.width() == 250

    def test_renderer_follows_pixel_ratio_change(self, widget, monkeypatch):
        monkeypatch.setattr(widget, "devicePixelRatioF", lambda: 2.0)
        widget.set_selected([])

        assert widget.renderer.pixel_ratio == 2.0
        assert widget.renderer.image.width() == 400
        assert widget.renderer.logical_size == widget.size()

    def test_empty_commits_clear_layout(self, widget):
        widget.set_commits([])
        assert widget.layout_result is None
        assert widget.hash_at(15, 25) is None

    def test_injected_engine_is_used(self, qapp, chain):
        engine = GraphLayoutEngine()
        w = CommitGraphWidget(engine=engine)
        w.resize(100, 100)
        w.set_commits(chain(2))

        assert engine.get_cache_stats().size == 1
        w.teardown()

    def test_selection(self, widget):
        widget.set_selected(["c1", "c0"])
        assert widget.selected_hashes() == {"c1", "c0"}


class TestView:
    """Test zoom and pan"""

    def test_hash_at(self, widget):
        assert widget.hash_at(15, 25) == "c2"
        assert widget.hash_at(15, 75) == "c1"
        assert widget.hash_at(150, 150) is None

    def test_zoom_keeps_anchor_fixed(self, widget):
        widget.zoom_by(2.0, QPointF(15, 75))

        assert widget.renderer.scale == 2.0
        assert widget.renderer.to_graph_coords(15, 75) == pytest.approx((15, 75))
        assert widget.hash_at(15, 75) == "c1"

    def test_zoom_is_clamped(self, widget):
        for _ in range(20):
            widget.zoom_by(widget.zoom_step)
        assert widget.renderer.scale == 2.0

    def test_pan(self, widget):
        widget.pan_by(30, -10)
        assert widget.renderer.offset == (30, -10)
        assert widget.hash_at(45, 15) == "c2"

    def test_reset_view(self, widget):
        widget.zoom_by(1.5)
        widget.pan_by(5, 5)
        widget.reset_view()

        assert widget.renderer.scale == 1.0
        assert widget.renderer.offset == (0, 0)


class TestPointerSignals:
    """Test mouse events turning into commit signals"""

    def test_click_emits_hash(self, widget):
        clicks = []
        widget.commit_clicked.connect(lambda h, multi: clicks.append((h, multi)))

        widget.mousePressEvent(mouse_event(QEvent.Type.MouseButtonPress, 15, 25))
        assert clicks == [("c2", False)]

    def test_ctrl_click_is_multi_select(self, widget):
        clicks = []
        widget.commit_clicked.connect(lambda h, multi: clicks.append((h, multi)))

        widget.mousePressEvent(
            mouse_event(
                QEvent.Type.MouseButtonPress,
                15,
                75,
                modifiers=Qt.KeyboardModifier.ControlModifier,
            )
        )
        assert clicks == [("c1", True)]

    def test_double_click(self, widget):
        hashes = []
        widget.commit_double_clicked.connect(hashes.append)

        widget.mouseDoubleClickEvent(mouse_event(QEvent.Type.MouseButtonDblClick, 15, 125))
        assert hashes == ["c0"]

    def test_hover(self, widget):
        hovered = []
        widget.hover_changed.connect(hovered.append)

        widget.mouseMoveEvent(
            mouse_event(QEvent.Type.MouseMove, 15, 25, button=Qt.MouseButton.NoButton)
        )
        widget.mouseMoveEvent(
            mouse_event(QEvent.Type.MouseMove, 150, 250, button=Qt.MouseButton.NoButton)
        )

        assert hovered == ["c2", ""]
        assert widget.hovered_hash() is None

    def test_drag_on_empty_space_pans(self, widget):
        widget.mousePressEvent(mouse_event(QEvent.Type.MouseButtonPress, 150, 250))
        widget.mouseMoveEvent(
            mouse_event(QEvent.Type.MouseMove, 170, 240, button=Qt.MouseButton.NoButton)
        )
        widget.mouseReleaseEvent(mouse_event(QEvent.Type.MouseButtonRelease, 170, 240))

        assert widget.renderer.offset == (20, -10)


class TestTeardown:
    """Test widget teardown"""

    def test_teardown_destroys_renderer_and_cache(self, widget):
        renderer = widget.renderer
        widget.teardown()

        assert renderer.state is RendererState.DESTROYED
        assert widget.layout_result is None
        assert widget.engine.get_cache_stats().size == 0
