"""Edge geometry for git graph - straight and curved connections between commits."""

from collections.abc import Sequence

from PySide6.QtCore import QPointF
from PySide6.QtGui import QPainterPath

from gitlanes.graph.types import GraphNode, Point


def build_edge_path(child: GraphNode, parent: GraphNode) -> tuple[Point, ...]:
    """
    Build the point list for an edge from a child commit down to its parent.

    Same lane: two points, drawn as a straight segment.
    Different lanes: four points. The middle two are the control points of a
    cubic curve that leaves the child vertically, crosses at half height and
    enters the parent vertically.
    """
    start = Point(child.x, child.y)
    end = Point(parent.x, parent.y)

    if child.x == parent.x:
        return (start, end)

    mid_y = (child.y + parent.y) / 2
    return (start, Point(child.x, mid_y), Point(parent.x, mid_y), end)


def edge_painter_path(points: Sequence[Point]) -> QPainterPath:
    """Turn an edge point list into a stroke path (line or chained cubics)."""
    path = QPainterPath()
    if len(points) < 2:
        return path

    path.moveTo(QPointF(points[0].x, points[0].y))

    if len(points) == 2:
        path.lineTo(QPointF(points[1].x, points[1].y))
        return path

    # Each cubic consumes two control points and an end point
    i = 1
    while i + 2 < len(points):
        c1, c2, end = points[i], points[i + 1], points[i + 2]
        path.cubicTo(QPointF(c1.x, c1.y), QPointF(c2.x, c2.y), QPointF(end.x, end.y))
        i += 3

    # Leftover points that do not make a full cubic are joined straight
    for point in points[i:]:
        path.lineTo(QPointF(point.x, point.y))

    return path
