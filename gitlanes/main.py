#!/usr/bin/env python3
"""
gitlanes - lane-based commit graph viewer
"""

import argparse
import os
import sys
from pathlib import Path

from loguru import logger

from gitlanes.config.settings import Settings
from gitlanes.exceptions import ConfigError, HistoryError, RenderSurfaceError
from gitlanes.git_backend.history import load_commits
from gitlanes.graph.layout import GraphLayoutEngine


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="gitlanes",
        description="gitlanes - lane-based commit graph viewer",
    )
    parser.add_argument("repo", nargs="?", default=".", help="Repository path (default: .)")
    parser.add_argument("--max-count", type=int, help="Maximum number of commits to load")
    parser.add_argument("--render", metavar="OUT.png", help="Render to a PNG file and exit")
    parser.add_argument("--width", type=int, default=800, help="Render width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Render height (default: 600)")
    parser.add_argument("--config", type=Path, help="Settings file path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def render_to_file(
    engine: GraphLayoutEngine, commits: list, out_path: str, width: int, height: int
) -> None:
    """Lay out and paint commits into a PNG without opening a window."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtGui import QGuiApplication

    from gitlanes.graph.renderer import GraphRenderer, OffscreenSurface

    _app = QGuiApplication.instance() or QGuiApplication(sys.argv[:1])

    layout = engine.calculate_layout(commits)
    renderer = GraphRenderer(
        OffscreenSurface(width, height), node_radius=engine.get_config().node_radius
    )
    try:
        renderer.render(layout.nodes, layout.edges)
        if renderer.image is None or not renderer.image.save(out_path):
            raise RenderSurfaceError(f"Failed to write {out_path}", context={"path": out_path})
    finally:
        renderer.destroy()


def run_window(engine: GraphLayoutEngine, commits: list, zoom_step: float) -> int:
    from PySide6.QtWidgets import QApplication

    from gitlanes.graph.widget import CommitGraphWidget

    app = QApplication(sys.argv[:1])
    app.setApplicationName("gitlanes")

    by_hash = {c.hash: c for c in commits}
    widget = CommitGraphWidget(engine=engine, zoom_step=zoom_step)

    def on_click(commit_hash: str, multi: bool) -> None:
        selected = widget.selected_hashes()
        if multi:
            selected ^= {commit_hash}
        else:
            selected = {commit_hash}
        widget.set_selected(selected)
        print(f"{commit_hash[:7]} {by_hash[commit_hash].message}")

    widget.commit_clicked.connect(on_click)
    widget.commit_double_clicked.connect(lambda h: print(h))

    widget.setWindowTitle("gitlanes")
    widget.resize(800, 600)
    widget.set_commits(commits)
    widget.show()
    return app.exec()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        settings = Settings(args.config)
        configure_logging("DEBUG" if args.verbose else settings.get_log_level())
        engine = GraphLayoutEngine.from_settings(settings)
        max_count = args.max_count or settings.get_max_commits()
        zoom_step = settings.get_zoom_step()
        commits = load_commits(args.repo, max_count=max_count)
    except (ConfigError, HistoryError) as e:
        logger.error(str(e))
        sys.exit(1)

    if args.render:
        try:
            render_to_file(engine, commits, args.render, args.width, args.height)
        except RenderSurfaceError as e:
            logger.error(str(e))
            sys.exit(1)
        print(f"Wrote {len(commits)} commits to {args.render}")
        return

    sys.exit(run_window(engine, commits, zoom_step))


if __name__ == "__main__":
    main()
