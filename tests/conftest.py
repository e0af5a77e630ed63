"""Shared fixtures for gitlanes tests."""

import os

# Must be set before any Qt application object exists
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from gitlanes.graph.types import Commit


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def make_commit():
    def _make(commit_hash: str, *parents: str, **kwargs) -> Commit:
        return Commit(hash=commit_hash, parents=tuple(parents), **kwargs)

    return _make


def linear_chain(length: int, prefix: str = "c") -> list[Commit]:
    """Newest-first chain c{length-1} -> ... -> c0."""
    hashes = [f"{prefix}{i}" for i in range(length)]
    commits = []
    for i in reversed(range(length)):
        parents = (hashes[i - 1],) if i > 0 else ()
        commits.append(Commit(hash=hashes[i], parents=parents))
    return commits


@pytest.fixture
def chain():
    return linear_chain
