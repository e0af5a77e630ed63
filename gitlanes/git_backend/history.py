"""
Commit history reading using pygit2

Produces the newest-first Commit sequence the graph layout consumes.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pygit2
from loguru import logger

from gitlanes.constants import HEAD_POINTER_PREFIX, HEAD_REF, TAG_DECORATION_PREFIX
from gitlanes.exceptions import HistoryError
from gitlanes.graph.types import Commit

TAG_REF_PREFIX = "refs/tags/"


def open_repository(repo_path: str | Path) -> pygit2.Repository:
    """Open the repository containing repo_path (searching parents)."""
    discovered = pygit2.discover_repository(str(repo_path))
    if discovered is None:
        raise HistoryError(f"Not a git repository: {repo_path}", context={"path": str(repo_path)})
    try:
        return pygit2.Repository(discovered)
    except pygit2.GitError as e:
        raise HistoryError(f"Cannot open repository: {e}", context={"path": str(repo_path)}) from e


def _peel_commit(reference: pygit2.Reference) -> pygit2.Commit | None:
    try:
        return reference.peel(pygit2.Commit)
    except (pygit2.GitError, KeyError, ValueError) as e:
        logger.warning("Skipping unreadable ref {}: {}", reference.name, e)
        return None


def collect_decorations(repo: pygit2.Repository) -> dict[str, list[str]]:
    """
    Map commit id -> ref labels, in `git log --decorate` style.

    HEAD comes first (``HEAD -> main`` when on a branch, bare ``HEAD`` when
    detached), then tags, local branches and remote branches.
    """
    decorations: dict[str, list[str]] = {}
    head_branch: str | None = None

    if not repo.head_is_unborn:
        head_oid = str(repo.head.target)
        if repo.head_is_detached:
            decorations.setdefault(head_oid, []).append(HEAD_REF)
        else:
            head_branch = repo.head.shorthand
            decorations.setdefault(head_oid, []).append(f"{HEAD_POINTER_PREFIX}{head_branch}")

    for ref_name in repo.references:
        if not ref_name.startswith(TAG_REF_PREFIX):
            continue
        commit = _peel_commit(repo.references[ref_name])
        if commit is not None:
            tag_name = ref_name[len(TAG_REF_PREFIX) :]
            decorations.setdefault(str(commit.id), []).append(f"{TAG_DECORATION_PREFIX}{tag_name}")

    for branch_name in repo.branches.local:
        if branch_name == head_branch:
            continue
        commit = _peel_commit(repo.branches.local[branch_name])
        if commit is not None:
            decorations.setdefault(str(commit.id), []).append(branch_name)

    for branch_name in repo.branches.remote:
        if branch_name.endswith("/HEAD"):
            continue
        commit = _peel_commit(repo.branches.remote[branch_name])
        if commit is not None:
            decorations.setdefault(str(commit.id), []).append(branch_name)

    return decorations


def _tip_oids(repo: pygit2.Repository) -> list[pygit2.Oid]:
    """HEAD first, then every branch tip."""
    tips: list[pygit2.Oid] = []
    if not repo.head_is_unborn:
        tips.append(repo.head.target)

    for branches in (repo.branches.local, repo.branches.remote):
        for branch_name in branches:
            commit = _peel_commit(branches[branch_name])
            if commit is not None and commit.id not in tips:
                tips.append(commit.id)

    return tips


def _commit_date(commit: pygit2.Commit) -> str:
    tz = timezone(timedelta(minutes=commit.commit_time_offset))
    return datetime.fromtimestamp(commit.commit_time, tz=tz).isoformat()


def load_commits(repo_path: str | Path, max_count: int | None = None) -> list[Commit]:
    """
    Read history reachable from HEAD and all branches, newest first.

    Topological ordering guarantees children come before their parents.
    An empty repository yields an empty list.
    """
    repo = open_repository(repo_path)
    tips = _tip_oids(repo)
    if not tips:
        return []

    decorations = collect_decorations(repo)
    head_oid = None if repo.head_is_unborn else str(repo.head.target)

    sort = pygit2.enums.SortMode.TOPOLOGICAL | pygit2.enums.SortMode.TIME
    walker = repo.walk(tips[0], sort)
    for oid in tips[1:]:
        walker.push(oid)

    commits: list[Commit] = []
    for c in walker:
        if max_count is not None and len(commits) >= max_count:
            break

        oid = str(c.id)
        message = c.message.strip()
        commits.append(
            Commit(
                hash=oid,
                parents=tuple(str(p) for p in c.parent_ids),
                refs=tuple(decorations.get(oid, ())),
                message=message.split("\n")[0],
                author=c.author.name,
                date=_commit_date(c),
                is_head=oid == head_oid,
            )
        )

    logger.debug("Loaded {} commits from {}", len(commits), repo.workdir or repo.path)
    return commits
