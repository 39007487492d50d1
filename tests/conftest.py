"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo

from git_delete_squashed.config import BRANCH_ENV_VAR

AUTHOR = Actor("Test User", "test@example.com")


def commit_file(repo: Repo, name: str, content: str, message: str) -> None:
    """Write a file in the working tree and commit it."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


def init_repo(path: Path, trunk: str) -> Repo:
    """Create a repository with one commit on ``trunk``."""
    path.mkdir()
    repo = Repo.init(path)
    repo.config_writer().set_value("user", "name", AUTHOR.name).release()
    repo.config_writer().set_value("user", "email", AUTHOR.email).release()
    repo.config_writer().set_value("commit", "gpgsign", "false").release()

    commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")
    repo.git.branch("-M", trunk)
    return repo


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's environment out of reference branch resolution."""
    monkeypatch.delenv(BRANCH_ENV_VAR, raising=False)


@pytest.fixture
def squash_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a repository with a squash-merged and an unmerged branch.

    Branches:
        master: trunk, holds a squash of feature-a
        feature-a: two commits, squash-merged into master
        feature-b: one commit, never merged
    """
    repo = init_repo(tmp_path / "repo", "master")

    repo.git.checkout("-b", "feature-a")
    commit_file(repo, "feature-a.txt", "first line\n", "Add feature-a")
    commit_file(repo, "feature-a.txt", "first line\nsecond line\n", "Extend feature-a")

    # Move trunk on before the squash so commit hashes cannot line up
    repo.git.checkout("master")
    commit_file(repo, "trunk.txt", "trunk work\n", "Trunk work")
    repo.git.merge("--squash", "feature-a")
    repo.git.commit("-m", "Squash feature-a")

    repo.git.checkout("-b", "feature-b")
    commit_file(repo, "feature-b.txt", "unmerged work\n", "Add feature-b")

    repo.git.checkout("master")

    yield Path(repo.working_tree_dir)

    # Cleanup is handled by pytest's tmp_path fixture


@pytest.fixture
def main_repo(tmp_path: Path) -> Path:
    """Create a repository whose trunk is ``main`` with one squash-merged branch."""
    repo = init_repo(tmp_path / "main-repo", "main")

    repo.git.checkout("-b", "topic")
    commit_file(repo, "topic.txt", "topic\n", "Add topic")
    repo.git.checkout("main")
    repo.git.merge("--squash", "topic")
    repo.git.commit("-m", "Squash topic")

    return Path(repo.working_tree_dir)
