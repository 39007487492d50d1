"""Git repository operations."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from git_delete_squashed.config import DEFAULT_JOBS, Settings

VerdictCallback = Callable[[str, bool], None]


class GitError(Exception):
    """Git operation error."""


def describe(err: Exception) -> str:
    """Describe a failure on a single line, preferring git's own stderr."""
    if isinstance(err, GitCommandError):
        # GitPython stores stderr as "\n  stderr: '<text>'"
        stderr = err.stderr.strip()
        if stderr.startswith("stderr: '") and stderr.endswith("'"):
            stderr = stderr[len("stderr: '") : -1]
        message = " ".join(line.strip() for line in stderr.splitlines() if line.strip())
        return message or f"git exited with status {err.status}"
    return " ".join(str(err).split())


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Failed to open repository: {describe(err)}") from err

    @property
    def root(self) -> Path:
        """Root of the working tree."""
        return Path(self.repo.working_tree_dir)

    def get_current_branch_name(self) -> str:
        """Get current branch name."""
        try:
            try:
                return self.repo.active_branch.name
            except TypeError:
                # Detached HEAD
                return ""
        except (GitCommandError, ValueError) as err:
            raise GitError(f"Failed to get current branch: {describe(err)}") from err

    def list_local_branches(self) -> list[str]:
        """List local branch names in the order git reports them."""
        try:
            output = self.repo.git.for_each_ref("refs/heads/", "--format=%(refname:short)")
        except GitCommandError as err:
            raise GitError(f"Failed to list branches: {describe(err)}") from err
        return output.splitlines()

    @staticmethod
    def ensure_reference_branch(reference: str, branches: Iterable[str]) -> None:
        """Fail unless the reference branch is one of the given branches."""
        if reference not in branches:
            raise GitError(f"fatal: no branch named '{reference}' found in this repo")

    def merge_base(self, first: str, second: str) -> str:
        """Get the most recent common ancestor of two commits."""
        try:
            return self.repo.git.merge_base(first, second)
        except GitCommandError as err:
            raise GitError(f"Failed to find merge base of {first} and {second}: {describe(err)}") from err

    def get_tree_id(self, ref: str) -> str:
        """Get the tree object of a ref's tip commit."""
        try:
            return self.repo.git.rev_parse(f"{ref}^{{tree}}")
        except GitCommandError as err:
            raise GitError(f"Failed to resolve tree of {ref}: {describe(err)}") from err

    def commit_tree(self, tree_id: str, parent: str, message: str) -> str:
        """Write a commit object that no ref points to and return its hash."""
        try:
            return self.repo.git.commit_tree(tree_id, "-p", parent, "-m", message)
        except GitCommandError as err:
            raise GitError(f"Failed to create commit for tree {tree_id}: {describe(err)}") from err

    def cherry(self, upstream: str, head: str) -> str:
        """List commits of ``head`` prefixed ``-`` if upstream has an equivalent patch, ``+`` otherwise."""
        try:
            return self.repo.git.cherry(upstream, head)
        except GitCommandError as err:
            raise GitError(f"Failed to compare {head} against {upstream}: {describe(err)}") from err

    def checkout(self, ref: str) -> None:
        """Check out a branch."""
        try:
            self.repo.git.checkout(ref)
        except GitCommandError as err:
            raise GitError(f"Failed to check out {ref}: {describe(err)}") from err

    def delete_branch(self, branch_name: str) -> str:
        """Force delete a local branch and return git's confirmation."""
        try:
            # -D since git's own merge check knows nothing about squash merges
            return self.repo.git.branch("-D", branch_name)
        except GitCommandError as err:
            raise GitError(f"Failed to delete branch {branch_name}: {describe(err)}") from err

    def is_squashed(self, reference: str, branch_name: str) -> bool:
        """Check if a branch's changes already exist in the reference branch.

        The branch's whole diff since the merge base is written as a single
        dangling commit on top of that merge base. ``git cherry`` then marks
        it with ``-`` when the reference branch already holds a commit with
        the same patch id, which is what a squash merge produces.

        An empty cherry listing means there is nothing to compare and the
        branch is reported as not squashed.
        """
        ancestor = self.merge_base(reference, branch_name)
        tree_id = self.get_tree_id(branch_name)
        temp_commit = self.commit_tree(tree_id, ancestor, f"Temp commit for {branch_name}")
        return self.cherry(reference, temp_commit).startswith("-")

    def find_squashed_branches(
        self,
        reference: str,
        branches: Iterable[str],
        jobs: int = DEFAULT_JOBS,
        on_verdict: Optional[VerdictCallback] = None,
    ) -> list[str]:
        """Get the branches already squashed into the reference branch.

        Branches are checked concurrently, results keep the input order.
        The reference branch itself is never included. The first failing
        check aborts the whole search.
        """
        candidates = [branch for branch in branches if branch != reference]
        if not candidates:
            return []

        with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
            verdicts = pool.map(lambda branch: self.is_squashed(reference, branch), candidates)
            squashed = []
            for branch_name, verdict in zip(candidates, verdicts):
                if on_verdict:
                    on_verdict(branch_name, verdict)
                if verdict:
                    squashed.append(branch_name)
        return squashed

    def delete_branches(self, reference: str, branches: list[str]) -> Iterator[str]:
        """Delete branches one at a time, yielding git's output for each.

        The reference branch is checked out first so none of the branches
        being deleted can be the current one. Nothing is touched when there
        is nothing to delete.
        """
        if not branches:
            return
        self.checkout(reference)
        for branch_name in branches:
            yield self.delete_branch(branch_name)

    def clean_squashed(self, settings: Settings, on_verdict: Optional[VerdictCallback] = None) -> Iterator[str]:
        """Delete every local branch squashed into the reference branch.

        Validation and detection finish before the first deletion. Yields
        one confirmation per deleted branch.
        """
        reference = settings.reference_branch
        branches = self.list_local_branches()
        self.ensure_reference_branch(reference, branches)
        squashed = self.find_squashed_branches(reference, branches, settings.jobs, on_verdict)
        yield from self.delete_branches(reference, squashed)
