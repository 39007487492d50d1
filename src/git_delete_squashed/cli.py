"""Command line interface for git-delete-squashed."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape

from git_delete_squashed.config import DEFAULT_JOBS, Settings
from git_delete_squashed.git import GitError, GitRepo

app = typer.Typer(help="Delete local branches that were squash-merged into a reference branch")
console = Console()
err_console = Console(stderr=True)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        err_console.print(f"[red]Error:[/red] {escape(str(err))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=1) from err


def report_verdict(branch_name: str, squashed: bool) -> None:
    """Print whether a branch was found squashed."""
    verdict = "[green]squashed[/green]" if squashed else "[yellow]kept[/yellow]"
    err_console.print(f"[dim]{escape(branch_name)}[/dim] {verdict}", highlight=False, soft_wrap=True)


@app.command()
def main(
    branch: Annotated[
        Optional[str],
        typer.Argument(
            help="Reference branch, defaults to $DEFAULT_BRANCH_NAME, the .gds config file, then master",
            show_default=False,
        ),
    ] = None,
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    jobs: Annotated[int, typer.Option("--jobs", "-j", min=1, help="Branches to check in parallel")] = DEFAULT_JOBS,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show the verdict for every branch")] = False,
) -> None:
    """Delete local branches already squash-merged into BRANCH."""
    repo = get_repo(path)
    settings = Settings.resolve(branch, repo.root, jobs)

    try:
        if verbose:
            reference = escape(settings.reference_branch)
            current = escape(repo.get_current_branch_name() or "detached HEAD")
            err_console.print(f"Reference branch: [cyan]{reference}[/cyan]", highlight=False, soft_wrap=True)
            err_console.print(f"Current branch: [cyan]{current}[/cyan]", highlight=False, soft_wrap=True)

        for output in repo.clean_squashed(settings, report_verdict if verbose else None):
            console.print(output, markup=False, highlight=False, soft_wrap=True)
    except GitError as err:
        err_console.print(f"[red]Error:[/red] {escape(str(err))}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=1) from err


if __name__ == "__main__":
    app()
