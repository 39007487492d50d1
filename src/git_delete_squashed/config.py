"""Run configuration."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_BRANCH_NAME = "master"
BRANCH_ENV_VAR = "DEFAULT_BRANCH_NAME"
CONFIG_FILENAMES = (".gds", ".git-delete-squashed")
CONFIG_BRANCH_KEY = "defaultBranch"
DEFAULT_JOBS = min(8, os.cpu_count() or 1)


def read_config_branch(root: Path) -> Optional[str]:
    """Read the default branch from the repository config file.

    Only the first config file that exists is consulted. A file that cannot
    be read or parsed counts as no configuration at all.
    """
    for filename in CONFIG_FILENAMES:
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        branch = data.get(CONFIG_BRANCH_KEY)
        return branch if isinstance(branch, str) and branch else None
    return None


def resolve_reference_branch(
    argument: Optional[str],
    root: Path,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the reference branch: argument, environment, config file, then the default."""
    if environ is None:
        environ = os.environ
    return argument or environ.get(BRANCH_ENV_VAR) or read_config_branch(root) or DEFAULT_BRANCH_NAME


@dataclass(frozen=True)
class Settings:
    """Settings for a single run, resolved once at startup."""

    reference_branch: str
    jobs: int = DEFAULT_JOBS

    @classmethod
    def resolve(
        cls,
        branch: Optional[str],
        root: Path,
        jobs: int = DEFAULT_JOBS,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Build settings for the repository whose working tree is at ``root``."""
        return cls(
            reference_branch=resolve_reference_branch(branch, root, environ),
            jobs=jobs,
        )
