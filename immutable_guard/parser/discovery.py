"""
Locate the workflow files to audit inside a workspace.
"""

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

WORKFLOWS_DIR = Path(".github") / "workflows"
WORKFLOW_SUFFIXES = (".yml", ".yaml")


def discover_workflow_files(
    workspace: str,
    workflows: Iterable[str] = (),
    exclude_workflows: Iterable[str] = (),
) -> list[Path]:
    """
    List workflow files under <workspace>/.github/workflows.

    Args:
        workspace: Repository root.
        workflows: File names to check. When given, only these are returned,
                   in the given order, and exclude_workflows is ignored.
        exclude_workflows: File names to skip when scanning the whole directory.

    Returns:
        Paths of the workflow files to check.
    """
    path = Path(workspace) / WORKFLOWS_DIR
    if not path.is_dir():
        logger.warning("Workflows directory not found: %s", path)
        return []

    wanted = list(workflows)
    if wanted:
        files = []
        for name in wanted:
            candidate = path / name
            if candidate.is_file():
                files.append(candidate)
            else:
                logger.warning("Specified workflow file not found: %s", name)
        return files

    excluded = set(exclude_workflows)
    files = sorted(
        f for f in path.iterdir()
        if f.is_file() and f.suffix in WORKFLOW_SUFFIXES and f.name not in excluded
    )
    logger.debug("Found %d workflow file(s) in %s", len(files), path)
    return files
