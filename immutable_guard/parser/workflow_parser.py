"""
Parser for GitHub Actions workflow files.

Reads a workflow document and extracts every external action reference
(`uses: owner/repo[/path]@ref`) together with where it was found, so the
engine can decide whether each one is pinned to something immutable.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

UNNAMED_STEP = "unnamed step"


class _LineLoader(yaml.SafeLoader):
    """PyYAML loader that stores the start line number on every mapping node."""


def _construct_mapping(loader: _LineLoader, node: yaml.MappingNode) -> dict[Any, Any]:
    mapping: dict[Any, Any] = loader.construct_mapping(node, deep=True)
    mapping["__line__"] = node.start_mark.line + 1  # YAML lines are 0-indexed
    return mapping


_LineLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class ActionSpecifier:
    """The owner/repo/ref parts of a `uses:` string."""
    owner: str
    repo: str
    ref: str


@dataclass(frozen=True)
class ExternalReference:
    """One step's use of an external action."""
    raw_specifier: str  # e.g. "actions/checkout@v4", exactly as written
    owner: str          # e.g. "actions"
    repo: str           # e.g. "checkout"
    ref: str            # tag, branch or commit SHA
    source_file: str    # workflow file basename, e.g. "ci.yml"
    job_name: str
    step_name: str = UNNAMED_STEP
    line_number: Optional[int] = None


def parse_action_reference(uses: Any) -> Optional[ActionSpecifier]:
    """Parse 'owner/repo[/path]@ref' into its parts, or None if it isn't one."""
    if not uses or not isinstance(uses, str):
        return None

    # Local composite actions and docker:// images have no release to check
    if uses.startswith("./") or "://" in uses:
        logger.debug("Skipping local/container action: %s", uses)
        return None

    if "@" not in uses:
        logger.debug("Skipping action without version ref: %s", uses)
        return None

    action_path, ref = uses.split("@", 1)
    parts = action_path.split("/")
    if len(parts) < 2:
        return None

    owner, repo = parts[0], parts[1]
    if not owner or not repo or not ref:
        return None

    return ActionSpecifier(owner=owner, repo=repo, ref=ref)


def _iter_steps(job: Any) -> list[dict[str, Any]]:
    if not isinstance(job, dict):
        return []
    steps = job.get("steps")
    if not isinstance(steps, list):
        return []
    return [s for s in steps if isinstance(s, dict)]


def parse_workflow_content(content: str, source: str) -> list[ExternalReference]:
    """
    Extract external action references from workflow YAML.

    Args:
        content: The workflow document text.
        source: Path or name of the workflow; only its basename is recorded.

    Returns:
        References in document order (jobs, then steps within each job).
        A document that fails to parse yields an empty list and a warning.
    """
    source_file = os.path.basename(source)
    try:
        raw = yaml.load(content, Loader=_LineLoader)  # noqa: S506  # _LineLoader is safe
    except yaml.YAMLError as e:
        logger.warning("Failed to parse workflow %s: %s", source_file, e)
        return []

    if not isinstance(raw, dict):
        logger.debug("Workflow %s is not a mapping, no jobs to inspect", source_file)
        return []

    jobs = raw.get("jobs")
    if not isinstance(jobs, dict):
        return []

    references = []
    for job_name, job in jobs.items():
        if job_name == "__line__":
            continue
        for step in _iter_steps(job):
            uses = step.get("uses")
            parsed = parse_action_reference(uses)
            if parsed is None:
                continue
            references.append(ExternalReference(
                raw_specifier=uses,
                owner=parsed.owner,
                repo=parsed.repo,
                ref=parsed.ref,
                source_file=source_file,
                job_name=str(job_name),
                step_name=str(step.get("name") or UNNAMED_STEP),
                line_number=step.get("__line__"),
            ))

    logger.debug("Found %d action reference(s) in %s", len(references), source_file)
    return references


def extract_references(file_path: str) -> list[ExternalReference]:
    """
    Read a workflow file and extract its external action references.

    An unreadable or malformed file is logged and treated as having none.
    """
    logger.info("Parsing workflow: %s", file_path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read workflow %s: %s", os.path.basename(file_path), e)
        return []
    return parse_workflow_content(content, file_path)
