"""
CLI entry point: ties together discovery → parser → engine → reporter.

Usage:
  # Check every workflow in the current repository:
  immutable-guard check --github-token "$GITHUB_TOKEN"

  # Check specific workflows of another checkout, as JSON:
  immutable-guard check --workspace path/to/repo --workflows ci.yml,deploy.yml --format json

  # Inside GitHub Actions, inputs arrive as INPUT_* environment variables:
  INPUT_GITHUB_TOKEN=... INPUT_FAIL_ON_MUTABLE=false python3 -m immutable_guard check

Exit codes:
  0 — all third-party actions immutable (or fail-on-mutable is off)
  1 — mutable references found and fail-on-mutable is on
  2 — configuration error (e.g. missing github-token)
"""

import logging
import os
import sys
from pathlib import Path

import click

from immutable_guard.config import ConfigError, resolve_config
from immutable_guard.engine import AggregationEngine
from immutable_guard.github import GitHubReleaseClient
from immutable_guard.parser import discover_workflow_files, extract_references
from immutable_guard.reporter import (
    build_outputs,
    report_console,
    report_json,
    report_summary,
    write_github_outputs,
    write_step_summary,
)
from immutable_guard.resolver import ImmutabilityResolver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MUTABLE = 1
EXIT_ERROR = 2


class _WorkflowCommandFormatter(logging.Formatter):
    """Render warnings and errors as ::warning:: / ::error:: workflow commands."""

    _COMMANDS = {logging.WARNING: "warning", logging.ERROR: "error", logging.CRITICAL: "error"}

    def format(self, record: logging.LogRecord) -> str:
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return super().format(record)
        message = record.getMessage().replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"::{command}::{message}"


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    if os.environ.get("GITHUB_ACTIONS") == "true":
        handler = logging.StreamHandler()
        handler.setFormatter(_WorkflowCommandFormatter("%(name)s: %(message)s"))
        logging.basicConfig(level=level, handlers=[handler])
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging.")
def cli(verbose: bool):
    """Ensure third-party GitHub Actions are pinned to immutable releases."""
    _setup_logging(verbose)


@cli.command()
@click.option("--workspace", default=None, help="Repository root (default: $GITHUB_WORKSPACE or the current directory).")
@click.option("--github-token", default=None, help="Token for the GitHub API (or INPUT_GITHUB_TOKEN).")
@click.option("--fail-on-mutable", default=None, help="Exit non-zero on mutable references: true/false (default true).")
@click.option("--workflows", default=None, help="Comma-separated workflow file names to check.")
@click.option("--exclude-workflows", default=None, help="Comma-separated workflow file names to skip.")
@click.option("--config", "config_path", default=None, help="Path to .immutable-guard.yml config file.")
@click.option("--format", "output_format", type=click.Choice(["console", "json"]), default="console", help="Output format.")
def check(
    workspace: str,
    github_token: str,
    fail_on_mutable: str,
    workflows: str,
    exclude_workflows: str,
    config_path: str,
    output_format: str,
):
    """Check workflow files for actions that are not immutable.

    Exits with code 0 on success, 1 if mutable actions fail the run, 2 on error.
    """
    workspace = os.path.abspath(workspace or os.environ.get("GITHUB_WORKSPACE") or os.getcwd())

    try:
        config = resolve_config(
            github_token=github_token,
            fail_on_mutable=fail_on_mutable,
            workflows=workflows,
            exclude_workflows=exclude_workflows,
            config_path=config_path,
            workspace=workspace,
        )
    except ConfigError as e:
        logger.error("%s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    logger.info("Workspace directory: %s", workspace)
    logger.info("Fail on mutable: %s", config.fail_on_mutable)

    files = discover_workflow_files(
        workspace,
        workflows=config.workflows,
        exclude_workflows=config.exclude_workflows,
    )
    workflow_names = [Path(f).name for f in files]
    if not files:
        logger.warning("No workflow files found to check")
    else:
        logger.info("Workflows: %s", ", ".join(workflow_names))

    references = []
    for file in files:
        found = extract_references(str(file))
        logger.info("  Found %d action reference(s) in %s", len(found), file.name)
        references.extend(found)

    client = GitHubReleaseClient(config.github_token, api_url=config.api_url, timeout=config.timeout)
    engine = AggregationEngine(
        ImmutabilityResolver(client),
        trusted_owners=frozenset(config.trusted_owners),
    )
    report = engine.aggregate(references)

    write_github_outputs(build_outputs(report, workflow_names))
    write_step_summary(report_summary(report, workflow_names))

    if output_format == "json":
        click.echo(report_json(report, workflow_names))
    else:
        report_console(report, workflow_names)

    for ref in report.mutable:
        logger.warning("Mutable action %s in %s (%s)", ref.display_name, ref.source_file, ref.message)

    if config.fail_on_mutable and not report.all_passed:
        logger.error(
            "Found %d action(s) using mutable releases. "
            "Please use immutable releases for supply chain security.",
            len(report.mutable),
        )
        sys.exit(EXIT_MUTABLE)

    sys.exit(EXIT_OK)


if __name__ == "__main__":
    cli()
