"""
Configuration for immutable-guard.

Settings come from three places, highest priority first:

  1. Action inputs: a CLI option, or the INPUT_<NAME> environment variable
     GitHub Actions sets for `with:` values (e.g. INPUT_FAIL_ON_MUTABLE).
  2. A .immutable-guard.yml file in the workspace.
  3. Built-in defaults.

Example .immutable-guard.yml:

    # Fail the run when a mutable reference is found
    fail_on_mutable: true

    # Only check these workflow files
    workflows:
      - ci.yml

    # Skip these workflow files (ignored when 'workflows' is set)
    exclude_workflows:
      - experimental.yml

    # Owners whose actions are trusted without checking
    trusted_owners:
      - actions
      - github
      - octokit
      - my-org

    # Seconds to wait for each GitHub API call
    timeout: 10
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from immutable_guard.classifier import TRUSTED_OWNERS
from immutable_guard.github.release_client import DEFAULT_API_URL, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".immutable-guard.yml"

_TRUE_VALUES = ("true", "1", "yes")


class ConfigError(Exception):
    """A required setting is missing or unusable."""


@dataclass
class Config:
    """Parsed immutable-guard configuration."""
    github_token: str = ""
    fail_on_mutable: bool = True
    workflows: list[str] = field(default_factory=list)
    exclude_workflows: list[str] = field(default_factory=list)
    trusted_owners: list[str] = field(default_factory=lambda: sorted(TRUSTED_OWNERS))
    timeout: float = DEFAULT_TIMEOUT
    api_url: str = DEFAULT_API_URL


def input_env_name(name: str) -> str:
    """'fail-on-mutable' -> 'INPUT_FAIL_ON_MUTABLE'."""
    return "INPUT_" + name.replace("-", "_").upper()


def get_input(name: str, value: Optional[str] = None) -> str:
    """Return an explicitly given value, else the INPUT_<NAME> environment variable."""
    if value:
        return value
    return os.environ.get(input_env_name(name), "")


def parse_bool(value: Any) -> bool:
    """Permissive boolean: 'true', '1' and 'yes' (any case) are true, all else false."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def split_list(value: Any) -> list[str]:
    """Split a comma-separated string (or YAML list) into trimmed, non-empty items."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return [item.strip() for item in items if item.strip()]


def load_config(config_path: Optional[str] = None, workspace: Optional[str] = None) -> Config:
    """
    Load settings from a .immutable-guard.yml file.

    Search order:
      1. Explicit config_path if provided
      2. .immutable-guard.yml in the workspace directory or one of its parents
      3. .immutable-guard.yml in the current working directory

    Returns a Config with defaults if no usable config file is found.
    """
    path = _find_config_file(config_path, workspace)

    if path is None:
        logger.debug("No config file found, using defaults")
        return Config()

    logger.info("Loading config from %s", path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning("Config file %s is not valid YAML (%s), using defaults", path, e)
        return Config()

    if not isinstance(raw, dict):
        logger.warning("Config file is not a YAML mapping, using defaults")
        return Config()

    config = Config(
        fail_on_mutable=parse_bool(raw.get("fail_on_mutable", True)),
        workflows=split_list(raw.get("workflows")),
        exclude_workflows=split_list(raw.get("exclude_workflows")),
        api_url=str(raw.get("api_url", DEFAULT_API_URL)),
    )
    if "trusted_owners" in raw:
        config.trusted_owners = split_list(raw["trusted_owners"])
    if "timeout" in raw:
        try:
            config.timeout = float(raw["timeout"])
        except (TypeError, ValueError):
            logger.warning("Invalid timeout %r in config, using %ss", raw["timeout"], DEFAULT_TIMEOUT)
    return config


def resolve_config(
    github_token: Optional[str] = None,
    fail_on_mutable: Optional[str] = None,
    workflows: Optional[str] = None,
    exclude_workflows: Optional[str] = None,
    config_path: Optional[str] = None,
    workspace: Optional[str] = None,
) -> Config:
    """
    Merge action inputs over the config file.

    Raises:
        ConfigError: If no GitHub token is available.
    """
    config = load_config(config_path=config_path, workspace=workspace)

    config.github_token = get_input("github-token", github_token)
    if not config.github_token:
        raise ConfigError("github-token is required")

    fail_value = get_input("fail-on-mutable", fail_on_mutable)
    if fail_value:
        config.fail_on_mutable = parse_bool(fail_value)

    workflows_value = get_input("workflows", workflows)
    if workflows_value:
        config.workflows = split_list(workflows_value)

    exclude_value = get_input("exclude-workflows", exclude_workflows)
    if exclude_value:
        config.exclude_workflows = split_list(exclude_value)

    return config


def _find_config_file(
    config_path: Optional[str] = None,
    workspace: Optional[str] = None,
) -> Optional[str]:
    """Find the config file, returning its path or None."""
    # 1. Explicit path
    if config_path:
        p = Path(config_path)
        if p.is_file():
            return str(p)
        logger.warning("Config file not found: %s", config_path)
        return None

    # 2. Workspace and its parents
    if workspace:
        ws = Path(workspace)
        for directory in (ws, *ws.parents):
            candidate = directory / DEFAULT_CONFIG_FILENAME
            if candidate.is_file():
                return str(candidate)

    # 3. Current working directory
    cwd_candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    return None
