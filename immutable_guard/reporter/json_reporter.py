"""
JSON reporter: structured output for programmatic use and for the
step outputs a GitHub Action exposes.
"""

import json
import logging
import os
from typing import Any, Optional

from immutable_guard.engine import AggregatedReport

logger = logging.getLogger(__name__)


def build_outputs(report: AggregatedReport, workflows: list[str]) -> dict[str, str]:
    """
    Build the step outputs of the action.

    Returns:
        workflows-checked, mutable-actions and immutable-actions as JSON
        arrays, and all-passed as "true"/"false".
    """
    return {
        "workflows-checked": json.dumps(workflows),
        "mutable-actions": json.dumps([r.to_dict() for r in report.mutable]),
        "immutable-actions": json.dumps([r.to_dict() for r in report.immutable]),
        "all-passed": "true" if report.all_passed else "false",
    }


def write_github_outputs(outputs: dict[str, str], output_file: Optional[str] = None) -> bool:
    """
    Append outputs to the file named by $GITHUB_OUTPUT.

    Returns:
        True if the outputs were written, False when not running in Actions.
    """
    path = output_file or os.environ.get("GITHUB_OUTPUT")
    if not path:
        logger.debug("GITHUB_OUTPUT not set, skipping step outputs")
        return False

    with open(path, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            f.write(f"{name}={value}\n")
    logger.info("Wrote %d output(s) to %s", len(outputs), path)
    return True


def report_json(report: AggregatedReport, workflows: list[str]) -> str:
    """
    Format the aggregated report as a JSON string.

    Args:
        report: Result of AggregationEngine.aggregate().
        workflows: Basenames of the workflow files that were checked.

    Returns:
        A JSON string with the flat lists, the per-file grouping and totals.
    """
    data: dict[str, Any] = {
        "workflows_checked": workflows,
        "all_passed": report.all_passed,
        "totals": {
            "mutable": len(report.mutable),
            "immutable": len(report.immutable),
            "first_party": len(report.first_party),
        },
    }
    data.update(report.to_dict())
    output = json.dumps(data, indent=2)
    logger.info("JSON report: %d mutable reference(s), %d bytes", len(report.mutable), len(output))
    return output
