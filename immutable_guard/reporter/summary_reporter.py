"""
Job summary reporter: renders the report as Markdown for the GitHub
Actions run page ($GITHUB_STEP_SUMMARY).

Reference: https://docs.github.com/en/actions/using-workflows/workflow-commands-for-github-actions#adding-a-job-summary
"""

import logging
import os
from typing import Optional

from immutable_guard.engine import AggregatedReport, ClassifiedReference

logger = logging.getLogger(__name__)

_STATUS = {
    "mutable": "❌ Mutable",
    "immutable": "✅ Immutable",
    "first-party": "✅ First-party",
}


def _escape(text: str) -> str:
    return text.replace("|", "\\|")


def _table_row(ref: ClassifiedReference) -> str:
    cells = [
        f"`{ref.display_name}`",
        _STATUS[ref.category.value],
        _escape(ref.job_name),
        _escape(ref.step_name),
        _escape(ref.message),
    ]
    return "| " + " | ".join(cells) + " |"


def report_summary(report: AggregatedReport, workflows: list[str]) -> str:
    """Build the Markdown job summary for a run."""
    lines = []
    if report.all_passed:
        lines.append("## ✅ Immutable Actions Check - All Passed")
    else:
        lines.append("## ❌ Immutable Actions Check - Failed")
    lines.append("")

    if workflows:
        lines.append(f"**Workflows Checked:** {', '.join(workflows)}")
        lines.append("")

    if not report.by_file:
        lines.append("No third-party actions found in checked workflows.")
        lines.append("")
        return "\n".join(lines)

    lines.append(
        f"**Summary:** {len(report.immutable)} immutable, "
        f"{len(report.mutable)} mutable, {len(report.first_party)} first-party"
    )
    lines.append("")

    for source_file, file_report in report.by_file.items():
        lines.append(f"### `{source_file}`")
        lines.append("")
        lines.append("| Action | Status | Job | Step | Message |")
        lines.append("| --- | --- | --- | --- | --- |")
        for ref in file_report.mutable + file_report.immutable + file_report.first_party:
            lines.append(_table_row(ref))
        lines.append("")

    return "\n".join(lines)


def write_step_summary(markdown: str, summary_file: Optional[str] = None) -> bool:
    """Append Markdown to $GITHUB_STEP_SUMMARY. Returns False when it isn't set."""
    path = summary_file or os.environ.get("GITHUB_STEP_SUMMARY")
    if not path:
        logger.debug("GITHUB_STEP_SUMMARY not set, skipping job summary")
        return False

    with open(path, "a", encoding="utf-8") as f:
        f.write(markdown + "\n")
    return True
