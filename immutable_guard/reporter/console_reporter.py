"""
Console reporter: prints the classification results grouped by workflow file.
"""

from immutable_guard.engine import AggregatedReport, Category, ClassifiedReference


# ANSI color codes for terminal output
COLORS = {
    Category.MUTABLE:     "\033[31m",  # red
    Category.IMMUTABLE:   "\033[32m",  # green
    Category.FIRST_PARTY: "\033[36m",  # cyan
}
BOLD = "\033[1m"
RESET = "\033[0m"


def _category_badge(category: Category) -> str:
    color = COLORS.get(category, "")
    label = category.value.upper()
    return f"{color}{BOLD}[{label:11s}]{RESET}"


def _format_entry(ref: ClassifiedReference) -> list[str]:
    lines = [f"    {_category_badge(ref.category)} {ref.display_name}"]
    location = f"job '{ref.job_name}', step '{ref.step_name}'"
    if ref.line_number:
        location += f", line {ref.line_number}"
    lines.append(f"        {location}")
    lines.append(f"        {ref.message}")
    return lines


def report_console(report: AggregatedReport, workflows: list[str]) -> str:
    """
    Format the aggregated report for the terminal.

    Args:
        report: Result of AggregationEngine.aggregate().
        workflows: Basenames of the workflow files that were checked.

    Returns:
        The formatted report string (also prints it).
    """
    lines = []

    # Header
    lines.append("")
    lines.append(f"{BOLD}{'=' * 60}{RESET}")
    lines.append(f"{BOLD}  Immutable Actions Report{RESET}")
    if workflows:
        lines.append(f"  Workflows: {', '.join(workflows)}")
    lines.append(f"{BOLD}{'=' * 60}{RESET}")
    lines.append("")

    if not report.by_file:
        lines.append("  ✅ No third-party actions found.")
        lines.append("")
        output = "\n".join(lines)
        print(output)
        return output

    lines.append(
        f"  {BOLD}{len(report.immutable)}{RESET} immutable, "
        f"{BOLD}{len(report.mutable)}{RESET} mutable, "
        f"{BOLD}{len(report.first_party)}{RESET} first-party"
    )
    lines.append("")

    for source_file, file_report in report.by_file.items():
        lines.append(f"  {'-' * 56}")
        lines.append(f"  {BOLD}{source_file}{RESET}")
        for ref in file_report.mutable + file_report.immutable + file_report.first_party:
            lines.extend(_format_entry(ref))
        lines.append("")

    lines.append(f"{BOLD}{'=' * 60}{RESET}")
    if report.all_passed:
        lines.append("  ✅ All third-party actions are using immutable releases!")
    else:
        lines.append(f"  ❌ {len(report.mutable)} action(s) using mutable releases.")
    lines.append("")

    output = "\n".join(lines)
    print(output)
    return output
