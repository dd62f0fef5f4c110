from .console_reporter import report_console
from .json_reporter import build_outputs, report_json, write_github_outputs
from .summary_reporter import report_summary, write_step_summary

__all__ = [
    "report_console",
    "report_json",
    "build_outputs",
    "write_github_outputs",
    "report_summary",
    "write_step_summary",
]
