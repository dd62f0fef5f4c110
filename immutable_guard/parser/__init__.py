from .workflow_parser import (
    ExternalReference,
    extract_references,
    parse_action_reference,
    parse_workflow_content,
)
from .discovery import discover_workflow_files

__all__ = [
    "ExternalReference",
    "extract_references",
    "parse_action_reference",
    "parse_workflow_content",
    "discover_workflow_files",
]
