"""Group knowledge-base files into projects and pick each project's authoritative source.

A project may have up to three sibling files describing the same figures, for
example ``123 Tak Tak Financial Report.pdf``, ``123 Tak Tak Financial
Report.xlsx`` and ``123 Tak Tak_data.json``.  Pre-processed JSON is the most
reliable, then the spreadsheet, then the PDF.
"""

import re

from pydantic import BaseModel, Field

from finreport_rag.drive.store import DriveFile
from finreport_rag.ingestion.adapters.sources import FORMAT_PRIORITY, ReportFormat, resolve_format

# Leading project number such as "123 - " or "123 "
_PROJECT_NO_RE = re.compile(r"^(\d+)\s*[-–]?\s*")

# Trailing "Financial Report ..." and leading "2024-05 ..." date stamps are not part of the name
_REPORT_SUFFIX_RE = re.compile(r"\s+Financial\s*Report.*", re.IGNORECASE)
_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}.*")

_STRIP_SUFFIXES = ("_data.json", ".json", ".pdf", ".xlsx", ".xls", ".csv")

UNKNOWN_PROJECT_NO = "Unknown"


def parse_file_name(file_name: str) -> tuple[str, str]:
    """Return (project number, project name) parsed from a report file name."""
    name = file_name
    for suffix in _STRIP_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[: -len(suffix)]
            break

    project_no = ""
    project_name = name
    match = _PROJECT_NO_RE.match(name)
    if match:
        project_no = match.group(1)
        project_name = name[match.end() :].strip()

    project_name = _DATE_PREFIX_RE.sub("", _REPORT_SUFFIX_RE.sub("", project_name)).strip()
    return project_no or UNKNOWN_PROJECT_NO, project_name or name


def file_format(file: DriveFile) -> ReportFormat | None:
    """Return the report format of a drive file, from its MIME type or extension."""
    return resolve_format(mime_type=file.mime_type, file_name=file.name)


class ReportProject(BaseModel):
    """One logical project and every source file found for it."""

    project_no: str
    project_name: str
    files: list[DriveFile] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """Case-insensitive grouping key."""
        return f"{self.project_no}-{self.project_name}".lower()

    @property
    def display_name(self) -> str:
        """Name shown in report lists."""
        if self.project_no == UNKNOWN_PROJECT_NO:
            return self.project_name
        return f"{self.project_no} {self.project_name}"

    def authoritative_file(self) -> DriveFile | None:
        """Return the most reliable readable file: JSON, then spreadsheet, then PDF."""
        readable = [f for f in self.files if file_format(f) is not None]
        if not readable:
            return None
        return min(readable, key=lambda f: FORMAT_PRIORITY[file_format(f)])


def group_projects(files: list[DriveFile]) -> list[ReportProject]:
    """Group files by parsed project, keeping the order projects are first seen in."""
    projects: dict[str, ReportProject] = {}
    for file in files:
        project_no, project_name = parse_file_name(file.name)
        project = ReportProject(project_no=project_no, project_name=project_name)
        projects.setdefault(project.key, project).files.append(file)
    return list(projects.values())
