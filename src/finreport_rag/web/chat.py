"""Chat command handling: list reports, select one, answer questions about it.

Commands:
  hi / hello / list / list reports / show reports  -- list the projects
  <number>                                          -- select that project
  anything else                                     -- question about the selected project

The selected project's authoritative file (JSON > spreadsheet > PDF) is
downloaded, run through the ingestion pipeline, and the formatted figures are
handed to the LLM as context.
"""

import logging
from collections.abc import Callable

from pydantic import BaseModel, Field

from finreport_rag.drive.projects import ReportProject, file_format, group_projects
from finreport_rag.drive.store import DocumentStore, DriveFile
from finreport_rag.ingestion.pipeline import extract_report
from finreport_rag.ingestion.tables.formatting import format_tables
from finreport_rag.rag.ask import ask
from finreport_rag.rag.context import format_context
from finreport_rag.web.session import SessionStore

logger = logging.getLogger(__name__)

LIST_COMMANDS = frozenset({"hi", "hello", "list", "list reports", "show reports"})

NO_DOCUMENTS_MESSAGE = "Connected! No documents found."


class ReportListing(BaseModel):
    """One numbered entry of the report list."""

    index: int
    name: str
    file_id: str | None = None
    file_name: str | None = None


class ChatReply(BaseModel):
    """Response to one chat message."""

    answer: str
    reports: list[ReportListing] = Field(default_factory=list)
    selected_report_index: int | None = None
    selected_file_name: str | None = None
    show_list: bool = False


def _listings(projects: list[ReportProject]) -> list[ReportListing]:
    """Number projects from 1 with their authoritative file."""
    listings = []
    for idx, project in enumerate(projects, start=1):
        source = project.authoritative_file()
        listings.append(
            ReportListing(
                index=idx,
                name=project.display_name,
                file_id=source.id if source else None,
                file_name=source.name if source else None,
            )
        )
    return listings


def _list_answer(listings: list[ReportListing]) -> str:
    """Greeting plus the numbered report list."""
    lines = [f"{item.index}. **{item.name}** ({item.file_name or 'no readable file'})" for item in listings]
    return (
        "**Hello! Here are your financial reports:**\n\n"
        + "\n".join(lines)
        + f"\n\n**Enter the number (1-{len(listings)})** of the report you want to analyze."
    )


class ChatService:
    """Stateless request handler; selection state lives in the injected SessionStore."""

    def __init__(
        self,
        store: DocumentStore,
        sessions: SessionStore,
        folder_id: str = "",
        ask_fn: Callable[[str, str], str] = ask,
    ):
        self.store = store
        self.sessions = sessions
        self.folder_id = folder_id
        self.ask_fn = ask_fn

    # ── Context building ────────────────────────────────────────────────

    def build_context(self, file: DriveFile) -> str:
        """Download *file*, extract its figures and render the LLM context block."""
        data = self.store.download_file(file.id, file.mime_type, file.name)
        if data is None:
            logger.warning("Could not download %s; answering from its name only", file.name)
            return f"[FILE: {file.name}]\n[Error reading file: download failed or unsupported type]\n"

        fmt = file_format(file)
        result = extract_report(data, fmt if fmt is not None else file.mime_type, file.name)
        context = format_context(result.records, file.name, errors=result.errors)
        if result.tables:
            context += "\n" + format_tables(result.tables)
        return context

    # ── Request handling ────────────────────────────────────────────────

    def handle(self, question: str, session_id: str, selected_report_index: int | None = None) -> ChatReply:
        """Answer one chat message.  Raises ValueError for an empty question."""
        question = (question or "").strip()
        if not question:
            raise ValueError("Question is required")

        projects = group_projects(self.store.list_files(self.folder_id))
        listings = _listings(projects)
        if not projects:
            return ChatReply(answer=NO_DOCUMENTS_MESSAGE)

        session = self.sessions.get(session_id)
        lower = question.lower()

        # List command clears the selection
        if lower in LIST_COMMANDS:
            session.selected_report_index = None
            self.sessions.set(session_id, session)
            return ChatReply(answer=_list_answer(listings), reports=listings, show_list=True)

        # A bare number selects a report
        if question.isdigit() and 1 <= int(question) <= len(projects):
            session.selected_report_index = int(question)
            self.sessions.set(session_id, session)
            selected = listings[session.selected_report_index - 1]
            return ChatReply(
                answer=f"Selected report {selected.index}: **{selected.name}**. Ask me about its figures.",
                reports=listings,
                selected_report_index=selected.index,
                selected_file_name=selected.file_name,
            )

        if selected_report_index is not None and 1 <= selected_report_index <= len(projects):
            session.selected_report_index = selected_report_index
            self.sessions.set(session_id, session)

        index = session.selected_report_index
        if index is None or not 1 <= index <= len(projects):
            # Nothing selected: the LLM only sees the file list
            context = "\n\n".join(f"[FILE: {f.name}]" for p in projects for f in p.files)
            return ChatReply(answer=self.ask_fn(question, context), reports=listings)

        project = projects[index - 1]
        source = project.authoritative_file()
        if source is None:
            return ChatReply(
                answer=f"No readable file found for {project.display_name}.",
                reports=listings,
                selected_report_index=index,
            )

        context = self.build_context(source)
        answer = self.ask_fn(f"Focus ONLY on this report ({project.display_name}). {question}", context)
        return ChatReply(answer=answer, reports=listings, selected_report_index=index, selected_file_name=source.name)
