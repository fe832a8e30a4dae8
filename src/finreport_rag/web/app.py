"""FastAPI web server for the financial report chat.

Routes:
  GET  /api/chat      -- knowledge-base status
  POST /api/chat      -- list / select / ask (see finreport_rag.web.chat)
  POST /api/new-chat  -- forget a session's selection
  GET  /api/debug     -- project grouping, or per-file extraction with ?file_id=

Usage:
    python -m finreport_rag.web.app
    # => Uvicorn running on http://localhost:8000
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from finreport_rag import config
from finreport_rag.drive.projects import group_projects, parse_file_name
from finreport_rag.drive.store import get_store
from finreport_rag.ingestion.adapters.sources import resolve_format
from finreport_rag.ingestion.pipeline import extract_report
from finreport_rag.web.chat import ChatReply, ChatService
from finreport_rag.web.session import InMemorySessionStore

logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""

    question: str
    session_id: str = "default"
    selected_report_index: int | None = None


class NewChatRequest(BaseModel):
    """Body of POST /api/new-chat."""

    session_id: str


def build_chat_service() -> ChatService:
    """Wire the configured document store and an in-memory session store."""
    return ChatService(store=get_store(), sessions=InMemorySessionStore(), folder_id=config.KNOWLEDGE_BASE_FOLDER_ID)


def create_app(service: ChatService | None = None) -> FastAPI:
    """Build the app; *service* is injected in tests, otherwise built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "chat_service", None) is None:
            logger.info("Initializing chat service...")
            app.state.chat_service = build_chat_service()
        logger.info("Chat service ready - listening for requests.")
        yield

    app = FastAPI(title="Financial Report Chat", lifespan=lifespan)
    app.state.chat_service = service

    def _service(request: Request) -> ChatService:
        return request.app.state.chat_service

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    @app.get("/api/chat")
    def status(request: Request):
        """Report whether the knowledge base is reachable."""
        chat_service = _service(request)
        check = getattr(chat_service.store, "check_connection", None)
        connected, detail = check() if check else (True, "unknown")
        return {
            "status": "Financial Report Analyzer",
            "connection": {"connected": connected, "detail": detail},
            "knowledge_base": {"folder_id": chat_service.folder_id or "not configured", "configured": connected},
        }

    @app.post("/api/chat", response_model=ChatReply)
    def chat(body: ChatRequest, request: Request) -> ChatReply:
        """Handle one chat message."""
        try:
            return _service(request).handle(body.question, body.session_id, body.selected_report_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.post("/api/new-chat")
    def new_chat(body: NewChatRequest, request: Request):
        """Clear a session's report selection."""
        _service(request).sessions.delete(body.session_id)
        return {"ok": True}

    @app.get("/api/debug")
    def debug(request: Request, file_id: str | None = None, file_name: str | None = None, mime_type: str = "application/octet-stream"):
        """Show project grouping, or the extraction result for one file."""
        chat_service = _service(request)
        if file_id:
            data = chat_service.store.download_file(file_id, mime_type, file_name)
            if data is None:
                raise HTTPException(status_code=404, detail=f"Failed to download file {file_id}")
            name = file_name or file_id
            fmt = resolve_format(mime_type=mime_type, file_name=name)
            result = extract_report(data, fmt if fmt is not None else mime_type, name)
            return {
                "file_name": name,
                "mime_type": mime_type,
                "content_size": len(data),
                "records": [r.model_dump(mode="json") for r in result.records],
                "errors": result.errors,
                "table_count": len(result.tables),
            }

        files = chat_service.store.list_files(chat_service.folder_id)
        return {
            "status": "Debug endpoint working",
            "folder_id": chat_service.folder_id,
            "total_files": len(files),
            "projects": [
                {
                    "project_no": p.project_no,
                    "project_name": p.project_name,
                    "authoritative_file": (p.authoritative_file().name if p.authoritative_file() else None),
                    "files": [{"id": f.id, "name": f.name, "mime_type": f.mime_type} for f in p.files],
                }
                for p in group_projects(files)
            ],
            "parsed_names": {f.name: list(parse_file_name(f.name)) for f in files},
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn  # pylint: disable=import-outside-toplevel

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    uvicorn.run("finreport_rag.web.app:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
