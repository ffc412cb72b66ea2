"""FastAPI server: session lifecycle, codebase upload, browsing, and assistant calls."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from codepilot import config
from codepilot.agent.gateway import ExplainResult, FixResult, SearchResult
from codepilot.errors import AssistantError, DecodeError, NotFound, ValidationError
from codepilot.indexer.archive import decode_data_uri
from codepilot.session import READ_ERROR_CONTENT, SessionManager, SessionState

# Configure logging on import, before anything else logs
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="CodePilot", description="Codebase browsing and AI assistant service")

# CORS for the browser front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_sessions = SessionManager()


def _get_session(session_id: str) -> SessionState:
    try:
        return _sessions.get(session_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Request / response models ──


class IndexRequest(BaseModel):
    codebase: str  # data:<mimetype>;base64,<encoded zip>


class SearchBody(BaseModel):
    query: str


class ExplainBody(BaseModel):
    code: str


class FixBody(BaseModel):
    errorMessage: str
    codeSnippet: str


class FileResponse(BaseModel):
    path: str
    content: str


# ── Health ──


@app.get("/health")
def health():
    return {"status": "ok"}


# ── Sessions ──


@app.post("/sessions", status_code=201)
def create_session():
    return _sessions.create().snapshot()


@app.get("/sessions/{session_id}")
def get_session(session_id: str):
    return _get_session(session_id).snapshot()


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    try:
        _sessions.delete(session_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}


# ── Upload ──


def _install(session: SessionState, data: bytes) -> dict:
    t0 = time.perf_counter()
    try:
        result = session.upload(data)
        tree = session.tree.to_dict()
    except DecodeError as e:
        logger.warning("Upload failed for session %s: %s", session.id, e)
        raise HTTPException(status_code=400, detail=f"Upload failed: {e}")
    except Exception as e:
        logger.exception("Upload error after %.2fs", time.perf_counter() - t0)
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("Upload complete: %d files (%.2fs)", result.file_count or 0, time.perf_counter() - t0)
    return {**result.model_dump(), "tree": tree}


@app.post("/sessions/{session_id}/upload")
def upload_codebase(session_id: str, file: UploadFile = File(...)):
    """Upload a zip archive as multipart form data."""
    session = _get_session(session_id)
    logger.info("POST /upload session=%s filename=%r", session_id, file.filename)
    data = file.file.read()
    return _install(session, data)


@app.post("/sessions/{session_id}/index")
def index_codebase(session_id: str, req: IndexRequest):
    """Upload a zip archive encoded as a base64 data URI."""
    session = _get_session(session_id)
    try:
        data = decode_data_uri(req.codebase)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=f"Upload failed: {e}")
    return _install(session, data)


# ── Browsing ──


@app.get("/sessions/{session_id}/tree")
def get_tree(session_id: str):
    session = _get_session(session_id)
    if session.tree is None:
        raise HTTPException(status_code=404, detail="No codebase uploaded")
    return session.tree.to_dict()


@app.get("/sessions/{session_id}/files/{file_path:path}", response_model=FileResponse)
def get_file(session_id: str, file_path: str):
    session = _get_session(session_id)
    try:
        content = session.open_file(file_path)
    except NotFound:
        raise HTTPException(status_code=404, detail=READ_ERROR_CONTENT)
    return FileResponse(path=file_path, content=content)


# ── Assistant ──


@app.post("/sessions/{session_id}/search", response_model=SearchResult)
def search(session_id: str, req: SearchBody):
    session = _get_session(session_id)
    logger.info("POST /search query=%r", req.query[:120])
    try:
        return session.search(req.query)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/sessions/{session_id}/explain", response_model=ExplainResult)
def explain(session_id: str, req: ExplainBody):
    session = _get_session(session_id)
    logger.info("POST /explain %d chars", len(req.code))
    t0 = time.perf_counter()
    try:
        return session.explain(req.code)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AssistantError as e:
        logger.error("Explanation failed after %.2fs: %s", time.perf_counter() - t0, e)
        raise HTTPException(status_code=502, detail=f"Could not generate an explanation: {e}")


@app.post("/sessions/{session_id}/fix", response_model=FixResult)
def fix(session_id: str, req: FixBody):
    session = _get_session(session_id)
    logger.info("POST /fix error=%r", req.errorMessage[:120])
    t0 = time.perf_counter()
    try:
        return session.fix(req.errorMessage, req.codeSnippet)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AssistantError as e:
        logger.error("Fix failed after %.2fs: %s", time.perf_counter() - t0, e)
        raise HTTPException(status_code=502, detail=f"Could not generate a fix for the error: {e}")
