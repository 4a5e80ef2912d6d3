"""
agentgate API Server

FastAPI surface over an AgentGateway: chat sessions, tool listing and
invocation, bash/python execution, model listing, named workspaces and a
per-user file manager. Tool, execution and file routes take an optional
workspace name; without one they run in the user's home. The gateway
is built once at startup and injected here.

Usage:
    from agentgate import create_gateway
    from agentgate.api.server import create_app

    app = create_app(create_gateway())
"""

from __future__ import annotations

import inspect
import uuid
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from agentgate import __version__
from agentgate.core.models import ChatMessage, ChatRole, GatewayResult
from agentgate.exceptions import (
    AccessDeniedError,
    AgentGateError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from agentgate.gateway import AgentGateway
from agentgate.logging import get_logger
from agentgate.providers.credentials import UserCredentials
from agentgate.workspace.files import FileManager

logger = get_logger("agentgate.api")

USER_HEADER = "X-User-Email"


class _Unauthorized(Exception):
    """No user could be resolved for the request."""


# Most specific class first: ToolDisabledError is a NotFoundError
_STATUS_BY_ERROR: tuple[tuple[type[AgentGateError], int], ...] = (
    (ValidationError, 400),
    (AccessDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)
_STATUS_BY_NAME = {
    "ValidationError": 400,
    "AccessDeniedError": 403,
    "NotFoundError": 404,
    "ToolDisabledError": 404,
    "ConflictError": 409,
}


# ─── Request/Response Models ────────────────────────────────

class ChatRequest(BaseModel):
    message: str
    model: str | None = None
    sessionId: str | None = None


class ChatResponse(BaseModel):
    sessionId: str
    message: ChatMessage
    success: bool


class ToggleRequest(BaseModel):
    enabled: bool


class InvokeRequest(BaseModel):
    args: dict[str, Any] = Field(default_factory=dict)
    workspace: str | None = None


class BashRequest(BaseModel):
    command: str
    cwd: str | None = None
    workspace: str | None = None


class PythonRequest(BaseModel):
    code: str
    workspace: str | None = None


class WorkspaceRequest(BaseModel):
    name: str


class FolderRequest(BaseModel):
    name: str
    path: str = "/"


class RenameRequest(BaseModel):
    oldName: str
    newName: str
    path: str = "/"


class DeleteRequest(BaseModel):
    name: str
    path: str = "/"


class UserContext(BaseModel):
    """Who is calling, as established by the authentication layer."""
    email: str
    credentials: UserCredentials = Field(default_factory=UserCredentials)


UserResolver = Callable[[Request], Awaitable[UserContext | None] | UserContext | None]


def header_user_resolver(request: Request) -> UserContext | None:
    """Identify the caller from the X-User-Email header."""
    email = request.headers.get(USER_HEADER, "").strip()
    if not email:
        return None
    return UserContext(email=email)


# ─── Session Store ──────────────────────────────────────────

class ChatSession(BaseModel):
    id: str
    owner: str
    title: str
    model: str
    messages: list[ChatMessage] = Field(default_factory=list)


class SessionStore:
    """In-memory chat sessions keyed by id and scoped to their owner."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}

    def create(self, owner: str, title: str, model: str) -> ChatSession:
        session = ChatSession(id=uuid.uuid4().hex, owner=owner, title=title, model=model)
        self._sessions[session.id] = session
        return session

    def get(self, owner: str, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None or session.owner != owner:
            raise NotFoundError("Chat session", session_id)
        return session

    def list(self, owner: str) -> list[ChatSession]:
        return [s for s in self._sessions.values() if s.owner == owner]

    def append(self, owner: str, session_id: str, *messages: ChatMessage) -> ChatSession:
        session = self.get(owner, session_id)
        session.messages.extend(messages)
        return session

    def delete(self, owner: str, session_id: str) -> None:
        self.get(owner, session_id)
        del self._sessions[session_id]


# ─── Helpers ────────────────────────────────────────────────

def _status_for(exc: AgentGateError) -> int:
    for error_class, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status
    return 500


def _envelope(result: GatewayResult) -> JSONResponse:
    status = 200 if result.success else _STATUS_BY_NAME.get(result.error_type or "", 200)
    return JSONResponse(status_code=status, content=result.model_dump(mode="json", exclude_none=True))


# ─── App ─────────────────────────────────────────────────────

def create_app(
    gateway: AgentGateway,
    sessions: SessionStore | None = None,
    user_resolver: UserResolver | None = None,
) -> FastAPI:
    """Build the HTTP application around an already-wired gateway."""
    sessions = sessions or SessionStore()
    resolver = user_resolver or header_user_resolver

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API started with %d tools", len(gateway.registry))
        yield

    app = FastAPI(
        title="agentgate API",
        description="Tool and command execution gateway for chat assistants",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgentGateError)
    async def _agentgate_error(request: Request, exc: AgentGateError) -> JSONResponse:
        status = _status_for(exc)
        if status == 500:
            logger.error("Request failed: %s", exc.message, extra={"error_type": exc.error_type})
        return JSONResponse(
            status_code=status,
            content={"success": False, "error": exc.message, "error_type": exc.error_type},
        )

    async def current_user(request: Request) -> UserContext:
        user = resolver(request)
        if inspect.isawaitable(user):
            user = await user
        if user is None:
            raise _Unauthorized()
        return user

    @app.exception_handler(_Unauthorized)
    async def _unauthorized(request: Request, exc: _Unauthorized) -> JSONResponse:
        return JSONResponse(status_code=401, content={"message": "Unauthorized"})

    def file_manager(
        workspace: str | None = Query(None),
        user: UserContext = Depends(current_user),
    ) -> FileManager:
        return FileManager(gateway.user_root(user.email, workspace))

    # ─── Chat ────────────────────────────────────────────────

    @app.post("/api/chat")
    async def chat(body: ChatRequest, user: UserContext = Depends(current_user)) -> ChatResponse:
        if not body.message.strip():
            raise ValidationError("Message is required")

        if body.sessionId:
            session = sessions.get(user.email, body.sessionId)
        else:
            title = body.message[:50] + ("..." if len(body.message) > 50 else "")
            session = sessions.create(
                user.email, title, body.model or gateway.settings.default_model
            )

        user_message = ChatMessage(role=ChatRole.USER, content=body.message)
        transcript = [*session.messages, user_message]
        result = await gateway.chat(
            transcript, model=body.model or session.model, credentials=user.credentials
        )

        reply = ChatMessage(
            role=ChatRole.ASSISTANT,
            content=result.content if result.success else f"Error: {result.error}",
        )
        sessions.append(user.email, session.id, user_message, reply)
        return ChatResponse(sessionId=session.id, message=reply, success=result.success)

    @app.get("/api/chat/sessions")
    async def list_sessions(user: UserContext = Depends(current_user)) -> list[ChatSession]:
        return sessions.list(user.email)

    @app.get("/api/chat/sessions/{session_id}")
    async def get_session(session_id: str, user: UserContext = Depends(current_user)) -> ChatSession:
        return sessions.get(user.email, session_id)

    @app.delete("/api/chat/sessions/{session_id}")
    async def delete_session(session_id: str, user: UserContext = Depends(current_user)) -> dict:
        sessions.delete(user.email, session_id)
        return {"success": True}

    @app.get("/api/models")
    async def list_models(user: UserContext = Depends(current_user)) -> JSONResponse:
        return _envelope(await gateway.available_models(user.credentials))

    # ─── Tools ───────────────────────────────────────────────

    @app.get("/api/tools")
    async def list_tools(user: UserContext = Depends(current_user)) -> list[dict]:
        return [d.model_dump(mode="json") for d in gateway.list_tools()]

    @app.put("/api/tools/{name}/enabled")
    async def toggle_tool(
        name: str,
        body: ToggleRequest,
        user: UserContext = Depends(current_user),
    ) -> JSONResponse:
        return _envelope(gateway.set_tool_enabled(name, body.enabled))

    @app.post("/api/tools/{name}/invoke")
    async def invoke_tool(
        name: str,
        body: InvokeRequest,
        user: UserContext = Depends(current_user),
    ) -> JSONResponse:
        return _envelope(
            await gateway.invoke_tool(name, body.args, gateway.user_root(user.email, body.workspace))
        )

    # ─── Execution ───────────────────────────────────────────

    @app.post("/api/execute/bash")
    async def execute_bash(body: BashRequest, user: UserContext = Depends(current_user)) -> JSONResponse:
        root = gateway.user_root(user.email, body.workspace)
        cwd = root.resolve(body.cwd, allow_root=True) if body.cwd else root.path
        return _envelope(await gateway.execute_bash(body.command, cwd))

    @app.post("/api/execute/python")
    async def execute_python(body: PythonRequest, user: UserContext = Depends(current_user)) -> JSONResponse:
        root = gateway.user_root(user.email, body.workspace)
        return _envelope(await gateway.execute_python(body.code, root))

    # ─── Workspaces ──────────────────────────────────────────

    @app.get("/api/workspaces")
    async def list_workspaces(user: UserContext = Depends(current_user)) -> dict:
        return {"workspaces": gateway.list_workspaces(user.email)}

    @app.post("/api/workspaces")
    async def create_workspace(body: WorkspaceRequest, user: UserContext = Depends(current_user)) -> dict:
        root = gateway.create_workspace(user.email, body.name)
        return {"success": True, "name": root.path.name}

    @app.delete("/api/workspaces/{name}")
    async def delete_workspace(name: str, user: UserContext = Depends(current_user)) -> dict:
        await gateway.delete_workspace(user.email, name)
        return {"success": True}

    # ─── Files ───────────────────────────────────────────────

    @app.get("/api/files")
    async def list_files(path: str = "/", fm: FileManager = Depends(file_manager)) -> dict:
        entries = await fm.list_directory(path)
        return {
            "files": [e.model_dump(mode="json", exclude_none=True) for e in entries],
            "currentDirectory": path,
        }

    @app.post("/api/files/folder")
    async def create_folder(body: FolderRequest, fm: FileManager = Depends(file_manager)) -> dict:
        created = await fm.create_folder(body.name, body.path)
        return {"success": True, "path": created}

    @app.put("/api/files/rename")
    async def rename_item(body: RenameRequest, fm: FileManager = Depends(file_manager)) -> dict:
        renamed = await fm.rename_item(body.oldName, body.newName, body.path)
        return {"success": True, "path": renamed}

    @app.delete("/api/files/item")
    async def delete_item(body: DeleteRequest, fm: FileManager = Depends(file_manager)) -> dict:
        deleted = await fm.delete_item(body.name, body.path)
        return {"success": True, "path": deleted}

    @app.get("/api/files/download")
    async def download(
        name: str = Query(...),
        path: str = Query("/"),
        fm: FileManager = Depends(file_manager),
    ) -> FileResponse:
        return FileResponse(fm.get_download_path(name, path), filename=name)

    @app.get("/api/files/read")
    async def read_file(
        name: str = Query(...),
        path: str = Query("/"),
        fm: FileManager = Depends(file_manager),
    ) -> dict:
        content = await fm.read_text(name, path)
        return {"success": True, "content": content}

    @app.post("/api/files/upload")
    async def upload(
        file: UploadFile = File(...),
        path: str = Form("/"),
        fm: FileManager = Depends(file_manager),
    ) -> dict:
        saved = await fm.save_upload(file.filename or "", file.file, path)
        return {"success": True, "path": saved}

    return app
