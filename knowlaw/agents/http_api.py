from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from knowlaw.agents.context import AppContext, build_context
from knowlaw.schemas.models import (
    BookingConfirmation,
    BookingListResponse,
    BookingRequest,
    BookingResponse,
    ChatResponse,
    ConversationCreateRequest,
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationRenameRequest,
    ConversationResponse,
    DashboardResponse,
    DashboardStats,
    DashboardUser,
    Envelope,
    Identity,
    LoginRequest,
    MessageEditRequest,
    MessageResponse,
    RegisterRequest,
    SessionResponse,
    UserView,
)
from knowlaw.utils.config import AppConfig
from knowlaw.utils.errors import (
    AuthenticationRequired,
    KnowLawError,
    NotFound,
    StorageUnavailable,
    UploadRejected,
    ValidationError,
)
from knowlaw.utils.logging import get_logger
from knowlaw.utils.session import SessionState

log = get_logger(__name__)

router = APIRouter()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _session_token(request: Request, context: AppContext) -> str | None:
    return request.cookies.get(context.config.session_cookie_name)


def current_identity(request: Request, context: AppContext = Depends(get_context)) -> Identity | None:
    return context.identity.resolve_identity(_session_token(request, context))


def require_identity(identity: Identity | None = Depends(current_identity)) -> Identity:
    if identity is None:
        raise AuthenticationRequired()
    return identity


def _set_session_cookie(response: Response, context: AppContext, state: SessionState) -> None:
    response.set_cookie(
        key=context.config.session_cookie_name,
        value=state.token,
        max_age=context.config.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=context.config.session_cookie_secure,
    )


def _user_view(identity: Identity) -> UserView:
    return UserView(id=identity.owner_id, name=identity.name, email=identity.email, is_guest=identity.is_guest)


_MAX_ROW_ID = 2**63 - 1


def _parse_id(raw: str | int | None, message: str) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise NotFound(message)
    if value <= 0 or value > _MAX_ROW_ID:
        raise NotFound(message)
    return value


# Session and identity


@router.post("/register", response_model=SessionResponse, response_model_exclude_none=True)
def register(
    payload: RegisterRequest,
    response: Response,
    context: AppContext = Depends(get_context),
) -> SessionResponse:
    state = context.identity.register(payload.name, payload.email, payload.password, payload.confirm_password)
    _set_session_cookie(response, context, state)
    return SessionResponse(message="Registration successful", user=_user_view(state.identity))


@router.post("/login", response_model=SessionResponse, response_model_exclude_none=True)
def login(
    payload: LoginRequest,
    response: Response,
    context: AppContext = Depends(get_context),
) -> SessionResponse:
    state = context.identity.login(payload.email, payload.password)
    _set_session_cookie(response, context, state)
    return SessionResponse(message="Login successful", user=_user_view(state.identity))


@router.get("/session", response_model=SessionResponse, response_model_exclude_none=True)
def session(identity: Identity | None = Depends(current_identity)) -> SessionResponse:
    if identity is None:
        return SessionResponse(success=False, message="Not authenticated", allow_guest=True)
    return SessionResponse(user=_user_view(identity))


@router.post("/guest", response_model=SessionResponse, response_model_exclude_none=True)
def guest(response: Response, context: AppContext = Depends(get_context)) -> SessionResponse:
    state = context.identity.create_guest()
    _set_session_cookie(response, context, state)
    return SessionResponse(message="Guest session created", user=_user_view(state.identity))


@router.post("/logout", response_model=Envelope, response_model_exclude_none=True)
def logout(request: Request, response: Response, context: AppContext = Depends(get_context)) -> Envelope:
    context.identity.logout(_session_token(request, context))
    response.delete_cookie(context.config.session_cookie_name)
    return Envelope(message="Logged out successfully")


@router.get("/dashboard", response_model=DashboardResponse, response_model_exclude_none=True)
def dashboard(
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> DashboardResponse:
    total_users = context.users.count()
    if identity.is_guest:
        user = DashboardUser(**_user_view(identity).model_dump(), created_at=datetime.now(UTC))
        return DashboardResponse(user=user, stats=DashboardStats(total_users=total_users, days_active=0))
    created_at = identity.created_at or datetime.now(UTC)
    days_active = max((datetime.now(UTC) - created_at).days, 0)
    user = DashboardUser(**_user_view(identity).model_dump(), created_at=created_at)
    return DashboardResponse(user=user, stats=DashboardStats(total_users=total_users, days_active=days_active))


# Conversations


@router.get("/conversations", response_model=ConversationListResponse, response_model_exclude_none=True)
def list_conversations(
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> ConversationListResponse:
    return ConversationListResponse(conversations=context.conversations.list(identity.owner))


@router.post("/conversations", response_model=ConversationResponse, response_model_exclude_none=True)
def create_conversation(
    payload: ConversationCreateRequest | None = None,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> ConversationResponse:
    title = payload.title if payload else None
    conversation = context.conversations.create(identity.owner, title)
    return ConversationResponse(message="Conversation created", conversation=conversation)


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetailResponse,
    response_model_exclude_none=True,
)
def get_conversation(
    conversation_id: str,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> ConversationDetailResponse:
    cid = _parse_id(conversation_id, "Conversation not found")
    conversation = context.conversations.get(identity.owner, cid)
    messages = context.conversations.list_messages(identity.owner, cid)
    return ConversationDetailResponse(conversation=conversation, messages=messages)


@router.put("/conversations/{conversation_id}", response_model=ConversationResponse, response_model_exclude_none=True)
def rename_conversation(
    conversation_id: str,
    payload: ConversationRenameRequest,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> ConversationResponse:
    cid = _parse_id(conversation_id, "Conversation not found")
    conversation = context.conversations.rename(identity.owner, cid, payload.title)
    return ConversationResponse(message="Conversation renamed successfully", conversation=conversation)


@router.delete("/conversations/{conversation_id}", response_model=Envelope, response_model_exclude_none=True)
def delete_conversation(
    conversation_id: str,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> Envelope:
    cid = _parse_id(conversation_id, "Conversation not found")
    context.conversations.delete(identity.owner, cid)
    return Envelope(message="Conversation deleted successfully")


@router.put(
    "/conversations/{conversation_id}/messages/{message_id}",
    response_model=MessageResponse,
    response_model_exclude_none=True,
)
def edit_message(
    conversation_id: str,
    message_id: str,
    payload: MessageEditRequest,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> MessageResponse:
    cid = _parse_id(conversation_id, "Conversation not found")
    mid = _parse_id(message_id, "Message not found or cannot be edited")
    updated = context.conversations.edit_message(identity.owner, cid, mid, payload.content)
    return MessageResponse(message="Message updated successfully", data=updated)


@router.delete(
    "/conversations/{conversation_id}/messages/{message_id}",
    response_model=Envelope,
    response_model_exclude_none=True,
)
def delete_message(
    conversation_id: str,
    message_id: str,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> Envelope:
    cid = _parse_id(conversation_id, "Conversation not found")
    mid = _parse_id(message_id, "Message not found")
    context.conversations.delete_message(identity.owner, cid, mid)
    return Envelope(message="Message deleted successfully")


# Chat


async def _read_chat_form(request: Request) -> Tuple[str, str | None, List[UploadFile], Any]:
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Invalid request body")
        if not isinstance(body, dict):
            body = {}
        conversation_id = body.get("conversationId")
        return str(body.get("message") or ""), str(conversation_id) if conversation_id else None, [], None
    # The file count limit is enforced by the upload policy, not the parser.
    form = await request.form(max_files=10_000)
    message = form.get("message")
    conversation_id = form.get("conversationId")
    uploads = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]
    return (
        message if isinstance(message, str) else "",
        conversation_id if isinstance(conversation_id, str) and conversation_id.strip() else None,
        uploads,
        form,
    )


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: Request,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> ChatResponse:
    message, raw_conversation_id, uploads, form = await _read_chat_form(request)
    try:
        files = await context.uploads.read(uploads)
        conversation_id = (
            _parse_id(raw_conversation_id, "Conversation not found") if raw_conversation_id is not None else None
        )
        turn = await context.chat.run_turn(
            identity.owner,
            message,
            conversation_id=conversation_id,
            files=files,
        )
    finally:
        if form is not None:
            await form.close()
    return ChatResponse(
        response=turn.response,
        conversation_id=turn.conversation_id,
        user_message_id=turn.user_message.id,
        assistant_message_id=turn.assistant_message.id,
    )


# Bookings


@router.post("/booking", response_model=BookingResponse, response_model_exclude_none=True)
def create_booking(
    payload: BookingRequest,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> BookingResponse:
    booking = context.bookings.create(identity.owner, payload)
    return BookingResponse(
        message="Appointment booked successfully",
        booking=BookingConfirmation(
            id=booking.id,
            lawyer_name=booking.lawyer_name,
            appointment_date=booking.appointment_date,
            appointment_time=booking.appointment_time,
            status=booking.status,
        ),
    )


@router.get("/bookings", response_model=BookingListResponse, response_model_exclude_none=True)
def list_bookings(
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
) -> BookingListResponse:
    return BookingListResponse(bookings=context.bookings.list(identity.owner))


# Operations


@router.get("/metrics")
def metrics_snapshot(context: AppContext = Depends(get_context)) -> Dict[str, Any]:
    return context.metrics.snapshot()


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(KnowLawError)
    async def knowlaw_error_handler(request: Request, exc: KnowLawError) -> JSONResponse:
        context: AppContext = request.app.state.context
        if isinstance(exc, StorageUnavailable):
            context.metrics.increment_counter("storage_unavailable")
            log.error("storage_unavailable", path=request.url.path, error=repr(exc.__cause__))
        elif isinstance(exc, UploadRejected):
            context.metrics.increment_counter(f"upload_rejected::{type(exc).__name__}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg") if errors else None
        log.info("request_validation_failed", path=request.url.path, detail=detail)
        return _error_response(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))


def create_app(config: AppConfig | None = None, *, context: AppContext | None = None) -> FastAPI:
    """Build the API. ``context`` lets tests inject stores or a responder."""

    config = config or (context.config if context else AppConfig.from_env())
    context = context or build_context(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context.start()
        try:
            yield
        finally:
            context.close()

    app = FastAPI(title="Know Law API", version="0.1.0", lifespan=lifespan)
    app.state.context = context
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        metrics = context.metrics
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            metrics.record(request.url.path, duration_ms)
            log.error(
                "api_request_failed",
                path=request.url.path,
                method=request.method,
                duration_ms=duration_ms,
                request_id=request_id,
                error=str(exc),
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        metrics.record(request.url.path, duration_ms)
        log.info(
            "api_request",
            path=request.url.path,
            method=request.method,
            status=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response

    _install_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
