"""Rotas HTTP do widget de chat."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from chatbot_widget.api.dependencies import get_session_lifecycle, get_settings, get_use_case
from chatbot_widget.application.dto import ProcessMessageRequest
from chatbot_widget.application.process_chat_message import ProcessChatMessageUseCase
from chatbot_widget.application.session_lifecycle import SessionLifecycleService
from chatbot_widget.config.settings import Settings
from chatbot_widget.domain.session import ChatSession
from chatbot_widget.observability.middleware import get_correlation_id

router = APIRouter()


class CreateSessionBody(BaseModel):
    chatbot_config_id: str
    visitor_id: str | None = None
    initial_context: dict[str, Any] | None = None
    user_agent: str | None = None
    referrer_url: str | None = None
    current_url: str | None = None


class SendMessageBody(BaseModel):
    session_id: str
    organization_id: str | None = None
    user_message: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class SweepBody(BaseModel):
    timeout_minutes: int | None = None


def _session_view(session: ChatSession) -> dict[str, Any]:
    return {
        "session_id": session.id,
        "session_token": session.session_token,
        "visitor_id": session.visitor_id,
        "status": session.status.value,
        "started_at": session.started_at.isoformat(),
    }


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/chat/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    body: CreateSessionBody,
    lifecycle: SessionLifecycleService = Depends(get_session_lifecycle),
) -> dict[str, Any]:
    """Abre uma sessão para um chatbot ativo."""
    session = await lifecycle.initialize_session(
        body.chatbot_config_id,
        body.visitor_id,
        initial_context=body.initial_context,
        user_agent=body.user_agent,
        referrer_url=body.referrer_url,
        current_url=body.current_url,
    )
    return {**_session_view(session), "correlation_id": get_correlation_id()}


@router.post("/chat/sessions/{session_id}/end")
async def end_session(
    session_id: str,
    lifecycle: SessionLifecycleService = Depends(get_session_lifecycle),
) -> dict[str, Any]:
    session = await lifecycle.end_session(session_id)
    return _session_view(session)


@router.post("/chat/messages")
async def send_message(
    body: SendMessageBody,
    use_case: ProcessChatMessageUseCase = Depends(get_use_case),
) -> dict[str, Any]:
    """Processa uma mensagem do visitante e devolve a resposta do bot."""
    result = await use_case.execute(
        ProcessMessageRequest(
            user_message=body.user_message,
            session_id=body.session_id,
            organization_id=body.organization_id,
            metadata=body.metadata,
        )
    )
    return {
        "session_id": result.session.id,
        "session_status": result.session.status.value,
        "bot_message": {
            "id": result.bot_message.id,
            "content": result.bot_message.content,
            "timestamp": result.bot_message.timestamp.isoformat(),
        },
        "intent": result.enhanced_context.intent,
        "should_capture_lead_info": result.should_capture_lead_info,
        "suggested_next_actions": list(result.suggested_next_actions),
        "conversation_metrics": result.conversation_metrics.model_dump(),
        "correlation_id": get_correlation_id(),
    }


@router.post("/internal/sessions/sweep")
async def sweep_sessions(
    body: SweepBody,
    lifecycle: SessionLifecycleService = Depends(get_session_lifecycle),
) -> dict[str, Any]:
    """Marca sessões inativas como abandoned (disparado por scheduler)."""
    abandoned = await lifecycle.sweep_expired_sessions(body.timeout_minutes)
    return {"abandoned": len(abandoned), "session_ids": [s.id for s in abandoned]}
