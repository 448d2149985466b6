"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from chatbot_widget.application.process_chat_message import ProcessChatMessageUseCase
from chatbot_widget.application.session_lifecycle import SessionLifecycleService
from chatbot_widget.config.settings import Settings


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_use_case(request: Request) -> ProcessChatMessageUseCase:
    """Retorna o use case de processamento de mensagens."""

    return request.app.state.use_case


def get_session_lifecycle(request: Request) -> SessionLifecycleService:
    return request.app.state.session_lifecycle
