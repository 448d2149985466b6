"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from typing import cast

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from chatbot_widget.api.routes import router
from chatbot_widget.application.factories.pipeline_factory import build_pipeline, build_use_case
from chatbot_widget.application.session_lifecycle import SessionLifecycleService
from chatbot_widget.config.settings import Settings, get_settings
from chatbot_widget.domain.errors import (
    AIInteractionTimeoutError,
    ChatbotWidgetError,
    ConfigurationError,
    ConsistencyError,
    NotFoundError,
    UpstreamCapabilityError,
    ValidationError,
)
from chatbot_widget.infra import InMemoryKnowledgeSearch, create_repositories
from chatbot_widget.observability.logging import configure_logging, get_logger
from chatbot_widget.observability.middleware import CorrelationIdMiddleware, get_correlation_id

logger = get_logger(__name__)

# Ordem importa: subclasses antes das bases
ERROR_STATUS: tuple[tuple[type[ChatbotWidgetError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConsistencyError, status.HTTP_409_CONFLICT),
    (AIInteractionTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (UpstreamCapabilityError, status.HTTP_502_BAD_GATEWAY),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(error: ChatbotWidgetError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    error = cast(ChatbotWidgetError, exc)
    status_code = status_for(error)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_code": error.code, "status_code": status_code},
        )
    return JSONResponse(
        status_code=status_code,
        content={"error": error.to_dict(), "correlation_id": get_correlation_id()},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Cria a aplicação FastAPI."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors = settings.validate_all()
    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ConfigurationError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.correlation_id_header)
    app.add_exception_handler(ChatbotWidgetError, _handle_domain_error)
    app.include_router(router)

    repositories = create_repositories(settings)
    knowledge_search = InMemoryKnowledgeSearch()
    pipeline = build_pipeline(
        repositories=repositories,
        knowledge_search=knowledge_search,
        settings=settings,
    )

    app.state.settings = settings
    app.state.repositories = repositories
    app.state.knowledge_search = knowledge_search
    app.state.use_case = build_use_case(pipeline, settings=settings)
    app.state.session_lifecycle = SessionLifecycleService(
        repositories.sessions,
        repositories.chatbot_configs,
        default_timeout_minutes=settings.session_timeout_minutes,
        repository_timeout_seconds=settings.repository_timeout_seconds,
    )

    logger.info(
        "App created",
        extra={
            "environment": settings.environment,
            "session_store_backend": settings.session_store_backend,
            "openai_enabled": settings.openai_enabled,
        },
    )
    return app
