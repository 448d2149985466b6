"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou arquivo .env em dev).
Nunca hardcode secrets ou valores sensíveis.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# -----------------------------------------------------------------------------
# Orçamento padrão da janela de contexto (tokens)
# -----------------------------------------------------------------------------
DEFAULT_MAX_TOKENS: int = 12000
DEFAULT_SYSTEM_PROMPT_TOKENS: int = 500
DEFAULT_RESPONSE_RESERVED_TOKENS: int = 3000
DEFAULT_SUMMARY_TOKENS: int = 200


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    # Aplicação
    service_name: str = "chatbot_widget"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text
    correlation_id_header: str = "X-Correlation-ID"

    # OpenAI / IA (interação unificada)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 20.0  # Timeout da chamada unificada
    openai_temperature: float = 0.3
    openai_max_response_tokens: int = 800
    openai_enabled: bool = False  # Feature flag (fail-safe: false)

    # Janela de contexto
    context_max_tokens: int = DEFAULT_MAX_TOKENS
    context_system_prompt_tokens: int = DEFAULT_SYSTEM_PROMPT_TOKENS
    context_response_reserved_tokens: int = DEFAULT_RESPONSE_RESERVED_TOKENS
    context_summary_tokens: int = DEFAULT_SUMMARY_TOKENS

    # Conhecimento
    knowledge_enabled: bool = True
    knowledge_max_results: int = 5
    knowledge_min_relevance_score: float = 0.5
    knowledge_timeout_seconds: float = 3.0  # Estoura → turno segue sem conhecimento

    # Sessão
    session_timeout_minutes: int = 30  # Timeout de inatividade
    session_store_backend: str = "memory"  # memory | redis
    session_ttl_seconds: int = 86400  # TTL no Redis (1 dia)
    redis_url: str | None = None
    repository_timeout_seconds: float = 5.0  # Por chamada de repositório
    single_flight_enabled: bool = True  # Serializa turnos da mesma sessão

    # Rastreamento de erros
    error_message_truncate_chars: int = 200

    def validate_openai_config(self) -> list[str]:
        """Valida configuração de OpenAI.

        Se openai_enabled=True, verifica se OPENAI_API_KEY está configurado.
        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.openai_enabled and not self.openai_api_key:
            errors.append("OPENAI_ENABLED=true requer OPENAI_API_KEY configurado")
        if self.openai_timeout_seconds <= 0:
            errors.append("OPENAI_TIMEOUT_SECONDS deve ser > 0")
        return errors

    def validate_context_window(self) -> list[str]:
        """Valida o orçamento de tokens (reservas <= máximo)."""
        errors: list[str] = []
        reserved = (
            self.context_system_prompt_tokens
            + self.context_response_reserved_tokens
            + self.context_summary_tokens
        )
        if self.context_max_tokens <= 0:
            errors.append("CONTEXT_MAX_TOKENS deve ser > 0")
        if reserved > self.context_max_tokens:
            errors.append(
                f"Reservas de tokens ({reserved}) excedem CONTEXT_MAX_TOKENS "
                f"({self.context_max_tokens})"
            )
        return errors

    def validate_knowledge_config(self) -> list[str]:
        """Valida parâmetros padrão de busca de conhecimento."""
        errors: list[str] = []
        if self.knowledge_max_results < 1:
            errors.append("KNOWLEDGE_MAX_RESULTS deve ser >= 1")
        if not 0 <= self.knowledge_min_relevance_score <= 1:
            errors.append("KNOWLEDGE_MIN_RELEVANCE_SCORE deve estar entre 0 e 1")
        if self.knowledge_timeout_seconds <= 0:
            errors.append("KNOWLEDGE_TIMEOUT_SECONDS deve ser > 0")
        return errors

    def validate_session_store_config(self) -> list[str]:
        """Valida backend de sessão por ambiente.

        Em staging/prod, memory é proibido (instâncias sem estado compartilhado).
        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.session_store_backend.lower()

        valid_backends = {"memory", "redis"}
        if backend not in valid_backends:
            errors.append(
                f"SESSION_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        if (self.is_production or self.is_staging) and backend == "memory":
            errors.append(
                "SESSION_STORE_BACKEND=memory é proibido em staging/production. "
                "Use 'redis' para persistência compartilhada."
            )

        if backend == "redis" and not self.redis_url:
            errors.append("SESSION_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.session_timeout_minutes <= 0:
            errors.append("SESSION_TIMEOUT_MINUTES deve ser > 0")

        if self.repository_timeout_seconds <= 0:
            errors.append("REPOSITORY_TIMEOUT_SECONDS deve ser > 0")

        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações de startup."""
        errors: list[str] = []
        errors.extend(self.validate_openai_config())
        errors.extend(self.validate_context_window())
        errors.extend(self.validate_knowledge_config())
        errors.extend(self.validate_session_store_config())
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def context_window_config(self) -> dict[str, int]:
        """Parâmetros para ConversationContextWindow.create()."""
        return {
            "max_tokens": self.context_max_tokens,
            "system_prompt_tokens": self.context_system_prompt_tokens,
            "response_reserved_tokens": self.context_response_reserved_tokens,
            "summary_tokens": self.context_summary_tokens,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
