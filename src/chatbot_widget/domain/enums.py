"""Enums de domínio para sessão, qualificação, mensagens e entidades."""

from __future__ import annotations

from enum import StrEnum


class SessionStatus(StrEnum):
    """Status do ciclo de vida da sessão."""

    ACTIVE = "active"
    IDLE = "idle"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    ENDED = "ended"


class QualificationStatus(StrEnum):
    """Progresso da qualificação de lead."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class MessageType(StrEnum):
    """Tipos de mensagem persistidos (conforme tabela chat_messages)."""

    USER = "user"
    BOT = "bot"
    SYSTEM = "system"
    LEAD_CAPTURE = "lead_capture"
    QUALIFICATION = "qualification"


class MergeStrategy(StrEnum):
    """Estratégias de merge de entidades acumuladas entre turnos."""

    CONFIDENCE_MAX = "confidence_max"
    """Mantém o valor de maior confiança (fatos acumulados)."""

    MOST_RECENT = "most_recent"
    """Último valor vence (intenção corrente, flags)."""

    NUMERIC_MAX = "numeric_max"
    """Mantém o maior valor numérico (ex.: tamanho de equipe)."""

    ADDITIVE = "additive"
    """União de listas sem duplicatas (ex.: pain points)."""


class EngagementLevel(StrEnum):
    """Nível de engajamento reportado pela análise de fluxo."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(StrEnum):
    """Sentimento da mensagem do visitante (neutral é o default degradável)."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
