"""Acumulação de entidades extraídas entre turnos da conversa.

Regras:
- Chave ausente: insere com a confiança extraída e source_turns=[turno]
- Chave presente: aplica a estratégia da tabela; o turno é sempre anexado
  a source_turns (sem repetição), mesmo quando o valor não muda
- Estratégia vem de ENTITY_MERGE_STRATEGIES; nomes desconhecidos usam confidence_max
- Valores vazios (None, "", []) são ignorados
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatbot_widget.domain.enums import MergeStrategy
from chatbot_widget.domain.session.models import (
    AccumulatedEntity,
    dedupe_preserving_order,
    utcnow,
)
from chatbot_widget.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.8

ENTITY_MERGE_STRATEGIES: dict[str, MergeStrategy] = {
    # Fatos sobre o visitante: maior confiança vence
    "visitor_name": MergeStrategy.CONFIDENCE_MAX,
    "email": MergeStrategy.CONFIDENCE_MAX,
    "phone": MergeStrategy.CONFIDENCE_MAX,
    "company": MergeStrategy.CONFIDENCE_MAX,
    "role": MergeStrategy.CONFIDENCE_MAX,
    "industry": MergeStrategy.CONFIDENCE_MAX,
    "location": MergeStrategy.CONFIDENCE_MAX,
    "current_solution": MergeStrategy.CONFIDENCE_MAX,
    "budget": MergeStrategy.CONFIDENCE_MAX,
    "timeline": MergeStrategy.CONFIDENCE_MAX,
    # Estado corrente: último valor vence
    "urgency": MergeStrategy.MOST_RECENT,
    "contact_method": MergeStrategy.MOST_RECENT,
    "preferred_time": MergeStrategy.MOST_RECENT,
    "should_escalate_to_human": MergeStrategy.MOST_RECENT,
    "lead_capture_readiness": MergeStrategy.MOST_RECENT,
    "should_ask_qualification_questions": MergeStrategy.MOST_RECENT,
    # Numéricos: maior valor vence
    "team_size": MergeStrategy.NUMERIC_MAX,
    # Listas: união sem duplicatas
    "pain_points": MergeStrategy.ADDITIVE,
    "decision_makers": MergeStrategy.ADDITIVE,
    "integration_needs": MergeStrategy.ADDITIVE,
    "evaluation_criteria": MergeStrategy.ADDITIVE,
}

_NUMBER_RE = re.compile(r"-?\d+(?:[.,]\d+)?")


class ExtractedEntity(BaseModel):
    """Entidade extraída em um turno (valor + confiança do extrator).

    Aceita tanto {"value": ..., "confidence": ...} quanto o valor cru.
    """

    model_config = ConfigDict(frozen=True)

    value: Any
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)

    @model_validator(mode="before")
    @classmethod
    def _wrap_raw_value(cls, data: Any) -> Any:
        if isinstance(data, dict) and "value" in data:
            return data
        return {"value": data}


def strategy_for(entity_name: str) -> MergeStrategy:
    return ENTITY_MERGE_STRATEGIES.get(entity_name, MergeStrategy.CONFIDENCE_MAX)


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match:
            return float(match.group().replace(",", "."))
    return None


def _as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if not is_empty_value(v)]
    return [str(value)]


def _append_turn(turns: tuple[int, ...], turn_index: int) -> tuple[int, ...]:
    if turn_index in turns:
        return turns
    return (*turns, turn_index)


# -----------------------------------------------------------------------------
# Estratégias: (existente, extraída) -> (valor, confiança)
# -----------------------------------------------------------------------------


def _confidence_max(current: AccumulatedEntity, fresh: ExtractedEntity) -> tuple[Any, float]:
    if fresh.confidence > current.confidence:
        return fresh.value, fresh.confidence
    return current.value, current.confidence


def _most_recent(current: AccumulatedEntity, fresh: ExtractedEntity) -> tuple[Any, float]:
    return fresh.value, fresh.confidence


def _numeric_max(current: AccumulatedEntity, fresh: ExtractedEntity) -> tuple[Any, float]:
    current_number = _as_number(current.value)
    fresh_number = _as_number(fresh.value)
    if fresh_number is None:
        return current.value, current.confidence
    if current_number is None or fresh_number > current_number:
        return fresh.value, max(current.confidence, fresh.confidence)
    return current.value, max(current.confidence, fresh.confidence)


def _additive(current: AccumulatedEntity, fresh: ExtractedEntity) -> tuple[Any, float]:
    merged = dedupe_preserving_order(_as_list(current.value) + _as_list(fresh.value))
    return list(merged), max(current.confidence, fresh.confidence)


_STRATEGY_HANDLERS: dict[
    MergeStrategy, Callable[[AccumulatedEntity, ExtractedEntity], tuple[Any, float]]
] = {
    MergeStrategy.CONFIDENCE_MAX: _confidence_max,
    MergeStrategy.MOST_RECENT: _most_recent,
    MergeStrategy.NUMERIC_MAX: _numeric_max,
    MergeStrategy.ADDITIVE: _additive,
}


def merge(
    existing: Mapping[str, AccumulatedEntity],
    newly_extracted: Mapping[str, ExtractedEntity | Any],
    turn_index: int,
) -> dict[str, AccumulatedEntity]:
    """Mescla entidades extraídas no turno atual ao mapa acumulado.

    Retorna um NOVO dict; `existing` nunca é modificado.
    """
    result = dict(existing)
    now = utcnow()

    for name, raw in newly_extracted.items():
        fresh = raw if isinstance(raw, ExtractedEntity) else ExtractedEntity.model_validate(raw)
        if is_empty_value(fresh.value):
            continue

        strategy = strategy_for(name)
        if strategy is MergeStrategy.ADDITIVE:
            fresh = fresh.model_copy(update={"value": _as_list(fresh.value)})

        current = result.get(name)
        if current is None:
            result[name] = AccumulatedEntity(
                value=fresh.value,
                confidence=fresh.confidence,
                source_turns=(turn_index,),
                last_updated_at=now,
            )
            continue

        value, confidence = _STRATEGY_HANDLERS[strategy](current, fresh)
        result[name] = AccumulatedEntity(
            value=value,
            confidence=confidence,
            source_turns=_append_turn(current.source_turns, turn_index),
            last_updated_at=now,
        )

    logger.debug(
        "Entities merged",
        extra={
            "turn_index": turn_index,
            "extracted_count": len(newly_extracted),
            "accumulated_count": len(result),
        },
    )
    return result


# -----------------------------------------------------------------------------
# Contexto para o prompt
# -----------------------------------------------------------------------------

_PROMPT_LABELS: tuple[tuple[str, str], ...] = (
    ("visitor_name", "Visitor name"),
    ("company", "Company"),
    ("role", "Role"),
    ("industry", "Industry"),
    ("team_size", "Team size"),
    ("decision_makers", "Decision makers identified"),
    ("pain_points", "Pain points mentioned"),
    ("integration_needs", "Integration needs"),
    ("evaluation_criteria", "Evaluation criteria"),
    ("budget", "Budget mentioned"),
    ("timeline", "Timeline mentioned"),
    ("urgency", "Urgency level"),
)


def build_entity_context_prompt(entities: Mapping[str, AccumulatedEntity]) -> str:
    """Renderiza as entidades acumuladas como bloco de texto para o modelo."""
    lines: list[str] = []
    for name, label in _PROMPT_LABELS:
        entity = entities.get(name)
        if entity is None or is_empty_value(entity.value):
            continue
        value = entity.value
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{label}: {value}")

    if not lines:
        return ""
    return "ACCUMULATED CONVERSATION CONTEXT:\n" + "\n".join(lines) + "\n"
