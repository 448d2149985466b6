"""Regras puras da qualificação de lead (upsert de respostas e score)."""

from __future__ import annotations

from chatbot_widget.domain.session.models import AnsweredQuestion, clamp_engagement

QUALIFIED_THRESHOLD = 60
BASE_WEIGHT = 0.7
ENGAGEMENT_WEIGHT = 0.3


def upsert_answer(
    answers: tuple[AnsweredQuestion, ...], answer: AnsweredQuestion
) -> tuple[AnsweredQuestion, ...]:
    """Substitui a resposta de mesmo question_id ou adiciona ao final."""
    replaced = False
    result: list[AnsweredQuestion] = []
    for existing in answers:
        if existing.question_id == answer.question_id:
            result.append(answer)
            replaced = True
        else:
            result.append(existing)
    if not replaced:
        result.append(answer)
    return tuple(result)


def compute_lead_score(answers: tuple[AnsweredQuestion, ...], engagement_score: int) -> int:
    """Calcula o score final da qualificação.

    base = Σpeso(respostas não vazias) / Σpeso(todas) × 100 (0 se Σpeso == 0)
    final = round(base × (0.7 + 0.3 × engagement / 100))
    """
    total_weight = sum(a.scoring_weight for a in answers)
    if total_weight <= 0:
        return 0

    answered_weight = sum(a.scoring_weight for a in answers if a.has_answer())
    base = answered_weight / total_weight * 100
    multiplier = BASE_WEIGHT + ENGAGEMENT_WEIGHT * clamp_engagement(engagement_score) / 100
    return round(base * multiplier)


def is_qualified(score: int) -> bool:
    return score >= QUALIFIED_THRESHOLD
