# insights/deal_health.py

from datetime import datetime

from insights.base import days_since, days_until, clamp
from models import Deal, DealHealth

BASE_SCORE = 50

GOOD_THRESHOLD      = 70
ATTENTION_THRESHOLD = 40


def calculate_deal_health(deal: Deal, now: datetime) -> int:
    """
    Santé d'un deal de 0 à 100.

    Part de 50 puis chaque facteur s'ajoute indépendamment :
    → Récence      : <3j +20 | 8-14j -30 | >14j -40
    → Probabilité  : >70 +15 | >50 +10 | <30 -10
    → Stage avancé : offre, négociation, compromis +10
    → Clôture      : dans 0-14j +10 | dépassée -15

    Un champ absent saute simplement son ajustement.
    """
    score = BASE_SCORE

    days_since_update = days_since(deal.updated_at, now)
    if days_since_update is not None:
        if days_since_update < 3:
            score += 20
        elif days_since_update > 14:
            score -= 40
        elif days_since_update > 7:
            score -= 30

    if deal.probability is not None:
        if deal.probability > 70:
            score += 15
        elif deal.probability > 50:
            score += 10
        elif deal.probability < 30:
            score -= 10

    if deal.stage is not None and deal.stage.is_advanced:
        score += 10

    days_until_close = days_until(deal.expected_close_date, now)
    if days_until_close is not None:
        if 0 <= days_until_close <= 14:
            score += 10
        if days_until_close < 0:
            score -= 15

    return int(clamp(score, 0, 100))


def get_deal_health_color(score: int) -> str:
    if score >= GOOD_THRESHOLD:
        return "text-success"
    if score >= ATTENTION_THRESHOLD:
        return "text-warning"
    return "text-error"


def get_deal_health_label(score: int) -> str:
    if score >= GOOD_THRESHOLD:
        return "Bon"
    if score >= ATTENTION_THRESHOLD:
        return "Attention"
    return "Critique"


def evaluate_deal_health(deal: Deal, now: datetime) -> DealHealth:
    score = calculate_deal_health(deal, now)
    return DealHealth(
        deal_id=deal.id,
        score=score,
        label=get_deal_health_label(score),
        color=get_deal_health_color(score)
    )
