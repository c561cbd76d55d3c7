# insights/pipeline.py

"""
Santé du pipeline : métriques de portefeuille sur tous les deals.

CA pondéré      = Σ(montant × probabilité / 100) des deals actifs
Conversion      = vendus / (vendus + perdus) × 100
Health score    = 100 - stalled_ratio × 40
                  + proba_moyenne × 0.3 + conversion × 0.3   (borné 0-100)
Vélocité        = jours moyens création → clôture réelle (45 par défaut)
Momentum        = part des deals mis à jour dans les 7 derniers jours
"""

import logging
from datetime import datetime

from insights.base import (
    days_since, days_between, start_of_month, start_of_previous_month,
    clamp, round_half_up, mean
)
from models import (
    Deal, PipelineStage, PipelineHealthSnapshot, StageShare, Momentum
)

logger = logging.getLogger(__name__)

STAGE_DISTRIBUTION_SIZE = 5
DEFAULT_VELOCITY_DAYS   = 45
STALLED_DEAL_DAYS       = 14
RECENT_UPDATE_DAYS      = 7

MOMENTUM_STRONG   = 0.5
MOMENTUM_MODERATE = 0.2


# ─────────────────────────────────────────
# MÉTRIQUES UNITAIRES
# ─────────────────────────────────────────

def weighted_pipeline_value(active_deals: list[Deal]) -> float:
    return sum(
        (d.amount or 0) * (d.probability or 0) / 100
        for d in active_deals
    )


def conversion_rate(deals: list[Deal]) -> int:
    won  = sum(1 for d in deals if d.stage == PipelineStage.VENDU)
    lost = sum(1 for d in deals if d.stage == PipelineStage.PERDU)
    closed = won + lost
    if closed == 0:
        return 0
    return round_half_up(won / closed * 100)


def average_commission(deals: list[Deal]) -> float:
    commissions = [
        d.commission_amount for d in deals
        if d.commission_amount is not None and d.commission_amount > 0
    ]
    return mean(commissions)


def monthly_deal_counts(deals: list[Deal], now: datetime) -> tuple[int, int]:
    """(deals créés ce mois-ci, deals créés le mois précédent)"""
    this_month_start = start_of_month(now)
    last_month_start = start_of_previous_month(now)

    this_month = 0
    last_month = 0
    for deal in deals:
        if deal.created_at is None:
            continue
        if deal.created_at >= this_month_start:
            this_month += 1
        elif deal.created_at >= last_month_start:
            last_month += 1
    return this_month, last_month


def month_over_month_change(this_month: int, last_month: int) -> int:
    if last_month > 0:
        return round_half_up((this_month - last_month) / last_month * 100)
    return 100 if this_month > 0 else 0


def stage_distribution(
    active_deals: list[Deal], size: int = STAGE_DISTRIBUTION_SIZE
) -> list[StageShare]:
    totals: dict[PipelineStage, float] = {}
    for deal in active_deals:
        stage = deal.stage or PipelineStage.NOUVEAU
        totals[stage] = totals.get(stage, 0) + (deal.amount or 0)

    grand_total = sum(totals.values())
    shares = [
        StageShare(
            stage=stage.value,
            name=stage.label,
            total=total,
            percentage=(
                round_half_up(total / grand_total * 100)
                if grand_total > 0 else 0
            )
        )
        for stage, total in totals.items()
    ]
    shares.sort(key=lambda s: s.total, reverse=True)
    return shares[:size]


def count_stalled(active_deals: list[Deal], now: datetime) -> int:
    count = 0
    for deal in active_deals:
        days = days_since(deal.updated_at, now)
        if days is not None and days >= STALLED_DEAL_DAYS:
            count += 1
    return count


def pipeline_health_score(
    stalled_ratio: float, avg_probability: float, conversion: int
) -> int:
    raw = 100 - stalled_ratio * 40 + avg_probability * 0.3 + conversion * 0.3
    return int(clamp(round_half_up(raw), 0, 100))


def velocity_days(deals: list[Deal]) -> int:
    durations = [
        days_between(d.actual_close_date, d.created_at)
        for d in deals
        if d.is_terminal
        and d.actual_close_date is not None
        and d.created_at is not None
    ]
    if not durations:
        return DEFAULT_VELOCITY_DAYS
    return round_half_up(mean(durations))


def momentum(deals: list[Deal], now: datetime) -> Momentum:
    """Sur la collection entière, deals terminés compris."""
    if not deals:
        return Momentum.FAIBLE

    recent = 0
    for deal in deals:
        days = days_since(deal.updated_at, now)
        if days is not None and days <= RECENT_UPDATE_DAYS:
            recent += 1

    ratio = recent / len(deals)
    if ratio > MOMENTUM_STRONG:
        return Momentum.FORT
    if ratio > MOMENTUM_MODERATE:
        return Momentum.MODERE
    return Momentum.FAIBLE


# ─────────────────────────────────────────
# SNAPSHOT COMPLET
# ─────────────────────────────────────────

def compute_pipeline_health(
    deals: list[Deal],
    now: datetime,
    distribution_size: int = STAGE_DISTRIBUTION_SIZE
) -> PipelineHealthSnapshot:
    if not deals:
        return PipelineHealthSnapshot(
            velocity_days=DEFAULT_VELOCITY_DAYS,
            momentum=Momentum.FAIBLE
        )

    active_deals = [d for d in deals if not d.is_terminal]

    conversion = conversion_rate(deals)
    stalled = count_stalled(active_deals, now)
    stalled_ratio = stalled / len(active_deals) if active_deals else 0
    avg_probability = mean([d.probability or 0 for d in active_deals])

    this_month, last_month = monthly_deal_counts(deals, now)

    snapshot = PipelineHealthSnapshot(
        weighted_value=weighted_pipeline_value(active_deals),
        conversion_rate=conversion,
        avg_commission=average_commission(deals),
        deals_this_month=this_month,
        percentage_change=month_over_month_change(this_month, last_month),
        deals_count=len(active_deals),
        stage_distribution=stage_distribution(active_deals, distribution_size),
        health_score=pipeline_health_score(
            stalled_ratio, avg_probability, conversion
        ),
        velocity_days=velocity_days(deals),
        stalled_count=stalled,
        momentum=momentum(deals, now)
    )

    logger.debug(
        f"[pipeline] {len(deals)} deals — health {snapshot.health_score} — "
        f"momentum {snapshot.momentum.value}"
    )
    return snapshot
