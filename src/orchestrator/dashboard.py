# orchestrator/dashboard.py

"""
Une passe d'évaluation du tableau de bord.

1. Config de scoring de l'agence (sauf si l'appelant l'a déjà)
2. Snapshot : contacts + deals + activités, lus ensemble
3. `now` lu UNE fois
4. Les vues demandées, calculées sur ce snapshot et ce `now`

Aucun cache : chaque appel recalcule.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from insights.base import utcnow
from insights.alerts import compute_alerts
from insights.badges import get_contact_badges
from insights.deal_health import evaluate_deal_health
from insights.kpis import compute_kpis
from insights.notifications import compute_notifications
from insights.pipeline import compute_pipeline_health
from insights.smart_actions import compute_smart_actions
from models import (
    Snapshot, SmartBadge, DealHealth, AlertPanel, SmartAction,
    PipelineHealthSnapshot, SmartNotification, DashboardKpis, serialize
)
from orchestrator.profile import DEFAULT_SCORING_CONFIG, get_scoring_config
from services.database import load_snapshot

logger = logging.getLogger(__name__)

VIEWS = (
    "kpis",
    "contact_badges",
    "deal_health",
    "alerts",
    "smart_actions",
    "pipeline",
    "notifications",
)


# ─────────────────────────────────────────
# RÉSULTAT D'UNE PASSE
# Une vue non demandée reste à None / vide
# ─────────────────────────────────────────

@dataclass
class DashboardResult:
    organization_id: str
    computed_at: datetime
    kpis: Optional[DashboardKpis] = None
    contact_badges: dict[str, list[SmartBadge]] = field(default_factory=dict)
    deal_health: dict[str, DealHealth] = field(default_factory=dict)
    alerts: Optional[AlertPanel] = None
    smart_actions: list[SmartAction] = field(default_factory=list)
    pipeline: Optional[PipelineHealthSnapshot] = None
    notifications: list[SmartNotification] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "organization_id": self.organization_id,
            "computed_at": self.computed_at.isoformat(),
            "kpis": serialize(self.kpis),
            "contact_badges": serialize(self.contact_badges),
            "deal_health": serialize(self.deal_health),
            "alerts": serialize(self.alerts),
            "smart_actions": serialize(self.smart_actions),
            "pipeline": serialize(self.pipeline),
            "notifications": serialize(self.notifications),
        }

    def summary(self) -> str:
        parts = [f"{self.duration_seconds:.2f}s"]
        if self.alerts is not None:
            parts.append(
                f"{self.alerts.total} alertes ({self.alerts.severity.value})"
            )
        if self.smart_actions:
            parts.append(f"{len(self.smart_actions)} actions")
        if self.pipeline is not None:
            parts.append(f"health {self.pipeline.health_score}")
        return " | ".join(parts)


# ─────────────────────────────────────────
# CALCUL
# ─────────────────────────────────────────

def evaluate_snapshot(
    snapshot: Snapshot,
    now: datetime,
    config: Optional[dict] = None,
    dismissed_ids: Iterable[str] = (),
    views: Optional[Iterable[str]] = None
) -> DashboardResult:
    """
    Calcule les vues demandées (toutes par défaut) d'un snapshot déjà chargé.
    Pur : pas d'I/O, pas d'horloge.
    """
    wanted = set(VIEWS if views is None else views)
    unknown = wanted - set(VIEWS)
    if unknown:
        raise ValueError(f"Vues inconnues : {sorted(unknown)}")

    cfg = {**DEFAULT_SCORING_CONFIG, **(config or {})}
    contacts, deals, activities = (
        snapshot.contacts, snapshot.deals, snapshot.activities
    )

    result = DashboardResult(
        organization_id=snapshot.organization_id,
        computed_at=now
    )

    if "kpis" in wanted:
        result.kpis = compute_kpis(contacts, deals, activities, now)

    if "contact_badges" in wanted:
        result.contact_badges = {
            c.id: get_contact_badges(
                c, now, high_value_threshold=cfg["high_value_threshold"]
            )
            for c in contacts
        }

    if "deal_health" in wanted:
        result.deal_health = {d.id: evaluate_deal_health(d, now) for d in deals}

    if "alerts" in wanted:
        result.alerts = compute_alerts(
            contacts, deals, activities, now,
            preview_size=cfg["alert_preview_size"]
        )

    if "smart_actions" in wanted:
        result.smart_actions = compute_smart_actions(
            contacts, deals, activities, now,
            max_actions=cfg["max_smart_actions"]
        )

    if "pipeline" in wanted:
        result.pipeline = compute_pipeline_health(
            deals, now, distribution_size=cfg["stage_distribution_size"]
        )

    if "notifications" in wanted:
        result.notifications = compute_notifications(
            contacts, deals, activities, now,
            dismissed_ids=dismissed_ids,
            max_notifications=cfg["max_notifications"]
        )

    return result


def build_dashboard(
    organization_id: str,
    now: Optional[datetime] = None,
    dismissed_ids: Iterable[str] = (),
    config: Optional[dict] = None,
    views: Optional[Iterable[str]] = None
) -> DashboardResult:
    """
    `config` : config de scoring déjà lue par l'appelant.
    Sans elle, on la lit ici.
    """
    started = time.perf_counter()
    logger.info(f"[dashboard] Démarrage pour organisation {organization_id}")

    if config is None:
        config = get_scoring_config(organization_id)
    snapshot = load_snapshot(organization_id)

    if now is None:
        now = utcnow()

    result = evaluate_snapshot(snapshot, now, config, dismissed_ids, views)
    result.duration_seconds = time.perf_counter() - started

    logger.info(f"[dashboard] Terminé : {result.summary()}")
    return result
